from schemas.trip import TripParameters
from utils.prompt_builder import RESPONSE_TEMPLATE, create_prompt


def test_prompt_contains_all_parameters():
    trip = TripParameters(
        destination="Lisbon",
        duration="6 days",
        time_of_year="May",
        vacation_styles=["Food & Wine", "City"],
        departure_city="Berlin",
        currency="EUR",
        number_adults=2,
        number_kids=1,
        luxury_level=3,
        budget=2500,
        suggest_destination=False,
    )

    prompt = create_prompt(trip)

    assert "Departure city: Berlin." in prompt
    assert "Destination: Lisbon." in prompt
    assert "Duration: 6 days." in prompt
    assert "During: May." in prompt
    assert "Interest: Food & Wine, City." in prompt
    assert "Number of Adults: 2." in prompt
    assert "Number of Children (under 12 years old): 1." in prompt
    assert "Hotel Rating: 3 stars." in prompt
    assert "Budget: 2500.0 EUR." in prompt
    assert "Local-Travel is false. Suggest-Destination is false." in prompt
    assert prompt.endswith(RESPONSE_TEMPLATE)


def test_missing_values_render_as_unknown():
    prompt = create_prompt(TripParameters())

    assert "Destination: Unknown." in prompt
    assert "Duration: Unknown." in prompt
    assert "Departure city: Unknown." in prompt
    assert "Interest: Unknown." in prompt
    assert "Hotel Rating: Unknown stars." in prompt
    assert "Number of Adults: 1." in prompt
    assert "Number of Children (under 12 years old): 0." in prompt
    assert "Suggest-Destination is true." in prompt


def test_prompt_asks_for_budget_flag():
    prompt = create_prompt(TripParameters(destination="Rome"))

    assert '"not_enough_budget": true' in prompt
    assert '"sample_itinerary"' in prompt
