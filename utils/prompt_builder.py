from schemas.trip import UNKNOWN, TripParameters

RESPONSE_TEMPLATE = """{
  "destination": "...",
  "title": "{duration} Days in {destination}",
  "highlights": ["...", "..."],
  "timing": "The best time to visit...",
  "getting_around": "...",
  "sample_itinerary": ["Day 1: ...", "Day 2: ...", "Day 3: ..."],
  "locations": ["...", "..."],
  "budget": {
    "flights": "Estimated cost for round-trip flights...",
    "transportation": "Estimated cost for...",
    "accommodation": "Estimated cost for... stars...",
    "activities": "Estimated cost for...",
    "food": "Estimated cost for...",
    "total": "Approximately...",
    "not_enough_budget": false
  }
}"""


def _or_unknown(value) -> str:
    if value is None or value == "":
        return UNKNOWN
    return str(value)


def create_prompt(trip: TripParameters) -> str:
    """Build the itinerary request sent to the model as a single user message."""
    styles = ", ".join(trip.vacation_styles) or UNKNOWN
    luxury = _or_unknown(trip.luxury_level)
    budget = _or_unknown(trip.budget)

    return (
        "Plan a trip.\n"
        f"Departure city: {_or_unknown(trip.departure_city)}.\n"
        f"Destination: {_or_unknown(trip.destination)}.\n"
        f"Duration: {_or_unknown(trip.duration)}.\n"
        f"During: {_or_unknown(trip.time_of_year)}.\n"
        f"Interest: {styles}.\n"
        f"Number of Adults: {trip.number_adults or 1}.\n"
        f"Number of Children (under 12 years old): {trip.number_kids or 0}.\n"
        f"Hotel Rating: {luxury} stars.\n"
        f"Budget: {budget} {trip.currency}.\n"
        f"More info: Local-Travel is {str(trip.local_travel).lower()}. "
        f"Suggest-Destination is {str(trip.suggest_destination).lower()}.\n\n"
        "Answer using the following rules:\n"
        "1) Destination:\n"
        "   A) If a specific destination was given, plan the trip for that destination.\n"
        f"   B) If Destination is {UNKNOWN} and Suggest-Destination is true: when Local-Travel is false, "
        "recommend a destination that fits the other details and interests; when Local-Travel is true, "
        "plan the trip in and around the departure city.\n"
        "2) Highlights: an array of strings with a quick overview of the geographical location, "
        "official language, key attractions, landmarks or activities.\n"
        "3) Timing:\n"
        "   A) Recommend the best time to visit and explain why (weather, crowds, special events).\n"
        "   B) If a season was requested, say which months it corresponds to.\n"
        "   C) If a time of year was given, describe the expected weather and any festivals or "
        "notable events during the visit.\n"
        "4) Getting Around: 2-3 short sentences about public transportation and other popular "
        "ways of getting around.\n"
        "5) Sample Itinerary:\n"
        "   - An array of strings, one per day, each starting with \"Day N:\".\n"
        "   - Activities must match the interests, the duration, the weather and any special events.\n"
        f"   - If Duration is {UNKNOWN}, choose the optimal duration and use it.\n"
        "6) Locations: an array of specific places from the sample itinerary that can be found "
        "on Google Maps.\n"
        "7) Budget Breakdown:\n"
        "   A) Account for the number of adults and children in every estimate.\n"
        "   B) Flights: round-trip economy flights at current rates, excluding low-cost airlines.\n"
        f"      Accommodation: a {luxury} stars hotel; if the hotel rating is {UNKNOWN}, give a cost range.\n"
        "      Other expenses: transportation, activities and food.\n"
        f"   C) Currency: {trip.currency}.\n"
        "   D) If the budget is not enough for the trip, give the minimum budget required and set "
        "\"not_enough_budget\": true.\n\n"
        "Reply with a single JSON object in exactly this format:\n"
        f"{RESPONSE_TEMPLATE}"
    )
