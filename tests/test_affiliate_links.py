from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest

from schemas.trip import TripParameters
from utils.affiliate_links import (
    FLIGHT_SEARCH_URL,
    HOTEL_SEARCH_URL,
    build_flight_link,
    build_hotel_link,
    find_city_id,
    parse_duration_days,
    resolve_month,
    travel_dates,
)

TODAY = date(2026, 10, 18)


def query(link: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlparse(link).query).items()}


@pytest.fixture
def bangkok_trip():
    return TripParameters(
        destination="Bangkok",
        duration="5 days",
        time_of_year="July",
        number_adults=2,
        number_kids=0,
        luxury_level=4,
    )


def test_hotel_link_for_known_city(bangkok_trip):
    link = build_hotel_link(bangkok_trip, "1937751", today=TODAY)

    assert link.startswith(HOTEL_SEARCH_URL + "?")
    assert query(link) == {
        "pcs": "1",
        "cid": "1937751",
        "hl": "en-us",
        "city": "9395",
        "checkIn": "2027-07-15",
        "checkOut": "2027-07-20",
        "adults": "2",
        "hotelStarRating": "4",
    }


def test_hotel_link_omits_unknown_city():
    trip = TripParameters(destination="Nowhereville", duration="3 days", number_kids=2)

    params = query(build_hotel_link(trip, today=TODAY))

    assert "city" not in params
    assert "hotelStarRating" not in params
    assert params["children"] == "2"


def test_flight_link(bangkok_trip):
    bangkok_trip.number_kids = 1

    link = build_flight_link(bangkok_trip, "42", today=TODAY)

    assert link.startswith(FLIGHT_SEARCH_URL + "?")
    assert query(link) == {
        "cid": "42",
        "departDate": "2027-07-15",
        "returnDate": "2027-07-20",
        "adults": "2",
        "children": "1",
    }


def test_links_are_deterministic(bangkok_trip):
    assert build_hotel_link(bangkok_trip, today=TODAY) == build_hotel_link(bangkok_trip, today=TODAY)
    assert build_flight_link(bangkok_trip, today=TODAY) == build_flight_link(bangkok_trip, today=TODAY)


def test_travel_dates_this_year_when_month_is_ahead():
    trip = TripParameters(time_of_year="December", duration="10 days")

    assert travel_dates(trip, TODAY) == (date(2026, 12, 15), date(2026, 12, 25))


def test_travel_dates_without_time_of_year():
    trip = TripParameters(duration="4 days")

    assert travel_dates(trip, TODAY) == (date(2026, 11, 17), date(2026, 11, 21))


@pytest.mark.parametrize(
    "text, month",
    [
        ("March", 3),
        ("early december, winter holidays", 12),
        ("Winter", 1),
        ("spring break", 4),
        ("Summer", 7),
        ("autumn", 10),
        ("Fall", 10),
        ("whenever", 6),
        ("maybe summer", 7),
        ("marching season in spring", 4),
        (None, 6),
    ],
)
def test_resolve_month(text, month):
    assert resolve_month(text) == month


@pytest.mark.parametrize(
    "duration, days",
    [("7 days", 7), ("12", 12), ("a week", 5), (None, 5), ("0 days", 5)],
)
def test_parse_duration_days(duration, days):
    assert parse_duration_days(duration) == days


def test_find_city_id():
    assert find_city_id("Bangkok") == 9395
    assert find_city_id("  BANGKOK ") == 9395
    assert find_city_id("Bangkok, Thailand") == 9395
    assert find_city_id("Unknown") is None
    assert find_city_id("") is None
    assert find_city_id(None) is None
