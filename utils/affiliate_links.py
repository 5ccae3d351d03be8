import re
from datetime import date, timedelta
from typing import Optional
from urllib.parse import urlencode

from core.logging import logger
from schemas.trip import UNKNOWN, TripParameters

# ====== CONFIGURATION ======
AGODA_CID = "1937751"
HOTEL_SEARCH_URL = "https://www.agoda.com/partners/partnersearch.aspx"
FLIGHT_SEARCH_URL = "https://www.agoda.com/flights/results"

DEFAULT_MONTH = 6
DEFAULT_DURATION_DAYS = 5
DEFAULT_LEAD_DAYS = 30
CHECK_IN_DAY = 15

# Agoda city IDs, keyed by lowercase city name
AGODA_CITY_IDS = {
    "bangkok": 9395,
    "phuket": 16056,
    "pattaya": 8584,
    "chiang mai": 7401,
    "krabi": 14865,
    "koh samui": 17190,
    "singapore": 4064,
    "kuala lumpur": 14524,
    "bali": 17193,
    "jakarta": 8691,
    "hanoi": 2758,
    "ho chi minh city": 13170,
    "da nang": 16440,
    "manila": 3933,
    "hong kong": 16808,
    "macau": 16429,
    "taipei": 4951,
    "seoul": 14690,
    "tokyo": 5085,
    "osaka": 9590,
    "kyoto": 1784,
    "dubai": 2994,
    "tel aviv": 17323,
    "london": 233,
    "paris": 15470,
    "rome": 16018,
    "barcelona": 4953,
    "amsterdam": 13868,
    "new york": 318,
    "sydney": 14370,
    "melbourne": 13986,
}

MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

SEASON_MONTHS = [
    (("winter",), 1),
    (("spring",), 4),
    (("summer",), 7),
    (("fall", "autumn"), 10),
]


def find_city_id(destination: Optional[str]) -> Optional[int]:
    """Exact match first, then substring containment in either direction."""
    if not destination:
        return None
    dest = destination.strip().lower()
    if not dest or dest == UNKNOWN.lower():
        return None

    if dest in AGODA_CITY_IDS:
        return AGODA_CITY_IDS[dest]

    for city, city_id in AGODA_CITY_IDS.items():
        if city in dest or dest in city:
            return city_id

    logger.debug(f"No Agoda city ID for destination: {destination}")
    return None


def resolve_month(time_of_year: Optional[str]) -> int:
    """Map a free-text time of year to a month number (1-12)."""
    if not time_of_year:
        return DEFAULT_MONTH
    text = time_of_year.lower()

    for index, month in enumerate(MONTHS):
        if re.search(rf"\b{month}\b", text):
            return index + 1

    for keywords, month in SEASON_MONTHS:
        if any(re.search(rf"\b{keyword}\b", text) for keyword in keywords):
            return month

    return DEFAULT_MONTH


def parse_duration_days(duration: Optional[str]) -> int:
    match = re.match(r"\s*(\d+)", duration or "")
    if not match:
        return DEFAULT_DURATION_DAYS
    days = int(match.group(1))
    return days if days > 0 else DEFAULT_DURATION_DAYS


def travel_dates(trip: TripParameters, today: Optional[date] = None) -> tuple[date, date]:
    """Return (check_in, check_out) for the trip relative to `today`."""
    today = today or date.today()

    if trip.time_of_year and trip.time_of_year != UNKNOWN:
        month = resolve_month(trip.time_of_year)
        check_in = date(today.year, month, CHECK_IN_DAY)
        if check_in < today:
            check_in = date(today.year + 1, month, CHECK_IN_DAY)
    else:
        check_in = today + timedelta(days=DEFAULT_LEAD_DAYS)

    check_out = check_in + timedelta(days=parse_duration_days(trip.duration))
    return check_in, check_out


def build_hotel_link(
    trip: TripParameters, cid: str = AGODA_CID, today: Optional[date] = None
) -> str:
    check_in, check_out = travel_dates(trip, today)
    city_id = find_city_id(trip.destination)

    params = {"pcs": "1", "cid": cid, "hl": "en-us"}
    if city_id:
        params["city"] = str(city_id)
    params["checkIn"] = check_in.isoformat()
    params["checkOut"] = check_out.isoformat()
    params["adults"] = str(trip.number_adults or 1)
    if trip.number_kids and trip.number_kids > 0:
        params["children"] = str(trip.number_kids)
    if trip.luxury_level and trip.luxury_level > 0:
        params["hotelStarRating"] = str(trip.luxury_level)

    return f"{HOTEL_SEARCH_URL}?{urlencode(params)}"


def build_flight_link(
    trip: TripParameters, cid: str = AGODA_CID, today: Optional[date] = None
) -> str:
    depart, return_date = travel_dates(trip, today)

    params = {
        "cid": cid,
        "departDate": depart.isoformat(),
        "returnDate": return_date.isoformat(),
        "adults": str(trip.number_adults or 1),
    }
    if trip.number_kids and trip.number_kids > 0:
        params["children"] = str(trip.number_kids)

    return f"{FLIGHT_SEARCH_URL}?{urlencode(params)}"
