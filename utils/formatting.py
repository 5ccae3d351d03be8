import re
from typing import Iterable, Optional, Sequence, Tuple
from urllib.parse import quote

from pydantic import ValidationError

from core.logging import logger
from schemas.trip import UNKNOWN, Itinerary, TripParameters

GOOGLE_MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="

_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def escape_markdown(text) -> str:
    """Escape legacy Telegram Markdown control characters in free text."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", str(text))


def google_maps_url(location: str) -> str:
    return GOOGLE_MAPS_SEARCH_URL + quote(location, safe="")


def inline_keyboard(rows: Iterable[Sequence[Tuple[str, str]]]) -> dict:
    """Build reply markup from rows of (label, callback_data) pairs."""
    return {
        "inline_keyboard": [
            [{"text": text, "callback_data": data} for text, data in row] for row in rows
        ]
    }


def remove_keyboard() -> dict:
    return {"remove_keyboard": True}


def split_day(day: str) -> Tuple[Optional[str], str]:
    """Split "Day 1: Old town" into ("Day 1", "Old town") on the first colon."""
    label, sep, text = day.partition(":")
    if not sep:
        return None, day.strip()
    return label.strip(), text.strip()


def agoda_section(hotel_link: str, destination: str) -> str:
    message = "\n🛌 *BOOK YOUR STAY:*\n"
    message += (
        f"We've partnered with [Agoda.com]({hotel_link}) to offer you the best deals on hotels, "
        f"flights, and transfers for your trip to {escape_markdown(destination)}.\n\n"
    )
    message += f"[🏝 Book on Agoda]({hotel_link})\n"
    return message


def _render(itinerary: Itinerary, hotel_link: str, flight_link: str) -> str:
    message = f"🌍 *{escape_markdown(itinerary.title)}*\n\n"

    message += "✨ *HIGHLIGHTS:*\n"
    for index, highlight in enumerate(itinerary.highlights, start=1):
        message += f"   {index}. {escape_markdown(highlight)}\n"

    message += "\n🗓️ *BEST TIME TO VISIT:*\n"
    message += f"   {escape_markdown(itinerary.timing)}\n"

    message += "\n🚌 *GETTING AROUND:*\n"
    message += f"   {escape_markdown(itinerary.getting_around)}\n"

    message += "\n📅 *ITINERARY:*\n"
    for day in itinerary.sample_itinerary:
        label, text = split_day(day)
        if label:
            message += f"   *{escape_markdown(label)}*: {escape_markdown(text)}\n"
        else:
            message += f"   {escape_markdown(text)}\n"

    message += "\n📍 *LOCATIONS:*\n"
    for index, location in enumerate(itinerary.locations, start=1):
        # brackets would end the link label early
        label = escape_markdown(location.replace("[", "(").replace("]", ")"))
        message += f"   {index}. [{label}]({google_maps_url(location)})\n"

    budget = itinerary.budget
    message += "\n💰 *BUDGET:*\n"
    message += f"   ✈️ *Flights*: {escape_markdown(budget.flights)}\n"
    message += f"   🔗 [Book flights on Agoda]({flight_link})\n"
    message += f"   🚕 *Transportation*: {escape_markdown(budget.transportation)}\n"
    message += f"   🏨 *Accommodation*: {escape_markdown(budget.accommodation)}\n"
    message += f"   🔗 [Book hotels on Agoda]({hotel_link})\n"
    message += f"   🎭 *Activities*: {escape_markdown(budget.activities)}\n"
    message += f"   🍽️ *Food*: {escape_markdown(budget.food)}\n"
    message += f"   💵 *Total*: {escape_markdown(budget.total)}\n"

    if budget.not_enough_budget:
        message += "\n⚠️ *NOTE:* The provided budget is not sufficient for this trip.\n"

    message += agoda_section(hotel_link, itinerary.destination or "your destination")
    return message


def minimal_itinerary_message(raw, hotel_link: str, flight_link: str) -> str:
    data = raw if isinstance(raw, dict) else {}
    title = data.get("title") or data.get("destination") or "Your trip"
    destination = data.get("destination") or "your destination"
    message = f"🌍 *{escape_markdown(title)}*\n\n"
    message += "We couldn't format the full itinerary, but your booking links are ready:\n\n"
    message += f"🔗 [Book hotels on Agoda]({hotel_link})\n"
    message += f"🔗 [Book flights on Agoda]({flight_link})\n"
    message += agoda_section(hotel_link, str(destination))
    return message


def format_itinerary(raw, hotel_link: str, flight_link: str) -> str:
    """Render a parsed model reply as Telegram Markdown.

    Falls back to a minimal message with the booking links when the reply is
    missing a field the full layout needs.
    """
    try:
        itinerary = Itinerary.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Itinerary is missing expected fields, sending minimal message: {e}")
        return minimal_itinerary_message(raw, hotel_link, flight_link)
    return _render(itinerary, hotel_link, flight_link)


def format_summary(trip: TripParameters) -> str:
    styles = ", ".join(trip.vacation_styles) or "Not specified"
    rating = f"{trip.luxury_level} ⭐" if trip.luxury_level else "Not specified"
    destination = trip.destination if trip.destination != UNKNOWN else "Suggest one for me"

    summary = "📋 *Trip Summary:*\n\n"
    summary += f"🌍 Destination: {escape_markdown(destination)}\n"
    summary += f"⏱️ Duration: {escape_markdown(trip.duration or UNKNOWN)}\n"
    summary += f"🗓️ Travel Dates/Season: {escape_markdown(trip.time_of_year or UNKNOWN)}\n"
    summary += f"🏖️ Vacation Style: {escape_markdown(styles)}\n"
    summary += f"🛫 Departure City: {escape_markdown(trip.departure_city or UNKNOWN)}\n"
    summary += f"💵 Currency: {escape_markdown(trip.currency)}\n"
    summary += (
        f"👨‍👩‍👧‍👦 Travelers: {trip.number_adults} adults, {trip.number_kids} children\n"
    )
    summary += f"🛌 Hotel Rating: {rating}\n\n"
    summary += "Is this correct? Type *YES* to generate your itinerary or *NO* to start over."
    return summary
