"""
Conversation controller for the trip-planning Q&A.

Each question state has one entry in QUESTIONS describing how it is asked
(prompt and keyboard), how an answer is parsed and validated, and where the
answer is stored. The controller owns every session mutation: it stores an
answer, advances exactly one state, and at the confirmation step hands the
collected TripParameters to the itinerary generator.
"""

import re
import weakref
from asyncio import Lock
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Union

from core.exceptions import InvalidAnswer, TelegramError
from core.logging import logger
from schemas.telegram import CallbackQuery, Message, Update
from schemas.trip import UNKNOWN, TripParameters
from services.analytics import Analytics
from services.session_store import Session, SessionManager
from services.states import State
from utils.affiliate_links import AGODA_CID, build_flight_link, build_hotel_link
from utils.formatting import format_itinerary, format_summary, inline_keyboard, remove_keyboard


class ChatClient(Protocol):
    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_markup: Optional[dict] = None,
        parse_mode: Optional[str] = "Markdown",
        disable_web_page_preview: Optional[bool] = None,
    ) -> int: ...

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: Optional[dict] = None,
        parse_mode: Optional[str] = "Markdown",
    ) -> None: ...

    async def delete_message(self, chat_id: int, message_id: int) -> None: ...

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None) -> None: ...


class Generator(Protocol):
    async def generate(self, trip: TripParameters) -> dict: ...


WELCOME_MESSAGE = """
🍊 *Welcome to TangerineBot - Your AI Travel Assistant!* 🍊

I'll help you plan your perfect trip based on your preferences. Let's get started!

Please provide the following information:
"""

START_MESSAGE = """
🍊 *Welcome to TangerineBot - Your AI Travel Assistant!* 🍊

I can help you plan your perfect trip based on your preferences.

*Commands:*
/plan - Start planning a new trip
/help - Show help message
/cancel - Cancel the current trip planning
"""

HELP_MESSAGE = """
🍊 *TangerineBot Help* 🍊

I'm an AI-powered travel assistant that helps you plan your perfect trip based on your preferences.

*Commands:*
/plan - Start planning a new trip
/help - Show this help message
/cancel - Cancel the current trip planning

*How to use:*
1. Start a new trip planning with /plan
2. Answer the questions about your travel preferences
3. I'll generate a personalized travel itinerary for you

*Travel preferences include:*
Destination
Trip Duration
Travel Dates / Season / Month
Vacation Style
Departure City
Currency
Number of Adults
Number of Children
Preferred Hotel Rating

If you have any issues, please use /cancel and start again.
"""

NO_SESSION_MESSAGE = "Please use /plan to begin planning your trip."
CANCELLED_MESSAGE = "Trip planning canceled. Use /plan to begin a new trip planning."
GENERATING_MESSAGE = "🔄 Generating your personalized travel itinerary... Please wait..."
STILL_GENERATING_MESSAGE = "Your itinerary is still being generated. Please wait a moment."
PLAN_AGAIN_MESSAGE = "Would you like to plan another trip? Use /plan to begin again."
APOLOGY_MESSAGE = (
    "Sorry, an error occurred while generating your itinerary. Please try again with /plan."
)
UNKNOWN_COMMAND_MESSAGE = "Unknown command. Use /help to see what I can do."

STYLE_DONE = "done"
SUGGEST_WORDS = {"", "-", "?", "unknown", "any", "anywhere", "suggest", "not sure", "surprise me"}

DURATION_RANGE = (1, 100)
ADULTS_RANGE = (1, 20)
KIDS_RANGE = (0, 20)
LUXURY_RANGE = (1, 5)

VACATION_STYLES = [
    "Family Trip", "Romantic Getaway", "Adventure", "Beach", "City",
    "Cultural", "Luxury", "Budget", "Nature", "Food & Wine",
]

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

CURRENCIES = [
    ("💵 USD (US Dollar)", "USD"), ("💶 EUR (Euro)", "EUR"),
    ("💷 GBP (British Pound)", "GBP"), ("💴 JPY (Japanese Yen)", "JPY"),
    ("🇦🇺 AUD (Australian Dollar)", "AUD"), ("🇨🇦 CAD (Canadian Dollar)", "CAD"),
    ("🇨🇭 CHF (Swiss Franc)", "CHF"), ("🇨🇳 CNY (Chinese Yuan)", "CNY"),
    ("🇮🇳 INR (Indian Rupee)", "INR"), ("🇧🇷 BRL (Brazilian Real)", "BRL"),
]


# ====== ANSWER PARSERS ======


_INTEGER = re.compile(r"\s*(-?\d+)\s*")
_DURATION = re.compile(r"\s*(-?\d+)\s*(days?|weeks?)?\s*", re.IGNORECASE)


def _in_range(value: int, bounds: Tuple[int, int], what: str) -> int:
    low, high = bounds
    if not low <= value <= high:
        raise InvalidAnswer(f"The {what} must be between {low} and {high}.")
    return value


def _bounded_int(text: str, bounds: Tuple[int, int], what: str) -> int:
    match = _INTEGER.fullmatch(text or "")
    if not match:
        low, high = bounds
        raise InvalidAnswer(f"Please enter the {what} as a number between {low} and {high}.")
    return _in_range(int(match.group(1)), bounds, what)


def _required_text(text: str, what: str) -> str:
    value = (text or "").strip()
    if not value:
        raise InvalidAnswer(f"Please tell me your {what}.")
    return value


def parse_destination(text: str) -> str:
    value = (text or "").strip()
    return "" if value.lower() in SUGGEST_WORDS else value


def parse_duration(text: str) -> int:
    """Whole days: "5", "5 days" or "2 weeks" (14)."""
    what = "trip duration in days"
    match = _DURATION.fullmatch(text or "")
    if not match:
        low, high = DURATION_RANGE
        raise InvalidAnswer(f"Please enter the {what} as a number between {low} and {high}.")
    days = int(match.group(1))
    if (match.group(2) or "").lower().startswith("week"):
        days *= 7
    return _in_range(days, DURATION_RANGE, what)


def parse_time_of_year(text: str) -> str:
    return _required_text(text, "travel dates, season or month")


def parse_styles(text: str) -> list:
    styles = []
    for style in (text or "").split(","):
        style = style.strip()
        if style and style not in styles:
            styles.append(style)
    return styles


def parse_departure_city(text: str) -> str:
    return _required_text(text, "departure city")


def parse_currency(text: str) -> str:
    return (text or "").strip().upper() or "USD"


def parse_adults(text: str) -> int:
    return _bounded_int(text, ADULTS_RANGE, "number of adults")


def parse_kids(text: str) -> int:
    return _bounded_int(text, KIDS_RANGE, "number of children")


def parse_luxury(text: str) -> int:
    return _bounded_int(text, LUXURY_RANGE, "hotel rating")


def _set(field: str) -> Callable[[TripParameters, Any], None]:
    def setter(trip: TripParameters, value: Any) -> None:
        setattr(trip, field, value)

    return setter


def _set_styles(trip: TripParameters, styles: list) -> None:
    trip.vacation_styles = list(styles)
    trip.freeze_styles()


# ====== QUESTION TABLE ======


@dataclass(frozen=True)
class Question:
    number: int
    prompt: Union[str, Callable[[TripParameters], str]]
    parse: Callable[[str], Any]
    apply: Callable[[TripParameters, Any], None]
    keyboard: Optional[dict] = None
    prefixes: Tuple[str, ...] = ()
    # shown in place of the keyboard message once a button was pressed
    selected: str = "{value}"
    display: Callable[[Any], str] = str

    def text_for(self, trip: TripParameters) -> str:
        return self.prompt(trip) if callable(self.prompt) else self.prompt


QUESTIONS: Dict[State, Question] = {
    State.AWAITING_DESTINATION: Question(
        number=1,
        prompt="1️⃣ What is your *destination*? (type _suggest_ if you'd like me to pick one)",
        parse=parse_destination,
        apply=lambda trip, value: trip.set_destination(value),
    ),
    State.AWAITING_DURATION: Question(
        number=2,
        prompt="2️⃣ What is your *trip duration* (number of days)?",
        parse=parse_duration,
        apply=lambda trip, days: setattr(trip, "duration", f"{days} days"),
        keyboard=inline_keyboard(
            [
                [(str(d), f"duration_{d}") for d in range(1, 6)],
                [(str(d), f"duration_{d}") for d in range(6, 11)],
                [(str(d), f"duration_{d}") for d in range(11, 15)],
            ]
        ),
        prefixes=("duration",),
        selected="2️⃣ Trip duration: *{value}*",
        display=lambda days: f"{days} days",
    ),
    State.AWAITING_TIME_OF_YEAR: Question(
        number=3,
        prompt="3️⃣ What are your *travel dates / season / month*?",
        parse=parse_time_of_year,
        apply=_set("time_of_year"),
        keyboard=inline_keyboard(
            [
                [(m, f"month_{m}") for m in MONTH_NAMES[0:4]],
                [(m, f"month_{m}") for m in MONTH_NAMES[4:8]],
                [(m, f"month_{m}") for m in MONTH_NAMES[8:12]],
                [
                    ("❄️ Winter", "season_Winter"),
                    ("🌱 Spring", "season_Spring"),
                    ("☀️ Summer", "season_Summer"),
                    ("🍂 Fall", "season_Fall"),
                ],
            ]
        ),
        prefixes=("month", "season"),
        selected="3️⃣ Travel time: *{value}*",
    ),
    State.AWAITING_VACATION_STYLE: Question(
        number=4,
        prompt="4️⃣ What is your *vacation style*? Select one or more options:",
        parse=parse_styles,
        apply=_set_styles,
        keyboard=inline_keyboard(
            [
                [(a, f"style_{a}"), (b, f"style_{b}")]
                for a, b in zip(VACATION_STYLES[0::2], VACATION_STYLES[1::2])
            ]
            + [[("✅ Done", f"style_{STYLE_DONE}")]]
        ),
        prefixes=("style",),
        selected="4️⃣ Vacation styles: *{value}*",
        display=", ".join,
    ),
    State.AWAITING_DEPARTURE_CITY: Question(
        number=5,
        prompt="5️⃣ What is your *departure city*?",
        parse=parse_departure_city,
        apply=_set("departure_city"),
    ),
    State.AWAITING_CURRENCY: Question(
        number=6,
        prompt="6️⃣ What *currency* would you like to use?",
        parse=parse_currency,
        apply=_set("currency"),
        keyboard=inline_keyboard(
            [
                [(label, f"currency_{code}") for label, code in CURRENCIES[i : i + 2]]
                for i in range(0, len(CURRENCIES), 2)
            ]
        ),
        prefixes=("currency",),
        selected="6️⃣ Currency: *{value}*",
    ),
    State.AWAITING_ADULTS: Question(
        number=7,
        prompt="7️⃣ How many *adults* are traveling?",
        parse=parse_adults,
        apply=_set("number_adults"),
        keyboard=inline_keyboard([[(str(n), f"adults_{n}") for n in range(1, 6)]]),
        prefixes=("adults",),
        selected="7️⃣ Adults: *{value}*",
    ),
    State.AWAITING_KIDS: Question(
        number=8,
        prompt="8️⃣ How many *children* are traveling?",
        parse=parse_kids,
        apply=_set("number_kids"),
        keyboard=inline_keyboard([[(str(n), f"kids_{n}") for n in range(0, 5)]]),
        prefixes=("kids",),
        selected="8️⃣ Children: *{value}*",
    ),
    State.AWAITING_LUXURY_LEVEL: Question(
        number=9,
        prompt="9️⃣ What is your *preferred hotel rating*?",
        parse=parse_luxury,
        apply=_set("luxury_level"),
        keyboard=inline_keyboard([[(f"{n} ⭐", f"luxury_{n}") for n in range(1, 6)]]),
        prefixes=("luxury",),
        selected="9️⃣ Hotel rating: *{value} ⭐*",
    ),
    State.AWAITING_CONFIRMATION: Question(
        number=10,
        prompt=format_summary,
        parse=lambda text: (text or "").strip().upper() == "YES",
        apply=lambda trip, confirmed: None,
        keyboard=inline_keyboard([[("✅ Yes", "confirm_yes"), ("❌ No", "confirm_no")]]),
        prefixes=("confirm",),
    ),
}


def parse_command(text: str) -> str:
    """"/plan@TangerineBot now" -> "/plan"."""
    return text.split()[0].split("@")[0].lower()


class ConversationController:
    def __init__(
        self,
        chat: ChatClient,
        generator: Generator,
        sessions: Optional[SessionManager] = None,
        analytics: Optional[Analytics] = None,
        affiliate_id: str = AGODA_CID,
        today: Callable[[], date] = date.today,
    ):
        self.chat = chat
        self.generator = generator
        self.sessions = sessions if sessions is not None else SessionManager()
        self.analytics = analytics if analytics is not None else Analytics()
        self.affiliate_id = affiliate_id
        self.today = today
        self._locks: "weakref.WeakValueDictionary[int, Lock]" = weakref.WeakValueDictionary()

    # ====== ENTRY POINTS ======

    async def dispatch(self, update: Update) -> None:
        """Route one Telegram update. Events for the same chat run one at a time."""
        self.sessions.evict_expired()
        callback = update.callback_query
        message = update.message
        if callback is not None:
            if callback.message is None:
                await self.chat.answer_callback_query(callback.id)
                return
            chat_id = callback.message.chat.id
        elif message is not None and message.text:
            chat_id = message.chat.id
        else:
            logger.debug(f"Ignoring update {update.update_id} without text or callback")
            return

        # the chat lock is held until generation finishes, so answer without waiting for it
        if callback is None and not message.text.startswith("/") and self._is_generating(chat_id):
            await self._send_quietly(chat_id, STILL_GENERATING_MESSAGE)
            return

        lock = self._locks.get(chat_id)
        if lock is None:
            lock = Lock()
            self._locks[chat_id] = lock

        async with lock:
            try:
                if callback is not None:
                    await self.handle_callback(chat_id, callback)
                else:
                    await self.handle_message(chat_id, message)
            except Exception as e:
                logger.exception(f"Failed to handle update {update.update_id} for chat {chat_id}: {e}")
                self.sessions.delete(chat_id)
                await self.analytics.error(chat_id, type(e).__name__, str(e), "dispatch")
                await self._send_quietly(chat_id, APOLOGY_MESSAGE)

    async def handle_message(self, chat_id: int, message: Message) -> None:
        text = message.text or ""
        if text.startswith("/"):
            await self.handle_command(chat_id, parse_command(text))
            return

        session = self.sessions.get(chat_id)
        if session is None:
            await self.chat.send_message(chat_id, NO_SESSION_MESSAGE)
            return

        logger.info(f"Processing message for chat {chat_id} at {session.state.name}")
        if session.state == State.GENERATING:
            await self.chat.send_message(chat_id, STILL_GENERATING_MESSAGE)
            return

        self.sessions.touch(session)
        if session.state == State.AWAITING_CONFIRMATION:
            await self._confirm(session, QUESTIONS[session.state].parse(text))
            return

        await self._answer(session, text)

    async def handle_command(self, chat_id: int, command: str) -> None:
        if command == "/start":
            await self.chat.send_message(chat_id, START_MESSAGE, reply_markup=remove_keyboard())
            await self.start_session(chat_id, intro=None)
        elif command == "/plan":
            await self.start_session(chat_id)
        elif command == "/help":
            await self.chat.send_message(chat_id, HELP_MESSAGE)
        elif command == "/cancel":
            if self.sessions.delete(chat_id):
                await self.analytics.trip_cancelled(chat_id)
            await self.chat.send_message(chat_id, CANCELLED_MESSAGE, reply_markup=remove_keyboard())
        else:
            await self.chat.send_message(chat_id, UNKNOWN_COMMAND_MESSAGE)

    async def handle_callback(self, chat_id: int, callback: CallbackQuery) -> None:
        data = callback.data or ""
        session = self.sessions.get(chat_id)
        if session is None:
            await self.chat.answer_callback_query(
                callback.id, "Session expired. Please use /plan to start again."
            )
            return

        prefix, _, value = data.partition("_")
        question = QUESTIONS.get(session.state)
        if question is None or prefix not in question.prefixes:
            logger.info(f"Stale button {data!r} for chat {chat_id} at {session.state.name}")
            await self.chat.answer_callback_query(callback.id, "That question was already answered.")
            return

        self.sessions.touch(session)
        if session.state == State.AWAITING_VACATION_STYLE:
            await self._toggle_style(session, callback, value)
        elif session.state == State.AWAITING_CONFIRMATION:
            await self.chat.answer_callback_query(callback.id)
            if value != "yes":
                await self.chat.edit_message_text(
                    chat_id, callback.message.message_id, f"❌ {CANCELLED_MESSAGE}"
                )
            await self._confirm(session, value == "yes", notify=value == "yes")
        else:
            await self._answer(session, value, callback=callback)

    # ====== TRANSITIONS ======

    async def start_session(self, chat_id: int, intro: Optional[str] = WELCOME_MESSAGE) -> Session:
        if intro is not None:
            await self.chat.send_message(
                chat_id, "Starting new trip planning...", reply_markup=remove_keyboard()
            )
        session = self.sessions.start(chat_id)
        await self.analytics.trip_started(chat_id)
        if intro:
            await self.chat.send_message(chat_id, intro)
        await self.ask(session)
        return session

    async def ask(self, session: Session, hint: Optional[str] = None) -> None:
        question = QUESTIONS[session.state]
        text = question.text_for(session.trip)
        if hint:
            text = f"⚠️ {hint}\n\n{text}"
        message_id = await self.chat.send_message(
            session.chat_id, text, reply_markup=question.keyboard
        )
        session.message_ids.append(message_id)

    async def _answer(
        self, session: Session, raw: str, callback: Optional[CallbackQuery] = None
    ) -> None:
        question = QUESTIONS[session.state]
        try:
            value = question.parse(raw)
        except InvalidAnswer as e:
            logger.info(f"Invalid answer {raw!r} for chat {session.chat_id}: {e.hint}")
            if callback is not None:
                await self.chat.answer_callback_query(callback.id, e.hint)
            await self.ask(session, hint=e.hint)
            return

        question.apply(session.trip, value)
        await self.analytics.question_answered(session.chat_id, question.number, raw)

        if callback is not None:
            shown = question.display(value)
            await self.chat.answer_callback_query(callback.id, f"Selected: {shown}")
            await self.chat.edit_message_text(
                session.chat_id,
                callback.message.message_id,
                question.selected.format(value=shown),
                reply_markup={"inline_keyboard": []},
            )
        await self._advance(session)

    async def _advance(self, session: Session) -> None:
        session.state = session.state.next()
        logger.info(f"Chat {session.chat_id} advanced to {session.state.name}")
        await self.ask(session)

    async def _toggle_style(self, session: Session, callback: CallbackQuery, style: str) -> None:
        question = QUESTIONS[State.AWAITING_VACATION_STYLE]
        trip = session.trip

        if style == STYLE_DONE:
            styles = trip.freeze_styles()
            await self.analytics.question_answered(session.chat_id, question.number, ", ".join(styles))
            await self.chat.answer_callback_query(callback.id, "Vacation styles confirmed")
            await self.chat.edit_message_text(
                session.chat_id,
                callback.message.message_id,
                question.selected.format(value=", ".join(styles)),
                reply_markup={"inline_keyboard": []},
            )
            await self._advance(session)
            return

        added = trip.toggle_style(style)
        await self.chat.answer_callback_query(
            callback.id, f"{'Added' if added else 'Removed'}: {style}"
        )
        selected = ", ".join(trip.vacation_styles) or "none yet"
        await self.chat.edit_message_text(
            session.chat_id,
            callback.message.message_id,
            question.selected.format(value=selected)
            + '\n\nSelect more or click "Done" when finished.',
            reply_markup=question.keyboard,
        )

    async def _confirm(self, session: Session, confirmed: bool, notify: bool = True) -> None:
        if confirmed:
            await self.generate_itinerary(session)
            return

        self.sessions.delete(session.chat_id)
        await self.analytics.trip_cancelled(session.chat_id)
        if notify:
            await self.chat.send_message(session.chat_id, CANCELLED_MESSAGE)

    async def generate_itinerary(self, session: Session) -> None:
        chat_id = session.chat_id
        session.state = State.GENERATING
        trip = session.trip.model_copy(deep=True)
        trip.suggest_destination = trip.destination == UNKNOWN

        try:
            loading_id = await self.chat.send_message(chat_id, GENERATING_MESSAGE, parse_mode=None)
            raw = await self.generator.generate(trip)
            await self._delete_quietly(chat_id, loading_id)

            today = self.today()
            hotel_link = build_hotel_link(trip, self.affiliate_id, today=today)
            flight_link = build_flight_link(trip, self.affiliate_id, today=today)

            message = format_itinerary(raw, hotel_link, flight_link)
            await self.chat.send_message(chat_id, message, disable_web_page_preview=False)
            await self.chat.send_message(chat_id, PLAN_AGAIN_MESSAGE, parse_mode=None)
            await self.analytics.trip_completed(chat_id, trip.destination, trip.duration or UNKNOWN)
        except Exception as e:
            logger.exception(f"Error generating itinerary for chat {chat_id}: {e}")
            await self.analytics.error(chat_id, type(e).__name__, str(e), "generate_itinerary")
            await self._send_quietly(chat_id, APOLOGY_MESSAGE)
        finally:
            self.sessions.delete(chat_id)

    # ====== HELPERS ======

    def _is_generating(self, chat_id: int) -> bool:
        session = self.sessions.get(chat_id)
        return session is not None and session.state == State.GENERATING

    async def _send_quietly(self, chat_id: int, text: str) -> None:
        try:
            await self.chat.send_message(chat_id, text, parse_mode=None)
        except TelegramError as e:
            logger.error(f"Could not notify chat {chat_id}: {e}")

    async def _delete_quietly(self, chat_id: int, message_id: int) -> None:
        try:
            await self.chat.delete_message(chat_id, message_id)
        except TelegramError as e:
            logger.warning(f"Could not delete message {message_id} in chat {chat_id}: {e}")
