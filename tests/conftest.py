import os

# settings are loaded at import time, so credentials must exist before any app import
os.environ.setdefault("TELEGRAM_TOKEN", "test-telegram-token")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")

from dataclasses import dataclass
from datetime import date
from typing import Optional

import pytest

from core.exceptions import TelegramError
from schemas.telegram import Update
from services.conversation import ConversationController
from services.session_store import SessionManager

TODAY = date(2026, 10, 18)


@dataclass
class SentMessage:
    chat_id: int
    text: str
    reply_markup: Optional[dict]
    message_id: int


class FakeChat:
    """Records every outbound Bot API call instead of sending it."""

    def __init__(self):
        self.sent = []
        self.edited = []
        self.deleted = []
        self.answered = []
        self.fail_sends = False
        self._next_id = 100

    async def send_message(
        self, chat_id, text, reply_markup=None, parse_mode="Markdown", disable_web_page_preview=None
    ):
        if self.fail_sends:
            raise TelegramError("sendMessage", "Bad Request: chat not found", 400)
        self._next_id += 1
        self.sent.append(SentMessage(chat_id, text, reply_markup, self._next_id))
        return self._next_id

    async def edit_message_text(self, chat_id, message_id, text, reply_markup=None, parse_mode="Markdown"):
        self.edited.append((chat_id, message_id, text, reply_markup))

    async def delete_message(self, chat_id, message_id):
        self.deleted.append((chat_id, message_id))

    async def answer_callback_query(self, callback_query_id, text=None):
        self.answered.append((callback_query_id, text))

    @property
    def texts(self):
        return [m.text for m in self.sent]

    @property
    def last_text(self):
        return self.sent[-1].text


class FakeGenerator:
    def __init__(self, result=None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = []

    async def generate(self, trip):
        self.calls.append(trip)
        if self.error is not None:
            raise self.error
        return self.result


def make_message(chat_id: int, text: str, update_id: int = 1) -> Update:
    return Update.model_validate(
        {
            "update_id": update_id,
            "message": {
                "message_id": update_id,
                "chat": {"id": chat_id, "type": "private"},
                "from": {"id": chat_id, "first_name": "Test"},
                "text": text,
            },
        }
    )


def make_callback(chat_id: int, data: str, message_id: int = 50, update_id: int = 1) -> Update:
    return Update.model_validate(
        {
            "update_id": update_id,
            "callback_query": {
                "id": f"cb-{update_id}",
                "from": {"id": chat_id, "first_name": "Test"},
                "message": {"message_id": message_id, "chat": {"id": chat_id}},
                "data": data,
            },
        }
    )


@pytest.fixture
def itinerary_data():
    return {
        "destination": "Bangkok",
        "title": "5 Days in Bangkok",
        "highlights": ["Capital of Thailand", "Grand Palace"],
        "timing": "November to February is cool and dry.",
        "getting_around": "Use the BTS Skytrain and river boats.",
        "sample_itinerary": ["Day 1: Grand Palace and Wat Pho", "Day 2: Chatuchak market"],
        "locations": ["Grand Palace", "Wat Pho"],
        "budget": {
            "flights": "$1,200",
            "transportation": "$100",
            "accommodation": "$600 for a 4 stars hotel",
            "activities": "$200",
            "food": "$250",
            "total": "$2,350",
            "not_enough_budget": False,
        },
    }


@pytest.fixture
def chat():
    return FakeChat()


@pytest.fixture
def generator(itinerary_data):
    return FakeGenerator(result=itinerary_data)


@pytest.fixture
def sessions():
    return SessionManager()


@pytest.fixture
def controller(chat, generator, sessions):
    return ConversationController(
        chat=chat, generator=generator, sessions=sessions, today=lambda: TODAY
    )
