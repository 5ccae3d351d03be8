"""
In-memory session storage, one session per chat.

Sessions live for the life of the process; idle sessions are evicted after
the configured TTL so abandoned conversations do not accumulate.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from core.logging import logger
from schemas.trip import TripParameters
from services.states import State


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    chat_id: int
    state: State
    trip: TripParameters = field(default_factory=TripParameters)
    message_ids: List[int] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


class SessionManager:
    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=60),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[int, Session] = {}

    def start(self, chat_id: int) -> Session:
        """Create a fresh session, discarding any previous one for this chat."""
        if chat_id in self._sessions:
            logger.info(f"Discarding previous session for chat {chat_id}")
        now = self._clock()
        session = Session(chat_id=chat_id, state=State.first(), created_at=now, updated_at=now)
        self._sessions[chat_id] = session
        return session

    def get(self, chat_id: int) -> Optional[Session]:
        session = self._sessions.get(chat_id)
        if session is None:
            return None
        if self._is_expired(session):
            logger.info(f"Session for chat {chat_id} expired")
            del self._sessions[chat_id]
            return None
        return session

    def get_or_create(self, chat_id: int) -> Session:
        return self.get(chat_id) or self.start(chat_id)

    def touch(self, session: Session) -> None:
        session.updated_at = self._clock()

    def delete(self, chat_id: int) -> bool:
        return self._sessions.pop(chat_id, None) is not None

    def evict_expired(self) -> int:
        expired = [chat_id for chat_id, s in self._sessions.items() if self._is_expired(s)]
        for chat_id in expired:
            del self._sessions[chat_id]
        if expired:
            logger.info(f"Evicted {len(expired)} idle sessions")
        return len(expired)

    def _is_expired(self, session: Session) -> bool:
        return self._clock() - session.updated_at > self.ttl

    def __contains__(self, chat_id: int) -> bool:
        return self.get(chat_id) is not None

    def __len__(self) -> int:
        return len(self._sessions)
