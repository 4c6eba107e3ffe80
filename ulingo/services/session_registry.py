"""
In-process store for running quiz and pronunciation sessions

Sessions are ephemeral: they live between "level opened" and "quiz finished
or screen left". Each entry carries its own asyncio.Lock so that a second
submit arriving while the completion write is still in flight waits for it
instead of racing it.
"""
import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Type, TypeVar

from ulingo.config import get_settings
from ulingo.exceptions import SessionNotFoundError

settings = get_settings()

S = TypeVar("S")


@dataclass
class SessionEntry:
    session: Any
    user_id: int
    created_at: datetime = field(default_factory=datetime.utcnow)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    result: Optional[Any] = None  # set once a completed quiz has been persisted


class SessionRegistry:

    def __init__(self, ttl: Optional[timedelta] = None):
        self.ttl = ttl or timedelta(minutes=settings.SESSION_TTL_MINUTES)
        self._entries: Dict[str, SessionEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, user_id: int, session: Any) -> str:
        self.prune()
        session_id = uuid.uuid4().hex
        self._entries[session_id] = SessionEntry(session=session, user_id=user_id)
        return session_id

    def get(self, session_id: str, user_id: int, kind: Type[S]) -> SessionEntry:
        # finished quizzes are only ever read, so lookups expire them too
        self.prune()
        entry = self._entries.get(session_id)
        # Someone else's session looks exactly like a missing one
        if entry is None or entry.user_id != user_id or not isinstance(entry.session, kind):
            raise SessionNotFoundError(f"Session {session_id} not found")
        return entry

    def discard(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    def prune(self, now: Optional[datetime] = None) -> int:
        cutoff = (now or datetime.utcnow()) - self.ttl
        stale = [sid for sid, entry in self._entries.items() if entry.created_at < cutoff]
        for sid in stale:
            del self._entries[sid]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


sessions = SessionRegistry()


def get_sessions() -> SessionRegistry:
    """FastAPI dependency"""
    return sessions
