"""
Session store - one conversation per WhatsApp user.

Sessions are intake state, not the lead of record: they live in process memory and are
lost on restart. The store is injected into the bot so a persistent backend can replace
it without touching the conversation logic.

Concurrency: every mutation of a user's session must happen while holding that user's
lock (see lock_for). Different users never share a lock.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Protocol

from app.constants.steps import INITIAL_STEP, Step

logger = logging.getLogger(__name__)


@dataclass
class QuoteData:
    """Fields collected during intake. Populated step by step, never regressed."""

    client_name: str | None = None
    client_tax_id: str | None = None
    client_legal_name: str | None = None
    client_address: str | None = None
    description: str | None = None
    weight_kg: float | None = None
    packing_urls: list[str] = field(default_factory=list)
    pickup_address: str | None = None
    dropoff_address: str | None = None
    service_date: str | None = None  # YYYY-MM-DD
    permits: str | None = None
    email: str | None = None
    price: Decimal = Decimal("0")


@dataclass
class Session:
    user_id: str
    step: Step = INITIAL_STEP
    data: QuoteData = field(default_factory=QuoteData)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def snapshot(self) -> "Session":
        """Deep copy to decide on; the original stays untouched until save()."""
        return copy.deepcopy(self)


class SessionStore(Protocol):
    def get(self, user_id: str) -> Session | None: ...

    def create_or_reset(self, user_id: str) -> Session: ...

    def save(self, session: Session) -> None: ...

    def lock_for(self, user_id: str) -> asyncio.Lock: ...


class InMemorySessionStore:
    """Process-wide dict of sessions plus a per-user asyncio.Lock registry."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, user_id: str) -> Session | None:
        return self._sessions.get(user_id)

    def create_or_reset(self, user_id: str) -> Session:
        session = Session(user_id=user_id)
        replaced = user_id in self._sessions
        self._sessions[user_id] = session
        logger.info(f"Session {'reset' if replaced else 'created'} for user {user_id}")
        return session

    def save(self, session: Session) -> None:
        session.updated_at = datetime.now(UTC)
        self._sessions[session.user_id] = session

    def lock_for(self, user_id: str) -> asyncio.Lock:
        # No await between lookup and insert, so this is race-free on one event loop
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions
