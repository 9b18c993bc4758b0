"""
Conversation Session Store
==========================

Maps a customer's phone key to their ConversationSession between webhook
calls. Handlers never touch the storage directly; they receive a
ConversationSession, mutate it, and the MessageProcessor writes it back.

Backends:
---------
1. **InMemorySessionStore** (default): a process-wide dict guarded by a
   threading.Lock. Sessions are lost on restart. An optional TTL discards
   idle sessions; with SESSION_TTL_SECONDS=0 they never expire.

2. **DatabaseSessionStore**: sessions serialized as JSON in the
   conversation_sessions table, so several workers can share them.

Both backends store a serialized copy, so a handler holding a session
object cannot change stored state without calling set().

Concurrency:
------------
The lock only protects individual map operations. A message handler reads
the session, works on it and writes it back without holding any lock, so
two near-simultaneous messages from the same phone are last-write-wins.

Usage:
------
    from food_order_bot.services.session import get_session_store

    store = get_session_store()
    session = store.get(phone)
    ...
    store.set(phone, session)

Configuration:
--------------
See config.py:
- SESSION_BACKEND: "memory" or "database"
- SESSION_TTL_SECONDS: idle expiry for the in-memory backend, 0 disables
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..config import SESSION_BACKEND, SESSION_TTL_SECONDS
from ..conversation.models import ConversationSession
from ..models import SessionRecord


logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Repository interface for conversation sessions."""

    @abstractmethod
    def get(self, phone: str) -> Optional[ConversationSession]:
        """Return the session for phone, or None if there is none."""

    @abstractmethod
    def set(self, phone: str, session: ConversationSession) -> None:
        """Create or replace the session for phone."""

    @abstractmethod
    def delete(self, phone: str) -> None:
        """Remove the session for phone if present."""


# =============================================================================
# In-Memory Backend
# =============================================================================

class InMemorySessionStore(SessionStore):
    """
    Dict-backed store.

    Structure: {phone: {"data": {...session dump...}, "last_access": timestamp}}
    """

    def __init__(self, ttl_seconds: int = 0):
        self.ttl_seconds = ttl_seconds
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _is_expired(self, entry: Dict[str, Any], now: float) -> bool:
        return self.ttl_seconds > 0 and now - entry["last_access"] > self.ttl_seconds

    def get(self, phone: str) -> Optional[ConversationSession]:
        now = time.time()
        with self._lock:
            entry = self._sessions.get(phone)
            if entry is None:
                return None
            if self._is_expired(entry, now):
                del self._sessions[phone]
                logger.debug("Session for %s expired after %ds idle", phone, self.ttl_seconds)
                return None
            entry["last_access"] = now
            data = entry["data"]
        return ConversationSession.model_validate(data)

    def set(self, phone: str, session: ConversationSession) -> None:
        data = session.model_dump(mode="json")
        with self._lock:
            self._sessions[phone] = {"data": data, "last_access": time.time()}

    def delete(self, phone: str) -> None:
        with self._lock:
            self._sessions.pop(phone, None)

    def clear(self) -> int:
        """Drop every session. Returns how many there were."""
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
        logger.info("Cleared %d conversation sessions", count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# =============================================================================
# Database Backend
# =============================================================================

class DatabaseSessionStore(SessionStore):
    """
    Stores sessions as JSON rows in the conversation_sessions table.

    Each call opens its own short-lived DB session so that session writes
    are independent of the caller's transaction.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    def _open(self) -> Session:
        if self._session_factory is not None:
            return self._session_factory()
        # Resolved at call time so a patched db.SessionLocal is honoured
        from .. import db
        return db.SessionLocal()

    def get(self, phone: str) -> Optional[ConversationSession]:
        db = self._open()
        try:
            record = db.query(SessionRecord).filter(SessionRecord.phone == phone).first()
            if record is None:
                return None
            return ConversationSession.model_validate(record.data or {})
        finally:
            db.close()

    def set(self, phone: str, session: ConversationSession) -> None:
        data = session.model_dump(mode="json")
        db = self._open()
        try:
            record = db.query(SessionRecord).filter(SessionRecord.phone == phone).first()
            if record:
                record.data = data
            else:
                db.add(SessionRecord(phone=phone, data=data))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete(self, phone: str) -> None:
        db = self._open()
        try:
            db.query(SessionRecord).filter(SessionRecord.phone == phone).delete()
            db.commit()
        finally:
            db.close()


# =============================================================================
# Process Default
# =============================================================================

_default_store: Optional[SessionStore] = None
_default_lock = threading.Lock()


def create_session_store(backend: str = SESSION_BACKEND) -> SessionStore:
    """Build a store for the named backend ("memory" or "database")."""
    if backend == "database":
        return DatabaseSessionStore()
    if backend != "memory":
        logger.warning("Unknown SESSION_BACKEND %r, using in-memory sessions", backend)
    return InMemorySessionStore(ttl_seconds=SESSION_TTL_SECONDS)


def get_session_store() -> SessionStore:
    """
    Return the process-wide session store.

    Used as a FastAPI dependency; tests override it with a fresh
    InMemorySessionStore.
    """
    global _default_store
    with _default_lock:
        if _default_store is None:
            _default_store = create_session_store()
            logger.info("Using %s", type(_default_store).__name__)
        return _default_store
