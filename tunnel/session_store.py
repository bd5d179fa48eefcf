"""
Session state and the concurrent TTL store that owns it.

Sessions are keyed by the client-chosen identifier.  A background
sweeper evicts every session idle for at least ``max_age`` seconds,
waking once per ``max_age``; a session can therefore linger up to
twice its TTL before it is removed.
"""

import time
import threading
import logging
from typing import Callable

from core.crypto_engine import KEY_LEN
from utils.rwlock       import ReadWriteLock

logger = logging.getLogger("HTTPTunnel.Sessions")


class Session:
    """Key material and liveness for one client session."""

    __slots__ = ("session_id", "key", "last_activity")

    def __init__(self, session_id: str, key: bytes, now: float):
        self.session_id    = session_id
        self.key           = bytes(key)
        self.last_activity = now

    def idle_for(self, now: float) -> float:
        return now - self.last_activity


class SessionStore:
    """
    Map of session id → Session with idle expiry.

    Lookups and touches share the read side of the lock; inserts and
    the sweep take it exclusively.
    """

    def __init__(self, max_age: float,
                 clock: Callable[[], float] = time.monotonic):
        if max_age <= 0:
            raise ValueError(f"max_age must be positive, got {max_age}")
        self.max_age   = max_age
        self._clock    = clock
        self._sessions: dict[str, Session] = {}
        self._lock     = ReadWriteLock()
        self._stop     = threading.Event()
        self._thread: threading.Thread | None = None

    # ── lifecycle ────────────────────────────────────────────────
    def start(self):
        if self._thread is not None:
            logger.warning("Session sweeper already running")
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._sweep_loop, daemon=True,
            name="SessionSweeper",
        )
        self._thread.start()
        logger.debug("Session sweeper started (max_age=%ss)", self.max_age)

    def stop(self, timeout: float | None = None):
        """Signal the sweeper and wait for it; a running sweep finishes first."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)
            logger.debug("Session sweeper stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ── operations ───────────────────────────────────────────────
    def get(self, session_id: str) -> Session | None:
        with self._lock.read():
            return self._sessions.get(session_id)

    def touch(self, session_id: str) -> Session | None:
        """Mark a session active now.  Unknown ids are ignored."""
        with self._lock.read():
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_activity = self._clock()
        return session

    def create_if_absent(self, session_id: str, key: bytes) -> Session:
        """
        Insert a session unless *session_id* already exists.

        An existing session is returned untouched, key included.
        """
        if len(key) < KEY_LEN:
            raise ValueError(
                f"Session key must be at least {KEY_LEN} bytes"
            )
        with self._lock.write():
            session = self._sessions.get(session_id)
            if session is not None:
                return session
            session = Session(session_id, key, self._clock())
            self._sessions[session_id] = session
        logger.info("Session %s established", session_id)
        return session

    def sweep(self, max_age: float | None = None) -> list[str]:
        """Remove every session idle for at least *max_age*; return their ids."""
        max_age = self.max_age if max_age is None else max_age
        with self._lock.write():
            now     = self._clock()
            expired = [sid for sid, s in self._sessions.items()
                       if s.idle_for(now) >= max_age]
            for sid in expired:
                del self._sessions[sid]
        for sid in expired:
            logger.info("Expiring session %s", sid)
        return expired

    def session_ids(self) -> list[str]:
        with self._lock.read():
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return self.get(session_id) is not None

    # ── internal ─────────────────────────────────────────────────
    def _sweep_loop(self):
        while not self._stop.wait(self.max_age):
            try:
                self.sweep()
            except Exception:
                logger.exception("Session sweep failed")
