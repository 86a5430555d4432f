# src/brain/session/store.py
from __future__ import annotations

import copy
import logging
import time
from dataclasses import fields
from typing import Any, Callable, Dict, Mapping, Optional

from .. import settings
from ..models import Session

logger = logging.getLogger(settings.LOGGER_NAME)

_SESSION_FIELDS = frozenset(f.name for f in fields(Session)) - {"session_id"}


class SessionStore:
    """
    get() always returns a usable Session (fresh when missing or expired).
    put() merges a partial update into the stored session.
    """

    def get(self, session_id: str) -> Session:
        raise NotImplementedError

    def put(self, session_id: str, update: Mapping[str, Any]) -> Session:
        raise NotImplementedError

    def delete(self, session_id: str) -> None:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    """
    Single-process store with an inactivity TTL.
    Callers get copies; nothing outside put() touches stored state.
    Concurrent turns on one session id are last-write-wins.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.time):
        self.ttl_seconds = float(settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds)
        self._clock = clock
        self._sessions: Dict[str, Session] = {}

    def _expired(self, s: Session) -> bool:
        return (self._clock() - s.last_updated) >= self.ttl_seconds

    def _live(self, session_id: str) -> Session:
        s = self._sessions.get(session_id)
        if s is not None and self._expired(s):
            logger.info("SESSION: %s expired after %.0fs idle, starting fresh", session_id, self._clock() - s.last_updated)
            s = None
        if s is None:
            s = Session(session_id=session_id, last_updated=self._clock())
            self._sessions[session_id] = s
        return s

    def get(self, session_id: str) -> Session:
        return copy.deepcopy(self._live(session_id))

    def put(self, session_id: str, update: Mapping[str, Any]) -> Session:
        unknown = set(update) - _SESSION_FIELDS
        if unknown:
            raise KeyError(f"unknown session fields: {sorted(unknown)}")
        s = self._live(session_id)
        for k, v in update.items():
            setattr(s, k, copy.deepcopy(v))
        s.last_updated = self._clock()
        return copy.deepcopy(s)

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def purge_expired(self) -> int:
        stale = [sid for sid, s in self._sessions.items() if self._expired(s)]
        for sid in stale:
            self._sessions.pop(sid, None)
        return len(stale)

    def __len__(self) -> int:
        return len(self._sessions)
