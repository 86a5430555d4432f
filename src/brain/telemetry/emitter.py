# src/brain/telemetry/emitter.py
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Tuple

import asyncpg

from .. import settings

logger = logging.getLogger(settings.LOGGER_NAME)

MAX_UTTERANCE = 100

_EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.I)
_PHONE_RE = re.compile(r"\b(\+?\d[\d\s().-]{6,}\d)\b")
_LONG_NUM_RE = re.compile(r"\b\d{5,}\b")  # keep small numbers (qty, sizes), redact only long sequences


@dataclass(frozen=True)
class IntentIssue:
    ts: datetime
    session_id: str
    issue: str
    intent: str
    confidence: float
    expected_context: str
    utterance_redacted: str
    pii_redacted: bool
    truncation: str


def _head_tail_100(s: str) -> Tuple[str, str, bool]:
    s = (s or "").strip()
    if len(s) <= MAX_UTTERANCE:
        return s, "NONE", False

    head = s[:48]
    tail = s[-48:]
    out = f"{head} … {tail}"
    out = out[:MAX_UTTERANCE]
    return out, "HEAD_TAIL_48_48", True


def redact_pii(text: str) -> Tuple[str, bool, str]:
    raw = (text or "").strip()
    if not raw:
        return "", False, "NONE"

    red = raw
    red = _EMAIL_RE.sub("[REDACTED_EMAIL]", red)
    red = _PHONE_RE.sub("[REDACTED_PHONE]", red)
    red = _LONG_NUM_RE.sub("[REDACTED_NUM]", red)

    changed = (red != raw)
    red2, trunc, trunc_changed = _head_tail_100(red)
    changed = changed or trunc_changed

    return red2, changed, trunc


InsertFn = Callable[[IntentIssue], Awaitable[None]]


class TelemetryEmitter:
    """
    Fire-and-forget recorder for utterances the rules could not place.
    Never blocks the turn, never raises. Best-effort only.

    Without an insert_fn the default writes to Postgres (asyncpg) when
    DATABASE_URL is set, otherwise events are only logged at debug level.
    """

    def __init__(
        self,
        insert_fn: Optional[InsertFn] = None,
        *,
        timeout_s: float = 0.25,
        enabled: Optional[bool] = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._enabled = settings.TELEMETRY_ENABLED if enabled is None else bool(enabled)
        self._insert_fn: InsertFn = insert_fn or self._default_asyncpg_insert

        self._pool = None
        self._pool_lock = asyncio.Lock()

        self._schema = settings.CATALOG_SCHEMA or "public"
        self._table = settings.TELEMETRY_TABLE or "intent_issues"
        self._db_url = settings.DATABASE_URL
        self._tasks: set = set()

    def emit_issue(
        self,
        *,
        session_id: str,
        utterance: str,
        issue: str,
        intent: str = "unknown",
        confidence: float = 0.0,
        expected_context: str = "none",
    ) -> None:
        """Called by the turn pipeline. Must never raise."""
        if not self._enabled:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("telemetry: no running loop, skip emit")
            return

        try:
            utter_red, pii_redacted, trunc = redact_pii(utterance)
            evt = IntentIssue(
                ts=datetime.now(timezone.utc),
                session_id=str(session_id or "unknown"),
                issue=str(issue),
                intent=str(intent),
                confidence=float(confidence or 0.0),
                expected_context=str(expected_context),
                utterance_redacted=utter_red,
                pii_redacted=bool(pii_redacted),
                truncation=str(trunc),
            )
            task = loop.create_task(self._insert_with_timeout(evt))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        except Exception:
            logger.debug("telemetry: failed to schedule emit", exc_info=True)

    def emit_unmatched(self, *, session_id: str, utterance: str, expected_context: str = "none") -> None:
        self.emit_issue(
            session_id=session_id,
            utterance=utterance,
            issue="no_match",
            expected_context=expected_context,
        )

    async def _insert_with_timeout(self, evt: IntentIssue) -> None:
        try:
            await asyncio.wait_for(self._insert_fn(evt), timeout=self._timeout_s)
        except Exception:
            logger.debug("telemetry: insert failed", exc_info=True)

    async def _ensure_pool(self):
        if self._pool is not None:
            return self._pool
        if not self._db_url:
            return None

        async with self._pool_lock:
            if self._pool is not None:
                return self._pool
            try:
                self._pool = await asyncpg.create_pool(
                    dsn=self._db_url,
                    min_size=0,
                    max_size=2,
                    timeout=2.0,
                )
            except Exception:
                logger.debug("telemetry: failed to create pool", exc_info=True)
                self._pool = None

        return self._pool

    async def _default_asyncpg_insert(self, evt: IntentIssue) -> None:
        pool = await self._ensure_pool()
        if not pool:
            logger.debug("telemetry: %s %r (no database)", evt.issue, evt.utterance_redacted)
            return

        sql = f"""
        INSERT INTO "{self._schema}"."{self._table}"
        (
          ts,
          session_id,
          issue,
          intent,
          confidence,
          expected_context,
          utterance_redacted,
          pii_redacted,
          truncation
        )
        VALUES ($1,$2,$3,$4,$5,$6,$7,$8,$9)
        """

        async with pool.acquire() as con:
            await con.execute(
                sql,
                evt.ts,
                evt.session_id,
                evt.issue,
                evt.intent,
                evt.confidence,
                evt.expected_context,
                evt.utterance_redacted,
                evt.pii_redacted,
                evt.truncation,
            )
