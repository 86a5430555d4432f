# src/brain/turn_controller.py
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from . import settings
from .aliases import Lexicon
from .catalog import Catalog, MenuCache
from .errors import InputInvalid
from .intent.booster import IntentBooster
from .intent.classifier import IntentClassifier
from .intent.intents import Intent, IntentResult, IntentSource
from .intent.llm_fallback import LLMFallbackResolver
from .intent.rules import TurnText
from .restaurant.resolver import RestaurantResolver
from .services.openai_client import ModelClient, OpenAIClient
from .session.state_machine import DialogueStateMachine, ReplyCore, TurnInput
from .session.store import InMemorySessionStore, SessionStore
from .telemetry import get_telemetry_emitter
from .telemetry.emitter import TelemetryEmitter

logger = logging.getLogger(settings.LOGGER_NAME)

_UNSAFE_RX = re.compile(r"[<>{}\[\]\\|`~]")

GENERIC_REPROMPT = "Sorry, something went wrong on my side. Could you say that again?"


@dataclass(frozen=True)
class TurnResult:
    intent: Intent
    confidence: float
    slots: Dict[str, Any]
    reply_core: ReplyCore
    session_snapshot: Dict[str, Any]
    source: IntentSource = IntentSource.CLASSIC
    rule: str = ""
    execution_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "confidence": round(self.confidence, 3),
            "slots": dict(self.slots),
            "reply_core": {"kind": self.reply_core.kind, "text": self.reply_core.text, "data": self.reply_core.data},
            "session": self.session_snapshot,
            "source": self.source.value,
            "rule": self.rule,
            "execution_time_ms": self.execution_time_ms,
        }


def check_input(text: Optional[str], max_chars: Optional[int] = None) -> str:
    limit = int(settings.MAX_INPUT_CHARS if max_chars is None else max_chars)
    t = (text or "").strip()
    if not t:
        raise InputInvalid("empty", "empty utterance")
    if len(t) > limit:
        raise InputInvalid("too_long", f"utterance longer than {limit} chars")
    if _UNSAFE_RX.search(t):
        raise InputInvalid("unsafe_chars", "utterance contains unsupported characters")
    return t


_INPUT_PROMPTS = {
    "empty": "I didn't catch anything. What would you like?",
    "too_long": "That was a lot at once. Could you say it shorter?",
    "unsafe_chars": "I couldn't read that. Could you rephrase it?",
}


class TurnController:
    """
    One call per user utterance:
      input guard -> classify -> boost (session aware) -> optional model fallback
      -> state machine transition -> persist -> structured result
    No exception escapes resolve_turn; the worst case is `unknown` with a re-prompt.
    """

    def __init__(
        self,
        catalog: Catalog,
        *,
        store: Optional[SessionStore] = None,
        classifier: Optional[IntentClassifier] = None,
        booster: Optional[IntentBooster] = None,
        llm: Optional[LLMFallbackResolver] = None,
        telemetry: Optional[TelemetryEmitter] = None,
        resolver: Optional[RestaurantResolver] = None,
        menus: Optional[MenuCache] = None,
        page_size: Optional[int] = None,
        lexicon: Optional[Lexicon] = None,
    ):
        self.catalog = catalog
        self.lexicon = lexicon
        self.store = store or InMemorySessionStore()
        self.classifier = classifier or IntentClassifier(lexicon=lexicon)
        self.booster = booster or IntentBooster()
        self.llm = llm
        self.telemetry = telemetry or TelemetryEmitter()
        self.resolver = resolver or RestaurantResolver(catalog, lexicon=lexicon)
        self.menus = menus or MenuCache(catalog)
        self.machine = DialogueStateMachine(self.resolver, self.menus, page_size=page_size)

    @classmethod
    def from_settings(cls, catalog: Catalog, **kwargs: Any) -> "TurnController":
        telemetry = kwargs.pop("telemetry", None) or get_telemetry_emitter()
        llm: Optional[LLMFallbackResolver] = None
        if settings.LLM_FALLBACK_ENABLED and settings.OPENAI_API_KEY:
            client: ModelClient = OpenAIClient.from_settings()
            llm = LLMFallbackResolver(client, telemetry=telemetry)
        elif settings.LLM_FALLBACK_ENABLED:
            logger.warning("LLM_FALLBACK: enabled but OPENAI_API_KEY is empty; running rules only")
        return cls(catalog, llm=llm, telemetry=telemetry, **kwargs)

    def classify(self, text: str, session) -> IntentResult:
        t = TurnText.of(text, self.lexicon)
        classic = self.classifier.classify_turn(t) if t.norm else IntentResult.unknown("empty_input")
        return self.booster.boost(t, classic, session)

    async def resolve_turn(
        self,
        session_id: str,
        text: str,
        location_hint: Optional[str] = None,
        *,
        near: Optional[Tuple[float, float]] = None,
    ) -> TurnResult:
        start = time.perf_counter()
        session = self.store.get(session_id)

        def _done(result: IntentResult, reply: ReplyCore, updates: Dict[str, Any]) -> TurnResult:
            stored = self.store.put(session_id, updates)
            return TurnResult(
                intent=result.intent,
                confidence=result.confidence,
                slots=dict(result.slots),
                reply_core=reply,
                session_snapshot=stored.snapshot(),
                source=result.source,
                rule=result.rule,
                execution_time_ms=round((time.perf_counter() - start) * 1000.0, 3),
            )

        try:
            clean = check_input(text)
        except InputInvalid as e:
            logger.info("TURN: %s rejected input (%s)", session_id, e.reason)
            return _done(
                IntentResult.unknown(f"input_{e.reason}"),
                ReplyCore("invalid_input", _INPUT_PROMPTS.get(e.reason, GENERIC_REPROMPT), {"reason": e.reason}),
                {},
            )

        try:
            result = self.classify(clean, session)
            if self.llm is not None:
                result = await self.llm.resolve(clean, result, session)

            if result.intent == Intent.UNKNOWN:
                self.telemetry.emit_unmatched(
                    session_id=session_id,
                    utterance=clean,
                    expected_context=session.expected_context.value,
                )

            tr = await self.machine.apply(session, TurnInput(clean, result, location_hint, near))
        except Exception:
            logger.error("TURN: %s failed on %r", session_id, clean[:80], exc_info=True)
            return _done(
                IntentResult.unknown("pipeline_error"),
                ReplyCore("error", GENERIC_REPROMPT),
                {"last_intent": Intent.UNKNOWN},
            )

        logger.info(
            "TURN: %s %r => %s(%.2f) src=%s rule=%s reply=%s",
            session_id, clean[:80], result.intent.value, result.confidence, result.source.value, result.rule,
            tr.reply.kind,
        )
        return _done(result, tr.reply, tr.updates)
