# src/brain/intent/llm_fallback.py
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from .. import settings
from ..errors import ExternalServiceTimeout, MalformedModelOutput
from ..models import ExpectedContext, Session
from ..services.openai_client import ModelClient, _clamp_float, _safe_json_loads
from ..telemetry.emitter import TelemetryEmitter
from .intents import ACTIONABLE_INTENTS, Intent, IntentResult, IntentSource

logger = logging.getLogger(settings.LOGGER_NAME)

# Model answers below this are treated as "don't know"
MIN_MODEL_CONFIDENCE = 0.55

INTENT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["intent", "confidence"],
    "properties": {
        "intent": {"type": "string", "enum": [i.value for i in Intent]},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
        "slots": {"type": "object"},
        "reason": {"type": "string"},
    },
}

_VALIDATOR = Draft202012Validator(INTENT_SCHEMA)

SYSTEM_PROMPT = (
    "You classify one utterance from a food-ordering conversation.\n"
    "Return ONLY a JSON object: "
    '{"intent": <one of: ' + ", ".join(i.value for i in Intent) + '>, '
    '"confidence": <0..1>, "slots": {location?, cuisine?, restaurant_name?, dish?, quantity?, size?}, '
    '"reason": <short>}.\n'
    "Use the context to resolve short replies. If unsure, answer unknown with low confidence."
)


def build_context(session: Session, visible: int) -> Dict[str, Any]:
    return {
        "last_intent": session.last_intent.value if session.last_intent else None,
        "last_restaurant": session.last_restaurant.name if session.last_restaurant else None,
        "last_location": session.last_location,
        "visible_restaurants": [r.name for r in session.visible_restaurants(visible)],
    }


def parse_model_output(raw: Any) -> IntentResult:
    obj = _safe_json_loads(raw)
    if obj is None:
        raise MalformedModelOutput("response is not a JSON object")
    try:
        _VALIDATOR.validate(obj)
    except ValidationError as e:
        raise MalformedModelOutput(e.message) from e

    intent = Intent.parse(obj["intent"]) or Intent.UNKNOWN
    conf = _clamp_float(obj.get("confidence"), 0.0, 1.0, 0.0)
    if conf < MIN_MODEL_CONFIDENCE:
        intent = Intent.UNKNOWN
    slots = {k: v for k, v in (obj.get("slots") or {}).items() if v not in (None, "", [])}
    return IntentResult(intent, conf, IntentSource.LLM, slots, "llm:" + str(obj.get("reason") or "")[:60])


class LLMFallbackResolver:
    """
    Escalates weak, non-actionable results to a generative model and merges the answer.
    Any failure (disabled, timeout, transport error, bad JSON) returns the input result.
    """

    def __init__(
        self,
        client: Optional[ModelClient],
        *,
        enabled: Optional[bool] = None,
        escalate_below: Optional[float] = None,
        merge_margin: Optional[float] = None,
        timeout_s: Optional[float] = None,
        visible_restaurants: Optional[int] = None,
        telemetry: Optional[TelemetryEmitter] = None,
    ):
        self.client = client
        self.telemetry = telemetry
        self.enabled = settings.LLM_FALLBACK_ENABLED if enabled is None else bool(enabled)
        self.escalate_below = settings.LLM_ESCALATE_BELOW if escalate_below is None else float(escalate_below)
        self.merge_margin = settings.LLM_MERGE_MARGIN if merge_margin is None else float(merge_margin)
        self.timeout_s = settings.LLM_TIMEOUT_SEC if timeout_s is None else float(timeout_s)
        self.visible_restaurants = (
            settings.LLM_VISIBLE_RESTAURANTS if visible_restaurants is None else int(visible_restaurants)
        )

    def should_escalate(self, result: IntentResult, session: Session) -> bool:
        if not self.enabled or self.client is None:
            return False
        if result.confidence >= self.escalate_below:
            return False
        if result.intent in ACTIONABLE_INTENTS:
            return False
        if session.expected_context != ExpectedContext.NONE:
            return False
        return True

    def merge(self, classic: IntentResult, llm: IntentResult) -> IntentResult:
        if llm.intent == Intent.UNKNOWN:
            return classic
        if classic.intent == Intent.UNKNOWN or llm.confidence > classic.confidence + self.merge_margin:
            slots = dict(classic.slots)
            slots.update(llm.slots)
            return IntentResult(llm.intent, llm.confidence, IntentSource.LLM, slots, llm.rule)
        return classic

    async def _ask(self, text: str, session: Session) -> IntentResult:
        user = json.dumps(
            {"utterance": text, "context": build_context(session, self.visible_restaurants)},
            ensure_ascii=False,
        )
        try:
            raw = await asyncio.wait_for(
                self.client.complete_json(SYSTEM_PROMPT, user, json_mode=True),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise ExternalServiceTimeout("llm", self.timeout_s) from e
        return parse_model_output(raw)

    async def resolve(self, text: str, result: IntentResult, session: Session) -> IntentResult:
        if not self.should_escalate(result, session):
            return result
        try:
            llm = await self._ask(text, session)
        except Exception as e:
            logger.warning("LLM_FALLBACK: degraded to classic (%s: %s)", type(e).__name__, e)
            if self.telemetry is not None:
                self.telemetry.emit_issue(
                    session_id=session.session_id,
                    utterance=text,
                    issue="llm_degraded",
                    intent=result.intent.value,
                    confidence=result.confidence,
                    expected_context=session.expected_context.value,
                )
            return result

        merged = self.merge(result, llm)
        logger.info(
            "LLM_FALLBACK: classic=%s(%.2f) llm=%s(%.2f) -> %s",
            result.intent.value, result.confidence, llm.intent.value, llm.confidence, merged.intent.value,
        )
        return merged
