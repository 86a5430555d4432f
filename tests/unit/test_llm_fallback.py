import asyncio
import json

import pytest

from src.brain.errors import MalformedModelOutput
from src.brain.intent.intents import Intent, IntentResult, IntentSource
from src.brain.intent.llm_fallback import LLMFallbackResolver, build_context, parse_model_output
from src.brain.models import ExpectedContext, Session
from tests.helpers.catalog_fixtures import three_riverside
from tests.helpers.dialogue_simulator import RecordingTelemetry
from tests.helpers.fake_llm import FakeModelClient

NEARBY_REPLY = {"intent": "find_nearby", "confidence": 0.8, "slots": {"location": "Riverside", "cuisine": None}}


def _resolver(client, **kw):
    kw.setdefault("enabled", True)
    kw.setdefault("escalate_below", 0.6)
    kw.setdefault("merge_margin", 0.1)
    kw.setdefault("timeout_s", 1.0)
    return LLMFallbackResolver(client, **kw)


def test_parse_model_output():
    r = parse_model_output(json.dumps({**NEARBY_REPLY, "reason": "asks for places"}))
    assert r.intent == Intent.FIND_NEARBY
    assert r.source == IntentSource.LLM
    assert r.slots == {"location": "Riverside"}
    assert r.rule == "llm:asks for places"


def test_low_model_confidence_is_unknown():
    r = parse_model_output({"intent": "recommend", "confidence": 0.4})
    assert r.intent == Intent.UNKNOWN


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "",
        "[1, 2]",
        json.dumps({"intent": "dance", "confidence": 0.9}),
        json.dumps({"intent": "smalltalk"}),
        json.dumps({"intent": "smalltalk", "confidence": 3}),
    ],
)
def test_malformed_output_raises(raw):
    with pytest.raises(MalformedModelOutput):
        parse_model_output(raw)


def test_unknown_is_escalated_and_merged():
    client = FakeModelClient(NEARBY_REPLY)
    out = asyncio.run(_resolver(client).resolve("fancy a bite", IntentResult.unknown(), Session(session_id="s")))
    assert out.intent == Intent.FIND_NEARBY
    assert out.source == IntentSource.LLM
    assert out.slots["location"] == "Riverside"
    assert len(client.calls) == 1
    assert client.calls[0]["json_mode"] is True
    assert json.loads(client.calls[0]["user"])["utterance"] == "fancy a bite"


def test_actionable_and_confident_results_are_not_escalated():
    client = FakeModelClient(NEARBY_REPLY)
    resolver = _resolver(client)
    s = Session(session_id="s")

    weak_order = IntentResult(Intent.CREATE_ORDER, 0.5)
    assert asyncio.run(resolver.resolve("x", weak_order, s)) is weak_order

    confident = IntentResult(Intent.RECOMMEND, 0.8)
    assert asyncio.run(resolver.resolve("x", confident, s)) is confident
    assert client.calls == []


def test_not_escalated_inside_expected_context():
    client = FakeModelClient(NEARBY_REPLY)
    s = Session(session_id="s", expected_context=ExpectedContext.CONFIRM_ORDER)
    classic = IntentResult.unknown()
    assert asyncio.run(_resolver(client).resolve("hmm", classic, s)) is classic
    assert client.calls == []


def test_disabled_never_calls_model():
    client = FakeModelClient(NEARBY_REPLY)
    classic = IntentResult.unknown()
    out = asyncio.run(_resolver(client, enabled=False).resolve("x", classic, Session(session_id="s")))
    assert out is classic
    assert client.calls == []


def test_transport_error_degrades_to_classic_and_is_recorded():
    telemetry = RecordingTelemetry()
    resolver = _resolver(FakeModelClient(error=ConnectionError("boom")), telemetry=telemetry)
    classic = IntentResult.unknown()

    async def _run():
        out = await resolver.resolve("x", classic, Session(session_id="s9"))
        await asyncio.sleep(0.01)
        return out

    assert asyncio.run(_run()) is classic
    assert [e.issue for e in telemetry.events] == ["llm_degraded"]
    assert telemetry.events[0].session_id == "s9"


def test_timeout_degrades_to_classic():
    resolver = _resolver(FakeModelClient(NEARBY_REPLY, delay_s=0.3), timeout_s=0.02)
    classic = IntentResult(Intent.SMALLTALK, 0.3)
    assert asyncio.run(resolver.resolve("x", classic, Session(session_id="s"))) is classic


def test_bad_json_degrades_to_classic():
    classic = IntentResult.unknown()
    out = asyncio.run(_resolver(FakeModelClient("{nope")).resolve("x", classic, Session(session_id="s")))
    assert out is classic


def test_merge_margin():
    resolver = _resolver(None)
    classic = IntentResult(Intent.RECOMMEND, 0.5, slots={"cuisine": "pizza"})

    close = IntentResult(Intent.MENU_REQUEST, 0.55, IntentSource.LLM)
    assert resolver.merge(classic, close) is classic

    clear = IntentResult(Intent.MENU_REQUEST, 0.7, IntentSource.LLM, {"restaurant_name": "Bella"})
    merged = resolver.merge(classic, clear)
    assert merged.intent == Intent.MENU_REQUEST
    assert merged.slots == {"cuisine": "pizza", "restaurant_name": "Bella"}

    assert resolver.merge(classic, IntentResult.unknown()) is classic


def test_build_context_lists_visible_restaurants():
    s = Session(session_id="s", last_restaurants_list=three_riverside(), last_location="Riverside")
    ctx = build_context(s, visible=2)
    assert ctx["visible_restaurants"] == ["Bella Napoli Pizzeria", "Riverside Grill"]
    assert ctx["last_location"] == "Riverside"
    assert ctx["last_intent"] is None
