import asyncio

from src.brain.telemetry import get_telemetry_emitter
from src.brain.telemetry.emitter import MAX_UTTERANCE, TelemetryEmitter, redact_pii
from tests.helpers.dialogue_simulator import RecordingTelemetry


def test_truncation_head_tail():
    out, changed, reason = redact_pii("a" * 200)
    assert len(out) <= MAX_UTTERANCE
    assert changed is True
    assert reason == "HEAD_TAIL_48_48"


def test_redacts_email():
    out, changed, _ = redact_pii("contact me test@example.com ok")
    assert "[REDACTED_EMAIL]" in out
    assert changed is True


def test_redacts_phone_and_long_numbers():
    out, changed, _ = redact_pii("call +48 601 234 567 about order 123456")
    assert "[REDACTED_PHONE]" in out
    assert changed is True


def test_keeps_small_numbers():
    out, changed, reason = redact_pii("2 large pepperoni 32 cm")
    assert out == "2 large pepperoni 32 cm"
    assert changed is False
    assert reason == "NONE"


def test_emit_records_redacted_event():
    telemetry = RecordingTelemetry()

    async def _run():
        telemetry.emit_unmatched(session_id="s1", utterance="mail me at a@b.io", expected_context="none")
        await asyncio.sleep(0.01)

    asyncio.run(_run())
    (evt,) = telemetry.events
    assert evt.issue == "no_match"
    assert evt.intent == "unknown"
    assert evt.pii_redacted is True
    assert "a@b.io" not in evt.utterance_redacted


def test_emit_outside_event_loop_is_a_noop():
    telemetry = RecordingTelemetry()
    telemetry.emit_issue(session_id="s1", utterance="hello", issue="no_match")
    assert telemetry.events == []


def test_disabled_emitter_does_nothing():
    seen = []

    async def _insert(evt):
        seen.append(evt)

    emitter = TelemetryEmitter(_insert, enabled=False)

    async def _run():
        emitter.emit_unmatched(session_id="s1", utterance="blorp")
        await asyncio.sleep(0.01)

    asyncio.run(_run())
    assert seen == []


def test_failing_insert_never_raises():
    async def _insert(evt):
        raise RuntimeError("db down")

    emitter = TelemetryEmitter(_insert, enabled=True)

    async def _run():
        emitter.emit_unmatched(session_id="s1", utterance="blorp")
        await asyncio.sleep(0.01)

    asyncio.run(_run())


def test_shared_emitter():
    assert get_telemetry_emitter() is get_telemetry_emitter()
