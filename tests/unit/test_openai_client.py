import asyncio
from types import SimpleNamespace

from src.brain.services.openai_client import OpenAIClient, _clamp_float, _safe_json_loads


def test_clamp_float():
    assert _clamp_float("0.7", 0.0, 1.0, 0.0) == 0.7
    assert _clamp_float(5, 0.0, 1.0, 0.0) == 1.0
    assert _clamp_float("nope", 0.0, 1.0, 0.3) == 0.3


def test_safe_json_loads():
    assert _safe_json_loads('{"a": 1}') == {"a": 1}
    assert _safe_json_loads({"a": 1}) == {"a": 1}
    assert _safe_json_loads("[1]") is None
    assert _safe_json_loads("oops") is None
    assert _safe_json_loads(None) is None


def test_complete_json_requests_json_object():
    seen = {}

    async def _create(**kwargs):
        seen.update(kwargs)
        msg = SimpleNamespace(content=' {"intent": "smalltalk", "confidence": 0.9} ')
        return SimpleNamespace(choices=[SimpleNamespace(message=msg)])

    client = OpenAIClient("sk-test", "gpt-4o-mini", timeout_s=1.0)
    client.sdk = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=_create)))

    out = asyncio.run(client.complete_json("system", "user"))
    assert out == '{"intent": "smalltalk", "confidence": 0.9}'
    assert seen["response_format"] == {"type": "json_object"}
    assert seen["model"] == "gpt-4o-mini"
    assert seen["messages"][0] == {"role": "system", "content": "system"}

    seen.clear()
    asyncio.run(client.complete_json("system", "user", json_mode=False))
    assert "response_format" not in seen


def test_client_exposes_only_json_completion():
    assert hasattr(OpenAIClient, "complete_json")
    assert not hasattr(OpenAIClient, "chat")
