# src/brain/services/openai_client.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from openai import AsyncOpenAI

from .. import settings

logger = logging.getLogger(settings.LOGGER_NAME)


def _clamp_float(v: Any, lo: float, hi: float, default: float) -> float:
    try:
        fv = float(v)
    except Exception:
        return default
    if fv < lo:
        return lo
    if fv > hi:
        return hi
    return fv


def _safe_json_loads(s: Any) -> Optional[Dict[str, Any]]:
    if not s:
        return None
    if isinstance(s, dict):
        return s
    try:
        obj = json.loads(s)
        return obj if isinstance(obj, dict) else None
    except Exception:
        return None


class ModelClient:
    """Generative-model collaborator: prompt in, text (JSON when asked) out."""

    async def complete_json(self, system_prompt: str, user_text: str, json_mode: bool = True) -> str:
        raise NotImplementedError


class OpenAIClient(ModelClient):
    def __init__(
        self,
        api_key: str,
        chat_model: str,
        *,
        timeout_s: Optional[float] = None,
        temperature: float = 0.0,
    ):
        self.api_key = api_key
        self.chat_model = chat_model
        self.temperature = float(temperature)
        self.timeout_s = float(timeout_s if timeout_s is not None else settings.LLM_TIMEOUT_SEC)
        self.sdk = AsyncOpenAI(
            api_key=api_key,
            timeout=httpx.Timeout(self.timeout_s, connect=min(2.0, self.timeout_s)),
            max_retries=0,
        )

    @classmethod
    def from_settings(cls) -> "OpenAIClient":
        return cls(api_key=settings.OPENAI_API_KEY, chat_model=settings.OPENAI_CHAT_MODEL)

    # -------------------------
    # Structured call (intent fallback)
    # -------------------------
    async def complete_json(self, system_prompt: str, user_text: str, json_mode: bool = True) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.chat_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_text},
            ],
            "temperature": self.temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        resp = await self.sdk.chat.completions.create(**kwargs)
        text = (resp.choices[0].message.content or "").strip()
        logger.debug("LLM_CALL model=%s json=%s len=%s", self.chat_model, json_mode, len(text))
        return text
