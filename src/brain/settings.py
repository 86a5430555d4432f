from __future__ import annotations

import os


def _get_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y", "on")


def _get_int(name: str, default: str) -> int:
    return int(os.getenv(name, default).strip() or default)


def _get_float(name: str, default: str) -> float:
    return float(os.getenv(name, default).strip() or default)


def _get_str(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or default).strip()


# --------------------------------------------------
# Logging
# --------------------------------------------------
LOG_LEVEL = _get_str("LOG_LEVEL", "INFO").upper()
LOGGER_NAME = "order-brain"

# --------------------------------------------------
# Generative-model fallback (OpenAI)
# --------------------------------------------------
OPENAI_API_KEY = _get_str("OPENAI_API_KEY", "")
OPENAI_CHAT_MODEL = _get_str("OPENAI_CHAT_MODEL", "gpt-4o-mini")

LLM_FALLBACK_ENABLED = _get_bool("LLM_FALLBACK_ENABLED", "0")
LLM_TIMEOUT_SEC = _get_float("LLM_TIMEOUT_SEC", "5.0")
LLM_ESCALATE_BELOW = _get_float("LLM_ESCALATE_BELOW", "0.6")
LLM_MERGE_MARGIN = _get_float("LLM_MERGE_MARGIN", "0.1")
LLM_VISIBLE_RESTAURANTS = _get_int("LLM_VISIBLE_RESTAURANTS", "5")

# --------------------------------------------------
# Catalog (restaurants + menus)
# --------------------------------------------------
DATABASE_URL = _get_str("DATABASE_URL", "")
CATALOG_SCHEMA = _get_str("CATALOG_SCHEMA", "public")
CATALOG_TIMEOUT_SEC = _get_float("CATALOG_TIMEOUT_SEC", "4.0")
CATALOG_RESULT_LIMIT = _get_int("CATALOG_RESULT_LIMIT", "10")
MENU_TTL_SECONDS = _get_int("MENU_TTL_SECONDS", "180")

# --------------------------------------------------
# Sessions + caches
# --------------------------------------------------
SESSION_TTL_SECONDS = _get_int("SESSION_TTL_SECONDS", "3600")
LOCATION_CACHE_TTL_SECONDS = _get_int("LOCATION_CACHE_TTL_SECONDS", "300")
LOCATION_CACHE_MAX_ENTRIES = _get_int("LOCATION_CACHE_MAX_ENTRIES", "32")

# --------------------------------------------------
# Dialogue
# --------------------------------------------------
RESTAURANT_PAGE_SIZE = _get_int("RESTAURANT_PAGE_SIZE", "3")
MAX_INPUT_CHARS = _get_int("MAX_INPUT_CHARS", "1000")
CONFIDENT_THRESHOLD = _get_float("CONFIDENT_THRESHOLD", "0.8")

# Optional YAML lexicon overriding/extending the built-in alias tables
LEXICON_PATH = _get_str("LEXICON_PATH", "")

# --------------------------------------------------
# Telemetry (unmatched utterances for rule tuning)
# --------------------------------------------------
TELEMETRY_ENABLED = _get_bool("TELEMETRY_ENABLED", "1")
TELEMETRY_TABLE = _get_str("TELEMETRY_TABLE", "intent_issues")
