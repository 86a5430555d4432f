# src/brain/intent/__init__.py
from .intents import ACTIONABLE_INTENTS, Intent, IntentResult, IntentSource

__all__ = [
    "ACTIONABLE_INTENTS",
    "Intent",
    "IntentResult",
    "IntentSource",
]
