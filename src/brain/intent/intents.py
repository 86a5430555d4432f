# src/brain/intent/intents.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional


class Intent(str, Enum):
    FIND_NEARBY = "find_nearby"
    MENU_REQUEST = "menu_request"
    SELECT_RESTAURANT = "select_restaurant"
    CREATE_ORDER = "create_order"
    CONFIRM_ORDER = "confirm_order"
    CANCEL_ORDER = "cancel_order"
    CHANGE_RESTAURANT = "change_restaurant"
    SHOW_MORE_OPTIONS = "show_more_options"
    RECOMMEND = "recommend"
    CONFIRM = "confirm"
    DENY = "deny"
    SMALLTALK = "smalltalk"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> Optional["Intent"]:
        if isinstance(raw, Intent):
            return raw
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return None


# Tags that already name a concrete dialogue step; never escalated to the model
ACTIONABLE_INTENTS = frozenset(
    {
        Intent.SELECT_RESTAURANT,
        Intent.CONFIRM_ORDER,
        Intent.CANCEL_ORDER,
        Intent.CREATE_ORDER,
        Intent.CHANGE_RESTAURANT,
        Intent.SHOW_MORE_OPTIONS,
    }
)


class IntentSource(str, Enum):
    CLASSIC = "classic"
    BOOSTER = "booster"
    LLM = "llm"


@dataclass(frozen=True)
class IntentResult:
    intent: Intent
    confidence: float
    source: IntentSource = IntentSource.CLASSIC
    slots: Dict[str, Any] = field(default_factory=dict)
    rule: str = ""

    def __post_init__(self) -> None:
        c = float(self.confidence)
        object.__setattr__(self, "confidence", 0.0 if c < 0.0 else 1.0 if c > 1.0 else c)

    @classmethod
    def unknown(cls, rule: str = "no_match") -> "IntentResult":
        return cls(Intent.UNKNOWN, 0.0, IntentSource.CLASSIC, {}, rule)

    def with_(self, **changes: Any) -> "IntentResult":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "confidence": round(self.confidence, 3),
            "source": self.source.value,
            "slots": dict(self.slots),
            "rule": self.rule,
        }
