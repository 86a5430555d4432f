# src/brain/intent/booster.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .. import settings
from ..aliases import detect_cuisine
from ..models import ExpectedContext, Session
from ..parser.order_parser import dish_phrase
from ..parser.quantity import find_quantity
from ..restaurant.selection import extract_ordinal, select_from_list
from . import markers as M
from .classifier import is_bare_affirmation, is_bare_negation
from .intents import Intent, IntentResult, IntentSource
from .rules import RuleHit, RuleSet, TurnText, rule

logger = logging.getLogger(settings.LOGGER_NAME)

# Longer utterances carry their own meaning; context rules stay out of the way
MAX_CONTEXT_WORDS = 12


@dataclass(frozen=True)
class BoostContext:
    text: TurnText
    classic: IntentResult
    session: Session

    @property
    def expected(self) -> ExpectedContext:
        return self.session.expected_context

    @property
    def short(self) -> bool:
        return len(self.text.tokens) <= MAX_CONTEXT_WORDS


# -------------------------
# 1) Global short-circuits
# -------------------------

@rule("global_cancel")
def _global_cancel(c: BoostContext) -> Optional[RuleHit]:
    if c.text.has_any(M.CANCEL_MARKERS):
        return RuleHit(Intent.CANCEL_ORDER, 0.95)
    return None


@rule("global_show_more")
def _global_show_more(c: BoostContext) -> Optional[RuleHit]:
    if c.text.has_any(M.MORE_MARKERS):
        return RuleHit(Intent.SHOW_MORE_OPTIONS, 0.9)
    return None


@rule("global_ordinal_selection")
def _global_ordinal(c: BoostContext) -> Optional[RuleHit]:
    lst = c.session.last_restaurants_list
    if not lst:
        return None
    n = extract_ordinal(c.text.raw)
    if n is None or not (1 <= n <= len(lst)):
        return None
    return RuleHit(Intent.SELECT_RESTAURANT, 0.95, {"restaurant_index": n - 1})


# -------------------------
# 2) Expected-context rules
# -------------------------

@rule("ctx_show_more")
def _ctx_show_more(c: BoostContext) -> Optional[RuleHit]:
    if c.expected != ExpectedContext.SHOW_MORE_OPTIONS or not c.short:
        return None
    if c.text.has_any(M.BARE_MORE_MARKERS) and len(c.text.tokens) <= 4:
        return RuleHit(Intent.SHOW_MORE_OPTIONS, 0.9)
    return None


@rule("ctx_select_restaurant")
def _ctx_select_restaurant(c: BoostContext) -> Optional[RuleHit]:
    if c.expected not in (ExpectedContext.SELECT_RESTAURANT, ExpectedContext.SHOW_MORE_OPTIONS) or not c.short:
        return None
    lst = c.session.last_restaurants_list
    if not lst:
        return None
    sel = select_from_list(c.text.raw, lst)
    if sel is not None:
        return RuleHit(Intent.SELECT_RESTAURANT, 0.9, {"restaurant_index": sel.index})
    if c.text.has_any(M.CHOOSE_MARKERS):
        # "choose one" without a resolvable target: still a selection turn
        return RuleHit(Intent.SELECT_RESTAURANT, 0.7)
    return None


@rule("ctx_confirm_order")
def _ctx_confirm_order(c: BoostContext) -> Optional[RuleHit]:
    if c.expected != ExpectedContext.CONFIRM_ORDER or not c.short:
        return None
    t = c.text
    if is_bare_negation(t) or c.classic.intent == Intent.DENY:
        return RuleHit(Intent.CANCEL_ORDER, 0.95)
    if is_bare_affirmation(t) or c.classic.intent == Intent.CONFIRM or t.has_any(M.CONFIRM_ORDER_MARKERS):
        return RuleHit(Intent.CONFIRM_ORDER, 0.95)
    qty = find_quantity(t.raw)
    dish = dish_phrase(t.raw)
    if (qty is not None and dish) or c.classic.intent == Intent.CREATE_ORDER:
        slots: Dict[str, Any] = {"dish": dish} if dish else {}
        if qty is not None:
            slots["quantity"] = qty
        return RuleHit(Intent.CREATE_ORDER, 0.9, slots)
    return None


# -------------------------
# 4) last_intent fallbacks
# -------------------------

@rule("last_intent_negation")
def _last_intent_negation(c: BoostContext) -> Optional[RuleHit]:
    if c.expected != ExpectedContext.NONE:
        return None
    if c.session.last_intent == Intent.CREATE_ORDER and is_bare_negation(c.text):
        return RuleHit(Intent.CANCEL_ORDER, 0.8)
    return None


@rule("last_intent_affirmation")
def _last_intent_affirmation(c: BoostContext) -> Optional[RuleHit]:
    if c.expected != ExpectedContext.NONE or c.session.last_restaurant is None:
        return None
    if c.session.last_intent in (Intent.SELECT_RESTAURANT, Intent.FIND_NEARBY) and is_bare_affirmation(c.text):
        return RuleHit(Intent.MENU_REQUEST, 0.75)
    return None


# -------------------------
# 5) Semantic keywords, only while still unknown
# -------------------------

def _cuisine_slots(t: TurnText) -> Dict[str, Any]:
    found = detect_cuisine(t.raw)
    if not found:
        return {}
    return {"cuisine": found[0], "cuisine_tags": list(found[1])}


@rule("semantic_craving")
def _semantic_craving(c: BoostContext) -> Optional[RuleHit]:
    if c.classic.intent != Intent.UNKNOWN:
        return None
    if c.text.has_any(M.CRAVING_MARKERS):
        return RuleHit(Intent.FIND_NEARBY, 0.65, _cuisine_slots(c.text))
    slots = _cuisine_slots(c.text)
    if slots and len(c.text.tokens) <= 3:
        # "asian?", "something with pizza"
        return RuleHit(Intent.FIND_NEARBY, 0.6, slots)
    return None


@rule("semantic_nearby")
def _semantic_nearby(c: BoostContext) -> Optional[RuleHit]:
    if c.classic.intent == Intent.UNKNOWN and c.text.has_any(M.NEARBY_SOFT_MARKERS):
        return RuleHit(Intent.FIND_NEARBY, 0.65)
    return None


@rule("semantic_recommend")
def _semantic_recommend(c: BoostContext) -> Optional[RuleHit]:
    if c.classic.intent == Intent.UNKNOWN and c.text.has_any(M.RECOMMEND_SOFT_MARKERS):
        return RuleHit(Intent.RECOMMEND, 0.65)
    return None


@rule("semantic_menu")
def _semantic_menu(c: BoostContext) -> Optional[RuleHit]:
    if c.classic.intent == Intent.UNKNOWN and c.text.has_any(M.MENU_SOFT_MARKERS):
        return RuleHit(Intent.MENU_REQUEST, 0.65)
    return None


GLOBAL_RULES = (_global_cancel, _global_show_more, _global_ordinal)
CONTEXT_RULES = (_ctx_show_more, _ctx_select_restaurant, _ctx_confirm_order)
FALLBACK_RULES = (_last_intent_negation, _last_intent_affirmation)
SEMANTIC_RULES = (_semantic_craving, _semantic_nearby, _semantic_recommend, _semantic_menu)

DEFAULT_BOOST_RULES: RuleSet[BoostContext] = RuleSet(
    list(GLOBAL_RULES) + list(CONTEXT_RULES) + list(FALLBACK_RULES) + list(SEMANTIC_RULES)
)

_CONTEXT_RULE_NAMES = frozenset(r.name for r in GLOBAL_RULES + CONTEXT_RULES)


class IntentBooster:
    """
    Re-ranks a classic result using dialogue state. One rule fires per call.

    A classic result at or above the confident threshold is returned as is,
    whatever the rules say.
    """

    def __init__(
        self,
        rules: Optional[RuleSet[BoostContext]] = None,
        confident_threshold: Optional[float] = None,
    ):
        self.rules: RuleSet[BoostContext] = rules if rules is not None else DEFAULT_BOOST_RULES
        self.confident_threshold = (
            settings.CONFIDENT_THRESHOLD if confident_threshold is None else float(confident_threshold)
        )

    def boost(self, text: TurnText, classic: IntentResult, session: Session) -> IntentResult:
        confident = classic.confidence >= self.confident_threshold
        ctx = BoostContext(text=text, classic=classic, session=session)

        for r in self.rules:
            if confident and r.name not in _CONTEXT_RULE_NAMES:
                # past the context rules a confident classic result ends the search
                break
            hit = r(ctx)
            if hit is None:
                continue
            if confident and hit.intent != classic.intent:
                logger.info(
                    "BOOST: %s would change confident %s(%.2f) -> %s; keeping classic",
                    r.name, classic.intent.value, classic.confidence, hit.intent.value,
                )
                return classic
            slots = dict(classic.slots)
            slots.update(hit.slots)
            out = IntentResult(hit.intent, max(hit.confidence, classic.confidence) if confident else hit.confidence,
                               IntentSource.BOOSTER, slots, r.name)
            logger.info(
                "BOOST: %s %s(%.2f) -> %s(%.2f) ctx=%s",
                r.name, classic.intent.value, classic.confidence, out.intent.value, out.confidence,
                session.expected_context.value,
            )
            return out

        return classic
