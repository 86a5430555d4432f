# src/brain/intent/classifier.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .. import settings
from ..aliases import Lexicon, detect_cuisine
from ..parser.order_parser import dish_phrase
from ..parser.quantity import find_quantity
from ..parser.variants import extract_size
from ..restaurant.resolver import extract_location
from ..restaurant.selection import extract_ordinal
from . import markers as M
from .intents import Intent, IntentResult, IntentSource
from .rules import Rule, RuleHit, RuleSet, TurnText, rule

logger = logging.getLogger(settings.LOGGER_NAME)

_MENU_OF_RX = re.compile(r"\bmenu\s+(?:of|at|from|for|in)\s+(.+)$")
# "... at Bella Napoli", "... from Kebab King"
_AT_PLACE_RX = re.compile(r"\b(?:at|from)\s+(.+)$")
_TRAILING_POLITE = frozenset({"please", "thanks", "prosze", "poprosze"})


def is_bare_affirmation(t: TurnText) -> bool:
    return t.only(M.AFFIRM_VOCAB) and t.has_any(M.AFFIRM_CORE)


def is_bare_negation(t: TurnText) -> bool:
    return t.only(M.NEGATE_VOCAB) and t.has_any(M.NEGATE_CORE)


def split_place(norm: str) -> Tuple[str, Optional[str]]:
    """Splits a trailing "at X" / "from X": "two kebabs at kebab king please" -> ("two kebabs", "kebab king")."""
    m = _AT_PLACE_RX.search(norm)
    if not m:
        return norm, None
    toks = m.group(1).split()
    while toks and toks[-1] in _TRAILING_POLITE:
        toks.pop()
    return norm[:m.start()].strip(), " ".join(toks) or None


def _restaurant_after(t: TurnText, prefixes) -> Optional[str]:
    for p in prefixes:
        if t.norm.startswith(p + " "):
            rest = t.norm[len(p) + 1:].strip()
            return rest or None
    return None


# -------------------------
# Rules, in evaluation order
# -------------------------

@rule("cancel_order")
def _cancel(t: TurnText) -> Optional[RuleHit]:
    if t.has_any(M.CANCEL_MARKERS):
        return RuleHit(Intent.CANCEL_ORDER, 0.9)
    return None


@rule("change_restaurant")
def _change_restaurant(t: TurnText) -> Optional[RuleHit]:
    if t.has_any(M.CHANGE_RESTAURANT_MARKERS):
        return RuleHit(Intent.CHANGE_RESTAURANT, 0.9)
    return None


@rule("show_more_options")
def _show_more(t: TurnText) -> Optional[RuleHit]:
    if t.has_any(M.MORE_MARKERS):
        return RuleHit(Intent.SHOW_MORE_OPTIONS, 0.85)
    return None


@rule("ordinal_selection")
def _ordinal(t: TurnText) -> Optional[RuleHit]:
    # Meaningful only against a list on screen; the booster raises it there
    n = extract_ordinal(t.raw)
    if n is None:
        return None
    return RuleHit(Intent.SELECT_RESTAURANT, 0.7, {"restaurant_index": n - 1})


@rule("confirm_order")
def _confirm_order(t: TurnText) -> Optional[RuleHit]:
    if t.has_any(M.CONFIRM_ORDER_MARKERS):
        return RuleHit(Intent.CONFIRM_ORDER, 0.9)
    return None


@rule("affirmation")
def _affirmation(t: TurnText) -> Optional[RuleHit]:
    if is_bare_affirmation(t):
        return RuleHit(Intent.CONFIRM, 0.6)
    return None


@rule("negation")
def _negation(t: TurnText) -> Optional[RuleHit]:
    if is_bare_negation(t):
        return RuleHit(Intent.DENY, 0.6)
    return None


@rule("find_nearby")
def _find_nearby(t: TurnText) -> Optional[RuleHit]:
    loc = extract_location(t.raw)
    if t.has_any(M.NEARBY_MARKERS):
        return RuleHit(Intent.FIND_NEARBY, 0.85 if loc else 0.75)
    if not loc or not (detect_cuisine(t.raw) or t.has_any(("restaurant", "restaurants", "eat", "food"))):
        return None
    # "the pizza menu at X", "two kebabs at X": X is a restaurant, not a place
    if t.has_any(M.MENU_MARKERS) or find_quantity(t.raw) is not None:
        return None
    if t.has_any(M.ORDER_MARKERS):
        if _AT_PLACE_RX.search(t.norm):
            return None
        # "I want pizza in Riverside" could go either way; leave room for the booster
        return RuleHit(Intent.FIND_NEARBY, 0.7)
    return RuleHit(Intent.FIND_NEARBY, 0.8)


@rule("menu_request")
def _menu_request(t: TurnText) -> Optional[RuleHit]:
    if not t.has_any(M.MENU_MARKERS):
        return None
    slots: Dict[str, Any] = {}
    m = _MENU_OF_RX.search(t.norm)
    if m:
        slots["restaurant_name"] = m.group(1).strip()
    return RuleHit(Intent.MENU_REQUEST, 0.85, slots)


@rule("recommend")
def _recommend(t: TurnText) -> Optional[RuleHit]:
    if t.has_any(M.RECOMMEND_MARKERS):
        return RuleHit(Intent.RECOMMEND, 0.8)
    return None


@rule("select_by_name")
def _select_by_name(t: TurnText) -> Optional[RuleHit]:
    name = _restaurant_after(t, M.SELECT_BY_NAME_PREFIXES)
    if not name:
        return None
    return RuleHit(Intent.SELECT_RESTAURANT, 0.65, {"restaurant_name": name})


@rule("create_order")
def _create_order(t: TurnText) -> Optional[RuleHit]:
    if not t.has_any(M.ORDER_MARKERS):
        return None
    head, place = split_place(t.norm)
    dish = dish_phrase(head)
    if not dish:
        return None
    qty = find_quantity(head)
    slots: Dict[str, Any] = {"dish": dish}
    if qty is not None:
        slots["quantity"] = qty
    if place:
        slots["restaurant_name"] = place
    return RuleHit(Intent.CREATE_ORDER, 0.85 if qty is not None else 0.7, slots)


@rule("quantity_item")
def _quantity_item(t: TurnText) -> Optional[RuleHit]:
    # "2 pepperoni", "two large margherita" without an ordering verb
    head, place = split_place(t.norm)
    qty = find_quantity(head)
    dish = dish_phrase(head)
    if qty is None or not dish:
        return None
    slots: Dict[str, Any] = {"dish": dish, "quantity": qty}
    if place:
        slots["restaurant_name"] = place
    return RuleHit(Intent.CREATE_ORDER, 0.75, slots)


@rule("smalltalk")
def _smalltalk(t: TurnText) -> Optional[RuleHit]:
    if len(t.tokens) <= 5 and t.has_any(M.SMALLTALK_MARKERS):
        return RuleHit(Intent.SMALLTALK, 0.7)
    return None


DEFAULT_RULES: RuleSet[TurnText] = RuleSet(
    [
        _cancel,
        _change_restaurant,
        _show_more,
        _ordinal,
        _confirm_order,
        _affirmation,
        _negation,
        _find_nearby,
        _menu_request,
        _recommend,
        _select_by_name,
        _create_order,
        _quantity_item,
        _smalltalk,
    ]
)


def extract_slots(t: TurnText, lexicon: Optional[Lexicon] = None) -> Dict[str, Any]:
    """Entities worth carrying regardless of which rule fired."""
    slots: Dict[str, Any] = {}
    loc = extract_location(t.raw)
    if loc:
        slots["location"] = loc
    cuisine = detect_cuisine(t.raw, lexicon)
    if cuisine:
        slots["cuisine"] = cuisine[0]
        slots["cuisine_tags"] = list(cuisine[1])
    size = extract_size(t.raw)
    if size:
        slots["size"] = size
    return slots


class IntentClassifier:
    """
    Pattern/keyword classifier over normalized + alias-expanded text.
    Unmatched text is `unknown` at confidence 0.
    """

    def __init__(self, rules: Optional[RuleSet[TurnText]] = None, lexicon: Optional[Lexicon] = None):
        self.rules: RuleSet[TurnText] = rules if rules is not None else DEFAULT_RULES
        self.lexicon = lexicon

    def classify(self, text: str) -> IntentResult:
        t = TurnText.of(text, self.lexicon)
        if not t.norm:
            return IntentResult.unknown("empty_input")
        return self.classify_turn(t)

    def classify_turn(self, t: TurnText) -> IntentResult:
        found = self.rules.first_match(t)
        if found is None:
            logger.info("CLASSIFY: no rule for %r", t.norm[:80])
            return IntentResult.unknown()

        name, hit = found
        slots = extract_slots(t, self.lexicon)
        slots.update(hit.slots)
        res = IntentResult(hit.intent, hit.confidence, IntentSource.CLASSIC, slots, name)
        logger.debug("CLASSIFY: %r => %s %.2f rule=%s", t.norm[:80], res.intent.value, res.confidence, name)
        return res


def rule_names(rules: Optional[RuleSet] = None) -> List[str]:
    return (rules or DEFAULT_RULES).names


__all__ = [
    "DEFAULT_RULES",
    "IntentClassifier",
    "Rule",
    "extract_slots",
    "is_bare_affirmation",
    "is_bare_negation",
]
