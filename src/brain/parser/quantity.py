# src/brain/parser/quantity.py
from __future__ import annotations

import re
from typing import Optional

from ..text import normalize

# "2x", "2 x", "3 times", "2 pcs", "2 razy", "3 sztuki", "2 porcje"
_DIGIT_UNIT_RX = re.compile(
    r"\b(\d{1,2})\s*(?:x|times|pcs|pc|pieces|piece|portions|portion|servings|razy|szt|sztuk\w*|porcj\w*)\b"
)
# "x2"
_X_DIGIT_RX = re.compile(r"\bx\s*(\d{1,2})\b")
# bare digit, not a centimetre size ("32 cm")
_BARE_DIGIT_RX = re.compile(r"\b(\d{1,2})\b(?!\s*cm\b)")

# Multi-word approximations; checked before single words
_PHRASES = (
    ("a couple of", 2),
    ("a couple", 2),
    ("couple of", 2),
    ("a pair of", 2),
    ("a few", 3),
    ("several", 3),
)

_EN = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "dozen": 12,
}

# normalize()d forms, so "dwóch" -> "dwoch", "pięć" -> "piec"
_PL = {
    "jeden": 1, "jedna": 1, "jedno": 1,
    "dwa": 2, "dwie": 2, "dwoch": 2,
    "trzy": 3, "trzech": 3,
    "cztery": 4, "czterech": 4,
    "piec": 5, "pieciu": 5,
    "szesc": 6, "szesciu": 6,
    "siedem": 7, "siedmiu": 7,
    "osiem": 8, "osmiu": 8,
    "dziewiec": 9, "dziewieciu": 9,
    "dziesiec": 10, "dziesieciu": 10,
    "kilka": 3, "kilku": 3, "pare": 2,
}

MAX_QUANTITY = 99


def _valid(n: int) -> Optional[int]:
    return n if 1 <= n <= MAX_QUANTITY else None


def find_quantity(text: str) -> Optional[int]:
    """
    Explicit quantity mentioned in the text, else None.

    Priority:
    1) digit + unit ("2x", "x2", "3 times", "2 pcs")
    2) word numerals ("two", "a couple" -> 2, "a few"/"several" -> 3, Polish forms)
    3) bare digit ("2 pepperoni"), ignoring centimetre sizes
    """
    t = normalize(text)
    if not t:
        return None

    m = _DIGIT_UNIT_RX.search(t) or _X_DIGIT_RX.search(t)
    if m:
        q = _valid(int(m.group(1)))
        if q:
            return q

    padded = f" {t} "
    for phrase, q in _PHRASES:
        if f" {phrase} " in padded:
            return q

    for tok in t.split():
        if tok in _EN:
            return _EN[tok]
        if tok in _PL:
            return _PL[tok]

    m = _BARE_DIGIT_RX.search(t)
    if m:
        return _valid(int(m.group(1)))

    return None


def extract_quantity(text: str) -> int:
    """Quantity for an order line; 1 when nothing explicit is said."""
    return find_quantity(text) or 1


# Tokens consumed by quantity phrases; stripped before dish matching
QUANTITY_WORDS = frozenset(
    set(_EN) | set(_PL) | {"couple", "pair", "few", "several", "x", "times", "pcs", "pc", "pieces", "piece",
                           "portion", "portions", "servings", "razy", "szt", "sztuki", "sztuk"}
)
