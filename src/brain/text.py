# src/brain/text.py
from __future__ import annotations

import re
import unicodedata
from typing import Optional

from rapidfuzz.distance import Levenshtein

_WS_RX = re.compile(r"\s+")
_KEEP_RX = re.compile(r"[^a-z0-9\s]+")

# Letters NFD does not decompose into base + combining mark
_EXTRA_FOLDS = {
    "ł": "l",
    "đ": "d",
    "ø": "o",
    "ß": "ss",
    "æ": "ae",
    "œ": "oe",
    "ı": "i",
}

# Words that only glue a name to the sentence ("the pizzeria in Riverside").
# Stripped for restaurant/city matching, never for intent detection.
CONNECTOR_WORDS = frozenset(
    {
        "the", "a", "an", "in", "at", "near", "to", "of", "from", "restaurant", "restaurants",
        "place", "w", "we", "na", "do", "u", "z", "restauracja", "restauracji",
    }
)


def strip_diacritics(s: Optional[str]) -> str:
    if not s:
        return ""
    t = unicodedata.normalize("NFD", s)
    t = "".join(ch for ch in t if not unicodedata.combining(ch))
    return "".join(_EXTRA_FOLDS.get(ch, ch) for ch in t)


def normalize(s: Optional[str]) -> str:
    """
    Canonical matching form.
    - lowercases
    - strips diacritics
    - punctuation, dashes and underscores become spaces
    - collapses whitespace

    Output only contains [a-z0-9 ] so normalize(normalize(s)) == normalize(s).
    """
    if not s:
        return ""
    t = strip_diacritics(str(s).lower())
    t = _KEEP_RX.sub(" ", t)
    return _WS_RX.sub(" ", t).strip()


def tokens(s: Optional[str]) -> list:
    t = normalize(s)
    return t.split() if t else []


def strip_connectors(s: Optional[str]) -> str:
    toks = [t for t in tokens(s) if t not in CONNECTOR_WORDS]
    return " ".join(toks)


def levenshtein(a: str, b: str) -> int:
    return int(Levenshtein.distance(a or "", b or ""))


def fuzzy_match(a: Optional[str], b: Optional[str], threshold: int = 3) -> bool:
    """
    Loose equality for names typed or transcribed with small errors.
    True on: equal, containment either way, same first token, or edit distance <= threshold.
    Total: empty/None input (or input that normalizes to nothing) returns False.
    """
    na = normalize(a)
    nb = normalize(b)
    if not na or not nb:
        return False
    if na == nb:
        return True
    if na in nb or nb in na:
        return True
    if na.split(" ")[0] == nb.split(" ")[0]:
        return True
    return levenshtein(na, nb) <= threshold


def fuzzy_includes(name: Optional[str], text: Optional[str]) -> bool:
    """
    True when a (dish) name is mentioned in free text.
    Full containment wins; otherwise at least 60% of the name's tokens longer
    than 2 chars must appear in the text.
    """
    n = normalize(name)
    t = normalize(text)
    if not n or not t:
        return False
    if f" {n} " in f" {t} ":
        return True

    long_toks = [tok for tok in n.split() if len(tok) > 2]
    if not long_toks:
        return False
    text_toks = set(t.split())
    hits = [tok for tok in long_toks if tok in text_toks]
    if len(long_toks) <= 1:
        return len(hits) >= 1
    return len(hits) / len(long_toks) >= 0.6


def token_distance_threshold(target: str) -> int:
    # 1 edit for short words, 2 for longer ones
    return 2 if len(target) > 5 else 1
