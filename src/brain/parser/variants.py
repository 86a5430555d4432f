# src/brain/parser/variants.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from ..text import levenshtein, normalize, token_distance_threshold

SMALL = "small"
MEDIUM = "medium"
LARGE = "large"
EXTRA_LARGE = "extra_large"

DEFAULT_SIZES: Tuple[str, ...] = (SMALL, MEDIUM, LARGE)

# normalize()d synonym -> canonical size code. No single letters: "s", "m", "l"
# collide with ordinary words.
SIZE_SYNONYMS = {
    "small": SMALL, "little": SMALL, "mini": SMALL, "kids": SMALL,
    "mala": SMALL, "maly": SMALL, "male": SMALL,
    "medium": MEDIUM, "regular": MEDIUM, "normal": MEDIUM, "mid": MEDIUM,
    "srednia": MEDIUM, "sredni": MEDIUM, "srednie": MEDIUM,
    "large": LARGE, "big": LARGE, "family": LARGE, "maxi": LARGE,
    "duza": LARGE, "duzy": LARGE, "duze": LARGE, "wielka": LARGE,
    "extra large": EXTRA_LARGE, "xl": EXTRA_LARGE, "xxl": EXTRA_LARGE,
    "mega": EXTRA_LARGE, "giga": EXTRA_LARGE, "giant": EXTRA_LARGE, "jumbo": EXTRA_LARGE, "huge": EXTRA_LARGE,
}

# Typo correction targets ("lage" -> large, "medum" -> medium)
_FUZZY_SIZE_KEYS = ("small", "medium", "large", "srednia", "sredni")

_CM_RX = re.compile(r"\b(\d{2})\s*cm\b")

# phrase -> extra code; matched before per-token fuzzy lookups
EXTRA_PHRASES = (
    ("double cheese", "extra_cheese"),
    ("extra cheese", "extra_cheese"),
    ("more cheese", "extra_cheese"),
    ("podwojny ser", "extra_cheese"),
    ("podwojnym serem", "extra_cheese"),
    ("serem", "extra_cheese"),
    ("double meat", "double_meat"),
    ("extra meat", "double_meat"),
    ("podwojne mieso", "double_meat"),
    ("podwojnym miesem", "double_meat"),
    ("garlic sauce", "garlic_sauce"),
    ("extra sauce", "sauce_generic"),
    ("with sauce", "sauce_generic"),
    ("extra bacon", "bacon"),
    ("make it spicy", "spicy"),
    ("extra hot", "spicy"),
)

# token -> extra code, fuzzy-matched (1 edit up to 5 chars, 2 beyond)
EXTRA_TOKENS = {
    "spicy": "spicy",
    "pikantny": "spicy",
    "pikantna": "spicy",
    "ostry": "spicy",
    "ostra": "spicy",
    "ostre": "spicy",
    "garlic": "garlic_sauce",
    "czosnkowy": "garlic_sauce",
    "czosnek": "garlic_sauce",
    "ketchup": "ketchup",
    "mayonnaise": "mayo",
    "jalapenos": "jalapenos",
    "jalapeno": "jalapenos",
    "bacon": "bacon",
    "frytki": "fries",
}

# "without onions", "no sauce", "hold the tomato", "bez cebuli"
_EXCLUSION_RX = re.compile(
    r"\b(?:without|no|hold the|minus|skip the|bez|nie chce|omin)\s+(?:any\s+|the\s+)?([a-z]+)"
)

EXCLUSION_KEYWORDS = {
    "onion": "onion", "onions": "onion", "cebuli": "onion", "cebula": "onion",
    "spicy": "spicy", "ostrego": "spicy", "ostre": "spicy",
    "sauce": "sauce", "sosu": "sauce", "sos": "sauce",
    "tomato": "tomato", "tomatoes": "tomato", "pomidora": "tomato", "pomidor": "tomato",
    "cheese": "cheese", "sera": "cheese",
    "pickle": "pickles", "pickles": "pickles",
    "mayo": "mayo", "mayonnaise": "mayo", "majonezu": "mayo",
    "olives": "olives", "oliwek": "olives",
    "ice": "ice",
}

# "no thanks", "no problem" are not exclusions
_EXCLUSION_STOP = frozenset({"thanks", "thank", "problem", "more", "way", "i", "that", "it", "worries"})


@dataclass(frozen=True)
class Variants:
    size: Optional[str] = None
    extras: FrozenSet[str] = frozenset()
    exclusions: FrozenSet[str] = frozenset()


def _size_from_cm(cm: int) -> str:
    if cm < 30:
        return SMALL
    if cm < 36:
        return MEDIUM
    return LARGE


def extract_size(text: str) -> Optional[str]:
    t = normalize(text)
    if not t:
        return None

    m = _CM_RX.search(t)
    if m:
        return _size_from_cm(int(m.group(1)))

    padded = f" {t} "
    for key in sorted(SIZE_SYNONYMS, key=len, reverse=True):
        if f" {key} " in padded:
            return SIZE_SYNONYMS[key]

    for tok in t.split():
        if len(tok) < 4:
            continue
        for key in _FUZZY_SIZE_KEYS:
            if levenshtein(tok, key) <= token_distance_threshold(key):
                return SIZE_SYNONYMS[key]
    return None


def extract_exclusions(text: str) -> Tuple[FrozenSet[str], str]:
    """
    Exclusion codes plus the text with exclusion phrases removed, so the removed
    ingredient is not picked up again as an extra.
    """
    t = normalize(text)
    found: List[str] = []
    for m in _EXCLUSION_RX.finditer(t):
        word = m.group(1)
        if word in _EXCLUSION_STOP:
            continue
        found.append(EXCLUSION_KEYWORDS.get(word, word))
    rest = _EXCLUSION_RX.sub(" ", t) if found else t
    return frozenset(found), " ".join(rest.split())


def extract_extras(text: str) -> FrozenSet[str]:
    t = normalize(text)
    if not t:
        return frozenset()

    extras: List[str] = []
    padded = f" {t} "
    for phrase, code in EXTRA_PHRASES:
        if f" {phrase} " in padded and code not in extras:
            extras.append(code)

    for tok in t.split():
        if len(tok) < 4:
            continue
        for target, code in EXTRA_TOKENS.items():
            if code in extras:
                continue
            if levenshtein(tok, target) <= token_distance_threshold(target):
                extras.append(code)
    return frozenset(extras)


def parse_variants(text: str) -> Variants:
    exclusions, rest = extract_exclusions(text)
    return Variants(
        size=extract_size(rest),
        extras=extract_extras(rest),
        exclusions=exclusions,
    )


def size_words() -> FrozenSet[str]:
    """Every token that belongs to a size phrase; stripped before dish matching."""
    out = set()
    for k in SIZE_SYNONYMS:
        out.update(k.split())
    out.add("cm")
    return frozenset(out)
