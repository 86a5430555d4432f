# src/brain/restaurant/selection.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..models import Restaurant
from ..text import fuzzy_match, normalize

_ORDINAL_WORDS = {
    "first": 1, "1st": 1,
    "second": 2, "2nd": 2,
    "third": 3, "3rd": 3,
    "fourth": 4, "4th": 4,
    "fifth": 5, "5th": 5,
    "sixth": 6, "6th": 6,
    "seventh": 7, "7th": 7,
    "eighth": 8, "8th": 8,
    "ninth": 9, "9th": 9,
    "tenth": 10, "10th": 10,
}

# Polish ordinals inflect; match on stems
_ORDINAL_STEMS = (
    ("pierwsz", 1),
    ("drug", 2),
    ("trzeci", 3),
    ("czwart", 4),
    ("piat", 5),
)

# Cardinals only count as a pick inside a pure selection phrase ("number two")
_CARDINAL_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "jeden": 1, "jedynka": 1, "dwa": 2, "dwojka": 2, "trzy": 3, "trojka": 3, "cztery": 4, "piec": 5,
}

_DIGIT_RX = re.compile(r"^(?:[1-9]|1[0-9]|20)$")

# Words that may surround an ordinal without changing its meaning
_SELECTION_FILLER = frozenset(
    {
        "the", "one", "number", "no", "nr", "option", "please", "i", "ll", "d", "choose", "pick", "take",
        "want", "go", "with", "select", "restaurant", "that", "this", "lets", "let", "s", "us", "ok", "okay",
        "id", "like", "rather", "on", "list", "from", "ta", "ten", "to", "poprosze", "wybieram", "biore",
        "numer", "opcja", "chce", "ja", "prosze",
    }
)


def _ordinal_token(tok: str) -> Optional[int]:
    if _DIGIT_RX.match(tok):
        return int(tok)
    if tok in _ORDINAL_WORDS:
        return _ORDINAL_WORDS[tok]
    for stem, idx in _ORDINAL_STEMS:
        if tok.startswith(stem):
            return idx
    return None


def extract_ordinal(text: str) -> Optional[int]:
    """
    1-based position named by a *pure* selection phrase: "2", "the second one",
    "number two", "druga", "I'll take the 3rd". Anything carrying other content
    ("2 pepperoni", "second pizza with ham") returns None.
    """
    toks = normalize(text).split()
    if not toks:
        return None

    picked: Optional[int] = None
    for i, tok in enumerate(toks):
        idx = _ordinal_token(tok)
        if idx is None and tok in _CARDINAL_WORDS:
            # "one" is usually a pronoun ("the second one")
            if tok != "one" or len(toks) == 1 or (i > 0 and toks[i - 1] in ("number", "option", "no", "nr")):
                idx = _CARDINAL_WORDS[tok]
        if idx is not None:
            if picked is not None and picked != idx:
                return None
            picked = idx
            continue
        if tok in _SELECTION_FILLER:
            continue
        return None

    return picked


@dataclass(frozen=True)
class Selection:
    index: int  # 0-based into the displayed list
    restaurant: Restaurant
    method: str
    confidence: float


def _name_score(text_norm: str, toks: List[str], r: Restaurant) -> float:
    score = 0.0
    r_name = normalize(r.name)
    r_city = normalize(r.city)
    r_toks = r_name.split()

    if text_norm and text_norm in r_name:
        score += 3.0

    for ut in toks:
        if len(ut) < 3:
            continue
        if ut in r_name:
            score += 1.0
        if r_city and ut in r_city:
            score += 0.5
        for rt in r_toks:
            if rt.startswith(ut) or ut.startswith(rt):
                score += 0.5
            if fuzzy_match(ut, rt, 2):
                score += 1.0
            # shared stem covers inflected forms ("pizzerii" vs "pizzeria")
            if len(ut) > 4 and len(rt) > 4 and ut[:4] == rt[:4]:
                score += 0.8
    return score


def select_from_list(text: str, restaurants: Sequence[Restaurant]) -> Optional[Selection]:
    """
    Resolve a reply against the restaurants currently on screen.
    1) ordinal / digit ("2", "the second one")
    2) name fragment scoring; needs a clear leader, otherwise None
    """
    if not restaurants:
        return None

    ordinal = extract_ordinal(text)
    if ordinal is not None:
        if 1 <= ordinal <= len(restaurants):
            return Selection(ordinal - 1, restaurants[ordinal - 1], "ordinal", 0.95)
        return None

    text_norm = normalize(text)
    toks = text_norm.split()
    if not toks:
        return None

    scored = sorted(
        ((_name_score(text_norm, toks, r), i) for i, r in enumerate(restaurants)),
        key=lambda x: (-x[0], x[1]),
    )
    best_score, best_i = scored[0]
    second_score = scored[1][0] if len(scored) > 1 else None

    if best_score >= 2.0 and (second_score is None or best_score - second_score >= 1.0):
        return Selection(best_i, restaurants[best_i], "name", 0.85)

    if best_score >= 0.7 and sum(1 for s, _ in scored if s > 0.5) == 1:
        return Selection(best_i, restaurants[best_i], "name", 0.8)

    return None
