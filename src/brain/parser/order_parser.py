# src/brain/parser/order_parser.py
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Tuple

from .. import settings
from ..aliases import Lexicon, dish_canonicals, load_lexicon
from ..models import MenuItem
from ..text import fuzzy_includes, levenshtein, normalize, token_distance_threshold
from .quantity import QUANTITY_WORDS, find_quantity
from .variants import Variants, parse_variants, size_words

logger = logging.getLogger(settings.LOGGER_NAME)


class MatchTier(str, Enum):
    EXACT = "exact"
    ALIAS = "alias"
    SUBSTRING = "substring"
    FUZZY = "fuzzy"


# Separators between order lines: "two pepperoni, a cola and fries plus a salad"
_SPLIT_RX = re.compile(r"\s*(?:,|;|&|\band\b|\bplus\b|\boraz\b)\s*", re.IGNORECASE)

# Ordering verbs and politeness that never belong to a dish name
_ORDER_FILLER = frozenset(
    {
        "i", "d", "ll", "id", "like", "want", "would", "to", "order", "get", "have", "can", "could", "may",
        "give", "me", "please", "a", "an", "the", "some", "add", "also", "another", "more", "one", "of",
        "for", "us", "take", "make", "it", "just", "with", "and", "lets", "let", "s", "we", "need", "ok",
        "okay", "um", "uh", "yes", "yeah", "poprosze", "prosze", "chce", "chcialbym", "chcialabym", "dodaj",
        "zamawiam", "wezme", "daj", "mi", "jeszcze",
    }
)

_STRIP_WORDS = _ORDER_FILLER | QUANTITY_WORDS | size_words()


@dataclass(frozen=True)
class OrderCandidate:
    """One order line as heard, before validation against the menu."""

    segment: str
    phrase: str
    quantity: int = 1
    quantity_explicit: bool = False
    variants: Variants = field(default_factory=Variants)
    matches: Tuple[MenuItem, ...] = ()
    tier: Optional[MatchTier] = None

    @property
    def size(self) -> Optional[str]:
        return self.variants.size

    @property
    def extras(self) -> FrozenSet[str]:
        return self.variants.extras

    @property
    def exclusions(self) -> FrozenSet[str]:
        return self.variants.exclusions


@dataclass(frozen=True)
class OrderParseResult:
    candidates: Tuple[OrderCandidate, ...] = ()
    execution_time_ms: float = 0.0

    @property
    def matched(self) -> bool:
        return any(c.matches for c in self.candidates)


def split_items(text: str) -> List[str]:
    parts = [p.strip() for p in _SPLIT_RX.split(text or "")]
    return [p for p in parts if p]


def dish_phrase(segment: str) -> str:
    """Segment minus quantity, size and ordering filler: "give me two large pepperoni" -> "pepperoni"."""
    toks = [t for t in normalize(segment).split() if t not in _STRIP_WORDS and not t.isdigit()]
    return " ".join(toks)


def _longest(items: Sequence[MenuItem]) -> List[MenuItem]:
    if not items:
        return []
    best = max(len(normalize(m.name)) for m in items)
    return [m for m in items if len(normalize(m.name)) == best]


class OrderParser:
    """
    Matches spoken order lines against one restaurant's menu.

    Dish cascade per line, first non-empty tier wins:
      exact     menu name == phrase, or the whole name is said in the line
      alias     same, after alias expansion ("coke" -> "cola")
      substring menu name contains the phrase (or most of its words are said)
      fuzzy     edit distance on the phrase or on individual long tokens
    All rows of a tier are kept; the validator decides between a size
    choice and a real ambiguity.
    """

    def __init__(self, menu: Sequence[MenuItem], lexicon: Optional[Lexicon] = None):
        self.menu: List[MenuItem] = list(menu or [])
        self.lexicon = lexicon
        self._names = [(normalize(m.name), m) for m in self.menu]

    def _lex(self) -> Lexicon:
        return self.lexicon or load_lexicon()

    # -------------------------
    # Cascade tiers
    # -------------------------
    def _exact(self, seg_norm: str, phrase: str) -> List[MenuItem]:
        if phrase:
            eq = [m for n, m in self._names if n == phrase]
            if eq:
                return eq
        padded = f" {seg_norm} "
        return _longest([m for n, m in self._names if n and f" {n} " in padded])

    def _alias(self, seg_norm: str) -> List[MenuItem]:
        canon = [normalize(c) for c in dish_canonicals(seg_norm, self._lex())]
        if not canon:
            return []
        out: List[MenuItem] = []
        for c in canon:
            padded_c = f" {c} "
            for n, m in self._names:
                if m in out:
                    continue
                if n == c or padded_c in f" {n} " or f" {n} " in padded_c:
                    out.append(m)
        return out

    def _substring(self, seg_norm: str, phrase: str) -> List[MenuItem]:
        if len(phrase) < 3:
            return []
        hits = [m for n, m in self._names if phrase in n]
        if hits:
            return hits
        return [m for n, m in self._names if fuzzy_includes(n, seg_norm) and len(n) >= 3]

    def _fuzzy(self, phrase: str) -> List[MenuItem]:
        if len(phrase) < 4:
            return []
        scored = []
        for n, m in self._names:
            d = levenshtein(phrase, n)
            if d <= (3 if len(n) > 6 else 2):
                scored.append((d, m))
        if scored:
            best = min(d for d, _ in scored)
            return [m for d, m in scored if d == best]

        # per-token: "peperonni" -> "Pepperoni Pizza"
        out: List[MenuItem] = []
        p_toks = [t for t in phrase.split() if len(t) >= 4]
        for n, m in self._names:
            for nt in n.split():
                if len(nt) < 4:
                    continue
                if any(levenshtein(pt, nt) <= token_distance_threshold(nt) for pt in p_toks):
                    out.append(m)
                    break
        return out

    def match_dish(self, segment: str) -> Tuple[Tuple[MenuItem, ...], Optional[MatchTier]]:
        seg_norm = normalize(segment)
        phrase = dish_phrase(segment)
        if not seg_norm:
            return (), None

        for tier, fn in (
            (MatchTier.EXACT, lambda: self._exact(seg_norm, phrase)),
            (MatchTier.ALIAS, lambda: self._alias(seg_norm)),
            (MatchTier.SUBSTRING, lambda: self._substring(seg_norm, phrase)),
            (MatchTier.FUZZY, lambda: self._fuzzy(phrase)),
        ):
            hits = fn()
            if hits:
                return tuple(hits), tier
        return (), None

    # -------------------------
    # Public
    # -------------------------
    def parse_line(self, segment: str) -> OrderCandidate:
        matches, tier = self.match_dish(segment)

        # dish words must not be re-read as extras ("bacon burger")
        variant_text = normalize(segment)
        if matches:
            name_toks = set(normalize(matches[0].name).split()) - size_words()
            variant_text = " ".join(t for t in variant_text.split() if t not in name_toks)

        q = find_quantity(segment)
        return OrderCandidate(
            segment=segment,
            phrase=dish_phrase(segment),
            quantity=q or 1,
            quantity_explicit=q is not None,
            variants=parse_variants(variant_text),
            matches=matches,
            tier=tier,
        )

    def parse(self, utterance: str) -> OrderParseResult:
        start = time.perf_counter()

        lines: List[OrderCandidate] = []
        for seg in split_items(utterance):
            cand = self.parse_line(seg)
            # "pepperoni with ham and mushrooms": a piece that names no dish and
            # no quantity belongs to the previous line
            if not cand.matches and not cand.quantity_explicit and lines and lines[-1].matches:
                lines[-1] = self.parse_line(f"{lines[-1].segment} {seg}")
                continue
            if not cand.phrase and not cand.matches:
                continue
            lines.append(cand)

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        for c in lines:
            logger.debug(
                "ORDER_PARSE: %r -> tier=%s matches=%s qty=%s size=%s",
                c.segment, c.tier.value if c.tier else None, [m.name for m in c.matches], c.quantity, c.size,
            )
        return OrderParseResult(candidates=tuple(lines), execution_time_ms=round(elapsed_ms, 3))


def parse_order_items(text: str, menu: Sequence[MenuItem], lexicon: Optional[Lexicon] = None) -> List[OrderCandidate]:
    return list(OrderParser(menu, lexicon).parse(text).candidates)
