# src/brain/parser/validator.py
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..errors import AmbiguousMatch, BrainError, MatchNotFound
from ..models import MenuItem, ParsedOrderItem
from ..text import fuzzy_match, levenshtein, normalize
from .order_parser import OrderCandidate
from .variants import DEFAULT_SIZES, extract_size, size_words

MAX_SUGGESTIONS = 3
SUGGESTION_THRESHOLD = 5

_PIZZA_MARKERS = ("pizza", "pizze", "pizzy", "calzone")
_CM_TOKEN_RX = re.compile(r"^\d+(?:cm)?$")


class ValidationReason(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    INVALID_SIZE = "invalid_size"
    MISSING_SIZE = "missing_size"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class ValidationResult:
    reason: ValidationReason
    candidate: OrderCandidate
    item: Optional[ParsedOrderItem] = None
    suggestions: Tuple[str, ...] = ()
    dish: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason == ValidationReason.OK

    def as_error(self) -> Optional[BrainError]:
        query = self.candidate.phrase or self.candidate.segment
        if self.reason == ValidationReason.AMBIGUOUS:
            return AmbiguousMatch("dish", query, list(self.suggestions))
        if self.reason == ValidationReason.NOT_FOUND:
            return MatchNotFound("dish", query, list(self.suggestions))
        if self.reason in (ValidationReason.UNAVAILABLE, ValidationReason.INVALID_SIZE):
            return MatchNotFound(self.reason.value, query, list(self.suggestions))
        return None


def is_pizza_like(item: MenuItem) -> bool:
    hay = f"{normalize(item.category)} {normalize(item.name)}"
    return any(m in hay for m in _PIZZA_MARKERS)


def suggest(query: str, menu: Sequence[MenuItem], limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Closest available dish names under a loose threshold."""
    q = normalize(query)
    if not q:
        return []
    scored = []
    seen = set()
    for m in menu:
        n = normalize(m.name)
        if n in seen or not m.available:
            continue
        if fuzzy_match(q, n, SUGGESTION_THRESHOLD):
            seen.add(n)
            scored.append((levenshtein(q, n), m.name))
    scored.sort(key=lambda x: x[0])
    return [name for _, name in scored[:limit]]


def _ordered_sizes(rows: Sequence[MenuItem]) -> List[str]:
    out: List[str] = []
    for r in rows:
        for s in r.sizes:
            if s not in out:
                out.append(s)
    return out


def _base_name(name: str) -> str:
    """Dish name without size words: "Pepperoni Large" and "Pepperoni 32cm" are one dish."""
    sw = size_words()
    return " ".join(t for t in normalize(name).split() if t not in sw and not _CM_TOKEN_RX.match(t))


def _rows_for_size(rows: Sequence[MenuItem], size: str) -> List[MenuItem]:
    declared = [r for r in rows if size in r.sizes]
    if declared:
        return declared
    # rows split by size without metadata: "Pepperoni Large", "Pepperoni 32cm"
    return [r for r in rows if not r.sizes and extract_size(f"{r.name} {r.category}") == size]


def _row_choice(candidate: OrderCandidate, rows: Sequence[MenuItem], dish: str) -> ValidationResult:
    labels = tuple(f"{r.name} ({r.price:.2f})" for r in rows)
    return ValidationResult(ValidationReason.AMBIGUOUS, candidate, suggestions=labels, dish=dish)


def validate_order_item(candidate: OrderCandidate, menu: Sequence[MenuItem]) -> ValidationResult:
    """
    Turn a parsed line into a ParsedOrderItem or a structured reason.
    A size is never picked silently when more than one is on offer.
    """
    if not candidate.matches:
        return ValidationResult(
            ValidationReason.NOT_FOUND,
            candidate,
            suggestions=tuple(suggest(candidate.phrase or candidate.segment, menu)),
        )

    names: List[str] = []
    for m in candidate.matches:
        if _base_name(m.name) not in [_base_name(n) for n in names]:
            names.append(m.name)
    if len(names) > 1:
        return ValidationResult(ValidationReason.AMBIGUOUS, candidate, suggestions=tuple(names))

    dish = names[0]
    rows = [m for m in candidate.matches if m.available]
    if not rows:
        alternatives = [n for n in suggest(dish, menu, MAX_SUGGESTIONS + 1) if normalize(n) != normalize(dish)]
        return ValidationResult(
            ValidationReason.UNAVAILABLE,
            candidate,
            suggestions=tuple(alternatives[:MAX_SUGGESTIONS]),
            dish=dish,
        )

    sizes = _ordered_sizes(rows)
    size = candidate.size
    row: MenuItem

    if size:
        if sizes and size not in sizes:
            return ValidationResult(ValidationReason.INVALID_SIZE, candidate, suggestions=tuple(sizes), dish=dish)
        if sizes or len(rows) > 1:
            picked = _rows_for_size(rows, size)
            if len(picked) != 1:
                return _row_choice(candidate, picked or rows, dish)
            row = picked[0]
        else:
            row = rows[0]
            size = size if is_pizza_like(row) else None
    elif len(sizes) == 1:
        if len(rows) > 1:
            return _row_choice(candidate, rows, dish)
        size = sizes[0]
        row = rows[0]
    elif len(sizes) > 1 or len(rows) > 1:
        return ValidationResult(
            ValidationReason.MISSING_SIZE,
            candidate,
            suggestions=tuple(sizes or DEFAULT_SIZES),
            dish=dish,
        )
    elif is_pizza_like(rows[0]):
        return ValidationResult(ValidationReason.MISSING_SIZE, candidate, suggestions=DEFAULT_SIZES, dish=dish)
    else:
        row = rows[0]

    item = ParsedOrderItem(
        name=row.name,
        menu_item_id=row.id,
        unit_price=row.price_for(size),
        quantity=candidate.quantity,
        size=size,
        extras=candidate.extras,
        exclusions=candidate.exclusions,
    )
    return ValidationResult(ValidationReason.OK, candidate, item=item, dish=dish)


def validate_order(candidates: Sequence[OrderCandidate], menu: Sequence[MenuItem]) -> List[ValidationResult]:
    return [validate_order_item(c, menu) for c in candidates]
