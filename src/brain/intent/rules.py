# src/brain/intent/rules.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..aliases import Lexicon, expand
from ..text import normalize
from .intents import Intent

C = TypeVar("C")


@dataclass(frozen=True)
class TurnText:
    """One utterance in every form the rules look at."""

    raw: str
    norm: str
    expanded: str

    @classmethod
    def of(cls, raw: str, lexicon: Optional[Lexicon] = None) -> "TurnText":
        raw = raw or ""
        return cls(raw=raw, norm=normalize(raw), expanded=expand(raw, lexicon))

    @property
    def tokens(self) -> List[str]:
        return self.norm.split()

    def has(self, phrase: str) -> bool:
        # expanded starts with norm, so this also sees alias canonical forms
        return bool(phrase) and f" {phrase} " in f" {self.expanded} "

    def has_any(self, phrases: Iterable[str]) -> bool:
        return any(self.has(p) for p in phrases)

    def first(self, phrases: Iterable[str]) -> Optional[str]:
        for p in phrases:
            if self.has(p):
                return p
        return None

    def only(self, vocab: frozenset) -> bool:
        toks = self.tokens
        return bool(toks) and all(t in vocab for t in toks)


@dataclass(frozen=True)
class RuleHit:
    intent: Intent
    confidence: float
    slots: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Rule(Generic[C]):
    name: str
    fn: Callable[[C], Optional[RuleHit]]

    def __call__(self, ctx: C) -> Optional[RuleHit]:
        return self.fn(ctx)


class RuleSet(Generic[C]):
    """
    Ordered, named rules. The first rule returning a hit wins.
    Rule names are unique so tests and logs can point at one rule.
    """

    def __init__(self, rules: Sequence[Rule[C]]):
        names = [r.name for r in rules]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate rule names: {dupes}")
        self._rules: Tuple[Rule[C], ...] = tuple(rules)

    def __iter__(self):
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def names(self) -> List[str]:
        return [r.name for r in self._rules]

    def get(self, name: str) -> Rule[C]:
        for r in self._rules:
            if r.name == name:
                return r
        raise KeyError(name)

    def without(self, *names: str) -> "RuleSet[C]":
        return RuleSet([r for r in self._rules if r.name not in names])

    def first_match(self, ctx: C) -> Optional[Tuple[str, RuleHit]]:
        for r in self._rules:
            hit = r(ctx)
            if hit is not None:
                return r.name, hit
        return None


def rule(name: str):
    """Decorator collecting a function into a list as a named Rule."""

    def _wrap(fn: Callable[[Any], Optional[RuleHit]]) -> Rule:
        return Rule(name=name, fn=fn)

    return _wrap
