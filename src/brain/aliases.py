# src/brain/aliases.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from . import settings
from .text import normalize

logger = logging.getLogger(settings.LOGGER_NAME)


# -------------------------
# Built-in tables (keys are normalize()d)
# -------------------------

# colloquial / misspelled dish term -> canonical menu term(s)
DEFAULT_DISH_ALIASES: Dict[str, List[str]] = {
    "coke": ["cola"],
    "coca cola": ["cola"],
    "pepsi": ["cola"],
    "pepperonni": ["pepperoni"],
    "peperoni": ["pepperoni"],
    "margarita": ["margherita"],
    "margharita": ["margherita"],
    "margherite": ["margherita"],
    "chips": ["fries"],
    "french fries": ["fries"],
    "frytki": ["fries"],
    "burgers": ["burger"],
    "burgery": ["burger"],
    "cheeseburger": ["burger"],
    "kebap": ["kebab"],
    "doner": ["kebab"],
    "vegas": ["smak vegas"],
    "pierogi": ["dumplings"],
    "pho bo": ["pho"],
}

# cuisine phrase -> canonical cuisine tag(s) as stored in the catalog
DEFAULT_CUISINE_ALIASES: Dict[str, List[str]] = {
    "asian": ["Vietnamese", "Chinese", "Thai"],
    "asian style": ["Vietnamese", "Chinese", "Thai"],
    "azjatyckie": ["Vietnamese", "Chinese", "Thai"],
    "azjatyckiej": ["Vietnamese", "Chinese", "Thai"],
    "oriental": ["Vietnamese", "Chinese"],
    "orientalne": ["Vietnamese", "Chinese"],
    "fast food": ["American", "Kebab"],
    "fastfood": ["American", "Kebab"],
    "something quick": ["American", "Kebab"],
    "na szybko": ["American", "Kebab"],
    "burger": ["American"],
    "burgers": ["American"],
    "burgera": ["American"],
    "american": ["American"],
    "pizza": ["Italian"],
    "pizzas": ["Italian"],
    "pizze": ["Italian"],
    "pizzy": ["Italian"],
    "pizzeria": ["Italian"],
    "pasta": ["Italian"],
    "italian": ["Italian"],
    "wloska": ["Italian"],
    "wloskiej": ["Italian"],
    "kebab": ["Kebab"],
    "kebaba": ["Kebab"],
    "kebabu": ["Kebab"],
    "local": ["Polish", "Silesian"],
    "homemade": ["Polish", "Silesian"],
    "lokalne": ["Polish", "Silesian"],
    "domowe": ["Polish", "Silesian"],
    "polish": ["Polish"],
    "polska": ["Polish"],
    "polskiej": ["Polish"],
    "vietnamese": ["Vietnamese"],
    "pho": ["Vietnamese"],
    "chinese": ["Chinese"],
    "thai": ["Thai"],
    "sushi": ["Japanese"],
    "japanese": ["Japanese"],
    "indian": ["Indian"],
    "curry": ["Indian", "Thai"],
    "mexican": ["Mexican"],
    "tacos": ["Mexican"],
}

# city with no results -> nearby cities worth suggesting
DEFAULT_NEARBY_CITIES: Dict[str, List[str]] = {
    "bytom": ["Piekary Slaskie", "Katowice", "Zabrze"],
    "katowice": ["Piekary Slaskie", "Bytom", "Chorzow"],
    "zabrze": ["Piekary Slaskie", "Bytom", "Gliwice"],
    "gliwice": ["Zabrze", "Piekary Slaskie"],
    "chorzow": ["Katowice", "Piekary Slaskie", "Bytom"],
    "riverside": ["Old Town", "Hillview"],
    "hillview": ["Riverside", "Old Town"],
}


@dataclass(frozen=True)
class Lexicon:
    dish_aliases: Dict[str, List[str]] = field(default_factory=dict)
    cuisine_aliases: Dict[str, List[str]] = field(default_factory=dict)
    nearby_cities: Dict[str, List[str]] = field(default_factory=dict)

    def cuisine_phrases(self) -> List[str]:
        # longest first so "asian style" wins over "asian"
        return sorted(self.cuisine_aliases.keys(), key=len, reverse=True)

    def dish_phrases(self) -> List[str]:
        return sorted(self.dish_aliases.keys(), key=len, reverse=True)


def _norm_table(raw) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    if not isinstance(raw, dict):
        return out
    for k, v in raw.items():
        nk = normalize(str(k))
        if not nk:
            continue
        if isinstance(v, str):
            vals = [v]
        elif isinstance(v, (list, tuple)):
            vals = [str(x) for x in v if str(x).strip()]
        else:
            continue
        out[nk] = vals
    return out


def default_lexicon() -> Lexicon:
    return Lexicon(
        dish_aliases=_norm_table(DEFAULT_DISH_ALIASES),
        cuisine_aliases=_norm_table(DEFAULT_CUISINE_ALIASES),
        nearby_cities=_norm_table(DEFAULT_NEARBY_CITIES),
    )


# -------------------------
# YAML overrides (with mtime refresh)
# -------------------------

# path -> (mtime, Lexicon)
_LEXICON_CACHE: Dict[str, Tuple[float, Lexicon]] = {}


def _read_yaml(p: Path) -> Dict:
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    return data if isinstance(data, dict) else {}


def load_lexicon(path: Optional[str] = None) -> Lexicon:
    """
    Built-in tables, extended/overridden by an optional YAML file:

        dish_aliases:    {coke: [cola]}
        cuisine_aliases: {asian style: [Vietnamese, Chinese, Thai]}
        nearby_cities:   {riverside: [Old Town]}

    The file is re-read when its mtime changes. A broken file logs a warning
    and the built-in tables are used.
    """
    base = default_lexicon()
    path = path if path is not None else settings.LEXICON_PATH
    if not path:
        return base

    p = Path(path)
    if not p.exists():
        logger.warning("LEXICON: file not found: %s", path)
        return base

    try:
        mtime = p.stat().st_mtime
    except OSError:
        mtime = 0.0

    cached = _LEXICON_CACHE.get(str(p))
    if cached and cached[0] == mtime:
        return cached[1]

    try:
        data = _read_yaml(p)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("LEXICON: failed to load %s: %s", path, e)
        return base

    lex = Lexicon(
        dish_aliases={**base.dish_aliases, **_norm_table(data.get("dish_aliases"))},
        cuisine_aliases={**base.cuisine_aliases, **_norm_table(data.get("cuisine_aliases"))},
        nearby_cities={**base.nearby_cities, **_norm_table(data.get("nearby_cities"))},
    )
    _LEXICON_CACHE[str(p)] = (mtime, lex)
    logger.info(
        "LEXICON: loaded %s dish=%d cuisine=%d cities=%d",
        path, len(lex.dish_aliases), len(lex.cuisine_aliases), len(lex.nearby_cities),
    )
    return lex


# -------------------------
# Expansion
# -------------------------

def _has_phrase(text_norm: str, phrase: str) -> bool:
    return f" {phrase} " in f" {text_norm} "


def expand(text: str, lexicon: Optional[Lexicon] = None) -> str:
    """
    Normalized text followed by the canonical forms of every alias it mentions.
    Never removes anything: tokens(expand(t)) is a superset of tokens(normalize(t)).
    """
    lex = lexicon or load_lexicon()
    t = normalize(text)
    if not t:
        return ""

    extra: List[str] = []
    for phrase in lex.dish_phrases():
        if _has_phrase(t, phrase):
            extra.extend(lex.dish_aliases[phrase])
    for phrase in lex.cuisine_phrases():
        if _has_phrase(t, phrase):
            extra.extend(lex.cuisine_aliases[phrase])

    appended: List[str] = []
    for term in extra:
        n = normalize(term)
        if n and not _has_phrase(t, n) and n not in appended:
            appended.append(n)

    return " ".join([t] + appended)


def expand_cuisine(term: Optional[str], lexicon: Optional[Lexicon] = None) -> List[str]:
    """'asian style' -> ['Vietnamese', 'Chinese', 'Thai']; unknown terms pass through."""
    if not term or not str(term).strip():
        return []
    lex = lexicon or load_lexicon()
    n = normalize(term)
    tags = lex.cuisine_aliases.get(n)
    if tags is not None:
        return list(tags)
    return [str(term).strip()]


def detect_cuisine(text: str, lexicon: Optional[Lexicon] = None) -> Optional[Tuple[str, List[str]]]:
    """First (longest) cuisine phrase mentioned in the text -> (phrase, canonical tags)."""
    lex = lexicon or load_lexicon()
    t = normalize(text)
    if not t:
        return None
    for phrase in lex.cuisine_phrases():
        if _has_phrase(t, phrase):
            return phrase, list(lex.cuisine_aliases[phrase])
    return None


def dish_canonicals(text: str, lexicon: Optional[Lexicon] = None) -> List[str]:
    """Canonical dish terms for every dish alias mentioned in the text."""
    lex = lexicon or load_lexicon()
    t = normalize(text)
    out: List[str] = []
    for phrase in lex.dish_phrases():
        if _has_phrase(t, phrase):
            for c in lex.dish_aliases[phrase]:
                if c not in out:
                    out.append(c)
    return out


def nearby_cities(city: Optional[str], lexicon: Optional[Lexicon] = None) -> List[str]:
    lex = lexicon or load_lexicon()
    return list(lex.nearby_cities.get(normalize(city), []))
