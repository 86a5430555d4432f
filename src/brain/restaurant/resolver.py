# src/brain/restaurant/resolver.py
from __future__ import annotations

import asyncio
import logging
import math
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from .. import settings
from ..aliases import Lexicon, expand_cuisine, load_lexicon, nearby_cities
from ..cache import MaxEntriesEviction, TTLCache
from ..catalog import Catalog, RestaurantFilter
from ..errors import ExternalServiceError, ExternalServiceTimeout
from ..models import Restaurant, Session
from ..text import CONNECTOR_WORDS, fuzzy_match, levenshtein, normalize, strip_connectors

logger = logging.getLogger(settings.LOGGER_NAME)

T = TypeVar("T")


class LocationStatus(str, Enum):
    FOUND = "found"
    NO_RESULTS = "no_results"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class LocationResult:
    status: LocationStatus
    location: str
    cuisine_tags: Tuple[str, ...] = ()
    restaurants: Tuple[Restaurant, ...] = ()
    suggestions: Tuple[str, ...] = ()
    from_cache: bool = False


# -------------------------
# Location phrase extraction
# -------------------------

_LOCATION_RX = re.compile(
    r"\b(?:near|in|around|at|w|we|na|blisko|kolo|koło|niedaleko|obok|przy)\s+(?:the\s+)?"
    r"([^\W\d_]+)(?:\s+([^\W\d_]+))?",
    re.IGNORECASE | re.UNICODE,
)

# Words that follow "in/at/near" without naming a place
_LOCATION_BLACKLIST = frozenset(
    {
        "me", "here", "there", "you", "my", "your", "our", "this", "that", "it", "a", "an",
        "town", "area", "city", "home", "work", "menu", "mood", "general", "total", "stock",
        "mind", "advance", "least", "all", "time", "order", "cart", "case", "fact", "person",
        "tutaj", "tu", "szybko", "poblizu", "pobliżu", "okolicy", "cos", "coś", "domu", "sumie",
    }
)


def extract_location(text: str) -> Optional[str]:
    """
    Place name after a locative word: "pizza near Riverside" -> "Riverside",
    "what's in Old Town" -> "Old Town". A second word is kept only when it is
    capitalized in the input.
    """
    if not text:
        return None
    for m in _LOCATION_RX.finditer(text):
        first, second = m.group(1), m.group(2)
        if normalize(first) in _LOCATION_BLACKLIST or first.lower() in _LOCATION_BLACKLIST:
            continue
        words = [first]
        if second and second[:1].isupper() and first[:1].isupper():
            words.append(second)
        loc = " ".join(words)
        return loc[:1].upper() + loc[1:]
    return None


def city_query(location: Optional[str]) -> str:
    """City filter for the catalog: connector words dropped, spelling and diacritics kept ("w Chorzów" -> "Chorzów")."""
    words = []
    for w in str(location or "").split():
        w = w.strip(".,;:!?\"'()")
        if w and normalize(w) not in CONNECTOR_WORDS:
            words.append(w)
    return " ".join(words)


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle (haversine) distance."""
    r = 6371.0
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return r * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def sort_by_distance(restaurants: Sequence[Restaurant], lat: float, lng: float) -> List[Restaurant]:
    def _key(r: Restaurant) -> float:
        if r.lat is None or r.lng is None:
            return float("inf")
        return distance_km(lat, lng, r.lat, r.lng)

    return sorted(restaurants, key=_key)


# -------------------------
# Resolver
# -------------------------

@dataclass
class RestaurantResolver:
    catalog: Catalog
    timeout_s: float = field(default_factory=lambda: settings.CATALOG_TIMEOUT_SEC)
    cache_ttl_s: float = field(default_factory=lambda: float(settings.LOCATION_CACHE_TTL_SECONDS))
    cache_max_entries: int = field(default_factory=lambda: settings.LOCATION_CACHE_MAX_ENTRIES)
    result_limit: int = field(default_factory=lambda: settings.CATALOG_RESULT_LIMIT)
    lexicon: Optional[Lexicon] = None
    clock: Callable[[], float] = time.time

    def _lex(self) -> Lexicon:
        return self.lexicon or load_lexicon()

    async def _call(self, op: str, coro: Awaitable[T]) -> T:
        t0 = time.perf_counter()
        try:
            out = await asyncio.wait_for(coro, timeout=self.timeout_s)
        except asyncio.TimeoutError as e:
            raise ExternalServiceTimeout("catalog", self.timeout_s) from e
        except ExternalServiceError:
            raise
        except Exception as e:
            raise ExternalServiceError("catalog", f"{op}: {e}") from e
        dt_ms = (time.perf_counter() - t0) * 1000.0
        if dt_ms > 2000.0:
            logger.warning("CATALOG: slow %s took %.0fms", op, dt_ms)
        return out

    def location_cache(self, session: Session) -> TTLCache:
        return TTLCache(
            self.cache_ttl_s,
            eviction=MaxEntriesEviction(self.cache_max_entries),
            clock=self.clock,
            store=session.location_cache,
        )

    @staticmethod
    def cache_key(location: str, cuisine: Optional[str]) -> str:
        return f"{normalize(location)}|{normalize(cuisine) or 'all'}"

    async def find_restaurant_by_name(self, name: Optional[str]) -> Optional[Restaurant]:
        """
        Fuzzy name lookup against the live catalog.
        1) exact (connector words ignored)
        2) fuzzy_match(threshold=3), closest edit distance wins
        3) weak alias: a catalog name starting with the query's first token
        Catalog failures are logged and treated as no match.
        """
        query = strip_connectors(name)
        if not query:
            return None

        try:
            restaurants = await self._call("restaurants(all)", self.catalog.restaurants(RestaurantFilter()))
        except ExternalServiceError as e:
            logger.warning("CATALOG: find_restaurant_by_name(%r) failed: %s", name, e)
            return None
        if not restaurants:
            return None

        for r in restaurants:
            if strip_connectors(r.name) == query:
                return r

        fuzzy = [r for r in restaurants if fuzzy_match(query, strip_connectors(r.name), 3)]
        if fuzzy:
            best = min(fuzzy, key=lambda r: levenshtein(query, strip_connectors(r.name)))
            logger.info("CATALOG: restaurant fuzzy %r -> %s", name, best.name)
            return best

        first = query.split(" ")[0]
        if len(first) >= 3:
            for r in restaurants:
                if normalize(r.name).startswith(first):
                    logger.info("CATALOG: restaurant alias %r -> %s", name, r.name)
                    return r

        logger.info("CATALOG: no restaurant for %r", name)
        return None

    async def find_restaurants_by_location(
        self,
        location: Optional[str],
        cuisine: Optional[str] = None,
        session: Optional[Session] = None,
        *,
        near: Optional[Tuple[float, float]] = None,
    ) -> LocationResult:
        loc = strip_connectors(location) or normalize(location)
        if not loc:
            return LocationResult(LocationStatus.NO_RESULTS, location="")

        tags = tuple(expand_cuisine(cuisine, self._lex())) if cuisine else ()
        key = self.cache_key(loc, cuisine)
        cache = self.location_cache(session) if session is not None else None

        if cache is not None:
            hit = cache.get(key)
            if hit:
                logger.info("CATALOG: location cache HIT %s", key)
                found = sort_by_distance(hit, *near) if near else list(hit)
                return LocationResult(LocationStatus.FOUND, loc, tags, tuple(found), from_cache=True)

        city = city_query(location) or loc
        flt = RestaurantFilter(city=city, cuisines=tags, limit=self.result_limit)
        try:
            found = await self._call(f"restaurants(city={city!r}, cuisines={list(tags)})", self.catalog.restaurants(flt))
        except ExternalServiceError as e:
            logger.warning("CATALOG: find_restaurants_by_location(%r, %r) unavailable: %s", location, cuisine, e)
            return LocationResult(LocationStatus.UNAVAILABLE, loc, tags)

        if not found:
            suggestions = tuple(nearby_cities(loc, self._lex()))
            logger.info("CATALOG: no results in %r cuisine=%s suggestions=%s", loc, list(tags), list(suggestions))
            return LocationResult(LocationStatus.NO_RESULTS, loc, tags, suggestions=suggestions)

        if cache is not None:
            cache.put(key, tuple(found))
        if near:
            found = sort_by_distance(found, *near)
        return LocationResult(LocationStatus.FOUND, loc, tags, tuple(found))
