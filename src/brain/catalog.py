# src/brain/catalog.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from . import settings
from .cache import MaxEntriesEviction, TTLCache
from .models import MenuItem, Restaurant
from .text import normalize

logger = logging.getLogger(settings.LOGGER_NAME)


@dataclass(frozen=True)
class RestaurantFilter:
    city: Optional[str] = None
    cuisines: Tuple[str, ...] = ()
    limit: Optional[int] = None


class Catalog:
    """
    Read-only restaurant/menu source. The brain never writes through it.
    Implementations: InMemoryCatalog (tests, REPL) and src.db.catalog_repo.PostgresCatalog.
    """

    async def restaurants(self, flt: Optional[RestaurantFilter] = None) -> List[Restaurant]:
        raise NotImplementedError

    async def menu_items(self, restaurant_id: str) -> List[MenuItem]:
        raise NotImplementedError


def _matches(r: Restaurant, flt: RestaurantFilter) -> bool:
    if flt.city:
        nc = normalize(flt.city)
        if nc and nc not in normalize(r.city):
            return False
    if flt.cuisines:
        rc = normalize(r.cuisine_type)
        if not any(normalize(c) and normalize(c) in rc for c in flt.cuisines):
            return False
    return True


def menu_item_from_dict(d: Dict[str, Any]) -> MenuItem:
    size_prices = d.get("size_prices") or {}
    return MenuItem(
        id=str(d["id"]),
        name=str(d["name"]),
        price=float(d.get("price") or 0.0),
        category=str(d.get("category") or ""),
        available=bool(d.get("available", True)),
        sizes=tuple(str(s) for s in (d.get("sizes") or [])),
        size_prices=tuple((str(k), float(v)) for k, v in size_prices.items()),
    )


def restaurant_from_dict(d: Dict[str, Any]) -> Restaurant:
    return Restaurant(
        id=str(d["id"]),
        name=str(d["name"]),
        city=str(d.get("city") or ""),
        cuisine_type=str(d.get("cuisine_type") or ""),
        lat=float(d["lat"]) if d.get("lat") is not None else None,
        lng=float(d["lng"]) if d.get("lng") is not None else None,
        address=str(d.get("address") or ""),
    )


class InMemoryCatalog(Catalog):
    def __init__(
        self,
        restaurants: Sequence[Restaurant] = (),
        menus: Optional[Dict[str, Sequence[MenuItem]]] = None,
    ):
        self._restaurants: List[Restaurant] = list(restaurants)
        self._menus: Dict[str, List[MenuItem]] = {k: list(v) for k, v in (menus or {}).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryCatalog":
        rs: List[Restaurant] = []
        menus: Dict[str, List[MenuItem]] = {}
        for rd in data.get("restaurants") or []:
            r = restaurant_from_dict(rd)
            rs.append(r)
            menus[r.id] = [menu_item_from_dict(m) for m in (rd.get("menu") or [])]
        return cls(rs, menus)

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryCatalog":
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    async def restaurants(self, flt: Optional[RestaurantFilter] = None) -> List[Restaurant]:
        flt = flt or RestaurantFilter()
        out = [r for r in self._restaurants if _matches(r, flt)]
        if flt.limit:
            out = out[: int(flt.limit)]
        return out

    async def menu_items(self, restaurant_id: str) -> List[MenuItem]:
        return list(self._menus.get(str(restaurant_id), []))


class MenuCache:
    """Per-process TTL cache in front of Catalog.menu_items."""

    def __init__(self, catalog: Catalog, ttl_seconds: Optional[float] = None, max_entries: int = 64):
        self.catalog = catalog
        self._cache: TTLCache[str, List[MenuItem]] = TTLCache(
            ttl_seconds if ttl_seconds is not None else settings.MENU_TTL_SECONDS,
            eviction=MaxEntriesEviction(max_entries),
        )

    async def get(self, restaurant_id: str) -> List[MenuItem]:
        cached = self._cache.get(restaurant_id)
        if cached is not None:
            return cached
        items = await self.catalog.menu_items(restaurant_id)
        if items:
            self._cache.put(restaurant_id, items)
        logger.debug("CATALOG: menu loaded restaurant=%s items=%d", restaurant_id, len(items))
        return items

    def invalidate(self, restaurant_id: str) -> None:
        self._cache.invalidate(restaurant_id)
