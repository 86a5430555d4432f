from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from src.brain.catalog import Catalog, InMemoryCatalog, RestaurantFilter
from src.brain.models import MenuItem, Restaurant

ROOT = Path(__file__).resolve().parents[2]
DEMO_CATALOG = ROOT / "scripts" / "demo_catalog.json"


def demo_catalog() -> InMemoryCatalog:
    return InMemoryCatalog.from_json_file(str(DEMO_CATALOG))


def restaurant(rid: str, name: str, city: str = "Riverside", cuisine: str = "Italian", **kw) -> Restaurant:
    return Restaurant(id=rid, name=name, city=city, cuisine_type=cuisine, **kw)


def item(
    iid: str,
    name: str,
    price: float,
    *,
    category: str = "",
    sizes: Sequence[str] = (),
    size_prices: Optional[Dict[str, float]] = None,
    available: bool = True,
) -> MenuItem:
    return MenuItem(
        id=iid,
        name=name,
        price=price,
        category=category,
        available=available,
        sizes=tuple(sizes),
        size_prices=tuple((size_prices or {}).items()),
    )


def pizzeria_menu() -> List[MenuItem]:
    return [
        item("pep", "Pepperoni", 25.0, category="pizza", sizes=("medium", "large"),
             size_prices={"medium": 25.0, "large": 31.0}),
        item("marg", "Margherita", 22.0, category="pizza", sizes=("small", "medium", "large"),
             size_prices={"small": 18.0, "medium": 22.0, "large": 27.0}),
        item("carb", "Spaghetti Carbonara", 28.0, category="pasta"),
        item("cola", "Cola", 6.0, category="drinks"),
        item("fries", "Fries", 9.0, category="sides"),
        item("calz", "Calzone", 27.0, category="pizza", available=False),
    ]


def three_riverside() -> List[Restaurant]:
    return [
        restaurant("r1", "Bella Napoli Pizzeria"),
        restaurant("r2", "Riverside Grill", cuisine="American"),
        restaurant("r3", "Saigon Corner", cuisine="Vietnamese"),
    ]


class FailingCatalog(Catalog):
    """Every call raises, as a dropped database connection would."""

    def __init__(self) -> None:
        self.calls = 0

    async def restaurants(self, flt: Optional[RestaurantFilter] = None) -> List[Restaurant]:
        self.calls += 1
        raise ConnectionError("catalog down")

    async def menu_items(self, restaurant_id: str) -> List[MenuItem]:
        self.calls += 1
        raise ConnectionError("catalog down")


class SlowCatalog(InMemoryCatalog):
    def __init__(self, delay_s: float, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.delay_s = delay_s

    async def restaurants(self, flt: Optional[RestaurantFilter] = None) -> List[Restaurant]:
        await asyncio.sleep(self.delay_s)
        return await super().restaurants(flt)


class CountingCatalog(InMemoryCatalog):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.restaurant_calls = 0
        self.menu_calls = 0

    async def restaurants(self, flt: Optional[RestaurantFilter] = None) -> List[Restaurant]:
        self.restaurant_calls += 1
        return await super().restaurants(flt)

    async def menu_items(self, restaurant_id: str) -> List[MenuItem]:
        self.menu_calls += 1
        return await super().menu_items(restaurant_id)
