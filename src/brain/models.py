# src/brain/models.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .intent.intents import Intent, IntentResult, IntentSource


class ExpectedContext(str, Enum):
    NONE = "none"
    SHOW_MORE_OPTIONS = "show_more_options"
    SELECT_RESTAURANT = "select_restaurant"
    CONFIRM_ORDER = "confirm_order"


# -------------------------
# Catalog entities (owned by the catalog collaborator, immutable here)
# -------------------------

@dataclass(frozen=True)
class Restaurant:
    id: str
    name: str
    city: str = ""
    cuisine_type: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "city": self.city,
            "cuisine_type": self.cuisine_type,
            "lat": self.lat,
            "lng": self.lng,
            "address": self.address,
        }


@dataclass(frozen=True)
class MenuItem:
    id: str
    name: str
    price: float
    category: str = ""
    available: bool = True
    sizes: Tuple[str, ...] = ()
    # Optional per-size price override; falls back to `price`
    size_prices: Tuple[Tuple[str, float], ...] = ()

    def price_for(self, size: Optional[str]) -> float:
        if size:
            for s, p in self.size_prices:
                if s == size:
                    return float(p)
        return float(self.price)


# -------------------------
# Orders
# -------------------------

@dataclass
class ParsedOrderItem:
    name: str
    menu_item_id: str
    unit_price: float
    quantity: int = 1
    size: Optional[str] = None
    extras: FrozenSet[str] = frozenset()
    exclusions: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        if int(self.quantity) < 1:
            raise ValueError(f"quantity must be >= 1, got {self.quantity}")
        self.quantity = int(self.quantity)
        self.extras = frozenset(self.extras or ())
        self.exclusions = frozenset(self.exclusions or ())

    @property
    def line_total(self) -> float:
        return float(self.unit_price) * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "menu_item_id": self.menu_item_id,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "size": self.size,
            "extras": sorted(self.extras),
            "exclusions": sorted(self.exclusions),
        }


@dataclass
class Order:
    items: List[ParsedOrderItem] = field(default_factory=list)
    restaurant_id: Optional[str] = None
    restaurant_name: Optional[str] = None

    @property
    def total(self) -> float:
        return round(sum(it.line_total for it in self.items), 2)

    def is_empty(self) -> bool:
        return not self.items

    def extend(self, other: "Order") -> None:
        self.items.extend(other.items)
        if self.restaurant_id is None:
            self.restaurant_id = other.restaurant_id
            self.restaurant_name = other.restaurant_name

    def summary(self) -> str:
        if not self.items:
            return "Empty"
        parts = []
        for it in self.items:
            label = f"{it.name} ({it.size})" if it.size else it.name
            parts.append(f"{it.quantity}x {label}")
        return ", ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "restaurant_id": self.restaurant_id,
            "restaurant_name": self.restaurant_name,
            "items": [it.to_dict() for it in self.items],
            "total": self.total,
        }


# -------------------------
# Session
# -------------------------

@dataclass
class Session:
    session_id: str
    expected_context: ExpectedContext = ExpectedContext.NONE
    pending_order: Optional[Order] = None
    cart: Order = field(default_factory=Order)

    last_restaurant: Optional[Restaurant] = None
    last_location: Optional[str] = None
    last_intent: Optional[Intent] = None

    # Ordered list shown to the user, meaningful while picking a restaurant
    last_restaurants_list: List[Restaurant] = field(default_factory=list)
    list_offset: int = 0

    # normalized "location|cuisine" -> CacheEntry (see src.brain.cache)
    location_cache: Dict[str, Any] = field(default_factory=dict)

    last_updated: float = field(default_factory=time.time)

    def visible_restaurants(self, page_size: int) -> List[Restaurant]:
        start = max(0, int(self.list_offset))
        return self.last_restaurants_list[start:start + max(1, int(page_size))]

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view for the caller; no references into live state."""
        return {
            "session_id": self.session_id,
            "expected_context": self.expected_context.value,
            "pending_order": self.pending_order.to_dict() if self.pending_order else None,
            "cart": self.cart.to_dict(),
            "last_restaurant": self.last_restaurant.to_dict() if self.last_restaurant else None,
            "last_location": self.last_location,
            "last_intent": self.last_intent.value if self.last_intent else None,
            "last_restaurants_list": [r.to_dict() for r in self.last_restaurants_list],
            "list_offset": self.list_offset,
            "last_updated": self.last_updated,
        }


__all__ = [
    "ExpectedContext",
    "Intent",
    "IntentResult",
    "IntentSource",
    "MenuItem",
    "Order",
    "ParsedOrderItem",
    "Restaurant",
    "Session",
]
