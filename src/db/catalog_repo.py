from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from src.brain.catalog import Catalog, RestaurantFilter
from src.brain.models import MenuItem, Restaurant
from src.db.neon import NeonDB

logger = logging.getLogger(__name__)

_IDENT_RX = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _schema_ident(schema: str) -> str:
    if not _IDENT_RX.match(schema or ""):
        raise ValueError(f"invalid schema name: {schema!r}")
    return schema


def _size_prices(raw: Any) -> Dict[str, float]:
    if raw is None:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return {}
    if not isinstance(raw, dict):
        return {}
    out: Dict[str, float] = {}
    for k, v in raw.items():
        try:
            out[str(k)] = float(v)
        except (TypeError, ValueError):
            continue
    return out


def row_to_restaurant(row: Any) -> Restaurant:
    return Restaurant(
        id=str(row["id"]),
        name=str(row["name"]),
        city=str(row["city"] or ""),
        cuisine_type=str(row["cuisine_type"] or ""),
        lat=float(row["lat"]) if row["lat"] is not None else None,
        lng=float(row["lng"]) if row["lng"] is not None else None,
        address=str(row["address"] or ""),
    )


def row_to_menu_item(row: Any) -> MenuItem:
    sp = _size_prices(row["size_prices"])
    sizes = list(row["sizes"] or []) or list(sp.keys())
    return MenuItem(
        id=str(row["id"]),
        name=str(row["name"]),
        price=float(row["price"] or 0.0),
        category=str(row["category"] or ""),
        available=bool(row["available"]),
        sizes=tuple(str(s) for s in sizes),
        size_prices=tuple(sp.items()),
    )


class PostgresCatalog(Catalog):
    """
    Read-only catalog over two tables:
      <schema>.restaurants(id, name, city, cuisine_type, lat, lng, address)
      <schema>.menu_items(id, restaurant_id, name, price, category, available, sizes text[], size_prices jsonb)
    """

    def __init__(self, db: NeonDB) -> None:
        self.db = db
        self.schema = _schema_ident(db.schema)

    async def restaurants(self, flt: Optional[RestaurantFilter] = None) -> List[Restaurant]:
        flt = flt or RestaurantFilter()
        where: List[str] = []
        args: List[Any] = []

        if flt.city:
            args.append(f"%{flt.city.strip()}%")
            where.append(f"city ILIKE ${len(args)}")
        if flt.cuisines:
            ors = []
            for c in flt.cuisines:
                args.append(f"%{c.strip()}%")
                ors.append(f"cuisine_type ILIKE ${len(args)}")
            where.append("(" + " OR ".join(ors) + ")")

        sql = f"SELECT id, name, city, cuisine_type, lat, lng, address FROM {self.schema}.restaurants"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY name"
        if flt.limit:
            args.append(int(flt.limit))
            sql += f" LIMIT ${len(args)}"

        pool = await self.db.acquire_pool()
        async with pool.acquire() as con:
            rows = await con.fetch(sql, *args)
        logger.debug("restaurants query city=%r cuisines=%r -> %d", flt.city, flt.cuisines, len(rows))
        return [row_to_restaurant(r) for r in rows]

    async def menu_items(self, restaurant_id: str) -> List[MenuItem]:
        sql = (
            "SELECT id, name, price, category, available, sizes, size_prices "
            f"FROM {self.schema}.menu_items WHERE restaurant_id = $1 ORDER BY category, name"
        )
        pool = await self.db.acquire_pool()
        async with pool.acquire() as con:
            rows = await con.fetch(sql, str(restaurant_id))
        return [row_to_menu_item(r) for r in rows]
