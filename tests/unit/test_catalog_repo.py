import asyncio
import json

import pytest

from src.brain.catalog import RestaurantFilter
from src.brain.restaurant.resolver import RestaurantResolver
from src.db.catalog_repo import PostgresCatalog, row_to_menu_item, row_to_restaurant


class FakeConn:
    def __init__(self, rows):
        self.rows = rows
        self.calls = []

    async def fetch(self, sql, *args):
        self.calls.append((sql, args))
        return self.rows


class _Acquire:
    def __init__(self, con):
        self.con = con

    async def __aenter__(self):
        return self.con

    async def __aexit__(self, *exc):
        return False


class FakePool:
    def __init__(self, con):
        self.con = con

    def acquire(self):
        return _Acquire(self.con)


class FakeDB:
    def __init__(self, rows, schema="public"):
        self.con = FakeConn(rows)
        self.schema = schema

    async def acquire_pool(self):
        return FakePool(self.con)


RESTAURANT_ROW = {
    "id": "r-bella", "name": "Bella Napoli Pizzeria", "city": "Riverside", "cuisine_type": "Italian",
    "lat": 50.29, "lng": 18.67, "address": None,
}
MENU_ROW = {
    "id": "m-pep", "name": "Pepperoni", "price": 25, "category": "pizza", "available": True,
    "sizes": None, "size_prices": json.dumps({"medium": 25, "large": 31}),
}


def test_row_mapping():
    r = row_to_restaurant(RESTAURANT_ROW)
    assert r.address == ""
    assert r.lat == 50.29

    m = row_to_menu_item(MENU_ROW)
    assert m.sizes == ("medium", "large")
    assert m.price_for("large") == 31.0


def test_restaurants_query_is_parameterised():
    db = FakeDB([RESTAURANT_ROW])
    cat = PostgresCatalog(db)
    out = asyncio.run(cat.restaurants(RestaurantFilter(city="Riverside", cuisines=("Italian", "Pizza"), limit=5)))

    assert [r.id for r in out] == ["r-bella"]
    sql, args = db.con.calls[0]
    assert "public.restaurants" in sql
    assert "city ILIKE $1" in sql
    assert "(cuisine_type ILIKE $2 OR cuisine_type ILIKE $3)" in sql
    assert "LIMIT $4" in sql
    assert args == ("%Riverside%", "%Italian%", "%Pizza%", 5)


def test_menu_items_query():
    db = FakeDB([MENU_ROW], schema="catalog")
    (m,) = asyncio.run(PostgresCatalog(db).menu_items("r-bella"))
    sql, args = db.con.calls[0]
    assert "catalog.menu_items" in sql
    assert args == ("r-bella",)
    assert m.name == "Pepperoni"


def test_schema_name_is_validated():
    with pytest.raises(ValueError):
        PostgresCatalog(FakeDB([], schema="public; drop table x"))


def test_city_filter_keeps_diacritics():
    db = FakeDB([])
    asyncio.run(RestaurantResolver(PostgresCatalog(db)).find_restaurants_by_location("w Piekary Śląskie"))
    sql, args = db.con.calls[0]
    assert "city ILIKE $1" in sql
    assert args[0] == "%Piekary Śląskie%"
