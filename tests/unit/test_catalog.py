import asyncio

from src.brain.catalog import InMemoryCatalog, MenuCache, RestaurantFilter
from tests.helpers.catalog_fixtures import DEMO_CATALOG, CountingCatalog, demo_catalog


def test_demo_catalog_loads():
    cat = demo_catalog()
    all_rs = asyncio.run(cat.restaurants())
    assert len(all_rs) == 7
    menu = asyncio.run(cat.menu_items("r-bella"))
    pep = next(m for m in menu if m.name == "Pepperoni")
    assert pep.sizes == ("medium", "large")
    assert pep.price_for("large") == 31.0
    assert pep.price_for(None) == 25.0


def test_filter_by_city_and_cuisine():
    cat = demo_catalog()
    rs = asyncio.run(cat.restaurants(RestaurantFilter(city="riverside", cuisines=("American", "Kebab"))))
    assert sorted(r.name for r in rs) == ["Kebab King", "Riverside Grill"]


def test_filter_limit():
    rs = asyncio.run(demo_catalog().restaurants(RestaurantFilter(limit=2)))
    assert len(rs) == 2


def test_unknown_restaurant_has_empty_menu():
    assert asyncio.run(demo_catalog().menu_items("nope")) == []


def test_from_dict_defaults():
    cat = InMemoryCatalog.from_dict({"restaurants": [{"id": 1, "name": "Solo", "menu": [{"id": 9, "name": "Soup"}]}]})
    (r,) = asyncio.run(cat.restaurants())
    assert r.id == "1"
    assert r.lat is None
    (m,) = asyncio.run(cat.menu_items("1"))
    assert m.price == 0.0
    assert m.available is True
    assert m.sizes == ()


def test_menu_cache_hits_catalog_once():
    cat = CountingCatalog.from_json_file(str(DEMO_CATALOG))
    cache = MenuCache(cat, ttl_seconds=60)

    async def _twice():
        a = await cache.get("r-bella")
        b = await cache.get("r-bella")
        return a, b

    a, b = asyncio.run(_twice())
    assert a == b
    assert cat.menu_calls == 1

    cache.invalidate("r-bella")
    asyncio.run(cache.get("r-bella"))
    assert cat.menu_calls == 2


def test_menu_cache_does_not_keep_empty_menus():
    cat = CountingCatalog.from_json_file(str(DEMO_CATALOG))
    cache = MenuCache(cat, ttl_seconds=60)
    asyncio.run(cache.get("nope"))
    asyncio.run(cache.get("nope"))
    assert cat.menu_calls == 2
