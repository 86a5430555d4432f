from src.brain.errors import AmbiguousMatch, MatchNotFound
from src.brain.parser.order_parser import parse_order_items
from src.brain.parser.validator import ValidationReason, is_pizza_like, validate_order, validate_order_item
from src.brain.parser.variants import DEFAULT_SIZES
from tests.helpers.catalog_fixtures import item, pizzeria_menu


def _validate(text, menu=None):
    menu = menu if menu is not None else pizzeria_menu()
    (c,) = parse_order_items(text, menu)
    return validate_order_item(c, menu)


def test_missing_size_lists_offered_sizes():
    v = _validate("give me a pepperoni")
    assert v.reason == ValidationReason.MISSING_SIZE
    assert v.suggestions == ("medium", "large")
    assert v.dish == "Pepperoni"
    assert v.item is None


def test_size_selects_price():
    v = _validate("large pepperoni")
    assert v.ok
    assert v.item.size == "large"
    assert v.item.unit_price == 31.0
    assert v.item.menu_item_id == "pep"


def test_invalid_size():
    v = _validate("small pepperoni")
    assert v.reason == ValidationReason.INVALID_SIZE
    assert v.suggestions == ("medium", "large")


def test_unavailable():
    v = _validate("calzone")
    assert v.reason == ValidationReason.UNAVAILABLE
    assert v.dish == "Calzone"
    assert "Calzone" not in v.suggestions


def test_not_found():
    v = _validate("sushi")
    assert v.reason == ValidationReason.NOT_FOUND
    assert isinstance(v.as_error(), MatchNotFound)


def test_quantity_and_price_for_unsized_dish():
    v = _validate("2 cola")
    assert v.ok
    assert v.item.quantity == 2
    assert v.item.size is None
    assert v.item.line_total == 12.0


def test_size_on_unsized_non_pizza_is_dropped():
    v = _validate("large cola")
    assert v.ok
    assert v.item.size is None
    assert v.item.unit_price == 6.0


def test_pizza_without_declared_sizes_asks_for_size():
    menu = [item("haw", "Hawaiian Pizza", 30.0, category="pizza")]
    v = _validate("hawaiian pizza", menu)
    assert v.reason == ValidationReason.MISSING_SIZE
    assert v.suggestions == DEFAULT_SIZES


def test_single_declared_size_is_picked():
    menu = [item("wrap", "Kebab Wrap", 21.0, sizes=("large",), size_prices={"large": 24.0})]
    v = _validate("kebab wrap", menu)
    assert v.ok
    assert v.item.size == "large"
    assert v.item.unit_price == 24.0


def test_ambiguous_distinct_dishes():
    menu = [item("cb", "Chicken Burger", 24.0), item("cw", "Chicken Wrap", 21.0)]
    v = _validate("chicken", menu)
    assert v.reason == ValidationReason.AMBIGUOUS
    assert set(v.suggestions) == {"Chicken Burger", "Chicken Wrap"}
    assert isinstance(v.as_error(), AmbiguousMatch)


def test_validate_order_keeps_line_order():
    menu = pizzeria_menu()
    results = validate_order(parse_order_items("two large pepperoni and a cola", menu), menu)
    assert [r.reason for r in results] == [ValidationReason.OK, ValidationReason.OK]
    assert sum(r.item.line_total for r in results) == 68.0
    assert results[0].as_error() is None


def test_is_pizza_like():
    assert is_pizza_like(item("x", "Capricciosa", 29.0, category="pizza"))
    assert not is_pizza_like(item("y", "Cola", 6.0, category="drinks"))


def _split_pepperoni():
    return [
        item("p-s", "Pepperoni", 20.0, category="pizza"),
        item("p-m", "Pepperoni", 25.0, category="pizza"),
        item("p-l", "Pepperoni", 31.0, category="pizza"),
    ]


def test_size_never_picks_one_of_several_unlabelled_rows():
    v = _validate("large pepperoni", _split_pepperoni())
    assert v.reason == ValidationReason.AMBIGUOUS
    assert v.item is None
    assert v.suggestions == ("Pepperoni (20.00)", "Pepperoni (25.00)", "Pepperoni (31.00)")


def test_several_rows_without_size_ask_for_size():
    v = _validate("pepperoni", _split_pepperoni())
    assert v.reason == ValidationReason.MISSING_SIZE
    assert v.suggestions == DEFAULT_SIZES


def test_size_matches_row_named_by_size():
    menu = [
        item("k-s", "Kebab Small", 18.0, category="kebab"),
        item("k-l", "Kebab Large", 24.0, category="kebab"),
    ]
    v = _validate("large kebab", menu)
    assert v.ok
    assert v.item.menu_item_id == "k-l"
    assert v.item.size == "large"
    assert v.item.unit_price == 24.0
    assert _validate("small kebab", menu).item.menu_item_id == "k-s"


def test_shared_declared_size_on_several_rows_is_ambiguous():
    menu = [
        item("w1", "Kebab Wrap", 21.0, sizes=("large",)),
        item("w2", "Kebab Wrap", 23.0, sizes=("large",)),
    ]
    assert _validate("kebab wrap", menu).reason == ValidationReason.AMBIGUOUS
    assert _validate("large kebab wrap", menu).reason == ValidationReason.AMBIGUOUS
