from src.brain.restaurant.selection import extract_ordinal, select_from_list
from tests.helpers.catalog_fixtures import three_riverside


def test_extract_ordinal_pure_selection_phrases():
    assert extract_ordinal("2") == 2
    assert extract_ordinal("the second one") == 2
    assert extract_ordinal("number two") == 2
    assert extract_ordinal("I'll take the 3rd") == 3
    assert extract_ordinal("druga") == 2
    assert extract_ordinal("one") == 1
    assert extract_ordinal("the second one please") == 2


def test_extract_ordinal_rejects_content():
    assert extract_ordinal("2 pepperoni") is None
    assert extract_ordinal("second pizza with ham") is None
    assert extract_ordinal("pizza") is None
    assert extract_ordinal("") is None
    assert extract_ordinal("the first or the second") is None


def test_select_by_ordinal():
    rs = three_riverside()
    sel = select_from_list("2", rs)
    assert sel.index == 1
    assert sel.restaurant.name == "Riverside Grill"
    assert sel.method == "ordinal"


def test_ordinal_out_of_range():
    assert select_from_list("5", three_riverside()) is None


def test_select_by_name_fragment():
    sel = select_from_list("the saigon one", three_riverside())
    assert sel is not None
    assert sel.index == 2
    assert sel.method == "name"


def test_no_clear_leader():
    assert select_from_list("something nice", three_riverside()) is None
    assert select_from_list("2", []) is None
