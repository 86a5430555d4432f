from src.brain.text import (
    fuzzy_includes,
    fuzzy_match,
    levenshtein,
    normalize,
    strip_connectors,
    token_distance_threshold,
)


def test_normalize_folds_case_diacritics_and_punctuation():
    assert normalize("  Pizzéria ŁÓDŹ!! ") == "pizzeria lodz"
    assert normalize("What's on the menu?") == "what s on the menu"
    assert normalize("pepperoni-pizza_large") == "pepperoni pizza large"


def test_normalize_is_idempotent():
    for s in ["Żółć  gęślą", "I'd like 2x Pepperoni!!", "  ", "Straße ÆØ", "menu... of Bella"]:
        once = normalize(s)
        assert normalize(once) == once


def test_normalize_total_on_empty():
    assert normalize(None) == ""
    assert normalize("") == ""
    assert normalize("?!") == ""


def test_strip_connectors():
    assert strip_connectors("the pizzeria in Riverside") == "pizzeria riverside"


def test_levenshtein():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3


def test_fuzzy_match():
    assert fuzzy_match("Pepperoni", "peperoni") is True
    assert fuzzy_match("Bella", "Bella Napoli Pizzeria") is True
    assert fuzzy_match("sushi", "pizza") is False
    assert fuzzy_match("", "pizza") is False
    assert fuzzy_match(None, None) is False


def test_fuzzy_includes():
    assert fuzzy_includes("Cola", "a cola please") is True
    assert fuzzy_includes("Chicken Tikka Masala", "tikka masala please") is True
    assert fuzzy_includes("Spaghetti Carbonara", "something else") is False
    assert fuzzy_includes("", "anything") is False


def test_token_distance_threshold():
    assert token_distance_threshold("pizza") == 1
    assert token_distance_threshold("pepperoni") == 2
