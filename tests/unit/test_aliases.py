from src.brain.aliases import (
    default_lexicon,
    detect_cuisine,
    dish_canonicals,
    expand,
    expand_cuisine,
    load_lexicon,
    nearby_cities,
)
from src.brain.text import normalize


def test_expand_appends_canonical_forms():
    out = expand("a coke and chips")
    assert out.startswith("a coke and chips")
    assert {"cola", "fries"} <= set(out.split())


def test_expand_is_monotonic():
    samples = [
        "where can I eat pizza near Riverside",
        "two pepperonni and a coke",
        "something asian style",
        "hello there",
        "",
    ]
    for s in samples:
        assert set(normalize(s).split()) <= set(expand(s).split())


def test_expand_does_not_repeat_terms_already_said():
    out = expand("cola coke")
    assert out.split().count("cola") == 1


def test_expand_cuisine():
    assert expand_cuisine("asian style") == ["Vietnamese", "Chinese", "Thai"]
    assert expand_cuisine("Pizza") == ["Italian"]
    assert expand_cuisine("Ethiopian") == ["Ethiopian"]
    assert expand_cuisine("") == []
    assert expand_cuisine(None) == []


def test_detect_cuisine_prefers_longest_phrase():
    assert detect_cuisine("where can I eat pizza near Riverside") == ("pizza", ["Italian"])
    assert detect_cuisine("something asian style please")[0] == "asian style"
    assert detect_cuisine("just a table for two") is None


def test_dish_canonicals():
    assert set(dish_canonicals("two pepperonni and a coke")) == {"pepperoni", "cola"}
    assert dish_canonicals("a margherita") == []


def test_nearby_cities():
    assert nearby_cities("Riverside") == ["Old Town", "Hillview"]
    assert nearby_cities("Atlantis") == []


def test_load_lexicon_merges_yaml(tmp_path):
    p = tmp_path / "lexicon.yaml"
    p.write_text(
        "dish_aliases:\n"
        "  zapiekanka: [baguette]\n"
        "nearby_cities:\n"
        "  Riverside: [Lakeside]\n",
        encoding="utf-8",
    )
    lex = load_lexicon(str(p))
    assert lex.dish_aliases["zapiekanka"] == ["baguette"]
    assert lex.nearby_cities["riverside"] == ["Lakeside"]
    # built-ins survive
    assert lex.dish_aliases["coke"] == ["cola"]
    assert "baguette" in expand("one zapiekanka", lex).split()


def test_load_lexicon_missing_file_falls_back(tmp_path):
    lex = load_lexicon(str(tmp_path / "nope.yaml"))
    assert lex.dish_aliases == default_lexicon().dish_aliases


def test_load_lexicon_broken_yaml_falls_back(tmp_path):
    p = tmp_path / "broken.yaml"
    p.write_text("dish_aliases: [unclosed\n", encoding="utf-8")
    lex = load_lexicon(str(p))
    assert lex.cuisine_aliases == default_lexicon().cuisine_aliases
