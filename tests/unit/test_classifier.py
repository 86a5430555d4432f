import pytest

from src.brain.intent.classifier import DEFAULT_RULES, IntentClassifier, rule_names
from src.brain.intent.intents import Intent, IntentSource
from src.brain.intent.rules import Rule, RuleHit, RuleSet


def _c(text):
    return IntentClassifier().classify(text)


def test_find_nearby_with_cuisine_and_location():
    r = _c("where can I eat pizza near Riverside")
    assert r.intent == Intent.FIND_NEARBY
    assert r.confidence == 0.85
    assert r.source == IntentSource.CLASSIC
    assert r.slots["location"] == "Riverside"
    assert r.slots["cuisine"] == "pizza"
    assert r.slots["cuisine_tags"] == ["Italian"]
    assert r.rule == "find_nearby"


def test_empty_is_unknown_at_zero():
    for text in ("", "   ", "?!"):
        r = _c(text)
        assert r.intent == Intent.UNKNOWN
        assert r.confidence == 0.0


@pytest.mark.parametrize(
    "text,intent",
    [
        ("cancel the order", Intent.CANCEL_ORDER),
        ("let's try a different restaurant", Intent.CHANGE_RESTAURANT),
        ("show me more", Intent.SHOW_MORE_OPTIONS),
        ("confirm my order", Intent.CONFIRM_ORDER),
        ("yes", Intent.CONFIRM),
        ("no thanks", Intent.DENY),
        ("recommend something", Intent.RECOMMEND),
        ("hello", Intent.SMALLTALK),
        ("blorp zzz", Intent.UNKNOWN),
    ],
)
def test_rule_table(text, intent):
    assert _c(text).intent == intent


def test_ordinal_is_a_weak_selection():
    r = _c("2")
    assert r.intent == Intent.SELECT_RESTAURANT
    assert r.confidence == 0.7
    assert r.slots["restaurant_index"] == 1


def test_menu_request_names_restaurant():
    r = _c("what's on the menu at Bella Napoli")
    assert r.intent == Intent.MENU_REQUEST
    assert r.slots["restaurant_name"] == "bella napoli"


def test_create_order_with_quantity():
    r = _c("I'd like two large pepperoni")
    assert r.intent == Intent.CREATE_ORDER
    assert r.confidence == 0.85
    assert r.slots["dish"] == "pepperoni"
    assert r.slots["quantity"] == 2
    assert r.slots["size"] == "large"


def test_create_order_without_quantity():
    r = _c("give me a pepperoni")
    assert r.intent == Intent.CREATE_ORDER
    assert r.confidence == 0.7
    assert "quantity" not in r.slots


def test_quantity_and_dish_without_verb():
    r = _c("2 pepperoni")
    assert r.intent == Intent.CREATE_ORDER
    assert r.rule == "quantity_item"


def test_select_by_name():
    r = _c("go with Saigon Corner")
    assert r.intent == Intent.SELECT_RESTAURANT
    assert r.slots["restaurant_name"] == "saigon corner"


def test_order_with_colloquial_dish():
    r = _c("can i have a coke")
    assert r.intent == Intent.CREATE_ORDER
    assert r.slots["dish"] == "coke"


def test_rule_order_is_stable():
    names = rule_names()
    assert names[0] == "cancel_order"
    assert names.index("ordinal_selection") < names.index("find_nearby")
    assert names.index("create_order") < names.index("quantity_item")


def test_ruleset_rejects_duplicate_names():
    r = Rule("x", lambda t: None)
    with pytest.raises(ValueError):
        RuleSet([r, r])


def test_custom_ruleset():
    always = Rule("always_smalltalk", lambda t: RuleHit(Intent.SMALLTALK, 0.5))
    clf = IntentClassifier(rules=RuleSet([always]))
    r = clf.classify("cancel the order")
    assert r.intent == Intent.SMALLTALK
    assert r.rule == "always_smalltalk"


def test_without_drops_a_rule():
    rules = DEFAULT_RULES.without("smalltalk")
    assert "smalltalk" not in rules.names
    assert len(rules) == len(DEFAULT_RULES) - 1
    assert IntentClassifier(rules=rules).classify("hello").intent == Intent.UNKNOWN


def test_menu_at_restaurant_is_not_a_city_search():
    r = _c("show me the pizza menu at Bella Napoli")
    assert r.intent == Intent.MENU_REQUEST
    assert r.slots["restaurant_name"] == "bella napoli"


def test_order_at_restaurant_is_not_a_city_search():
    r = _c("I'll have a pizza at Bella Napoli")
    assert r.intent == Intent.CREATE_ORDER
    assert r.slots["dish"] == "pizza"
    assert r.slots["restaurant_name"] == "bella napoli"

    r = _c("two kebabs at Kebab King please")
    assert r.intent == Intent.CREATE_ORDER
    assert r.slots["quantity"] == 2
    assert r.slots["dish"] == "kebabs"
    assert r.slots["restaurant_name"] == "kebab king"


def test_cuisine_in_city_stays_a_search():
    r = _c("pizza in Riverside")
    assert r.intent == Intent.FIND_NEARBY
    assert r.confidence == 0.8

    # ordering verb plus a city: left below the confident threshold
    r = _c("I want pizza in Riverside")
    assert r.intent == Intent.FIND_NEARBY
    assert r.confidence == 0.7
