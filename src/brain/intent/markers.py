# src/brain/intent/markers.py
from __future__ import annotations

# All markers are normalize()d phrases (lowercase, no diacritics, "what's" -> "what s").
# Matched on word boundaries against the normalized utterance.

_EN_CANCEL_MARKERS = (
    "cancel", "cancel it", "cancel the order", "cancel my order", "forget it", "forget the order",
    "never mind", "nevermind", "scrap that", "scrap it", "stop the order", "don t order",
)
_PL_CANCEL_MARKERS = ("anuluj", "anuluje", "rezygnuje", "nie zamawiam", "odwolaj", "zapomnij")
CANCEL_MARKERS = _EN_CANCEL_MARKERS + _PL_CANCEL_MARKERS

_EN_CHANGE_RESTAURANT_MARKERS = (
    "different restaurant", "another restaurant", "other restaurant", "change restaurant",
    "change the restaurant", "switch restaurant", "switch restaurants", "somewhere else", "another place",
    "different place",
)
_PL_CHANGE_RESTAURANT_MARKERS = ("inna restauracja", "innej restauracji", "zmien restauracje", "gdzie indziej")
CHANGE_RESTAURANT_MARKERS = _EN_CHANGE_RESTAURANT_MARKERS + _PL_CHANGE_RESTAURANT_MARKERS

_EN_MORE_MARKERS = (
    "show more", "show me more", "more options", "more restaurants", "other options", "more places",
    "next page", "next ones", "any others", "what else is there", "see more", "list more",
)
_PL_MORE_MARKERS = ("pokaz wiecej", "wiecej opcji", "inne opcje", "pokaz inne", "nastepne", "wiecej restauracji")
MORE_MARKERS = _EN_MORE_MARKERS + _PL_MORE_MARKERS

# Inside show_more_options a bare "more" is enough
BARE_MORE_MARKERS = ("more", "next", "others", "wiecej", "dalej", "inne")

_EN_CONFIRM_ORDER_MARKERS = (
    "confirm", "confirm the order", "confirm my order", "place the order", "place my order", "place order",
    "that s all", "that s it", "checkout", "check out", "finish the order", "complete the order",
)
_PL_CONFIRM_ORDER_MARKERS = ("potwierdzam", "zatwierdzam", "zatwierdz", "to wszystko", "skladam zamowienie")
CONFIRM_ORDER_MARKERS = _EN_CONFIRM_ORDER_MARKERS + _PL_CONFIRM_ORDER_MARKERS

# Bare affirmation: every token from AFFIRM_VOCAB and at least one core token/phrase
AFFIRM_CORE = (
    "yes", "yeah", "yep", "yup", "sure", "ok", "okay", "correct", "absolutely", "definitely",
    "go ahead", "do it", "add it", "sounds good", "that s right", "of course",
    "tak", "jasne", "dobrze", "zgoda", "pewnie", "oczywiscie", "dodaj to",
)
AFFIRM_VOCAB = frozenset(
    {
        "yes", "yeah", "yep", "yup", "sure", "ok", "okay", "correct", "absolutely", "definitely", "right",
        "fine", "great", "perfect", "please", "add", "it", "that", "s", "go", "ahead", "do", "sounds", "good",
        "of", "course", "thanks", "thank", "you", "alright", "cool", "exactly",
        "tak", "jasne", "dobrze", "zgoda", "pewnie", "oczywiscie", "dodaj", "to", "poprosze", "prosze", "super",
    }
)

NEGATE_CORE = ("no", "nope", "nah", "not", "don t", "nie", "nie chce", "no thanks")
NEGATE_VOCAB = frozenset(
    {
        "no", "nope", "nah", "not", "really", "thanks", "thank", "you", "please", "i", "don", "t", "do",
        "want", "it", "that", "way", "now", "nie", "chce", "dziekuje", "dzieki", "tego", "teraz",
    }
)

_EN_NEARBY_MARKERS = (
    "near", "nearby", "near me", "around here", "close to", "close by", "where can i eat",
    "where can i get", "where to eat", "restaurants in", "places in", "find a restaurant", "find restaurants",
    "find me", "looking for a restaurant", "looking for restaurants", "what s around", "what s nearby",
    "anything around", "places to eat", "restaurants around",
)
_PL_NEARBY_MARKERS = (
    "w poblizu", "w okolicy", "blisko", "gdzie zjem", "gdzie moge zjesc", "znajdz", "szukam restauracji",
    "restauracje w", "niedaleko",
)
NEARBY_MARKERS = _EN_NEARBY_MARKERS + _PL_NEARBY_MARKERS

_EN_ORDER_MARKERS = (
    "i want", "i d like", "i would like", "give me", "can i have", "can i get", "could i have",
    "could i get", "i ll have", "i ll take", "i ll get", "get me", "order", "add", "we ll have", "we want",
    "let me get", "i need",
)
_PL_ORDER_MARKERS = ("poprosze", "zamawiam", "zamow", "chce", "chcialbym", "chcialabym", "dodaj", "wezme", "daj mi")
ORDER_MARKERS = _EN_ORDER_MARKERS + _PL_ORDER_MARKERS

_EN_MENU_MARKERS = (
    "menu", "what do you have", "what do they have", "what s on the menu", "what can i order",
    "what s on offer", "what dishes", "what food", "show me the dishes",
)
_PL_MENU_MARKERS = ("co macie", "co maja", "karta", "karte", "pokaz menu", "co jest w menu", "co oferuja")
MENU_MARKERS = _EN_MENU_MARKERS + _PL_MENU_MARKERS

_EN_RECOMMEND_MARKERS = (
    "recommend", "recommendation", "suggest", "suggestion", "what s good", "what is good", "best dish",
    "most popular", "what should i get", "what should i eat", "surprise me",
)
_PL_RECOMMEND_MARKERS = ("polec", "polecasz", "polecisz", "co dobrego", "co warto")
RECOMMEND_MARKERS = _EN_RECOMMEND_MARKERS + _PL_RECOMMEND_MARKERS

_EN_SMALLTALK_MARKERS = (
    "hi", "hello", "hey", "good morning", "good evening", "good afternoon", "thanks", "thank you",
    "how are you", "who are you", "what s up", "bye", "goodbye",
)
_PL_SMALLTALK_MARKERS = ("czesc", "dzien dobry", "dobry wieczor", "siema", "hej", "dzieki", "dziekuje", "do widzenia")
SMALLTALK_MARKERS = _EN_SMALLTALK_MARKERS + _PL_SMALLTALK_MARKERS

# "go with X", "I choose X", "order from X"
SELECT_BY_NAME_PREFIXES = (
    "i choose", "i ll choose", "choose", "i pick", "pick", "let s go with", "go with", "i ll go with",
    "order from", "eat at", "wybieram", "wybierz", "biore", "zamow z", "zamowie z",
)

CHOOSE_MARKERS = ("choose", "pick", "select", "go with", "wybieram", "wybierz", "biore")

# Semantic fallbacks, only used while the intent is still unknown
CRAVING_MARKERS = (
    "hungry", "starving", "craving", "feel like", "in the mood for", "fancy some", "want to eat",
    "glodny", "glodna", "mam ochote", "zjadlbym", "zjadlabym", "zjem cos",
)
NEARBY_SOFT_MARKERS = ("what s here", "what is here", "anything here", "co jest tutaj", "co tu jest")
RECOMMEND_SOFT_MARKERS = ("anything good", "something good", "cos dobrego", "cokolwiek")
MENU_SOFT_MARKERS = ("what do they serve", "what s there", "what is there", "co tam jest", "co serwuja")
