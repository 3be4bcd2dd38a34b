import pytest

from bistro.dm.intent_parser import (
    CATEGORY,
    CONFIRM,
    MAX_INPUT_LEN,
    MAX_QUANTITY,
    MORE,
    QUANTITY,
    SELECT_ITEM,
    UNKNOWN,
    IntentParser,
    normalize_text,
    parse_positive_int,
)
from bistro.dm.phases import DialogPhase


@pytest.fixture
def parser():
    return IntentParser()


@pytest.mark.parametrize("text, category", [
    ("I want a pizza", "pizzas"),
    ("PIZZA please", "pizzas"),
    ("a Caesar salad", "salads"),
    ("some pasta", "pastas"),
    ("any appetizers?", "appetizers"),
    ("what starters do you have", "appetizers"),
    ("dessert time", "desserts"),
])
def test_category_keywords(parser, text, category):
    intent = parser.parse(text, DialogPhase.INITIAL)
    assert intent.kind == CATEGORY
    assert intent.category == category


def test_unrecognized_initial_text_is_unknown(parser):
    assert parser.parse("hello there", DialogPhase.INITIAL).kind == UNKNOWN
    assert parser.parse("", DialogPhase.INITIAL).kind == UNKNOWN
    assert parser.parse("1", DialogPhase.INITIAL).kind == UNKNOWN


def test_category_switch_while_options_listed(parser):
    intent = parser.parse("actually show me desserts", DialogPhase.PRESENTING_OPTIONS)
    assert intent.kind == CATEGORY
    assert intent.category == "desserts"


def test_category_words_ignored_outside_browsing_phases(parser):
    assert parser.parse("pizza", DialogPhase.AWAITING_QUANTITY).kind == UNKNOWN
    assert parser.parse("pizza", DialogPhase.AWAITING_CONFIRMATION).kind == UNKNOWN


def test_selection_number(parser):
    intent = parser.parse("2", DialogPhase.PRESENTING_OPTIONS)
    assert intent.kind == SELECT_ITEM
    assert intent.number == 2


@pytest.mark.parametrize("text", ["0", "-1", "1.5", "the first", "abc"])
def test_selection_rejects_non_positive_and_non_integer(parser, text):
    assert parser.parse(text, DialogPhase.PRESENTING_OPTIONS).kind == UNKNOWN


def test_quantity_number(parser):
    intent = parser.parse("3 please", DialogPhase.AWAITING_QUANTITY)
    assert intent.kind == QUANTITY
    assert intent.number == 3


@pytest.mark.parametrize("text", ["0", "-3", "abc", "2.5", ""])
def test_quantity_rejections(parser, text):
    assert parser.parse(text, DialogPhase.AWAITING_QUANTITY).kind == UNKNOWN


@pytest.mark.parametrize("text, expected", [
    ("yes", True),
    ("Yeah sure", True),
    ("y", True),
    ("no", False),
    ("nope", False),
    ("N", False),
])
def test_more_answers(parser, text, expected):
    intent = parser.parse(text, DialogPhase.AWAITING_MORE)
    assert intent.kind == MORE
    assert intent.value is expected


def test_ambiguous_more_answer_is_unknown(parser):
    assert parser.parse("maybe later", DialogPhase.AWAITING_MORE).kind == UNKNOWN
    # single letters only count as the whole answer
    assert parser.parse("why", DialogPhase.AWAITING_MORE).kind == UNKNOWN


def test_confirm_answers_accept_confirm_and_cancel(parser):
    assert parser.parse("confirm", DialogPhase.AWAITING_CONFIRMATION).value is True
    assert parser.parse("cancel it", DialogPhase.AWAITING_CONFIRMATION).value is False
    assert parser.parse("yes", DialogPhase.AWAITING_CONFIRMATION).kind == CONFIRM
    # "confirm" is only special while confirming
    assert parser.parse("confirm", DialogPhase.AWAITING_MORE).kind == UNKNOWN


def test_affirmative_checked_first(parser):
    assert parser.parse("yes, nothing else", DialogPhase.AWAITING_MORE).value is True


def test_custom_keyword_table():
    parser = IntentParser({
        "category_keywords": [["soda", "drinks"]],
        "affirmative": {"contains": ["sure"], "exact": []},
        "negative": {"contains": ["never"], "exact": []},
    })
    assert parser.parse("a soda", DialogPhase.INITIAL).category == "drinks"
    assert parser.parse("pizza", DialogPhase.INITIAL).kind == UNKNOWN
    assert parser.parse("sure", DialogPhase.AWAITING_MORE).value is True


def test_parse_positive_int():
    assert parse_positive_int("I'll take 4") == 4
    assert parse_positive_int("+2") == 2
    assert parse_positive_int("0") is None
    assert parse_positive_int("3,5") is None
    assert parse_positive_int(None) is None


def test_normalize_text_truncates_long_input():
    assert len(normalize_text("x" * (MAX_INPUT_LEN + 50))) == MAX_INPUT_LEN
    assert normalize_text("  hi  ") == "hi"


def test_quantity_upper_bound(parser):
    assert parser.parse(str(MAX_QUANTITY), DialogPhase.AWAITING_QUANTITY).number == MAX_QUANTITY
    assert parser.parse(str(MAX_QUANTITY + 1), DialogPhase.AWAITING_QUANTITY).kind == UNKNOWN
    assert parser.parse("99999999999999999999", DialogPhase.AWAITING_QUANTITY).kind == UNKNOWN
