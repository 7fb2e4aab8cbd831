import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from serenity.conversation import categories as cat
from serenity.conversation.categories import (
    Category,
    CategoryTable,
    ContentKind,
    DEFAULT_CATEGORIES,
    FALLBACK_CATEGORY,
    default_category_table,
)
from serenity.conversation.errors import CategoryTableError
from serenity.conversation.intent_classifier import IntentClassifier


EXPECTED_ORDER = [
    cat.CRISIS, cat.PANIC, cat.ANXIETY, cat.SADNESS, cat.ANGER, cat.SLEEP,
    cat.LONELINESS, cat.OVERWHELM, cat.POSITIVE, cat.GRATITUDE, cat.MINDFULNESS,
]


@pytest.fixture
def classifier():
    return IntentClassifier()


def test_priority_order_is_fixed():
    table = default_category_table()
    assert [c.name for c in table.categories] == EXPECTED_ORDER
    assert table.fallback.name == cat.FALLBACK
    assert table.priority_of(cat.CRISIS) == 0
    assert table.priority_of(cat.FALLBACK) == len(EXPECTED_ORDER)


@pytest.mark.parametrize("text, expected", [
    ("I feel anxious", cat.ANXIETY),
    ("I'm having a panic attack", cat.PANIC),
    ("I can't breathe", cat.PANIC),
    ("I've been feeling down and hopeless", cat.SADNESS),
    ("My boss makes me so frustrated", cat.ANGER),
    ("I have insomnia again", cat.SLEEP),
    ("I feel so lonely", cat.LONELINESS),
    ("Everything is too much, I'm overwhelmed", cat.OVERWHELM),
    ("I'm feeling better today", cat.POSITIVE),
    ("thanks for listening", cat.GRATITUDE),
    ("Can you guide me through a meditation?", cat.MINDFULNESS),
    ("I think I'm suicidal", cat.CRISIS),
    ("I don't want to live anymore", cat.CRISIS),
    ("I don’t want to live anymore", cat.CRISIS),
    ("Some days I do not want to be alive", cat.CRISIS),
    ("I keep thinking I'll take my own life", cat.CRISIS),
    ("I can't go on like this", cat.CRISIS),
    ("I can’t go on like this", cat.CRISIS),
    ("the bus was late", cat.FALLBACK),
])
def test_classify_examples(classifier, text, expected):
    assert classifier.classify(text).name == expected


@pytest.mark.parametrize("text, expected", [
    ("I am so down today", cat.SADNESS),
    ("I'm down again", cat.SADNESS),
    ("I’m down", cat.SADNESS),
    ("I am down about work", cat.SADNESS),
    ("I'm mad", cat.ANGER),
    ("I’m mad at nobody in particular", cat.ANGER),
    ("I am mad about it", cat.ANGER),
    ("I'm fine", cat.POSITIVE),
    ("I’m fine, really", cat.POSITIVE),
    ("I am fine now", cat.POSITIVE),
    ("Just feeling fine this morning", cat.POSITIVE),
])
def test_short_mood_phrases(classifier, text, expected):
    assert classifier.classify(text).name == expected


@pytest.mark.parametrize("text", ["lowdown", "download the app", "made a sandwich", "a fine day"])
def test_short_words_inside_other_words_do_not_match(classifier, text):
    assert classifier.classify(text).name == cat.FALLBACK


def test_crisis_wins_over_earlier_lower_priority_keyword(classifier):
    category = classifier.classify("I feel anxious and want to end it all")
    assert category.name == cat.CRISIS
    assert category.content_kind is ContentKind.RESOURCE


@pytest.mark.parametrize("other", DEFAULT_CATEGORIES[1:], ids=lambda c: c.name)
@pytest.mark.parametrize("crisis_trigger", DEFAULT_CATEGORIES[0].triggers)
def test_crisis_precedence_against_every_category(classifier, other, crisis_trigger):
    for text in (
        f"{other.triggers[0]} and {crisis_trigger}",
        f"{crisis_trigger} but also {other.triggers[0]}",
    ):
        assert classifier.classify(text).is_crisis, text


def test_higher_priority_wins_regardless_of_position(classifier):
    # anxiety (3) beats positive (9) and gratitude (10)
    assert classifier.classify("thanks, I'm good but still worried").name == cat.ANXIETY
    # panic (2) beats anxiety (3)
    assert classifier.classify("stress is giving me a panic").name == cat.PANIC


def test_each_trigger_classifies_to_its_own_category(classifier):
    for category in DEFAULT_CATEGORIES:
        for trigger in category.triggers:
            assert classifier.classify(f"well, {trigger}.").name == category.name, trigger


def test_classify_is_total(classifier):
    for text in ["x", "???", "1234", "   hello   ", "été", "a" * 500]:
        result = classifier.classify(text)
        assert isinstance(result, Category)


def test_explain_reports_trigger(classifier):
    category, trigger = classifier.explain("Honestly I WANT TO DIE")
    assert category.name == cat.CRISIS
    assert trigger == "want to die"

    category, trigger = classifier.explain("nothing in particular")
    assert category is FALLBACK_CATEGORY
    assert trigger is None


def test_resource_only_from_crisis():
    table = default_category_table()
    for category in table:
        assert (category.content_kind is ContentKind.RESOURCE) == category.is_crisis


def test_classifier_uses_injected_table():
    table = CategoryTable(
        [
            Category(cat.CRISIS, ("hurt myself",), ("call for help",), ContentKind.RESOURCE),
            Category("weather", ("rain",), ("bring an umbrella",)),
        ],
        Category(cat.FALLBACK, (), ("ok",)),
    )
    classifier = IntentClassifier(table)
    assert classifier.classify("RAIN again").name == "weather"
    assert classifier.classify("sunny").name == cat.FALLBACK


class TestCategoryTableValidation:

    def _crisis(self, **overrides):
        fields = dict(
            name=cat.CRISIS,
            triggers=("suicidal",),
            templates=("call 988",),
            content_kind=ContentKind.RESOURCE,
        )
        fields.update(overrides)
        return Category(**fields)

    def _fallback(self, **overrides):
        fields = dict(name=cat.FALLBACK, triggers=(), templates=("ok",), variable=True)
        fields.update(overrides)
        return Category(**fields)

    def test_resource_outside_crisis_rejected(self):
        with pytest.raises(CategoryTableError):
            CategoryTable(
                [self._crisis(), Category("tips", ("tip",), ("a",), ContentKind.RESOURCE)],
                self._fallback(),
            )

    def test_crisis_must_be_resource(self):
        with pytest.raises(CategoryTableError):
            CategoryTable([self._crisis(content_kind=ContentKind.PLAIN)], self._fallback())

    def test_crisis_must_come_first(self):
        with pytest.raises(CategoryTableError):
            CategoryTable(
                [Category("sad", ("sad",), ("a",)), self._crisis()],
                self._fallback(),
            )

    def test_fallback_cannot_be_resource(self):
        with pytest.raises(CategoryTableError):
            CategoryTable([self._crisis()], self._fallback(content_kind=ContentKind.RESOURCE))

    def test_uppercase_trigger_rejected(self):
        with pytest.raises(CategoryTableError):
            CategoryTable([self._crisis(triggers=("Suicidal",))], self._fallback())

    def test_empty_templates_rejected(self):
        with pytest.raises(CategoryTableError):
            CategoryTable([self._crisis()], self._fallback(templates=()))

    def test_duplicate_names_rejected(self):
        with pytest.raises(CategoryTableError):
            CategoryTable(
                [self._crisis(), Category("x", ("a",), ("a",)), Category("x", ("b",), ("b",))],
                self._fallback(),
            )

    def test_multiple_templates_require_variable(self):
        with pytest.raises(CategoryTableError):
            CategoryTable(
                [self._crisis(), Category("x", ("a",), ("one", "two"))],
                self._fallback(),
            )
