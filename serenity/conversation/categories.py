#!/usr/bin/env python3
"""Category table for the support chat.

Each category pairs a set of trigger fragments with the reply it produces.
The order of ``DEFAULT_CATEGORIES`` is the evaluation order of the
classifier: crisis language is always checked first.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Tuple

from serenity.conversation.errors import CategoryTableError


class ContentKind(str, Enum):
    """Structural kind of an assistant reply."""
    PLAIN = "plain"          # conversation only
    EXERCISE = "exercise"    # structured coping technique
    RESOURCE = "resource"    # crisis hotline / emergency contacts


CRISIS = "crisis"
PANIC = "panic"
ANXIETY = "anxiety"
SADNESS = "sadness"
ANGER = "anger"
SLEEP = "sleep"
LONELINESS = "loneliness"
OVERWHELM = "overwhelm"
POSITIVE = "positive"
GRATITUDE = "gratitude"
MINDFULNESS = "mindfulness"
FALLBACK = "fallback"


@dataclass(frozen=True)
class Category:
    name: str
    triggers: Tuple[str, ...]
    templates: Tuple[str, ...]
    content_kind: ContentKind = ContentKind.PLAIN
    mood_label: Optional[str] = None
    variable: bool = False

    @property
    def is_crisis(self) -> bool:
        return self.name == CRISIS


class CategoryTable:
    """Ordered, validated collection of categories plus the fallback.

    Priority is the position in ``categories`` (index 0 is evaluated first).
    """

    def __init__(self, categories: Iterable[Category], fallback: Category) -> None:
        self.categories: Tuple[Category, ...] = tuple(categories)
        self.fallback = fallback
        self._validate()
        self._by_name: Dict[str, Category] = {c.name: c for c in self}

    def _validate(self) -> None:
        if not self.categories:
            raise CategoryTableError("category table is empty")
        if not self.categories[0].is_crisis:
            raise CategoryTableError(
                f"first category must be '{CRISIS}', got '{self.categories[0].name}'"
            )

        seen = set()
        for category in self:
            if category.name in seen:
                raise CategoryTableError(f"duplicate category name: {category.name}")
            seen.add(category.name)

            if not category.templates or not all(t.strip() for t in category.templates):
                raise CategoryTableError(f"category '{category.name}' has an empty template")
            if len(category.templates) > 1 and not category.variable:
                raise CategoryTableError(
                    f"category '{category.name}' has several templates but is not variable"
                )

            # resource content is reserved for crisis escalation
            if (category.content_kind is ContentKind.RESOURCE) != category.is_crisis:
                raise CategoryTableError(
                    f"category '{category.name}' breaks the crisis/resource pairing"
                )

        for category in self.categories:
            if not category.triggers:
                raise CategoryTableError(f"category '{category.name}' has no triggers")
            for trigger in category.triggers:
                if not trigger.strip() or trigger != trigger.lower():
                    raise CategoryTableError(
                        f"category '{category.name}' has a non-lowercase or blank trigger: {trigger!r}"
                    )

        if self.fallback.triggers:
            raise CategoryTableError("fallback category must not declare triggers")
        if self.fallback.name in {c.name for c in self.categories}:
            raise CategoryTableError("fallback name collides with a ranked category")

    def __iter__(self) -> Iterator[Category]:
        yield from self.categories
        yield self.fallback

    def __len__(self) -> int:
        return len(self.categories) + 1

    def get(self, name: str) -> Category:
        return self._by_name[name]

    def priority_of(self, name: str) -> int:
        """Return the evaluation rank of a category; the fallback ranks last."""
        for index, category in enumerate(self.categories):
            if category.name == name:
                return index
        if name == self.fallback.name:
            return len(self.categories)
        raise KeyError(name)


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    # Order matters: crisis must stay first.
    Category(
        name=CRISIS,
        triggers=(
            "suicidal", "suicide", "kill myself", "hurt myself", "harm myself",
            "self harm", "self-harm", "end it all", "end my life", "want to die",
            "no reason to live", "better off dead", "don't want to live", "don’t want to live",
            "do not want to live", "not want to be alive", "don't want to be alive",
            "don’t want to be alive", "take my own life", "can't go on", "can’t go on",
            "cannot go on",
        ),
        templates=(
            "I'm really sorry you're carrying this much pain, and I'm glad you told me. "
            "You deserve support right now from someone who can help:\n"
            "- 988 Suicide & Crisis Lifeline: call or text 988 (U.S.)\n"
            "- Crisis Text Line: text HOME to 741741\n"
            "- If you are in immediate danger, call 911 or your local emergency number.\n"
            "If you're outside the U.S., please contact your local emergency services "
            "or a crisis line near you. Would you like to stay and talk while you reach out?",
        ),
        content_kind=ContentKind.RESOURCE,
        mood_label="distressed",
    ),
    Category(
        name=PANIC,
        triggers=(
            "panic attack", "panic", "can't breathe", "can’t breathe",
            "cannot breathe", "hyperventilat",
        ),
        templates=(
            "You're safe right now, and this feeling will pass. Let's slow your breathing "
            "together: breathe in through your nose for 4 counts, hold for 4, and breathe out "
            "slowly through your mouth for 6. Repeat it a few times with me. "
            "Can you name five things you can see around you?",
        ),
        content_kind=ContentKind.EXERCISE,
        mood_label="panicked",
    ),
    Category(
        name=ANXIETY,
        triggers=("anxious", "anxiety", "worried", "worry", "stress", "nervous", "on edge"),
        templates=(
            "Anxiety can be really challenging. Let's try some breathing exercises together. "
            "Take a deep breath in for 4 counts, hold for 4, and exhale for 4. How does that feel?",
        ),
        content_kind=ContentKind.EXERCISE,
        mood_label="anxious",
    ),
    Category(
        name=SADNESS,
        triggers=(
            "sad", "depressed", "depression", "feeling down", "feel down", "unhappy",
            "hopeless", "crying", "heartbroken", "miserable", "so down", "i'm down",
            "i’m down", "i am down",
        ),
        templates=(
            "I hear that you're feeling sad. It's okay to feel this way sometimes. "
            "Can you tell me more about what's been troubling you?",
        ),
        mood_label="sad",
    ),
    Category(
        name=ANGER,
        triggers=(
            "angry", "frustrated", "frustrating", "furious", "mad at", "so mad", "i'm mad",
            "i’m mad", "i am mad", "annoyed", "irritated",
        ),
        templates=(
            "I understand you're feeling angry. Those feelings are valid. "
            "Would you like to talk about what triggered these feelings?",
        ),
        mood_label="angry",
    ),
    Category(
        name=SLEEP,
        triggers=("can't sleep", "can’t sleep", "insomnia", "sleep", "nightmare", "exhausted", "tired"),
        templates=(
            "Rest matters so much for how we feel. Try a short wind-down: put screens away, "
            "dim the lights, and relax each muscle group from your toes up to your shoulders, "
            "holding each for 5 seconds before letting go. What usually keeps you awake?",
        ),
        content_kind=ContentKind.EXERCISE,
    ),
    Category(
        name=LONELINESS,
        triggers=("lonely", "alone", "isolated", "no friends", "nobody cares", "left out"),
        templates=(
            "Feeling alone can be so heavy. I'm here with you right now. "
            "Is there someone you've felt close to before that you might reach out to, "
            "even with a short message?",
        ),
        mood_label="lonely",
    ),
    Category(
        name=OVERWHELM,
        triggers=(
            "overwhelmed", "overwhelming", "too much", "can't cope", "can’t cope",
            "cannot cope", "burned out", "burnt out", "falling apart",
        ),
        templates=(
            "When everything piles up, a quick reset can help. Try the 5-4-3-2-1 grounding "
            "exercise: name 5 things you see, 4 you can touch, 3 you hear, 2 you smell, and "
            "1 you taste. Then pick just one small thing to do next. What feels most pressing?",
        ),
        content_kind=ContentKind.EXERCISE,
        mood_label="overwhelmed",
    ),
    Category(
        name=POSITIVE,
        triggers=(
            "better", "good", "happy", "great", "calmer", "relieved", "feeling fine",
            "i'm fine", "i’m fine", "i am fine",
        ),
        templates=(
            "I'm glad to hear you're feeling better! What has been helping you feel this way? "
            "It's important to recognize these positive moments.",
            "That's wonderful to hear. What do you think made the difference today?",
            "I love hearing that. Hold on to this feeling; what would help you keep it going?",
        ),
        mood_label="good",
        variable=True,
    ),
    Category(
        name=GRATITUDE,
        triggers=("thank", "grateful", "appreciate it"),
        templates=(
            "You're very welcome! I'm glad I could help. "
            "Remember, I'm always here when you need someone to talk to.",
        ),
    ),
    Category(
        name=MINDFULNESS,
        triggers=("meditat", "mindful", "breathing exercise", "relax", "calm down", "grounding"),
        templates=(
            "Let's take a mindful minute. Sit comfortably, close your eyes if you like, and "
            "notice your breath without changing it. When your mind wanders, gently bring it "
            "back. Stay with ten slow breaths, then tell me how you feel.",
        ),
        content_kind=ContentKind.EXERCISE,
    ),
)

FALLBACK_CATEGORY = Category(
    name=FALLBACK,
    triggers=(),
    templates=(
        "I appreciate you sharing that with me. Your feelings are important and valid. "
        "Would you like to explore this feeling a bit more, or is there something else on your mind?",
        "Thank you for telling me. I'm listening; what else would you like to share?",
        "That sounds important. How has this been affecting you lately?",
        "I'm here for you. Can you tell me a little more about what's on your mind?",
    ),
    variable=True,
)


def default_category_table() -> CategoryTable:
    return CategoryTable(DEFAULT_CATEGORIES, FALLBACK_CATEGORY)
