#!/usr/bin/env python3
"""Turn a classified category into the assistant's reply."""

from __future__ import annotations

import random
from typing import NamedTuple, Optional, Protocol, Sequence, TypeVar

from serenity.conversation.categories import Category, ContentKind

T = TypeVar("T")


class RandomSource(Protocol):
    """Subset of ``random.Random`` the conversation layer relies on."""

    def choice(self, seq: Sequence[T]) -> T: ...

    def uniform(self, a: float, b: float) -> float: ...


class Response(NamedTuple):
    text: str
    content_kind: ContentKind
    mood_label: Optional[str]
    category: str


class ResponseSelector:
    """Pick reply text for a category.

    Fixed categories always return their single template. Variable categories
    (the fallback among them) choose uniformly among their templates, so the
    same reply may come up twice in a row.
    """

    def __init__(self, rng: Optional[RandomSource] = None) -> None:
        self.rng: RandomSource = rng or random.Random()

    def select(self, category: Category) -> Response:
        if category.variable:
            text = self.rng.choice(category.templates)
        else:
            text = category.templates[0]

        return Response(
            text=text,
            content_kind=category.content_kind,
            mood_label=category.mood_label,
            category=category.name,
        )
