#!/usr/bin/env python3
"""Priority-ordered intent classifier for the support chat.

Categories are tried in table order and the first one whose triggers appear
in the text wins. Anything unmatched falls through to the fallback category,
so every call returns exactly one category.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from serenity.conversation import lexical_matcher
from serenity.conversation.categories import (
    Category,
    CategoryTable,
    default_category_table,
)

logger = logging.getLogger(__name__)


class IntentClassifier:
    """Classify user utterances into emotional/risk categories."""

    def __init__(self, table: Optional[CategoryTable] = None) -> None:
        self.table = table or default_category_table()

    def classify(self, text: str) -> Category:
        """Return the highest-priority category matching ``text``."""
        return self.explain(text)[0]

    def explain(self, text: str) -> Tuple[Category, Optional[str]]:
        """Return the winning category and the trigger fragment that fired.

        The trigger is None when the fallback category is returned.
        """
        for category in self.table.categories:
            trigger = lexical_matcher.find_trigger(text, category.triggers)
            if trigger is not None:
                logger.debug(f"Classified as '{category.name}' via trigger '{trigger}'")
                return category, trigger

        return self.table.fallback, None
