#!/usr/bin/env python3
"""Keyword matching used by the intent classifier.

Matching is plain substring containment on a lowercased copy of the input.
There is no tokenizing or stemming, so every decision can be traced back to
a single trigger fragment.
"""

from __future__ import annotations

from typing import Iterable, Optional


def normalize(text: str) -> str:
    """Return the comparison form of ``text``."""
    return text.lower()


def find_trigger(text: str, triggers: Iterable[str]) -> Optional[str]:
    """Return the first trigger fragment contained in ``text``, if any."""
    lowered = normalize(text)
    for trigger in triggers:
        if trigger in lowered:
            return trigger
    return None


def matches(text: str, triggers: Iterable[str]) -> bool:
    """Return True if any trigger fragment is a substring of ``text``.

    Multi-word triggers such as ``"can't breathe"`` only match the same
    contiguous characters.
    """
    return find_trigger(text, triggers) is not None
