#!/usr/bin/env python3
"""Transcript turn model."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from serenity.conversation.categories import ContentKind


class Origin(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One message in a session transcript. Never modified after creation."""
    id: str
    seq: int
    text: str
    origin: Origin
    created_at: datetime
    content_kind: ContentKind = ContentKind.PLAIN
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "seq": self.seq,
            "text": self.text,
            "origin": self.origin.value,
            "created_at": self.created_at.isoformat(),
            "content_kind": self.content_kind.value,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        return cls(
            id=data["id"],
            seq=int(data["seq"]),
            text=data["text"],
            origin=Origin(data["origin"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            content_kind=ContentKind(data.get("content_kind") or ContentKind.PLAIN.value),
            category=data.get("category"),
        )
