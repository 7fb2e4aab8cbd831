#!/usr/bin/env python3
"""
Durable copy of chat transcripts.
Sessions and turns are written through to sqlite as they happen so a session
can be restored after a restart.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from serenity.core.database import DatabaseManager, get_db_manager
from serenity.conversation.turns import Turn

logger = logging.getLogger(__name__)


@dataclass
class StoredSession:
    """Session row plus its turns in transcript order"""
    session_id: str
    user_id: Optional[str] = None
    current_mood: Optional[str] = None
    created_at: Optional[datetime] = None
    turns: List[Turn] = field(default_factory=list)


class TranscriptStore:
    """sqlite-backed transcript persistence"""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self.db_manager = db_manager or get_db_manager()

    def save_session(self, session_id: str, user_id: Optional[str], created_at: datetime):
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT OR IGNORE INTO chat_sessions (session_id, user_id, created_at)
                VALUES (?, ?, ?)
            """, (session_id, user_id, created_at.isoformat()))

        logger.debug(f"Stored chat session {session_id}")

    def append_turn(self, session_id: str, turn: Turn):
        """Insert a turn. Existing rows are never updated."""
        data = turn.to_dict()
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO chat_turns
                (session_id, seq, turn_id, origin, text, content_kind, category, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                session_id, data["seq"], data["id"], data["origin"], data["text"],
                data["content_kind"], data["category"], data["created_at"]
            ))

    def update_mood(self, session_id: str, mood: str):
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE chat_sessions
                SET current_mood = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE session_id = ?
            """, (mood, session_id))

    def load_session(self, session_id: str) -> Optional[StoredSession]:
        """Load a session and its turns ordered by sequence number.

        Args:
            session_id: session id

        Returns:
            StoredSession or None when the session was never stored
        """
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                SELECT session_id, user_id, current_mood, created_at
                FROM chat_sessions
                WHERE session_id = ?
            """, (session_id,))
            row = cursor.fetchone()
            if not row:
                return None

            cursor.execute("""
                SELECT turn_id, seq, text, origin, created_at, content_kind, category
                FROM chat_turns
                WHERE session_id = ?
                ORDER BY seq ASC
            """, (session_id,))

            turns = [
                Turn.from_dict({
                    "id": r[0],
                    "seq": r[1],
                    "text": r[2],
                    "origin": r[3],
                    "created_at": r[4],
                    "content_kind": r[5],
                    "category": r[6],
                })
                for r in cursor.fetchall()
            ]

        return StoredSession(
            session_id=row[0],
            user_id=row[1],
            current_mood=row[2],
            created_at=datetime.fromisoformat(row[3]) if row[3] else None,
            turns=turns,
        )
