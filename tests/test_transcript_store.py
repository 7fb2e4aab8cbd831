#!/usr/bin/env python3
"""
Transcript persistence tests
sqlite round trips, session restore and turn serialization
"""

import os
import sys
import asyncio
import random
import sqlite3
import tempfile
import unittest
from unittest.mock import patch
from datetime import datetime, timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from serenity.core.database import DatabaseManager
from serenity.conversation.categories import ContentKind
from serenity.conversation.session_manager import ConversationSessionManager
from serenity.conversation.transcript_store import TranscriptStore
from serenity.conversation.turns import Origin, Turn


class TestTurnSerialization(unittest.TestCase):

    def test_to_dict_keeps_every_field(self):
        turn = Turn(
            id="1700000000000-3",
            seq=3,
            text="Take a deep breath",
            origin=Origin.ASSISTANT,
            created_at=datetime(2026, 1, 2, 3, 4, 5, 678901),
            content_kind=ContentKind.EXERCISE,
            category="anxiety",
        )
        data = turn.to_dict()

        self.assertEqual(data["origin"], "assistant")
        self.assertEqual(data["content_kind"], "exercise")
        self.assertEqual(data["created_at"], "2026-01-02T03:04:05.678901")
        self.assertEqual(Turn.from_dict(data), turn)

    def test_from_dict_defaults_to_plain(self):
        turn = Turn.from_dict({
            "id": "a",
            "seq": 1,
            "text": "hi",
            "origin": "user",
            "created_at": "2026-01-01T00:00:00",
        })
        self.assertIs(turn.content_kind, ContentKind.PLAIN)
        self.assertIsNone(turn.category)


class TestTranscriptStore(unittest.TestCase):

    def setUp(self):
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.db_path = self.test_db.name
        self.test_db.close()

        self.store = TranscriptStore(DatabaseManager(self.db_path))

    def tearDown(self):
        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(self.db_path + suffix):
                os.unlink(self.db_path + suffix)

    def _manager(self, greeting="Hello!"):
        return ConversationSessionManager(
            rng=random.Random(0),
            reply_delay=(0.0, 0.0),
            greeting=greeting,
            store=self.store,
        )

    def _converse(self, manager, session_id, messages):
        async def run():
            for message in messages:
                manager.submit_user_message(session_id, message)
                await manager.wait_for_reply(session_id)
        asyncio.run(run())

    def test_load_missing_session(self):
        self.assertIsNone(self.store.load_session("nope"))

    def test_turns_round_trip_in_order(self):
        manager = self._manager()
        session_id = manager.create_session(user_id="user-1").session_id
        self._converse(manager, session_id, ["I feel anxious", "thanks for listening"])

        stored = self.store.load_session(session_id)
        self.assertEqual(stored.user_id, "user-1")
        self.assertEqual(stored.current_mood, "anxious")
        self.assertEqual(tuple(stored.turns), manager.get_transcript(session_id))
        self.assertEqual([t.seq for t in stored.turns], [1, 2, 3, 4, 5])

    def test_session_restored_by_new_manager(self):
        first = self._manager()
        session_id = first.create_session().session_id
        self._converse(first, session_id, ["I feel so lonely"])

        second = self._manager()
        self.assertEqual(second.get_transcript(session_id), first.get_transcript(session_id))
        self.assertEqual(second.get_current_mood(session_id), "lonely")

        info = second.get_session(session_id)
        self.assertFalse(info.pending_reply)
        self.assertEqual(info.turn_count, 3)

    def test_restore_delivers_missing_reply(self):
        created = datetime.now()
        self.store.save_session("orphan", None, created)
        self.store.append_turn("orphan", Turn(
            id="1-1",
            seq=1,
            text="I want to end it all",
            origin=Origin.USER,
            created_at=created,
        ))

        manager = self._manager()
        transcript = manager.get_transcript("orphan")

        self.assertEqual(len(transcript), 2)
        self.assertIs(transcript[1].origin, Origin.ASSISTANT)
        self.assertIs(transcript[1].content_kind, ContentKind.RESOURCE)
        self.assertEqual(len(self.store.load_session("orphan").turns), 2)

    def test_seq_continues_after_lost_write_and_restore(self):
        first = self._manager()
        session_id = first.create_session().session_id

        original = self.store.append_turn
        failed = []

        def flaky_append(sid, turn):
            if turn.text == "hello" and not failed:
                failed.append(turn)
                raise sqlite3.OperationalError("database is locked")
            return original(sid, turn)

        with patch.object(self.store, "append_turn", side_effect=flaky_append):
            self._converse(first, session_id, ["hello"])
        self.assertEqual([t.seq for t in self.store.load_session(session_id).turns], [1, 3])

        second = self._manager()
        self._converse(second, session_id, ["I feel anxious"])

        seqs = [t.seq for t in second.get_transcript(session_id)]
        self.assertEqual(seqs, [1, 3, 4, 5])
        self.assertEqual(len(set(t.id for t in second.get_transcript(session_id))), 4)

        stored = self.store.load_session(session_id)
        self.assertEqual([t.seq for t in stored.turns], [1, 3, 4, 5])
        self.assertEqual(stored.turns[2].text, "I feel anxious")
        self.assertEqual(stored.current_mood, "anxious")

    def test_expired_session_restored_from_store(self):
        manager = self._manager()
        session_id = manager.create_session().session_id
        self._converse(manager, session_id, ["I feel so lonely"])
        before = manager.get_transcript(session_id)

        self.assertEqual(manager.cleanup_expired_sessions(now=datetime.now() + timedelta(hours=2)), 1)
        self.assertEqual(manager.session_count(), 0)

        self.assertEqual(manager.get_transcript(session_id), before)
        self.assertEqual(manager.get_current_mood(session_id), "lonely")
        self.assertEqual(manager.session_count(), 1)

    def test_duplicate_turn_rejected(self):
        created = datetime.now()
        self.store.save_session("s", None, created)
        turn = Turn(id="1-1", seq=1, text="hi", origin=Origin.USER, created_at=created)
        self.store.append_turn("s", turn)

        with self.assertRaises(Exception):
            self.store.append_turn("s", turn)


if __name__ == '__main__':
    unittest.main()
