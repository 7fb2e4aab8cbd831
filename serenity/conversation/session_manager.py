#!/usr/bin/env python3
"""
Chat session manager
Owns each session's transcript, mood and pending-reply state, and runs the
submit -> classify -> select -> delayed delivery cycle.
"""

import asyncio
import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple

from serenity.core.config import settings
from serenity.conversation.categories import ContentKind
from serenity.conversation.errors import InvalidInput, SessionBusy, SessionNotFoundError
from serenity.conversation.intent_classifier import IntentClassifier
from serenity.conversation.response_selector import RandomSource, Response, ResponseSelector
from serenity.conversation.transcript_store import TranscriptStore
from serenity.conversation.turns import Origin, Turn

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    AWAITING_REPLY = "awaiting_reply"


@dataclass
class ChatSession:
    """Mutable session state. Only ConversationSessionManager touches it."""
    session_id: str
    user_id: Optional[str] = None
    turns: List[Turn] = field(default_factory=list)
    current_mood: Optional[str] = None
    pending_reply: bool = False
    created_at: Optional[datetime] = None
    last_activity: datetime = field(default_factory=datetime.now)
    delivery: Optional["asyncio.Task[None]"] = field(default=None, repr=False)

    @property
    def state(self) -> SessionState:
        return SessionState.AWAITING_REPLY if self.pending_reply else SessionState.IDLE

    def touch(self):
        self.last_activity = datetime.now()


@dataclass(frozen=True)
class SessionInfo:
    """Read-only view of a session"""
    session_id: str
    user_id: Optional[str]
    current_mood: Optional[str]
    pending_reply: bool
    state: SessionState
    turn_count: int
    created_at: Optional[datetime]


class ConversationSessionManager:
    """Session/turn controller"""

    def __init__(
        self,
        classifier: Optional[IntentClassifier] = None,
        selector: Optional[ResponseSelector] = None,
        store: Optional[TranscriptStore] = None,
        rng: Optional[RandomSource] = None,
        reply_delay: Optional[Tuple[float, float]] = None,
        greeting: Optional[str] = None,
        idle_timeout: Optional[timedelta] = None,
    ):
        self.rng: RandomSource = rng or random.Random()
        self.classifier = classifier or IntentClassifier()
        self.selector = selector or ResponseSelector(self.rng)
        self.store = store
        self.reply_delay = reply_delay or (
            settings.reply_delay_min_seconds,
            settings.reply_delay_max_seconds,
        )
        if self.reply_delay[0] < 0 or self.reply_delay[0] > self.reply_delay[1]:
            raise ValueError(f"Invalid reply delay range: {self.reply_delay}")
        self.greeting = greeting
        self.idle_timeout = idle_timeout or timedelta(minutes=settings.session_idle_minutes)
        self._sessions: Dict[str, ChatSession] = {}

    # ------------------------------------------------------------------
    # sessions

    def create_session(self, user_id: Optional[str] = None) -> SessionInfo:
        """Create a new chat session.

        Args:
            user_id: owning user (optional)

        Returns:
            SessionInfo: snapshot of the new session
        """
        self.cleanup_expired_sessions()

        session = ChatSession(
            session_id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=datetime.now(),
        )
        self._sessions[session.session_id] = session
        self._persist("save_session", session.session_id, user_id, session.created_at)

        if self.greeting:
            self._append_turn(session, Origin.ASSISTANT, self.greeting)

        logger.info(f"Created chat session: {session.session_id}")
        return self._snapshot(session)

    def get_session(self, session_id: str) -> Optional[SessionInfo]:
        """Return a session snapshot, or None for an unknown id."""
        session = self._lookup(session_id)
        return self._snapshot(session) if session else None

    def get_transcript(self, session_id: str) -> Tuple[Turn, ...]:
        """Return the session's turns in creation order."""
        return tuple(self._require_session(session_id).turns)

    def get_current_mood(self, session_id: str) -> Optional[str]:
        return self._require_session(session_id).current_mood

    def session_count(self) -> int:
        return len(self._sessions)

    def pending_count(self) -> int:
        return sum(1 for s in self._sessions.values() if s.pending_reply)

    def cleanup_expired_sessions(self, now: Optional[datetime] = None) -> int:
        """Drop sessions idle for longer than idle_timeout from memory.

        Sessions awaiting a reply are kept. With a transcript store an
        expired session is restored on its next use; without one it is gone.

        Args:
            now: reference time (defaults to datetime.now())

        Returns:
            int: number of sessions dropped
        """
        cutoff = (now or datetime.now()) - self.idle_timeout
        expired = [
            session_id for session_id, session in self._sessions.items()
            if not session.pending_reply and session.last_activity < cutoff
        ]
        for session_id in expired:
            self._expire_session(session_id)
        return len(expired)

    def _expire_session(self, session_id: str):
        del self._sessions[session_id]
        logger.info(f"Expired idle session {session_id}")

    # ------------------------------------------------------------------
    # turn cycle

    def submit_user_message(self, session_id: str, text: str) -> Optional[Turn]:
        """Accept a user message and schedule the assistant reply.

        Empty input and submissions made while a reply is pending are
        ignored. Must be called from within a running event loop.

        Args:
            session_id: session id
            text: raw user text, stored unchanged

        Returns:
            Turn: the appended user turn, or None when nothing happened
        """
        session = self._require_session(session_id)
        try:
            self._check_submission(session, text)
        except InvalidInput:
            logger.debug(f"Ignored empty message for session {session_id}")
            return None
        except SessionBusy:
            logger.debug(f"Ignored message for busy session {session_id}")
            return None

        loop = asyncio.get_running_loop()

        user_turn = self._append_turn(session, Origin.USER, text)
        session.pending_reply = True

        response = self._respond(text)
        if response.content_kind is ContentKind.RESOURCE:
            logger.warning(f"Crisis language detected in session {session_id}; escalating")

        delay = self.rng.uniform(*self.reply_delay)
        task = loop.create_task(self._deliver_after(session, response, delay))
        task.add_done_callback(lambda t: self._on_delivery_done(session, response, t))
        session.delivery = task
        logger.debug(
            f"Session {session_id}: category={response.category}, reply in {delay:.2f}s"
        )
        return user_turn

    async def wait_for_reply(self, session_id: str) -> None:
        """Wait until the pending reply, if any, has been appended."""
        session = self._require_session(session_id)
        if session.delivery is not None:
            await asyncio.wait({session.delivery})

    async def drain(self) -> None:
        """Wait for every pending reply across all sessions."""
        pending = {s.delivery for s in self._sessions.values() if s.delivery is not None}
        if pending:
            logger.info(f"Waiting for {len(pending)} pending replies")
            await asyncio.wait(pending)

    def _check_submission(self, session: ChatSession, text: str):
        if not text or not text.strip():
            raise InvalidInput()
        if session.pending_reply:
            raise SessionBusy()

    def _respond(self, text: str) -> Response:
        category = self.classifier.classify(text)
        return self.selector.select(category)

    async def _deliver_after(self, session: ChatSession, response: Response, delay: float):
        await asyncio.sleep(delay)
        self._deliver(session, response)

    def _on_delivery_done(self, session: ChatSession, response: Response, task: "asyncio.Task[None]"):
        # Still the outstanding delivery: the task was cancelled or failed
        # before appending, so append the reply now.
        if session.delivery is task:
            if not task.cancelled() and task.exception() is not None:
                logger.error(f"Reply delivery failed for session {session.session_id}: {task.exception()}")
            self._deliver(session, response)

    def _deliver(self, session: ChatSession, response: Response):
        if not session.pending_reply:
            logger.error(f"Dropping unexpected reply for idle session {session.session_id}")
            return

        self._append_turn(
            session,
            Origin.ASSISTANT,
            response.text,
            content_kind=response.content_kind,
            category=response.category,
        )
        if response.mood_label is not None:
            session.current_mood = response.mood_label
            self._persist("update_mood", session.session_id, response.mood_label)

        session.pending_reply = False
        session.delivery = None

    # ------------------------------------------------------------------
    # internals

    def _append_turn(
        self,
        session: ChatSession,
        origin: Origin,
        text: str,
        content_kind: ContentKind = ContentKind.PLAIN,
        category: Optional[str] = None,
    ) -> Turn:
        now = datetime.now()
        if session.turns and now <= session.turns[-1].created_at:
            now = session.turns[-1].created_at + timedelta(microseconds=1)

        seq = session.turns[-1].seq + 1 if session.turns else 1
        turn = Turn(
            id=f"{time.time_ns()}-{seq}",
            seq=seq,
            text=text,
            origin=origin,
            created_at=now,
            content_kind=content_kind,
            category=category,
        )
        session.turns.append(turn)
        session.touch()
        self._persist("append_turn", session.session_id, turn)
        return turn

    def _persist(self, method_name: str, *args):
        """Run a store call; storage failures never reach session state."""
        if self.store is None:
            return
        try:
            getattr(self.store, method_name)(*args)
        except Exception as e:
            logger.error(f"Transcript store call {method_name} failed: {e}")

    def _lookup(self, session_id: str) -> Optional[ChatSession]:
        session = self._sessions.get(session_id)
        if session is None and self.store is not None:
            session = self._restore(session_id)
        if session is not None:
            session.touch()
        return session

    def _require_session(self, session_id: str) -> ChatSession:
        session = self._lookup(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _restore(self, session_id: str) -> Optional[ChatSession]:
        try:
            stored = self.store.load_session(session_id)
        except Exception as e:
            logger.error(f"Failed to restore session {session_id}: {e}")
            return None
        if stored is None:
            return None

        session = ChatSession(
            session_id=stored.session_id,
            user_id=stored.user_id,
            turns=list(stored.turns),
            current_mood=stored.current_mood,
            created_at=stored.created_at,
        )
        self._sessions[session_id] = session

        # A user turn without a reply means the process stopped mid-delay.
        if session.turns and session.turns[-1].origin is Origin.USER:
            session.pending_reply = True
            self._deliver(session, self._respond(session.turns[-1].text))
            logger.info(f"Delivered missing reply for restored session {session_id}")

        logger.info(f"Restored chat session {session_id} with {len(session.turns)} turns")
        return session

    def _snapshot(self, session: ChatSession) -> SessionInfo:
        return SessionInfo(
            session_id=session.session_id,
            user_id=session.user_id,
            current_mood=session.current_mood,
            pending_reply=session.pending_reply,
            state=session.state,
            turn_count=len(session.turns),
            created_at=session.created_at,
        )


_session_manager = None

def get_session_manager() -> ConversationSessionManager:
    """Return the shared session manager"""
    global _session_manager
    if _session_manager is None:
        store = TranscriptStore() if settings.persist_transcripts else None
        _session_manager = ConversationSessionManager(
            store=store,
            greeting=settings.greeting_message if settings.greeting_enabled else None,
        )
    return _session_manager
