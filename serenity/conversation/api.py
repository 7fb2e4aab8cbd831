#!/usr/bin/env python3
"""
Support chat API
REST endpoints for chat sessions, message submission and transcripts
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
import logging

from serenity.conversation.errors import SessionNotFoundError
from serenity.conversation.session_manager import (
    get_session_manager,
    ConversationSessionManager,
    SessionInfo,
)
from serenity.conversation.turns import Turn

logger = logging.getLogger(__name__)

conversation_router = APIRouter(prefix="/conversation")


# Pydantic models
class TurnModel(BaseModel):
    """Single transcript turn"""
    id: str
    seq: int
    text: str
    origin: str
    created_at: datetime
    content_kind: str
    category: Optional[str] = None

    @classmethod
    def from_turn(cls, turn: Turn) -> "TurnModel":
        return cls(**turn.to_dict())


class CreateSessionRequest(BaseModel):
    """Session creation request"""
    user_id: Optional[str] = None


class SessionInfoResponse(BaseModel):
    """Session state"""
    session_id: str
    user_id: Optional[str] = None
    current_mood: Optional[str] = None
    pending_reply: bool
    state: str
    turn_count: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_info(cls, info: SessionInfo) -> "SessionInfoResponse":
        return cls(
            session_id=info.session_id,
            user_id=info.user_id,
            current_mood=info.current_mood,
            pending_reply=info.pending_reply,
            state=info.state.value,
            turn_count=info.turn_count,
            created_at=info.created_at,
        )


class CreateSessionResponse(BaseModel):
    """Session creation response"""
    session: SessionInfoResponse
    turns: List[TurnModel]


class SendMessageRequest(BaseModel):
    """Message submission. Blank text is accepted by the schema and ignored."""
    message: str
    wait: bool = Field(default=False)  # block until the reply is delivered


class SendMessageResponse(BaseModel):
    """Message submission result"""
    session_id: str
    accepted: bool
    pending_reply: bool
    current_mood: Optional[str] = None
    turns: List[TurnModel]


class TranscriptResponse(BaseModel):
    """Transcript in creation order"""
    session_id: str
    turns: List[TurnModel]
    total_turns: int


def _require_info(manager: ConversationSessionManager, session_id: str) -> SessionInfo:
    info = manager.get_session(session_id)
    if info is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return info


@conversation_router.post("/sessions", response_model=CreateSessionResponse)
async def create_session(
    request: CreateSessionRequest,
    manager: ConversationSessionManager = Depends(get_session_manager),
):
    """Create a chat session"""
    info = manager.create_session(user_id=request.user_id)
    turns = manager.get_transcript(info.session_id)
    return CreateSessionResponse(
        session=SessionInfoResponse.from_info(info),
        turns=[TurnModel.from_turn(t) for t in turns],
    )


@conversation_router.get("/sessions/{session_id}", response_model=SessionInfoResponse)
async def get_session_info(
    session_id: str,
    manager: ConversationSessionManager = Depends(get_session_manager),
):
    """Session state: mood, pending flag, turn count"""
    return SessionInfoResponse.from_info(_require_info(manager, session_id))


@conversation_router.post("/sessions/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(
    session_id: str,
    request: SendMessageRequest,
    manager: ConversationSessionManager = Depends(get_session_manager),
):
    """Submit a user message; the reply is appended after a short delay"""
    try:
        turn = manager.submit_user_message(session_id, request.message)
        if turn is not None and request.wait:
            await manager.wait_for_reply(session_id)
        info = _require_info(manager, session_id)
        turns = manager.get_transcript(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    return SendMessageResponse(
        session_id=session_id,
        accepted=turn is not None,
        pending_reply=info.pending_reply,
        current_mood=info.current_mood,
        turns=[TurnModel.from_turn(t) for t in turns],
    )


@conversation_router.get("/sessions/{session_id}/transcript", response_model=TranscriptResponse)
async def get_transcript(
    session_id: str,
    manager: ConversationSessionManager = Depends(get_session_manager),
):
    """Ordered transcript snapshot"""
    try:
        turns = manager.get_transcript(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    return TranscriptResponse(
        session_id=session_id,
        turns=[TurnModel.from_turn(t) for t in turns],
        total_turns=len(turns),
    )
