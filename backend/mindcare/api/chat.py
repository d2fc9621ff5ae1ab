"""
Chat API endpoints - Therapy chat sessions and messages.
"""

from typing import Any, Dict, List
from fastapi import APIRouter, Depends, status

from .dependencies import get_session_service
from .errors import handle_service_errors
from ..core.session_service import ChatSessionService
from ..models import ChatSession, SendMessageRequest, SessionStatusUpdate
from ..utils.auth import get_current_user_id

router = APIRouter(prefix="/chat", tags=["chat"])


def _session_document(session: ChatSession) -> Dict[str, Any]:
    """Session as returned to clients (internal storage key omitted)."""
    return session.model_dump(mode="json", by_alias=True, exclude={"id"}, exclude_none=True)


def _session_summary(session: ChatSession) -> Dict[str, Any]:
    document = _session_document(session)
    last_activity = session.messages[-1].timestamp if session.messages else session.start_time
    return {
        "id": session.session_id,
        "sessionId": session.session_id,
        "userId": session.owner_id,
        "title": f"Session {session.session_id}",
        "messages": document["messages"],
        "createdAt": session.start_time.isoformat(),
        "updatedAt": last_activity.isoformat(),
        "status": session.status.value,
    }


@router.get("/sessions")
@handle_service_errors
async def list_sessions(
    user_id: str = Depends(get_current_user_id),
    service: ChatSessionService = Depends(get_session_service)
) -> List[Dict[str, Any]]:
    """List the caller's sessions, newest first."""
    sessions = await service.list_sessions(user_id)
    return [_session_summary(s) for s in sessions]


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def create_session(
    user_id: str = Depends(get_current_user_id),
    service: ChatSessionService = Depends(get_session_service)
):
    """Start a new chat session for the caller."""
    session = await service.create_session(user_id)
    return {
        "message": "Chat session created successfully",
        "sessionId": session.session_id,
    }


@router.get("/sessions/{session_id}")
@handle_service_errors
async def get_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ChatSessionService = Depends(get_session_service)
):
    session = await service.get_session(session_id, user_id)
    return _session_document(session)


@router.post("/sessions/{session_id}/messages")
@handle_service_errors
async def send_message(
    session_id: str,
    request: SendMessageRequest,
    user_id: str = Depends(get_current_user_id),
    service: ChatSessionService = Depends(get_session_service)
):
    """
    Send a message in a session and get the assistant's reply.

    Returns:
        response/message: assistant reply text
        analysis: structured analysis of the user's message
        metadata.progress: emotional state and risk level snapshot
    """
    turn = await service.append_turn(session_id, user_id, request.message)
    metadata = turn.metadata.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {
        "response": turn.reply,
        "message": turn.reply,
        "analysis": turn.analysis.model_dump(mode="json", by_alias=True),
        "metadata": {"progress": metadata.get("progress")},
    }


@router.get("/sessions/{session_id}/history")
@handle_service_errors
async def get_history(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ChatSessionService = Depends(get_session_service)
) -> List[Dict[str, Any]]:
    """Full message history of a session, oldest first."""
    messages = await service.get_history(session_id, user_id)
    return [m.model_dump(mode="json", by_alias=True, exclude_none=True) for m in messages]


@router.patch("/sessions/{session_id}/status")
@handle_service_errors
async def update_session_status(
    session_id: str,
    update: SessionStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    service: ChatSessionService = Depends(get_session_service)
):
    """Complete or archive a session."""
    session = await service.set_status(session_id, user_id, update.status)
    return _session_document(session)
