# legalai/api/v1/routers/chat.py
import logging

from fastapi import APIRouter, Depends

from legalai.api.v1.deps import get_current_user
from legalai.core.errors import ServiceError, to_http
from legalai.models.user import User
from legalai.schemas.chat import ChatMessageIn, SessionRenameIn
from legalai.services import chat as chat_service
from legalai.services import quota
from legalai.services.assistant import assistant_service

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/messages")
async def send_message(body: ChatMessageIn, user: User = Depends(get_current_user)):
    """
    Send a message to the legal assistant.

    Omitting sessionId starts a new conversation titled after the message.
    Each attempt is charged against today's quota before the assistant is called.

    Returns:
        dict: On success:
            {"success": True, "data": {"sessionId", "reply", "stats"}}
        When the daily quota is exhausted (HTTP 200, nothing persisted):
            {"success": False, "error": {"code": "DAILY_LIMIT_REACHED", ...}, "data": {"stats"}}

    Raises:
        HTTPException (404): SESSION_NOT_FOUND
        HTTPException (502/504): ASSISTANT_FAILED / ASSISTANT_TIMEOUT
    """
    try:
        result = await chat_service.send_chat_message(user, body.message, body.sessionId)
    except ServiceError as e:
        if e.status_code >= 500:
            logger.warning("[chat] send failed user=%s: %s", user.id, e.code)
        raise to_http(e)

    if not result.allowed:
        return {
            "success": False,
            "error": {"code": result.reason, "message": "Daily message limit reached"},
            "data": {"stats": result.stats},
        }
    return {
        "success": True,
        "data": {"sessionId": result.session_id, "reply": result.reply, "stats": result.stats},
    }


@router.get("/status")
async def chat_status(user: User = Depends(get_current_user)):
    """Assistant availability and today's quota, for the chat screen header."""
    check = await quota.check(user.id)
    return {
        "success": True,
        "data": {
            "assistantAvailable": assistant_service.is_available(),
            "canSend": check.allowed,
            "reason": check.reason,
            "stats": check.stats(),
        },
    }


@router.get("/sessions")
async def list_sessions(user: User = Depends(get_current_user)):
    return {"success": True, "data": {"items": await chat_service.list_sessions(user)}}


@router.delete("/sessions")
async def delete_all_sessions(user: User = Depends(get_current_user)):
    """Delete the user's entire chat history."""
    deleted = await chat_service.delete_all_history(user)
    return {"success": True, "data": {"deleted": deleted}}


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, user: User = Depends(get_current_user)):
    try:
        data = await chat_service.get_session(user, session_id)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": data}


@router.patch("/sessions/{session_id}")
async def rename_session(session_id: str, body: SessionRenameIn, user: User = Depends(get_current_user)):
    try:
        s = await chat_service.rename_session(user, session_id, body.title)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": chat_service.session_to_dict(s)}


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, user: User = Depends(get_current_user)):
    try:
        await chat_service.delete_session(user, session_id)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": {"ok": True}}
