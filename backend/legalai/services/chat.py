"""
Chat Service

Bridges user messages to the legal assistant and persists the exchange.
Quota is charged per send attempt: a failed assistant call still counts.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from tortoise.transactions import in_transaction

from legalai.core.errors import NotFoundError, ValidationError
from legalai.models import ChatMessage, ChatSession, MessageRole, User
from legalai.services import quota
from legalai.services.assistant import assistant_service
from legalai.utils.time import iso, utc_now

logger = logging.getLogger("uvicorn.error")

TITLE_MAX = 50
RENAME_MAX = 80


def derive_title(text: str) -> str:
    """First message becomes the title; long messages are cut to 47 chars + '...'."""
    text = text.strip()
    if len(text) > TITLE_MAX:
        return text[:TITLE_MAX - 3] + "..."
    return text


@dataclass
class ChatResult:
    allowed: bool
    stats: dict = field(default_factory=dict)
    session_id: Optional[str] = None
    reply: Optional[str] = None
    reason: Optional[str] = None


def session_to_dict(s: ChatSession) -> dict:
    return {
        "id": str(s.id),
        "title": s.title,
        "createdAt": iso(s.created_at),
        "updatedAt": iso(s.updated_at),
    }


async def _owned_session(user: User, session_id: str) -> ChatSession:
    session = await ChatSession.get_or_none(id=session_id, user=user)
    if not session:
        raise NotFoundError("Chat session not found", code="SESSION_NOT_FOUND")
    return session


async def send_chat_message(user: User, text: str, session_id: Optional[str] = None) -> ChatResult:
    """
    Send one user message and return the assistant's reply.

    Steps: charge quota atomically -> load or lazily create the session
    (and its remote thread) -> persist the user message -> ask the
    assistant -> persist the reply.

    A quota denial is returned as ChatResult(allowed=False) with nothing persisted.
    Assistant failures propagate as AssistantError after the user message
    is stored.
    """
    text = (text or "").strip()
    if not text:
        raise ValidationError("Message cannot be empty")

    # Ownership is checked before any quota is charged
    session = await _owned_session(user, session_id) if session_id else None

    check = await quota.consume(user.id)
    if not check.allowed:
        return ChatResult(allowed=False, stats=check.stats(), reason=check.reason)

    if session is None:
        thread_id = await assistant_service.create_thread()
        session = await ChatSession.create(user=user, title=derive_title(text), thread_id=thread_id)
        logger.info("[chat] new session=%s user=%s", session.id, user.id)

    await ChatMessage.create(session=session, role=MessageRole.USER, content=text)

    reply = await assistant_service.send_message(session.thread_id, text)

    await ChatMessage.create(session=session, role=MessageRole.ASSISTANT, content=reply)
    session.updated_at = utc_now()
    await session.save()

    return ChatResult(
        allowed=True,
        stats=check.stats(),
        session_id=str(session.id),
        reply=reply,
    )


async def list_sessions(user: User) -> list[dict]:
    rows = await ChatSession.filter(user=user).order_by("-updated_at")
    return [session_to_dict(s) for s in rows]


async def get_session(user: User, session_id: str) -> dict:
    session = await _owned_session(user, session_id)
    messages = await ChatMessage.filter(session=session).order_by("created_at")
    if not messages:
        raise NotFoundError("No messages found for this conversation", code="SESSION_EMPTY")
    return {
        "session": session_to_dict(session),
        "messages": [
            {"role": m.role.value, "content": m.content, "createdAt": iso(m.created_at)}
            for m in messages
        ],
    }


async def rename_session(user: User, session_id: str, title: str) -> ChatSession:
    session = await _owned_session(user, session_id)
    title = (title or "").strip()[:RENAME_MAX]
    if not title:
        raise ValidationError("Title cannot be empty")
    session.title = title
    await session.save()
    return session


async def delete_session(user: User, session_id: str) -> None:
    session = await _owned_session(user, session_id)
    async with in_transaction() as conn:
        await ChatMessage.filter(session_id=session.id).using_db(conn).delete()
        await session.delete(using_db=conn)


async def delete_all_history(user: User) -> int:
    """Delete every session (and message) the user owns; returns sessions removed."""
    async with in_transaction() as conn:
        session_ids = await ChatSession.filter(user=user).using_db(conn).values_list("id", flat=True)
        if session_ids:
            await ChatMessage.filter(session_id__in=list(session_ids)).using_db(conn).delete()
        deleted = await ChatSession.filter(user=user).using_db(conn).delete()
    logger.info("[chat] deleted %s session(s) for user=%s", deleted, user.id)
    return deleted
