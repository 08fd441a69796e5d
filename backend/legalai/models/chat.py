# legalai/models/chat.py
"""
Database models for assistant conversations.
A ChatSession is a titled thread tied to one remote assistant thread;
ChatMessages are append-only and ordered by created_at within a session.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatSession(models.Model):
    """
    Chat session database model.

    Relationships:
    - Belongs to a User (many-to-one, cascade delete)
    - Has many ChatMessages (via related_name="messages")
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField(
        "models.User",
        related_name="chat_sessions",
        on_delete=fields.CASCADE
    )
    title = fields.CharField(max_length=128)  # Derived from the first message
    thread_id = fields.CharField(max_length=128)  # External assistant thread handle
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "chat_sessions"


class ChatMessage(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    session = fields.ForeignKeyField(
        "models.ChatSession",
        related_name="messages",
        on_delete=fields.CASCADE
    )
    role = fields.CharEnumField(MessageRole, max_length=16)
    content = fields.TextField()
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "chat_messages"
