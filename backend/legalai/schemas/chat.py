# legalai/schemas/chat.py
"""
Pydantic schemas for the chat endpoints.
"""
from typing import Optional

from pydantic import BaseModel


class ChatMessageIn(BaseModel):
    message: str
    sessionId: Optional[str] = None  # Omit to start a new conversation


class SessionRenameIn(BaseModel):
    title: str
