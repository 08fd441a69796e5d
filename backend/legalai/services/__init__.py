"""
Services Module

Business logic behind the API routers:
- quota: per-role daily message budget
- subscription: plan state machine and payment records
- advisory: human-review requests (pending -> reviewed)
- assistant / chat: OpenAI Assistants bridge and chat persistence
- profile / storage: profile edits and avatar object storage
- laws: static law catalog search
- metrics: admin dashboard aggregates
"""

# External collaborators (singletons)
from .assistant import AssistantService, assistant_service
from .storage import AvatarStorage, avatar_storage

# Law catalog
from .laws import search_laws

__all__ = [
    "AssistantService",
    "assistant_service",
    "AvatarStorage",
    "avatar_storage",
    "search_laws",
]
