"""
Profile Service

Self-service profile edits and avatar replacement.
"""
import asyncio
import logging
from typing import Optional

from legalai.models import User
from legalai.services.storage import avatar_storage
from legalai.utils.time import iso

logger = logging.getLogger("uvicorn.error")

# API field -> model attribute
EDITABLE_FIELDS = {
    "fullName": "full_name",
    "phone": "phone",
    "address": "address",
    "emailNotifications": "email_notifications",
    "weeklySummary": "weekly_summary",
    "darkMode": "dark_mode",
}


def profile_to_dict(u: User) -> dict:
    return {
        "id": str(u.id),
        "username": u.username,
        "email": u.email,
        "fullName": u.full_name,
        "phone": u.phone,
        "address": u.address,
        "role": u.role.value,
        "subscriptionEnd": iso(u.subscription_end),
        "pendingDowngrade": u.pending_downgrade,
        "emailNotifications": u.email_notifications,
        "weeklySummary": u.weekly_summary,
        "darkMode": u.dark_mode,
        "avatarUrl": u.avatar_url,
        "createdAt": iso(u.created_at),
    }


async def update_profile(user: User, changes: dict) -> User:
    """Apply the provided (non-None) editable fields; unknown keys are ignored."""
    for key, attr in EDITABLE_FIELDS.items():
        value = changes.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip() or None
        setattr(user, attr, value)
    await user.save()
    return user


async def set_avatar(user: User, data: bytes, content_type: Optional[str]) -> User:
    """
    Replace the user's avatar: the previous object is removed best-effort,
    the new one is written and its public URL stored on the profile.
    File I/O runs in the default executor.
    """
    loop = asyncio.get_running_loop()
    user.avatar_url = await loop.run_in_executor(
        None, avatar_storage.replace, str(user.id), user.avatar_url, data, content_type
    )
    await user.save()
    logger.info("[storage] avatar updated user=%s", user.id)
    return user
