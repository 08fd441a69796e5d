# legalai/models/user.py
"""
Database model for user profiles.
Represents an authenticated account together with its plan (role),
subscription expiration, notification preferences and avatar reference.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class Role(str, Enum):
    """
    Access tier of a profile.

    - free: default tier, smallest daily quota
    - paid: "Plus" subscriber, bounded by subscription_end
    - admin: administrator, outside the subscription lifecycle
    """
    FREE = "free"
    PAID = "paid"
    ADMIN = "admin"


class User(models.Model):
    """
    User profile database model.

    Relationships:
    - Has many ChatSessions (related_name="chat_sessions")
    - Has many MessageCounts (related_name="message_counts")
    - Has many Advisories (related_name="advisories")
    - Has many Payments (related_name="payments")

    Invariants:
    - pending_downgrade may only be True while role == paid
    - role and subscription_end jointly determine the quota tier
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(
        max_length=256,
        unique=True,
        index=True
    )  # User login name (must be unique, indexed for fast lookups)
    email = fields.CharField(max_length=256, null=True)
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never plain text
    role = fields.CharEnumField(Role, max_length=16, default=Role.FREE)

    # Contact fields
    full_name = fields.CharField(max_length=256, null=True)
    phone = fields.CharField(max_length=32, null=True)
    address = fields.CharField(max_length=512, null=True)

    # Subscription state
    subscription_end = fields.DatetimeField(null=True)  # Paid-plan expiration (null for free users)
    pending_downgrade = fields.BooleanField(default=False)  # Lapse to free at period end

    # Preferences
    email_notifications = fields.BooleanField(default=True)
    weekly_summary = fields.BooleanField(default=False)
    dark_mode = fields.BooleanField(default=False)

    avatar_url = fields.CharField(max_length=1024, null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"
