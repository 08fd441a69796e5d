# legalai/models/quota.py
"""
Database models for the daily message quota.

- RoleQuota: one row per role, admin-editable daily message limit
- MessageCount: one row per user per calendar day, created lazily, never decremented
"""
from tortoise import fields, models

from .user import Role


class RoleQuota(models.Model):
    id = fields.IntField(pk=True)
    role = fields.CharEnumField(Role, max_length=16, unique=True)
    daily_message_limit = fields.IntField()
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "role_quotas"


class MessageCount(models.Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField(
        "models.User",
        related_name="message_counts",
        on_delete=fields.CASCADE,
    )
    date = fields.DateField()  # Calendar date in the quota timezone
    count = fields.IntField(default=0)

    class Meta:
        table = "message_counts"
        unique_together = (("user", "date"),)
