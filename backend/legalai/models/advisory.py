# legalai/models/advisory.py
import uuid
from enum import Enum
from tortoise import fields, models


class AdvisoryStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"  # Terminal


class Advisory(models.Model):
    """
    Human-reviewed legal question.
    - response / responded_at / responded_by_name are all null while pending
      and all set once reviewed
    - responded_by_name is a snapshot of the reviewer; the responded_by link
      is cleared if that admin account is later deleted
    - status only moves pending -> reviewed
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="advisories", on_delete=fields.CASCADE)

    full_name = fields.CharField(max_length=256)
    email = fields.CharField(max_length=256)
    subject = fields.CharField(max_length=256)
    description = fields.TextField()

    status = fields.CharEnumField(AdvisoryStatus, max_length=16, default=AdvisoryStatus.PENDING)
    response = fields.TextField(null=True)
    responded_at = fields.DatetimeField(null=True)
    responded_by = fields.ForeignKeyField(
        "models.User", related_name="answered_advisories", null=True, on_delete=fields.SET_NULL
    )
    responded_by_name = fields.CharField(max_length=256, null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "advisories"
