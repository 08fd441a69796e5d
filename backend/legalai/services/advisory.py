"""
Advisory Workflow

pending -> reviewed (terminal). Users submit questions; an administrator
attaches a response exactly once.
"""
import logging
from typing import Optional

from legalai.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from legalai.models import Advisory, AdvisoryStatus, User
from legalai.utils.time import iso, utc_now

logger = logging.getLogger("uvicorn.error")


def advisory_to_dict(a: Advisory) -> dict:
    return {
        "id": str(a.id),
        "userId": str(a.user_id),
        "fullName": a.full_name,
        "email": a.email,
        "subject": a.subject,
        "description": a.description,
        "status": a.status.value,
        "response": a.response,
        "respondedAt": iso(a.responded_at),
        "respondedBy": str(a.responded_by_id) if a.responded_by_id else None,
        "respondedByName": a.responded_by_name,
        "createdAt": iso(a.created_at),
        "updatedAt": iso(a.updated_at),
    }


async def create_advisory(
    user: User,
    full_name: str,
    email: str,
    subject: str,
    description: str,
) -> Advisory:
    fields = {
        "full_name": (full_name or "").strip(),
        "email": (email or "").strip(),
        "subject": (subject or "").strip(),
        "description": (description or "").strip(),
    }
    missing = [k for k, v in fields.items() if not v]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")
    advisory = await Advisory.create(user=user, status=AdvisoryStatus.PENDING, **fields)
    logger.info("[advisory] created id=%s user=%s", advisory.id, user.id)
    return advisory


async def list_user_advisories(user: User) -> list[Advisory]:
    return await Advisory.filter(user=user).order_by("-created_at")


async def list_advisories(
    status: Optional[AdvisoryStatus] = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Advisory], int]:
    qs = Advisory.all().order_by("-created_at")
    if status:
        qs = qs.filter(status=status)
    total = await qs.count()
    rows = await qs.offset(offset).limit(limit)
    return rows, total


async def respond(advisory_id: str, admin: User, response: str) -> Advisory:
    """
    Attach a response and move the advisory to reviewed.

    The UPDATE is filtered on status=pending, so the response fields
    are written together and a reviewed advisory is never rewritten.
    """
    text = (response or "").strip()
    if not text:
        raise ValidationError("Response cannot be empty")

    advisory = await Advisory.get_or_none(id=advisory_id)
    if not advisory:
        raise NotFoundError("Advisory not found", code="ADVISORY_NOT_FOUND")

    updated = await Advisory.filter(id=advisory_id, status=AdvisoryStatus.PENDING).update(
        status=AdvisoryStatus.REVIEWED,
        response=text,
        responded_at=utc_now(),
        responded_by_id=admin.id,
        responded_by_name=admin.full_name or admin.username,
        updated_at=utc_now(),
    )
    if not updated:
        raise InvalidTransitionError("Advisory already reviewed", code="ADVISORY_ALREADY_REVIEWED")
    logger.info("[advisory] reviewed id=%s by=%s", advisory_id, admin.id)
    return await Advisory.get(id=advisory_id)
