"""
Quota Tracker

Gates chat messages with a per-role, per-calendar-day budget.

- RoleQuota holds the daily limit for each role
- MessageCount holds one counter per user per day (created lazily)

Counters only ever move through single UPDATE statements
(`count = count + 1`, optionally guarded by `count < limit`), so two
concurrent sends can neither lose an increment nor overrun the limit.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Optional

from tortoise.exceptions import IntegrityError
from tortoise.expressions import F

from legalai.core.errors import NotFoundError, QuotaConfigurationError, ValidationError
from legalai.models import MessageCount, Role, RoleQuota
from legalai.services.subscription import load_profile
from legalai.utils.time import local_today

logger = logging.getLogger("uvicorn.error")

REASON_PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
REASON_NOT_CONFIGURED = "QUOTA_NOT_CONFIGURED"
REASON_LIMIT_REACHED = "DAILY_LIMIT_REACHED"


@dataclass
class QuotaCheck:
    """Outcome of a quota check; `reason` is set whenever `allowed` is False."""
    allowed: bool
    reason: Optional[str] = None
    limit: int = 0
    used: int = 0

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    def stats(self) -> dict:
        return {"limit": self.limit, "used": self.used, "remaining": self.remaining}


async def _resolve_limit(user_id) -> tuple[Optional[int], Optional[str]]:
    """Return (limit, None) or (None, reason) for a user's current role."""
    user = await load_profile(user_id)
    if not user:
        return None, REASON_PROFILE_NOT_FOUND
    quota = await RoleQuota.get_or_none(role=user.role)
    if not quota:
        return None, REASON_NOT_CONFIGURED
    return quota.daily_message_limit, None


async def _counter(user_id, day: dt.date) -> MessageCount:
    counter, created = await MessageCount.get_or_create(
        user_id=user_id, date=day, defaults={"count": 0}
    )
    if created:
        logger.debug("[quota] initialized counter user=%s date=%s", user_id, day)
    return counter


async def check(user_id) -> QuotaCheck:
    """
    Decide whether the user may send another message today.

    Fail-closed: a missing profile or an unconfigured role yields
    allowed=False with the reason code. Creates today's counter (count 0)
    when it does not exist yet.
    """
    limit, reason = await _resolve_limit(user_id)
    if reason:
        logger.warning("[quota] cannot send for user=%s: %s", user_id, reason)
        return QuotaCheck(allowed=False, reason=reason)
    counter = await _counter(user_id, local_today())
    if counter.count < limit:
        return QuotaCheck(allowed=True, limit=limit, used=counter.count)
    return QuotaCheck(allowed=False, reason=REASON_LIMIT_REACHED, limit=limit, used=counter.count)


async def can_send(user_id) -> bool:
    return (await check(user_id)).allowed


async def increment(user_id) -> int:
    """
    Add one to today's counter and return the new count.

    A missing counter is created directly with count=1.
    """
    day = local_today()
    for _ in range(2):
        updated = await MessageCount.filter(user_id=user_id, date=day).update(count=F("count") + 1)
        if updated:
            return (await MessageCount.get(user_id=user_id, date=day)).count
        try:
            await MessageCount.create(user_id=user_id, date=day, count=1)
            return 1
        except IntegrityError:
            # Another request created the row first; retry the update
            continue
    raise QuotaConfigurationError("Could not record message count", code="QUOTA_COUNTER_CONFLICT")


async def consume(user_id) -> QuotaCheck:
    """
    Atomically check the limit and charge one message.

    The increment only happens when `count < limit` holds inside the same
    UPDATE statement. Returns the resulting QuotaCheck; allowed=False
    means nothing was charged.
    """
    limit, reason = await _resolve_limit(user_id)
    if reason:
        logger.warning("[quota] cannot send for user=%s: %s", user_id, reason)
        return QuotaCheck(allowed=False, reason=reason)

    day = local_today()
    for _ in range(2):
        updated = await MessageCount.filter(
            user_id=user_id, date=day, count__lt=limit
        ).update(count=F("count") + 1)
        if updated:
            used = (await MessageCount.get(user_id=user_id, date=day)).count
            return QuotaCheck(allowed=True, limit=limit, used=used)

        existing = await MessageCount.get_or_none(user_id=user_id, date=day)
        if existing is not None or limit <= 0:
            used = existing.count if existing else 0
            logger.info("[quota] daily limit reached user=%s used=%s limit=%s", user_id, used, limit)
            return QuotaCheck(allowed=False, reason=REASON_LIMIT_REACHED, limit=limit, used=used)
        try:
            await MessageCount.create(user_id=user_id, date=day, count=1)
            return QuotaCheck(allowed=True, limit=limit, used=1)
        except IntegrityError:
            continue
    raise QuotaConfigurationError("Could not record message count", code="QUOTA_COUNTER_CONFLICT")


async def daily_stats(user_id) -> dict:
    """
    Return {limit, used, remaining} for today, creating the counter if absent.

    Raises:
        NotFoundError: profile does not exist
        QuotaConfigurationError: the user's role has no configured limit
    """
    limit, reason = await _resolve_limit(user_id)
    if reason == REASON_PROFILE_NOT_FOUND:
        raise NotFoundError("Profile not found", code="USER_NOT_FOUND")
    if reason:
        raise QuotaConfigurationError("No daily limit configured for this role")
    counter = await _counter(user_id, local_today())
    return QuotaCheck(allowed=counter.count < limit, limit=limit, used=counter.count).stats()


async def set_role_limit(role: Role, limit: int) -> RoleQuota:
    """
    Overwrite (or create) the daily limit for a role.
    Zero is allowed and blocks the role entirely.
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValidationError("Limit must be a non-negative integer", code="INVALID_LIMIT")
    role = Role(role)
    quota, _ = await RoleQuota.update_or_create(
        role=role, defaults={"daily_message_limit": limit}
    )
    logger.info("[quota] role=%s daily limit set to %s", role.value, limit)
    return quota


async def list_role_limits() -> list[dict]:
    rows = await RoleQuota.all().order_by("role")
    return [{"role": r.role.value, "dailyMessageLimit": r.daily_message_limit} for r in rows]
