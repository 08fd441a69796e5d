"""
Subscription State Machine

States (derived from the profile row):
    free                        role == free
    paid-active                 role == paid and not pending_downgrade
    paid-pending-cancellation   role == paid and pending_downgrade
(admin is orthogonal and never enters this lifecycle)

Transitions:
    upgrade             free -> paid-active                  (+1 Payment)
    request_downgrade   paid-active -> paid-pending          (no payment)
    renew               paid-* -> paid-active                (+1 Payment)
    set_expiration_date admin overwrite of subscription_end
    expire_if_due       paid-* -> free once subscription_end has passed

Each transition runs in one transaction with the profile row locked, so it
either writes a consistent profile plus its Payment or nothing at all.
"""
import datetime as dt
import logging
from decimal import Decimal
from typing import Optional

from tortoise.transactions import in_transaction

from legalai.config import settings
from legalai.core.errors import InvalidTransitionError, NotFoundError
from legalai.models import AppConfig, Payment, Role, User
from legalai.utils.time import as_utc, end_of_day_utc, iso, utc_now

logger = logging.getLogger("uvicorn.error")

PLAN_FREE = "free"
PLAN_ACTIVE = "paid-active"
PLAN_PENDING = "paid-pending-cancellation"
PLAN_ADMIN = "admin"


def plan_state(user: User) -> str:
    if user.role == Role.ADMIN:
        return PLAN_ADMIN
    if user.role == Role.PAID:
        return PLAN_PENDING if user.pending_downgrade else PLAN_ACTIVE
    return PLAN_FREE


def _period() -> dt.timedelta:
    return dt.timedelta(days=settings.subscription_period_days)


def _is_expired(user: User, now: dt.datetime) -> bool:
    end = as_utc(user.subscription_end)
    return user.role == Role.PAID and end is not None and end <= now


async def _locked_profile(conn, user_id) -> User:
    user = await User.select_for_update().using_db(conn).get_or_none(id=user_id)
    if not user:
        raise NotFoundError("Profile not found", code="USER_NOT_FOUND")
    return user


async def _record_payment(conn, user: User, start: dt.datetime, end: dt.datetime) -> Payment:
    return await Payment.create(
        user=user,
        amount=Decimal(settings.subscription_price),
        period_start=start,
        period_end=end,
        using_db=conn,
    )


# ---------------------------------------------------------------------------
# Expiry (lazy per profile + bulk sweep at startup)
# ---------------------------------------------------------------------------
async def expire_if_due(user: User, now: Optional[dt.datetime] = None) -> User:
    """
    Demote a paid profile to free once its subscription_end has passed.

    There is no billing processor that could auto-renew, so an elapsed
    period ends the plan whether or not a cancellation was requested.
    The passed-in instance is updated in place and returned.
    """
    now = now or utc_now()
    if not _is_expired(user, now):
        return user
    updated = await User.filter(id=user.id, role=Role.PAID, subscription_end__lte=now).update(
        role=Role.FREE, pending_downgrade=False
    )
    if updated:
        logger.info("[subscription] expired plan for user=%s (end=%s)", user.id, iso(user.subscription_end))
    user.role = Role.FREE
    user.pending_downgrade = False
    return user


async def expire_due_subscriptions(now: Optional[dt.datetime] = None) -> int:
    """Bulk variant of expire_if_due; returns the number of demoted profiles."""
    now = now or utc_now()
    count = await User.filter(role=Role.PAID, subscription_end__lte=now).update(
        role=Role.FREE, pending_downgrade=False
    )
    if count:
        logger.info("[subscription] sweep demoted %s expired plan(s)", count)
    return count


async def load_profile(user_id) -> Optional[User]:
    """Fetch a profile with lazy expiry applied; None when it does not exist."""
    user = await User.get_or_none(id=user_id)
    if user:
        await expire_if_due(user)
    return user


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
async def upgrade(user_id) -> User:
    """free -> paid-active. Records one payment covering [now, now + period]."""
    now = utc_now()
    async with in_transaction() as conn:
        user = await _locked_profile(conn, user_id)
        if _is_expired(user, now):
            user.role = Role.FREE
        if user.role != Role.FREE:
            raise InvalidTransitionError("Only free users can upgrade", code="SUBSCRIPTION_NOT_FREE")
        end = now + _period()
        user.role = Role.PAID
        user.subscription_end = end
        user.pending_downgrade = False
        await user.save(using_db=conn)
        await _record_payment(conn, user, now, end)
    logger.info("[subscription] upgrade user=%s until=%s", user.id, end.isoformat())
    return user


async def request_downgrade(user_id) -> User:
    """paid-active -> paid-pending-cancellation. The plan lapses at subscription_end."""
    now = utc_now()
    async with in_transaction() as conn:
        user = await _locked_profile(conn, user_id)
        if user.role != Role.PAID or _is_expired(user, now):
            raise InvalidTransitionError("No active paid subscription", code="SUBSCRIPTION_NOT_PAID")
        if user.pending_downgrade:
            raise InvalidTransitionError("Cancellation already requested", code="SUBSCRIPTION_ALREADY_PENDING")
        user.pending_downgrade = True
        await user.save(using_db=conn)
    logger.info("[subscription] downgrade requested user=%s", user.id)
    return user


async def renew(user_id) -> User:
    """
    paid-* -> paid-active.

    Clears the pending flag and extends subscription_end by one period,
    counted from the later of now and the current end. Records one payment
    for exactly the added period.
    """
    now = utc_now()
    async with in_transaction() as conn:
        user = await _locked_profile(conn, user_id)
        if user.role != Role.PAID or _is_expired(user, now):
            raise InvalidTransitionError("No active paid subscription", code="SUBSCRIPTION_NOT_PAID")
        start = max(now, as_utc(user.subscription_end) or now)
        end = start + _period()
        user.pending_downgrade = False
        user.subscription_end = end
        await user.save(using_db=conn)
        await _record_payment(conn, user, start, end)
    logger.info("[subscription] renew user=%s until=%s", user.id, end.isoformat())
    return user


async def set_expiration_date(user_id, day: dt.date) -> User:
    """
    Administrative overwrite of subscription_end (set to the end of `day`, UTC).
    Role and pending flag are left alone; a past date is picked up by expiry.
    """
    async with in_transaction() as conn:
        user = await _locked_profile(conn, user_id)
        if user.role == Role.ADMIN:
            raise InvalidTransitionError("Admins have no subscription", code="SUBSCRIPTION_ADMIN_EXEMPT")
        user.subscription_end = end_of_day_utc(day)
        await user.save(using_db=conn)
    logger.info("[subscription] expiration set user=%s end=%s", user.id, iso(user.subscription_end))
    return user


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
async def get_app_config() -> AppConfig:
    config, _ = await AppConfig.get_or_create(id=1, defaults={"subscriptions_enabled": True})
    return config


async def set_subscriptions_enabled(enabled: bool) -> AppConfig:
    config = await get_app_config()
    config.subscriptions_enabled = enabled
    await config.save()
    logger.info("[subscription] subscriptions_enabled=%s", enabled)
    return config


def payment_to_dict(p: Payment) -> dict:
    return {
        "id": str(p.id),
        "amount": float(p.amount),
        "periodStart": iso(p.period_start),
        "periodEnd": iso(p.period_end),
        "createdAt": iso(p.created_at),
    }


async def list_payments(user_id) -> list[dict]:
    rows = await Payment.filter(user_id=user_id).order_by("-created_at")
    return [payment_to_dict(p) for p in rows]


async def get_subscription(user_id) -> dict:
    user = await load_profile(user_id)
    if not user:
        raise NotFoundError("Profile not found", code="USER_NOT_FOUND")
    config = await get_app_config()
    return {
        "plan": plan_state(user),
        "role": user.role.value,
        "subscriptionEnd": iso(user.subscription_end),
        "pendingDowngrade": user.pending_downgrade,
        "subscriptionsEnabled": config.subscriptions_enabled,
        "price": float(settings.subscription_price),
        "periodDays": settings.subscription_period_days,
    }
