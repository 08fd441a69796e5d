"""
Unit tests for services.quota.
Run against the in-memory database with seeded limits free=10, paid=100, admin=1000.
"""
import asyncio
import datetime as dt
import uuid

import pytest

from legalai.core.errors import NotFoundError, QuotaConfigurationError, ValidationError
from legalai.models import MessageCount, Role, RoleQuota
from legalai.services import quota
from legalai.utils.time import local_today, utc_now

pytestmark = [pytest.mark.asyncio, pytest.mark.usefixtures("db")]


async def _set_count(user, count: int) -> None:
    await MessageCount.update_or_create(user_id=user.id, date=local_today(), defaults={"count": count})


async def _count(user) -> int:
    row = await MessageCount.get_or_none(user_id=user.id, date=local_today())
    return row.count if row else 0


async def test_check_creates_counter_and_allows(create_user):
    user, _ = await create_user()
    result = await quota.check(user.id)
    assert result.allowed is True
    assert result.stats() == {"limit": 10, "used": 0, "remaining": 10}
    assert await MessageCount.filter(user_id=user.id).count() == 1


@pytest.mark.parametrize(
    "role,used,allowed",
    [
        (Role.FREE, 9, True),
        (Role.FREE, 10, False),
        (Role.PAID, 99, True),
        (Role.PAID, 100, False),
        (Role.ADMIN, 999, True),
    ],
)
async def test_limit_per_role(create_user, role, used, allowed):
    user, _ = await create_user(role=role, subscription_end=utc_now() + dt.timedelta(days=5) if role == Role.PAID else None)
    await _set_count(user, used)
    result = await quota.check(user.id)
    assert result.allowed is allowed
    if not allowed:
        assert result.reason == quota.REASON_LIMIT_REACHED
        assert result.remaining == 0
    assert await quota.can_send(user.id) is allowed


async def test_check_fails_closed_for_missing_profile():
    result = await quota.check(uuid.uuid4())
    assert result.allowed is False
    assert result.reason == quota.REASON_PROFILE_NOT_FOUND


async def test_check_fails_closed_for_unconfigured_role(create_user):
    user, _ = await create_user()
    await RoleQuota.filter(role=Role.FREE).delete()
    result = await quota.check(user.id)
    assert result.allowed is False
    assert result.reason == quota.REASON_NOT_CONFIGURED
    with pytest.raises(QuotaConfigurationError):
        await quota.daily_stats(user.id)


async def test_daily_stats_missing_profile():
    with pytest.raises(NotFoundError):
        await quota.daily_stats(uuid.uuid4())


async def test_expired_paid_user_gets_free_limit(create_user):
    user, _ = await create_user(role=Role.PAID, subscription_end=utc_now() - dt.timedelta(minutes=1))
    stats = await quota.daily_stats(user.id)
    assert stats["limit"] == 10


async def test_increment_creates_row_with_one(create_user):
    user, _ = await create_user()
    assert await quota.increment(user.id) == 1
    assert await _count(user) == 1
    assert await quota.increment(user.id) == 2


async def test_concurrent_increments_are_not_lost(create_user):
    user, _ = await create_user()
    await _set_count(user, 2)
    await asyncio.gather(*(quota.increment(user.id) for _ in range(8)))
    assert await _count(user) == 10


async def test_consume_charges_until_limit(create_user):
    user, _ = await create_user()
    await quota.set_role_limit(Role.FREE, 3)

    results = [await quota.consume(user.id) for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert results[2].stats() == {"limit": 3, "used": 3, "remaining": 0}
    assert results[3].reason == quota.REASON_LIMIT_REACHED
    assert await _count(user) == 3


async def test_concurrent_consume_never_overruns(create_user):
    user, _ = await create_user()
    await quota.set_role_limit(Role.FREE, 5)
    await quota.check(user.id)  # counter row exists with 0

    results = await asyncio.gather(*(quota.consume(user.id) for _ in range(9)))
    assert sum(1 for r in results if r.allowed) == 5
    assert await _count(user) == 5


async def test_zero_limit_blocks_without_creating_counter(create_user):
    user, _ = await create_user()
    await quota.set_role_limit(Role.FREE, 0)
    result = await quota.consume(user.id)
    assert result.allowed is False
    assert result.reason == quota.REASON_LIMIT_REACHED
    assert await MessageCount.filter(user_id=user.id).count() == 0


async def test_set_role_limit_upserts():
    await RoleQuota.filter(role=Role.PAID).delete()
    row = await quota.set_role_limit(Role.PAID, 50)
    assert row.daily_message_limit == 50
    await quota.set_role_limit(Role.PAID, 60)
    assert (await RoleQuota.get(role=Role.PAID)).daily_message_limit == 60
    assert await RoleQuota.filter(role=Role.PAID).count() == 1


@pytest.mark.parametrize("bad", [-1, 1.5, True, "7"])
async def test_set_role_limit_rejects_invalid(bad):
    with pytest.raises(ValidationError) as exc:
        await quota.set_role_limit(Role.FREE, bad)
    assert exc.value.code == "INVALID_LIMIT"


async def test_list_role_limits():
    rows = await quota.list_role_limits()
    assert {r["role"]: r["dailyMessageLimit"] for r in rows} == {"free": 10, "paid": 100, "admin": 1000}
