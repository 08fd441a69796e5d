# legalai/api/v1/routers/admin.py
from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    status,
)
from tortoise.expressions import Q

from legalai.api.v1.deps import require_admin
from legalai.config import settings
from legalai.core.errors import ServiceError, to_http
from legalai.core.security import hash_password
from legalai.models import AdvisoryStatus, Role, User
from legalai.schemas.admin import (
    AdminResetPasswordIn,
    AdminUserDetailOut,
    AdminUserListOut,
    AdminUserUpdateIn,
    AdvisoryRespondIn,
    AppConfigIn,
    ExpirationDateIn,
    RoleLimitIn,
    RoleName,
)
from legalai.services import advisory as advisory_service
from legalai.services import quota, subscription
from legalai.utils.time import as_utc, iso, utc_now

router = APIRouter(prefix="/admin", tags=["admin"])


# ==============================================================================
# I. User Management Interface
#     Prefix: /api/v1/admin/users
# ==============================================================================
def _user_to_dict(u: User) -> dict:
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
        "createdAt": iso(u.created_at),
    }


async def _count_admins() -> int:
    """Used to prevent demoting or deleting the last admin user."""
    return await User.filter(role=Role.ADMIN).count()


async def _get_user_or_404(user_id: str) -> User:
    u = await subscription.load_profile(user_id)
    if not u:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="USER_NOT_FOUND")
    return u


@router.get("/users", response_model=AdminUserListOut)
async def list_users(
    q: str | None = Query(default=None, description="Fuzzy search by username/email/full name"),
    role: Optional[RoleName] = Query(default=None),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    _: User = Depends(require_admin),
):
    """
    Paginated list of all users (admin only), newest first.

    Args:
        q: Optional case-insensitive match on username, email or full name
        role: Optional role filter
        offset: Number of items to skip
        limit: Maximum number of items to return (1-100)
    """
    await subscription.expire_due_subscriptions()
    qs = User.all().order_by("-created_at")
    if q:
        qs = qs.filter(Q(username__icontains=q) | Q(email__icontains=q) | Q(full_name__icontains=q))
    if role:
        qs = qs.filter(role=Role(role))

    total = await qs.count()
    rows = await qs.offset(offset).limit(limit)
    items = [_user_to_dict(u) for u in rows]

    return {"items": items, "offset": offset, "limit": limit, "total": total}


@router.get("/users/{user_id}", response_model=AdminUserDetailOut)
async def get_user_detail(user_id: str, _: User = Depends(require_admin)):
    u = await _get_user_or_404(user_id)
    return {"user": _user_to_dict(u)}


@router.patch("/users/{user_id}", response_model=AdminUserDetailOut)
async def update_user(
    user_id: str,
    body: AdminUserUpdateIn,
    current_admin: User = Depends(require_admin),
):
    """
    Update user information (admin only).

    Only provided fields are written. Role changes follow two guards:
    an admin cannot demote themself, and the last admin cannot be demoted.
    Moving a user off the paid role also clears a pending cancellation;
    moving one onto it starts a fresh period unless a future end date is set.
    No payment is recorded for these manual grants.

    Raises:
        HTTPException (404): USER_NOT_FOUND
        HTTPException (400): USERNAME_EXISTS / EMAIL_EXISTS / CANNOT_DEMOTE_SELF / LAST_ADMIN_FORBIDDEN
    """
    u = await _get_user_or_404(user_id)

    # 1) Update username (uniqueness check)
    if body.username and body.username != u.username:
        exists = await User.filter(username=body.username).exclude(id=user_id).exists()
        if exists:
            raise HTTPException(
                status_code=400,
                detail={"code": "USERNAME_EXISTS", "message": "Username already exists"},
            )
        u.username = body.username

    # 2) Update email (uniqueness check, "" clears it)
    if body.email is not None and body.email != u.email:
        if body.email != "":
            email_taken = await User.filter(email=body.email).exclude(id=user_id).exists()
            if email_taken:
                raise HTTPException(
                    status_code=400,
                    detail={"code": "EMAIL_EXISTS", "message": "Email already registered"},
                )
            u.email = body.email
        else:
            u.email = None

    # 3) Contact fields
    if body.fullName is not None:
        u.full_name = body.fullName.strip() or None
    if body.phone is not None:
        u.phone = body.phone.strip() or None
    if body.address is not None:
        u.address = body.address.strip() or None

    # 4) Update role (cannot demote self; cannot demote last admin)
    if body.role and body.role != u.role.value:
        new_role = Role(body.role)
        if str(current_admin.id) == str(u.id) and new_role != Role.ADMIN:
            raise HTTPException(
                status_code=400,
                detail={"code": "CANNOT_DEMOTE_SELF", "message": "Cannot demote yourself"},
            )

        if u.role == Role.ADMIN:
            admin_count = await _count_admins()
            if admin_count <= 1:
                raise HTTPException(
                    status_code=400,
                    detail={"code": "LAST_ADMIN_FORBIDDEN", "message": "Cannot demote the last admin"},
                )
        # pending cancellation only exists on paid profiles
        if new_role != Role.PAID:
            u.pending_downgrade = False
        # a paid role always carries a running period
        elif u.subscription_end is None or as_utc(u.subscription_end) <= utc_now():
            u.subscription_end = utc_now() + dt.timedelta(days=settings.subscription_period_days)
        u.role = new_role

    await u.save()
    return {"user": _user_to_dict(u)}


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    current_admin: User = Depends(require_admin),
):
    """
    Permanently delete a user account together with its chats, counters,
    advisories and payments (admin only).

    Raises:
        HTTPException (404): USER_NOT_FOUND
        HTTPException (400): CANNOT_DELETE_SELF / LAST_ADMIN_FORBIDDEN
    """
    u = await _get_user_or_404(user_id)

    if str(current_admin.id) == str(u.id):
        raise HTTPException(
            status_code=400,
            detail={"code": "CANNOT_DELETE_SELF", "message": "Cannot delete yourself"},
        )

    if u.role == Role.ADMIN:
        admin_count = await _count_admins()
        if admin_count <= 1:
            raise HTTPException(
                status_code=400,
                detail={"code": "LAST_ADMIN_FORBIDDEN", "message": "Cannot delete the last admin"},
            )

    await u.delete()
    return {"success": True, "data": {"ok": True}}


@router.post("/users/{user_id}/reset-password")
async def reset_user_password(
    user_id: str,
    body: AdminResetPasswordIn,
    _: User = Depends(require_admin),
):
    u = await _get_user_or_404(user_id)
    u.password_hash = hash_password(body.newPassword)
    await u.save()
    return {"success": True, "data": {"ok": True}}


# ==============================================================================
# II. Subscription overrides
#     Prefix: /api/v1/admin/users/{id}/subscription/*
#     Same transitions as the self-service endpoints; the subscriptions
#     toggle in app config does not apply to admins.
# ==============================================================================
_TRANSITIONS = {
    "upgrade": subscription.upgrade,
    "downgrade": subscription.request_downgrade,
    "renew": subscription.renew,
}


@router.post("/users/{user_id}/subscription/{action}")
async def change_user_subscription(
    user_id: str,
    action: str,
    _: User = Depends(require_admin),
):
    transition = _TRANSITIONS.get(action)
    if not transition:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="UNKNOWN_ACTION")
    try:
        u = await transition(user_id)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": _user_to_dict(u)}


@router.put("/users/{user_id}/subscription/expiration")
async def set_user_expiration(
    user_id: str,
    body: ExpirationDateIn,
    _: User = Depends(require_admin),
):
    try:
        u = await subscription.set_expiration_date(user_id, body.date)
        await subscription.expire_if_due(u)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": _user_to_dict(u)}


# ==============================================================================
# III. Daily limits and app config
# ==============================================================================
@router.get("/limits")
async def list_limits(_: User = Depends(require_admin)):
    return {"success": True, "data": {"items": await quota.list_role_limits()}}


@router.put("/limits/{role}")
async def set_limit(role: RoleName, body: RoleLimitIn, _: User = Depends(require_admin)):
    """Overwrite a role's daily message limit. Zero blocks the role entirely."""
    try:
        row = await quota.set_role_limit(Role(role), body.dailyMessageLimit)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": {"role": row.role.value, "dailyMessageLimit": row.daily_message_limit}}


@router.get("/config")
async def get_config(_: User = Depends(require_admin)):
    config = await subscription.get_app_config()
    return {"success": True, "data": {"subscriptionsEnabled": config.subscriptions_enabled}}


@router.put("/config")
async def update_config(body: AppConfigIn, _: User = Depends(require_admin)):
    config = await subscription.set_subscriptions_enabled(body.subscriptionsEnabled)
    return {"success": True, "data": {"subscriptionsEnabled": config.subscriptions_enabled}}


# ==============================================================================
# IV. Advisory review
# ==============================================================================
@router.get("/advisories")
async def list_advisories(
    status_: Optional[AdvisoryStatus] = Query(default=None, alias="status"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    _: User = Depends(require_admin),
):
    rows, total = await advisory_service.list_advisories(status_, offset, limit)
    items = [advisory_service.advisory_to_dict(a) for a in rows]
    return {"success": True, "data": {"items": items, "offset": offset, "limit": limit, "total": total}}


@router.post("/advisories/{advisory_id}/respond")
async def respond_advisory(
    advisory_id: str,
    body: AdvisoryRespondIn,
    admin: User = Depends(require_admin),
):
    """
    Answer a pending advisory. The transition is one-way:
    a second response gets 409 ADVISORY_ALREADY_REVIEWED.
    """
    try:
        a = await advisory_service.respond(advisory_id, admin, body.response)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": advisory_service.advisory_to_dict(a)}
