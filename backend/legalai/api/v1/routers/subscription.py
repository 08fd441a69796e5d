# legalai/api/v1/routers/subscription.py
from fastapi import APIRouter, Depends, HTTPException, status

from legalai.api.v1.deps import get_current_user
from legalai.core.errors import ServiceError, to_http
from legalai.models.user import User
from legalai.schemas.subscription import SubscriptionOut
from legalai.services import subscription

router = APIRouter(prefix="/subscription", tags=["subscription"])


async def _current_state(user: User) -> dict:
    return SubscriptionOut(**await subscription.get_subscription(user.id)).model_dump()


@router.get("")
async def get_my_subscription(user: User = Depends(get_current_user)):
    return {"success": True, "data": await _current_state(user)}


@router.get("/payments")
async def my_payments(user: User = Depends(get_current_user)):
    return {"success": True, "data": {"items": await subscription.list_payments(user.id)}}


@router.post("/upgrade")
async def upgrade(user: User = Depends(get_current_user)):
    """
    Move from free to the paid plan. A simulated payment is recorded.

    Raises:
        HTTPException (403): SUBSCRIPTIONS_DISABLED while the admin toggle is off
        HTTPException (409): SUBSCRIPTION_NOT_FREE
    """
    config = await subscription.get_app_config()
    if not config.subscriptions_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "SUBSCRIPTIONS_DISABLED", "message": "Subscriptions are currently disabled"},
        )
    try:
        await subscription.upgrade(user.id)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": await _current_state(user)}


@router.post("/downgrade")
async def request_downgrade(user: User = Depends(get_current_user)):
    """Cancel at period end: the plan stays paid until subscriptionEnd, then lapses to free."""
    try:
        await subscription.request_downgrade(user.id)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": await _current_state(user)}


@router.post("/renew")
async def renew(user: User = Depends(get_current_user)):
    try:
        await subscription.renew(user.id)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": await _current_state(user)}
