# legalai/api/v1/routers/quota.py
from fastapi import APIRouter, Depends

from legalai.api.v1.deps import get_current_user
from legalai.core.errors import ServiceError, to_http
from legalai.models.user import User
from legalai.services import quota

router = APIRouter(prefix="/quota", tags=["quota"])


@router.get("/me")
async def my_quota(user: User = Depends(get_current_user)):
    """
    Today's message budget for the current user.

    Returns:
        dict: {"success": True, "data": {"limit", "used", "remaining"}}

    Raises:
        HTTPException (409): QUOTA_NOT_CONFIGURED when the role has no limit row
    """
    try:
        stats = await quota.daily_stats(user.id)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": stats}
