# legalai/api/v1/routers/advisories.py
from fastapi import APIRouter, Depends

from legalai.api.v1.deps import get_current_user
from legalai.core.errors import ServiceError, to_http
from legalai.models.user import User
from legalai.schemas.advisory import AdvisoryCreateIn
from legalai.services import advisory as advisory_service

router = APIRouter(prefix="/advisories", tags=["advisories"])


@router.post("")
async def create_advisory(body: AdvisoryCreateIn, user: User = Depends(get_current_user)):
    """
    Submit a question for review by a lawyer. The request starts as pending.

    Raises:
        HTTPException (400): BAD_REQUEST when any field is blank
    """
    try:
        a = await advisory_service.create_advisory(
            user, body.fullName, body.email, body.subject, body.description
        )
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": advisory_service.advisory_to_dict(a)}


@router.get("")
async def list_my_advisories(user: User = Depends(get_current_user)):
    rows = await advisory_service.list_user_advisories(user)
    return {"success": True, "data": {"items": [advisory_service.advisory_to_dict(a) for a in rows]}}
