# legalai/api/v1/routers/metrics.py
from fastapi import APIRouter, Depends

from legalai.api.v1.deps import require_admin
from legalai.services import metrics

router = APIRouter(prefix="/admin/metrics", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/overview")
async def overview():
    """Totals plus the last 7 days of users, chats and advisories."""
    return {"success": True, "data": await metrics.overview()}


@router.get("/revenue")
async def revenue():
    """Monthly revenue, growth, subscribers and the latest payments."""
    return {"success": True, "data": await metrics.revenue()}


@router.get("/advanced")
async def advanced():
    """Users by role and keyword-based categorization of user questions."""
    return {"success": True, "data": await metrics.advanced()}
