# legalai/api/v1/routers/laws.py
from fastapi import APIRouter, Depends, Query

from legalai.api.v1.deps import get_current_user
from legalai.services.laws import search_laws

router = APIRouter(prefix="/laws", tags=["laws"], dependencies=[Depends(get_current_user)])


@router.get("")
async def list_laws(q: str | None = Query(default=None, description="Search by title or description")):
    items = search_laws(q)
    return {"success": True, "data": {"items": items, "total": len(items)}}
