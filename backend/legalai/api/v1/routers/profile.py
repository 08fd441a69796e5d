# legalai/api/v1/routers/profile.py
from fastapi import APIRouter, Depends, File, UploadFile

from legalai.api.v1.deps import get_current_user
from legalai.core.errors import ServiceError, to_http
from legalai.models.user import User
from legalai.schemas.profile import ProfileUpdateIn
from legalai.services import profile as profile_service

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
async def get_profile(user: User = Depends(get_current_user)):
    return {"success": True, "data": profile_service.profile_to_dict(user)}


@router.patch("")
async def update_profile(body: ProfileUpdateIn, user: User = Depends(get_current_user)):
    """Update contact details and preferences; omitted fields are left unchanged."""
    await profile_service.update_profile(user, body.model_dump(exclude_none=True))
    return {"success": True, "data": profile_service.profile_to_dict(user)}


@router.post("/avatar")
async def upload_avatar(file: UploadFile = File(...), user: User = Depends(get_current_user)):
    """
    Replace the profile picture (multipart field `file`).

    Raises:
        HTTPException (400): INVALID_IMAGE for non-image content or oversize files
        HTTPException (502): STORAGE_FAILED
    """
    data = await file.read()
    try:
        await profile_service.set_avatar(user, data, file.content_type)
    except ServiceError as e:
        raise to_http(e)
    return {"success": True, "data": {"avatarUrl": user.avatar_url}}
