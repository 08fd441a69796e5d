# legalai/api/v1/deps.py
from fastapi import Depends, Header, HTTPException, Request, status
from legalai.core.security import decode_access_token
from legalai.models.user import Role, User
from legalai.services.subscription import load_profile


def _extract_token(request: Request, authorization: str | None) -> str | None:
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    return request.cookies.get("accessToken")


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User:
    """
    FastAPI dependency resolving the authenticated profile.

    The token is read from the Authorization header (Bearer) or, as a
    fallback, the HttpOnly `accessToken` cookie. The returned profile has
    lazy subscription expiry applied, so `role` is always current.

    Raises:
        HTTPException (401): AUTH_REQUIRED / AUTH_INVALID_TOKEN / AUTH_USER_NOT_FOUND
    """
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await load_profile(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return user


async def require_admin(current: User = Depends(get_current_user)) -> User:
    """Same as get_current_user, but only admins pass (403 FORBIDDEN_ADMIN_ONLY otherwise)."""
    if current.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_ADMIN_ONLY")
    return current
