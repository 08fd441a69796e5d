# legalai/api/v1/routers/auth.py
from fastapi import APIRouter, HTTPException, Response, status, Depends
from legalai.core.security import verify_password, create_access_token, hash_password
from legalai.api.v1.deps import get_current_user
from legalai.models.user import Role, User
from legalai.schemas.auth import ChangePasswordIn, LoginRequest, RegisterIn
from legalai.services.profile import profile_to_dict
from legalai.services.subscription import expire_if_due

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_out(u: User) -> dict:
    return {
        "id": str(u.id),
        "username": u.username,
        "email": u.email,
        "fullName": u.full_name,
        "role": u.role.value,
    }


@router.post("/register")
async def register(body: RegisterIn):
    """
    Register a new account on the free plan.

    Username and email must be unique across all users. The password is
    hashed (argon2) before storage.

    Error codes:
        - BAD_REQUEST: Missing username or password
        - USERNAME_EXISTS: Username already taken
        - EMAIL_EXISTS: Email already registered
    """
    # Basic validation, avoid pydantic error becoming 500
    if not body.username or not body.password:
        return {"success": False, "error": {"code": "BAD_REQUEST", "message": "username/password required"}}
    if await User.get_or_none(username=body.username):
        return {"success": False, "error": {"code": "USERNAME_EXISTS", "message": "Username already exists"}}
    if body.email and await User.get_or_none(email=body.email):
        return {"success": False, "error": {"code": "EMAIL_EXISTS", "message": "Email already registered"}}
    u = await User.create(
        username=body.username,
        email=(body.email or None),
        full_name=(body.fullName or "").strip() or None,
        password_hash=hash_password(body.password),
        role=Role.FREE,
    )
    return {"success": True, "data": _user_out(u)}


@router.post("/login")
async def login(payload: LoginRequest, response: Response):
    """
    Authenticate and issue a JWT access token.

    The token is returned in the body and also set as the HttpOnly
    `accessToken` cookie for browser clients.

    Raises:
        HTTPException (401): AUTH_INVALID_CREDENTIALS
    """
    user = await User.get_or_none(username=payload.username)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail={"code": "AUTH_INVALID_CREDENTIALS", "message": "Incorrect username or password"})
    await expire_if_due(user)
    token = create_access_token(str(user.id), user.role.value)
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": {"user": _user_out(user), "accessToken": token}}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """Current profile, with plan fields reflecting any subscription that just expired."""
    return {"success": True, "data": profile_to_dict(user)}


@router.post("/logout")
async def logout(response: Response):
    """
    Clear the access token cookie. The JWT itself stays valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"success": True}


@router.post("/change-password")
async def change_password(body: ChangePasswordIn, user: User = Depends(get_current_user)):
    """
    Replace the password of the signed-in user.

    Raises:
        HTTPException (400): AUTH_INVALID_CREDENTIALS when currentPassword does not match
    """
    if not verify_password(body.currentPassword, user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail={"code": "AUTH_INVALID_CREDENTIALS", "message": "Current password is incorrect"})
    user.password_hash = hash_password(body.newPassword)
    await user.save()
    return {"success": True, "data": {"ok": True}}
