# legalai/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request/response models for registration, login and password change.
"""
from typing import Optional

from pydantic import BaseModel, Field


class RegisterIn(BaseModel):
    """Self-service sign-up. New accounts always start on the free plan."""
    username: str
    email: Optional[str] = None
    password: str
    fullName: Optional[str] = None


class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    Contains credentials for authentication.
    """
    username: str  # User login name
    password: str  # User password (plain text, verified against the argon2 hash)


class ChangePasswordIn(BaseModel):
    currentPassword: str  # Re-checked before the hash is replaced
    newPassword: str = Field(min_length=6)


class UserOut(BaseModel):
    """
    User information model returned in authentication responses.
    Contains the plan fields the client needs to render quota and billing state.
    """
    id: str
    username: str
    email: Optional[str] = None
    fullName: Optional[str] = None
    role: str  # free | paid | admin
    subscriptionEnd: Optional[str] = None  # ISO timestamp, paid users only
    pendingDowngrade: bool = False
    avatarUrl: Optional[str] = None


class LoginResponse(BaseModel):
    """
    Response model for successful login.
    Returns user information and access token for authenticated requests.
    """
    user: UserOut
    accessToken: str  # JWT access token for API authentication
