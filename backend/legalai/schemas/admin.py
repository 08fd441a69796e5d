# legalai/schemas/admin.py
"""
Pydantic schemas for admin endpoints.
Covers user CRUD, password reset, subscription overrides, role limits
and the application config toggle.
"""
import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

RoleName = Literal["free", "paid", "admin"]


# ========== Common return model ==========
class AdminUserBase(BaseModel):
    """
    User information returned in admin API responses.
    """
    id: str
    username: str
    email: Optional[str] = None
    fullName: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    role: RoleName
    subscriptionEnd: Optional[str] = None
    pendingDowngrade: bool = False
    createdAt: Optional[str] = None


class AdminUserListOut(BaseModel):
    """
    Response model for paginated user list endpoint.
    """
    items: List[AdminUserBase]
    offset: int  # Pagination offset (number of items skipped)
    limit: int  # Maximum number of items per page
    total: int  # Total number of users matching the query


class AdminUserDetailOut(BaseModel):
    user: AdminUserBase


# ========== Input model ==========
class AdminUserUpdateIn(BaseModel):
    """
    Request model for updating user information.
    All fields are optional - only provided fields will be updated.
    """
    username: Optional[str] = None  # Must be unique if provided
    email: Optional[str] = None  # Must be unique if provided; "" clears it
    fullName: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    role: Optional[RoleName] = None  # Cannot demote self or the last admin


class AdminResetPasswordIn(BaseModel):
    """
    Request model for admin-initiated password reset.
    """
    newPassword: str = Field(min_length=6)


class ExpirationDateIn(BaseModel):
    date: dt.date  # YYYY-MM-DD; subscription ends at 23:59:59 UTC of this day


class RoleLimitIn(BaseModel):
    dailyMessageLimit: int  # >= 0; zero blocks the role


class AppConfigIn(BaseModel):
    subscriptionsEnabled: bool


class AdvisoryRespondIn(BaseModel):
    response: str
