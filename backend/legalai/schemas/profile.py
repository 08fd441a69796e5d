# legalai/schemas/profile.py
"""
Pydantic schemas for the profile endpoints.
"""
from typing import Optional

from pydantic import BaseModel


class ProfileUpdateIn(BaseModel):
    """
    Partial profile update. Only provided fields are written.
    Role, subscription and avatar are managed by their own endpoints.
    """
    fullName: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emailNotifications: Optional[bool] = None
    weeklySummary: Optional[bool] = None
    darkMode: Optional[bool] = None
