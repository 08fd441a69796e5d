# legalai/schemas/subscription.py
"""
Pydantic schemas for subscription endpoints.
"""
from typing import Optional

from pydantic import BaseModel


class SubscriptionOut(BaseModel):
    plan: str  # free | paid-active | paid-pending-cancellation | admin
    role: str
    subscriptionEnd: Optional[str] = None
    pendingDowngrade: bool
    subscriptionsEnabled: bool
    price: float
    periodDays: int
