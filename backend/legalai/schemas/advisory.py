# legalai/schemas/advisory.py
"""
Pydantic schemas for legal advisory requests.
"""
from pydantic import BaseModel


class AdvisoryCreateIn(BaseModel):
    """A request for a human lawyer's review; starts as pending."""
    fullName: str
    email: str
    subject: str
    description: str
