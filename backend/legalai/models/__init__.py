# legalai/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User / Role: User profile and its access tier
- RoleQuota / MessageCount: Daily message quota tables
- ChatSession / ChatMessage / MessageRole: Assistant conversations
- Advisory / AdvisoryStatus: Human legal advisory requests
- Payment / AppConfig: Subscription payments and application switches
"""
from .user import User, Role
from .quota import RoleQuota, MessageCount
from .chat import ChatSession, ChatMessage, MessageRole
from .advisory import Advisory, AdvisoryStatus
from .payment import Payment
from .app_config import AppConfig
