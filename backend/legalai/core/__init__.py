# legalai/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Startup seeding (default admin, role quotas, app config, expiry sweep)
- db: Database configuration and connection management
- errors: Service-layer exceptions and their HTTP mapping
- security: Authentication, authorization, and password hashing
"""
