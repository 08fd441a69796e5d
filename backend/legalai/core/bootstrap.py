# legalai/core/bootstrap.py
"""
Startup tasks run once the database is connected:
- create a default admin when none exists
- seed missing role quota rows from DEFAULT_LIMIT_* settings
- make sure the singleton AppConfig row exists
- demote paid profiles whose subscription already ended
"""
import logging

from legalai.config import settings
from legalai.core.security import hash_password
from legalai.models import Role, RoleQuota, User
from legalai.services.subscription import expire_due_subscriptions, get_app_config

logger = logging.getLogger("uvicorn.error")


async def ensure_default_admin() -> None:
    """
    If no admin exists in the database, create one from settings
    (ADMIN_USERNAME, ADMIN_EMAIL, ADMIN_PASSWORD).
    Only takes effect when ADMIN_PASSWORD is set (no default weak password).
    """
    if await User.filter(role=Role.ADMIN).exists():
        return

    admin_password = settings.admin_password
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    admin_username = settings.admin_username
    admin_email = settings.admin_email

    # A regular account may already own the name; pick a free variant
    base_username = admin_username
    suffix = 1
    while await User.filter(username=admin_username).exists():
        suffix += 1
        admin_username = f"{base_username}{suffix}"

    u = await User.create(
        username=admin_username,
        email=admin_email,
        full_name="Administrator",
        password_hash=hash_password(admin_password),
        role=Role.ADMIN,
    )
    logger.warning("[bootstrap] Created default admin -> username=%s email=%s id=%s",
                   u.username, u.email, u.id)


async def ensure_role_quotas() -> None:
    """Create a RoleQuota row for every role that has none. Existing limits are kept."""
    defaults = {
        Role.FREE: settings.default_limit_free,
        Role.PAID: settings.default_limit_paid,
        Role.ADMIN: settings.default_limit_admin,
    }
    for role, limit in defaults.items():
        _, created = await RoleQuota.get_or_create(role=role, defaults={"daily_message_limit": limit})
        if created:
            logger.info("[bootstrap] seeded daily limit role=%s limit=%s", role.value, limit)


async def run_startup_tasks() -> None:
    await ensure_default_admin()
    await ensure_role_quotas()
    await get_app_config()
    await expire_due_subscriptions()
