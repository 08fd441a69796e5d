import datetime as dt
import os
import tempfile
import uuid

# Settings are read at import time; point them at throwaway locations first
os.environ.setdefault("AVATAR_STORAGE_DIR", tempfile.mkdtemp(prefix="legalai-avatars-"))
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("OPENAI_ASSISTANT_ID", "asst_test")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from legalai.core import db as db_module
from legalai.core.bootstrap import ensure_role_quotas
from legalai.core.security import hash_password
from legalai.main import app
from legalai.models import Role, User
from legalai.services.subscription import get_app_config
from legalai.utils.time import utc_now


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch and seeds role limits
    (free=10, paid=100, admin=1000) plus the app config row.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()
    await ensure_role_quotas()
    await get_app_config()


@pytest_asyncio.fixture
async def db():
    """Fresh database for service-level tests that do not need the HTTP app."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    await _init_test_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_admin():
    """
    Factory fixture to create admin users directly via ORM for privileged endpoints.
    """

    async def _create_admin(password: str = "AdminPass!23") -> tuple[User, str]:
        user = await User.create(
            username=f"admin_{uuid.uuid4().hex[:6]}",
            email=f"admin_{uuid.uuid4().hex[:6]}@example.com",
            password_hash=hash_password(password),
            role=Role.ADMIN,
        )
        return user, password

    return _create_admin


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create profiles directly (free by default).
    Extra keyword arguments are passed to User.create.
    """

    async def _create_user(password: str = "UserPass!23", role: Role = Role.FREE, **fields) -> tuple[User, str]:
        user = await User.create(
            username=f"user_{uuid.uuid4().hex[:6]}",
            email=f"{uuid.uuid4().hex[:6]}@example.com",
            password_hash=hash_password(password),
            role=role,
            **fields,
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_paid_user(create_user):
    """Paid profile whose plan runs for `days` more days."""
    async def _create_paid(days: int = 10, pending: bool = False, password: str = "UserPass!23"):
        return await create_user(
            password=password,
            role=Role.PAID,
            subscription_end=utc_now() + dt.timedelta(days=days),
            pending_downgrade=pending,
        )

    return _create_paid


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
