"""
Unit tests for services.profile (avatar replacement off the event loop).
"""
import threading

import pytest

from legalai.models import User
from legalai.services import profile
from legalai.services.storage import avatar_storage

pytestmark = [pytest.mark.asyncio, pytest.mark.usefixtures("db")]

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def test_set_avatar_writes_outside_event_loop_thread(create_user, tmp_path, monkeypatch):
    user, _ = await create_user()
    monkeypatch.setattr(avatar_storage, "root", tmp_path.resolve())
    original_replace = avatar_storage.replace
    threads = []

    def _replace(*args):
        threads.append(threading.get_ident())
        return original_replace(*args)

    monkeypatch.setattr(avatar_storage, "replace", _replace)

    updated = await profile.set_avatar(user, PNG, "image/png")

    assert threads and threads[0] != threading.get_ident()
    assert updated.avatar_url.startswith(f"{avatar_storage.public_base_url}/{user.id}/")
    assert (await User.get(id=user.id)).avatar_url == updated.avatar_url
    assert len(list((tmp_path / str(user.id)).iterdir())) == 1
