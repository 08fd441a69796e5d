"""
Unit tests for services.chat with the assistant stubbed out.
"""
import pytest

from legalai.core.errors import AssistantError, NotFoundError, ValidationError
from legalai.models import ChatMessage, ChatSession, MessageCount, Role
from legalai.services import chat, quota
from legalai.services.assistant import assistant_service

pytestmark = [pytest.mark.asyncio, pytest.mark.usefixtures("db")]


@pytest.fixture
def fake_assistant(monkeypatch):
    calls = {"threads": 0, "messages": []}

    async def create_thread():
        calls["threads"] += 1
        return f"thread_{calls['threads']}"

    async def send_message(thread_id, text):
        calls["messages"].append((thread_id, text))
        return f"Respuesta a: {text}"

    monkeypatch.setattr(assistant_service, "create_thread", create_thread)
    monkeypatch.setattr(assistant_service, "send_message", send_message)
    return calls


async def test_derive_title():
    assert chat.derive_title("  Despido  ") == "Despido"
    assert chat.derive_title("x" * 50) == "x" * 50
    long_title = chat.derive_title("y" * 51)
    assert long_title == "y" * 47 + "..."
    assert len(long_title) == 50


async def test_first_message_creates_session(create_user, fake_assistant):
    user, _ = await create_user()
    result = await chat.send_chat_message(user, "¿Cuánto es el salario mínimo?")

    assert result.allowed is True
    assert result.reply == "Respuesta a: ¿Cuánto es el salario mínimo?"
    assert result.stats == {"limit": 10, "used": 1, "remaining": 9}

    session = await ChatSession.get(id=result.session_id)
    assert session.title == "¿Cuánto es el salario mínimo?"
    assert session.thread_id == "thread_1"
    roles = [m.role.value for m in await ChatMessage.filter(session=session).order_by("created_at")]
    assert roles == ["user", "assistant"]


async def test_follow_up_reuses_thread(create_user, fake_assistant):
    user, _ = await create_user()
    first = await chat.send_chat_message(user, "Hola")
    second = await chat.send_chat_message(user, "Otra pregunta", first.session_id)

    assert second.session_id == first.session_id
    assert fake_assistant["threads"] == 1
    assert fake_assistant["messages"][-1] == ("thread_1", "Otra pregunta")
    assert await ChatMessage.filter(session_id=first.session_id).count() == 4


async def test_quota_denial_persists_nothing(create_user, fake_assistant):
    user, _ = await create_user()
    await quota.set_role_limit(Role.FREE, 1)
    await chat.send_chat_message(user, "Primera")

    denied = await chat.send_chat_message(user, "Segunda")
    assert denied.allowed is False
    assert denied.reason == quota.REASON_LIMIT_REACHED
    assert denied.stats == {"limit": 1, "used": 1, "remaining": 0}
    assert await ChatSession.filter(user=user).count() == 1
    assert await ChatMessage.all().count() == 2


async def test_assistant_failure_keeps_charge_and_user_message(create_user, fake_assistant, monkeypatch):
    user, _ = await create_user()

    async def broken(thread_id, text):
        raise AssistantError("down")

    monkeypatch.setattr(assistant_service, "send_message", broken)
    with pytest.raises(AssistantError):
        await chat.send_chat_message(user, "Hola")

    assert (await MessageCount.get(user_id=user.id)).count == 1
    messages = await ChatMessage.all()
    assert [m.role.value for m in messages] == ["user"]


async def test_foreign_session_rejected_before_charging(create_user, fake_assistant):
    owner, _ = await create_user()
    intruder, _ = await create_user()
    result = await chat.send_chat_message(owner, "Hola")

    with pytest.raises(NotFoundError) as exc:
        await chat.send_chat_message(intruder, "Hola", result.session_id)
    assert exc.value.code == "SESSION_NOT_FOUND"
    assert await MessageCount.filter(user_id=intruder.id).count() == 0


async def test_blank_message_rejected(create_user, fake_assistant):
    user, _ = await create_user()
    with pytest.raises(ValidationError):
        await chat.send_chat_message(user, "   ")


async def test_get_rename_and_delete(create_user, fake_assistant):
    user, _ = await create_user()
    result = await chat.send_chat_message(user, "Hola")

    data = await chat.get_session(user, result.session_id)
    assert [m["role"] for m in data["messages"]] == ["user", "assistant"]

    renamed = await chat.rename_session(user, result.session_id, "  " + "t" * 100)
    assert renamed.title == "t" * 80

    await chat.delete_session(user, result.session_id)
    assert await ChatSession.all().count() == 0
    assert await ChatMessage.all().count() == 0


async def test_empty_session_is_an_error(create_user):
    user, _ = await create_user()
    session = await ChatSession.create(user=user, title="Vacía", thread_id="thread_x")
    with pytest.raises(NotFoundError) as exc:
        await chat.get_session(user, str(session.id))
    assert exc.value.code == "SESSION_EMPTY"


async def test_delete_all_history_only_touches_owner(create_user, fake_assistant):
    user, _ = await create_user()
    other, _ = await create_user()
    await chat.send_chat_message(user, "Uno")
    await chat.send_chat_message(user, "Dos")
    await chat.send_chat_message(other, "Tres")

    assert await chat.delete_all_history(user) == 2
    assert await ChatSession.filter(user=user).count() == 0
    assert await ChatSession.filter(user=other).count() == 1
    assert await ChatMessage.all().count() == 2
