"""
Unit tests for services.assistant module.
The OpenAI HTTP API is replaced by a patched httpx.AsyncClient.
"""
import asyncio
import itertools
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from legalai.core.errors import AssistantError, AssistantTimeoutError
from legalai.services.assistant import AssistantService


def _service(**overrides) -> AssistantService:
    svc = AssistantService()
    svc.api_key = "test-key"
    svc.assistant_id = "asst_test"
    svc.poll_interval = 0
    svc.max_poll_attempts = 5
    for k, v in overrides.items():
        setattr(svc, k, v)
    return svc


def _fake_api(run_statuses, reply="Según el Código de Trabajo..."):
    """Return (request coroutine, recorded calls) emulating the Assistants endpoints."""
    statuses = iter(run_statuses)
    calls = []

    async def request(method, url, headers=None, json=None, params=None):
        calls.append({"method": method, "url": url, "headers": headers, "json": json, "params": params})
        if method == "POST" and url.endswith("/threads"):
            data = {"id": "thread_1"}
        elif method == "POST" and url.endswith("/messages"):
            data = {"id": "msg_1"}
        elif method == "POST" and url.endswith("/runs"):
            data = {"id": "run_1", "status": "queued"}
        elif url.endswith("/cancel"):
            data = {"id": "run_1", "status": "cancelling"}
        elif method == "GET" and "/runs/" in url:
            data = {"id": "run_1", "status": next(statuses)}
        else:
            data = {"data": [{"content": [{"type": "text", "text": {"value": reply, "annotations": []}}]}]}
        resp = MagicMock()
        resp.json.return_value = data
        return resp

    return request, calls


def _patch_client(mock_client, request):
    mock_client.return_value.__aenter__.return_value.request = AsyncMock(side_effect=request)


class TestAvailability:
    def test_is_available_requires_key_and_assistant(self):
        assert _service().is_available() is True
        assert _service(api_key=None).is_available() is False
        assert _service(assistant_id=None).is_available() is False

    @pytest.mark.asyncio
    async def test_unconfigured_service_raises_without_calling(self):
        svc = _service(api_key=None)
        with patch("httpx.AsyncClient") as mock_client:
            with pytest.raises(AssistantError):
                await svc.create_thread()
            mock_client.assert_not_called()


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_polls_until_completed_and_returns_reply(self):
        svc = _service()
        request, calls = _fake_api(["queued", "in_progress", "completed"], reply="Hola")
        with patch("httpx.AsyncClient") as mock_client:
            _patch_client(mock_client, request)
            reply = await svc.send_message("thread_1", "¿Qué es el preaviso?")

        assert reply == "Hola"
        run_polls = [c for c in calls if c["method"] == "GET" and "/runs/" in c["url"]]
        assert len(run_polls) == 3
        run_create = next(c for c in calls if c["url"].endswith("/runs"))
        assert run_create["json"] == {"assistant_id": "asst_test", "model": svc.model}
        assert all(c["headers"]["OpenAI-Beta"] == "assistants=v2" for c in calls)
        last = calls[-1]
        assert last["params"] == {"order": "desc", "limit": 1}

    @pytest.mark.asyncio
    async def test_bounded_polling_times_out_and_cancels(self):
        svc = _service(max_poll_attempts=3)
        request, calls = _fake_api(itertools.repeat("in_progress"))
        with patch("httpx.AsyncClient") as mock_client:
            _patch_client(mock_client, request)
            with pytest.raises(AssistantTimeoutError):
                await svc.send_message("thread_1", "hola")

        assert any(c["url"].endswith("/runs/run_1/cancel") for c in calls)
        run_polls = [c for c in calls if c["method"] == "GET" and "/runs/" in c["url"]]
        assert len(run_polls) == 4  # initial status + 3 polls

    @pytest.mark.parametrize("terminal", ["failed", "cancelled", "expired", "requires_action", "incomplete"])
    @pytest.mark.asyncio
    async def test_non_completed_terminal_status_raises(self, terminal):
        svc = _service()
        request, _ = _fake_api(["in_progress", terminal])
        with patch("httpx.AsyncClient") as mock_client:
            _patch_client(mock_client, request)
            with pytest.raises(AssistantError) as exc:
                await svc.send_message("thread_1", "hola")
        assert not isinstance(exc.value, AssistantTimeoutError)
        assert exc.value.code == "ASSISTANT_FAILED"

    @pytest.mark.asyncio
    async def test_cancelled_caller_cancels_remote_run(self):
        svc = _service(poll_interval=0.01, max_poll_attempts=1000)
        request, calls = _fake_api(itertools.repeat("in_progress"))
        with patch("httpx.AsyncClient") as mock_client:
            _patch_client(mock_client, request)
            task = asyncio.create_task(svc.send_message("thread_1", "hola"))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert any(c["url"].endswith("/runs/run_1/cancel") for c in calls)

    @pytest.mark.asyncio
    async def test_transport_error_becomes_assistant_error(self):
        svc = _service()
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.request = AsyncMock(
                side_effect=httpx.ConnectError("connection refused")
            )
            with pytest.raises(AssistantError):
                await svc.create_thread()


class TestLatestReply:
    @pytest.mark.asyncio
    async def test_reply_without_text_content_raises(self):
        svc = _service()

        async def request(method, url, **kwargs):
            resp = MagicMock()
            resp.json.return_value = {"data": [{"content": [{"type": "image_file"}]}]}
            return resp

        with patch("httpx.AsyncClient") as mock_client:
            _patch_client(mock_client, request)
            with pytest.raises(AssistantError):
                await svc.latest_reply("thread_1")

    @pytest.mark.asyncio
    async def test_create_thread_returns_id(self):
        svc = _service()
        request, calls = _fake_api([])
        with patch("httpx.AsyncClient") as mock_client:
            _patch_client(mock_client, request)
            assert await svc.create_thread() == "thread_1"
        assert calls[0]["url"] == f"{svc.api_base}/threads"
