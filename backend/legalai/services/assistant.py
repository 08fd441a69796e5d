"""
Legal Assistant Service (OpenAI Assistants API)

Relays user text to a hosted assistant:
1. create a thread once per chat session
2. post the user message and start a run
3. poll the run until it reaches a terminal status (bounded)
4. read back the newest message's text
"""
import asyncio
import logging
from typing import Optional

import httpx

from legalai.config import settings
from legalai.core.errors import AssistantError, AssistantTimeoutError

logger = logging.getLogger("uvicorn.error")

PENDING_STATUSES = {"queued", "in_progress", "cancelling"}


class AssistantService:
    """Thin async client for the OpenAI Assistants v2 endpoints."""

    def __init__(self):
        self.api_key = settings.openai_api_key
        self.api_base = settings.openai_api_base.rstrip("/")
        self.assistant_id = settings.openai_assistant_id
        self.model = settings.openai_default_model
        self.poll_interval = settings.assistant_poll_interval_sec
        self.max_poll_attempts = settings.assistant_max_poll_attempts
        self.timeout = settings.assistant_request_timeout_sec

    @property
    def name(self) -> str:
        return "OpenAI Assistants API"

    def is_available(self) -> bool:
        """Check if API key and assistant id are configured"""
        return bool(self.api_key) and bool(self.assistant_id)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": "assistants=v2",
        }

    async def _request(self, method: str, path: str, json: Optional[dict] = None, params: Optional[dict] = None) -> dict:
        if not self.is_available():
            raise AssistantError(f"{self.name}: OPENAI_API_KEY / OPENAI_ASSISTANT_ID not configured")
        url = f"{self.api_base}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.request(method, url, headers=self._headers(), json=json, params=params)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as e:
            logger.warning("[assistant] %s %s failed: %s", method, path, e)
            raise AssistantError(f"{self.name} request failed") from e

    # ----- primitives -----
    async def create_thread(self) -> str:
        data = await self._request("POST", "/threads", json={})
        return data["id"]

    async def post_message(self, thread_id: str, text: str) -> str:
        data = await self._request(
            "POST", f"/threads/{thread_id}/messages", json={"role": "user", "content": text}
        )
        return data["id"]

    async def create_run(self, thread_id: str) -> str:
        data = await self._request(
            "POST",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": self.assistant_id, "model": self.model},
        )
        return data["id"]

    async def get_run(self, thread_id: str, run_id: str) -> str:
        data = await self._request("GET", f"/threads/{thread_id}/runs/{run_id}")
        return data.get("status", "")

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        """Best-effort: a failed cancel is logged and swallowed."""
        try:
            await self._request("POST", f"/threads/{thread_id}/runs/{run_id}/cancel")
        except AssistantError:
            logger.warning("[assistant] could not cancel run=%s thread=%s", run_id, thread_id)

    async def latest_reply(self, thread_id: str) -> str:
        data = await self._request(
            "GET", f"/threads/{thread_id}/messages", params={"order": "desc", "limit": 1}
        )
        try:
            content = data["data"][0]["content"]
            return next(c["text"]["value"] for c in content if c.get("type") == "text")
        except (KeyError, IndexError, StopIteration, TypeError) as e:
            raise AssistantError("Assistant reply has no text content") from e

    # ----- high level -----
    async def send_message(self, thread_id: str, text: str) -> str:
        """
        Post `text` to the thread, run the assistant and return its reply.

        Raises:
            AssistantTimeoutError: run still pending after max_poll_attempts polls
            AssistantError: transport failure or a non-completed terminal status

        If the awaiting task is cancelled, the remote run is cancelled too.
        """
        await self.post_message(thread_id, text)
        run_id = await self.create_run(thread_id)

        try:
            status = await self.get_run(thread_id, run_id)
            attempts = 0
            while status in PENDING_STATUSES:
                if attempts >= self.max_poll_attempts:
                    await self.cancel_run(thread_id, run_id)
                    raise AssistantTimeoutError(
                        f"Assistant did not answer after {attempts} polls"
                    )
                await asyncio.sleep(self.poll_interval)
                attempts += 1
                status = await self.get_run(thread_id, run_id)
        except asyncio.CancelledError:
            await asyncio.shield(self.cancel_run(thread_id, run_id))
            raise

        if status != "completed":
            logger.warning("[assistant] run=%s ended with status=%s", run_id, status)
            raise AssistantError(f"Assistant run ended with status '{status}'")
        return await self.latest_reply(thread_id)


# Global singleton
assistant_service = AssistantService()
