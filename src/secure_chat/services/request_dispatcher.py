from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx
from loguru import logger

from secure_chat.app_config import ChatbotConfig, DispatchMode
from secure_chat.errors import (
    ExchangeCancelled,
    HttpStatusError,
    MalformedResponse,
    NetworkError,
    RemoteUnavailable,
)
from secure_chat.fallback import FallbackReplyGenerator
from secure_chat.fingerprint import build_fingerprint, collect_environment_signals
from secure_chat.models import MessageOrigin, Reply
from secure_chat.security import sanitize


def epoch_ms() -> int:
    return int(time.time() * 1000)


def _no_cookies() -> CookieJar:
    # credentials are never sent to, or stored for, a cross-origin endpoint
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class RequestDispatcher:
    """Sends one message to the reply service and returns its sanitized reply.

    At most one exchange is in flight: starting a new one cancels the previous
    exchange, whose caller then gets ``ExchangeCancelled`` instead of a result.

    In resilient mode every ``RemoteUnavailable`` condition is absorbed into a
    fallback reply (``origin=fallback``). This hides backend outages from the
    host's error callback; integrators who need to see them should use strict
    mode or check ``Message.origin``.
    """

    _JSON_CONTENT_TYPE = "application/json"

    def __init__(
        self,
        config: ChatbotConfig,
        *,
        client: httpx.AsyncClient | None = None,
        fallback: FallbackReplyGenerator | None = None,
        fingerprint: str | None = None,
        clock: Callable[[], int] = epoch_ms,
    ):
        self._endpoint = config.endpoint_url
        self._csrf_token = config.csrf_token if config.endpoint_is_same_origin else ""
        if config.csrf_token and not self._csrf_token:
            logger.warning(f"CSRF token withheld from cross-origin endpoint {self._endpoint}")
        self._mode = config.mode
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=config.request_timeout_seconds,
            cookies=None if config.endpoint_is_same_origin else _no_cookies(),
        )
        self._fallback = fallback or FallbackReplyGenerator()
        self._fingerprint = fingerprint or build_fingerprint(collect_environment_signals())
        self._clock = clock
        self._current: asyncio.Task[Reply] | None = None

    @property
    def mode(self) -> DispatchMode:
        return self._mode

    @property
    def in_flight(self) -> bool:
        return self._current is not None and not self._current.done()

    def cancel(self) -> bool:
        """Cancel the outstanding exchange. Returns True if one was running."""
        task = self._current
        self._current = None
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Cancelled in-flight exchange")
        return True

    async def dispatch(self, message: str, *, session_id: str) -> Reply:
        self.cancel()
        task = asyncio.create_task(self._exchange(message, session_id))
        self._current = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            # the caller itself was cancelled (teardown)
            task.cancel()
            raise
        finally:
            if self._current is task:
                self._current = None

        if task.cancelled():
            raise ExchangeCancelled()
        return task.result()

    async def aclose(self) -> None:
        self.cancel()
        if self._owns_client:
            await self._client.aclose()

    def build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": self._JSON_CONTENT_TYPE,
            "X-Requested-With": "XMLHttpRequest",
        }
        if self._csrf_token:
            headers["X-CSRF-Token"] = self._csrf_token
        return headers

    def build_body(self, message: str, session_id: str) -> dict:
        return {
            "message": sanitize(message),
            "timestamp": self._clock(),
            "fingerprint": self._fingerprint,
            "session_id": session_id,
        }

    async def _exchange(self, message: str, session_id: str) -> Reply:
        try:
            text = await self._request_reply(message, session_id)
        except RemoteUnavailable as ex:
            if self._mode is DispatchMode.STRICT:
                raise
            logger.warning(f"Reply service unavailable ({ex.kind}: {ex}), generating fallback reply.")
            return Reply(self._fallback.generate(message), MessageOrigin.FALLBACK)
        return Reply(text, MessageOrigin.LIVE)

    async def _request_reply(self, message: str, session_id: str) -> str:
        body = self.build_body(message, session_id)
        logger.debug(f"POST {self._endpoint}: session={session_id}, chars={len(body['message'])}")
        try:
            response = await self._client.post(
                self._endpoint,
                content=json.dumps(body),
                headers=self.build_headers(),
            )
        except httpx.HTTPError as ex:
            raise NetworkError(f"{type(ex).__name__}: {ex}") from ex

        logger.debug(f"Reply service responded: status={response.status_code}")
        if not response.is_success:
            raise HttpStatusError(response.status_code)

        content_type = response.headers.get("content-type", "")
        if self._JSON_CONTENT_TYPE not in content_type.lower():
            raise MalformedResponse(f"Invalid response content type: {content_type!r}")

        try:
            data = response.json()
        except ValueError as ex:
            raise MalformedResponse("Invalid response body: not JSON") from ex

        if not isinstance(data, dict) or not isinstance(data.get("reply"), str):
            raise MalformedResponse("Invalid response format: missing 'reply'")
        return sanitize(data["reply"])
