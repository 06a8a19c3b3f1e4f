from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from loguru import logger

from secure_chat.errors import ChatError, ExchangeCancelled, RateLimited, ValidationRejected
from secure_chat.models import ConnectionStatus, Message, MessageStatus, Reply, utc_now
from secure_chat.rate_limiter import SlidingWindowRateLimiter
from secure_chat.security import generate_secure_id, validate_input
from secure_chat.session_store import SessionStore
from secure_chat.services.request_dispatcher import RequestDispatcher

ERROR_REPLY = "Sorry, I encountered an error. Please try again."
CANCELLED_REPLY = "Request cancelled."


class SendOutcome(str, Enum):
    EMPTY = "empty"
    REJECTED = "rejected"
    RATE_LIMITED = "rate_limited"
    SUPERSEDED = "superseded"
    REPLIED = "replied"
    FAILED = "failed"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class _PendingExchange:
    token: int
    placeholder_id: str


class SessionController:
    """Turns send/cancel/new-session intents into exchanges and reconciles them.

    Each exchange gets a token. A result is applied only while its token is
    still current; stop, new session and teardown retire the token, so a late
    settlement of a retired exchange is discarded.
    """

    def __init__(
        self,
        *,
        dispatcher: RequestDispatcher,
        rate_limiter: SlidingWindowRateLimiter,
        max_message_length: int,
        store: SessionStore | None = None,
        id_factory: Callable[[], str] = generate_secure_id,
        now: Callable[[], datetime] = utc_now,
        on_error: Callable[[Exception], None] | None = None,
        on_message_sent: Callable[[str], None] | None = None,
    ):
        self._dispatcher = dispatcher
        self._rate_limiter = rate_limiter
        self._max_message_length = max_message_length
        self._id_factory = id_factory
        self._now = now
        self._store = store or SessionStore(id_factory())
        self._on_error = on_error
        self._on_message_sent = on_message_sent
        self._token = 0
        self._pending: _PendingExchange | None = None

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def busy(self) -> bool:
        return self._store.busy

    @property
    def max_message_length(self) -> int:
        return self._max_message_length

    def on_input_change(self, value: str) -> bool:
        """Accept ``value`` into the draft unless it exceeds the length limit."""
        if len(value) > self._max_message_length:
            return False
        self._store.set_draft(value)
        return True

    def should_submit(self, key: str, *, shift: bool = False) -> bool:
        """Enter submits; shift-enter is reserved for line breaks; no submits while busy."""
        return key == "Enter" and not shift and not self._store.busy

    async def on_key(self, key: str, *, shift: bool = False) -> SendOutcome | None:
        if not self.should_submit(key, shift=shift):
            return None
        return await self.on_send()

    async def on_send(self, raw_text: str | None = None) -> SendOutcome:
        text = self._store.draft if raw_text is None else raw_text
        trimmed = text.strip()
        if not trimmed:
            return SendOutcome.EMPTY

        if self._store.busy:
            # submitting again while a reply is pending acts as a stop
            self.on_cancel()
            return SendOutcome.SUPERSEDED

        if not validate_input(trimmed, self._max_message_length):
            self._report(ValidationRejected())
            return SendOutcome.REJECTED

        if not self._rate_limiter.can_send():
            self._report(RateLimited(self._rate_limiter.retry_after_ms()))
            return SendOutcome.RATE_LIMITED

        self._rate_limiter.record_send()

        created_at = self._now()
        user_message = Message.from_user(self._id_factory(), trimmed, created_at)
        placeholder = Message.bot_placeholder(self._id_factory(), created_at)
        self._token += 1
        pending = _PendingExchange(self._token, placeholder.id)
        self._pending = pending
        self._store.begin_exchange(user_message, placeholder)

        self._notify_message_sent(trimmed)

        try:
            reply = await self._dispatcher.dispatch(trimmed, session_id=self._store.session_id)
        except ExchangeCancelled:
            if self._is_current(pending):
                # cancelled from outside the controller; settle like a stop
                self._finish_cancelled(pending)
            return SendOutcome.DISCARDED
        except asyncio.CancelledError:
            if self._is_current(pending):
                self._finish_cancelled(pending)
            raise
        except Exception as ex:
            if not self._is_current(pending):
                logger.debug(f"Discarding failure of superseded exchange {pending.token}: {ex}")
                return SendOutcome.DISCARDED
            self._finish_failed(pending, ex)
            return SendOutcome.FAILED

        if not self._is_current(pending):
            logger.debug(f"Discarding reply of superseded exchange {pending.token}")
            return SendOutcome.DISCARDED
        self._finish_replied(pending, reply)
        return SendOutcome.REPLIED

    def on_cancel(self) -> bool:
        """Stop the pending exchange, if any, without reporting an error."""
        pending = self._pending
        if pending is None:
            return False
        self._dispatcher.cancel()
        self._finish_cancelled(pending)
        return True

    def on_new_session(self) -> str:
        # a reply for the old session must never land in the new one
        pending = self._pending
        if pending is not None:
            self._pending = None
            self._dispatcher.cancel()
            logger.info(f"New session requested; cancelled exchange {pending.token}")
        session_id = self._id_factory()
        self._store.reset(session_id)
        logger.info(f"Started session {session_id}")
        return session_id

    async def aclose(self) -> None:
        self.on_cancel()
        await self._dispatcher.aclose()

    def _is_current(self, pending: _PendingExchange) -> bool:
        return self._pending is not None and self._pending.token == pending.token

    def _finish_replied(self, pending: _PendingExchange, reply: Reply) -> None:
        self._pending = None
        self._store.settle_placeholder(
            pending.placeholder_id,
            reply.text,
            MessageStatus.SENT,
            origin=reply.origin,
        )

    def _finish_failed(self, pending: _PendingExchange, error: Exception) -> None:
        self._pending = None
        logger.error(f"Exchange {pending.token} failed: {error}")
        self._store.settle_placeholder(
            pending.placeholder_id,
            ERROR_REPLY,
            MessageStatus.ERROR,
            connection_status=ConnectionStatus.ERROR,
        )
        self._call_on_error(error)

    def _finish_cancelled(self, pending: _PendingExchange) -> None:
        self._pending = None
        logger.info(f"Exchange {pending.token} cancelled")
        self._store.settle_placeholder(pending.placeholder_id, CANCELLED_REPLY, MessageStatus.ERROR)

    def _report(self, error: ChatError) -> None:
        logger.warning(f"Message not sent ({error.kind}): {error}")
        self._store.set_connection_status(ConnectionStatus.ERROR)
        self._call_on_error(error)

    def _call_on_error(self, error: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception as ex:
            logger.warning(f"on_error callback failed: {ex}")

    def _notify_message_sent(self, text: str) -> None:
        if self._on_message_sent is None:
            return
        try:
            self._on_message_sent(text)
        except Exception as ex:
            logger.warning(f"on_message_sent callback failed: {ex}")
