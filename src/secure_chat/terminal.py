from __future__ import annotations

import asyncio
import html
from collections.abc import Callable

from loguru import logger

from secure_chat.commands.router import CommandRouter
from secure_chat.models import Message, MessageOrigin, MessageStatus, Sender
from secure_chat.services.session_controller import SendOutcome
from secure_chat.widget import ChatWidget


def format_message(message: Message, *, user_prefix: str, bot_prefix: str) -> str:
    if message.sender is Sender.USER:
        return f"{user_prefix}{message.content}"
    # bot content is entity-escaped; a terminal shows it as literal text
    text = html.unescape(message.content)
    if message.status is MessageStatus.ERROR:
        return f"{bot_prefix}[!] {text}"
    if message.origin is MessageOrigin.FALLBACK:
        return f"{bot_prefix}{text} [offline]"
    return f"{bot_prefix}{text}"


class TerminalChat:
    """Line-oriented front end for a ``ChatWidget``.

    Input keeps being read while a reply is pending, so ``/cancel`` or a second
    message can stop the exchange. The reply is printed when it settles.
    """

    _USER_PROMPT = "you> "
    _LINE_PREFIX = "assistant> "

    def __init__(
        self,
        widget: ChatWidget,
        *,
        show_progress: bool = True,
        write: Callable[[str], None] = print,
    ):
        self._widget = widget
        self._show_progress = show_progress
        self._write = write
        self._exchange: asyncio.Task | None = None
        self._router = CommandRouter(
            on_help=self._on_help,
            on_new_session=self._on_new_session,
            on_cancel=self._on_cancel,
            on_maximize=self._on_maximize,
            on_unknown=self._on_unknown,
        )

    def print_banner(self, log_descriptions: list[str]) -> None:
        self._write(f"{self._widget.title} (type 'exit' to quit, '/help' for commands)")
        if self._widget.disclaimer:
            self._write(self._widget.disclaimer)
        if log_descriptions:
            self._write(f"Logging: {', '.join(log_descriptions)}")
        self._write("")
        self._write(f"{self._LINE_PREFIX}{self._widget.welcome_text}")

    async def run(self, read_line: Callable[[str], str] = input) -> None:
        if not self._widget.is_open:
            self._widget.toggle_open()
        try:
            while True:
                try:
                    user_input = await asyncio.to_thread(read_line, self._USER_PROMPT)
                except (EOFError, KeyboardInterrupt):
                    break

                trimmed = user_input.strip()
                if trimmed in ("exit", "quit"):
                    break
                if not trimmed:
                    continue

                try:
                    if await self._router.try_handle(trimmed):
                        continue
                    await self.submit(trimmed)
                except Exception as ex:
                    logger.error(f"Unhandled error: {ex}")
        finally:
            await self._drain()

    async def submit(self, text: str) -> None:
        """Start an exchange in the background, or stop the pending one."""
        if self._widget.controller.busy:
            await self._widget.send(text)
            return
        self._exchange = asyncio.create_task(self.send(text))
        # the exchange marks the session busy before the next line is read
        await asyncio.sleep(0)
        if self._show_progress and self._widget.controller.busy:
            self._write(f"{self._LINE_PREFIX}Waiting for reply... (/cancel to stop)")

    async def send(self, text: str) -> SendOutcome | None:
        if not self._widget.type_text(text):
            self._write(
                f"{self._LINE_PREFIX}[!] Message too long "
                f"({len(text)}/{self._widget.controller.max_message_length} characters)"
            )
            return None

        try:
            outcome = await self._widget.press_key("Enter")
        except Exception as ex:
            logger.error(f"Exchange failed: {ex}")
            return None

        if outcome in (SendOutcome.REPLIED, SendOutcome.FAILED, SendOutcome.DISCARDED):
            messages = self._widget.snapshot().messages
            last = messages[-1] if messages else None
            # a superseded exchange may finish after a newer one has started
            if last is not None and last.sender is Sender.BOT and last.status is not MessageStatus.SENDING:
                self._write(format_message(last, user_prefix=self._USER_PROMPT, bot_prefix=self._LINE_PREFIX))
        return outcome

    def on_error(self, error: Exception) -> None:
        self._write(f"{self._LINE_PREFIX}[!] {error}")

    async def _drain(self) -> None:
        task = self._exchange
        self._exchange = None
        if task is None:
            return
        if not task.done():
            self._widget.cancel()
        await task

    async def _on_help(self) -> None:
        self._write(f"{self._LINE_PREFIX}Commands: /new (new session), /cancel, /max (toggle maximize), /help")

    async def _on_new_session(self) -> None:
        session_id = self._widget.new_session()
        self._write(f"{self._LINE_PREFIX}Started a new session ({session_id[:8]})")

    async def _on_cancel(self) -> None:
        if not self._widget.cancel():
            self._write(f"{self._LINE_PREFIX}Nothing to cancel")

    async def _on_maximize(self) -> None:
        state = "maximized" if self._widget.toggle_maximize() else "restored"
        self._write(f"{self._LINE_PREFIX}Window {state}")

    def _on_unknown(self, command: str) -> None:
        self._write(f"{self._LINE_PREFIX}Unknown command: {command}")
