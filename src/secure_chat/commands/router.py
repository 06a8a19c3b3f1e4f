from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_new_session: Callable[[], Awaitable[None]],
        on_cancel: Callable[[], Awaitable[None]],
        on_maximize: Callable[[], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_new_session = on_new_session
        self._on_cancel = on_cancel
        self._on_maximize = on_maximize
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        if trimmed == "/help":
            await self._on_help()
            return True
        if trimmed == "/new":
            await self._on_new_session()
            return True
        if trimmed == "/cancel":
            await self._on_cancel()
            return True
        if trimmed == "/max":
            await self._on_maximize()
            return True

        self._on_unknown(trimmed)
        return True
