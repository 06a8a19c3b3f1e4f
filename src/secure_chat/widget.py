from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from secure_chat.app_config import ChatbotConfig
from secure_chat.models import SessionSnapshot
from secure_chat.services.session_controller import SendOutcome, SessionController

WELCOME_TEXT = "Welcome! How can I help you today?"


class ChatWidget:
    """Presentation-facing shell around a ``SessionController``.

    Holds the open/maximized layout state and forwards user intents. Renderers
    read ``snapshot()`` or subscribe to store updates; they never mutate state.
    """

    def __init__(
        self,
        config: ChatbotConfig,
        controller: SessionController,
        *,
        on_maximize_change: Callable[[bool], None] | None = None,
    ):
        self._config = config
        self._controller = controller
        self._on_maximize_change = on_maximize_change
        self._is_open = config.initially_open
        self._is_maximized = config.initially_maximized

    @property
    def title(self) -> str:
        return self._config.title

    @property
    def disclaimer(self) -> str:
        return self._config.disclaimer

    @property
    def assistant_icon(self) -> str:
        return self._config.assistant_icon

    @property
    def welcome_text(self) -> str:
        return WELCOME_TEXT

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def is_maximized(self) -> bool:
        return self._is_maximized

    @property
    def controller(self) -> SessionController:
        return self._controller

    def snapshot(self) -> SessionSnapshot:
        return self._controller.store.snapshot()

    def character_count(self) -> str:
        return f"{len(self._controller.store.draft)}/{self._controller.max_message_length} characters"

    def subscribe(self, listener: Callable[[SessionSnapshot], None]) -> Callable[[], None]:
        return self._controller.store.subscribe(listener)

    def toggle_open(self) -> bool:
        self._is_open = not self._is_open
        return self._is_open

    def toggle_maximize(self) -> bool:
        self._is_maximized = not self._is_maximized
        if self._on_maximize_change is not None:
            try:
                self._on_maximize_change(self._is_maximized)
            except Exception as ex:
                logger.warning(f"on_maximize_change callback failed: {ex}")
        return self._is_maximized

    def type_text(self, value: str) -> bool:
        return self._controller.on_input_change(value)

    async def press_key(self, key: str, *, shift: bool = False) -> SendOutcome | None:
        return await self._controller.on_key(key, shift=shift)

    async def send(self, text: str | None = None) -> SendOutcome:
        return await self._controller.on_send(text)

    def cancel(self) -> bool:
        return self._controller.on_cancel()

    def new_session(self) -> str:
        return self._controller.on_new_session()

    async def aclose(self) -> None:
        await self._controller.aclose()
