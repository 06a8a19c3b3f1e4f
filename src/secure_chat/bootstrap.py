from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import httpx

from secure_chat.app_config import ChatbotConfig
from secure_chat.logging_config import setup_logging
from secure_chat.rate_limiter import SlidingWindowRateLimiter
from secure_chat.services.request_dispatcher import RequestDispatcher
from secure_chat.services.session_controller import SessionController
from secure_chat.widget import ChatWidget


@dataclass
class AppRuntime:
    widget: ChatWidget
    log_descriptions: list[str]


def build_widget(
    config: ChatbotConfig,
    *,
    client: httpx.AsyncClient | None = None,
    on_error: Callable[[Exception], None] | None = None,
    on_message_sent: Callable[[str], None] | None = None,
    on_maximize_change: Callable[[bool], None] | None = None,
) -> ChatWidget:
    dispatcher = RequestDispatcher(config, client=client)
    controller = SessionController(
        dispatcher=dispatcher,
        rate_limiter=SlidingWindowRateLimiter(
            config.rate_limit.max_messages,
            config.rate_limit.window_ms,
        ),
        max_message_length=config.max_message_length,
        on_error=on_error,
        on_message_sent=on_message_sent,
    )
    return ChatWidget(config, controller, on_maximize_change=on_maximize_change)


def bootstrap_runtime(
    config: ChatbotConfig,
    *,
    on_error: Callable[[Exception], None] | None = None,
    on_message_sent: Callable[[str], None] | None = None,
    on_maximize_change: Callable[[bool], None] | None = None,
) -> AppRuntime:
    log_descriptions = setup_logging(
        level=config.log_level,
        consumers=config.log_consumers,
        log_file=config.log_file,
    )
    widget = build_widget(
        config,
        on_error=on_error,
        on_message_sent=on_message_sent,
        on_maximize_change=on_maximize_change,
    )
    return AppRuntime(widget=widget, log_descriptions=log_descriptions)
