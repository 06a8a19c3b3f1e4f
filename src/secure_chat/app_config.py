from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from urllib.parse import urljoin, urlsplit

from secure_chat.logging_config import DEFAULT_LOG_FILE


class DispatchMode(str, Enum):
    RESILIENT = "resilient"
    STRICT = "strict"


@dataclass(frozen=True)
class RateLimitConfig:
    max_messages: int = 10
    window_ms: int = 60_000

    def __post_init__(self) -> None:
        if self.max_messages <= 0:
            raise ValueError(f"RateLimit.MaxMessages must be positive, got {self.max_messages}")
        if self.window_ms <= 0:
            raise ValueError(f"RateLimit.WindowMs must be positive, got {self.window_ms}")


@dataclass(frozen=True)
class ChatbotConfig:
    api_endpoint: str = "/api/chat"
    origin: str = "http://localhost:8000"
    allowed_origins: tuple[str, ...] = ()
    max_message_length: int = 1000
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    csrf_token: str = ""
    mode: DispatchMode = DispatchMode.RESILIENT
    request_timeout_seconds: float = 30.0
    title: str = "Support Chat"
    disclaimer: str = ""
    initially_open: bool = False
    initially_maximized: bool = False
    assistant_icon: str = ""
    log_level: str = "INFO"
    log_file: str = DEFAULT_LOG_FILE
    log_consumers: list | None = None

    def __post_init__(self) -> None:
        if self.max_message_length <= 0:
            raise ValueError(f"MaxMessageLength must be positive, got {self.max_message_length}")
        origin = origin_of(self.origin)
        if not origin:
            raise ValueError(f"Origin must be an absolute http(s) URL, got {self.origin!r}")
        allowed = tuple(origin_of(o) for o in self.allowed_origins) or (origin,)
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "allowed_origins", allowed)
        endpoint_origin = origin_of(self.endpoint_url)
        if endpoint_origin not in allowed:
            raise ValueError(
                f"ApiEndpoint origin {endpoint_origin!r} is not in AllowedOrigins {list(allowed)}"
            )

    @property
    def endpoint_url(self) -> str:
        return urljoin(self.origin + "/", self.api_endpoint)

    @property
    def endpoint_is_same_origin(self) -> bool:
        return origin_of(self.endpoint_url) == self.origin


def origin_of(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return ""
    default_port = 443 if parts.scheme == "https" else 80
    port = parts.port or default_port
    host = parts.hostname.lower()
    if port == default_port:
        return f"{parts.scheme}://{host}"
    return f"{parts.scheme}://{host}:{port}"


def load_json_config(path: Path | None = None) -> dict:
    config_path = path or Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def _parse_mode(value: object) -> DispatchMode:
    name = str(value or DispatchMode.RESILIENT.value).strip().lower()
    try:
        return DispatchMode(name)
    except ValueError:
        raise ValueError(f"Unknown Mode: {value!r}. Supported: 'resilient', 'strict'") from None


def parse_chatbot_config(config: dict) -> ChatbotConfig:
    """Merge a ``config.json`` style dict over the defaults, once."""
    rate_limit = config.get("RateLimit") or {}
    defaults = RateLimitConfig()
    origin = str(config.get("Origin", ChatbotConfig.origin)).strip()
    csrf_token = os.environ.get("SECURE_CHAT_CSRF_TOKEN") or str(config.get("CsrfToken", ""))
    return ChatbotConfig(
        api_endpoint=str(config.get("ApiEndpoint", ChatbotConfig.api_endpoint)).strip(),
        origin=origin,
        allowed_origins=tuple(config.get("AllowedOrigins") or ()),
        max_message_length=int(config.get("MaxMessageLength", 1000)),
        rate_limit=RateLimitConfig(
            max_messages=int(rate_limit.get("MaxMessages", defaults.max_messages)),
            window_ms=int(rate_limit.get("WindowMs", defaults.window_ms)),
        ),
        csrf_token=csrf_token.strip(),
        mode=_parse_mode(config.get("Mode")),
        request_timeout_seconds=float(config.get("RequestTimeoutSeconds", 30)),
        title=str(config.get("Title", "")).strip() or ChatbotConfig.title,
        disclaimer=str(config.get("Disclaimer", "")),
        initially_open=_to_bool(config.get("InitiallyOpen", False), default=False),
        initially_maximized=_to_bool(config.get("InitiallyMaximized", False), default=False),
        assistant_icon=str(config.get("AssistantIcon", "")),
        log_level=config.get("LogLevel", "INFO"),
        log_file=str(config.get("LogFile", "")).strip() or DEFAULT_LOG_FILE,
        log_consumers=config.get("LogConsumers"),
    )
