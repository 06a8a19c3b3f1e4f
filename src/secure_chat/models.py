from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


class MessageStatus(str, Enum):
    SENDING = "sending"
    SENT = "sent"
    ERROR = "error"


class MessageOrigin(str, Enum):
    LIVE = "live"
    FALLBACK = "fallback"


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    ERROR = "error"


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Message:
    id: str
    content: str
    sender: Sender
    created_at: datetime
    status: MessageStatus
    origin: MessageOrigin | None = None

    @classmethod
    def from_user(cls, message_id: str, content: str, created_at: datetime) -> Message:
        return cls(message_id, content, Sender.USER, created_at, MessageStatus.SENT)

    @classmethod
    def bot_placeholder(cls, message_id: str, created_at: datetime) -> Message:
        return cls(message_id, "", Sender.BOT, created_at, MessageStatus.SENDING)

    def settle(
        self,
        content: str,
        status: MessageStatus,
        origin: MessageOrigin | None = None,
    ) -> Message:
        if self.status is not MessageStatus.SENDING:
            raise ValueError(f"Message {self.id} already settled with status {self.status.value}")
        if status is MessageStatus.SENDING:
            raise ValueError("A message can only settle to 'sent' or 'error'")
        return replace(self, content=content, status=status, origin=origin)


@dataclass(frozen=True)
class Reply:
    text: str
    origin: MessageOrigin


@dataclass(frozen=True)
class SessionSnapshot:
    session_id: str
    messages: tuple[Message, ...]
    connection_status: ConnectionStatus
    busy: bool
    draft: str
