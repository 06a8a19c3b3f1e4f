from __future__ import annotations

import math


class ChatError(Exception):
    kind = "error"


class ValidationRejected(ChatError):
    kind = "validation"

    def __init__(self, message: str = "Invalid message content"):
        super().__init__(message)


class RateLimited(ChatError):
    kind = "rate_limited"

    def __init__(self, retry_after_ms: float = 0.0):
        self.retry_after_ms = retry_after_ms
        seconds = math.ceil(retry_after_ms / 1000)
        super().__init__(
            f"Rate limit exceeded. Please wait {seconds}s before sending another message."
        )


class ExchangeError(ChatError):
    """Failure of one request/response exchange with the reply service."""


class ExchangeCancelled(ExchangeError):
    kind = "cancelled"

    def __init__(self, message: str = "Exchange was cancelled"):
        super().__init__(message)


class RemoteUnavailable(ExchangeError):
    """The reply service could not produce a usable reply."""


class HttpStatusError(RemoteUnavailable):
    kind = "http_error"

    def __init__(self, status: int):
        self.status = status
        super().__init__(f"Reply service returned HTTP {status}")


class MalformedResponse(RemoteUnavailable):
    kind = "malformed_response"


class NetworkError(RemoteUnavailable):
    kind = "network_error"
