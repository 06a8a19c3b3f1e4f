from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class SlidingWindowRateLimiter:
    """Allows at most ``max_messages`` sends within any trailing ``window_ms``.

    ``can_send`` only reads; pruning happens in ``record_send``. Callers must
    check ``can_send`` before recording an attempt.
    """

    def __init__(
        self,
        max_messages: int,
        window_ms: int,
        *,
        clock: Callable[[], float] = monotonic_ms,
    ):
        if max_messages <= 0:
            raise ValueError(f"max_messages must be positive, got {max_messages}")
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")
        self._max_messages = max_messages
        self._window_ms = window_ms
        self._clock = clock
        self._timestamps: deque[float] = deque()

    @property
    def max_messages(self) -> int:
        return self._max_messages

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def _recent(self, now: float) -> list[float]:
        return [ts for ts in self._timestamps if now - ts < self._window_ms]

    def can_send(self) -> bool:
        return len(self._recent(self._clock())) < self._max_messages

    def remaining(self) -> int:
        return max(0, self._max_messages - len(self._recent(self._clock())))

    def retry_after_ms(self) -> float:
        now = self._clock()
        recent = self._recent(now)
        if len(recent) < self._max_messages:
            return 0.0
        # the oldest counted send has to leave the window first
        oldest = recent[len(recent) - self._max_messages]
        return max(0.0, self._window_ms - (now - oldest))

    def record_send(self) -> None:
        now = self._clock()
        while self._timestamps and now - self._timestamps[0] >= self._window_ms:
            self._timestamps.popleft()
        self._timestamps.append(now)

    def reset(self) -> None:
        self._timestamps.clear()
