"""Per-connection token bucket for inbound WebSocket frames."""

import time


class TokenBucket:
    """Allow `burst` frames at once, refilled continuously at `rate` frames per second."""

    def __init__(self, rate: float, burst: int) -> None:
        self._rate = rate
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(float(self._burst), self._tokens + (now - self._last_refill) * self._rate)
        self._last_refill = now

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    def consume(self) -> bool:
        """Take one token. Return False when the caller should drop the frame."""
        self._refill()
        if self._tokens < 1.0:
            return False
        self._tokens -= 1.0
        return True
