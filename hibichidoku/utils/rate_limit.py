from __future__ import annotations

import time
from typing import Callable, Iterable, Iterator, TypeVar

from .logging import get_logger

T = TypeVar("T")
logger = get_logger("hibi.utils.rate_limit")


class RateLimiter:
    """Fixed-interval scheduler for sequential provider calls.

    ``wait()`` blocks until at least ``interval`` seconds have passed since the
    previous ``wait()`` returned. The first call never blocks.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "provider",
    ) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None

    def wait(self) -> float:
        """Block until the next call slot; returns the seconds slept."""
        slept = 0.0
        if self._last is not None and self.interval > 0:
            remaining = self.interval - (self._clock() - self._last)
            if remaining > 0:
                logger.debug("Rate limit (%s): sleeping %.2fs", self.name, remaining)
                self._sleep(remaining)
                slept = remaining
        self._last = self._clock()
        return slept

    def throttle(self, items: Iterable[T]) -> Iterator[T]:
        """Yield items one by one, waiting for a slot before each."""
        for item in items:
            self.wait()
            yield item
