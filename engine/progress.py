"""Rate limiting for progress callbacks."""
from __future__ import annotations

import time
from typing import Callable, Optional

from .constants import PROGRESS_INTERVAL


class ProgressThrottle:
    """
    Decides whether a progress event may be delivered.

    The first event always passes; after that an event passes only when at
    least ``interval`` seconds have gone by since the last one that did,
    however often events arrive.
    """

    def __init__(
        self,
        interval: float = PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.interval = interval
        self._clock = clock
        self._last: Optional[float] = None

    def ready(self) -> bool:
        now = self._clock()
        if self._last is not None and now - self._last < self.interval:
            return False
        self._last = now
        return True
