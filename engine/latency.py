"""
HTTP round-trip latency measurement.

Sends a fixed number of sequential ``HEAD`` requests for a zero-byte
payload and averages the round trips of the ones that succeeded.  A failed
attempt is dropped without aborting the others; only a run where every
attempt failed is an error.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence

import aiohttp

from .constants import DOWNLOAD_URL, NO_CACHE_HEADERS, PING_COUNT, PING_TIMEOUT
from .errors import MeasurementCancelled, NoConnectivityError, describe_transport_error
from .stats import mean_latency

LOGGER = logging.getLogger(__name__)


def average_latency(samples: Sequence[float]) -> float:
    """Mean of the successful samples; ``NoConnectivityError`` if there are none."""
    if not samples:
        raise NoConnectivityError("No connection: every latency sample failed")
    return mean_latency(samples)


class LatencySampler:
    """Measure round-trip latency to the speed-test endpoint."""

    def __init__(
        self,
        url: str = DOWNLOAD_URL,
        count: int = PING_COUNT,
        timeout: float = PING_TIMEOUT,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.url = url
        self.count = count
        self.timeout = timeout
        self._clock = clock
        self._cancelled = False
        self._request: Optional[asyncio.Future] = None

    # -- Public -------------------------------------------------------------

    async def measure(self) -> float:
        """Return the mean latency in milliseconds."""
        self._cancelled = False
        samples: List[float] = []

        async with self._open_session() as session:
            for attempt in range(1, self.count + 1):
                if self._cancelled:
                    raise MeasurementCancelled()

                self._request = asyncio.ensure_future(self._sample_once(session))
                try:
                    latency = await self._request
                except asyncio.CancelledError:
                    if not self._cancelled:
                        raise
                    raise MeasurementCancelled() from None
                finally:
                    self._request = None

                if latency is None:
                    LOGGER.debug("Latency sample %d/%d discarded", attempt, self.count)
                    continue
                samples.append(latency)
                LOGGER.debug("Latency sample %d/%d: %.1f ms", attempt, self.count, latency)

        return average_latency(samples)

    def cancel(self) -> None:
        """Abort the in-flight request; ``measure()`` raises ``MeasurementCancelled``."""
        self._cancelled = True
        if self._request is not None and not self._request.done():
            self._request.cancel()

    # -- Internals ----------------------------------------------------------

    def _open_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            headers=NO_CACHE_HEADERS,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )

    async def _sample_once(self, session: aiohttp.ClientSession) -> Optional[float]:
        """One round trip in ms, or ``None`` if it did not succeed."""
        start = self._clock()
        try:
            async with session.head(
                self.url,
                params={"bytes": "0"},
                allow_redirects=False,
            ) as resp:
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            LOGGER.debug("Latency request failed: %s", describe_transport_error(exc))
            return None

        elapsed_ms = (self._clock() - start) * 1000
        if not 200 <= status < 300:
            LOGGER.debug("Latency request returned HTTP %d", status)
            return None
        return elapsed_ms
