"""
Chunked throughput measurement, shared by download and upload.

A run repeatedly moves fixed-size chunks against the endpoint until the
elapsed time since the *first* chunk started reaches the minimum duration
floor.  Throughput is always computed over the whole run::

    Idle -> ChunkInFlight -> ChunkComplete -> ChunkInFlight (loop)
                                           -> Finalized(throughput | error | cancelled)

Only the HTTP semantics differ between directions: a download GETs
``?bytes=N`` and counts the body as it streams in, an upload POSTs ``N``
freshly generated random bytes and counts them as they stream out.
"""
from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

import aiohttp

from .constants import (
    CHUNK_SIZE,
    DOWNLOAD_URL,
    MIN_TRANSFER_DURATION,
    NO_CACHE_HEADERS,
    PROGRESS_INTERVAL,
    STREAM_BLOCK_SIZE,
    UPLOAD_CONTENT_TYPE,
    UPLOAD_URL,
)
from .errors import (
    MeasurementCancelled,
    NoConnectivityError,
    TransportError,
    describe_transport_error,
)
from .models import Direction, TransferSample
from .progress import ProgressThrottle
from .stats import throughput_mbps

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[TransferSample], None]
ByteCounter = Callable[[int], None]

_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


# ---------------------------------------------------------------------------
# Run state
# ---------------------------------------------------------------------------

@dataclass
class _TransferRun:
    """Accumulation state carried across the chunks of one run."""

    started_at: Optional[float] = None   # first chunk start, never reset
    total_bytes: int = 0                 # completed chunks
    chunk_bytes: int = 0                 # chunk in flight
    chunks: int = 0


# ---------------------------------------------------------------------------
# Measurer
# ---------------------------------------------------------------------------

class TransferMeasurer:
    """Measure download or upload throughput in megabits per second."""

    def __init__(
        self,
        direction: Direction,
        url: Optional[str] = None,
        chunk_size: int = CHUNK_SIZE,
        min_duration: float = MIN_TRANSFER_DURATION,
        progress_interval: float = PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.direction = direction
        if url is None:
            url = DOWNLOAD_URL if direction is Direction.DOWNLOAD else UPLOAD_URL
        self.url = url
        self.chunk_size = chunk_size
        self.min_duration = min_duration
        self.progress_interval = progress_interval
        self._clock = clock
        self._cancelled = False
        self._chunk: Optional[asyncio.Future] = None

    # -- Public -------------------------------------------------------------

    async def measure(self, on_progress: Optional[ProgressCallback] = None) -> float:
        """Run chunks until the duration floor is reached; return Mbps."""
        self._cancelled = False
        run = _TransferRun()
        throttle = ProgressThrottle(self.progress_interval, self._clock)

        def _count(byte_count: int) -> None:
            run.chunk_bytes += byte_count
            if on_progress is not None and throttle.ready():
                on_progress(
                    TransferSample(
                        bytes_transferred=run.total_bytes + run.chunk_bytes,
                        elapsed_seconds=self._clock() - run.started_at,
                    )
                )

        async with self._open_session() as session:
            while True:
                if self._cancelled:
                    raise MeasurementCancelled()

                if run.started_at is None:
                    run.started_at = self._clock()
                run.chunk_bytes = 0
                run.chunks += 1
                failure: Optional[BaseException] = None

                self._chunk = asyncio.ensure_future(self._transfer_chunk(session, _count))
                try:
                    await self._chunk
                except asyncio.CancelledError:
                    if not self._cancelled:
                        raise
                except _TRANSPORT_ERRORS as exc:
                    failure = exc
                finally:
                    self._chunk = None

                run.total_bytes += run.chunk_bytes
                run.chunk_bytes = 0
                elapsed = self._clock() - run.started_at

                if self._cancelled:
                    raise MeasurementCancelled()
                if failure is not None:
                    raise TransportError(describe_transport_error(failure)) from failure

                if elapsed >= self.min_duration and run.total_bytes > 0:
                    mbps = throughput_mbps(run.total_bytes, elapsed)
                    LOGGER.info(
                        "%s finished: %d bytes in %.2f s over %d chunk(s) = %.2f Mbps",
                        self.direction.value, run.total_bytes, elapsed, run.chunks, mbps,
                    )
                    return mbps
                if run.total_bytes == 0:
                    raise NoConnectivityError("No connection: transfer moved no data")

                LOGGER.debug(
                    "%s chunk %d complete, %d bytes after %.2f s",
                    self.direction.value, run.chunks, run.total_bytes, elapsed,
                )

    def cancel(self) -> None:
        """Abort the in-flight chunk; ``measure()`` raises ``MeasurementCancelled``."""
        self._cancelled = True
        if self._chunk is not None and not self._chunk.done():
            self._chunk.cancel()

    # -- Internals ----------------------------------------------------------

    def _open_session(self) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(limit=1, force_close=False)
        return aiohttp.ClientSession(
            headers={**NO_CACHE_HEADERS, "Accept-Encoding": "identity"},
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=None),
            auto_decompress=False,
        )

    async def _transfer_chunk(
        self,
        session: aiohttp.ClientSession,
        count: ByteCounter,
    ) -> None:
        """Move one chunk, reporting every block through *count*."""
        if self.direction is Direction.DOWNLOAD:
            await self._download_chunk(session, count)
        else:
            await self._upload_chunk(session, count)

    async def _download_chunk(self, session: aiohttp.ClientSession, count: ByteCounter) -> None:
        async with session.get(self.url, params={"bytes": str(self.chunk_size)}) as resp:
            resp.raise_for_status()
            async for block in resp.content.iter_chunked(STREAM_BLOCK_SIZE):
                count(len(block))

    async def _upload_chunk(self, session: aiohttp.ClientSession, count: ByteCounter) -> None:
        # Fresh random bytes per chunk so nothing on the path can compress them.
        payload = await asyncio.get_running_loop().run_in_executor(None, os.urandom, self.chunk_size)
        headers = {
            "Content-Type": UPLOAD_CONTENT_TYPE,
            "Content-Length": str(len(payload)),
        }
        async with session.post(
            self.url,
            data=_stream_payload(payload, count),
            headers=headers,
        ) as resp:
            resp.raise_for_status()
            await resp.read()


async def _stream_payload(payload: bytes, count: ByteCounter) -> AsyncIterator[bytes]:
    """Yield *payload* block by block, counting each block as it is handed over."""
    view = memoryview(payload)
    for offset in range(0, len(view), STREAM_BLOCK_SIZE):
        block = view[offset:offset + STREAM_BLOCK_SIZE]
        count(len(block))
        yield block.tobytes()
