"""Error taxonomy for the measurement engine."""
from __future__ import annotations

import aiohttp


class SpeedTestError(Exception):
    """Base class for every failure a measurement can end with."""


class NoConnectivityError(SpeedTestError):
    """No latency sample succeeded, or a transfer run moved zero bytes."""

    def __init__(self, message: str = "No connection") -> None:
        super().__init__(message)


class TransportError(SpeedTestError):
    """A request failed for a reason other than cancellation."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MeasurementCancelled(SpeedTestError):
    """The measurement was aborted by an explicit stop request."""

    def __init__(self, message: str = "Measurement cancelled") -> None:
        super().__init__(message)


def describe_transport_error(exc: BaseException) -> str:
    """Human-readable message for a failed request."""
    if isinstance(exc, aiohttp.ClientResponseError):
        return f"HTTP {exc.status}: {exc.message}"
    text = str(exc)
    return text if text else type(exc).__name__
