"""
Data model shared by the measurers, the runner and its observers.

Plain dataclasses and enums -- no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .stats import throughput_mbps


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Direction(Enum):
    """Which way a transfer moves its chunks."""

    DOWNLOAD = "download"
    UPLOAD = "upload"


class PhaseKind(Enum):
    IDLE = "idle"
    MEASURING_PING = "measuring_ping"
    MEASURING_DOWNLOAD = "measuring_download"
    MEASURING_UPLOAD = "measuring_upload"
    DONE = "done"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Phase
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Phase:
    """
    The runner's current stage.

    Only ``ERROR`` carries a ``message``; every other kind leaves it
    ``None``.
    """

    kind: PhaseKind
    message: Optional[str] = None

    # -- Constructors -------------------------------------------------------

    @classmethod
    def idle(cls) -> Phase:
        return cls(PhaseKind.IDLE)

    @classmethod
    def error(cls, message: str) -> Phase:
        return cls(PhaseKind.ERROR, message)

    # -- Queries ------------------------------------------------------------

    @property
    def is_transfer(self) -> bool:
        """True while download or upload throughput is being measured."""
        return self.kind in (PhaseKind.MEASURING_DOWNLOAD, PhaseKind.MEASURING_UPLOAD)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"phase": self.kind.value}
        if self.message is not None:
            data["message"] = self.message
        return data


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class MeasurementResult:
    """Final values of a run; a field stays ``None`` until its phase succeeds."""

    ping: Optional[float] = None        # ms
    download: Optional[float] = None    # Mbps
    upload: Optional[float] = None      # Mbps

    @property
    def is_complete(self) -> bool:
        return None not in (self.ping, self.download, self.upload)

    def to_dict(self) -> Dict[str, Optional[float]]:
        def _round(value: Optional[float], ndigits: int) -> Optional[float]:
            return None if value is None else round(value, ndigits)

        return {
            "ping_ms": _round(self.ping, 1),
            "download_mbps": _round(self.download, 2),
            "upload_mbps": _round(self.upload, 2),
        }


@dataclass(frozen=True)
class TransferSample:
    """Bytes moved so far in a transfer run and seconds since its first chunk."""

    bytes_transferred: int
    elapsed_seconds: float

    @property
    def mbps(self) -> float:
        return throughput_mbps(self.bytes_transferred, self.elapsed_seconds)


@dataclass(frozen=True)
class RunnerState:
    """Read-only snapshot of everything an observer may render."""

    phase: Phase
    result: MeasurementResult
    live_speed: float
    progress: float
