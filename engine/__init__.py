"""Speed-test measurement engine -- latency, transfer throughput, phase sequencing."""

from .errors import (
    MeasurementCancelled,
    NoConnectivityError,
    SpeedTestError,
    TransportError,
)
from .latency import LatencySampler, average_latency
from .models import (
    Direction,
    MeasurementResult,
    Phase,
    PhaseKind,
    RunnerState,
    TransferSample,
)
from .progress import ProgressThrottle
from .runner import SpeedTestRunner
from .stats import format_latency, format_speed, mean_latency, throughput_mbps
from .transfer import TransferMeasurer

__all__ = [
    "Direction",
    "LatencySampler",
    "MeasurementCancelled",
    "MeasurementResult",
    "NoConnectivityError",
    "Phase",
    "PhaseKind",
    "ProgressThrottle",
    "RunnerState",
    "SpeedTestError",
    "SpeedTestRunner",
    "TransferMeasurer",
    "TransferSample",
    "TransportError",
    "average_latency",
    "format_latency",
    "format_speed",
    "mean_latency",
    "throughput_mbps",
]
