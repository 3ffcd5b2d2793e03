"""
Measurement arithmetic and formatting.

Pure functions -- no I/O, no side effects.
"""
from __future__ import annotations

import statistics
from typing import Sequence

from .constants import BYTES_PER_MEGABIT


def throughput_mbps(byte_count: int, elapsed_seconds: float) -> float:
    """Megabits per second for *byte_count* bytes over *elapsed_seconds*.

    Returns 0.0 when no time has elapsed.
    """
    if elapsed_seconds <= 0:
        return 0.0
    return byte_count / elapsed_seconds / BYTES_PER_MEGABIT


def mean_latency(samples: Sequence[float]) -> float:
    """Arithmetic mean of latency samples in ms (0.0 for no samples)."""
    if not samples:
        return 0.0
    return statistics.mean(samples)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.1f} ms"
