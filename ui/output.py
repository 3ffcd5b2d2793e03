"""
Output formatting -- JSON document and plain text.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from engine.constants import BASE_URL
from engine.models import MeasurementResult, RunnerState


def create_result_json(state: RunnerState) -> Dict[str, Any]:
    """Build the JSON document for a finished (or aborted) run."""
    result: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server": BASE_URL,
        "status": state.phase.kind.value,
        **state.result.to_dict(),
    }
    if state.phase.message is not None:
        result["error"] = state.phase.message
    return result


def _fmt(value: Optional[float], fmt: str, unit: str) -> str:
    if value is None:
        return "n/a"
    return f"{value:{fmt}} {unit}"


def format_text_result(result: MeasurementResult) -> str:
    return (
        f"Ping: {_fmt(result.ping, '.1f', 'ms')}\n"
        f"Download: {_fmt(result.download, '.2f', 'Mbps')}\n"
        f"Upload: {_fmt(result.upload, '.2f', 'Mbps')}"
    )
