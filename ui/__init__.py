"""UI layer -- Rich dashboard and output formatters."""

from .dashboard import (
    LiveDashboard,
    console,
    phase_label,
    print_cancelled,
    print_error,
    print_final_results,
    print_header,
)
from .output import create_result_json, format_text_result

__all__ = [
    "LiveDashboard",
    "console",
    "create_result_json",
    "format_text_result",
    "phase_label",
    "print_cancelled",
    "print_error",
    "print_final_results",
    "print_header",
]
