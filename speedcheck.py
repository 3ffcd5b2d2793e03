#!/usr/bin/env python3
"""
speedcheck -- latency, download and upload measurement from the terminal.

Usage::

    python speedcheck.py                    # rich dashboard
    python speedcheck.py --simple           # plain text
    python speedcheck.py --json             # JSON to stdout
    python speedcheck.py --log-level DEBUG --log-file speedcheck.log
    python speedcheck.py --show-config
    python speedcheck.py --set-config simple true

Press Ctrl-C during a run to cancel it; the run stops at the current
measurement and nothing is reported as an error.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from typing import Optional

from engine.config import (
    LOG_LEVELS,
    config_path,
    load_config,
    parse_config_value,
    set_config_value,
)
from engine.logging_setup import configure_logging
from engine.models import PhaseKind, RunnerState
from engine.runner import SpeedTestRunner
from ui.dashboard import (
    LiveDashboard,
    console,
    print_cancelled,
    print_error,
    print_final_results,
    print_header,
)
from ui.output import create_result_json, format_text_result

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

def _install_stop_handler(loop: asyncio.AbstractEventLoop, runner: SpeedTestRunner) -> bool:
    """Route SIGINT to ``runner.stop``.  Returns False where unsupported."""
    try:
        loop.add_signal_handler(signal.SIGINT, runner.stop)
    except (NotImplementedError, RuntimeError):
        # Windows loops and non-main threads: Ctrl-C stays a KeyboardInterrupt.
        return False
    return True


async def run_speedtest(
    *,
    json_output: bool = False,
    simple: bool = False,
    runner: Optional[SpeedTestRunner] = None,
) -> RunnerState:
    """Execute one full run, report it, and return the final state."""
    show_ui = not json_output and not simple
    runner = runner if runner is not None else SpeedTestRunner()

    dashboard: Optional[LiveDashboard] = None
    unsubscribe = None
    if show_ui:
        print_header()
        dashboard = LiveDashboard()
        dashboard.start()
        unsubscribe = runner.subscribe(dashboard.update)

    loop = asyncio.get_running_loop()
    handles_sigint = _install_stop_handler(loop, runner)
    try:
        await runner.start()
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)
        if dashboard is not None:
            unsubscribe()
            dashboard.stop()

    state = runner.snapshot()
    _report(state, json_output=json_output, simple=simple)
    return state


def _report(state: RunnerState, *, json_output: bool, simple: bool) -> None:
    kind = state.phase.kind

    if json_output:
        print(json.dumps(create_result_json(state), indent=2))
        return

    if kind is PhaseKind.DONE:
        if simple:
            print(format_text_result(state.result))
        else:
            print_final_results(state.result)
    elif kind is PhaseKind.ERROR:
        if simple:
            print(f"Error: {state.phase.message}", file=sys.stderr)
        else:
            print_error(state.phase.message or "unknown error")
    elif simple:
        print("Test cancelled", file=sys.stderr)
    else:
        print_cancelled()


def exit_code(state: RunnerState) -> int:
    if state.phase.kind is PhaseKind.DONE:
        return EXIT_OK
    if state.phase.kind is PhaseKind.ERROR:
        return EXIT_ERROR
    return EXIT_CANCELLED


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="speedcheck -- latency, download and upload measurement",
    )
    # Output modes
    parser.add_argument("--json", "-j", action="store_true", default=None, help="Output results as JSON")
    parser.add_argument("--simple", "-s", action="store_true", default=None, help="Simple output mode (no dashboard)")

    # Logging
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, metavar="LEVEL", help="Log level (default: WARNING)")
    parser.add_argument("--log-file", type=str, metavar="FILE", help="Also write logs to FILE")

    # Configuration
    parser.add_argument("--show-config", action="store_true", help="Print the effective configuration and exit")
    parser.add_argument("--set-config", nargs=2, metavar=("KEY", "VALUE"), help="Persist a configuration value and exit")
    return parser


def main(argv: Optional[list] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.set_config:
        key, raw = args.set_config
        try:
            path = set_config_value(key, parse_config_value(key, raw))
        except ValueError as exc:
            console.print(f"[red]Error: {exc}[/red]")
            sys.exit(EXIT_ERROR)
        console.print(f"[green]Saved[/green] {key} to {path}")
        return

    config = load_config()
    if args.show_config:
        console.print(f"[dim]{config_path()}[/dim]")
        print(json.dumps(config, indent=2))
        return

    json_output = args.json if args.json is not None else bool(config["json"])
    simple = args.simple if args.simple is not None else bool(config["simple"])
    configure_logging(
        level=args.log_level or config["log_level"],
        log_file=args.log_file or config["log_file"] or None,
    )

    try:
        state = asyncio.run(run_speedtest(json_output=json_output, simple=simple))
    except KeyboardInterrupt:
        console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        console.print(f"\n[red]Error: {exc}[/red]")
        sys.exit(EXIT_ERROR)

    sys.exit(exit_code(state))


if __name__ == "__main__":
    main()
