"""
Phase sequencing for a full speed test.

``SpeedTestRunner`` owns one latency sampler and two transfer measurers,
runs Download -> Upload -> Ping strictly one after another, and is the only
writer of the observable run state (phase, result, live speed, progress).
Observers subscribe and receive an immutable ``RunnerState`` after every
change.  All mutation happens on the event loop thread, so deliveries are
serialised.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Awaitable, Callable, List, Optional, Protocol

from .errors import MeasurementCancelled, SpeedTestError
from .latency import LatencySampler
from .models import (
    Direction,
    MeasurementResult,
    Phase,
    PhaseKind,
    RunnerState,
    TransferSample,
)
from .transfer import TransferMeasurer

LOGGER = logging.getLogger(__name__)

StateListener = Callable[[RunnerState], None]


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class SpeedTestRunner:
    """Run ping, download and upload measurements and publish their state."""

    def __init__(
        self,
        latency: Optional[LatencySampler] = None,
        download: Optional[TransferMeasurer] = None,
        upload: Optional[TransferMeasurer] = None,
    ) -> None:
        self.latency = latency if latency is not None else LatencySampler()
        self.download = download if download is not None else TransferMeasurer(Direction.DOWNLOAD)
        self.upload = upload if upload is not None else TransferMeasurer(Direction.UPLOAD)

        self.phase = Phase.idle()
        self.result = MeasurementResult()
        self.live_speed = 0.0
        self.progress = 0.0

        self._cancelled = False
        self._active: Optional[Cancellable] = None
        self._task: Optional[asyncio.Task] = None
        self._in_flight = False
        self._listeners: List[StateListener] = []

    # -- Observation --------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def snapshot(self) -> RunnerState:
        return RunnerState(
            phase=self.phase,
            result=dataclasses.replace(self.result),
            live_speed=self.live_speed,
            progress=self.progress,
        )

    @property
    def running(self) -> bool:
        return self._in_flight

    # -- Control ------------------------------------------------------------

    def start(self) -> asyncio.Task:
        """Reset the state and schedule a fresh run on the running loop.

        While a run is in flight the existing task is returned unchanged.
        The reset happens before this returns, so a ``stop()`` issued right
        after it applies to the new run.
        """
        if self._task is not None and not self._task.done():
            return self._task
        self._begin()
        self._task = asyncio.ensure_future(self._run_phases())
        return self._task

    async def run(self) -> MeasurementResult:
        """Reset, then measure download, upload and ping in that order."""
        self._begin()
        return await self._run_phases()

    def stop(self) -> None:
        """Request cancellation; the active measurement resolves as cancelled."""
        self._cancelled = True
        if self._active is not None:
            self._active.cancel()

    def reset(self) -> None:
        """Clear all state back to idle."""
        if self._in_flight:
            raise RuntimeError("Cannot reset while a speed test is running")
        self._reset_state()
        self._notify()

    # -- Internals ----------------------------------------------------------

    def _begin(self) -> None:
        if self._in_flight:
            raise RuntimeError("A speed test is already running")
        self._in_flight = True
        self._cancelled = False
        self._reset_state()

    async def _run_phases(self) -> MeasurementResult:
        try:
            if self._cancelled:
                self._set_phase(Phase.idle())
                return self.result

            self._set_phase(Phase(PhaseKind.MEASURING_DOWNLOAD))
            download = await self._measure(self.download, self.download.measure(self._publish_sample))
            self.result.download = download
            self.progress = 1 / 3
            self._notify()
            if self._cancelled:
                self._set_phase(Phase.idle())
                return self.result

            self.live_speed = 0.0
            self._set_phase(Phase(PhaseKind.MEASURING_UPLOAD))
            upload = await self._measure(self.upload, self.upload.measure(self._publish_sample))
            self.result.upload = upload
            self.progress = 2 / 3
            self._notify()
            if self._cancelled:
                self._set_phase(Phase.idle())
                return self.result

            self._set_phase(Phase(PhaseKind.MEASURING_PING))
            ping = await self._measure(self.latency, self.latency.measure())
            self.result.ping = ping
            self.progress = 1.0
            self._set_phase(Phase(PhaseKind.DONE))

        except MeasurementCancelled:
            LOGGER.info("Speed test cancelled during %s", self.phase.kind.value)
            self._set_phase(Phase.idle())
        except SpeedTestError as exc:
            LOGGER.warning("Speed test failed during %s: %s", self.phase.kind.value, exc)
            self._set_phase(Phase.error(str(exc)))
        finally:
            self._active = None
            self._in_flight = False

        return self.result

    async def _measure(self, measurer: Cancellable, pending: Awaitable[float]) -> float:
        self._active = measurer
        try:
            return await pending
        finally:
            self._active = None

    def _publish_sample(self, sample: TransferSample) -> None:
        self.live_speed = sample.mbps
        self._notify()

    def _reset_state(self) -> None:
        self.phase = Phase.idle()
        self.result = MeasurementResult()
        self.live_speed = 0.0
        self.progress = 0.0

    def _set_phase(self, phase: Phase) -> None:
        if phase != self.phase:
            LOGGER.info("Phase %s -> %s", self.phase.kind.value, phase.kind.value)
        self.phase = phase
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.snapshot()
        for listener in list(self._listeners):
            listener(state)
