# Copyright (c) Syntropy Systems
"""Monotonic timing of storage operations."""
from __future__ import annotations

import time
from typing import TYPE_CHECKING

import httpx

from ssebench.errors import TransferFailed

if TYPE_CHECKING:
    from collections.abc import Callable

    from ssebench.executor import RequestExecutor
    from ssebench.models.samples import OperationKind, OperationSpec


class SampleClock:
    """Stopwatch in milliseconds backed by ``time.perf_counter``."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._started: float | None = None
        self.elapsed_ms: float | None = None

    def start(self) -> None:
        """Record the start timestamp."""
        self.elapsed_ms = None
        self._started = self._clock()

    def stop(self) -> float:
        """Record the stop timestamp and return elapsed milliseconds."""
        if self._started is None:
            msg = "SampleClock.stop() called before start()"
            raise RuntimeError(msg)
        self.elapsed_ms = (self._clock() - self._started) * 1000
        self._started = None
        return self.elapsed_ms


class TimedOperation:
    """Time a storage call from just before the request until its result is complete.

    Uploads stop the clock once the response arrives. Downloads stop it only
    after the whole body has been read, so partial transfers never count. A
    body that breaks off mid-read is not retried and raises TransferFailed.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        clock_factory: Callable[[], SampleClock] = SampleClock,
    ) -> None:
        self.executor = executor
        self._clock_factory = clock_factory

    async def timed(self, kind: OperationKind, spec: OperationSpec) -> float:
        """Run ``spec`` once and return its duration in milliseconds."""
        clock = self._clock_factory()
        clock.start()
        response = await self.executor.execute(spec)
        try:
            if kind == "download":
                try:
                    _ = await response.aread()
                except httpx.HTTPError as e:
                    raise TransferFailed(spec.label, e) from e
            elapsed = clock.stop()
        finally:
            await response.aclose()
        return elapsed
