# Copyright (c) Syntropy Systems
"""Drive paired baseline/treatment iterations and assemble the report."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from ssebench.collector import SampleCollector
from ssebench.errors import SseBenchError
from ssebench.executor import RequestExecutor
from ssebench.models.samples import (
    OPERATION_KINDS,
    VARIANTS,
    BenchReport,
    OperationKind,
    OperationSpec,
    RunInfo,
    Variant,
)
from ssebench.payload import KeyPair, generate_payload, make_object_keys
from ssebench.retry import RetryPolicy
from ssebench.stats import overhead, paired_delta, summarize
from ssebench.timing import TimedOperation

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ssebench.client import StorageClient
    from ssebench.config import BenchConfig, StorageSettings

logger = logging.getLogger(__name__)

SUMMARY_LABELS: dict[tuple[OperationKind, Variant], str] = {
    ("upload", "baseline"): "upload no sse",
    ("upload", "treatment"): "upload sse aes256",
    ("download", "baseline"): "download no sse",
    ("download", "treatment"): "download sse aes256",
}

_VARIANT_NAMES: dict[Variant, str] = {
    "baseline": "no SSE",
    "treatment": "SSE AES256",
}


def run_info(settings: StorageSettings, config: BenchConfig) -> RunInfo:
    """Describe what a run measures."""
    return RunInfo(
        endpoint=settings.endpoint,
        bucket=settings.bucket or "",
        base_key=settings.base_key,
        size_mb=config.size_mb,
        iterations=config.iterations,
        download=config.download,
    )


class Orchestrator:
    """Run a complete SSE overhead measurement.

    Per iteration: PUT baseline, PUT treatment, optionally GET baseline and
    GET treatment, then delete both objects and pause. Baseline always goes
    first so drift affects both variants alike. Any failure aborts the run.
    """

    def __init__(  # noqa: PLR0913
        self,
        client: StorageClient,
        config: BenchConfig,
        settings: StorageSettings,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        payload: bytes | None = None,
        key_factory: Callable[[str, str, int], KeyPair] = make_object_keys,
    ) -> None:
        self.config = config
        self.settings = settings
        policy = RetryPolicy(
            max_retries=config.max_retries,
            base_delay_ms=config.base_delay_ms,
            cap_ms=config.backoff_cap_ms,
        )
        self.executor = RequestExecutor(client, policy, sleep=sleep)
        self.timer = TimedOperation(self.executor)
        self.collector = SampleCollector()
        self._sleep = sleep
        self._payload = payload
        self._key_factory = key_factory

    async def ping(self) -> None:
        """Check the bucket is reachable with an empty ListObjectsV2."""
        response = await self.executor.execute(OperationSpec.list_ping())
        await response.aclose()

    async def run(self) -> BenchReport:
        """Ping, run every iteration, and return the report."""
        await self.ping()

        payload = self._payload
        if payload is None:
            payload = generate_payload(self.config.size_mb)

        for iteration in range(self.config.iterations):
            await self.run_iteration(iteration, payload)
            await self._sleep(self.config.pause_ms / 1000)

        return self.build_report()

    async def run_iteration(self, iteration: int, payload: bytes) -> KeyPair:
        """Time one iteration's operations and delete its objects."""
        keys = self._key_factory(self.config.prefix, self.settings.base_key, iteration)
        created: list[str] = []

        try:
            for variant in VARIANTS:
                key = keys.for_variant(variant)
                logger.info("PUT %s -> %s", _VARIANT_NAMES[variant], key)
                created.append(key)
                ms = await self.timer.timed("upload", OperationSpec.put(key, payload, variant))
                _ = self.collector.add("upload", variant, iteration, ms)

            if self.config.download:
                for variant in VARIANTS:
                    key = keys.for_variant(variant)
                    logger.info("GET %s <- %s", _VARIANT_NAMES[variant], key)
                    ms = await self.timer.timed("download", OperationSpec.get(key, variant))
                    _ = self.collector.add("download", variant, iteration, ms)
        except Exception:
            await self._release(created)
            raise

        logger.info("DELETE %s and %s", keys.baseline, keys.treatment)
        for variant in VARIANTS:
            await self._delete(keys.for_variant(variant))

        return keys

    async def _delete(self, key: str) -> None:
        response = await self.executor.execute(OperationSpec.delete(key))
        await response.aclose()

    async def _release(self, keys: list[str]) -> None:
        """Delete objects of a failed iteration without masking its error."""
        for key in keys:
            try:
                await self._delete(key)
            except (SseBenchError, httpx.HTTPError) as e:
                logger.warning("Could not delete %s after failure: %s", key, e)

    def build_report(self) -> BenchReport:
        """Summaries, headline overhead and paired intervals per operation kind.

        Download rows are always present; with downloads disabled they are zero.
        """
        summaries = []
        estimates = []
        paired = []
        for kind in OPERATION_KINDS:
            baseline = summarize(
                SUMMARY_LABELS[(kind, "baseline")],
                self.collector.durations(kind, "baseline"),
            )
            treatment = summarize(
                SUMMARY_LABELS[(kind, "treatment")],
                self.collector.durations(kind, "treatment"),
            )
            summaries.extend([baseline, treatment])
            estimates.append(overhead(kind, baseline, treatment))
            paired.append(paired_delta(kind, self.collector.paired_differences(kind)))

        return BenchReport(
            info=run_info(self.settings, self.config),
            summaries=summaries,
            overhead=estimates,
            paired=paired,
        )
