# Copyright (c) Syntropy Systems
"""Retry classification and jittered exponential backoff."""
from __future__ import annotations

import random
from dataclasses import dataclass, field

import httpx

DEFAULT_BACKOFF_CAP_MS = 2000.0
HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVER_ERROR = 500


def is_retryable_status(status: int) -> bool:
    """Return True for server faults (5xx) and throttling (429)."""
    return status >= HTTP_SERVER_ERROR or status == HTTP_TOO_MANY_REQUESTS


@dataclass
class AttemptOutcome:
    """Result of a single try: a response or a transport error."""

    attempt: int
    response: httpx.Response | None = None
    error: BaseException | None = None
    retry: bool = False

    @property
    def cause(self) -> str:
        """Human readable reason, used in retry log lines."""
        if self.error is not None:
            return f"{type(self.error).__name__}: {self.error}"
        if self.response is not None:
            return f"HTTP {self.response.status_code}"
        return "no response"


@dataclass
class RetryPolicy:
    """Decide whether to retry and how long to wait before the next attempt.

    Delays are in milliseconds. ``delay(k) = min(cap, base * 2**k) + U(0, base)``
    with ``k`` the zero-based attempt index.
    """

    max_retries: int = 5
    base_delay_ms: float = 150.0
    cap_ms: float = DEFAULT_BACKOFF_CAP_MS
    rng: random.Random = field(default_factory=random.Random, repr=False)

    @property
    def max_attempts(self) -> int:
        """Total attempts including the first one."""
        return self.max_retries + 1

    def should_retry(
        self,
        error: BaseException | None = None,
        status: int | None = None,
    ) -> bool:
        """Classify an attempt.

        Transport errors are always retryable. Responses are retryable for
        5xx and 429; any other status is terminal.
        """
        if error is not None:
            return True
        if status is None:
            return True
        return is_retryable_status(status)

    def backoff_delay(self, attempt: int) -> float:
        """Return the delay in milliseconds before retrying after ``attempt``."""
        exp = min(self.cap_ms, self.base_delay_ms * (2**attempt))
        jitter = self.rng.uniform(0, self.base_delay_ms)
        # uniform() may return the upper bound; keep the interval half-open
        if jitter >= self.base_delay_ms:
            jitter = 0.0
        return exp + jitter

    def classify(self, outcome: AttemptOutcome) -> AttemptOutcome:
        """Fill in ``outcome.retry`` and return it."""
        status = outcome.response.status_code if outcome.response is not None else None
        outcome.retry = self.should_retry(outcome.error, status)
        return outcome
