# Copyright (c) Syntropy Systems
"""Execute storage calls with retry and backoff."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from ssebench.errors import OperationFailed, RetryExhausted
from ssebench.retry import AttemptOutcome, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ssebench.client import StorageClient
    from ssebench.models.samples import OperationSpec

logger = logging.getLogger(__name__)

MAX_ERROR_BODY = 500


async def read_error_body(response: httpx.Response) -> str:
    """Read and close a failed response, returning a trimmed body for diagnostics."""
    try:
        body = (await response.aread()).decode("utf-8", errors="replace")
    except httpx.HTTPError:
        body = ""
    finally:
        await response.aclose()
    return body.strip()[:MAX_ERROR_BODY]


def _is_success(spec: OperationSpec, status: int) -> bool:
    return 200 <= status < 300 or status in spec.accept_statuses  # noqa: PLR2004


class RequestExecutor:
    """Run one logical operation, retrying transient failures.

    Transport errors, 5xx and 429 are retried with jittered backoff. Any other
    non-success status fails immediately with OperationFailed. When every
    attempt fails, RetryExhausted carries the last cause.
    """

    def __init__(
        self,
        client: StorageClient,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        # Retries across every call, and attempts used by the most recent call
        self.retries = 0
        self.last_attempts = 0

    async def execute(self, spec: OperationSpec) -> httpx.Response:
        """Return the successful (still unread) response for ``spec``."""
        attempt = 0
        while True:
            self.last_attempts = attempt + 1
            try:
                response = await self.client.send(spec)
            except httpx.TransportError as e:
                outcome = AttemptOutcome(attempt=attempt, error=e)
            else:
                if _is_success(spec, response.status_code):
                    return response
                outcome = AttemptOutcome(attempt=attempt, response=response)

            outcome = self.policy.classify(outcome)

            body = ""
            status: int | None = None
            if outcome.response is not None:
                status = outcome.response.status_code
                body = await read_error_body(outcome.response)
                if not outcome.retry:
                    raise OperationFailed(
                        spec.label,
                        status,
                        outcome.response.reason_phrase,
                        body,
                    )

            if attempt + 1 >= self.policy.max_attempts:
                if outcome.error is not None:
                    raise RetryExhausted(
                        spec.label, self.policy.max_attempts, cause=outcome.error
                    ) from outcome.error
                raise RetryExhausted(
                    spec.label,
                    self.policy.max_attempts,
                    status=status,
                    body=body,
                )

            delay_ms = self.policy.backoff_delay(attempt)
            self.retries += 1
            logger.info(
                "Retry %s (%s) attempt %d/%d in %.0fms",
                spec.label,
                outcome.cause,
                attempt + 2,
                self.policy.max_attempts,
                delay_ms,
            )
            await self._sleep(delay_ms / 1000)
            attempt += 1

