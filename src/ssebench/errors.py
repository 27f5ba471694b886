# Copyright (c) Syntropy Systems
"""Exceptions raised by ssebench."""
from __future__ import annotations


class SseBenchError(Exception):
    """Base class for ssebench failures."""


class ConfigurationError(SseBenchError):
    """Required configuration is missing or invalid."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


class OperationFailed(SseBenchError):
    """A storage call returned a status that must not be retried."""

    def __init__(self, label: str, status: int, reason: str = "", body: str = "") -> None:
        self.label = label
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"{label} failed {status} {reason} {body}".rstrip())


class RetryExhausted(SseBenchError):
    """Every attempt of a storage call failed with a retryable condition."""

    def __init__(
        self,
        label: str,
        attempts: int,
        *,
        cause: BaseException | None = None,
        status: int | None = None,
        body: str = "",
    ) -> None:
        self.label = label
        self.attempts = attempts
        self.cause = cause
        self.status = status
        self.body = body
        if cause is not None:
            detail = f"{type(cause).__name__}: {cause}"
        elif status is not None:
            detail = f"{status} {body}".rstrip()
        else:
            detail = "no response"
        super().__init__(f"{label} failed after {attempts} attempts: {detail}")


class TransferFailed(SseBenchError):
    """The response arrived but its body could not be read completely."""

    def __init__(self, label: str, cause: BaseException) -> None:
        self.label = label
        self.cause = cause
        super().__init__(f"{label} transfer failed: {type(cause).__name__}: {cause}")
