# Copyright (c) Syntropy Systems
"""Pydantic models for operations, duration samples and derived statistics."""

from __future__ import annotations

import math
from typing import Literal

from pydantic import Field

from .base import BenchBaseModel, FrozenModel

OperationKind = Literal["upload", "download"]
Variant = Literal["baseline", "treatment"]
HttpMethod = Literal["GET", "PUT", "DELETE", "HEAD"]

OPERATION_KINDS: tuple[OperationKind, ...] = ("upload", "download")
VARIANTS: tuple[Variant, ...] = ("baseline", "treatment")

SSE_HEADER = "x-amz-server-side-encryption"
SSE_ALGORITHM = "AES256"


def round_ms(value: float) -> int:
    """Round to the nearest millisecond, halves upward."""
    return math.floor(value + 0.5)


class OperationSpec(FrozenModel):
    """A single logical storage call."""

    method: HttpMethod
    key: str
    payload: bytes | None = Field(default=None, repr=False)
    variant: Variant = "baseline"
    headers: dict[str, str] = Field(default_factory=dict)
    query: dict[str, str] = Field(default_factory=dict)
    # Extra statuses (besides 2xx) that count as success, e.g. 404 on DELETE
    accept_statuses: frozenset[int] = frozenset()

    @property
    def label(self) -> str:
        """Short description used in logs and error messages."""
        return f"{self.method} {self.key or '/'}"

    @classmethod
    def put(cls, key: str, payload: bytes, variant: Variant) -> OperationSpec:
        """Build a PUT; the treatment variant requests SSE AES256."""
        headers = {
            "content-type": "application/octet-stream",
            "content-length": str(len(payload)),
            "x-amz-content-sha256": "UNSIGNED-PAYLOAD",
        }
        if variant == "treatment":
            headers[SSE_HEADER] = SSE_ALGORITHM
        return cls(
            method="PUT", key=key, payload=payload, variant=variant, headers=headers
        )

    @classmethod
    def get(cls, key: str, variant: Variant) -> OperationSpec:
        """Build a GET for a previously uploaded object."""
        return cls(method="GET", key=key, variant=variant)

    @classmethod
    def delete(cls, key: str, variant: Variant = "baseline") -> OperationSpec:
        """Build a DELETE; a missing object is not an error."""
        return cls(
            method="DELETE",
            key=key,
            variant=variant,
            accept_statuses=frozenset({404}),
        )

    @classmethod
    def list_ping(cls) -> OperationSpec:
        """Build a ListObjectsV2 call that returns no keys."""
        return cls(
            method="GET",
            key="",
            query={"list-type": "2", "max-keys": "0"},
        )


class DurationSample(FrozenModel):
    """One timed operation."""

    operation_kind: OperationKind
    variant: Variant
    iteration_index: int = Field(ge=0)
    milliseconds: float = Field(ge=0)


class SummaryStat(BenchBaseModel):
    """Summary of a set of duration samples, in milliseconds."""

    label: str
    count: int = 0
    mean_ms: float = 0.0
    p50_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0

    def rounded(self) -> SummaryStat:
        """Return a copy with every timing rounded to the nearest millisecond."""
        return self.model_copy(
            update={
                "mean_ms": float(round_ms(self.mean_ms)),
                "p50_ms": float(round_ms(self.p50_ms)),
                "p95_ms": float(round_ms(self.p95_ms)),
                "p99_ms": float(round_ms(self.p99_ms)),
            }
        )


class PairedDelta(BenchBaseModel):
    """Paired treatment-minus-baseline difference with a 95% interval."""

    operation_kind: OperationKind
    n: int = 0
    mean_ms: float = 0.0
    ci_low_ms: float = 0.0
    ci_high_ms: float = 0.0

    @property
    def significant(self) -> bool:
        """True when the interval excludes zero."""
        return self.n > 0 and (self.ci_low_ms > 0 or self.ci_high_ms < 0)

    def rounded(self) -> PairedDelta:
        """Return a copy rounded to whole milliseconds for display."""
        return self.model_copy(
            update={
                "mean_ms": float(round_ms(self.mean_ms)),
                "ci_low_ms": float(round_ms(self.ci_low_ms)),
                "ci_high_ms": float(round_ms(self.ci_high_ms)),
            }
        )


class OverheadEstimate(BenchBaseModel):
    """Headline mean overhead for one operation kind."""

    operation_kind: OperationKind
    mean_added_ms: int = 0


class RunInfo(BenchBaseModel):
    """What was measured, echoed at the top of a report."""

    endpoint: str
    bucket: str
    base_key: str
    size_mb: float
    iterations: int
    download: bool


class BenchReport(BenchBaseModel):
    """Everything a renderer needs to present a finished run."""

    info: RunInfo
    summaries: list[SummaryStat] = Field(default_factory=list)
    overhead: list[OverheadEstimate] = Field(default_factory=list)
    paired: list[PairedDelta] = Field(default_factory=list)
