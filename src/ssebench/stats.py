# Copyright (c) Syntropy Systems
"""Summary statistics and paired-difference confidence intervals.

Everything here is pure: values are never rounded before they are reported,
and any subset of samples can be summarized any number of times.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, NamedTuple

from ssebench.models.samples import (
    OverheadEstimate,
    PairedDelta,
    SummaryStat,
    round_ms,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ssebench.models.samples import OperationKind

Z_95 = 1.96


class ConfidenceInterval(NamedTuple):
    """Mean with a normal-approximation 95% interval."""

    n: int
    mean: float
    low: float
    high: float


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile of an ascending, non-empty sequence.

    ``index = clamp(ceil(p * n) - 1, 0, n - 1)``, so with one sample every
    percentile is that sample.
    """
    n = len(sorted_values)
    if n == 0:
        msg = "percentile of an empty sequence"
        raise ValueError(msg)
    index = min(n - 1, max(0, math.ceil(p * n) - 1))
    return sorted_values[index]


def _mean(values: Sequence[float]) -> float:
    return math.fsum(values) / len(values)


def summarize(label: str, samples: Sequence[float]) -> SummaryStat:
    """Mean and p50/p95/p99 of ``samples``; empty input gives all zeros."""
    if not samples:
        return SummaryStat(label=label)
    ordered = sorted(samples)
    return SummaryStat(
        label=label,
        count=len(ordered),
        mean_ms=_mean(ordered),
        p50_ms=percentile(ordered, 0.50),
        p95_ms=percentile(ordered, 0.95),
        p99_ms=percentile(ordered, 0.99),
    )


def paired_confidence_interval(differences: Sequence[float]) -> ConfidenceInterval:
    """95% interval for the mean of paired differences.

    Sample variance uses Bessel's correction with the denominator floored at
    one, so a single difference yields a zero-width interval.
    """
    n = len(differences)
    if n == 0:
        return ConfidenceInterval(0, 0.0, 0.0, 0.0)
    mean = _mean(differences)
    variance = math.fsum((d - mean) ** 2 for d in differences) / max(n - 1, 1)
    margin = Z_95 * math.sqrt(variance / n)
    return ConfidenceInterval(n, mean, mean - margin, mean + margin)


def paired_delta(kind: OperationKind, differences: Sequence[float]) -> PairedDelta:
    """Report row for the paired interval of one operation kind."""
    ci = paired_confidence_interval(differences)
    return PairedDelta(
        operation_kind=kind,
        n=ci.n,
        mean_ms=ci.mean,
        ci_low_ms=ci.low,
        ci_high_ms=ci.high,
    )


def added_ms(baseline: SummaryStat, treatment: SummaryStat) -> int:
    """Headline overhead: treatment mean minus baseline mean, clipped at zero."""
    return max(0, round_ms(treatment.mean_ms - baseline.mean_ms))


def overhead(
    kind: OperationKind, baseline: SummaryStat, treatment: SummaryStat
) -> OverheadEstimate:
    """Report row for the headline overhead of one operation kind."""
    return OverheadEstimate(operation_kind=kind, mean_added_ms=added_ms(baseline, treatment))
