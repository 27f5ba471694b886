# Copyright (c) Syntropy Systems
"""Collection of duration samples for one run."""
from __future__ import annotations

from collections import defaultdict

from ssebench.models.samples import DurationSample, OperationKind, Variant


class SampleCollector:
    """Append-only store of samples keyed by operation kind and variant.

    Pairing is by iteration index, never by arrival order.
    """

    def __init__(self) -> None:
        self._samples: defaultdict[
            tuple[OperationKind, Variant], dict[int, DurationSample]
        ] = defaultdict(dict)

    def add(
        self,
        kind: OperationKind,
        variant: Variant,
        iteration: int,
        milliseconds: float,
    ) -> DurationSample:
        """Record one sample. A slot can only be filled once."""
        slot = self._samples[(kind, variant)]
        if iteration in slot:
            msg = f"Duplicate {variant} {kind} sample for iteration {iteration}"
            raise ValueError(msg)
        sample = DurationSample(
            operation_kind=kind,
            variant=variant,
            iteration_index=iteration,
            milliseconds=milliseconds,
        )
        slot[iteration] = sample
        return sample

    def samples(self, kind: OperationKind, variant: Variant) -> list[DurationSample]:
        """Samples for one kind and variant, ordered by iteration."""
        slot = self._samples.get((kind, variant), {})
        return [slot[i] for i in sorted(slot)]

    def durations(self, kind: OperationKind, variant: Variant) -> list[float]:
        """Milliseconds for one kind and variant, ordered by iteration."""
        return [s.milliseconds for s in self.samples(kind, variant)]

    def paired_differences(self, kind: OperationKind) -> list[float]:
        """Treatment minus baseline for every iteration that has both."""
        baseline = self._samples.get((kind, "baseline"), {})
        treatment = self._samples.get((kind, "treatment"), {})
        return [
            treatment[i].milliseconds - baseline[i].milliseconds
            for i in sorted(baseline.keys() & treatment.keys())
        ]

    def __len__(self) -> int:
        return sum(len(slot) for slot in self._samples.values())
