# Copyright (c) Syntropy Systems
"""Test payloads and unique object keys."""
from __future__ import annotations

import os
import secrets
import time
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Callable

    from ssebench.models.samples import Variant

BYTES_PER_MB = 1024 * 1024

VARIANT_SUFFIX: dict[Variant, str] = {
    "baseline": "nosse",
    "treatment": "sse",
}


class KeyPair(NamedTuple):
    """Object keys for one iteration."""

    baseline: str
    treatment: str

    def for_variant(self, variant: Variant) -> str:
        """Key of ``variant``."""
        return self.baseline if variant == "baseline" else self.treatment


def payload_size(size_mb: float) -> int:
    """Bytes for ``size_mb`` MiB, at least one."""
    return max(1, int(size_mb * BYTES_PER_MB))


def generate_payload(size_mb: float) -> bytes:
    """Random, incompressible payload of ``size_mb`` MiB."""
    return os.urandom(payload_size(size_mb))


def make_object_keys(
    prefix: str,
    base_key: str,
    iteration: int,
    *,
    now_ms: Callable[[], int] | None = None,
    token: Callable[[], str] | None = None,
) -> KeyPair:
    """Build ``{prefix}/{base_key}-{timestamp}-{iteration}-{random}-{variant}.bin`` keys.

    The timestamp and random token keep keys unique across iterations and
    across runs sharing a bucket.
    """
    stamp = now_ms() if now_ms is not None else time.time_ns() // 1_000_000
    rand = token() if token is not None else secrets.token_hex(3)
    stem = f"{prefix.strip('/')}/{base_key}-{stamp}-{iteration}-{rand}"
    return KeyPair(
        baseline=f"{stem}-{VARIANT_SUFFIX['baseline']}.bin",
        treatment=f"{stem}-{VARIANT_SUFFIX['treatment']}.bin",
    )
