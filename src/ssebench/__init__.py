"""
ssebench - Server-side encryption overhead benchmark.

Paired PUT/GET timings with and without SSE, with retries and honest statistics.
"""

from ssebench.orchestrator import Orchestrator
from ssebench.stats import added_ms, paired_confidence_interval, summarize

__version__ = "0.1.0"
__all__ = [
    "Orchestrator",
    "__version__",
    "added_ms",
    "paired_confidence_interval",
    "summarize",
]
