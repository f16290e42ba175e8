"""Research and benchmarking utilities for readyexec.

Kept out of the top-level namespace; import from here explicitly.
"""

from __future__ import annotations

__all__ = [
    "VARIANTS",
    "BandwidthResult",
    "BenchmarkReport",
    "measure",
    "run_benchmark",
]

from .saxpy import VARIANTS, BandwidthResult, BenchmarkReport, measure, run_benchmark
