"""
Benchmark orchestration for BreakSim.

- driver.py: runs one benchmarking mode end to end
- sweep.py: coverage / error-rate read sweep over a reference region
- alignment.py: interface for an external aligner
"""

from .alignment import AlignmentService
from .sweep import SWEEP_COLUMNS, SweepRow, AssemblyReadSweep
from .driver import BenchmarkDriver, BenchmarkResult

__all__ = [
    "AlignmentService",
    "SWEEP_COLUMNS",
    "SweepRow",
    "AssemblyReadSweep",
    "BenchmarkDriver",
    "BenchmarkResult",
]
