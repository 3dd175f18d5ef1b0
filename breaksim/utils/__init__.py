"""
Utility functions for BreakSim.
"""

from .sequence_utils import (
    calculate_gc_content,
    reverse_complement,
    hamming_mismatches,
    find_source_strand,
)

__all__ = [
    "calculate_gc_content",
    "reverse_complement",
    "hamming_mismatches",
    "find_source_strand",
]
