"""
Dataset partitioning for BreakSim.

Splits an existing read collection into reproducible sub-samples:
- splitter.py: exact K-way splits and weighted fractionation, mate-pair safe
- weights.py: per-region weight tables loaded from BED
"""

from .weights import RegionWeight, RegionWeightTable
from .splitter import (
    DEFAULT_FRACTION_TAG,
    PartitionAssignment,
    ExactPartition,
    WeightedPartition,
    DatasetPartitioner,
    validate_fractions,
    subsample_output_name,
    fractionated_output_name,
)

__all__ = [
    "RegionWeight",
    "RegionWeightTable",
    "DEFAULT_FRACTION_TAG",
    "PartitionAssignment",
    "ExactPartition",
    "WeightedPartition",
    "DatasetPartitioner",
    "validate_fractions",
    "subsample_output_name",
    "fractionated_output_name",
]
