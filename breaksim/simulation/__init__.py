"""
Simulation engine for BreakSim.

- random_model.py: seeded random source shared by every simulator
- error_rates.py: parsed error-rate and coverage lists
- genome_builder.py: rearrangement and indel injection with replayable ledgers
- read_sampler.py: coverage-driven single/paired read sampling with errors
- quality.py: quality string pool for FASTQ output
"""

from .random_model import RandomModel, resolve_seed
from .error_rates import ErrorRateSet, RateCategory, parse_number_list
from .genome_builder import (
    SVType,
    IndelKind,
    Breakpoint,
    IndelRecord,
    SimulatedGenome,
    SyntheticGenomeBuilder,
    replay_ledgers,
)
from .read_sampler import Allele, SampledRead, ReadPair, ReadSampler, mates
from .quality import QualityPool, default_training_windows

__all__ = [
    # Randomness
    "RandomModel",
    "resolve_seed",

    # Parameters
    "ErrorRateSet",
    "RateCategory",
    "parse_number_list",

    # Genome building
    "SVType",
    "IndelKind",
    "Breakpoint",
    "IndelRecord",
    "SimulatedGenome",
    "SyntheticGenomeBuilder",
    "replay_ledgers",

    # Read sampling
    "Allele",
    "SampledRead",
    "ReadPair",
    "ReadSampler",
    "mates",
    "QualityPool",
    "default_training_windows",
]
