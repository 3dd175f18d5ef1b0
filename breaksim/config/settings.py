"""
Immutable run settings.

A validated configuration dictionary is converted once into frozen
dataclasses, which are then passed into each component. Nothing downstream
reads the raw dictionary.

Author: BreakSim Development Team
License: MIT
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from ..simulation.error_rates import ErrorRateSet, RateCategory
from ..errors import ParameterError
from .parser import ConfigValidationError
from .schema import _number_list, validate_config


class BenchmarkMode(Enum):
    """Run modes, named after their CLI commands."""
    GENOME_SIMULATION = "sim-breaks"
    DATASET_PARTITIONING = "split-bam"
    ASSEMBLY_SWEEP = "test-assembly"

    @property
    def banner(self) -> str:
        return {
            BenchmarkMode.GENOME_SIMULATION: "RUNNING SIMULATE BREAKS",
            BenchmarkMode.DATASET_PARTITIONING: "RUNNING SPLIT BAM",
            BenchmarkMode.ASSEMBLY_SWEEP: "RUNNING ASSEMBLY TEST",
        }[self]


@dataclass(frozen=True)
class RunSettings:
    """Seed, naming and input locations shared by every mode."""
    seed: int = 0
    string_id: str = 'noid'
    output_dir: Path = Path('.')
    log_file: Optional[Path] = None
    reference_genome: Optional[Path] = None
    regions: Optional[str] = None
    bam: Optional[Path] = None


@dataclass(frozen=True)
class SamplingSettings:
    """Read length, error/coverage lists and the paired-end insert model."""
    read_length: int
    coverages: ErrorRateSet
    snv_rates: ErrorRateSet
    del_rates: ErrorRateSet
    ins_rates: ErrorRateSet
    insert_mean: float = 250.0
    insert_sd: float = 50.0
    max_quality_reads: int = 100000
    quality_windows: int = 8

    def describe(self) -> str:
        return '\n'.join([
            "    Error rates:",
            self.snv_rates.describe(),
            self.del_rates.describe(),
            self.ins_rates.describe(),
            self.coverages.describe(),
            f"    Insert size: {self.insert_mean:g}({self.insert_sd:g})",
        ])


@dataclass(frozen=True)
class SimulationSettings:
    num_rearrangements: int = 10
    num_indels: int = 10
    min_event_size: int = 20
    max_event_size: int = 200
    min_breakpoint_gap: int = 10
    max_indel_length: int = 10
    placement_retries: int = 100


@dataclass(frozen=True)
class SweepSettings:
    num_runs: int = 100
    insert_mean: float = 350.0
    insert_sd: float = 50.0
    write_reads: bool = False


@dataclass(frozen=True)
class PartitionSettings:
    """
    Exactly one of ``fractions`` (exact mode) or ``fraction_bed`` (weighted
    mode) is in use; a BED file takes precedence.
    """
    fractions: ErrorRateSet
    fraction_bed: Optional[Path] = None
    tag: str = 'FR'

    @property
    def weighted(self) -> bool:
        return self.fraction_bed is not None


@dataclass(frozen=True)
class BenchmarkSettings:
    mode: BenchmarkMode
    run: RunSettings
    sampling: SamplingSettings
    simulation: SimulationSettings
    sweep: SweepSettings
    partition: PartitionSettings


def _optional_path(value: Any) -> Optional[Path]:
    return Path(value) if value else None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _rate_set(value: Any, category: RateCategory) -> ErrorRateSet:
    return ErrorRateSet.parse(_number_list(value), category)


def build_settings(config: Dict[str, Any], mode: BenchmarkMode) -> BenchmarkSettings:
    """
    Convert a configuration dictionary into frozen settings.

    Args:
        config: Merged configuration (defaults + file + CLI overrides)
        mode: Run mode

    Returns:
        BenchmarkSettings

    Raises:
        ConfigValidationError: If the configuration fails validation
    """
    errors = validate_config(config)
    if errors:
        raise ConfigValidationError("Invalid configuration:\n  " + "\n  ".join(errors))

    run_cfg = config['run']
    ref_cfg = config['reference']
    reads_cfg = config['reads']
    sim_cfg = config['simulation']
    sampling_cfg = config['sampling']
    sweep_cfg = config['sweep']
    part_cfg = config['partition']

    run = RunSettings(
        seed=int(run_cfg['seed']),
        string_id=str(run_cfg['string_id']),
        output_dir=Path(run_cfg['output_dir'] or '.'),
        log_file=_optional_path(run_cfg.get('log_file')),
        reference_genome=_optional_path(ref_cfg.get('genome')),
        regions=str(ref_cfg['regions']) if ref_cfg.get('regions') else None,
        bam=_optional_path(ref_cfg.get('bam')),
    )

    insert_cfg = sweep_cfg if mode == BenchmarkMode.ASSEMBLY_SWEEP else sampling_cfg
    try:
        sampling = SamplingSettings(
            read_length=int(reads_cfg['read_length']),
            coverages=_rate_set(reads_cfg.get('coverage'), RateCategory.COVERAGE),
            snv_rates=_rate_set(reads_cfg.get('snv_rate'), RateCategory.SNV),
            del_rates=_rate_set(reads_cfg.get('del_rate'), RateCategory.DELETION),
            ins_rates=_rate_set(reads_cfg.get('ins_rate'), RateCategory.INSERTION),
            insert_mean=float(insert_cfg['insert_mean']),
            insert_sd=float(insert_cfg['insert_sd']),
            max_quality_reads=int(reads_cfg['max_quality_reads']),
            quality_windows=int(reads_cfg['quality_windows']),
        )
    except ParameterError as e:
        raise ConfigValidationError(str(e))

    simulation = SimulationSettings(
        num_rearrangements=int(sim_cfg['num_rearrangements']),
        num_indels=int(sim_cfg['num_indels']),
        min_event_size=int(sim_cfg['min_event_size']),
        max_event_size=int(sim_cfg['max_event_size']),
        min_breakpoint_gap=int(sim_cfg['min_breakpoint_gap']),
        max_indel_length=int(sim_cfg['max_indel_length']),
        placement_retries=int(sim_cfg['placement_retries']),
    )

    sweep = SweepSettings(
        num_runs=int(sweep_cfg['num_runs']),
        insert_mean=float(sweep_cfg['insert_mean']),
        insert_sd=float(sweep_cfg['insert_sd']),
        write_reads=_as_bool(sweep_cfg.get('write_reads')),
    )

    fractions = part_cfg.get('fractions')
    fraction_bed = None
    if isinstance(fractions, str) and Path(fractions).is_file():
        fraction_bed = Path(fractions)
        fractions = None
    partition = PartitionSettings(
        fractions=_rate_set(fractions, RateCategory.FRACTION),
        fraction_bed=fraction_bed,
        tag=str(part_cfg['tag']),
    )

    if mode == BenchmarkMode.DATASET_PARTITIONING and not partition.weighted and not len(partition.fractions):
        raise ConfigValidationError(
            "Must specify fractions to split into with -f (e.g. -f 0.1,0.8), or as BED file"
        )

    return BenchmarkSettings(
        mode=mode,
        run=run,
        sampling=sampling,
        simulation=simulation,
        sweep=sweep,
        partition=partition,
    )


__all__ = [
    'BenchmarkMode',
    'RunSettings',
    'SamplingSettings',
    'SimulationSettings',
    'SweepSettings',
    'PartitionSettings',
    'BenchmarkSettings',
    'build_settings',
]
