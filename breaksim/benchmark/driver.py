#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Benchmark driver: runs one benchmarking mode end to end.

Modes:
- GENOME_SIMULATION: mutate a reference region, sample paired-end reads,
  write FASTQ plus the breakpoint and indel ledgers
- DATASET_PARTITIONING: split an existing BAM into exact fractions, or
  fractionate it by per-region weights
- ASSEMBLY_SWEEP: sweep coverage and error rates over a reference region

The seed is resolved here and nowhere else; every component receives it
explicitly.

Author: BreakSim Development Team
License: MIT
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..config.settings import BenchmarkMode, BenchmarkSettings
from ..errors import ParameterError
from ..io.seq_files import SeqRead, write_fasta, write_fastq
from ..io.ledgers import write_breakpoint_ledger, write_indel_ledger
from ..io.read_collection import BamReadCollection
from ..io.reference import FastaReference
from ..io.regions import Region, load_regions
from ..partition.splitter import (
    DatasetPartitioner,
    PartitionAssignment,
    fractionated_output_name,
    subsample_output_name,
)
from ..partition.weights import RegionWeightTable
from ..simulation.genome_builder import SimulatedGenome, SyntheticGenomeBuilder
from ..simulation.quality import QualityPool, default_training_windows
from ..simulation.random_model import RandomModel, resolve_seed
from ..simulation.read_sampler import Allele, ReadSampler
from .alignment import AlignmentService
from .sweep import AssemblyReadSweep, SweepRow

logger = logging.getLogger(__name__)

SUGGESTED_ALIGNMENT = (
    "bwa mem $REFERENCE paired_end1.fastq paired_end2.fastq > sim.sam && "
    "samtools view sim.sam -Sb > tmp.bam && samtools sort -m 4G tmp.bam -o sim.bam && "
    "rm sim.sam tmp.bam && samtools index sim.bam"
)


@dataclass
class BenchmarkResult:
    """
    Outcome of one driver run.

    Attributes:
        mode: Mode that was run
        seed: Seed actually used
        outputs: Output name -> path
        genome: Simulated genome (genome simulation only)
        assignment: Pair assignment (partitioning only)
        sweep_rows: Table rows (assembly sweep only)
    """
    mode: BenchmarkMode
    seed: int
    outputs: Dict[str, Path] = field(default_factory=dict)
    genome: Optional[SimulatedGenome] = None
    assignment: Optional[PartitionAssignment] = None
    sweep_rows: List[SweepRow] = field(default_factory=list)


class BenchmarkDriver:
    """
    Orchestrate one benchmarking run.

    Args:
        settings: Frozen run settings
        aligner: Optional aligner for the assembly read sweep
    """

    def __init__(self, settings: BenchmarkSettings, aligner: Optional[AlignmentService] = None):
        self.settings = settings
        self.aligner = aligner

    # ------------------------------------------------------------------
    #  Entry point
    # ------------------------------------------------------------------

    def run(self) -> BenchmarkResult:
        mode = self.settings.mode
        logger.info("-" * 43)
        logger.info("--- Running BreakSim Benchmarking Test ---")
        logger.info("-" * 43)
        logger.info(f"********* {mode.banner} ***********")
        self._log_parameters()

        seed = resolve_seed(self.settings.run.seed)
        logger.info(f"   Seed: {seed}")

        self.settings.run.output_dir.mkdir(parents=True, exist_ok=True)

        if mode == BenchmarkMode.GENOME_SIMULATION:
            return self.simulate_genome(seed)
        if mode == BenchmarkMode.DATASET_PARTITIONING:
            return self.partition_dataset(seed)
        return self.sweep_assembly(seed)

    def _log_parameters(self) -> None:
        mode = self.settings.mode
        if mode == BenchmarkMode.DATASET_PARTITIONING:
            partition = self.settings.partition
            if partition.weighted:
                logger.info(f"        Fractions: {partition.fraction_bed}")
            else:
                logger.info(partition.fractions.describe())
        else:
            for line in self.settings.sampling.describe().splitlines():
                logger.info(line)

    # ------------------------------------------------------------------
    #  Inputs
    # ------------------------------------------------------------------

    def _bam_contig_lengths(self) -> Dict[str, int]:
        bam = self.settings.run.bam
        if bam is None:
            return {}
        with BamReadCollection(bam) as collection:
            return collection.contig_lengths()

    def _regions(self, required: bool) -> List[Region]:
        spec = self.settings.run.regions
        if not spec:
            if required:
                raise ParameterError("Must input a region to run on (-k)")
            return []
        regions = load_regions(spec, self._bam_contig_lengths() or None)
        logger.info(f"Loaded {len(regions)} region(s)")
        return regions

    def _reference_path(self) -> Path:
        genome = self.settings.run.reference_genome
        if genome is None:
            raise ParameterError("A reference genome is required (-G)")
        return genome

    def _quality_pool(self) -> QualityPool:
        bam = self.settings.run.bam
        if bam is None:
            logger.info("No BAM given, generating quality scores")
            return QualityPool()
        lengths = self._bam_contig_lengths()
        if not lengths:
            return QualityPool()
        first_contig = next(iter(lengths))
        windows = default_training_windows(first_contig, self.settings.sampling.quality_windows)
        return QualityPool.from_bam(bam, windows, self.settings.sampling.max_quality_reads)

    # ------------------------------------------------------------------
    #  Mode A: genome simulation
    # ------------------------------------------------------------------

    def simulate_genome(self, seed: int) -> BenchmarkResult:
        """Build a mutated genome and write paired-end FASTQ plus ledgers."""
        run = self.settings.run
        sim = self.settings.simulation
        sampling = self.settings.sampling
        out = run.output_dir

        rng = RandomModel(seed)
        regions = self._regions(required=True)
        pool = self._quality_pool()

        region = regions[0]
        logger.info(f"--Generating breaks on: {region}")
        logger.info(f"--Total number of rearrangement breaks: {sim.num_rearrangements}")
        logger.info(f"--Total number of indels: {sim.num_indels}")

        builder = SyntheticGenomeBuilder(
            rng,
            min_event_size=sim.min_event_size,
            max_event_size=sim.max_event_size,
            min_breakpoint_gap=sim.min_breakpoint_gap,
            max_indel_length=sim.max_indel_length,
            placement_retries=sim.placement_retries,
        )
        logger.info("...loading the reference genome")
        with FastaReference(self._reference_path()) as reference:
            genome = builder.build(region, sim.num_rearrangements, sim.num_indels, reference)

        coverage = sampling.coverages.first
        snv = sampling.snv_rates.first
        deletion = sampling.del_rates.first
        insertion = sampling.ins_rates.first
        logger.info(f"Simulating reads at coverage of {coverage:g} del rate {deletion:g} "
                    f"ins rate {insertion:g} snv-rate {snv:g} "
                    f"isize {sampling.insert_mean:g}({sampling.insert_sd:g})")

        sampler = ReadSampler(rng)
        pairs = sampler.sample_paired(
            [Allele(genome.sequence, 1.0)], coverage, snv, insertion, deletion,
            sampling.read_length, sampling.insert_mean, sampling.insert_sd
        )

        reads1 = [SeqRead(f"r{n}", p.mate1, pool.draw(rng, len(p.mate1))) for n, p in enumerate(pairs)]
        reads2 = [SeqRead(f"r{n}", p.mate2, pool.draw(rng, len(p.mate2))) for n, p in enumerate(pairs)]

        outputs = {
            'paired_end1': out / 'paired_end1.fastq',
            'paired_end2': out / 'paired_end2.fastq',
            'connections': out / 'connections.tsv',
            'indels': out / 'indels.tsv',
            'genome': out / 'simulated_genome.fa',
        }
        write_fastq(reads1, outputs['paired_end1'])
        write_fastq(reads2, outputs['paired_end2'])
        write_breakpoint_ledger(genome.breakpoints, outputs['connections'])
        write_indel_ledger(genome.indels, outputs['indels'])
        write_fasta([SeqRead(f"{run.string_id}_{region.chrom}_{region.start + 1}_{region.end}",
                             genome.sequence)], outputs['genome'])

        logger.info(f"Wrote {len(pairs):,} read pairs to {out}")
        logger.info("Suggest running:")
        logger.info(SUGGESTED_ALIGNMENT)

        return BenchmarkResult(BenchmarkMode.GENOME_SIMULATION, seed, outputs, genome=genome)

    # ------------------------------------------------------------------
    #  Mode B: dataset partitioning
    # ------------------------------------------------------------------

    def partition_dataset(self, seed: int) -> BenchmarkResult:
        """Split or fractionate the input BAM."""
        run = self.settings.run
        partition = self.settings.partition
        if run.bam is None:
            raise ParameterError("Splitting requires an input BAM (-b)")

        regions = self._regions(required=False)
        partitioner = DatasetPartitioner(seed, tag=partition.tag)

        if partition.weighted:
            table = RegionWeightTable.load(partition.fraction_bed)
            out_path = run.output_dir / fractionated_output_name(run.string_id)
            assignment = partitioner.fractionate_bam(run.bam, out_path, table, regions)
            outputs = {'fractionated': out_path}
        else:
            fractions = list(partition.fractions)
            out_paths = [run.output_dir / subsample_output_name(run.string_id, n, f)
                         for n, f in enumerate(fractions)]
            assignment = partitioner.split_bam(run.bam, out_paths, fractions, regions)
            outputs = {f"fraction_{n}": p for n, p in enumerate(out_paths)}

        return BenchmarkResult(BenchmarkMode.DATASET_PARTITIONING, seed, outputs, assignment=assignment)

    # ------------------------------------------------------------------
    #  Mode C: assembly read sweep
    # ------------------------------------------------------------------

    def sweep_assembly(self, seed: int) -> BenchmarkResult:
        """Sweep coverage and error rates over the first region."""
        run = self.settings.run
        regions = self._regions(required=True)

        logger.info("...loading the reference genome")
        with FastaReference(self._reference_path()) as reference:
            local_ref = reference.fetch(regions[0])

        sweep = AssemblyReadSweep(RandomModel(seed), self.settings.sampling, self.settings.sweep,
                                  aligner=self.aligner)
        rows = sweep.run(local_ref, run.output_dir, run.string_id)

        outputs = {
            'table': run.output_dir / f"{run.string_id}.assembly_test.tsv",
            'local_ref': run.output_dir / 'local_ref.fa',
        }
        return BenchmarkResult(BenchmarkMode.ASSEMBLY_SWEEP, seed, outputs, sweep_rows=rows)


__all__ = ['BenchmarkDriver', 'BenchmarkResult', 'SUGGESTED_ALIGNMENT']

# BreakSim v0.1.0
# Any usage is subject to this software's license.
