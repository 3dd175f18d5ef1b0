#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

End-to-end tests for the benchmark driver and the assembly read sweep.

Author: BreakSim Development Team
License: MIT
"""

import copy
import csv

import pytest

from breaksim.benchmark.driver import BenchmarkDriver
from breaksim.benchmark.sweep import SWEEP_COLUMNS, AssemblyReadSweep, observed_error_rate
from breaksim.config.schema import DEFAULT_CONFIG
from breaksim.config.settings import BenchmarkMode, build_settings
from breaksim.errors import ParameterError, RegionParseError
from breaksim.io.seq_files import iter_fastq, read_fasta
from breaksim.io.ledgers import read_breakpoint_ledger, read_indel_ledger
from breaksim.simulation.genome_builder import replay_ledgers
from breaksim.simulation.random_model import RandomModel
from breaksim.simulation.read_sampler import Allele, SampledRead

from conftest import PAIRS_PER_CONTIG


def _settings(mode, **sections):
    config = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in sections.items():
        config[section].update(values)
    return build_settings(config, mode)


def _sim_settings(reference_fasta, region_bed, output_dir, **reference):
    return _settings(
        BenchmarkMode.GENOME_SIMULATION,
        run={'seed': 42, 'string_id': 'test', 'output_dir': str(output_dir)},
        reference={'genome': str(reference_fasta), 'regions': str(region_bed), **reference},
        reads={'coverage': [5], 'read_length': 50},
        simulation={'num_rearrangements': 2, 'num_indels': 3},
        sampling={'insert_mean': 200, 'insert_sd': 20},
    )


def _sweep_settings(reference_fasta, region_bed, output_dir, **sweep):
    return _settings(
        BenchmarkMode.ASSEMBLY_SWEEP,
        run={'seed': 7, 'string_id': 'sweep', 'output_dir': str(output_dir)},
        reference={'genome': str(reference_fasta), 'regions': str(region_bed)},
        reads={'coverage': "2,4", 'snv_rate': "0,0.02", 'read_length': 50},
        sweep={'num_runs': 2, **sweep},
    )


class FakeAligner:
    """Aligner stub that records calls and reports every read as aligned."""

    def __init__(self):
        self.indexed = []
        self.queries = 0

    def index(self, sequences):
        self.indexed.append(dict(sequences))

    def align(self, sequence, read_id):
        self.queries += 1
        return [(read_id, 0)]


class TestGenomeSimulation:
    """Test the sim-breaks mode end to end."""

    def test_outputs(self, reference_fasta, region_bed, reference_sequence, temp_output_dir):
        out = temp_output_dir / "sim"
        result = BenchmarkDriver(_sim_settings(reference_fasta, region_bed, out)).run()

        assert result.seed == 42
        for path in result.outputs.values():
            assert path.exists()

        reads1 = list(iter_fastq(out / "paired_end1.fastq"))
        reads2 = list(iter_fastq(out / "paired_end2.fastq"))
        assert len(reads1) == len(reads2) > 0
        assert all(len(r.sequence) == 50 == len(r.quality) for r in reads1 + reads2)
        assert [r.id for r in reads1] == [r.id for r in reads2]

        assert len((out / "connections.tsv").read_text().splitlines()) == 2
        assert len((out / "indels.tsv").read_text().splitlines()) == 3

        genome = read_fasta(out / "simulated_genome.fa")
        assert list(genome) == ["test_chr1_1_2000"]
        assert genome["test_chr1_1_2000"] == result.genome.sequence

    def test_ledgers_replay(self, reference_fasta, region_bed, reference_sequence, temp_output_dir):
        out = temp_output_dir / "sim"
        result = BenchmarkDriver(_sim_settings(reference_fasta, region_bed, out)).run()
        breakpoints = read_breakpoint_ledger(out / "connections.tsv")
        indels = read_indel_ledger(out / "indels.tsv")
        assert replay_ledgers(reference_sequence, breakpoints, indels) == result.genome.sequence

    def test_reproducible(self, reference_fasta, region_bed, temp_output_dir):
        first = temp_output_dir / "a"
        second = temp_output_dir / "b"
        BenchmarkDriver(_sim_settings(reference_fasta, region_bed, first)).run()
        BenchmarkDriver(_sim_settings(reference_fasta, region_bed, second)).run()
        for name in ("paired_end1.fastq", "paired_end2.fastq", "connections.tsv",
                     "indels.tsv", "simulated_genome.fa"):
            assert (first / name).read_bytes() == (second / name).read_bytes()

    def test_qualities_from_bam(self, reference_fasta, region_bed, paired_bam, temp_output_dir):
        out = temp_output_dir / "sim"
        settings = _sim_settings(reference_fasta, region_bed, out, bam=str(paired_bam))
        result = BenchmarkDriver(settings).run()
        assert result.outputs['paired_end1'].exists()

    def test_missing_reference(self, region_bed, temp_output_dir):
        settings = _settings(
            BenchmarkMode.GENOME_SIMULATION,
            run={'seed': 1, 'output_dir': str(temp_output_dir)},
            reference={'regions': str(region_bed)},
        )
        with pytest.raises(ParameterError):
            BenchmarkDriver(settings).run()

    def test_missing_region(self, reference_fasta, temp_output_dir):
        settings = _settings(
            BenchmarkMode.GENOME_SIMULATION,
            run={'seed': 1, 'output_dir': str(temp_output_dir)},
            reference={'genome': str(reference_fasta)},
        )
        with pytest.raises(ParameterError, match="region"):
            BenchmarkDriver(settings).run()

    def test_samtools_region_needs_bam(self, reference_fasta, temp_output_dir):
        settings = _settings(
            BenchmarkMode.GENOME_SIMULATION,
            run={'seed': 1, 'output_dir': str(temp_output_dir)},
            reference={'genome': str(reference_fasta), 'regions': "chr1:1-1000"},
        )
        with pytest.raises(RegionParseError):
            BenchmarkDriver(settings).run()

    def test_samtools_region_with_bam(self, reference_fasta, paired_bam, temp_output_dir):
        settings = _settings(
            BenchmarkMode.GENOME_SIMULATION,
            run={'seed': 3, 'output_dir': str(temp_output_dir)},
            reference={'genome': str(reference_fasta), 'regions': "chr1:1-1,000",
                       'bam': str(paired_bam)},
            reads={'coverage': [2], 'read_length': 50},
            simulation={'num_rearrangements': 1, 'num_indels': 1},
        )
        result = BenchmarkDriver(settings).run()
        assert result.genome.region.end == 1000


class TestDatasetPartitioning:
    """Test the split-bam mode end to end."""

    def test_exact_split(self, paired_bam, temp_output_dir, count_bam_names):
        settings = _settings(
            BenchmarkMode.DATASET_PARTITIONING,
            run={'seed': 42, 'string_id': 'half', 'output_dir': str(temp_output_dir)},
            reference={'bam': str(paired_bam)},
            partition={'fractions': "0.5,0.25"},
        )
        result = BenchmarkDriver(settings).run()

        first = temp_output_dir / "half_0_0.5_subsampled.bam"
        second = temp_output_dir / "half_1_0.25_subsampled.bam"
        assert set(result.outputs.values()) == {first, second}
        assert len(count_bam_names(first)) == PAIRS_PER_CONTIG
        assert len(count_bam_names(second)) == PAIRS_PER_CONTIG // 2
        assert not set(count_bam_names(first)) & set(count_bam_names(second))

    def test_weighted_split(self, paired_bam, weight_bed, temp_output_dir, count_bam_names):
        settings = _settings(
            BenchmarkMode.DATASET_PARTITIONING,
            run={'seed': 42, 'string_id': 'tumor', 'output_dir': str(temp_output_dir)},
            reference={'bam': str(paired_bam)},
            partition={'fractions': str(weight_bed)},
        )
        result = BenchmarkDriver(settings).run()
        out = temp_output_dir / "tumor.fractioned.bam"
        assert result.outputs == {'fractionated': out}
        names = count_bam_names(out)
        assert set(names) == {f"chr1_pair{n}" for n in range(PAIRS_PER_CONTIG)}

    def test_requires_bam(self, temp_output_dir):
        settings = _settings(
            BenchmarkMode.DATASET_PARTITIONING,
            run={'seed': 1, 'output_dir': str(temp_output_dir)},
            partition={'fractions': "0.5"},
        )
        with pytest.raises(ParameterError, match="BAM"):
            BenchmarkDriver(settings).run()


class TestAssemblySweep:
    """Test the test-assembly mode."""

    def test_rows_and_table(self, reference_fasta, region_bed, temp_output_dir):
        settings = _sweep_settings(reference_fasta, region_bed, temp_output_dir)
        result = BenchmarkDriver(settings).run()

        # 2 runs x 2 coverages x 2 SNV rates x 1 deletion x 1 insertion rate
        assert len(result.sweep_rows) == 8
        with open(result.outputs['table']) as handle:
            rows = list(csv.DictReader(handle, delimiter='\t'))
        assert list(rows[0]) == SWEEP_COLUMNS
        assert len(rows) == 8
        assert all(row['aligned_reads'] == '' for row in rows)
        assert (temp_output_dir / "local_ref.fa").exists()

    def test_write_reads(self, reference_fasta, region_bed, temp_output_dir):
        settings = _sweep_settings(reference_fasta, region_bed, temp_output_dir, write_reads=True)
        BenchmarkDriver(settings).run()
        assert (temp_output_dir / "paired_end1.run0_c2_e0_d0.05_i0.05.fa").exists()
        assert (temp_output_dir / "paired_end2.run1_c4_e0.02_d0.05_i0.05.fa").exists()

    def test_aligner_called(self, reference_fasta, region_bed, temp_output_dir):
        settings = _sweep_settings(reference_fasta, region_bed, temp_output_dir)
        aligner = FakeAligner()
        result = BenchmarkDriver(settings, aligner=aligner).run()
        assert len(aligner.indexed) == 1
        assert list(aligner.indexed[0]) == ['local_ref']
        assert all(row.aligned_reads == row.num_reads for row in result.sweep_rows)
        assert aligner.queries == sum(row.num_reads for row in result.sweep_rows)

    def test_error_free_rate(self, reference_sequence, temp_output_dir):
        settings = _settings(
            BenchmarkMode.ASSEMBLY_SWEEP,
            reads={'coverage': [3], 'snv_rate': [0], 'del_rate': [0], 'ins_rate': [0],
                   'read_length': 40},
            sweep={'num_runs': 1},
        )
        sweep = AssemblyReadSweep(RandomModel(5), settings.sampling, settings.sweep)
        rows = sweep.run(reference_sequence, temp_output_dir)
        assert len(rows) == 1
        assert rows[0].observed_error_rate == 0.0
        assert rows[0].num_reads == 150
        assert rows[0].num_pairs == 75

    def test_observed_error_rate(self):
        alleles = [Allele("AAAACCCC")]
        reads = [SampledRead("AAAA", 0, 0), SampledRead("CCGC", 0, 4)]
        assert observed_error_rate(reads, alleles) == 1 / 8

# BreakSim v0.1.0
# Any usage is subject to this software's license.
