#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Tests for pair-preserving dataset partitioning.

Author: BreakSim Development Team
License: MIT
"""

import random

import pysam
import pytest

from breaksim.errors import EmptyFractionSpec, ParameterError
from breaksim.io.read_collection import ReadRecord
from breaksim.io.regions import Region
from breaksim.partition.splitter import (
    DatasetPartitioner,
    cut_boundaries,
    fractionated_output_name,
    subsample_output_name,
    validate_fractions,
)
from breaksim.partition.weights import RegionWeightTable

from conftest import CONTIG_LENGTH, PAIRS_PER_CONTIG


CHR1 = Region('chr1', 0, 10000)
CHR2 = Region('chr2', 0, 10000)


def _names(reads):
    return {r.query_name for r in reads}


class TestFractionHelpers:
    """Test fraction validation and boundaries."""

    def test_valid(self):
        assert validate_fractions([0.5, 0.5]) == (0.5, 0.5)

    @pytest.mark.parametrize("fractions", [[], [0.0], [1.2], [0.6, 0.6], [-0.1]])
    def test_invalid(self, fractions):
        with pytest.raises(ParameterError):
            validate_fractions(fractions)

    def test_missing_message(self):
        with pytest.raises(ParameterError, match="Must specify fractions"):
            validate_fractions([])

    def test_boundaries(self):
        assert list(cut_boundaries([0.3, 0.2], 100)) == [30, 50]
        assert list(cut_boundaries([0.5, 0.5], 7)) == [4, 7]

    def test_output_names(self):
        assert subsample_output_name("run1", 1, 0.25) == "run1_1_0.25_subsampled.bam"
        assert subsample_output_name("run1", 0, 0.5) != subsample_output_name("run1", 1, 0.5)
        assert fractionated_output_name("run1") == "run1.fractioned.bam"


class TestExactPartition:
    """Test exact-fraction splitting of in-memory reads."""

    def test_equal_halves(self, read_pairs):
        reads = read_pairs('chr1', 100)
        result = DatasetPartitioner(42).partition_exact(reads, [0.5, 0.5])
        assert [len(_names(b)) for b in result.buckets] == [50, 50]
        assert not result.dropped

    def test_pairs_never_split(self, read_pairs):
        reads = read_pairs('chr1', 100)
        result = DatasetPartitioner(3).partition_exact(reads, [0.3, 0.3, 0.4])
        for bucket in result.buckets:
            assert len(bucket) == 2 * len(_names(bucket))
        names = [_names(b) for b in result.buckets]
        assert not names[0] & names[1]
        assert not names[1] & names[2]
        assert not names[0] & names[2]

    def test_accounting(self, read_pairs):
        reads = read_pairs('chr1', 100)
        result = DatasetPartitioner(5).partition_exact(reads, [0.3, 0.2])
        assert [len(_names(b)) for b in result.buckets] == [30, 20]
        assert len(_names(result.dropped)) == 50
        total = sum(len(b) for b in result.buckets) + len(result.dropped)
        assert total == len(reads)

    def test_sizes_within_one(self, read_pairs):
        reads = read_pairs('chr1', 37)
        result = DatasetPartitioner(11).partition_exact(reads, [0.25, 0.25, 0.25, 0.25])
        sizes = [len(_names(b)) for b in result.buckets]
        assert sum(sizes) == 37
        assert max(sizes) - min(sizes) <= 1

    def test_deterministic(self, read_pairs):
        reads = read_pairs('chr1', 60)
        first = DatasetPartitioner(9).partition_exact(reads, [0.5, 0.25])
        second = DatasetPartitioner(9).partition_exact(reads, [0.5, 0.25])
        assert [_names(b) for b in first.buckets] == [_names(b) for b in second.buckets]

    def test_order_independent(self, read_pairs):
        reads = read_pairs('chr1', 60)
        shuffled = list(reads)
        random.Random(1).shuffle(shuffled)
        first = DatasetPartitioner(9).partition_exact(reads, [0.5, 0.5])
        second = DatasetPartitioner(9).partition_exact(shuffled, [0.5, 0.5])
        assert [_names(b) for b in first.buckets] == [_names(b) for b in second.buckets]

    def test_seed_changes_selection(self, read_pairs):
        reads = read_pairs('chr1', 60)
        first = DatasetPartitioner(1).partition_exact(reads, [0.5])
        second = DatasetPartitioner(2).partition_exact(reads, [0.5])
        assert _names(first.buckets[0]) != _names(second.buckets[0])

    def test_region_restriction(self, read_pairs):
        reads = read_pairs('chr1', 10) + read_pairs('chr2', 10)
        result = DatasetPartitioner(4).partition_exact(reads, [1.0], regions=[CHR2])
        assert _names(result.buckets[0]) == {f"chr2_pair{n}" for n in range(10)}

    def test_bad_tag(self):
        with pytest.raises(ParameterError):
            DatasetPartitioner(1, tag='FRACTION')


class TestWeightedPartition:
    """Test region-weighted fractionation of in-memory reads."""

    @pytest.fixture
    def table(self):
        return RegionWeightTable([(CHR1, 1.0), (CHR2, 0.0)])

    def test_keep_and_drop_by_weight(self, read_pairs, table):
        reads = read_pairs('chr1', 10) + read_pairs('chr2', 10)
        result = DatasetPartitioner(42).partition_weighted(reads, table)
        kept = {read.query_name for read, _ in result.kept}
        assert kept == {f"chr1_pair{n}" for n in range(10)}
        assert _names(result.dropped) == {f"chr2_pair{n}" for n in range(10)}
        assert {label for _, label in result.kept} == {"chr1:1-10000"}

    def test_both_mates_kept(self, read_pairs):
        table = RegionWeightTable([(CHR1, 0.5)])
        reads = read_pairs('chr1', 200)
        result = DatasetPartitioner(7).partition_weighted(reads, table)
        kept = [read for read, _ in result.kept]
        assert len(kept) == 2 * len(_names(kept))
        assert 0 < len(_names(kept)) < 200

    def test_unmatched_region_dropped(self, read_pairs):
        table = RegionWeightTable([(CHR1, 1.0)])
        result = DatasetPartitioner(7).partition_weighted(read_pairs('chr3', 5), table)
        assert not result.kept

    def test_unmapped_read_uses_mate_position(self, table):
        mate_region = Region('chr1', 500, 501)
        reads = [
            ReadRecord('orphan', True, 'ACGT', 'IIII', None, mate_region),
            ReadRecord('orphan', False, 'ACGT', 'IIII', mate_region, None),
        ]
        result = DatasetPartitioner(1).partition_weighted(reads, table)
        assert len(result.kept) == 2

    def test_first_seen_mate_decides(self, table):
        reads = [
            ReadRecord('split', True, 'ACGT', 'IIII', Region('chr2', 10, 14), None),
            ReadRecord('split', False, 'ACGT', 'IIII', Region('chr1', 10, 14), None),
        ]
        result = DatasetPartitioner(1).partition_weighted(reads, table)
        assert not result.kept
        assert len(result.dropped) == 2

    def test_empty_table(self, read_pairs):
        with pytest.raises(EmptyFractionSpec):
            DatasetPartitioner(1).partition_weighted(read_pairs('chr1', 2), RegionWeightTable())

    def test_weight_out_of_range(self):
        with pytest.raises(ParameterError):
            RegionWeightTable([(CHR1, 1.5)])

    def test_first_overlapping_entry_wins(self):
        table = RegionWeightTable([(Region('chr1', 0, 100), 0.2), (Region('chr1', 50, 200), 0.9)])
        assert table.lookup(Region('chr1', 60, 61)).weight == 0.2
        assert table.lookup(Region('chr1', 150, 151)).weight == 0.9
        assert table.lookup(Region('chr2', 60, 61)) is None
        assert table.lookup(None) is None

    def test_load_table(self, weight_bed):
        table = RegionWeightTable.load(weight_bed)
        assert len(table) == 2
        assert [e.weight for e in table] == [1.0, 0.0]
        assert table.regions()[0] == Region('chr1', 0, CONTIG_LENGTH)


class TestBamPartition:
    """Test partitioning of real BAM files."""

    def test_split_bam(self, paired_bam, temp_output_dir, count_bam_names):
        outputs = [temp_output_dir / "a.bam", temp_output_dir / "b.bam"]
        assignment = DatasetPartitioner(42).split_bam(paired_bam, outputs, [0.5, 0.5])

        first = count_bam_names(outputs[0])
        second = count_bam_names(outputs[1])
        assert len(first) == len(second) == PAIRS_PER_CONTIG
        assert not set(first) & set(second)
        assert all(count == 2 for count in list(first.values()) + list(second.values()))
        assert len(assignment) == 2 * PAIRS_PER_CONTIG

    def test_split_bam_equal_fractions(self, paired_bam, temp_output_dir, count_bam_names):
        fractions = [0.5, 0.5]
        outputs = [temp_output_dir / subsample_output_name("half", n, f) for n, f in enumerate(fractions)]
        DatasetPartitioner(7).split_bam(paired_bam, outputs, fractions)

        first = count_bam_names(outputs[0])
        second = count_bam_names(outputs[1])
        assert len(first) == len(second) == PAIRS_PER_CONTIG
        assert not set(first) & set(second)

    def test_split_bam_duplicate_paths(self, paired_bam, temp_output_dir):
        same = temp_output_dir / "same.bam"
        with pytest.raises(ParameterError, match="distinct"):
            DatasetPartitioner(7).split_bam(paired_bam, [same, same], [0.5, 0.5])
        assert not same.exists()

    def test_split_bam_path_mismatch(self, paired_bam, temp_output_dir):
        with pytest.raises(ParameterError):
            DatasetPartitioner(1).split_bam(paired_bam, [temp_output_dir / "a.bam"], [0.5, 0.5])

    def test_split_bam_regions(self, paired_bam, temp_output_dir, count_bam_names):
        out = temp_output_dir / "chr2.bam"
        DatasetPartitioner(1).split_bam(paired_bam, [out], [1.0], regions=[Region('chr2', 0, 500)])
        names = count_bam_names(out)
        assert names
        assert all(name.startswith("chr2_") for name in names)
        assert all(count == 2 for count in names.values())

    def test_split_bam_matches_in_memory(self, paired_bam, temp_output_dir, count_bam_names):
        from breaksim.io.read_collection import BamReadCollection
        out = temp_output_dir / "half.bam"
        DatasetPartitioner(13).split_bam(paired_bam, [out], [0.5])
        with BamReadCollection(paired_bam) as bam:
            result = DatasetPartitioner(13).partition_exact(bam.records(), [0.5])
        assert set(count_bam_names(out)) == _names(result.buckets[0])

    def test_fractionate_bam(self, paired_bam, weight_bed, temp_output_dir):
        out = temp_output_dir / "weighted.bam"
        table = RegionWeightTable.load(weight_bed)
        DatasetPartitioner(42).fractionate_bam(paired_bam, out, table)

        with pysam.AlignmentFile(str(out), 'rb') as bam:
            segments = list(bam.fetch(until_eof=True))
        assert len(segments) == 2 * PAIRS_PER_CONTIG
        assert all(s.reference_name == 'chr1' for s in segments)
        assert {s.get_tag('FR') for s in segments} == {f"chr1:1-{CONTIG_LENGTH}"}

    def test_input_unchanged(self, paired_bam, temp_output_dir):
        before = paired_bam.read_bytes()
        DatasetPartitioner(2).split_bam(paired_bam, [temp_output_dir / "x.bam"], [0.3])
        assert paired_bam.read_bytes() == before

# BreakSim v0.1.0
# Any usage is subject to this software's license.
