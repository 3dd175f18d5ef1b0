#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Pytest configuration and shared fixtures.

Author: BreakSim Development Team
License: MIT
"""

import random
import shutil
import tempfile
from pathlib import Path

import pysam
import pytest

from breaksim.io.read_collection import ReadRecord
from breaksim.io.regions import Region


CONTIG_LENGTH = 2000
PAIRS_PER_CONTIG = 20
MATE_LENGTH = 50


def random_sequence(length: int, seed: int = 7) -> str:
    rng = random.Random(seed)
    return ''.join(rng.choice('ACGT') for _ in range(length))


def make_read_pairs(chrom: str, count: int, prefix: str = None, start: int = 100, step: int = 50):
    """In-memory ReadRecord pairs, both mates on ``chrom``."""
    prefix = prefix or chrom
    records = []
    for n in range(count):
        pos1 = start + n * step
        pos2 = pos1 + 200
        name = f"{prefix}_pair{n}"
        region1 = Region(chrom, pos1, pos1 + MATE_LENGTH)
        region2 = Region(chrom, pos2, pos2 + MATE_LENGTH)
        records.append(ReadRecord(name, True, 'A' * MATE_LENGTH, 'I' * MATE_LENGTH,
                                  region1, Region(chrom, pos2, pos2 + 1)))
        records.append(ReadRecord(name, False, 'C' * MATE_LENGTH, 'I' * MATE_LENGTH,
                                  region2, Region(chrom, pos1, pos1 + 1)))
    return records


@pytest.fixture
def temp_output_dir():
    """Create temporary output directory for tests."""
    temp_dir = tempfile.mkdtemp(prefix="breaksim_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def reference_sequence():
    """2 kb random reference contig."""
    return random_sequence(CONTIG_LENGTH)


@pytest.fixture
def reference_fasta(temp_output_dir, reference_sequence):
    """Indexed FASTA with a single contig 'chr1'."""
    path = temp_output_dir / "reference.fa"
    with open(path, 'w') as f:
        f.write(">chr1\n")
        for i in range(0, len(reference_sequence), 60):
            f.write(reference_sequence[i:i + 60] + "\n")
    pysam.faidx(str(path))
    return path


@pytest.fixture
def region_bed(temp_output_dir):
    """BED file covering the whole of chr1."""
    path = temp_output_dir / "regions.bed"
    path.write_text(f"chr1\t0\t{CONTIG_LENGTH}\n")
    return path


@pytest.fixture
def weight_bed(temp_output_dir):
    """Weight table keeping every chr1 pair and no chr2 pair."""
    path = temp_output_dir / "weights.bed"
    path.write_text(f"chr1\t0\t{CONTIG_LENGTH}\t1\nchr2\t0\t{CONTIG_LENGTH}\t0\n")
    return path


def _segment(header, name, ref_id, pos, mate_pos, is_read1):
    seg = pysam.AlignedSegment(header)
    seg.query_name = name
    seg.query_sequence = ('ACGT' * MATE_LENGTH)[:MATE_LENGTH]
    seg.flag = 0x1 | 0x2 | (0x40 | 0x20 if is_read1 else 0x80 | 0x10)
    seg.reference_id = ref_id
    seg.reference_start = pos
    seg.mapping_quality = 60
    seg.cigartuples = [(0, MATE_LENGTH)]
    seg.next_reference_id = ref_id
    seg.next_reference_start = mate_pos
    span = mate_pos + MATE_LENGTH - pos if is_read1 else -(pos + MATE_LENGTH - mate_pos)
    seg.template_length = span
    seg.query_qualities = pysam.qualitystring_to_array('I' * MATE_LENGTH)
    return seg


@pytest.fixture
def paired_bam(temp_output_dir):
    """
    Coordinate-sorted, indexed BAM with 20 proper pairs on each of chr1 and chr2.

    Pair n on a contig has mate1 at 100 + 50n and mate2 200 bp downstream.
    """
    header = pysam.AlignmentHeader.from_dict({
        'HD': {'VN': '1.6', 'SO': 'coordinate'},
        'SQ': [
            {'SN': 'chr1', 'LN': CONTIG_LENGTH},
            {'SN': 'chr2', 'LN': CONTIG_LENGTH},
        ],
    })

    segments = []
    for ref_id, chrom in enumerate(('chr1', 'chr2')):
        for n in range(PAIRS_PER_CONTIG):
            pos1 = 100 + n * 50
            pos2 = pos1 + 200
            name = f"{chrom}_pair{n}"
            segments.append(_segment(header, name, ref_id, pos1, pos2, True))
            segments.append(_segment(header, name, ref_id, pos2, pos1, False))
    segments.sort(key=lambda s: (s.reference_id, s.reference_start))

    path = temp_output_dir / "paired.bam"
    with pysam.AlignmentFile(str(path), 'wb', header=header) as bam:
        for seg in segments:
            bam.write(seg)
    pysam.index(str(path))
    return path


def bam_names(path):
    """Query name -> number of records in a BAM."""
    counts = {}
    with pysam.AlignmentFile(str(path), 'rb') as bam:
        for seg in bam.fetch(until_eof=True):
            counts[seg.query_name] = counts.get(seg.query_name, 0) + 1
    return counts


@pytest.fixture
def read_pairs():
    """Factory for in-memory read pairs: read_pairs(chrom, count, ...)."""
    return make_read_pairs


@pytest.fixture
def count_bam_names():
    """Helper returning {query name: record count} for a BAM path."""
    return bam_names


# BreakSim v0.1.0
# Any usage is subject to this software's license.
