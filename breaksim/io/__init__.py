"""
I/O module for BreakSim.

Handles everything that touches files or external libraries:
- regions.py: Region type, BED and samtools-style region parsing
- reference.py: indexed FASTA access (pysam) and in-memory references
- read_collection.py: BAM input/output (pysam)
- seq_files.py: FASTQ/FASTA reading and writing (Biopython)
- ledgers.py: breakpoint and indel ledger files
"""

from .regions import (
    Region,
    parse_region_string,
    read_bed_regions,
    read_bed_weights,
    load_regions,
    contig_lengths_from_header,
)
from .reference import ReferenceAccessor, FastaReference, InMemoryReference
from .read_collection import ReadRecord, BamReadCollection, BamWriter, sample_qualities
from .seq_files import (
    SeqRead,
    write_fastq,
    write_fasta,
    read_fasta,
    iter_fastq,
)

__all__ = [
    # Regions
    "Region",
    "parse_region_string",
    "read_bed_regions",
    "read_bed_weights",
    "load_regions",
    "contig_lengths_from_header",

    # Reference access
    "ReferenceAccessor",
    "FastaReference",
    "InMemoryReference",

    # Read collections
    "ReadRecord",
    "BamReadCollection",
    "BamWriter",
    "sample_qualities",

    # FASTQ/FASTA
    "SeqRead",
    "write_fastq",
    "write_fasta",
    "read_fasta",
    "iter_fastq",
]
