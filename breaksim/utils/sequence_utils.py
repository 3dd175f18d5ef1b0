"""
BreakSim v0.1.0

Small sequence helpers shared by the genome builder, the read sampler and
the assembly sweep.

Author: BreakSim Development Team
License: MIT
"""

from typing import Optional

# Case is preserved; anything outside ACGTN passes through untouched.
_COMPLEMENT = str.maketrans('ACGTNacgtn', 'TGCANtgcan')


def calculate_gc_content(sequence: str) -> float:
    """
    Fraction of G/C bases, case-insensitive. Empty input gives 0.0.

    Example:
        >>> calculate_gc_content("ggat")
        0.5
    """
    if not sequence:
        return 0.0
    upper = sequence.upper()
    return (upper.count('G') + upper.count('C')) / len(upper)


def reverse_complement(sequence: str) -> str:
    """
    Reverse complement of a DNA sequence.

    Example:
        >>> reverse_complement("AACG")
        'CGTT'
    """
    return sequence.translate(_COMPLEMENT)[::-1]


def hamming_mismatches(observed: str, expected: str) -> int:
    """
    Count mismatching positions between two equal-length sequences.

    Args:
        observed: Read sequence
        expected: Source window of the same length

    Returns:
        Number of differing positions

    Example:
        >>> hamming_mismatches("ACGT", "ACCT")
        1
    """
    if len(observed) != len(expected):
        raise ValueError(
            f"Sequences differ in length: {len(observed)} vs {len(expected)}"
        )

    return sum(1 for a, b in zip(observed.upper(), expected.upper()) if a != b)


def find_source_strand(read: str, source: str) -> Optional[str]:
    """
    Locate a read in its source sequence on either strand.

    Returns:
        '+' if the read is a substring, '-' if its reverse complement is,
        None otherwise
    """
    if read in source:
        return '+'
    if reverse_complement(read) in source:
        return '-'
    return None


__all__ = [
    'calculate_gc_content',
    'reverse_complement',
    'hamming_mismatches',
    'find_source_strand',
]
