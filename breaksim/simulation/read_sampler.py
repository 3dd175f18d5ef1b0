"""
Read Sampler for Benchmark Data Generation

Draws Illumina-style reads from one or more allele sequences:
- Single-end reads to a target coverage
- Paired-end reads with a normally distributed insert size
- Per-base substitution errors and per-read insertion/deletion errors

Every read carries its source allele and offset so that tests and
downstream scoring can compare it against the truth.

Author: BreakSim Development Team
License: MIT
"""

from __future__ import annotations
import math
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..errors import AlleleTooShort, ParameterError
from ..utils.sequence_utils import reverse_complement
from .random_model import BASES, RandomModel

logger = logging.getLogger(__name__)


# ============================================================================
#                           DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class Allele:
    """
    Source sequence with a relative sampling weight.

    Attributes:
        sequence: Allele sequence
        weight: Relative weight (>= 0); weight-0 alleles are never sampled
    """
    sequence: str
    weight: float = 1.0

    def __post_init__(self):
        if self.weight < 0:
            raise ParameterError(f"Allele weight must be >= 0, got {self.weight}")

    def __len__(self) -> int:
        return len(self.sequence)


@dataclass(frozen=True)
class SampledRead:
    """Single-end read with its true origin."""
    sequence: str
    allele_id: int
    offset: int


@dataclass(frozen=True)
class ReadPair:
    """
    Paired-end read.

    Attributes:
        mate1: Forward read at the fragment start
        mate2: Reverse-complemented read at the fragment end
        allele_id: Index of the source allele
        offset: Fragment start within the allele
        insert_size: Fragment length, including both reads
    """
    mate1: str
    mate2: str
    allele_id: int
    offset: int
    insert_size: int


def mates(pairs: Sequence[ReadPair]) -> Tuple[List[str], List[str]]:
    """Split pairs into parallel mate1 / mate2 sequence lists."""
    return [p.mate1 for p in pairs], [p.mate2 for p in pairs]


# ============================================================================
#                           READ SAMPLER
# ============================================================================

class ReadSampler:
    """
    Coverage-driven read sampler.

    Error injection order per read is fixed (SNV pass, then insertion, then
    deletion) so that a given seed always yields the same reads.
    """

    def __init__(self, rng: RandomModel):
        self.rng = rng

    # ------------------------------------------------------------------
    #  Validation and read budgeting
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(
        alleles: Sequence[Allele],
        coverage: float,
        snv_rate: float,
        ins_rate: float,
        del_rate: float,
        read_length: int
    ) -> List[int]:
        if not alleles:
            raise ParameterError("At least one allele is required")
        active = [idx for idx, a in enumerate(alleles) if a.weight > 0]
        if not active:
            raise ParameterError("All allele weights are zero")
        if coverage <= 0:
            raise ParameterError(f"Coverage must be positive, got {coverage}")
        for name, rate in (('SNV', snv_rate), ('insertion', ins_rate), ('deletion', del_rate)):
            if not 0.0 <= rate <= 1.0:
                raise ParameterError(f"{name} rate must be between 0 and 1, got {rate}")
        if read_length < 1:
            raise ParameterError(f"Read length must be >= 1, got {read_length}")

        shortest = min(len(alleles[idx]) for idx in active)
        if read_length > shortest:
            raise AlleleTooShort(
                f"Read length {read_length} exceeds shortest allele length {shortest}"
            )
        return active

    @staticmethod
    def apportion(alleles: Sequence[Allele], total: int) -> List[int]:
        """
        Split a read budget across alleles proportional to weight.

        Uses largest-remainder rounding so the counts sum exactly to
        ``total``; ties go to the lower allele index.
        """
        weight_sum = sum(a.weight for a in alleles)
        quotas = [total * a.weight / weight_sum for a in alleles]
        counts = [int(math.floor(q)) for q in quotas]
        leftover = total - sum(counts)
        order = sorted(range(len(alleles)), key=lambda k: (-(quotas[k] - counts[k]), k))
        for k in order[:leftover]:
            counts[k] += 1
        return counts

    @staticmethod
    def target_read_count(alleles: Sequence[Allele], coverage: float, read_length: int) -> int:
        """``ceil(coverage * total_allele_length / read_length)`` over sampled alleles."""
        total_length = sum(len(a) for a in alleles if a.weight > 0)
        return int(math.ceil(coverage * total_length / read_length))

    # ------------------------------------------------------------------
    #  Extraction and error injection
    # ------------------------------------------------------------------

    @staticmethod
    def _window(sequence: str, start: int, length: int, reverse: bool) -> Tuple[str, str]:
        """Read window plus the next source base in read orientation ('' at the edge)."""
        if not reverse:
            return sequence[start:start + length], sequence[start + length:start + length + 1]
        pad = reverse_complement(sequence[start - 1:start]) if start > 0 else ''
        return reverse_complement(sequence[start:start + length]), pad

    def inject_errors(
        self,
        read: str,
        pad: str,
        snv_rate: float,
        ins_rate: float,
        del_rate: float
    ) -> str:
        """
        Apply sequencing errors to one read, preserving its length.

        Args:
            read: Error-free read
            pad: Source bases following the read, in read orientation
            snv_rate: Per-base substitution probability
            ins_rate: Per-read probability of a single-base insertion
            del_rate: Per-read probability of a single-base deletion

        Returns:
            Read with errors, same length as the input
        """
        length = len(read)

        # Ambiguous bases (N) are never substituted.
        if snv_rate > 0:
            read = ''.join(
                self.rng.alternate_base(b) if self.rng.chance(snv_rate) and b.upper() in BASES else b
                for b in read
            )

        if self.rng.chance(ins_rate):
            pos = self.rng.randrange(length)
            read = read[:pos] + self.rng.choice(BASES) + read[pos:]
            pad = read[length:] + pad
            read = read[:length]

        if self.rng.chance(del_rate):
            pos = self.rng.randrange(length)
            fill = pad[0] if pad else self.rng.choice(BASES)
            read = read[:pos] + read[pos + 1:] + fill

        return read

    # ------------------------------------------------------------------
    #  Sampling
    # ------------------------------------------------------------------

    def sample_single(
        self,
        alleles: Sequence[Allele],
        coverage: float,
        snv_rate: float,
        ins_rate: float,
        del_rate: float,
        read_length: int
    ) -> List[SampledRead]:
        """
        Sample single-end reads to a target coverage.

        Returns:
            Reads, each exactly ``read_length`` bases

        Raises:
            AlleleTooShort: If read_length exceeds the shortest sampled allele
        """
        self._validate(alleles, coverage, snv_rate, ins_rate, del_rate, read_length)
        total = self.target_read_count(alleles, coverage, read_length)
        counts = self.apportion(alleles, total)

        logger.debug(f"Sampling {total} single-end reads ({coverage}x, {read_length} bp)")

        reads = []
        for allele_id, (allele, count) in enumerate(zip(alleles, counts)):
            seq = allele.sequence
            for _ in range(count):
                start = self.rng.randint(0, len(seq) - read_length)
                read, pad = self._window(seq, start, read_length, False)
                read = self.inject_errors(read, pad, snv_rate, ins_rate, del_rate)
                reads.append(SampledRead(read, allele_id, start))

        return reads

    def sample_paired(
        self,
        alleles: Sequence[Allele],
        coverage: float,
        snv_rate: float,
        ins_rate: float,
        del_rate: float,
        read_length: int,
        insert_mean: float,
        insert_sd: float
    ) -> List[ReadPair]:
        """
        Sample paired-end reads to a target coverage.

        The pair count is half the single-end read count (rounded up). Insert
        sizes are Normal(insert_mean, insert_sd), clipped to
        [read_length, allele length].

        Returns:
            Read pairs; use ``mates()`` for parallel mate1/mate2 lists
        """
        self._validate(alleles, coverage, snv_rate, ins_rate, del_rate, read_length)
        if insert_sd < 0:
            raise ParameterError(f"Insert size sd must be >= 0, got {insert_sd}")

        total_length = sum(len(a) for a in alleles if a.weight > 0)
        total = int(math.ceil(coverage * total_length / (2 * read_length)))
        counts = self.apportion(alleles, total)

        logger.debug(f"Sampling {total} read pairs ({coverage}x, {read_length} bp, "
                     f"insert {insert_mean}({insert_sd}))")

        pairs = []
        for allele_id, (allele, count) in enumerate(zip(alleles, counts)):
            seq = allele.sequence
            for _ in range(count):
                insert = int(round(self.rng.gauss(insert_mean, insert_sd)))
                insert = max(read_length, min(insert, len(seq)))
                start = self.rng.randint(0, len(seq) - insert)

                read1, pad1 = self._window(seq, start, read_length, False)
                read2, pad2 = self._window(seq, start + insert - read_length, read_length, True)
                read1 = self.inject_errors(read1, pad1, snv_rate, ins_rate, del_rate)
                read2 = self.inject_errors(read2, pad2, snv_rate, ins_rate, del_rate)

                pairs.append(ReadPair(read1, read2, allele_id, start, insert))

        return pairs


__all__ = ['Allele', 'SampledRead', 'ReadPair', 'ReadSampler', 'mates']
