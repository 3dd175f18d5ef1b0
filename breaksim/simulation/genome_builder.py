"""
Synthetic Genome Builder for Rearrangement Benchmarks

Takes a reference region and injects a known set of events:
- Rearrangement breakpoints (deletion, duplication, inversion, translocation)
- Small insertions and deletions

The result carries two ledgers whose replay against the original region
reproduces the mutated sequence exactly. Breakpoint coordinates are reported
in the original reference frame so that assembler output can be scored
against them.

Author: BreakSim Development Team
License: MIT
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from ..errors import InsufficientRegionLength, ParameterError
from ..io.reference import ReferenceAccessor
from ..io.regions import Region
from ..utils.sequence_utils import calculate_gc_content, reverse_complement
from .random_model import RandomModel

logger = logging.getLogger(__name__)


DEFAULT_MIN_EVENT_SIZE = 20
DEFAULT_MAX_EVENT_SIZE = 200
DEFAULT_MIN_BREAKPOINT_GAP = 10
DEFAULT_MAX_INDEL_LENGTH = 10
DEFAULT_PLACEMENT_RETRIES = 100


# ============================================================================
#                           LEDGER RECORDS
# ============================================================================

class SVType(Enum):
    """Types of simulated rearrangements."""
    DELETION = "deletion"
    DUPLICATION = "duplication"
    INVERSION = "inversion"
    TRANSLOCATION = "translocation"


class IndelKind(Enum):
    """Small indel kinds."""
    INSERTION = "insertion"
    DELETION = "deletion"


@dataclass(frozen=True)
class Breakpoint:
    """
    Ground-truth rearrangement junction.

    Attributes:
        sv_type: Rearrangement type
        region_a: 1-bp region on one side of the junction (original frame)
        region_b: 1-bp region on the other side of the junction (original frame)
        start: Span start in the working sequence when the event was applied
        end: Span end (exclusive) in the working sequence
        target: Re-insertion point after excision (translocation) or the
            duplicate insertion point (duplication); None otherwise
    """
    sv_type: SVType
    region_a: Region
    region_b: Region
    start: int
    end: int
    target: Optional[int] = None

    @property
    def size(self) -> int:
        return self.end - self.start

    @property
    def length_delta(self) -> int:
        """Change in sequence length caused by this event."""
        if self.sv_type == SVType.DELETION:
            return -self.size
        if self.sv_type == SVType.DUPLICATION:
            return self.size
        return 0


@dataclass(frozen=True)
class IndelRecord:
    """
    Small indel, positioned in the final mutated sequence.

    Attributes:
        position: 0-based position in the mutated sequence. For insertions the
            inserted bases start here; for deletions the removed bases sat
            immediately before this position's base.
        kind: Insertion or deletion
        length: Number of bases inserted or removed
        bases: The inserted or removed bases
    """
    position: int
    kind: IndelKind
    length: int
    bases: str

    @property
    def length_delta(self) -> int:
        return self.length if self.kind == IndelKind.INSERTION else -self.length


@dataclass(frozen=True)
class SimulatedGenome:
    """
    Atomic result of one build call.

    Attributes:
        region: Reference region the genome was derived from
        reference: Original region sequence
        sequence: Mutated sequence
        breakpoints: Rearrangement ledger, in application order
        indels: Indel ledger, ordered by position
    """
    region: Region
    reference: str
    sequence: str
    breakpoints: Tuple[Breakpoint, ...] = field(default_factory=tuple)
    indels: Tuple[IndelRecord, ...] = field(default_factory=tuple)

    @property
    def length_delta(self) -> int:
        """Net length change relative to the reference region."""
        return (sum(b.length_delta for b in self.breakpoints)
                + sum(i.length_delta for i in self.indels))

    def get_breakpoints_by_type(self, sv_type: SVType) -> List[Breakpoint]:
        """Get all breakpoints of a specific type."""
        return [b for b in self.breakpoints if b.sv_type == sv_type]

    def replay(self) -> str:
        """Rebuild the mutated sequence from the reference and both ledgers."""
        return replay_ledgers(self.reference, self.breakpoints, self.indels)


# ============================================================================
#                     WORKING SEQUENCE (SEGMENT LIST)
# ============================================================================

@dataclass(frozen=True)
class _Segment:
    """Piece of the original region, possibly reverse-complemented."""
    start: int
    end: int
    reverse: bool = False

    def __len__(self) -> int:
        return self.end - self.start

    def sub(self, lo: int, hi: int) -> '_Segment':
        """Sub-segment covering working offsets [lo, hi) of this segment."""
        if self.reverse:
            return _Segment(self.end - hi, self.end - lo, True)
        return _Segment(self.start + lo, self.start + hi, False)

    def flipped(self) -> '_Segment':
        return _Segment(self.start, self.end, not self.reverse)

    def original_offset(self, k: int) -> int:
        return self.end - 1 - k if self.reverse else self.start + k


def _split(segments: Sequence[_Segment], position: int) -> Tuple[List[_Segment], List[_Segment]]:
    """Split a segment list at a working position."""
    left: List[_Segment] = []
    right: List[_Segment] = []
    offset = 0
    for seg in segments:
        seg_len = len(seg)
        if offset + seg_len <= position:
            left.append(seg)
        elif offset >= position:
            right.append(seg)
        else:
            cut = position - offset
            left.append(seg.sub(0, cut))
            right.append(seg.sub(cut, seg_len))
        offset += seg_len
    return left, right


def _total_length(segments: Iterable[_Segment]) -> int:
    return sum(len(s) for s in segments)


def _original_offset(segments: Sequence[_Segment], position: int) -> int:
    """Map a working position to its offset in the original region."""
    offset = 0
    for seg in segments:
        if position < offset + len(seg):
            return seg.original_offset(position - offset)
        offset += len(seg)
    raise IndexError(f"Position {position} beyond working sequence of length {offset}")


def _footprint(segments: Sequence[_Segment], start: int, end: int) -> List[Tuple[int, int]]:
    """Original-frame intervals covered by working span [start, end)."""
    _, rest = _split(segments, start)
    mid, _ = _split(rest, end - start)
    return [(s.start, s.end) for s in mid]


def _materialize(segments: Sequence[_Segment], reference: str) -> str:
    parts = []
    for seg in segments:
        piece = reference[seg.start:seg.end]
        parts.append(reverse_complement(piece) if seg.reverse else piece)
    return ''.join(parts)


# ============================================================================
#                           LEDGER REPLAY
# ============================================================================

def apply_breakpoint(sequence: str, bp: Breakpoint) -> str:
    """Apply one recorded rearrangement to a working sequence."""
    i, j = bp.start, bp.end
    if bp.sv_type == SVType.DELETION:
        return sequence[:i] + sequence[j:]
    if bp.sv_type == SVType.DUPLICATION:
        return sequence[:j] + sequence[i:j] + sequence[j:]
    if bp.sv_type == SVType.INVERSION:
        return sequence[:i] + reverse_complement(sequence[i:j]) + sequence[j:]
    # translocation: excise, then re-link at target in the remaining sequence
    span = sequence[i:j]
    remaining = sequence[:i] + sequence[j:]
    return remaining[:bp.target] + span + remaining[bp.target:]


def apply_indels(sequence: str, indels: Sequence[IndelRecord]) -> str:
    """
    Apply an indel ledger (final-frame positions) to a rearranged sequence.

    Raises:
        ValueError: If a deletion's recorded bases do not match the sequence
    """
    parts = []
    cursor = 0
    delta = 0
    for indel in sorted(indels, key=lambda r: r.position):
        pre = indel.position - delta
        parts.append(sequence[cursor:pre])
        if indel.kind == IndelKind.INSERTION:
            parts.append(indel.bases)
            cursor = pre
            delta += indel.length
        else:
            removed = sequence[pre:pre + indel.length]
            if removed != indel.bases:
                raise ValueError(
                    f"Deletion at {indel.position} expected {indel.bases}, found {removed}"
                )
            cursor = pre + indel.length
            delta -= indel.length
    parts.append(sequence[cursor:])
    return ''.join(parts)


def replay_ledgers(
    reference: str,
    breakpoints: Sequence[Breakpoint],
    indels: Sequence[IndelRecord]
) -> str:
    """
    Reconstruct a mutated sequence from the original region and its ledgers.

    Breakpoints are applied in recorded order, then indels by position.
    """
    sequence = reference
    for bp in breakpoints:
        sequence = apply_breakpoint(sequence, bp)
    return apply_indels(sequence, indels)


# ============================================================================
#                           GENOME BUILDER
# ============================================================================

class SyntheticGenomeBuilder:
    """
    Inject rearrangements and indels into a reference region.

    Args:
        rng: Shared random model
        min_event_size: Smallest rearranged span (bp)
        max_event_size: Largest rearranged span (bp)
        min_breakpoint_gap: Minimum distance between any two junctions,
            measured in original-reference coordinates
        max_indel_length: Indel lengths are uniform in [1, max_indel_length]
        placement_retries: Attempts per event before giving up
    """

    def __init__(
        self,
        rng: RandomModel,
        min_event_size: int = DEFAULT_MIN_EVENT_SIZE,
        max_event_size: int = DEFAULT_MAX_EVENT_SIZE,
        min_breakpoint_gap: int = DEFAULT_MIN_BREAKPOINT_GAP,
        max_indel_length: int = DEFAULT_MAX_INDEL_LENGTH,
        placement_retries: int = DEFAULT_PLACEMENT_RETRIES,
    ):
        if min_event_size < 1 or max_event_size < min_event_size:
            raise ParameterError(
                f"Event size range must satisfy 1 <= min <= max, got [{min_event_size}, {max_event_size}]"
            )
        if max_indel_length < 1:
            raise ParameterError(f"max_indel_length must be >= 1, got {max_indel_length}")
        if placement_retries < 1:
            raise ParameterError(f"placement_retries must be >= 1, got {placement_retries}")
        if min_breakpoint_gap < 0:
            raise ParameterError(f"min_breakpoint_gap must be >= 0, got {min_breakpoint_gap}")

        self.rng = rng
        self.min_event_size = min_event_size
        self.max_event_size = max_event_size
        self.min_breakpoint_gap = min_breakpoint_gap
        self.max_indel_length = max_indel_length
        self.placement_retries = placement_retries

    def build(
        self,
        region: Region,
        break_count: int,
        indel_count: int,
        reference: ReferenceAccessor
    ) -> SimulatedGenome:
        """
        Build a mutated genome from a reference region.

        Args:
            region: Reference region to mutate
            break_count: Number of rearrangement breakpoints
            indel_count: Number of small indels
            reference: Accessor used to fetch the region sequence

        Returns:
            SimulatedGenome with the mutated sequence and both ledgers

        Raises:
            ParameterError: Negative counts or an empty region sequence
            InsufficientRegionLength: Events could not be placed without overlap
        """
        if break_count < 0 or indel_count < 0:
            raise ParameterError(
                f"Breakpoint and indel counts must be >= 0, got {break_count} and {indel_count}"
            )

        original = reference.fetch(region)
        if not original:
            raise ParameterError(f"Region {region} resolved to an empty sequence")

        logger.info(f"Generating {break_count} breaks and {indel_count} indels on {region} "
                    f"({len(original):,} bp)")

        segments = [_Segment(0, len(original))]
        junctions: List[int] = []
        breakpoints: List[Breakpoint] = []

        for n in range(break_count):
            segments, bp = self._place_breakpoint(segments, junctions, region, n)
            breakpoints.append(bp)
            logger.debug(f"  {bp.sv_type.value} {bp.region_a} -> {bp.region_b} ({bp.size} bp)")

        rearranged = _materialize(segments, original)
        mutated, indels = self._apply_indels(rearranged, indel_count)

        genome = SimulatedGenome(
            region=region,
            reference=original,
            sequence=mutated,
            breakpoints=tuple(breakpoints),
            indels=tuple(indels),
        )

        logger.info(f"Simulated genome: {len(mutated):,} bp, GC {calculate_gc_content(mutated):.1%} "
                    f"({len(breakpoints)} breakpoints, {len(indels)} indels)")
        for sv_type in SVType:
            count = len(genome.get_breakpoints_by_type(sv_type))
            if count:
                logger.info(f"  {sv_type.value.capitalize()}s: {count}")

        return genome

    # ------------------------------------------------------------------
    #  Rearrangements
    # ------------------------------------------------------------------

    def _conflicts(self, intervals: Iterable[Tuple[int, int]], junctions: Sequence[int]) -> bool:
        gap = self.min_breakpoint_gap
        for lo, hi in intervals:
            for j in junctions:
                if lo - gap <= j < hi + gap:
                    return True
        return False

    def _place_breakpoint(
        self,
        segments: List[_Segment],
        junctions: List[int],
        region: Region,
        index: int
    ) -> Tuple[List[_Segment], Breakpoint]:
        length = _total_length(segments)

        for _ in range(self.placement_retries):
            sv_type = self.rng.choice(list(SVType))

            # keep one flanking base on each side of the span
            max_size = min(self.max_event_size, length - 2)
            if sv_type == SVType.TRANSLOCATION:
                max_size = min(max_size, length - 3)
            if max_size < self.min_event_size:
                continue

            size = self.rng.randint(self.min_event_size, max_size)
            i = self.rng.randint(1, length - 1 - size)
            j = i + size

            target = None
            footprint = _footprint(segments, i - 1, j + 1)
            left, rest = _split(segments, i)
            mid, right = _split(rest, size)

            if sv_type == SVType.TRANSLOCATION:
                remaining = left + right
                target = self.rng.randint(1, length - size - 1)
                if target == i:
                    continue
                footprint += _footprint(remaining, target - 1, target + 1)
            elif sv_type == SVType.DUPLICATION:
                target = j

            if self._conflicts(footprint, junctions):
                continue

            if sv_type == SVType.DELETION:
                a, b = _original_offset(segments, i - 1), _original_offset(segments, j)
                new_segments = left + right
            elif sv_type == SVType.DUPLICATION:
                a, b = _original_offset(segments, j - 1), _original_offset(segments, i)
                new_segments = left + mid + mid + right
            elif sv_type == SVType.INVERSION:
                a, b = _original_offset(segments, i - 1), _original_offset(segments, j - 1)
                new_segments = left + [s.flipped() for s in reversed(mid)] + right
            else:
                before, after = _split(remaining, target)
                a, b = _original_offset(remaining, target - 1), _original_offset(segments, i)
                new_segments = before + mid + after

            junctions.extend((a, b))
            bp = Breakpoint(
                sv_type=sv_type,
                region_a=Region(region.chrom, region.start + a, region.start + a + 1),
                region_b=Region(region.chrom, region.start + b, region.start + b + 1),
                start=i,
                end=j,
                target=target,
            )
            return new_segments, bp

        raise InsufficientRegionLength(
            f"Could not place breakpoint {index + 1} in {region} ({length} bp working sequence) "
            f"after {self.placement_retries} attempts"
        )

    # ------------------------------------------------------------------
    #  Indels
    # ------------------------------------------------------------------

    def _apply_indels(self, sequence: str, count: int) -> Tuple[str, List[IndelRecord]]:
        """Place indels on the rearranged sequence and log final positions."""
        length = len(sequence)
        # (pre-indel position, kind, length, bases)
        chosen: List[Tuple[int, IndelKind, int, str]] = []
        spans: List[Tuple[int, int]] = []

        for n in range(count):
            for _ in range(self.placement_retries):
                kind = self.rng.choice(list(IndelKind))
                size = self.rng.randint(1, self.max_indel_length)
                if kind == IndelKind.DELETION:
                    if size >= length:
                        continue
                    pos = self.rng.randint(0, length - size)
                    span = (pos, pos + size)
                else:
                    pos = self.rng.randint(0, length)
                    span = (pos, pos)

                # closed intervals must be disjoint
                if any(not (span[1] < lo or hi < span[0]) for lo, hi in spans):
                    continue

                if kind == IndelKind.INSERTION:
                    bases = self.rng.random_bases(size)
                else:
                    bases = sequence[pos:pos + size]
                chosen.append((pos, kind, size, bases))
                spans.append(span)
                break
            else:
                raise InsufficientRegionLength(
                    f"Could not place indel {n + 1} of {count} in a {length} bp sequence "
                    f"after {self.placement_retries} attempts"
                )

        parts = []
        records = []
        cursor = 0
        delta = 0
        for pos, kind, size, bases in sorted(chosen, key=lambda c: c[0]):
            parts.append(sequence[cursor:pos])
            records.append(IndelRecord(position=pos + delta, kind=kind, length=size, bases=bases))
            if kind == IndelKind.INSERTION:
                parts.append(bases)
                cursor = pos
                delta += size
            else:
                cursor = pos + size
                delta -= size
        parts.append(sequence[cursor:])

        return ''.join(parts), records


__all__ = [
    'SVType',
    'IndelKind',
    'Breakpoint',
    'IndelRecord',
    'SimulatedGenome',
    'SyntheticGenomeBuilder',
    'apply_breakpoint',
    'apply_indels',
    'replay_ledgers',
]
