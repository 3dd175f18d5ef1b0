"""
Breakpoint and indel ledger files.

Both ledgers are headerless TSV files with one line per event, so the line
count equals the number of simulated events.

connections.tsv columns (positions 1-based):
    chrom1  pos1  chrom2  pos2  type  span_start  span_end  target

indels.tsv columns (position 0-based, in the mutated sequence):
    position  kind  length  bases

Author: BreakSim Development Team
License: MIT
"""

import csv
from pathlib import Path
from typing import Iterable, List, Union

from ..errors import ParameterError
from ..simulation.genome_builder import Breakpoint, IndelKind, IndelRecord, SVType
from .regions import Region


def write_breakpoint_ledger(breakpoints: Iterable[Breakpoint], path: Union[str, Path]) -> int:
    """Write one tab-separated line per breakpoint. Returns the line count."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, 'w', newline='') as handle:
        writer = csv.writer(handle, delimiter='\t', lineterminator='\n')
        for bp in breakpoints:
            writer.writerow([
                bp.region_a.chrom, bp.region_a.start + 1,
                bp.region_b.chrom, bp.region_b.start + 1,
                bp.sv_type.value,
                bp.start, bp.end,
                '.' if bp.target is None else bp.target,
            ])
            count += 1
    return count


def read_breakpoint_ledger(path: Union[str, Path]) -> List[Breakpoint]:
    """Read a connections.tsv file back into Breakpoint records."""
    breakpoints = []
    with open(path, 'r', newline='') as handle:
        for line_number, row in enumerate(csv.reader(handle, delimiter='\t'), start=1):
            if not row:
                continue
            if len(row) != 8:
                raise ParameterError(f"{path}:{line_number}: expected 8 columns, found {len(row)}")
            chrom1, pos1, chrom2, pos2, sv_type, start, end, target = row
            breakpoints.append(Breakpoint(
                sv_type=SVType(sv_type),
                region_a=Region(chrom1, int(pos1) - 1, int(pos1)),
                region_b=Region(chrom2, int(pos2) - 1, int(pos2)),
                start=int(start),
                end=int(end),
                target=None if target == '.' else int(target),
            ))
    return breakpoints


def write_indel_ledger(indels: Iterable[IndelRecord], path: Union[str, Path]) -> int:
    """Write one tab-separated line per indel. Returns the line count."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, 'w', newline='') as handle:
        writer = csv.writer(handle, delimiter='\t', lineterminator='\n')
        for indel in indels:
            writer.writerow([indel.position, indel.kind.value, indel.length, indel.bases])
            count += 1
    return count


def read_indel_ledger(path: Union[str, Path]) -> List[IndelRecord]:
    """Read an indels.tsv file back into IndelRecord objects."""
    indels = []
    with open(path, 'r', newline='') as handle:
        for line_number, row in enumerate(csv.reader(handle, delimiter='\t'), start=1):
            if not row:
                continue
            if len(row) != 4:
                raise ParameterError(f"{path}:{line_number}: expected 4 columns, found {len(row)}")
            position, kind, length, bases = row
            indels.append(IndelRecord(
                position=int(position),
                kind=IndelKind(kind),
                length=int(length),
                bases=bases,
            ))
    return indels


__all__ = [
    'write_breakpoint_ledger',
    'read_breakpoint_ledger',
    'write_indel_ledger',
    'read_indel_ledger',
]
