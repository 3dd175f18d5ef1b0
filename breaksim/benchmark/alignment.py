"""
Alignment service interface.

BreakSim never aligns reads itself. Callers of the assembly read sweep may
plug in any aligner that can index a handful of sequences and report hits for
a single query.

Author: BreakSim Development Team
License: MIT
"""

from typing import Any, Mapping, Protocol, Sequence


class AlignmentService(Protocol):
    """External aligner (e.g. a BWA or minimap2 wrapper)."""

    def index(self, sequences: Mapping[str, str]) -> None:
        """Build an index over {name: sequence}."""
        ...

    def align(self, sequence: str, read_id: str) -> Sequence[Any]:
        """Align one query; an empty result means no hit."""
        ...


__all__ = ['AlignmentService']
