#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Exception hierarchy for BreakSim.

Every failure is fatal for the current run. The three families map to the
moment the problem is detected:

- ParameterError: bad input caught before any simulation work starts
- DataSufficiencyError: inputs are well-formed but cannot satisfy the request
- ResourceError: a reference or read collection could not be opened

Author: BreakSim Development Team
License: MIT
"""

from pathlib import Path
from typing import Optional, Union


class BreakSimError(Exception):
    """Base class for all BreakSim errors."""
    pass


# ============================================================================
#                           PARAMETER ERRORS
# ============================================================================

class ParameterError(BreakSimError):
    """Raised for malformed numeric lists, missing inputs or invalid settings."""
    pass


class RegionParseError(ParameterError):
    """Raised when a region string or BED line cannot be resolved."""
    pass


# ============================================================================
#                        DATA SUFFICIENCY ERRORS
# ============================================================================

class DataSufficiencyError(BreakSimError):
    """Raised when the data cannot support the requested simulation."""
    pass


class InsufficientRegionLength(DataSufficiencyError):
    """Raised when breakpoints or indels cannot be placed without overlap."""
    pass


class AlleleTooShort(DataSufficiencyError):
    """Raised when the read length exceeds the shortest sampled allele."""
    pass


class EmptyFractionSpec(DataSufficiencyError):
    """Raised when weighted partitioning is requested with no weights."""
    pass


# ============================================================================
#                           RESOURCE ERRORS
# ============================================================================

class ResourceError(BreakSimError):
    """
    Raised when a reference genome or read collection is unavailable.

    Attributes:
        path: Path of the resource that failed to open
    """

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


__all__ = [
    'BreakSimError',
    'ParameterError',
    'RegionParseError',
    'DataSufficiencyError',
    'InsufficientRegionLength',
    'AlleleTooShort',
    'EmptyFractionSpec',
    'ResourceError',
]

# BreakSim v0.1.0
# Any usage is subject to this software's license.
