"""
BreakSim v0.1.0

Configuration management for BreakSim.

Author: BreakSim Development Team
License: MIT
"""

from .parser import ConfigParser, ConfigValidationError
from .settings import BenchmarkMode, BenchmarkSettings, build_settings

__all__ = [
    "ConfigParser",
    "ConfigValidationError",
    "BenchmarkMode",
    "BenchmarkSettings",
    "build_settings",
]
