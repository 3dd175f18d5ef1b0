#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Package initialization and version metadata.

Author: BreakSim Development Team
License: MIT
"""

from .version import __version__

__all__ = ["__version__"]

# BreakSim v0.1.0
# Any usage is subject to this software's license.
