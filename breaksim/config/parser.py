#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Configuration parser: YAML loading, environment substitution and CLI
overrides layered on top of DEFAULT_CONFIG.

Precedence, lowest first: built-in defaults, the YAML file, command-line
options. Environment references in the file (``${VAR}`` or
``${VAR:-fallback}``) are expanded once the file has been merged.

Author: BreakSim Development Team
License: MIT
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from ..errors import ParameterError, ResourceError
from .schema import DEFAULT_CONFIG, _deep_merge, validate_config


_ENV_REFERENCE = re.compile(r'\$\{([^}:]+)(?::-(.*?))?\}')


class ConfigValidationError(ParameterError):
    """Configuration file or merged settings failed validation."""
    pass


def expand_env(value: Any) -> Any:
    """
    Expand ``${VAR}`` and ``${VAR:-fallback}`` inside strings, recursively.

    Unset variables without a fallback expand to the empty string.
    """
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ''), value)
    return value


def _lookup(config: Mapping[str, Any], dotted_key: str, default: Any = None) -> Any:
    node: Any = config
    for part in dotted_key.split('.'):
        if not isinstance(node, Mapping) or part not in node:
            return default
        node = node[part]
    return node


def _assign(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
    *parents, leaf = dotted_key.split('.')
    node = config
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value


class ConfigParser:
    """
    Layered BreakSim configuration.

    Example:
        >>> parser = ConfigParser("sim.yaml")
        >>> parser.merge_cli_overrides({'run.seed': 42, 'reads.coverage': None})
        >>> parser.get('reads.read_length')
        101

    Args:
        config_file: YAML file with any subset of the DEFAULT_CONFIG sections
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file) if config_file else None
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_file is not None:
            self._config = expand_env(_deep_merge(self._config, self._read_file()))

    def _read_file(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            raise ResourceError(
                f"Configuration file not found: {self.config_file}", self.config_file
            )
        try:
            with open(self.config_file) as handle:
                loaded = yaml.safe_load(handle)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in {self.config_file}: {e}")

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigValidationError(
                f"Config file {self.config_file} must contain a mapping of sections"
            )
        return loaded

    def merge_cli_overrides(self, overrides: Mapping[str, Any]) -> None:
        """
        Apply command-line values keyed by dotted path (``'reads.read_length'``).

        Options the user did not give arrive as None and leave the file or
        default value in place.
        """
        for key, value in overrides.items():
            if value is not None:
                _assign(self._config, key, value)

    def get(self, key: str, default: Any = None) -> Any:
        """Value at a dotted path, or ``default`` when any level is missing."""
        return _lookup(self._config, key, default)

    def get_reads_config(self) -> Dict[str, Any]:
        return self._config.get('reads', {})

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy of the merged configuration."""
        return copy.deepcopy(self._config)

    def validate(self) -> bool:
        """
        Check the merged configuration against the schema.

        Raises:
            ConfigValidationError: Listing every problem found
        """
        errors = validate_config(self._config)
        if errors:
            raise ConfigValidationError("Invalid configuration:\n  " + "\n  ".join(errors))
        return True

    def __repr__(self) -> str:
        return f"ConfigParser(config_file={self.config_file})"

# BreakSim v0.1.0
# Any usage is subject to this software's license.
