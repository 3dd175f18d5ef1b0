"""
BreakSim v0.1.0

Configuration schema for BreakSim.

Defines all available configuration parameters with defaults and validation.

Author: BreakSim Development Team
License: MIT
"""

import copy
from typing import Dict, Any, Optional, List
from pathlib import Path
import yaml

from ..simulation.error_rates import parse_number_list
from ..errors import ParameterError


TEMPLATES = ('default', 'sim-breaks', 'split-bam', 'test-assembly')

# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # Run Settings
    # ========================================================================
    'run': {
        'seed': 0,  # 0 = seed from wall-clock time (logged)
        'string_id': 'noid',  # Prefix for output file names
        'output_dir': '.',
        'log_file': None,  # Optional log file in addition to stderr
    },

    # ========================================================================
    # Inputs
    # ========================================================================
    'reference': {
        'genome': None,  # Indexed FASTA (.fai alongside)
        'regions': None,  # BED file or samtools string (chr:start-end)
        'bam': None,  # Indexed BAM: quality training, region header, split input
    },

    # ========================================================================
    # Reads
    # ========================================================================
    'reads': {
        'read_length': 101,
        # Comma-separated strings or lists; empty falls back to the default
        'coverage': [10.0],
        'snv_rate': [0.01],  # Per base
        'del_rate': [0.05],  # Per read
        'ins_rate': [0.05],  # Per read
        'max_quality_reads': 100000,  # Cap on quality strings learned from the BAM
        'quality_windows': 8,  # 1 kb training windows at 1..N Mb on the first contig
    },

    # ========================================================================
    # Genome Simulation (sim-breaks)
    # ========================================================================
    'simulation': {
        'num_rearrangements': 10,
        'num_indels': 10,
        'min_event_size': 20,
        'max_event_size': 200,
        'min_breakpoint_gap': 10,  # Original-frame distance between junctions
        'max_indel_length': 10,
        'placement_retries': 100,  # Attempts per event before giving up
    },

    # ========================================================================
    # Paired-end Sampling (sim-breaks)
    # ========================================================================
    'sampling': {
        'insert_mean': 250.0,
        'insert_sd': 50.0,
    },

    # ========================================================================
    # Assembly Read Sweep (test-assembly)
    # ========================================================================
    'sweep': {
        'num_runs': 100,
        'insert_mean': 350.0,
        'insert_sd': 50.0,
        'write_reads': False,  # Write paired FASTA per combination
    },

    # ========================================================================
    # Dataset Partitioning (split-bam)
    # ========================================================================
    'partition': {
        'fractions': None,  # List, comma string, or BED file with a weight column
        'tag': 'FR',  # Aux tag holding the region label in weighted output
    },
}


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Path to YAML config file (None = use defaults)

    Returns:
        Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path) as f:
                user_config = yaml.safe_load(f)

            if user_config:
                config = _deep_merge(config, user_config)

    return config


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def save_config_template(output_path: Path, template: str = 'default'):
    """
    Save a configuration template to file.

    Args:
        output_path: Output file path
        template: Template type ('default', 'sim-breaks', 'split-bam', 'test-assembly')
    """
    if template not in TEMPLATES:
        raise ParameterError(f"Unknown template '{template}'. Choose from: {', '.join(TEMPLATES)}")

    config = copy.deepcopy(DEFAULT_CONFIG)

    # Customize for specific templates
    if template == 'sim-breaks':
        config['reference']['genome'] = 'reference.fa'
        config['reference']['regions'] = 'regions.bed'
        config['reads']['coverage'] = [30.0]
        config['simulation']['num_rearrangements'] = 5
        config['simulation']['num_indels'] = 20

    elif template == 'split-bam':
        config['reference']['bam'] = 'input.bam'
        config['partition']['fractions'] = [0.5, 0.5]

    elif template == 'test-assembly':
        config['reference']['genome'] = 'reference.fa'
        config['reference']['regions'] = 'regions.bed'
        config['reads']['coverage'] = [5.0, 10.0, 20.0]
        config['reads']['snv_rate'] = [0.0, 0.01]
        config['sweep']['num_runs'] = 10

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def _number_list(value: Any) -> List[float]:
    """Config list value (list, scalar, comma string or None) as floats."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [float(v) for v in value]
    if isinstance(value, (int, float)):
        return [float(value)]
    return list(parse_number_list(str(value)))


def _check_int(errors: List[str], config: Dict[str, Any], section: str, key: str, minimum: int):
    value = config.get(section, {}).get(key)
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors.append(f"{section}.{key} must be an integer, got {value!r}")
        return
    if number < minimum:
        errors.append(f"{section}.{key} must be >= {minimum}, got {number}")


def _check_float(errors: List[str], config: Dict[str, Any], section: str, key: str, minimum: float):
    value = config.get(section, {}).get(key)
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors.append(f"{section}.{key} must be a number, got {value!r}")
        return
    if number < minimum:
        errors.append(f"{section}.{key} must be >= {minimum}, got {number}")


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    for section in DEFAULT_CONFIG:
        if section not in config or not isinstance(config[section], dict):
            errors.append(f"Missing configuration section: {section}")
    if errors:
        return errors

    # Seed and integer knobs
    _check_int(errors, config, 'run', 'seed', 0)
    _check_int(errors, config, 'reads', 'read_length', 1)
    _check_int(errors, config, 'reads', 'max_quality_reads', 1)
    _check_int(errors, config, 'reads', 'quality_windows', 1)
    _check_int(errors, config, 'simulation', 'num_rearrangements', 0)
    _check_int(errors, config, 'simulation', 'num_indels', 0)
    _check_int(errors, config, 'simulation', 'min_event_size', 1)
    _check_int(errors, config, 'simulation', 'max_event_size', 1)
    _check_int(errors, config, 'simulation', 'min_breakpoint_gap', 0)
    _check_int(errors, config, 'simulation', 'max_indel_length', 1)
    _check_int(errors, config, 'simulation', 'placement_retries', 1)
    _check_int(errors, config, 'sweep', 'num_runs', 1)

    # Insert size models
    for section in ('sampling', 'sweep'):
        _check_float(errors, config, section, 'insert_mean', 1.0)
        _check_float(errors, config, section, 'insert_sd', 0.0)

    sim = config['simulation']
    try:
        if int(sim['min_event_size']) > int(sim['max_event_size']):
            errors.append("simulation.min_event_size must not exceed simulation.max_event_size")
    except (TypeError, ValueError, KeyError):
        pass  # already reported above

    # Rate and coverage lists
    for key in ('snv_rate', 'del_rate', 'ins_rate', 'coverage'):
        try:
            values = _number_list(config['reads'].get(key))
        except (TypeError, ValueError, ParameterError) as e:
            errors.append(f"reads.{key}: {e}")
            continue
        for value in values:
            if key == 'coverage' and value <= 0:
                errors.append(f"reads.coverage values must be positive, got {value}")
            elif key != 'coverage' and not 0.0 <= value <= 1.0:
                errors.append(f"reads.{key} values must be between 0 and 1, got {value}")

    # Fractions: BED file or list
    fractions = config['partition'].get('fractions')
    if fractions is not None and not (isinstance(fractions, str) and Path(fractions).is_file()):
        try:
            values = _number_list(fractions)
        except (TypeError, ValueError, ParameterError) as e:
            errors.append(f"partition.fractions: {e}")
            values = []
        for value in values:
            if not 0.0 < value <= 1.0:
                errors.append(f"partition.fractions values must be in (0, 1], got {value}")
        if sum(values) > 1.0 + 1e-9:
            errors.append(f"partition.fractions must sum to <= 1, got {sum(values):g}")

    tag = config['partition'].get('tag')
    if not isinstance(tag, str) or len(tag) != 2:
        errors.append(f"partition.tag must be a two-character string, got {tag!r}")

    return errors
