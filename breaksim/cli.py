#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for BreakSim.

This module provides the main CLI entry point and all subcommands for
the BreakSim benchmarking harness.
"""

import sys
import logging
import click
from pathlib import Path
from typing import Any, Dict, Optional
import yaml

from .version import __version__
from .errors import BreakSimError
from .config.parser import ConfigParser
from .config.schema import TEMPLATES, load_config, save_config_template, validate_config
from .config.settings import BenchmarkMode, build_settings
from .benchmark.driver import BenchmarkDriver, BenchmarkResult

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(verbose: bool = False, quiet: bool = False, log_file: Optional[Path] = None):
    """Configure the root logger for a CLI run."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, verbose, quiet):
    """
    BreakSim: Benchmarking Harness for Rearrangement Assembly

    Simulates genomes with known rearrangements and indels, samples
    error-bearing reads from them, and splits real BAMs into reproducible
    pair-preserving sub-samples.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet


def _run_mode(ctx, mode: BenchmarkMode, config_file: Optional[str],
              overrides: Dict[str, Any]) -> BenchmarkResult:
    """Build settings from config + CLI overrides and run the driver."""
    obj = ctx.obj or {}
    verbose = obj.get('VERBOSE', False)
    quiet = obj.get('QUIET', False)
    setup_logging(verbose, quiet)

    try:
        parser = ConfigParser(config_file)
        parser.merge_cli_overrides(overrides)
        settings = build_settings(parser.to_dict(), mode)
        if settings.run.log_file:
            setup_logging(verbose, quiet, settings.run.log_file)
        return BenchmarkDriver(settings).run()
    except BreakSimError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


# ============================================================================
# Configuration Management Commands
# ============================================================================

@main.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--output', '-o', type=click.Path(), default='breaksim_config.yaml',
              help='Output configuration file path')
@click.option('--template', '-t', type=click.Choice(list(TEMPLATES)), default='default',
              help='Configuration template type')
def config_init(output, template):
    """Generate a template configuration file with all available parameters."""
    click.echo(f"Generating {template} configuration template: {output}")

    try:
        save_config_template(Path(output), template=template)
    except (BreakSimError, OSError) as e:
        click.echo(f"Error creating configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"Configuration file created: {output}")
    click.echo("\nThe configuration file includes:")
    click.echo("  - Run settings (seed, output naming, log file)")
    click.echo("  - Reference, region and BAM inputs")
    click.echo("  - Read length, coverage and error-rate lists")
    click.echo("  - Rearrangement/indel simulation and partitioning knobs")


@config.command('validate')
@click.argument('config_file', type=click.Path(exists=True))
def config_validate(config_file):
    """Validate a configuration file."""
    click.echo(f"Validating configuration file: {config_file}")

    try:
        config = load_config(Path(config_file))
    except yaml.YAMLError as e:
        click.echo(f"Error reading configuration: {e}", err=True)
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        click.echo("\nConfiguration validation failed:")
        for error in errors:
            click.echo(f"  - {error}", err=True)
        sys.exit(1)

    click.echo("Configuration is valid")

    # Show key settings
    click.echo("\nKey Settings:")
    click.echo(f"  Seed: {config['run']['seed'] or 'wall-clock'}")
    click.echo(f"  Read length: {config['reads']['read_length']}")
    click.echo(f"  Rearrangements: {config['simulation']['num_rearrangements']}")
    click.echo(f"  Indels: {config['simulation']['num_indels']}")


@config.command('show')
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--format', '-f', type=click.Choice(['yaml', 'summary']), default='summary',
              help='Output format')
def config_show(config_file, format):
    """Display configuration settings."""
    try:
        config = load_config(Path(config_file))
    except yaml.YAMLError as e:
        click.echo(f"Error reading configuration: {e}", err=True)
        sys.exit(1)

    if format == 'yaml':
        click.echo(yaml.dump(config, default_flow_style=False, sort_keys=False))
        return

    click.echo(f"Configuration from: {config_file}")
    click.echo("=" * 60)

    click.echo("\nRun:")
    click.echo(f"  Seed: {config['run']['seed']}")
    click.echo(f"  String ID: {config['run']['string_id']}")
    click.echo(f"  Output directory: {config['run']['output_dir']}")

    click.echo("\nInputs:")
    for key in ('genome', 'regions', 'bam'):
        click.echo(f"  {key}: {config['reference'][key]}")

    click.echo("\nReads:")
    reads = config['reads']
    click.echo(f"  Read length: {reads['read_length']}")
    click.echo(f"  Coverage: {reads['coverage']}")
    click.echo(f"  SNV / Del / Ins: {reads['snv_rate']} / {reads['del_rate']} / {reads['ins_rate']}")

    click.echo("\nSimulation:")
    sim = config['simulation']
    click.echo(f"  Rearrangements: {sim['num_rearrangements']}")
    click.echo(f"  Indels: {sim['num_indels']}")
    click.echo(f"  Event size: {sim['min_event_size']}-{sim['max_event_size']} bp")

    click.echo("\nPartition:")
    click.echo(f"  Fractions: {config['partition']['fractions']}")


# ============================================================================
# Benchmark Commands
# ============================================================================

@main.command('sim-breaks')
@click.option('--reference-genome', '-G', type=click.Path(exists=True),
              help='Indexed reference genome (FASTA)')
@click.option('--regions', '-k', help='BED file or samtools-style region (needs -b)')
@click.option('--bam', '-b', type=click.Path(exists=True),
              help='Indexed BAM to learn quality scores from')
@click.option('--seed', '-s', type=int, help='Random seed (0 = wall-clock time)')
@click.option('--string-id', '-A', help='Name used in output file names')
@click.option('--read-coverage', '-c', help='Read coverage (first value is used)')
@click.option('--snv-error-rate', '-E', help='Per-base SNV error rate')
@click.option('--ins-error-rate', '-I', help='Per-read insertion error rate')
@click.option('--del-error-rate', '-D', help='Per-read deletion error rate')
@click.option('--num-rearrangements', '-R', type=int, help='Number of rearrangements to simulate')
@click.option('--num-indels', '-X', type=int, help='Number of indels to simulate')
@click.option('--isize-mean', type=float, help='Mean insert size of the simulated pairs')
@click.option('--isize-sd', type=float, help='Insert size standard deviation')
@click.option('--read-length', type=int, help='Read length')
@click.option('--output-dir', '-o', type=click.Path(), help='Output directory')
@click.option('--config', 'config_file', type=click.Path(exists=True),
              help='Configuration file (YAML)')
@click.pass_context
def sim_breaks(ctx, reference_genome, regions, bam, seed, string_id, read_coverage,
               snv_error_rate, ins_error_rate, del_error_rate, num_rearrangements,
               num_indels, isize_mean, isize_sd, read_length, output_dir, config_file):
    """
    Simulate rearrangements and indels and output paired-end reads.

    Examples:

        breaksim sim-breaks -G hg19.fa -k chr1:1,000,000-1,050,000 -b sample.bam -R 5 -X 20

        breaksim sim-breaks --config sim.yaml -s 42
    """
    result = _run_mode(ctx, BenchmarkMode.GENOME_SIMULATION, config_file, {
        'reference.genome': reference_genome,
        'reference.regions': regions,
        'reference.bam': bam,
        'run.seed': seed,
        'run.string_id': string_id,
        'run.output_dir': output_dir,
        'reads.coverage': read_coverage,
        'reads.snv_rate': snv_error_rate,
        'reads.ins_rate': ins_error_rate,
        'reads.del_rate': del_error_rate,
        'reads.read_length': read_length,
        'simulation.num_rearrangements': num_rearrangements,
        'simulation.num_indels': num_indels,
        'sampling.insert_mean': isize_mean,
        'sampling.insert_sd': isize_sd,
    })

    genome = result.genome
    click.echo(f"Simulated {len(genome.sequence):,} bp genome with "
               f"{len(genome.breakpoints)} breakpoints and {len(genome.indels)} indels (seed {result.seed})")
    for name, path in result.outputs.items():
        click.echo(f"  {name}: {path}")


@main.command('split-bam')
@click.option('--bam', '-b', required=True, type=click.Path(exists=True),
              help='Input BAM (indexed if --regions is used)')
@click.option('--fractions', '-f',
              help='Comma-separated fractions (e.g. 0.1,0.8) or BED file with a weight column')
@click.option('--regions', '-k', help='Restrict to pairs overlapping these regions')
@click.option('--seed', '-s', type=int, help='Random seed (0 = wall-clock time)')
@click.option('--string-id', '-A', help='Name used in output file names')
@click.option('--output-dir', '-o', type=click.Path(), help='Output directory')
@click.option('--config', 'config_file', type=click.Path(exists=True),
              help='Configuration file (YAML)')
@click.pass_context
def split_bam(ctx, bam, fractions, regions, seed, string_id, output_dir, config_file):
    """
    Divide a BAM into sub-sampled files with no read overlaps, preserving pairs.

    Examples:

        breaksim split-bam -b sample.bam -f 0.1,0.4 -s 7

        breaksim split-bam -b sample.bam -f weights.bed -A tumor
    """
    result = _run_mode(ctx, BenchmarkMode.DATASET_PARTITIONING, config_file, {
        'reference.bam': bam,
        'reference.regions': regions,
        'partition.fractions': fractions,
        'run.seed': seed,
        'run.string_id': string_id,
        'run.output_dir': output_dir,
    })

    click.echo(f"Partitioned {len(result.assignment):,} read pairs (seed {result.seed})")
    for name, path in result.outputs.items():
        click.echo(f"  {name}: {path}")


@main.command('test-assembly')
@click.option('--reference-genome', '-G', type=click.Path(exists=True),
              help='Indexed reference genome (FASTA)')
@click.option('--regions', '-k', help='BED file or samtools-style region (needs -b)')
@click.option('--bam', '-b', type=click.Path(exists=True),
              help='BAM providing the header for samtools-style regions')
@click.option('--num-runs', '-n', type=int, help='Number of random trials to run')
@click.option('--seed', '-s', type=int, help='Random seed (0 = wall-clock time)')
@click.option('--string-id', '-A', help='Name used in output file names')
@click.option('--read-coverage', '-c', help='Comma-separated coverages to test')
@click.option('--snv-error-rate', '-E', help='Comma-separated SNV error rates')
@click.option('--ins-error-rate', '-I', help='Comma-separated insertion error rates')
@click.option('--del-error-rate', '-D', help='Comma-separated deletion error rates')
@click.option('--read-length', type=int, help='Read length')
@click.option('--write-reads', is_flag=True, help='Write paired FASTA for every combination')
@click.option('--output-dir', '-o', type=click.Path(), help='Output directory')
@click.option('--config', 'config_file', type=click.Path(exists=True),
              help='Configuration file (YAML)')
@click.pass_context
def assembly_sweep(ctx, reference_genome, regions, bam, num_runs, seed, string_id,
                  read_coverage, snv_error_rate, ins_error_rate, del_error_rate,
                  read_length, write_reads, output_dir, config_file):
    """
    Sweep coverage and error rates over a small region and tabulate the reads.

    Examples:

        breaksim test-assembly -G hg19.fa -k region.bed -c 5,10,20 -E 0,0.01 -n 10
    """
    result = _run_mode(ctx, BenchmarkMode.ASSEMBLY_SWEEP, config_file, {
        'reference.genome': reference_genome,
        'reference.regions': regions,
        'reference.bam': bam,
        'sweep.num_runs': num_runs,
        'sweep.write_reads': True if write_reads else None,
        'run.seed': seed,
        'run.string_id': string_id,
        'run.output_dir': output_dir,
        'reads.coverage': read_coverage,
        'reads.snv_rate': snv_error_rate,
        'reads.ins_rate': ins_error_rate,
        'reads.del_rate': del_error_rate,
        'reads.read_length': read_length,
    })

    click.echo(f"Wrote {len(result.sweep_rows)} sweep rows to {result.outputs['table']} "
               f"(seed {result.seed})")


@main.command()
def version():
    """Show version information."""
    import Bio
    import numpy
    import pysam

    click.echo(f"BreakSim v{__version__}")
    click.echo("\nDependencies:")
    click.echo(f"  BioPython: {Bio.__version__}")
    click.echo(f"  NumPy: {numpy.__version__}")
    click.echo(f"  pysam: {pysam.__version__}")
    click.echo(f"  PyYAML: {yaml.__version__}")


if __name__ == '__main__':
    sys.exit(main())
