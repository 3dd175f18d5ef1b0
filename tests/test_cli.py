#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Tests for CLI command interface.

Author: BreakSim Development Team
License: MIT
"""

import logging

import pytest
import yaml
from click.testing import CliRunner

from breaksim.cli import main

from conftest import PAIRS_PER_CONTIG


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI runs install root handlers on the runner's streams; drop them afterwards."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


@pytest.fixture
def runner():
    return CliRunner()


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        """Test that --help runs without error."""
        result = runner.invoke(main, ['--help'])

        assert result.exit_code == 0
        assert 'BreakSim' in result.output
        for command in ('sim-breaks', 'split-bam', 'test-assembly', 'config'):
            assert command in result.output

    def test_cli_version(self, runner):
        """Test that --version displays version."""
        result = runner.invoke(main, ['--version'])

        assert result.exit_code == 0
        assert '0.1' in result.output

    def test_version_command(self, runner):
        result = runner.invoke(main, ['version'])

        assert result.exit_code == 0
        assert 'pysam' in result.output

    def test_invalid_command(self, runner):
        """Test that invalid commands are handled gracefully."""
        result = runner.invoke(main, ['nonexistent_command'])

        assert result.exit_code != 0

    @pytest.mark.parametrize("command", ['sim-breaks', 'split-bam', 'test-assembly'])
    def test_command_help(self, runner, command):
        result = runner.invoke(main, [command, '--help'])

        assert result.exit_code == 0
        assert '--seed' in result.output


class TestConfigCommands:
    """Test config init / validate / show."""

    def test_config_init(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ['config', 'init', '--output', 'test_config.yaml'])

            assert result.exit_code == 0
            with open('test_config.yaml') as f:
                config = yaml.safe_load(f)
            assert config['reads']['read_length'] == 101

    def test_config_init_template(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ['config', 'init', '-o', 'split.yaml', '-t', 'split-bam'])

            assert result.exit_code == 0
            with open('split.yaml') as f:
                assert yaml.safe_load(f)['partition']['fractions'] == [0.5, 0.5]

    def test_config_validate(self, runner):
        with runner.isolated_filesystem():
            runner.invoke(main, ['config', 'init', '-o', 'c.yaml'])
            result = runner.invoke(main, ['config', 'validate', 'c.yaml'])

            assert result.exit_code == 0
            assert 'valid' in result.output

    def test_config_validate_failure(self, runner):
        with runner.isolated_filesystem():
            with open('bad.yaml', 'w') as f:
                yaml.dump({'reads': {'read_length': 0}}, f)
            result = runner.invoke(main, ['config', 'validate', 'bad.yaml'])

            assert result.exit_code == 1
            assert 'read_length' in result.output

    @pytest.mark.parametrize("fmt", ['yaml', 'summary'])
    def test_config_show(self, runner, fmt):
        with runner.isolated_filesystem():
            runner.invoke(main, ['config', 'init', '-o', 'c.yaml'])
            result = runner.invoke(main, ['config', 'show', 'c.yaml', '--format', fmt])

            assert result.exit_code == 0
            assert 'read_length' in result.output or 'Read length' in result.output


class TestSimBreaksCommand:
    """Test sim-breaks end to end."""

    def test_sim_breaks(self, runner, reference_fasta, region_bed, temp_output_dir):
        out = temp_output_dir / "cli_sim"
        result = runner.invoke(main, [
            'sim-breaks',
            '-G', str(reference_fasta),
            '-k', str(region_bed),
            '-s', '42',
            '-R', '2',
            '-X', '3',
            '-c', '5',
            '--read-length', '50',
            '--isize-mean', '200',
            '--isize-sd', '20',
            '-o', str(out),
        ])

        assert result.exit_code == 0, result.output
        assert '2 breakpoints and 3 indels' in result.output
        for name in ('paired_end1.fastq', 'paired_end2.fastq', 'connections.tsv',
                     'indels.tsv', 'simulated_genome.fa'):
            assert (out / name).exists()

    def test_sim_breaks_from_config(self, runner, reference_fasta, region_bed, temp_output_dir):
        out = temp_output_dir / "cli_cfg"
        config_path = temp_output_dir / "sim.yaml"
        config_path.write_text(yaml.dump({
            'run': {'seed': 9, 'output_dir': str(out)},
            'reference': {'genome': str(reference_fasta), 'regions': str(region_bed)},
            'reads': {'coverage': [2], 'read_length': 50},
            'simulation': {'num_rearrangements': 1, 'num_indels': 1},
        }))

        result = runner.invoke(main, ['sim-breaks', '--config', str(config_path), '-X', '2'])

        assert result.exit_code == 0, result.output
        assert len((out / 'indels.tsv').read_text().splitlines()) == 2

    def test_sim_breaks_error(self, runner, reference_fasta, temp_output_dir):
        result = runner.invoke(main, [
            'sim-breaks', '-G', str(reference_fasta), '-k', 'chr1:1-100',
            '-o', str(temp_output_dir),
        ])

        assert result.exit_code == 1
        assert 'Error:' in result.output

    def test_bad_rate_list(self, runner, reference_fasta, region_bed, temp_output_dir):
        result = runner.invoke(main, [
            'sim-breaks', '-G', str(reference_fasta), '-k', str(region_bed),
            '-E', '0.1,abc', '-o', str(temp_output_dir),
        ])

        assert result.exit_code == 1
        assert 'Could not convert abc to number' in result.output


class TestSplitBamCommand:
    """Test split-bam end to end."""

    def test_exact(self, runner, paired_bam, temp_output_dir, count_bam_names):
        result = runner.invoke(main, [
            'split-bam', '-b', str(paired_bam), '-f', '0.5,0.5', '-s', '7',
            '-A', 'half', '-o', str(temp_output_dir),
        ])

        assert result.exit_code == 0, result.output
        first = count_bam_names(temp_output_dir / 'half_0_0.5_subsampled.bam')
        second = count_bam_names(temp_output_dir / 'half_1_0.5_subsampled.bam')
        assert len(first) == len(second) == PAIRS_PER_CONTIG
        assert not set(first) & set(second)

    def test_weighted(self, runner, paired_bam, weight_bed, temp_output_dir):
        result = runner.invoke(main, [
            'split-bam', '-b', str(paired_bam), '-f', str(weight_bed), '-s', '7',
            '-A', 'tumor', '-o', str(temp_output_dir),
        ])

        assert result.exit_code == 0, result.output
        assert (temp_output_dir / 'tumor.fractioned.bam').exists()

    def test_missing_fractions(self, runner, paired_bam, temp_output_dir):
        result = runner.invoke(main, ['split-bam', '-b', str(paired_bam), '-o', str(temp_output_dir)])

        assert result.exit_code == 1
        assert 'Must specify fractions' in result.output


class TestAssemblyCommand:
    """Test test-assembly end to end."""

    def test_sweep(self, runner, reference_fasta, region_bed, temp_output_dir):
        result = runner.invoke(main, [
            'test-assembly', '-G', str(reference_fasta), '-k', str(region_bed),
            '-n', '1', '-c', '2,3', '-E', '0', '--read-length', '50', '-s', '3',
            '-A', 'sweep', '--write-reads', '-o', str(temp_output_dir),
        ])

        assert result.exit_code == 0, result.output
        table = temp_output_dir / 'sweep.assembly_test.tsv'
        assert len(table.read_text().splitlines()) == 3
        assert (temp_output_dir / 'paired_end1.run0_c3_e0_d0.05_i0.05.fa').exists()

# BreakSim v0.1.0
# Any usage is subject to this software's license.
