"""
Unit tests for the command-line interface.

Commands are invoked in-process through click's CliRunner. Every profile run
uses --no-worker so no process pool is started.
"""

import json

import click
import pytest
from click.testing import CliRunner

from dataset_profiler import __version__
from dataset_profiler.cli import cli, parse_type_overrides
from dataset_profiler.core.config import CONFIG_ENV_VAR, ProfilerConfig


@pytest.fixture
def runner(monkeypatch, package_logger):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    return CliRunner()


@pytest.mark.unit
class TestParseTypeOverrides:
    """Test COLUMN=TYPE parsing."""

    def test_pairs(self):
        """Test repeated options are merged."""
        assert parse_type_overrides(['zip=qualitative', ' age = numeric ']) == {
            'zip': 'qualitative',
            'age': 'numeric',
        }

    def test_last_equals_separates_type(self):
        """Test column names may contain '='."""
        assert parse_type_overrides(['a=b=text']) == {'a=b': 'text'}

    @pytest.mark.parametrize("value", ['zip', '=numeric', 'zip='])
    def test_malformed(self, value):
        """Test malformed values are rejected."""
        with pytest.raises(click.BadParameter):
            parse_type_overrides([value])


@pytest.mark.unit
class TestProfileCommand:
    """Test the profile command."""

    def test_profile(self, runner, sales_file):
        """Test the summary, column table and quality sections are printed."""
        result = runner.invoke(cli, ['profile', str(sales_file), '--no-worker', '-q'])

        assert result.exit_code == 0, result.output
        assert 'Dataset Profile: sales.csv' in result.output
        assert 'order_id' in result.output
        assert 'Data Quality' in result.output
        assert 'Top Correlations' in result.output

    def test_json_output(self, runner, sales_file, tmp_path):
        """Test the JSON profile is written."""
        output = tmp_path / 'out' / 'profile.json'

        result = runner.invoke(cli, ['profile', str(sales_file), '--no-worker', '-q', '-j', str(output)])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding='utf-8'))
        assert data['row_count'] == 6
        assert [column['name'] for column in data['columns']] == [
            'order_id', 'region', 'amount', 'quantity', 'shipped'
        ]
        assert data['quality']['label']
        assert 'JSON profile written to' in result.output

    def test_type_override(self, runner, sales_file, tmp_path):
        """Test --type changes the column type."""
        output = tmp_path / 'profile.json'

        result = runner.invoke(cli, [
            'profile', str(sales_file), '--no-worker', '-q',
            '--type', 'amount=qualitative', '-j', str(output)
        ])

        assert result.exit_code == 0, result.output
        columns = {column['name']: column for column in json.loads(output.read_text())['columns']}
        assert columns['amount']['type'] == 'qualitative'

    def test_fine_granularity(self, runner, sales_file):
        """Test --granularity fine enables the five-way classifier."""
        result = runner.invoke(cli, ['profile', str(sales_file), '--no-worker', '-q', '-g', 'fine'])

        assert result.exit_code == 0, result.output
        assert 'boolean' in result.output

    def test_malformed_type_option(self, runner, sales_file):
        """Test a malformed --type is a usage error."""
        result = runner.invoke(cli, ['profile', str(sales_file), '--no-worker', '--type', 'amount'])

        assert result.exit_code == 2
        assert 'Expected COLUMN=TYPE' in result.output

    def test_unknown_column(self, runner, sales_file):
        """Test an unknown column fails with exit code 1."""
        result = runner.invoke(cli, ['profile', str(sales_file), '--no-worker', '-q', '--type', 'nope=numeric'])

        assert result.exit_code == 1
        assert "Unknown column 'nope'" in result.output

    def test_empty_file(self, runner, tmp_path):
        """Test an empty file fails with exit code 1."""
        empty = tmp_path / 'empty.csv'
        empty.write_text('')

        result = runner.invoke(cli, ['profile', str(empty), '--no-worker', '-q'])

        assert result.exit_code == 1
        assert 'CSV file is empty' in result.output

    def test_config_file(self, runner, sales_file, tmp_path):
        """Test settings are read from --config."""
        config_file = tmp_path / 'profiler.yaml'
        config_file.write_text("correlation:\n  enabled: false\n")

        result = runner.invoke(cli, ['profile', str(sales_file), '--no-worker', '-q', '-c', str(config_file)])

        assert result.exit_code == 0, result.output
        assert 'Top Correlations' not in result.output

    def test_invalid_config(self, runner, sales_file, tmp_path):
        """Test an invalid configuration fails with exit code 1."""
        config_file = tmp_path / 'bad.yaml'
        config_file.write_text("correlation:\n  max_columns: -5\n")

        result = runner.invoke(cli, ['profile', str(sales_file), '--no-worker', '-q', '-c', str(config_file)])

        assert result.exit_code == 1
        assert 'correlation.max_columns' in result.output

    def test_progress_output(self, runner, sales_file):
        """Test stage progress is printed unless --quiet is given."""
        result = runner.invoke(cli, ['profile', str(sales_file), '--no-worker'])

        assert result.exit_code == 0, result.output
        assert 'Computing column statistics' in result.output

    def test_missing_file(self, runner, tmp_path):
        """Test a missing file is rejected by argument validation."""
        result = runner.invoke(cli, ['profile', str(tmp_path / 'missing.csv')])

        assert result.exit_code == 2


@pytest.mark.unit
class TestInitConfigCommand:
    """Test the init-config command."""

    def test_writes_defaults(self, runner, tmp_path):
        """Test the generated file loads back as the default configuration."""
        output = tmp_path / 'profiler.yaml'

        result = runner.invoke(cli, ['init-config', str(output)])

        assert result.exit_code == 0, result.output
        assert 'Configuration written to' in result.output
        assert ProfilerConfig.from_yaml(str(output)) == ProfilerConfig()

    def test_refuses_to_overwrite(self, runner, tmp_path):
        """Test an existing file is kept unless --force is given."""
        output = tmp_path / 'profiler.yaml'
        output.write_text('keep me')

        result = runner.invoke(cli, ['init-config', str(output)])

        assert result.exit_code == 1
        assert output.read_text() == 'keep me'

        result = runner.invoke(cli, ['init-config', str(output), '--force'])

        assert result.exit_code == 0
        assert output.read_text() != 'keep me'


@pytest.mark.unit
def test_version(runner):
    """Test --version prints the package version."""
    result = runner.invoke(cli, ['--version'])

    assert result.exit_code == 0
    assert __version__ in result.output
