"""
Command-line interface for the Dataset Profiler.

Provides commands for:
- Profiling a CSV file (summary, column table, quality scores, correlations)
- Generating a configuration file with every setting at its default
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Optional, Sequence

import click

from dataset_profiler import __version__
from dataset_profiler.core.config import ProfilerConfig
from dataset_profiler.core.exceptions import ProfilerException
from dataset_profiler.core.logging_config import setup_logging
from dataset_profiler.core.observers import CLIProgressObserver, LoggingObserver, ProgressObserver, QuietObserver
from dataset_profiler.core.pretty_output import PrettyOutput as po
from dataset_profiler.profiler.engine import ProfilingOrchestrator
from dataset_profiler.profiler.performance import analyze_dataset_performance, check_memory_availability
from dataset_profiler.profiler.profile_result import Dataset
from dataset_profiler.profiler.worker import BackgroundWorker

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def parse_type_overrides(values: Sequence[str]) -> Dict[str, str]:
    """
    Parse repeated COLUMN=TYPE options.

    The last '=' separates the type, so column names may contain '='.
    Type names are validated by the orchestrator.
    """
    overrides = {}
    for value in values:
        column, separator, type_name = value.rpartition('=')
        if not separator or not column.strip() or not type_name.strip():
            raise click.BadParameter(f"Expected COLUMN=TYPE, got '{value}'", param_hint='--type')
        overrides[column.strip()] = type_name.strip()
    return overrides


async def run_profile(
    file_path: str,
    config: ProfilerConfig,
    type_overrides: Dict[str, str],
    observer: ProgressObserver
) -> Dataset:
    """Profile one file with a worker that lives for this run only."""
    worker = None
    if config.worker.enabled:
        worker = BackgroundWorker(mode=config.worker.mode, max_workers=config.worker.max_workers)

    try:
        orchestrator = ProfilingOrchestrator(config, worker=worker, observers=[observer, LoggingObserver()])
        return await orchestrator.profile_file(file_path, type_overrides=type_overrides)
    finally:
        if worker is not None:
            worker.shutdown()


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    Dataset Profiler - structure and quality analysis for CSV files.

    Detects the separator, disambiguates duplicate headers, infers column
    types and computes per-column statistics, duplicates and correlations.
    """
    pass


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML configuration file (default: $DATASET_PROFILER_CONFIG)')
@click.option('--granularity', '-g', type=click.Choice(['coarse', 'fine'], case_sensitive=False),
              default=None, help='Type inference granularity (overrides config)')
@click.option('--type', '-t', 'type_overrides', multiple=True, metavar='COLUMN=TYPE',
              help='Force a column type, e.g. --type zip=qualitative. Repeatable.')
@click.option('--no-worker', is_flag=True, help='Run every step on the event loop')
@click.option('--output-json', '-j', type=click.Path(dir_okay=False), help='Path for JSON profile output')
@click.option('--top-correlations', type=click.IntRange(min=0), default=5, show_default=True,
              help='Number of correlated column pairs to show')
@click.option('--quiet', '-q', is_flag=True, help='Hide progress output')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def profile(file_path, config_path, granularity, type_overrides, no_worker, output_json,
            top_correlations, quiet, log_level, log_file):
    """
    Profile a CSV file.

    FILE_PATH: Path to the CSV file (comma or semicolon separated)

    Examples:

    \b
    # Profile with default settings
    dataset-profiler profile data/sales.csv

    \b
    # Fine-grained types, keep zip codes as labels, save JSON
    dataset-profiler profile data/sales.csv -g fine -t zip=categorical -j sales.json
    """
    setup_logging(level=log_level, log_file=log_file)
    overrides = parse_type_overrides(type_overrides)

    try:
        config = ProfilerConfig.from_yaml(config_path) if config_path else ProfilerConfig.from_env()
        if granularity:
            config.inference.granularity = granularity.lower()
        if no_worker:
            config.worker.enabled = False

        logger.info(f"Starting profile of: {file_path}")
        observer = QuietObserver() if quiet else CLIProgressObserver()
        dataset = asyncio.run(run_profile(file_path, config, overrides, observer))

    except ProfilerException as e:
        logger.debug(f"Profiling error: {e.to_dict()}")
        print()
        po.error(e.message)
        sys.exit(1)

    po.profile(dataset, top_correlations)

    analysis = analyze_dataset_performance(dataset.column_count, dataset.row_count)
    memory_available = not analysis.is_large or check_memory_availability(analysis.estimated_memory_mb)
    po.performance_notes(analysis, memory_available)

    if output_json:
        try:
            output_file = Path(output_json)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, 'w', encoding='utf-8') as f:
                json.dump(dataset.to_dict(), f, indent=2)
        except OSError as e:
            po.error(f"Error writing JSON output: {e}")
            sys.exit(1)
        po.success(f"JSON profile written to: {output_json}")


@cli.command('init-config')
@click.argument('output_path', type=click.Path(dir_okay=False))
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def init_config(output_path, force):
    """
    Write a configuration file with every setting at its default.

    OUTPUT_PATH: Path where the config should be written

    Example:

    \b
    dataset-profiler init-config profiler.yaml
    """
    output_file = Path(output_path)
    if output_file.exists() and not force:
        po.error(f"{output_path} already exists (use --force to overwrite)")
        sys.exit(1)

    content = "# Dataset Profiler configuration\n# Remove any setting to keep its default.\n\n"
    content += ProfilerConfig().to_yaml()

    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(content, encoding='utf-8')
    except OSError as e:
        po.error(f"Error creating config file: {e}")
        sys.exit(1)

    po.success(f"Configuration written to: {output_path}")
    click.echo("\nEdit the file, then run:")
    click.echo(f"  dataset-profiler profile data.csv --config {output_path}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    cli.main(args=argv, prog_name='dataset-profiler')


if __name__ == '__main__':
    main()
