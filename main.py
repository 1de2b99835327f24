#!/usr/bin/env python3
"""
Main CLI for the Line Batch Processor
=====================================

This CLI runs a bounded, concurrent batch job over newline-delimited text.
"""

import json
import logging
import sys
from pathlib import Path

import click
import yaml

# Setup logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

try:
    from src.linebatch.batch.processor import BatchProcessor, ConsoleProgressCallback
    from src.linebatch.core.config import BatchConfig
    from src.linebatch.core.exceptions import (
        ConfigurationError,
        ErrorThresholdExceededError,
        LineBatchError,
        SourceError,
    )
    from src.linebatch.utils.text import render_summary
except ImportError as e:
    logger.exception(f"Import failed: {e}")
    logger.exception(
        "Make sure you have all dependencies installed and the project is properly set up"
    )
    sys.exit(1)

EXIT_FATAL = 1
EXIT_THRESHOLD_EXCEEDED = 2


def _load_config(config_path: Path | None) -> BatchConfig:
    return BatchConfig.from_env_and_yaml(yaml_path=config_path)


def _emit_summary(summary, source: str, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"source": source, **summary.to_dict()}, indent=2))
    else:
        click.echo(render_summary(summary, source=source), nl=False)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose):
    """Line Batch Processor CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command(name="process")
@click.option(
    "--input",
    "-i",
    "input_path",
    type=str,
    help="Path to newline-delimited input, or '-' for stdin",
)
@click.option(
    "--concurrency",
    "-c",
    type=click.IntRange(1, 64),
    help="Number of parallel workers (default: 1)",
)
@click.option(
    "--error-threshold",
    type=click.IntRange(min=0),
    help="Fail when more malformed records than this are found",
)
@click.option(
    "--deadline",
    type=click.FloatRange(min=0.0, min_open=True),
    help="Stop pulling new records after this many seconds",
)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration YAML file (optional)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.option("--quiet", "-q", is_flag=True, help="Do not print per-record errors")
@click.pass_context
def process(ctx, input_path, concurrency, error_threshold, deadline, config, as_json, quiet):
    """Process a line-oriented input and print a summary."""
    try:
        batch_config = _load_config(config).with_overrides(
            input_path=input_path,
            concurrency=concurrency,
            error_threshold=error_threshold,
            deadline_seconds=deadline,
        )
        if not ctx.obj.get("verbose"):
            logging.getLogger().setLevel(batch_config.log_level)

        if batch_config.input_path is None:
            click.echo("Error: No input given: use --input or set BATCH_INPUT_PATH", err=True)
            sys.exit(EXIT_FATAL)

        callback = None
        if not quiet:
            callback = ConsoleProgressCallback()

        processor = BatchProcessor(batch_config, callback=callback)
        summary = processor.run()
        _emit_summary(summary, str(batch_config.input_path), as_json)

    except ErrorThresholdExceededError as e:
        logger.error(f"Batch failed: {e}")
        if e.details is not None:
            _emit_summary(e.details, str(batch_config.input_path), as_json)
        sys.exit(EXIT_THRESHOLD_EXCEEDED)
    except SourceError as e:
        logger.error(f"Batch aborted: {e}")
        sys.exit(EXIT_FATAL)
    except LineBatchError as e:
        logger.exception(f"Batch processing failed: {e}")
        sys.exit(EXIT_FATAL)


@cli.command(name="show-config")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration YAML file (optional)",
)
def show_config(config):
    """Show the effective configuration."""
    try:
        batch_config = _load_config(config)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(EXIT_FATAL)

    click.echo(yaml.safe_dump(batch_config.model_dump(mode="json"), sort_keys=True), nl=False)


if __name__ == "__main__":
    cli()
