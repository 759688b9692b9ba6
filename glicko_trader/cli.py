# glicko_trader/cli.py
"""
Command line entry point.

Reads JSON from stdin (or --input), writes JSON to stdout. Logs go to stderr
so the output stays machine readable.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
from pydantic import ValidationError

from .core.errors import GlickoTraderError, InvalidRecordError
from .core.glicko import calculate_glicko_ratings
from .core.simulator import run_backtest
from .core.windowed import run_windowed_backtest, summarize_windows
from .models.config import AppConfig, BacktestConfig
from .models.results import json_safe
from .utils.config_loader import load_config
from .utils.logging_config import setup_logging


def _read_json(input_file) -> Any:
    try:
        return json.load(input_file)
    except json.JSONDecodeError as e:
        raise InvalidRecordError(f"Input is not valid JSON: {e}") from e


def _parse_backtest_input(data: Any, app_config: AppConfig) -> Tuple[BacktestConfig, list]:
    """Split {"config": ..., "ratings": [...]} into a validated config and ratings."""
    if not isinstance(data, dict):
        raise InvalidRecordError("Backtest input must be a JSON object with 'config' and 'ratings'")

    raw_config = data.get("config")
    if raw_config is None:
        if app_config.backtest is None:
            raise InvalidRecordError("Backtest input is missing 'config'")
        config = app_config.backtest
    else:
        try:
            config = BacktestConfig.model_validate(raw_config)
        except ValidationError as e:
            raise InvalidRecordError(f"Invalid backtest config: {e}") from e

    ratings = data.get("ratings")
    if not isinstance(ratings, list):
        raise InvalidRecordError("Backtest input is missing the 'ratings' list")
    return config, ratings


def _emit(payload: Any, pretty: bool) -> None:
    click.echo(json.dumps(json_safe(payload), indent=2 if pretty else None, allow_nan=False))


@click.group()
@click.option('--config', '-c', 'config_path', default=None, help='Configuration file path')
@click.option('--input', '-i', 'input_file', type=click.File('r'), default='-', help='JSON input file (default stdin)')
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@click.option('--verbose', '-v', is_flag=True, help='Verbose logging')
@click.pass_context
def main(ctx, config_path, input_file, pretty, verbose):
    """Glicko-2 market ratings and z-score backtests."""
    try:
        app_config = load_config(config_path)
    except GlickoTraderError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    setup_logging(app_config.logging, level="DEBUG" if verbose else None, stream=sys.stderr)

    ctx.obj = {
        'app_config': app_config,
        'input_file': input_file,
        'pretty': pretty,
    }


@main.command('calculate-glicko')
@click.option('--progress', is_flag=True, help='Show a progress bar on stderr')
@click.pass_context
def calculate_glicko(ctx, progress):
    """Rate a JSON array of candles."""
    obj: Dict[str, Any] = ctx.obj
    try:
        candles = _read_json(obj['input_file'])
        if not isinstance(candles, list):
            raise InvalidRecordError("Candle input must be a JSON array")
        ratings = calculate_glicko_ratings(candles, obj['app_config'].glicko, show_progress=progress)
    except GlickoTraderError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    _emit([rating.to_dict() for rating in ratings], obj['pretty'])


@main.command('run-backtest')
@click.option('--output', '-o', default=None, help='Directory for JSON results and the orders CSV')
@click.pass_context
def backtest(ctx, output):
    """Backtest {"config": ..., "ratings": [...]}."""
    obj: Dict[str, Any] = ctx.obj
    try:
        config, ratings = _parse_backtest_input(_read_json(obj['input_file']), obj['app_config'])
        result = run_backtest(config, ratings)
    except GlickoTraderError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    if output:
        output_dir = Path(output)
        output_dir.mkdir(parents=True, exist_ok=True)
        stem = f"{result.symbol}_{result.start_time}_{result.end_time}"
        result.save_to_json(str(output_dir / f"{stem}_results.json"))
        result.save_to_csv(str(output_dir / f"{stem}_orders.csv"))

    _emit(result.to_dict(), obj['pretty'])


@main.command('run-windowed-backtest')
@click.option('--workers', '-w', type=int, default=None, help='Worker processes for windows')
@click.pass_context
def windowed_backtest(ctx, workers: Optional[int]):
    """Walk-forward backtest over overlapping windows."""
    obj: Dict[str, Any] = ctx.obj
    app_config: AppConfig = obj['app_config']
    try:
        config, ratings = _parse_backtest_input(_read_json(obj['input_file']), app_config)
        results = run_windowed_backtest(config, ratings, max_workers=workers or app_config.max_workers)
    except GlickoTraderError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    _emit({
        'results': [result.to_dict() for result in results],
        'summary': summarize_windows(results).to_dict(),
    }, obj['pretty'])


if __name__ == '__main__':
    main()
