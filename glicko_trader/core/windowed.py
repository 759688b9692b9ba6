# glicko_trader/core/windowed.py
"""
Walk-forward backtests over overlapping time windows.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..models.config import BacktestConfig
from ..models.ratings import RatingSnapshot
from ..models.results import BacktestResult, WindowSummary
from ..utils.time_helpers import months_to_ms
from .simulator import coerce_snapshots, run_backtest


logger = logging.getLogger(__name__)


DEFAULT_WINDOW_MONTHS = 12
STEP_FRACTION = 0.5


def window_bounds(config: BacktestConfig) -> List[Tuple[int, int]]:
    """
    Start/end pairs of every window that fits in the config's time range.

    Windows last ``window_size`` 30-day months (12 by default) and start
    every half window.
    """
    window_ms = months_to_ms(config.window_size or DEFAULT_WINDOW_MONTHS)
    step_ms = int(window_ms * STEP_FRACTION)

    bounds = []
    current_start = config.start_time
    while current_start + window_ms <= config.end_time:
        bounds.append((current_start, current_start + window_ms))
        current_start += step_ms
    return bounds


def _run_window(job: Tuple[BacktestConfig, List[RatingSnapshot]]) -> BacktestResult:
    config, ratings = job
    return run_backtest(config, ratings)


class WindowedBacktestOrchestrator:
    """
    Runs the full signal -> simulate -> analyze pipeline independently per
    window. Windows share no mutable state, so they can run in separate
    processes; results keep window order either way.
    """

    def __init__(self, config: BacktestConfig, max_workers: Optional[int] = None):
        """
        Initialize orchestrator.

        Args:
            config: Parent backtest configuration
            max_workers: Worker processes; None or 1 runs sequentially
        """
        self.config = config
        self.max_workers = max_workers

    def build_jobs(self, ratings: Sequence[RatingSnapshot]) -> List[Tuple[BacktestConfig, List[RatingSnapshot]]]:
        """Child configs paired with the ratings inside each non-empty window."""
        jobs = []
        for start, end in window_bounds(self.config):
            window_ratings = [r for r in ratings if start <= r.timestamp <= end]
            if not window_ratings:
                logger.debug(f"Skipping empty window [{start}, {end}]")
                continue
            jobs.append((self.config.for_window(start, end), window_ratings))
        return jobs

    def run(self, ratings: Iterable[Union[RatingSnapshot, dict]]) -> List[BacktestResult]:
        """
        Backtest every window.

        Args:
            ratings: Rating snapshots covering the full time range

        Returns:
            One result per non-empty window, in window order

        Raises:
            InvalidRecordError: First failure from any window
        """
        jobs = self.build_jobs(coerce_snapshots(ratings))
        logger.info(f"Running {len(jobs)} windows for {self.config.symbol}")

        if self.max_workers and self.max_workers > 1 and len(jobs) > 1:
            with ProcessPoolExecutor(max_workers=self.max_workers) as executor:
                return list(executor.map(_run_window, jobs))

        return [_run_window(job) for job in jobs]


def run_windowed_backtest(
    config: BacktestConfig,
    ratings: Iterable[Union[RatingSnapshot, dict]],
    max_workers: Optional[int] = None,
) -> List[BacktestResult]:
    """Walk-forward backtest over overlapping windows."""
    return WindowedBacktestOrchestrator(config, max_workers=max_workers).run(ratings)


def summarize_windows(results: Sequence[BacktestResult]) -> WindowSummary:
    """
    Aggregate window results.

    Args:
        results: Window results

    Returns:
        WindowSummary; all zeros when there are no windows
    """
    if not results:
        return WindowSummary(
            window_count=0,
            profitable_windows=0,
            window_win_rate=0.0,
            mean_return=0.0,
            median_return=0.0,
            return_std_dev=0.0,
            best_return=0.0,
            worst_return=0.0,
            mean_sharpe_ratio=0.0,
            total_trades=0,
        )

    returns = np.asarray([r.metrics.total_return for r in results], dtype=float)
    sharpes = np.asarray([r.metrics.sharpe_ratio for r in results], dtype=float)
    profitable = int(np.sum(returns > 0))

    return WindowSummary(
        window_count=len(results),
        profitable_windows=profitable,
        window_win_rate=profitable / len(results),
        mean_return=float(np.mean(returns)),
        median_return=float(np.median(returns)),
        return_std_dev=float(np.std(returns)),
        best_return=float(np.max(returns)),
        worst_return=float(np.min(returns)),
        mean_sharpe_ratio=float(np.mean(sharpes)),
        total_trades=sum(r.metrics.total_trades for r in results),
    )
