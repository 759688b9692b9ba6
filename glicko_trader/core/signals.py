# glicko_trader/core/signals.py
"""
Rolling z-score signals over per-symbol rating histories.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, NamedTuple, Sequence, Tuple

import numpy as np

from ..models.orders import Signal, SignalAction
from ..models.ratings import RatingSnapshot


logger = logging.getLogger(__name__)


class MovingStats(NamedTuple):
    """Window statistics for one observation."""
    mean: float
    std_dev: float
    z_score: float


def calculate_moving_stats(values: Sequence[float], current_value: float) -> MovingStats:
    """
    Mean, population std dev and z-score of a value against a window.

    An empty window or zero deviation yields a z-score of 0.
    """
    if len(values) == 0:
        return MovingStats(mean=current_value, std_dev=0.0, z_score=0.0)

    window = np.asarray(values, dtype=float)
    mean = float(window.mean())
    std_dev = float(window.std())
    z_score = (current_value - mean) / std_dev if std_dev > 0 else 0.0
    return MovingStats(mean=mean, std_dev=std_dev, z_score=z_score)


def classify(z_score: float, threshold: float) -> SignalAction:
    """Map a z-score onto BUY/SELL/HOLD with a symmetric band."""
    if z_score > threshold:
        return SignalAction.BUY
    if z_score < -threshold:
        return SignalAction.SELL
    return SignalAction.HOLD


class SignalGenerator:
    """
    Generates z-score signals from rating snapshots.

    For each symbol and each index i >= N, the N ratings before i form the
    rolling sample; the first N observations of a symbol produce no signal.
    """

    def __init__(self, moving_averages: int, z_score_threshold: float):
        """
        Initialize signal generator.

        Args:
            moving_averages: Rolling window length N
            z_score_threshold: Band half-width for BUY/SELL
        """
        if moving_averages < 1:
            raise ValueError(f"moving_averages must be at least 1, got {moving_averages}")
        self.moving_averages = moving_averages
        self.z_score_threshold = z_score_threshold

    @staticmethod
    def group_by_symbol(snapshots: Iterable[RatingSnapshot]) -> Dict[str, List[Tuple[int, float]]]:
        """Per-symbol (timestamp, rating) histories sorted by time."""
        histories: Dict[str, List[Tuple[int, float]]] = defaultdict(list)
        for snapshot in snapshots:
            histories[snapshot.symbol].append((snapshot.timestamp, snapshot.rating))
        for history in histories.values():
            history.sort(key=lambda item: item[0])
        return dict(histories)

    def generate_for_history(self, history: Sequence[Tuple[int, float]]) -> List[Signal]:
        """
        Signals for one symbol's sorted (timestamp, rating) history.

        Args:
            history: Chronological (timestamp, rating) pairs

        Returns:
            Signals for indices N..len-1
        """
        n = self.moving_averages
        if len(history) <= n:
            return []

        ratings = np.asarray([rating for _, rating in history], dtype=float)
        # Row k holds ratings[k:k+n], the window preceding index k+n
        windows = np.lib.stride_tricks.sliding_window_view(ratings, n)[:-1]
        means = windows.mean(axis=1)
        std_devs = windows.std(axis=1)
        current = ratings[n:]

        signals = []
        for k, (timestamp, _) in enumerate(history[n:]):
            std_dev = float(std_devs[k])
            mean = float(means[k])
            z_score = float((current[k] - mean) / std_dev) if std_dev > 0 else 0.0
            signals.append(Signal(
                timestamp=timestamp,
                z_score=z_score,
                action=classify(z_score, self.z_score_threshold),
                mean=mean,
                std_dev=std_dev,
            ))
        return signals

    def generate(self, snapshots: Iterable[RatingSnapshot]) -> Dict[str, List[Signal]]:
        """
        Signals for every symbol present in the snapshots.

        Args:
            snapshots: Rating snapshots in any order

        Returns:
            Mapping of symbol to chronological signals
        """
        histories = self.group_by_symbol(snapshots)
        signals = {symbol: self.generate_for_history(history) for symbol, history in histories.items()}

        logger.debug(
            f"Generated signals for {len(signals)} symbols "
            f"(window={self.moving_averages}, threshold={self.z_score_threshold})"
        )
        return signals
