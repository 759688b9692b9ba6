# glicko_trader/core/simulator.py
"""
Backtest simulation: z-score signals against a price series with OCO exits.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from ..models.config import BacktestConfig
from ..models.orders import OrderReason, Signal, SignalAction
from ..models.ratings import RatingSnapshot
from ..models.results import BacktestResult
from ..utils.time_helpers import format_duration, ms_to_datetime
from .errors import InvalidRecordError
from .metrics import PerformanceAnalyzer
from .portfolio import Portfolio
from .signals import SignalGenerator


logger = logging.getLogger(__name__)


PricePoint = Tuple[int, float]

SYNTHETIC_BASE_PRICE = 100.0
SYNTHETIC_BASE_RATING = 1500.0


def synthesize_prices(snapshots: Iterable[RatingSnapshot], symbol: str) -> List[PricePoint]:
    """
    Stand-in price series derived from a symbol's ratings.

    price = 100 * rating / 1500, sorted by timestamp.
    """
    prices = [
        (s.timestamp, SYNTHETIC_BASE_PRICE * (s.rating / SYNTHETIC_BASE_RATING))
        for s in snapshots
        if s.symbol == symbol
    ]
    prices.sort(key=lambda item: item[0])
    return prices


def validate_prices(prices: Sequence[PricePoint]) -> None:
    """
    Check a price series is chronological with positive prices.

    Raises:
        InvalidRecordError: Naming the first offending point
    """
    previous_time = None
    for index, (timestamp, price) in enumerate(prices):
        if not price > 0:
            raise InvalidRecordError(f"Invalid price at index {index}: {price} at {timestamp} must be positive")
        if previous_time is not None and timestamp < previous_time:
            raise InvalidRecordError(
                f"Price at index {index} ({timestamp}) is earlier than the previous point ({previous_time})"
            )
        previous_time = timestamp


def coerce_snapshots(snapshots: Iterable[Union[RatingSnapshot, dict]]) -> List[RatingSnapshot]:
    """Validate raw rating records, naming the first bad one."""
    result = []
    for index, snapshot in enumerate(snapshots):
        if isinstance(snapshot, RatingSnapshot):
            result.append(snapshot)
            continue
        try:
            result.append(RatingSnapshot.model_validate(snapshot))
        except ValidationError as e:
            raise InvalidRecordError(f"Invalid rating at index {index}: {e}") from e
    return result


class PortfolioSimulator:
    """
    Replays one symbol's signals against its prices.

    Signals and prices are merged by a two-pointer walk; a tick is processed
    only when both timestamps match exactly. Per tick: BUY entry, SELL exit,
    OCO exit check, then an equity curve point.
    """

    def __init__(self, config: BacktestConfig):
        """
        Initialize simulator.

        Args:
            config: Backtest configuration
        """
        self.config = config
        self.symbol = config.symbol
        self.portfolio = Portfolio(config.initial_cash)
        self.processed_ticks = 0

    def process_tick(self, timestamp: int, action: SignalAction, price: float) -> None:
        """
        Apply one aligned (signal, price) tick.

        Args:
            timestamp: Tick time (ms)
            action: Signal action at this tick
            price: Price at this tick
        """
        current_prices = {self.symbol: price}

        if action == SignalAction.BUY:
            self.portfolio.open_position(
                self.symbol,
                price,
                timestamp,
                profit_percent=self.config.profit_percent,
                stop_loss_percent=self.config.stop_loss_percent,
                allocation_fraction=self.config.allocation_fraction,
            )
        elif action == SignalAction.SELL:
            self.portfolio.close_position(self.symbol, price, timestamp, OrderReason.EXIT_ZSCORE)

        self.portfolio.apply_exits(current_prices, timestamp)
        self.portfolio.update_equity_curve(timestamp, current_prices)
        self.processed_ticks += 1

    def simulate(self, signals: Sequence[Signal], prices: Sequence[PricePoint]) -> Portfolio:
        """
        Run the state machine over aligned signals and prices.

        Args:
            signals: Chronological signals for the configured symbol
            prices: Chronological (timestamp, price) points

        Returns:
            The portfolio with its ledger and equity curve
        """
        validate_prices(prices)

        signal_idx = 0
        price_idx = 0
        while signal_idx < len(signals) and price_idx < len(prices):
            signal = signals[signal_idx]
            price_time, price = prices[price_idx]

            if signal.timestamp < price_time:
                signal_idx += 1
                continue
            if price_time < signal.timestamp:
                price_idx += 1
                continue

            self.process_tick(signal.timestamp, signal.action, price)
            signal_idx += 1
            price_idx += 1

        summary = self.portfolio.get_portfolio_summary()
        logger.debug(
            f"Simulated {self.processed_ticks} aligned ticks for {self.symbol}: "
            f"{summary['num_orders']} orders, {summary['open_positions']} open at end, "
            f"P&L {summary['total_pnl']:+.2f}"
        )
        return self.portfolio


def run_backtest(
    config: BacktestConfig,
    ratings: Iterable[Union[RatingSnapshot, dict]],
    prices: Optional[Sequence[PricePoint]] = None,
    analyzer: Optional[PerformanceAnalyzer] = None,
) -> BacktestResult:
    """
    Signal generation, simulation and analysis for one config.

    Args:
        config: Backtest configuration
        ratings: Rating snapshots (all symbols allowed; only config.symbol trades)
        prices: External (timestamp, price) series; synthesized from ratings
            when omitted
        analyzer: Metrics calculator, default risk-free rate when omitted

    Returns:
        BacktestResult with metrics and the order ledger

    Raises:
        InvalidRecordError: If ratings or prices are malformed
    """
    snapshots = coerce_snapshots(ratings)
    symbol = config.symbol

    generator = SignalGenerator(config.moving_averages, config.z_score_threshold)
    signals = generator.generate(snapshots).get(symbol, [])

    if prices is None:
        prices = synthesize_prices(snapshots, symbol)

    simulator = PortfolioSimulator(config)
    portfolio = simulator.simulate(signals, prices)

    analyzer = analyzer or PerformanceAnalyzer()
    metrics = analyzer.calculate_metrics(
        equity_curve=portfolio.equity_curve,
        orders=portfolio.orders,
        initial_cash=config.initial_cash,
        start_time=config.start_time,
        end_time=config.end_time,
    )

    logger.info(
        f"Backtest {symbol} {ms_to_datetime(config.start_time):%Y-%m-%d} -> {ms_to_datetime(config.end_time):%Y-%m-%d}: "
        f"return={metrics.total_return:.4f}, trades={metrics.total_trades}, "
        f"avg hold={format_duration(metrics.avg_trade_duration)}"
    )

    return BacktestResult(
        symbol=symbol,
        start_time=config.start_time,
        end_time=config.end_time,
        config=config.to_dict(),
        metrics=metrics,
        orders=list(portfolio.orders),
        equity_curve=list(portfolio.equity_curve),
    )
