# glicko_trader/core/metrics.py
"""
Performance metrics calculator for backtest results.
"""

import math
from typing import Dict, List, Sequence, Tuple
import logging

import numpy as np

from ..models.orders import Order, OrderSide
from ..models.results import EquityPoint, PerformanceMetrics
from ..utils.time_helpers import MS_PER_HOUR, MS_PER_YEAR


logger = logging.getLogger(__name__)


DAYS_PER_YEAR = 365.25


class PerformanceAnalyzer:
    """
    Calculate return, risk and trade statistics from an equity curve and an
    order ledger.

    Pure with respect to its inputs: every degenerate denominator resolves to
    0 instead of raising.
    """

    def __init__(self, risk_free_rate: float = 0.02, periods_per_year: float = DAYS_PER_YEAR):
        """
        Initialize analyzer.

        Args:
            risk_free_rate: Annual risk-free rate
            periods_per_year: Equity steps per year used for annualization
        """
        self.risk_free_rate = risk_free_rate
        self.periods_per_year = periods_per_year

    @property
    def period_risk_free_rate(self) -> float:
        """Risk-free rate per equity step."""
        return self.risk_free_rate / self.periods_per_year

    def calculate_metrics(
        self,
        equity_curve: Sequence[EquityPoint],
        orders: Sequence[Order],
        initial_cash: float,
        start_time: int,
        end_time: int,
    ) -> PerformanceMetrics:
        """
        Calculate performance metrics.

        Args:
            equity_curve: Equity points, seeded with (0, initial_cash)
            orders: Order ledger
            initial_cash: Starting cash
            start_time: Run start (ms)
            end_time: Run end (ms)

        Returns:
            PerformanceMetrics
        """
        if not equity_curve:
            return self._create_empty_metrics(initial_cash)

        final_equity = equity_curve[-1].equity
        total_return = (final_equity - initial_cash) / initial_cash if initial_cash else 0.0
        annualized_return = self._calculate_annualized_return(final_equity, initial_cash, start_time, end_time)

        returns = self._calculate_returns(equity_curve)
        mean_return, volatility = self._mean_and_volatility(returns)
        sharpe_ratio = self._calculate_sharpe_ratio(mean_return, volatility)
        sortino_ratio = self._calculate_sortino_ratio(returns, mean_return)
        max_drawdown = self._calculate_max_drawdown(equity_curve, initial_cash)
        calmar_ratio = annualized_return / max_drawdown if max_drawdown > 0 else 0.0

        win_ratio, total_trades = self._calculate_win_ratio(orders)
        profit_factor = self._calculate_profit_factor(orders)
        avg_trade_duration = self._calculate_avg_trade_duration(orders)

        return PerformanceMetrics(
            total_return=total_return,
            annualized_return=annualized_return,
            sharpe_ratio=sharpe_ratio,
            sortino_ratio=sortino_ratio,
            calmar_ratio=calmar_ratio,
            alpha=0.0,
            max_drawdown=max_drawdown,
            volatility=volatility,
            win_ratio=win_ratio,
            total_trades=total_trades,
            profit_factor=profit_factor,
            avg_trade_duration=avg_trade_duration,
            initial_equity=initial_cash,
            final_equity=final_equity,
        )

    def _calculate_annualized_return(
        self,
        final_equity: float,
        initial_cash: float,
        start_time: int,
        end_time: int,
    ) -> float:
        years = (end_time - start_time) / MS_PER_YEAR
        if years <= 0 or initial_cash <= 0:
            return 0.0
        # Sub-year runs compound to inf rather than raising OverflowError
        with np.errstate(over='ignore'):
            growth = np.power(np.float64(final_equity / initial_cash), 1 / years)
        return float(growth) - 1

    @staticmethod
    def _calculate_returns(equity_curve: Sequence[EquityPoint]) -> np.ndarray:
        """Simple returns between consecutive equity points."""
        values = np.asarray([point.equity for point in equity_curve], dtype=float)
        if len(values) < 2:
            return np.empty(0)

        previous = values[:-1]
        current = values[1:]
        returns = np.zeros(len(current))
        positive = previous > 0
        returns[positive] = (current[positive] - previous[positive]) / previous[positive]
        return returns

    @staticmethod
    def _mean_and_volatility(returns: np.ndarray) -> Tuple[float, float]:
        if len(returns) == 0:
            return 0.0, 0.0
        mean_return = float(np.mean(returns))
        variance = float(np.mean((returns - mean_return) ** 2))
        return mean_return, math.sqrt(variance)

    def _calculate_sharpe_ratio(self, mean_return: float, volatility: float) -> float:
        if volatility <= 0:
            return 0.0
        return (mean_return - self.period_risk_free_rate) / volatility * math.sqrt(self.periods_per_year)

    def _calculate_sortino_ratio(self, returns: np.ndarray, mean_return: float) -> float:
        """
        Sortino ratio with downside measured below the mean return.

        Returns strictly below the realized mean form the downside sample; its
        population deviation around the mean replaces volatility.
        """
        downside = returns[returns < mean_return]
        if len(downside) == 0:
            return 0.0

        downside_deviation = math.sqrt(float(np.mean((downside - mean_return) ** 2)))
        if downside_deviation <= 0:
            return 0.0
        return (mean_return - self.period_risk_free_rate) / downside_deviation * math.sqrt(self.periods_per_year)

    @staticmethod
    def _calculate_max_drawdown(equity_curve: Sequence[EquityPoint], initial_cash: float) -> float:
        """Largest fractional decline from a running peak seeded at initial cash."""
        peak = initial_cash
        max_drawdown = 0.0
        for point in equity_curve:
            if point.equity > peak:
                peak = point.equity
            drawdown = (peak - point.equity) / peak if peak > 0 else 0.0
            if drawdown > max_drawdown:
                max_drawdown = drawdown
        return max_drawdown

    @staticmethod
    def _exits(orders: Sequence[Order]) -> List[Order]:
        return [order for order in orders if order.side == OrderSide.SELL]

    def _calculate_win_ratio(self, orders: Sequence[Order]) -> Tuple[float, int]:
        exits = self._exits(orders)
        total_trades = len(exits)
        if total_trades == 0:
            return 0.0, 0
        profitable = len([o for o in exits if (o.profit_loss or 0.0) > 0])
        return profitable / total_trades, total_trades

    def _calculate_profit_factor(self, orders: Sequence[Order]) -> float:
        pnl = [o.profit_loss for o in self._exits(orders) if o.profit_loss is not None]
        gross_profit = sum(p for p in pnl if p > 0)
        gross_loss = abs(sum(p for p in pnl if p < 0))

        if gross_loss > 0:
            return gross_profit / gross_loss
        if gross_profit > 0:
            return math.inf
        return 0.0

    @staticmethod
    def _calculate_avg_trade_duration(orders: Sequence[Order]) -> float:
        """Average hours between each exit and the latest unmatched entry of its symbol."""
        open_entries: Dict[str, List[int]] = {}
        durations = []

        for order in orders:
            if order.side == OrderSide.BUY:
                open_entries.setdefault(order.symbol, []).append(order.timestamp)
            elif open_entries.get(order.symbol):
                entry_time = open_entries[order.symbol].pop()
                durations.append((order.timestamp - entry_time) / MS_PER_HOUR)

        return float(np.mean(durations)) if durations else 0.0

    @staticmethod
    def _create_empty_metrics(initial_cash: float) -> PerformanceMetrics:
        return PerformanceMetrics(
            total_return=0.0,
            annualized_return=0.0,
            sharpe_ratio=0.0,
            sortino_ratio=0.0,
            max_drawdown=0.0,
            win_ratio=0.0,
            total_trades=0,
            profit_factor=0.0,
            avg_trade_duration=0.0,
            initial_equity=initial_cash,
            final_equity=initial_cash,
        )
