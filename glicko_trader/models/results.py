# glicko_trader/models/results.py
"""
Backtest results and performance metrics models.
"""

import json
import math
from typing import Any, Dict, List

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from .orders import Order


def json_safe(value: Any) -> Any:
    """
    Replace non-finite floats with None, recursively.

    Ratios such as an unbounded profit factor are kept as inf in memory and
    written as null so the output stays strict JSON.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    return value


class EquityPoint(BaseModel):
    """Equity curve point."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(..., description="Timestamp (ms)")
    equity: float = Field(..., description="Cash plus marked-to-market positions")


class PerformanceMetrics(BaseModel):
    """Return and risk statistics of one backtest run."""

    model_config = ConfigDict(frozen=True)

    # Return metrics
    total_return: float = Field(..., description="Total return as a fraction")
    annualized_return: float = Field(..., description="Annualized return as a fraction")

    # Risk metrics
    sharpe_ratio: float = Field(..., description="Annualized Sharpe ratio")
    sortino_ratio: float = Field(..., description="Annualized Sortino ratio")
    calmar_ratio: float = Field(default=0.0, description="Annualized return over max drawdown")
    alpha: float = Field(default=0.0, description="Reserved, no benchmark comparison")
    max_drawdown: float = Field(..., description="Maximum drawdown as a fraction of peak")
    volatility: float = Field(default=0.0, description="Population std dev of per-step returns")

    # Trading metrics
    win_ratio: float = Field(..., description="Profitable exits over all exits")
    total_trades: int = Field(..., description="Number of exits")
    profit_factor: float = Field(..., description="Gross profit over gross loss")
    avg_trade_duration: float = Field(..., description="Average holding time in hours")

    # Portfolio
    initial_equity: float = Field(default=0.0, description="Starting cash")
    final_equity: float = Field(default=0.0, description="Last equity curve value")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump(mode="python")


class BacktestResult(BaseModel):
    """Complete backtest result for one (possibly windowed) run."""

    symbol: str = Field(..., description="Traded symbol")
    start_time: int = Field(..., description="Run start time (ms)")
    end_time: int = Field(..., description="Run end time (ms)")
    config: Dict[str, Any] = Field(..., description="Backtest configuration")
    metrics: PerformanceMetrics = Field(..., description="Performance metrics")
    orders: List[Order] = Field(default_factory=list, description="Order ledger")
    equity_curve: List[EquityPoint] = Field(default_factory=list, description="Equity curve")

    def to_dict(self, include_equity_curve: bool = False) -> dict:
        """Flatten metrics next to the order ledger for serialization."""
        data = {
            'symbol': self.symbol,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'config': self.config,
            **self.metrics.to_dict(),
            'orders': [order.to_dict() for order in self.orders],
        }
        if include_equity_curve:
            data['equity_curve'] = [point.model_dump() for point in self.equity_curve]
        return data

    def orders_frame(self) -> pd.DataFrame:
        """Order ledger as a DataFrame (one row per order)."""
        columns = list(Order.model_fields)
        return pd.DataFrame([order.to_dict() for order in self.orders], columns=columns)

    def save_to_json(self, filepath: str) -> None:
        """Save results, including the equity curve, to a JSON file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(json_safe(self.to_dict(include_equity_curve=True)), f, indent=2, allow_nan=False)

    def save_to_csv(self, filepath: str) -> None:
        """Save the order ledger to a CSV file."""
        self.orders_frame().to_csv(filepath, index=False)


class WindowSummary(BaseModel):
    """Aggregate view over the windows of a walk-forward run."""

    window_count: int = Field(..., description="Number of evaluated windows")
    profitable_windows: int = Field(..., description="Windows with positive total return")
    window_win_rate: float = Field(..., description="Profitable windows over all windows")
    mean_return: float = Field(..., description="Mean window total return")
    median_return: float = Field(..., description="Median window total return")
    return_std_dev: float = Field(..., description="Population std dev of window returns")
    best_return: float = Field(..., description="Best window total return")
    worst_return: float = Field(..., description="Worst window total return")
    mean_sharpe_ratio: float = Field(..., description="Mean window Sharpe ratio")
    total_trades: int = Field(..., description="Exits across all windows")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump(mode="python")
