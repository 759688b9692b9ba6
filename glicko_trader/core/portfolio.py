# glicko_trader/core/portfolio.py
"""
Portfolio management with one-cancels-other position exits.
"""

from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass
import logging

from ..models.orders import Order, OrderReason, OrderSide
from ..models.results import EquityPoint


logger = logging.getLogger(__name__)


@dataclass
class Position:
    """Open long position with fixed OCO exit levels."""
    symbol: str
    quantity: float
    entry_price: float
    entry_time: int
    stop_loss_price: float
    take_profit_price: float

    @property
    def cost_basis(self) -> float:
        """Cash committed at entry."""
        return self.quantity * self.entry_price

    def market_value(self, price: float) -> float:
        """Value of the position at a price."""
        return self.quantity * price


class Portfolio:
    """
    Cash, open positions, order ledger and equity curve of one backtest.

    At most one position per symbol is open at any time. The ledger and the
    equity curve are append-only.
    """

    def __init__(self, initial_cash: float = 10000.0):
        """
        Initialize portfolio.

        Args:
            initial_cash: Starting cash amount
        """
        self.initial_cash = initial_cash
        self.cash = initial_cash
        self.positions: Dict[str, Position] = {}
        self.orders: List[Order] = []
        self.equity_curve: List[EquityPoint] = [EquityPoint(timestamp=0, equity=initial_cash)]

        logger.debug(f"Portfolio initialized with ${initial_cash:,.2f}")

    def has_position(self, symbol: str) -> bool:
        """Whether a position is open for the symbol."""
        return symbol in self.positions

    def get_position(self, symbol: str) -> Optional[Position]:
        """Open position for the symbol, or None."""
        return self.positions.get(symbol)

    def portfolio_value(self, current_prices: Mapping[str, float]) -> float:
        """
        Cash plus positions marked at the given prices.

        Positions without a price are left out of the valuation.
        """
        total_value = self.cash
        for symbol, position in self.positions.items():
            price = current_prices.get(symbol)
            if price is not None:
                total_value += position.market_value(price)
        return total_value

    def open_position(
        self,
        symbol: str,
        price: float,
        timestamp: int,
        profit_percent: float,
        stop_loss_percent: float,
        allocation_fraction: float = 0.95,
    ) -> Optional[Order]:
        """
        Enter a long position with a fraction of available cash.

        Args:
            symbol: Symbol to buy
            price: Fill price
            timestamp: Fill time (ms)
            profit_percent: Take-profit distance above entry, percent
            stop_loss_percent: Stop-loss distance below entry, percent
            allocation_fraction: Share of current cash to commit

        Returns:
            The ENTRY order, or None if a position is already open or cash
            does not cover the cost
        """
        if symbol in self.positions:
            logger.debug(f"Skip entry for {symbol}: position already open")
            return None

        quantity = self.cash * allocation_fraction / price
        cost = quantity * price
        if cost > self.cash:
            logger.debug(f"Skip entry for {symbol}: need ${cost:.2f}, have ${self.cash:.2f}")
            return None

        self.cash -= cost
        self.positions[symbol] = Position(
            symbol=symbol,
            quantity=quantity,
            entry_price=price,
            entry_time=timestamp,
            stop_loss_price=price * (1 - stop_loss_percent / 100),
            take_profit_price=price * (1 + profit_percent / 100),
        )

        order = Order(
            symbol=symbol,
            side=OrderSide.BUY,
            quantity=quantity,
            price=price,
            timestamp=timestamp,
            reason=OrderReason.ENTRY,
        )
        self.orders.append(order)

        logger.debug(f"BUY {quantity:.6f} {symbol} @ {price:.4f}")
        return order

    def close_position(
        self,
        symbol: str,
        price: float,
        timestamp: int,
        reason: OrderReason,
    ) -> Optional[Order]:
        """
        Exit the open position for a symbol.

        Args:
            symbol: Symbol to sell
            price: Fill price
            timestamp: Fill time (ms)
            reason: Exit reason

        Returns:
            The SELL order with realized P&L, or None if flat
        """
        position = self.positions.pop(symbol, None)
        if position is None:
            return None

        proceeds = position.market_value(price)
        self.cash += proceeds

        profit_loss = proceeds - position.cost_basis
        profit_loss_percent = (price - position.entry_price) / position.entry_price * 100

        order = Order(
            symbol=symbol,
            side=OrderSide.SELL,
            quantity=position.quantity,
            price=price,
            timestamp=timestamp,
            reason=reason,
            profit_loss=profit_loss,
            profit_loss_percent=profit_loss_percent,
        )
        self.orders.append(order)

        logger.debug(f"SELL {position.quantity:.6f} {symbol} @ {price:.4f} ({reason.value}, P&L {profit_loss:+.2f})")
        return order

    @staticmethod
    def check_exit(position: Position, price: float) -> Optional[OrderReason]:
        """
        OCO exit triggered at a price, if any.

        The stop-loss is checked first and wins when both levels are crossed.
        """
        if price <= position.stop_loss_price:
            return OrderReason.EXIT_STOP
        if price >= position.take_profit_price:
            return OrderReason.EXIT_PROFIT
        return None

    def apply_exits(self, current_prices: Mapping[str, float], timestamp: int) -> List[Order]:
        """Close every position whose OCO level is crossed at the given prices."""
        triggered = []
        for symbol, position in self.positions.items():
            price = current_prices.get(symbol)
            if price is None:
                continue
            reason = self.check_exit(position, price)
            if reason is not None:
                triggered.append((symbol, price, reason))

        return [self.close_position(symbol, price, timestamp, reason) for symbol, price, reason in triggered]

    def update_equity_curve(self, timestamp: int, current_prices: Mapping[str, float]) -> float:
        """Append the current portfolio value to the equity curve."""
        value = self.portfolio_value(current_prices)
        self.equity_curve.append(EquityPoint(timestamp=timestamp, equity=value))
        return value

    def get_portfolio_summary(self) -> Dict:
        """
        Get portfolio summary.

        Returns:
            Dictionary with portfolio summary
        """
        final_equity = self.equity_curve[-1].equity
        return {
            'initial_cash': self.initial_cash,
            'current_cash': self.cash,
            'final_equity': final_equity,
            'total_pnl': final_equity - self.initial_cash,
            'open_positions': len(self.positions),
            'num_orders': len(self.orders),
        }
