# glicko_trader/models/orders.py
"""
Signal and order models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SignalAction(str, Enum):
    """Action derived from a rating z-score."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class OrderSide(str, Enum):
    """Order side."""
    BUY = "BUY"
    SELL = "SELL"


class OrderReason(str, Enum):
    """Why an order was placed."""
    ENTRY = "ENTRY"
    EXIT_ZSCORE = "EXIT_ZSCORE"
    EXIT_STOP = "EXIT_STOP"
    EXIT_PROFIT = "EXIT_PROFIT"


class Signal(BaseModel):
    """Z-score signal for one rating observation."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(..., description="Rating timestamp (ms)")
    z_score: float = Field(..., description="Z-score against the preceding window")
    action: SignalAction = Field(..., description="BUY, SELL or HOLD")
    mean: float = Field(default=0.0, description="Rolling mean of the window")
    std_dev: float = Field(default=0.0, description="Rolling population std dev of the window")


class Order(BaseModel):
    """Executed backtest order. Appended to the ledger and never modified."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., description="Trading symbol")
    side: OrderSide = Field(..., description="BUY or SELL")
    quantity: float = Field(..., description="Filled quantity")
    price: float = Field(..., description="Fill price")
    timestamp: int = Field(..., description="Fill time (ms)")
    reason: OrderReason = Field(..., description="Entry or exit reason")
    profit_loss: Optional[float] = Field(None, description="Realized P&L (SELL only)")
    profit_loss_percent: Optional[float] = Field(None, description="Realized P&L percent (SELL only)")

    @property
    def value(self) -> float:
        """Notional value of the fill."""
        return self.quantity * self.price

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump(mode="json")
