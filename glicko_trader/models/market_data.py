# glicko_trader/models/market_data.py
"""
Market data models.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Candle(BaseModel):
    """OHLCV candle with taker-volume split (epoch milliseconds)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    symbol: str = Field(..., min_length=1, description="Trading symbol, e.g. BTCUSDT")
    open_time: int = Field(..., description="Candle open time (ms)")
    close_time: int = Field(..., description="Candle close time (ms)")
    open: float = Field(..., gt=0, description="Opening price")
    high: float = Field(..., gt=0, description="High price")
    low: float = Field(..., gt=0, description="Low price")
    close: float = Field(..., gt=0, description="Closing price")
    volume: float = Field(..., ge=0, description="Base asset volume")
    taker_buy_volume: float = Field(
        ..., ge=0, alias="taker_buy_base_asset_volume",
        description="Base volume bought by takers",
    )
    trade_count: int = Field(default=0, ge=0, alias="number_of_trades", description="Number of trades")
    quote_volume: float = Field(default=0.0, ge=0, alias="quote_asset_volume", description="Quote asset volume")
    taker_buy_quote_volume: float = Field(
        default=0.0, ge=0, alias="taker_buy_quote_asset_volume",
        description="Quote volume bought by takers",
    )

    @field_validator("close_time")
    @classmethod
    def validate_close_after_open(cls, v, info):
        open_time = info.data.get("open_time")
        if open_time is not None and v <= open_time:
            raise ValueError(f"close_time ({v}) must be after open_time ({open_time})")
        return v

    @model_validator(mode="after")
    def validate_taker_volume(self):
        if self.taker_buy_volume > self.volume:
            raise ValueError(
                f"taker_buy_volume ({self.taker_buy_volume}) exceeds volume ({self.volume})"
            )
        return self

    @property
    def taker_sell_volume(self) -> float:
        """Volume sold by takers."""
        return self.volume - self.taker_buy_volume

    def to_dict(self) -> dict:
        """Convert to dictionary using the exchange wire names."""
        return self.model_dump(mode="python", by_alias=True)
