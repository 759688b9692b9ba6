import pytest

from glicko_trader.models import BacktestConfig, RatingSnapshot


HOUR_MS = 60 * 60 * 1000


def make_snapshot(timestamp: int, rating: float, symbol: str = "BTCUSDT") -> RatingSnapshot:
    return RatingSnapshot(
        symbol=symbol,
        timestamp=timestamp,
        rating=rating,
        rating_deviation=100.0,
        volatility=0.06,
        performance_score=0.5,
    )


def make_candle(open_time: int, open_price: float, close_price: float, taker_buy: float,
                volume: float = 10.0, symbol: str = "BTCUSDT") -> dict:
    return {
        "symbol": symbol,
        "open_time": open_time,
        "close_time": open_time + HOUR_MS - 1,
        "open": open_price,
        "high": max(open_price, close_price),
        "low": min(open_price, close_price),
        "close": close_price,
        "volume": volume,
        "taker_buy_base_asset_volume": taker_buy,
        "number_of_trades": 42,
    }


@pytest.fixture
def backtest_config() -> BacktestConfig:
    return BacktestConfig(
        base_asset="btc",
        z_score_threshold=1.0,
        moving_averages=2,
        profit_percent=5.0,
        stop_loss_percent=2.5,
        start_time=0,
        end_time=10 * HOUR_MS,
    )


@pytest.fixture
def zscore_round_trip_ratings():
    """Ratings producing a BUY at the third point and a SELL at the fourth."""
    return [
        make_snapshot(1 * HOUR_MS, 1500.0),
        make_snapshot(2 * HOUR_MS, 1510.0),
        make_snapshot(3 * HOUR_MS, 1600.0),
        make_snapshot(4 * HOUR_MS, 1400.0),
    ]


@pytest.fixture
def take_profit_ratings():
    """Ratings producing a BUY at the third point and a take-profit exit at the fourth."""
    return [
        make_snapshot(1 * HOUR_MS, 1500.0),
        make_snapshot(2 * HOUR_MS, 1510.0),
        make_snapshot(3 * HOUR_MS, 1600.0),
        make_snapshot(4 * HOUR_MS, 1700.0),
    ]
