import logging
import math

import pytest

from conftest import HOUR_MS, make_snapshot
from glicko_trader.core.errors import InvalidRecordError
from glicko_trader.core.simulator import PortfolioSimulator, run_backtest, synthesize_prices
from glicko_trader.models import OrderReason, Signal, SignalAction, json_safe


def _signal(timestamp, action):
    return Signal(timestamp=timestamp, z_score=0.0, action=action)


def test_synthetic_prices_follow_ratings():
    snapshots = [make_snapshot(2, 1650.0), make_snapshot(1, 1500.0), make_snapshot(1, 1800.0, symbol="ETHUSDT")]

    prices = synthesize_prices(snapshots, "BTCUSDT")

    assert prices == [(1, pytest.approx(100.0)), (2, pytest.approx(110.0))]


def test_only_matching_timestamps_are_processed(backtest_config):
    simulator = PortfolioSimulator(backtest_config)
    signals = [_signal(1, SignalAction.BUY), _signal(3, SignalAction.HOLD), _signal(5, SignalAction.HOLD)]
    prices = [(2, 100.0), (3, 101.0), (4, 102.0), (6, 103.0)]

    portfolio = simulator.simulate(signals, prices)

    assert simulator.processed_ticks == 1
    assert [p.timestamp for p in portfolio.equity_curve] == [0, 3]
    assert portfolio.orders == []


def test_non_positive_price_is_rejected(backtest_config):
    simulator = PortfolioSimulator(backtest_config)

    with pytest.raises(InvalidRecordError, match="index 1"):
        simulator.simulate([_signal(1, SignalAction.BUY)], [(1, 100.0), (2, 0.0)])


def test_out_of_order_prices_are_rejected(backtest_config):
    simulator = PortfolioSimulator(backtest_config)

    with pytest.raises(InvalidRecordError):
        simulator.simulate([], [(2, 100.0), (1, 100.0)])


def test_stop_loss_exit_on_external_prices(backtest_config):
    simulator = PortfolioSimulator(backtest_config)
    signals = [_signal(1, SignalAction.BUY), _signal(2, SignalAction.HOLD)]

    portfolio = simulator.simulate(signals, [(1, 100.0), (2, 97.0)])

    assert [o.reason for o in portfolio.orders] == [OrderReason.ENTRY, OrderReason.EXIT_STOP]
    assert portfolio.orders[1].profit_loss < 0


def test_zscore_entry_and_exit(backtest_config, zscore_round_trip_ratings):
    result = run_backtest(backtest_config, zscore_round_trip_ratings)

    assert result.symbol == "BTCUSDT"
    assert [o.reason for o in result.orders] == [OrderReason.ENTRY, OrderReason.EXIT_ZSCORE]
    assert result.orders[0].timestamp == 3 * HOUR_MS
    assert result.orders[0].price == pytest.approx(100.0 * 1600.0 / 1500.0)
    assert result.orders[1].price == pytest.approx(100.0 * 1400.0 / 1500.0)
    assert result.metrics.total_trades == 1
    assert result.metrics.win_ratio == 0.0
    assert result.metrics.total_return == pytest.approx(0.95 * (1400.0 / 1600.0 - 1))
    assert result.metrics.final_equity == pytest.approx(10000.0 * (1 + 0.95 * (1400.0 / 1600.0 - 1)))
    assert len(result.equity_curve) == 3


def test_dict_ratings_are_accepted(backtest_config, zscore_round_trip_ratings):
    raw = [snapshot.to_dict() for snapshot in zscore_round_trip_ratings]

    result = run_backtest(backtest_config, raw)

    assert len(result.orders) == 2


def test_malformed_rating_is_rejected(backtest_config):
    with pytest.raises(InvalidRecordError, match="index 0"):
        run_backtest(backtest_config, [{"symbol": "BTCUSDT", "timestamp": 1}])


def test_result_serialization(backtest_config, zscore_round_trip_ratings, tmp_path):
    result = run_backtest(backtest_config, zscore_round_trip_ratings)

    data = result.to_dict()
    assert data['total_trades'] == 1
    assert data['orders'][0]['reason'] == "ENTRY"
    assert 'equity_curve' not in data

    csv_path = tmp_path / "orders.csv"
    result.save_to_csv(str(csv_path))
    assert csv_path.read_text().splitlines()[0].startswith("symbol,side,quantity")

    json_path = tmp_path / "results.json"
    result.save_to_json(str(json_path))
    assert '"equity_curve"' in json_path.read_text()


def test_take_profit_over_a_short_range(backtest_config, take_profit_ratings):
    config = backtest_config.for_window(0, 10_000)

    result = run_backtest(config, take_profit_ratings)

    assert [o.reason for o in result.orders] == [OrderReason.ENTRY, OrderReason.EXIT_PROFIT]
    assert result.metrics.total_return == pytest.approx(0.95 * (1700.0 / 1600.0 - 1))
    assert result.metrics.annualized_return == math.inf
    assert result.metrics.profit_factor == math.inf
    assert result.metrics.calmar_ratio == 0.0

    data = json_safe(result.to_dict())
    assert data['annualized_return'] is None
    assert data['profit_factor'] is None
    assert data['total_return'] == pytest.approx(result.metrics.total_return)


def test_simulation_summary_is_logged(backtest_config, zscore_round_trip_ratings, caplog):
    caplog.set_level(logging.DEBUG, logger="glicko_trader.core.simulator")

    run_backtest(backtest_config, zscore_round_trip_ratings)

    assert "2 orders, 0 open at end" in caplog.text
