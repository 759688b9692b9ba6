import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from conftest import HOUR_MS, make_candle
from glicko_trader.cli import main
from glicko_trader.utils.time_helpers import months_to_ms


QUIET_CONFIG = "logging:\n  level: ERROR\n"


def _backtest_payload(ratings, **overrides):
    config = {
        "base_asset": "BTC",
        "z_score_threshold": 1.0,
        "moving_averages": 2,
        "profit_percent": 5.0,
        "stop_loss_percent": 2.5,
        "start_time": 0,
        "end_time": 10 * HOUR_MS,
    }
    config.update(overrides)
    return {"config": config, "ratings": [r.to_dict() for r in ratings]}


@pytest.fixture
def invoke():
    runner = CliRunner()

    def _invoke(args, payload):
        with runner.isolated_filesystem():
            Path("quiet.yaml").write_text(QUIET_CONFIG)
            Path("input.json").write_text(payload if isinstance(payload, str) else json.dumps(payload))
            result = runner.invoke(main, ["--config", "quiet.yaml", "--input", "input.json", *args])
            written = sorted(p.name for p in Path(".").glob("out/*"))
        return result, written

    return _invoke


def test_calculate_glicko(invoke):
    candles = [make_candle(i * HOUR_MS, 100.0, 101.0 + i, taker_buy=7.0) for i in range(3)]

    result, _ = invoke(["calculate-glicko"], candles)

    assert result.exit_code == 0
    ratings = json.loads(result.output)
    assert [r["timestamp"] for r in ratings] == [0, HOUR_MS, 2 * HOUR_MS]
    assert all(r["performance_score"] == 1.0 for r in ratings)


def test_run_backtest(invoke, zscore_round_trip_ratings):
    result, written = invoke(["run-backtest", "--output", "out"], _backtest_payload(zscore_round_trip_ratings))

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["symbol"] == "BTCUSDT"
    assert data["total_trades"] == 1
    assert [o["reason"] for o in data["orders"]] == ["ENTRY", "EXIT_ZSCORE"]
    assert written == [
        f"BTCUSDT_0_{10 * HOUR_MS}_orders.csv",
        f"BTCUSDT_0_{10 * HOUR_MS}_results.json",
    ]


def test_run_windowed_backtest(invoke, zscore_round_trip_ratings):
    payload = _backtest_payload(zscore_round_trip_ratings, end_time=months_to_ms(24), window_size=12)

    result, _ = invoke(["run-windowed-backtest"], payload)

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert len(data["results"]) == 1
    assert data["summary"]["window_count"] == 1


def test_invalid_json_exits_with_error(invoke):
    result, _ = invoke(["calculate-glicko"], "{not json")

    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_missing_backtest_config_exits_with_error(invoke, zscore_round_trip_ratings):
    payload = {"ratings": [r.to_dict() for r in zscore_round_trip_ratings]}

    result, _ = invoke(["run-backtest"], payload)

    assert result.exit_code == 1
    assert "missing 'config'" in result.output


def _reject_constant(token):
    raise ValueError(f"non-standard JSON token {token}")


def test_unbounded_ratios_are_written_as_null(invoke, take_profit_ratings):
    payload = _backtest_payload(take_profit_ratings, end_time=10_000)

    result, _ = invoke(["run-backtest"], payload)

    assert result.exit_code == 0
    data = json.loads(result.output, parse_constant=_reject_constant)
    assert data["profit_factor"] is None
    assert data["annualized_return"] is None
    assert [o["reason"] for o in data["orders"]] == ["ENTRY", "EXIT_PROFIT"]
