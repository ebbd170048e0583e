import math
import random

import pytest

from core.domain import Candle, InvalidInputError, MarketSeries
from core.optimizer import TradeOptimizer, OptimizerConfig, optimize, buy_hold_baseline, compute_stats


def _make_candles(prices):
    candles = []
    ts = 1700000000000
    for price in prices:
        candles.append(
            Candle(
                timestamp=ts,
                open=price,
                high=price * 1.01,
                low=price * 0.99,
                close=price,
                volume=1000.0,
            )
        )
        ts += 60_000
    return candles


def _brute_force_best(closes, balance):
    """Best total over every set of non-overlapping strictly profitable trades."""
    n = len(closes)
    memo = {}

    def best_from(start):
        if start in memo:
            return memo[start]
        value = 0.0
        for entry in range(start, n):
            for exit_ in range(entry + 1, n):
                profit = (closes[exit_] - closes[entry]) / closes[entry] * balance
                if profit > 0:
                    value = max(value, profit + best_from(exit_))
        memo[start] = value
        return value

    return best_from(0)


def test_flat_series_has_no_trades():
    result = optimize(_make_candles([10, 10, 10]), 1000)
    assert result.trades == ()
    assert result.total_profit == 0
    assert result.average_profit_percentage is None
    assert result.best_trade is None
    assert "no_trades" in result.warnings


def test_tie_between_two_trade_paths_keeps_single_early_entry():
    # buy@10/sell@30 and buy@10/sell@20 + buy@15/sell@30 both reach 2000;
    # strict improvement while scanning entries ascending keeps entry 0 at exit 3
    result = optimize(_make_candles([10, 20, 15, 30]), 1000)
    assert result.total_profit == 2000
    assert [(t.entry_index, t.exit_index) for t in result.trades] == [(0, 3)]
    assert result.trades[0].profit == 2000
    assert result.trades[0].profit_percentage == 200


def test_two_trades_when_they_beat_a_single_trade():
    result = optimize(_make_candles([10, 20, 10, 20]), 1000)
    assert [(t.entry_index, t.exit_index) for t in result.trades] == [(0, 1), (2, 3)]
    assert result.total_profit == 2000
    assert result.average_profit_percentage == 100
    assert result.best_trade == result.trades[0]


def test_trade_fields_follow_candles():
    candles = _make_candles([100, 90, 120, 110])
    result = optimize(candles, 10000)
    trade = result.trades[0]
    assert (trade.entry_index, trade.exit_index) == (1, 2)
    assert trade.entry_time == candles[1].timestamp
    assert trade.exit_time == candles[2].timestamp
    assert trade.entry_price == 90
    assert trade.exit_price == 120
    assert trade.profit == pytest.approx((120 - 90) / 90 * 10000)


def test_diagnostic_counts():
    result = optimize(_make_candles([5, 4, 3, 2, 1]), 1000)
    assert result.entry_exit_pairs_tested == 20
    assert result.combinations_tested == 10
    assert result.candles_analyzed == 5


def test_single_candle_series():
    result = optimize(_make_candles([42]), 1000)
    assert result.trades == ()
    assert result.buy_hold.profit == 0
    assert result.buy_hold.profit_percentage == 0
    assert result.entry_exit_pairs_tested == 0
    assert "insufficient_data" in result.warnings


def test_empty_series_is_tolerated():
    result = optimize([], 1000)
    assert result.trades == ()
    assert result.total_profit == 0
    assert result.buy_hold.start_price is None
    assert result.warnings == ("no_data",)


def test_buy_hold_baseline():
    candles = _make_candles([100, 80, 150])
    baseline = buy_hold_baseline(candles, 1000)
    assert baseline.profit == pytest.approx(500)
    assert baseline.profit_percentage == pytest.approx(50)
    assert baseline.start_time == candles[0].timestamp
    assert baseline.end_price == 150
    result = optimize(candles, 1000)
    assert result.buy_hold == baseline
    assert result.beats_buy_hold


@pytest.mark.parametrize("balance", [0, -1, float("nan"), float("inf")])
def test_rejects_invalid_balance(balance):
    with pytest.raises(InvalidInputError):
        optimize(_make_candles([1, 2]), balance)


@pytest.mark.parametrize("bad_close", [float("nan"), float("inf"), 0.0, -3.0])
def test_rejects_invalid_close(bad_close):
    candles = _make_candles([1, 2, 3])
    candles[1] = Candle(candles[1].timestamp, 1, 1, 1, bad_close, 1)
    with pytest.raises(InvalidInputError):
        optimize(candles, 1000)


def test_market_series_carries_symbol_and_timeframe():
    series = MarketSeries("BTCUSDT", _make_candles([1, 2]), timeframe="1h")
    result = TradeOptimizer(OptimizerConfig(initial_balance=500)).run(series)
    assert result.symbol == "BTCUSDT"
    assert result.timeframe == "1h"
    assert result.initial_balance == 500
    assert result.total_profit == 500


def _random_closes(rng, n):
    price = 100.0
    closes = []
    for _ in range(n):
        price = max(1.0, price * (1 + rng.uniform(-0.05, 0.05)))
        closes.append(round(price, 2))
    return closes


@pytest.mark.parametrize("seed", range(8))
def test_properties_on_random_series(seed):
    rng = random.Random(seed)
    closes = _random_closes(rng, rng.randint(2, 40))
    result = optimize(_make_candles(closes), 1000)

    for trade in result.trades:
        assert trade.entry_index < trade.exit_index
        assert closes[trade.entry_index] < closes[trade.exit_index]
        assert trade.profit > 0

    ordered = sorted(result.trades, key=lambda t: t.entry_index)
    for current, following in zip(ordered, ordered[1:]):
        assert current.exit_index <= following.entry_index

    assert result.total_profit == sum(t.profit for t in result.trades)
    assert result.total_profit == pytest.approx(_brute_force_best(closes, 1000))


@pytest.mark.parametrize("seed", range(5))
def test_appending_a_candle_never_lowers_profit(seed):
    rng = random.Random(100 + seed)
    closes = _random_closes(rng, 30)
    previous = 0.0
    for n in range(1, len(closes) + 1):
        total = optimize(_make_candles(closes[:n]), 1000).total_profit
        assert total >= previous
        previous = total


def test_runs_are_deterministic():
    closes = _random_closes(random.Random(7), 60)
    first = optimize(_make_candles(closes), 1000)
    second = optimize(_make_candles(closes), 1000)
    assert first.trades == second.trades
    assert first == second


def test_compute_stats_empty_and_best_trade_tie():
    empty = compute_stats([], 1000)
    assert empty.total_profit == 0
    assert empty.average_profit_percentage is None
    assert empty.best_trade is None

    result = optimize(_make_candles([10, 20, 10, 20]), 1000)
    stats = compute_stats(result.trades, 1000)
    assert stats.best_trade is result.trades[0]
    assert math.isclose(stats.total_profit_percentage, 200)
