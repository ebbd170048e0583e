import math
import numbers
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from core.domain import (
    AnalysisResult,
    Candle,
    InvalidInputError,
    MarketSeries,
    Trade,
)
from core.optimizer.baseline import buy_hold_baseline
from core.optimizer.metrics import compute_stats


@dataclass(frozen=True)
class OptimizerConfig:
    initial_balance: float = 100000.0


class TradeOptimizer:
    """Maximum-profit set of non-overlapping long trades over one series.

    ``best[i]`` is the best total profit using candles ``0..i``. Each index
    keeps a back-pointer instead of a copy of its trade list: ``None`` when
    the value was carried over from ``i - 1``, otherwise the entry index
    ``j`` of the trade closing at ``i``. The sequence is rebuilt once, from
    the last candle backwards.
    """

    def __init__(self, config: Optional[OptimizerConfig] = None) -> None:
        self.config = config or OptimizerConfig()

    def run(self, series: Union[MarketSeries, Sequence[Candle]]) -> AnalysisResult:
        symbol = timeframe = None
        if isinstance(series, MarketSeries):
            symbol, timeframe = series.symbol, series.timeframe
            candles = series.candles
        else:
            candles = tuple(series)

        balance = self.config.initial_balance
        _validate(candles, balance)
        closes = [c.close for c in candles]
        n = len(closes)

        trades = self._build_trades(candles, self._search(closes, balance), balance)
        stats = compute_stats(trades, balance)
        return AnalysisResult(
            trades=tuple(trades),
            total_profit=stats.total_profit,
            total_profit_percentage=stats.total_profit_percentage,
            average_profit_percentage=stats.average_profit_percentage,
            best_trade=stats.best_trade,
            buy_hold=buy_hold_baseline(candles, balance),
            entry_exit_pairs_tested=n * (n - 1),
            combinations_tested=n * (n - 1) // 2,
            candles_analyzed=n,
            initial_balance=balance,
            symbol=symbol,
            timeframe=timeframe,
            warnings=_warnings(n, trades),
        )

    def _search(self, closes: List[float], balance: float) -> List[Tuple[int, int]]:
        n = len(closes)
        if n < 2:
            return []

        best = [0.0] * n
        entry_of: List[Optional[int]] = [None] * n

        for i in range(1, n):
            best[i] = best[i - 1]
            sell_price = closes[i]
            for j in range(i):
                buy_price = closes[j]
                profit = (sell_price - buy_price) / buy_price * balance
                if profit > 0:
                    candidate = best[j] + profit
                    # strict: equal totals keep the smallest entry index
                    if candidate > best[i]:
                        best[i] = candidate
                        entry_of[i] = j

        pairs: List[Tuple[int, int]] = []
        i = n - 1
        while i > 0:
            j = entry_of[i]
            if j is None:
                i -= 1
            else:
                pairs.append((j, i))
                i = j
        pairs.reverse()
        return pairs

    def _build_trades(
        self,
        candles: Sequence[Candle],
        pairs: List[Tuple[int, int]],
        balance: float,
    ) -> List[Trade]:
        trades: List[Trade] = []
        for entry, exit_ in pairs:
            buy, sell = candles[entry], candles[exit_]
            profit = (sell.close - buy.close) / buy.close * balance
            trades.append(
                Trade(
                    entry_index=entry,
                    exit_index=exit_,
                    entry_time=buy.timestamp,
                    exit_time=sell.timestamp,
                    entry_price=buy.close,
                    exit_price=sell.close,
                    profit=profit,
                    profit_percentage=profit / balance * 100,
                )
            )
        return trades


def optimize(
    series: Union[MarketSeries, Sequence[Candle]],
    initial_balance: float = OptimizerConfig.initial_balance,
) -> AnalysisResult:
    return TradeOptimizer(OptimizerConfig(initial_balance=initial_balance)).run(series)


def validate_balance(balance: float) -> None:
    if isinstance(balance, bool) or not isinstance(balance, numbers.Real) or not math.isfinite(balance):
        raise InvalidInputError(f"initial balance must be a finite number, got {balance!r}")
    if balance <= 0:
        raise InvalidInputError(f"initial balance must be positive, got {balance}")


def _validate(candles: Sequence[Candle], balance: float) -> None:
    validate_balance(balance)
    for idx, candle in enumerate(candles):
        close = candle.close
        if isinstance(close, bool) or not isinstance(close, numbers.Real) or not math.isfinite(close):
            raise InvalidInputError(f"candle {idx} has a non-finite close: {close!r}")
        if close <= 0:
            raise InvalidInputError(f"candle {idx} has a non-positive close: {close}")


def _warnings(n: int, trades: List[Trade]) -> Tuple[str, ...]:
    if n == 0:
        return ("no_data",)
    if n < 2:
        return ("insufficient_data", "no_trades")
    if not trades:
        return ("no_trades",)
    return ()
