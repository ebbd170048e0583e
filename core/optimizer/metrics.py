from dataclasses import dataclass
from typing import Optional, Sequence

from core.domain import Trade


@dataclass(frozen=True)
class TradeStats:
    total_profit: float
    total_profit_percentage: float
    average_profit_percentage: Optional[float]
    best_trade: Optional[Trade]
    trades: int


def compute_stats(trades: Sequence[Trade], initial_balance: float) -> TradeStats:
    trades_count = len(trades)
    total_profit = sum(t.profit for t in trades)
    total_profit_percentage = total_profit / initial_balance * 100
    average = (
        sum(t.profit_percentage for t in trades) / trades_count if trades_count > 0 else None
    )
    return TradeStats(
        total_profit=total_profit,
        total_profit_percentage=total_profit_percentage,
        average_profit_percentage=average,
        best_trade=_best_trade(trades),
        trades=trades_count,
    )


def _best_trade(trades: Sequence[Trade]) -> Optional[Trade]:
    best = None
    for trade in trades:
        if best is None or trade.profit_percentage > best.profit_percentage:
            best = trade
    return best
