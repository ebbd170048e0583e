from typing import Sequence

from core.domain import BuyHoldBaseline, Candle


def buy_hold_baseline(candles: Sequence[Candle], initial_balance: float) -> BuyHoldBaseline:
    """Profit of buying the first close and selling the last one.

    Series shorter than two candles report a zero profit.
    """
    if not candles:
        return BuyHoldBaseline()

    first = candles[0]
    last = candles[-1]
    if len(candles) < 2:
        return BuyHoldBaseline(
            start_time=first.timestamp,
            end_time=last.timestamp,
            start_price=first.close,
            end_price=last.close,
        )

    profit = (last.close - first.close) / first.close * initial_balance
    return BuyHoldBaseline(
        profit=profit,
        profit_percentage=profit / initial_balance * 100,
        start_time=first.timestamp,
        end_time=last.timestamp,
        start_price=first.close,
        end_price=last.close,
    )
