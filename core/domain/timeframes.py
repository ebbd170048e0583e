from enum import Enum
from typing import Dict


class Timeframe(str, Enum):
    M1 = "1m"
    M3 = "3m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H2 = "2h"
    H4 = "4h"
    H6 = "6h"
    H8 = "8h"
    H12 = "12h"
    D1 = "1d"
    D3 = "3d"
    W1 = "1w"
    MO1 = "1M"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in _BY_VALUE

    @classmethod
    def parse(cls, value: str) -> "Timeframe":
        # "1M" (month) and "1m" (minute) differ only by case, so no normalization
        try:
            return _BY_VALUE[value]
        except KeyError:
            raise ValueError(f"unknown timeframe: {value!r}") from None

    @property
    def minutes(self) -> int:
        return _MINUTES[self]

    @property
    def millis(self) -> int:
        return self.minutes * 60_000


_BY_VALUE: Dict[str, Timeframe] = {tf.value: tf for tf in Timeframe}

_MINUTES: Dict[Timeframe, int] = {
    Timeframe.M1: 1,
    Timeframe.M3: 3,
    Timeframe.M5: 5,
    Timeframe.M15: 15,
    Timeframe.M30: 30,
    Timeframe.H1: 60,
    Timeframe.H2: 120,
    Timeframe.H4: 240,
    Timeframe.H6: 360,
    Timeframe.H8: 480,
    Timeframe.H12: 720,
    Timeframe.D1: 1440,
    Timeframe.D3: 4320,
    Timeframe.W1: 10080,
    Timeframe.MO1: 43200,
}


def candles_in_window(timeframe: str, start_time: int, end_time: int) -> int:
    """Number of candle buckets an inclusive [start, end] window spans."""
    if end_time < start_time:
        return 0
    step = Timeframe.parse(timeframe).millis
    return (end_time - start_time) // step + 1
