from .models import (
    Candle,
    MarketSeries,
    Trade,
    BuyHoldBaseline,
    AnalysisResult,
    TimeframeFailure,
    ScanResult,
)
from .errors import InvalidInputError, FetchError, NoViableTimeframeError
from .timeframes import Timeframe, candles_in_window

__all__ = [
    "Candle",
    "MarketSeries",
    "Trade",
    "BuyHoldBaseline",
    "AnalysisResult",
    "TimeframeFailure",
    "ScanResult",
    "InvalidInputError",
    "FetchError",
    "NoViableTimeframeError",
    "Timeframe",
    "candles_in_window",
]
