from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Candle:
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class MarketSeries:
    symbol: str
    candles: Tuple[Candle, ...]
    timeframe: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.candles, tuple):
            object.__setattr__(self, "candles", tuple(self.candles))

    def __len__(self) -> int:
        return len(self.candles)


@dataclass(frozen=True)
class Trade:
    entry_index: int
    exit_index: int
    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    profit: float
    profit_percentage: float


@dataclass(frozen=True)
class BuyHoldBaseline:
    profit: float = 0.0
    profit_percentage: float = 0.0
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    start_price: Optional[float] = None
    end_price: Optional[float] = None


@dataclass(frozen=True)
class AnalysisResult:
    trades: Tuple[Trade, ...]
    total_profit: float
    total_profit_percentage: float
    average_profit_percentage: Optional[float]
    best_trade: Optional[Trade]
    buy_hold: BuyHoldBaseline
    entry_exit_pairs_tested: int
    combinations_tested: int
    candles_analyzed: int
    initial_balance: float
    symbol: Optional[str] = None
    timeframe: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    @property
    def beats_buy_hold(self) -> bool:
        return self.total_profit > self.buy_hold.profit


@dataclass(frozen=True)
class TimeframeFailure:
    timeframe: str
    reason: str
    error_type: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class ScanResult:
    timeframe: str
    result: AnalysisResult
    failures: Tuple[TimeframeFailure, ...] = ()
    results: Tuple[AnalysisResult, ...] = field(default_factory=tuple)

    @property
    def failed_timeframes(self) -> Tuple[str, ...]:
        return tuple(f.timeframe for f in self.failures)
