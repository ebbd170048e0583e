from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence, Tuple, Union

from core.domain import (
    AnalysisResult,
    Candle,
    FetchError,
    InvalidInputError,
    MarketSeries,
    NoViableTimeframeError,
    ScanResult,
    Timeframe,
    TimeframeFailure,
)
from core.optimizer import OptimizerConfig, TradeOptimizer, validate_balance
from utils.logger import logger

FetchFn = Callable[[str, str, int, int], Sequence[Candle]]
TimeframeLike = Union[str, Timeframe]

# A fetch outcome is either the candles or the error that replaced them
_Outcome = Tuple[str, Union[Sequence[Candle], Exception]]

_RECORDED_ERRORS = (FetchError, InvalidInputError)


class TimeframeScanner:
    """Runs the trade optimizer over several timeframes and keeps the best.

    Per-timeframe ``FetchError``/``InvalidInputError`` are recorded in the
    scan's failure log instead of aborting it. Only when every candidate
    fails does ``scan`` raise ``NoViableTimeframeError``.

    With ``max_workers > 1`` fetches run concurrently; outcomes are put
    back in candidate order before optimizing, so the result is the same as
    the sequential scan. ``fetch_timeout`` (seconds) only applies there.
    """

    def __init__(
        self,
        fetch: FetchFn,
        initial_balance: float = OptimizerConfig.initial_balance,
        max_workers: int = 1,
        fetch_timeout: Optional[float] = None,
    ) -> None:
        validate_balance(initial_balance)
        self.fetch = fetch
        self.optimizer = TradeOptimizer(OptimizerConfig(initial_balance=initial_balance))
        self.max_workers = max(1, max_workers)
        self.fetch_timeout = fetch_timeout

    def analyze_one(
        self,
        symbol: str,
        timeframe: TimeframeLike,
        start_time: int,
        end_time: int,
    ) -> AnalysisResult:
        timeframe = _timeframe_value(timeframe)
        candles = self._fetch_one(symbol, timeframe, start_time, end_time)
        return self.optimizer.run(MarketSeries(symbol, candles, timeframe))

    def scan(
        self,
        symbol: str,
        start_time: int,
        end_time: int,
        timeframes: Sequence[TimeframeLike],
    ) -> ScanResult:
        candidates = [_timeframe_value(tf) for tf in timeframes]
        logger.info(f"🔍 Escaneando {len(candidates)} timeframes para {symbol}: {', '.join(candidates)}")

        if self.max_workers > 1 and len(candidates) > 1:
            outcomes = self._fetch_concurrently(symbol, start_time, end_time, candidates)
        else:
            outcomes = self._fetch_sequentially(symbol, start_time, end_time, candidates)

        failures: List[TimeframeFailure] = []
        results: List[AnalysisResult] = []
        best: Optional[AnalysisResult] = None

        for timeframe, outcome in outcomes:
            if isinstance(outcome, Exception):
                failures.append(_record_failure(timeframe, outcome))
                continue
            try:
                result = self.optimizer.run(MarketSeries(symbol, outcome, timeframe))
            except InvalidInputError as e:
                failures.append(_record_failure(timeframe, e))
                continue

            logger.info(
                f"   ✅ {timeframe}: {len(result.trades)} trades, beneficio {result.total_profit:,.2f} "
                f"({result.candles_analyzed} velas)"
            )
            results.append(result)
            # ties keep the earliest candidate
            if best is None or result.total_profit > best.total_profit:
                best = result

        if best is None:
            logger.error(f"❌ Ningún timeframe viable para {symbol}")
            raise NoViableTimeframeError(failures)

        logger.info(f"🏆 Mejor timeframe para {symbol}: {best.timeframe} ({best.total_profit:,.2f})")
        return ScanResult(
            timeframe=best.timeframe,
            result=best,
            failures=tuple(failures),
            results=tuple(results),
        )

    def _fetch_one(self, symbol: str, timeframe: str, start_time: int, end_time: int) -> Sequence[Candle]:
        if not Timeframe.is_valid(timeframe):
            raise InvalidInputError(f"unknown timeframe: {timeframe!r}")
        if end_time < start_time:
            raise InvalidInputError(f"end time {end_time} is before start time {start_time}")
        return self.fetch(symbol, timeframe, start_time, end_time)

    def _fetch_sequentially(
        self,
        symbol: str,
        start_time: int,
        end_time: int,
        candidates: List[str],
    ) -> List[_Outcome]:
        outcomes: List[_Outcome] = []
        for timeframe in candidates:
            try:
                outcomes.append((timeframe, self._fetch_one(symbol, timeframe, start_time, end_time)))
            except _RECORDED_ERRORS as e:
                outcomes.append((timeframe, e))
        return outcomes

    def _fetch_concurrently(
        self,
        symbol: str,
        start_time: int,
        end_time: int,
        candidates: List[str],
    ) -> List[_Outcome]:
        outcomes: List[_Outcome] = []
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(candidates)))
        try:
            futures = [
                executor.submit(self._fetch_one, symbol, timeframe, start_time, end_time)
                for timeframe in candidates
            ]
            # collected in submission order, never arrival order
            for timeframe, future in zip(candidates, futures):
                if self.fetch_timeout is not None:
                    done, _ = wait([future], timeout=self.fetch_timeout)
                    if not done:
                        future.cancel()
                        outcomes.append(
                            (timeframe, FetchError(f"fetch timed out after {self.fetch_timeout}s"))
                        )
                        continue
                # a TimeoutError raised by fetch propagates like any other unexpected error
                try:
                    outcomes.append((timeframe, future.result()))
                except _RECORDED_ERRORS as e:
                    outcomes.append((timeframe, e))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return outcomes


def analyze_one(
    symbol: str,
    timeframe: TimeframeLike,
    start_time: int,
    end_time: int,
    fetch: FetchFn,
    initial_balance: float = OptimizerConfig.initial_balance,
) -> AnalysisResult:
    return TimeframeScanner(fetch, initial_balance=initial_balance).analyze_one(
        symbol, timeframe, start_time, end_time
    )


def scan(
    symbol: str,
    start_time: int,
    end_time: int,
    timeframes: Sequence[TimeframeLike],
    fetch: FetchFn,
    initial_balance: float = OptimizerConfig.initial_balance,
    max_workers: int = 1,
) -> ScanResult:
    return TimeframeScanner(fetch, initial_balance=initial_balance, max_workers=max_workers).scan(
        symbol, start_time, end_time, timeframes
    )


def _timeframe_value(timeframe: TimeframeLike) -> str:
    if isinstance(timeframe, Timeframe):
        return timeframe.value
    return str(timeframe)


def _record_failure(timeframe: str, error: Exception) -> TimeframeFailure:
    reason = error.reason if isinstance(error, FetchError) else str(error)
    logger.warning(f"⚠️ Timeframe {timeframe} descartado ({type(error).__name__}): {reason}")
    return TimeframeFailure(
        timeframe=timeframe,
        reason=reason,
        error_type=type(error).__name__,
        status_code=getattr(error, "status_code", None),
    )
