from dataclasses import dataclass
from typing import Optional, Tuple

from infra.market_data import build_fetcher
from services.analysis_service import AnalysisReport, AnalysisService


@dataclass(frozen=True)
class AnalysisRequest:
    symbol: str
    start_time: int
    end_time: int
    initial_balance: float
    timeframe: Optional[str] = None
    timeframes: Tuple[str, ...] = ()
    data_source: Optional[str] = None
    max_workers: int = 1
    save_results: bool = False


def run_analysis(request: AnalysisRequest) -> AnalysisReport:
    service = AnalysisService(
        fetcher=build_fetcher(request.data_source),
        initial_balance=request.initial_balance,
        save_results=request.save_results,
        max_workers=request.max_workers,
    )
    return service.run_analysis(
        symbol=request.symbol,
        start_time=request.start_time,
        end_time=request.end_time,
        timeframe=request.timeframe,
        timeframes=request.timeframes or None,
    )
