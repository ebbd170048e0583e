from typing import Optional

from config.config import Config
from core.scanner import FetchFn
from .csv_loader import load_candles_from_csv, CsvCandleFetcher
from .klines_http import KlinesHttpFetcher, parse_klines


def build_fetcher(source: Optional[str] = None) -> FetchFn:
    """Fetcher for ``source`` (``exchange``, ``http`` or ``csv``), defaulting to ``Config.DATA_SOURCE``."""
    source = (source or Config.DATA_SOURCE).lower()
    if source == "exchange":
        from .binance_fetcher import BinanceCandleFetcher

        return BinanceCandleFetcher()
    if source == "http":
        return KlinesHttpFetcher(proxy_params=Config.KLINES_PROXY_MODE)
    if source == "csv":
        return CsvCandleFetcher(Config.CSV_DATA_DIR, limit=Config.CANDLE_LIMIT)
    raise ValueError(f"unknown data source: {source!r}")


__all__ = [
    "build_fetcher",
    "load_candles_from_csv",
    "CsvCandleFetcher",
    "KlinesHttpFetcher",
    "parse_klines",
]
