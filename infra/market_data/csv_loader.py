import csv
import os
from typing import List, Optional, Sequence

from core.domain import Candle, FetchError

REQUIRED_COLUMNS = ("timestamp", "open", "high", "low", "close")


def load_candles_from_csv(path: str) -> List[Candle]:
    candles: List[Candle] = []
    try:
        with open(path, "r", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise FetchError(f"{path}: missing columns {', '.join(missing)}")
            for line_no, row in enumerate(reader, start=2):
                try:
                    candles.append(
                        Candle(
                            timestamp=int(row["timestamp"]),
                            open=float(row["open"]),
                            high=float(row["high"]),
                            low=float(row["low"]),
                            close=float(row["close"]),
                            volume=float(row.get("volume", 0) or 0),
                        )
                    )
                except (TypeError, ValueError) as e:
                    raise FetchError(f"{path}:{line_no}: malformed row", payload=row) from e
    except OSError as e:
        raise FetchError(f"cannot read {path}: {e.strerror or e}") from e
    candles.sort(key=lambda c: c.timestamp)
    return candles


class CsvCandleFetcher:
    """Serves candles from ``<data_dir>/<SYMBOL>_<timeframe>.csv`` files."""

    def __init__(self, data_dir: str, limit: Optional[int] = None) -> None:
        self.data_dir = data_dir
        self.limit = limit

    def path_for(self, symbol: str, timeframe: str) -> str:
        filename = f"{symbol.replace('/', '').upper()}_{timeframe}.csv"
        return os.path.join(self.data_dir, filename)

    def __call__(self, symbol: str, timeframe: str, start_time: int, end_time: int) -> Sequence[Candle]:
        candles = load_candles_from_csv(self.path_for(symbol, timeframe))
        window = [c for c in candles if start_time <= c.timestamp <= end_time]
        if self.limit is not None:
            window = window[: self.limit]
        return window
