import argparse
import json
import sys
from datetime import datetime, timezone
from typing import List, Optional

from app.use_cases import run_analysis, AnalysisRequest
from config.config import Config
from core.domain import FetchError, InvalidInputError, NoViableTimeframeError


def _to_millis(value: str) -> int:
    """Milliseconds since epoch from an integer string or an ISO date (naive means UTC)."""
    if value.isdigit():
        return int(value)
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}") from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def _timeframes(value: str) -> List[str]:
    return [tf.strip() for tf in value.split(",") if tf.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Optimal non-overlapping trades vs buy-and-hold")
    parser.add_argument("--mode", choices=["analyze", "scan"], required=True)
    parser.add_argument("--symbol", required=True)
    parser.add_argument("--start", type=_to_millis, required=True)
    parser.add_argument("--end", type=_to_millis, required=True)
    parser.add_argument("--timeframe", default="1h")
    parser.add_argument("--timeframes", type=_timeframes, default=None)
    parser.add_argument("--initial-balance", type=float, default=Config.INITIAL_BALANCE)
    parser.add_argument("--source", choices=list(Config.VALID_DATA_SOURCES), default=None)
    parser.add_argument("--workers", type=int, default=Config.SCAN_MAX_WORKERS)
    parser.add_argument("--save", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    request = AnalysisRequest(
        symbol=args.symbol,
        start_time=args.start,
        end_time=args.end,
        initial_balance=args.initial_balance,
        timeframe=args.timeframe if args.mode == "analyze" else None,
        timeframes=tuple(args.timeframes or ()),
        data_source=args.source,
        max_workers=args.workers,
        save_results=args.save,
    )
    try:
        report = run_analysis(request)
    except (InvalidInputError, FetchError, NoViableTimeframeError) as e:
        print(json.dumps({"error": type(e).__name__, "message": str(e)}, indent=2), file=sys.stderr)
        return 1

    print(json.dumps(report.to_dict(), indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
