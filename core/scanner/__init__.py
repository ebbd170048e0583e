from .timeframe_scanner import TimeframeScanner, FetchFn, scan, analyze_one

__all__ = ["TimeframeScanner", "FetchFn", "scan", "analyze_one"]
