from typing import Any, Optional, Sequence, Tuple


class InvalidInputError(ValueError):
    """Bad parameters for an analysis: balance, prices, timeframe or window."""


class FetchError(Exception):
    """Upstream data-source failure.

    Carries the provider status code (when there is one) and the raw error
    payload so callers can report it without knowing the transport.
    """

    def __init__(self, reason: str, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
        self.payload = payload

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.reason} (status {self.status_code})"
        return self.reason


class NoViableTimeframeError(Exception):
    """Every candidate timeframe of a scan failed."""

    def __init__(self, failures: Sequence = ()) -> None:
        self.failures: Tuple = tuple(failures)
        if self.failures:
            detail = "; ".join(f"{f.timeframe}: {f.reason}" for f in self.failures)
            message = f"all {len(self.failures)} timeframes failed ({detail})"
        else:
            message = "no candidate timeframes to scan"
        super().__init__(message)
