"""
Fixtures compartidas para tests
"""
import os

# Sin archivo de log durante los tests (debe fijarse antes de importar config)
os.environ.setdefault('LOG_FILE', '')

import pytest
from unittest.mock import Mock

from core.domain import Candle, FetchError

BASE_TS = 1700000000000
MINUTE_MS = 60_000


def make_candles(closes, start=BASE_TS, step=MINUTE_MS):
    """Velas sintéticas con los cierres indicados"""
    candles = []
    ts = start
    for price in closes:
        candles.append(
            Candle(
                timestamp=ts,
                open=price,
                high=price * 1.01,
                low=price * 0.99,
                close=price,
                volume=1000.0,
            )
        )
        ts += step
    return candles


@pytest.fixture
def candles_factory():
    return make_candles


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock de variables de entorno para tests"""
    env_vars = {
        'BINANCE_API_KEY': 'test_binance_key',
        'BINANCE_API_SECRET': 'test_binance_secret',
        'INITIAL_BALANCE': '1000',
        'DEFAULT_TIMEFRAMES': '1h,4h,1d',
        'DATA_SOURCE': 'http',
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    return env_vars


@pytest.fixture
def fake_fetch():
    """Fetch en memoria: closes por timeframe, o una excepción para simular fallos"""
    def build(series_by_timeframe):
        calls = []

        def fetch(symbol, timeframe, start_time, end_time):
            calls.append(timeframe)
            outcome = series_by_timeframe[timeframe]
            if isinstance(outcome, Exception):
                raise outcome
            return make_candles(outcome)

        fetch.calls = calls
        return fetch

    return build


@pytest.fixture
def failing_fetch():
    def fetch(symbol, timeframe, start_time, end_time):
        raise FetchError("HTTP error! status: 500", status_code=500, payload={'error': 'boom'})
    return fetch


@pytest.fixture
def sample_klines():
    """Respuesta de ejemplo de /api/v3/klines"""
    return [
        [1640000000000, '49000', '50500', '48500', '50000', '1000', 1640003599999, '0', 10, '0', '0', '0'],
        [1640003600000, '50000', '51000', '49500', '50500', '1100', 1640007199999, '0', 10, '0', '0', '0'],
        [1640007200000, '50500', '52000', '50000', '51000', '1200', 1640010799999, '0', 10, '0', '0', '0'],
    ]


@pytest.fixture
def mock_logger():
    """Mock del logger"""
    logger = Mock()
    logger.info = Mock()
    logger.error = Mock()
    logger.warning = Mock()
    logger.debug = Mock()
    return logger
