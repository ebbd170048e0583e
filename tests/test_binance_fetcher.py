"""
Tests para el fetcher de velas basado en ccxt
"""
import ccxt
import pytest
from unittest.mock import Mock, patch

from core.domain import FetchError
from infra.market_data.binance_fetcher import BinanceCandleFetcher, BinanceFetcherConfig

START = 1640000000000
END = 1640007200000


def _config(**overrides):
    values = dict(EXCHANGE_ID="binanceus", CANDLE_LIMIT=1000, REQUEST_TIMEOUT=10, RETRY_ATTEMPTS=3)
    values.update(overrides)
    return BinanceFetcherConfig(**values)


class TestBinanceCandleFetcher:
    """Tests para BinanceCandleFetcher"""

    @patch('infra.market_data.binance_fetcher.ccxt.binanceus')
    def test_initialization(self, mock_client_class):
        """Test que el fetcher crea el cliente de ccxt"""
        fetcher = BinanceCandleFetcher(_config())
        assert fetcher.exchange is mock_client_class.return_value
        mock_client_class.assert_called_once()
        params = mock_client_class.call_args[0][0]
        assert params["enableRateLimit"] is True
        assert params["timeout"] == 10000

    def test_unknown_exchange(self):
        """Test que un EXCHANGE_ID inexistente falla al construir"""
        with pytest.raises(ValueError):
            BinanceCandleFetcher(_config(EXCHANGE_ID="not_an_exchange"))

    @patch('infra.market_data.binance_fetcher.ccxt.binanceus')
    def test_fetch_returns_sorted_candles_in_window(self, mock_client_class):
        """Test que las velas se convierten, se ordenan y se recortan a la ventana"""
        mock_exchange = Mock()
        mock_exchange.fetch_ohlcv.return_value = [
            [1640003600000, 50000, 51000, 49500, 50500, 1100],
            [1640000000000, 49000, 50500, 48500, 50000, 1000],
            [1640010800000, 51000, 52000, 50500, 51500, 900],
        ]
        mock_exchange.fetch_ohlcv.__name__ = "fetch_ohlcv"
        mock_client_class.return_value = mock_exchange

        fetcher = BinanceCandleFetcher(_config())
        candles = fetcher("BTC/USDT", "1h", START, END)

        assert [c.timestamp for c in candles] == [1640000000000, 1640003600000]
        assert candles[1].close == 50500.0
        mock_exchange.fetch_ohlcv.assert_called_once_with(
            "BTC/USDT", "1h", since=START, limit=1000, params={"endTime": END}
        )
        assert fetcher.get_stats()["request_count"] == 1.0

    @patch('infra.market_data.binance_fetcher.time.sleep')
    @patch('infra.market_data.binance_fetcher.ccxt.binanceus')
    def test_retries_network_errors(self, mock_client_class, mock_sleep):
        """Test que los errores de red se reintentan con backoff"""
        mock_exchange = Mock()
        mock_exchange.fetch_ohlcv.side_effect = [
            ccxt.NetworkError("timeout"),
            [[1640000000000, 1, 1, 1, 1, 1]],
        ]
        mock_exchange.fetch_ohlcv.__name__ = "fetch_ohlcv"
        mock_client_class.return_value = mock_exchange

        candles = BinanceCandleFetcher(_config()).fetch("BTC/USDT", "1h", START, END)

        assert len(candles) == 1
        assert mock_exchange.fetch_ohlcv.call_count == 2
        mock_sleep.assert_called_once_with(2)

    @patch('infra.market_data.binance_fetcher.time.sleep')
    @patch('infra.market_data.binance_fetcher.ccxt.binanceus')
    def test_persistent_network_error_becomes_fetch_error(self, mock_client_class, mock_sleep):
        mock_exchange = Mock()
        mock_exchange.fetch_ohlcv.side_effect = ccxt.NetworkError("down")
        mock_exchange.fetch_ohlcv.__name__ = "fetch_ohlcv"
        mock_client_class.return_value = mock_exchange

        with pytest.raises(FetchError, match="network error"):
            BinanceCandleFetcher(_config(RETRY_ATTEMPTS=2)).fetch("BTC/USDT", "1h", START, END)
        assert mock_exchange.fetch_ohlcv.call_count == 2

    @patch('infra.market_data.binance_fetcher.ccxt.binanceus')
    def test_bad_symbol(self, mock_client_class):
        mock_exchange = Mock()
        mock_exchange.fetch_ohlcv.side_effect = ccxt.BadSymbol("binanceus does not have market symbol FOO/BAR")
        mock_exchange.fetch_ohlcv.__name__ = "fetch_ohlcv"
        mock_client_class.return_value = mock_exchange

        with pytest.raises(FetchError) as excinfo:
            BinanceCandleFetcher(_config()).fetch("FOO/BAR", "1h", START, END)
        assert excinfo.value.status_code == 400
        assert "FOO/BAR" in excinfo.value.payload

    @patch('infra.market_data.binance_fetcher.ccxt.binanceus')
    def test_malformed_rows(self, mock_client_class):
        mock_exchange = Mock()
        mock_exchange.fetch_ohlcv.return_value = [[1640000000000, "x"]]
        mock_exchange.fetch_ohlcv.__name__ = "fetch_ohlcv"
        mock_client_class.return_value = mock_exchange

        with pytest.raises(FetchError, match="malformed"):
            BinanceCandleFetcher(_config()).fetch("BTC/USDT", "1h", START, END)
