"""
Obtención de velas históricas a través de ccxt (Binance.US por defecto).
Convierte los errores de ccxt en FetchError para que el núcleo no dependa del transporte.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import ccxt

from config.config import Config
from core.domain import Candle, FetchError
from utils.logger import logger


@dataclass
class BinanceFetcherConfig:
    """Configuración del fetcher de velas."""

    EXCHANGE_ID: str = "binanceus"
    CANDLE_LIMIT: int = 1000
    REQUEST_TIMEOUT: int = 10
    RETRY_ATTEMPTS: int = 3

    @classmethod
    def from_config(cls) -> "BinanceFetcherConfig":
        return cls(
            EXCHANGE_ID=Config.EXCHANGE_ID,
            CANDLE_LIMIT=Config.CANDLE_LIMIT,
            REQUEST_TIMEOUT=Config.REQUEST_TIMEOUT,
            RETRY_ATTEMPTS=Config.RETRY_ATTEMPTS,
        )


class BinanceCandleFetcher:
    """Fetcher de velas OHLCV que cumple el contrato fetch(symbol, timeframe, start, end)."""

    BACKOFF_SECONDS = [2, 4, 8]

    def __init__(self, config: Optional[BinanceFetcherConfig] = None) -> None:
        """Inicializa el cliente ccxt. Los klines son públicos, las credenciales son opcionales."""
        self.config = config or BinanceFetcherConfig.from_config()
        self.exchange = self._initialize_exchange()
        self._request_count_total: int = 0
        self._total_response_time: float = 0.0

    def _initialize_exchange(self):
        exchange_class = getattr(ccxt, self.config.EXCHANGE_ID, None)
        if exchange_class is None:
            raise ValueError(f"Exchange desconocido para ccxt: {self.config.EXCHANGE_ID}")

        params: Dict[str, Any] = {
            "enableRateLimit": True,
            "timeout": self.config.REQUEST_TIMEOUT * 1000,
        }
        if Config.BINANCE_API_KEY and Config.BINANCE_API_SECRET:
            params["apiKey"] = Config.BINANCE_API_KEY
            params["secret"] = Config.BINANCE_API_SECRET

        exchange = exchange_class(params)
        logger.info(f"✅ Cliente {self.config.EXCHANGE_ID} inicializado para descarga de velas")
        return exchange

    def __call__(self, symbol: str, timeframe: str, start_time: int, end_time: int) -> Sequence[Candle]:
        return self.fetch(symbol, timeframe, start_time, end_time)

    def fetch(self, symbol: str, timeframe: str, start_time: int, end_time: int) -> List[Candle]:
        """
        Descarga velas en la ventana [start_time, end_time] (ms UTC).

        Returns:
            Velas ordenadas por timestamp, como máximo CANDLE_LIMIT.

        Raises:
            FetchError: Si la llamada falla o la respuesta no es válida
        """
        rows = self._execute_request(
            self.exchange.fetch_ohlcv,
            symbol,
            timeframe,
            since=start_time,
            limit=self.config.CANDLE_LIMIT,
            params={"endTime": end_time},
        )
        candles = self._parse_rows(rows, start_time, end_time)
        logger.info(f"📊 Obtenidas {len(candles)} velas de {symbol} ({timeframe})")
        return candles

    def _execute_request(self, func, *args, **kwargs) -> Any:
        """Ejecuta una llamada a ccxt con retry en errores de red."""
        name = getattr(func, "__name__", "request")
        attempt = 0

        while True:
            attempt += 1
            start = time.time()
            try:
                logger.debug(f"➡️ Llamada a {self.config.EXCHANGE_ID} ({name}) intento {attempt}")
                result = func(*args, **kwargs)
                self._register_request(time.time() - start)
                return result
            except ccxt.NetworkError as e:
                self._register_request(time.time() - start)
                logger.warning(f"⚠️ Error de red en {name} intento {attempt}: {e}")
                if attempt >= self.config.RETRY_ATTEMPTS:
                    logger.error("❌ Agotados los intentos de retry")
                    raise FetchError(f"network error: {e}", payload=str(e)) from e
                wait_time = self.BACKOFF_SECONDS[min(attempt - 1, len(self.BACKOFF_SECONDS) - 1)]
                logger.info(f"⏳ Reintentando en {wait_time}s...")
                time.sleep(wait_time)
            except ccxt.BadSymbol as e:
                logger.error(f"❌ Símbolo no válido en {self.config.EXCHANGE_ID}: {e}")
                raise FetchError(f"bad symbol: {e}", status_code=400, payload=str(e)) from e
            except (ccxt.AuthenticationError, ccxt.PermissionDenied) as e:
                logger.error(f"❌ Error de autenticación en {name}: {e}")
                raise FetchError(f"authentication error: {e}", status_code=401, payload=str(e)) from e
            except ccxt.ExchangeError as e:
                logger.error(f"❌ Error de intercambio en {name}: {e}")
                raise FetchError(f"exchange error: {e}", payload=str(e)) from e

    def _register_request(self, response_time: float) -> None:
        self._request_count_total += 1
        self._total_response_time += response_time

    def _parse_rows(self, rows: Any, start_time: int, end_time: int) -> List[Candle]:
        if not isinstance(rows, list):
            raise FetchError("malformed OHLCV response", payload=rows)
        candles: List[Candle] = []
        for row in rows:
            try:
                candle = Candle(
                    timestamp=int(row[0]),
                    open=float(row[1]),
                    high=float(row[2]),
                    low=float(row[3]),
                    close=float(row[4]),
                    volume=float(row[5] or 0),
                )
            except (TypeError, ValueError, IndexError) as e:
                raise FetchError("malformed OHLCV row", payload=row) from e
            if start_time <= candle.timestamp <= end_time:
                candles.append(candle)
        candles.sort(key=lambda c: c.timestamp)
        return candles[: self.config.CANDLE_LIMIT]

    def get_stats(self) -> Dict[str, float]:
        """Métricas básicas de uso del fetcher."""
        avg_response_time = (
            self._total_response_time / self._request_count_total if self._request_count_total else 0.0
        )
        return {
            "request_count": float(self._request_count_total),
            "avg_response_time": avg_response_time,
        }
