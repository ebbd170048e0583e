"""
Fetcher HTTP de klines con formato Binance.
Sirve tanto para la API pública (/api/v3/klines) como para un proxy propio que
añade la cabecera X-MBX-APIKEY en el servidor y expone /api/historical-data.
"""

from typing import Any, Dict, List, Optional, Sequence

import requests

from config.config import Config
from core.domain import Candle, FetchError
from utils.logger import logger


class KlinesHttpFetcher:
    """Fetcher que descarga klines por HTTP y los convierte en Candles."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        path: Optional[str] = None,
        api_key: Optional[str] = None,
        limit: Optional[int] = None,
        timeout: Optional[int] = None,
        proxy_params: bool = False,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Args:
            base_url: URL base del proveedor o del proxy
            path: Ruta del endpoint de klines
            api_key: Clave opcional enviada como X-MBX-APIKEY
            limit: Máximo de velas por petición
            timeout: Timeout por petición en segundos
            proxy_params: True si el endpoint espera pair/timeframe (proxy) en vez de symbol/interval
            session: Sesión de requests reutilizable
        """
        self.base_url = (base_url or Config.KLINES_BASE_URL).rstrip("/")
        self.path = path or Config.KLINES_PATH
        self.api_key = api_key if api_key is not None else Config.BINANCE_API_KEY
        self.limit = limit or Config.CANDLE_LIMIT
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.proxy_params = proxy_params
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path}"

    def __call__(self, symbol: str, timeframe: str, start_time: int, end_time: int) -> Sequence[Candle]:
        return self.fetch(symbol, timeframe, start_time, end_time)

    def build_params(self, symbol: str, timeframe: str, start_time: int, end_time: int) -> Dict[str, Any]:
        symbol = symbol.replace("/", "").upper()
        if self.proxy_params:
            return {
                "pair": symbol,
                "timeframe": timeframe,
                "startTime": start_time,
                "endTime": end_time,
            }
        return {
            "symbol": symbol,
            "interval": timeframe,
            "startTime": start_time,
            "endTime": end_time,
            "limit": self.limit,
        }

    def fetch(self, symbol: str, timeframe: str, start_time: int, end_time: int) -> List[Candle]:
        """
        Descarga los klines de la ventana indicada.

        Raises:
            FetchError: Error de red, status no exitoso o cuerpo mal formado
        """
        headers = {"X-MBX-APIKEY": self.api_key} if self.api_key else {}
        params = self.build_params(symbol, timeframe, start_time, end_time)

        try:
            response = self.session.get(self.url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"❌ Error de red consultando klines de {symbol} ({timeframe}): {e}")
            raise FetchError(f"network error: {e}", payload=str(e)) from e

        if not response.ok:
            payload = _body(response)
            logger.error(f"❌ HTTP {response.status_code} consultando klines de {symbol} ({timeframe})")
            raise FetchError(f"HTTP error! status: {response.status_code}", status_code=response.status_code, payload=payload)

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError("malformed JSON body", status_code=response.status_code, payload=response.text) from e

        candles = parse_klines(data, status_code=response.status_code)
        logger.info(f"📊 Obtenidas {len(candles)} velas de {symbol} ({timeframe})")
        return candles[: self.limit]


def parse_klines(data: Any, status_code: Optional[int] = None) -> List[Candle]:
    """Convierte filas [openTime, open, high, low, close, volume, ...] en Candles ordenadas."""
    if not isinstance(data, list):
        raise FetchError("unexpected klines payload", status_code=status_code, payload=data)

    candles: List[Candle] = []
    for row in data:
        try:
            candles.append(
                Candle(
                    timestamp=int(row[0]),
                    open=float(row[1]),
                    high=float(row[2]),
                    low=float(row[3]),
                    close=float(row[4]),
                    volume=float(row[5]),
                )
            )
        except (TypeError, ValueError, IndexError, KeyError) as e:
            raise FetchError("malformed kline row", status_code=status_code, payload=row) from e
    candles.sort(key=lambda c: c.timestamp)
    return candles


def _body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
