"""
Configuración centralizada del analizador de operaciones óptimas.
Este archivo carga todas las variables de entorno y las hace disponibles.
"""
import os
from dotenv import load_dotenv

# Cargar variables de entorno desde el archivo .env
load_dotenv()


def _split_csv(value: str) -> list:
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """Clase que contiene toda la configuración del analizador"""

    BASE_DIR = os.path.dirname(os.path.dirname(__file__))

    # ========== ANÁLISIS ==========
    INITIAL_BALANCE = float(os.getenv('INITIAL_BALANCE', '100000'))
    DEFAULT_TIMEFRAMES = _split_csv(os.getenv('DEFAULT_TIMEFRAMES', '1m,5m,15m,1h,4h,1d'))
    SCAN_MAX_WORKERS = int(os.getenv('SCAN_MAX_WORKERS', '1'))

    # ========== FUENTE DE DATOS ==========
    # exchange = ccxt, http = endpoint de klines (o proxy), csv = archivos locales
    DATA_SOURCE = os.getenv('DATA_SOURCE', 'exchange').lower()
    EXCHANGE_ID = os.getenv('EXCHANGE_ID', 'binanceus')
    KLINES_BASE_URL = os.getenv('KLINES_BASE_URL', 'https://api.binance.us')
    KLINES_PATH = os.getenv('KLINES_PATH', '/api/v3/klines')
    # True si KLINES_BASE_URL apunta al proxy (/api/historical-data con pair/timeframe)
    KLINES_PROXY_MODE = os.getenv('KLINES_PROXY_MODE', 'False').lower() in ('1', 'true', 'yes')
    CSV_DATA_DIR = os.getenv('CSV_DATA_DIR', os.path.join(BASE_DIR, 'data'))
    CANDLE_LIMIT = int(os.getenv('CANDLE_LIMIT', '1000'))
    REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '10'))
    RETRY_ATTEMPTS = int(os.getenv('RETRY_ATTEMPTS', '3'))

    # ========== BINANCE ==========
    # Opcionales: los klines son públicos, la clave solo se envía como cabecera
    BINANCE_API_KEY = os.getenv('BINANCE_API_KEY')
    BINANCE_API_SECRET = os.getenv('BINANCE_API_SECRET')

    # ========== RESULTADOS Y LOGS ==========
    RESULTS_DIR = os.getenv('RESULTS_DIR', os.path.join(BASE_DIR, 'analysis_results'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG').upper()
    LOG_FILE = os.getenv('LOG_FILE', 'optimal_trades.log')

    VALID_DATA_SOURCES = ('exchange', 'http', 'csv')

    @classmethod
    def validate(cls):
        """
        Valida que la configuración sea coherente.

        Raises:
            ValueError: Si hay valores inválidos
        """
        errors = []

        if cls.INITIAL_BALANCE <= 0:
            errors.append('INITIAL_BALANCE debe ser mayor que 0')

        if not cls.DEFAULT_TIMEFRAMES:
            errors.append('DEFAULT_TIMEFRAMES no puede estar vacío')
        else:
            from core.domain import Timeframe
            unknown = [tf for tf in cls.DEFAULT_TIMEFRAMES if not Timeframe.is_valid(tf)]
            if unknown:
                errors.append(f"DEFAULT_TIMEFRAMES contiene timeframes desconocidos: {', '.join(unknown)}")

        if cls.DATA_SOURCE not in cls.VALID_DATA_SOURCES:
            errors.append(f"DATA_SOURCE debe ser uno de: {', '.join(cls.VALID_DATA_SOURCES)}")

        if cls.CANDLE_LIMIT < 1:
            errors.append('CANDLE_LIMIT debe ser al menos 1')

        if cls.SCAN_MAX_WORKERS < 1:
            errors.append('SCAN_MAX_WORKERS debe ser al menos 1')

        if cls.RETRY_ATTEMPTS < 1:
            errors.append('RETRY_ATTEMPTS debe ser al menos 1')

        if errors:
            raise ValueError(f"Faltan las siguientes variables o son inválidas: {'; '.join(errors)}")

        return True
