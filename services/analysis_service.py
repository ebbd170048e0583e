"""
Servicio de análisis de operaciones óptimas.
Descarga velas históricas, busca la secuencia de trades de máximo beneficio
(en un timeframe o escaneando varios) y la compara con comprar y mantener.
"""
import os
import json
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from dataclasses import dataclass, asdict, field

import pandas as pd

from utils.logger import logger
from utils.security import InputValidator, safe_path_join, sanitize_exception
from config.config import Config

from core.domain import (
    AnalysisResult,
    FetchError,
    InvalidInputError,
    NoViableTimeframeError,
    Timeframe,
    TimeframeFailure,
    candles_in_window,
)
from core.scanner import FetchFn, TimeframeScanner


def to_iso(timestamp_ms: Optional[int]) -> Optional[str]:
    """Convierte un timestamp en milisegundos a ISO-8601 UTC."""
    if timestamp_ms is None:
        return None
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass
class AnalysisReport:
    symbol: str
    timeframe: str
    start_time: int
    end_time: int
    initial_balance: float
    result: AnalysisResult
    analysis_time_seconds: float
    scanned_timeframes: List[str] = field(default_factory=list)
    failures: List[TimeframeFailure] = field(default_factory=list)
    comparison: List[Dict[str, Any]] = field(default_factory=list)
    executed_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        """Representación serializable con fechas legibles para cada operación."""
        payload = asdict(self)
        result = payload['result']
        for trade in result['trades']:
            trade['entry_date'] = to_iso(trade['entry_time'])
            trade['exit_date'] = to_iso(trade['exit_time'])
        if result['best_trade']:
            result['best_trade']['entry_date'] = to_iso(result['best_trade']['entry_time'])
            result['best_trade']['exit_date'] = to_iso(result['best_trade']['exit_time'])
        buy_hold = result['buy_hold']
        buy_hold['start_date'] = to_iso(buy_hold['start_time'])
        buy_hold['end_date'] = to_iso(buy_hold['end_time'])
        payload['start_date'] = to_iso(self.start_time)
        payload['end_date'] = to_iso(self.end_time)
        return payload


class AnalysisService:
    """Servicio para ejecutar análisis de trades óptimos sobre datos históricos."""

    def __init__(
        self,
        fetcher: Optional[FetchFn] = None,
        initial_balance: Optional[float] = None,
        results_dir: Optional[str] = None,
        save_results: bool = True,
        max_workers: Optional[int] = None,
    ):
        """
        Inicializa el servicio de análisis.

        Args:
            fetcher: Callable fetch(symbol, timeframe, start, end) (lazy loading si no se proporciona)
            initial_balance: Capital nocional por operación (Config.INITIAL_BALANCE por defecto)
            results_dir: Carpeta donde guardar los reportes
            save_results: Guardar JSON/CSV de cada análisis
            max_workers: Descargas concurrentes durante un escaneo
        """
        self._fetcher = fetcher
        self.initial_balance = initial_balance if initial_balance is not None else Config.INITIAL_BALANCE
        self.results_dir = results_dir or Config.RESULTS_DIR
        self.save_results = save_results
        self.max_workers = max_workers or Config.SCAN_MAX_WORKERS
        if self.save_results:
            os.makedirs(self.results_dir, exist_ok=True)
        logger.info("✅ Servicio de análisis inicializado")

    @property
    def fetcher(self) -> FetchFn:
        """Lazy loading del fetcher configurado en DATA_SOURCE."""
        if self._fetcher is None:
            from infra.market_data import build_fetcher
            self._fetcher = build_fetcher()
            logger.info(f"✅ Fetcher '{Config.DATA_SOURCE}' inicializado para el análisis")
        return self._fetcher

    def run_analysis(
        self,
        symbol: str,
        start_time: int,
        end_time: int,
        timeframe: Optional[str] = None,
        timeframes: Optional[Sequence[str]] = None,
    ) -> AnalysisReport:
        """
        Ejecuta un análisis completo.

        Con ``timeframe`` analiza solo ese timeframe; si no, escanea ``timeframes``
        (o Config.DEFAULT_TIMEFRAMES) y se queda con el de mayor beneficio.

        Returns:
            AnalysisReport con el resultado y los timeframes descartados

        Raises:
            InvalidInputError: Parámetros inválidos
            FetchError: Falló la descarga en modo de un solo timeframe
            NoViableTimeframeError: Fallaron todos los timeframes del escaneo
        """
        symbol = symbol.upper().strip()
        valid, error = InputValidator.validate_symbol(symbol)
        if not valid:
            raise InvalidInputError(error)
        valid, error = InputValidator.validate_time_window(start_time, end_time)
        if not valid:
            raise InvalidInputError(error)

        candidates = [timeframe] if timeframe else list(timeframes or Config.DEFAULT_TIMEFRAMES)

        logger.info(f"\n{'='*60}")
        logger.info(f"🧪 INICIANDO ANÁLISIS: {symbol}")
        logger.info(f"{'='*60}")
        logger.info(f"📈 Timeframes: {', '.join(candidates)}")
        logger.info(f"📅 Ventana: {to_iso(start_time)} → {to_iso(end_time)}")
        logger.info(f"💰 Capital inicial: ${self.initial_balance:,.2f}")
        self._warn_truncated_windows(candidates, start_time, end_time)

        scanner = TimeframeScanner(
            self.fetcher,
            initial_balance=self.initial_balance,
            max_workers=self.max_workers,
            fetch_timeout=Config.REQUEST_TIMEOUT * Config.RETRY_ATTEMPTS * 2,
        )

        started = time.perf_counter()
        failures: List[TimeframeFailure] = []
        try:
            if timeframe:
                result = scanner.analyze_one(symbol, timeframe, start_time, end_time)
                analyzed = [result]
            else:
                scan = scanner.scan(symbol, start_time, end_time, candidates)
                result = scan.result
                analyzed = list(scan.results)
                failures = list(scan.failures)
        except (FetchError, InvalidInputError) as e:
            logger.error(f"❌ Error analizando {symbol} ({timeframe}): {sanitize_exception(e)}")
            raise
        except NoViableTimeframeError as e:
            logger.error(f"❌ Ningún timeframe pudo analizarse: {sanitize_exception(e)}")
            raise
        elapsed = time.perf_counter() - started

        report = AnalysisReport(
            symbol=symbol,
            timeframe=result.timeframe,
            start_time=start_time,
            end_time=end_time,
            initial_balance=self.initial_balance,
            result=result,
            analysis_time_seconds=elapsed,
            scanned_timeframes=candidates,
            failures=failures,
            comparison=comparison_frame(analyzed).to_dict(orient='records'),
            executed_at=datetime.now().isoformat(),
        )

        # Mostrar resultados
        self._print_results(report)

        # Guardar resultados
        if self.save_results:
            self._save_result(report)

        return report

    def _warn_truncated_windows(self, candidates: Sequence[str], start_time: int, end_time: int) -> List[str]:
        """Avisa de los timeframes cuya ventana supera el máximo de velas del proveedor."""
        truncated = []
        for tf in candidates:
            if not Timeframe.is_valid(tf):
                continue
            expected = candles_in_window(tf, start_time, end_time)
            if expected > Config.CANDLE_LIMIT:
                truncated.append(tf)
                logger.warning(
                    f"⚠️ {tf}: la ventana abarca {expected:,} velas, el proveedor devuelve como máximo "
                    f"{Config.CANDLE_LIMIT:,}"
                )
        return truncated

    def _print_results(self, report: AnalysisReport) -> None:
        result = report.result
        logger.info("🏁 Análisis finalizado:")
        logger.info(f"   Symbol: {report.symbol} ({report.timeframe})")
        logger.info(f"   Velas analizadas: {result.candles_analyzed}")
        if result.trades:
            logger.info(f"   Trades óptimos: {len(result.trades)}")
            logger.info(f"   Beneficio total: ${result.total_profit:,.2f} ({result.total_profit_percentage:.2f}%)")
            logger.info(f"   Beneficio medio: {result.average_profit_percentage:.2f}%")
            best = result.best_trade
            logger.info(
                f"   Mejor trade: {to_iso(best.entry_time)} → {to_iso(best.exit_time)} "
                f"({best.profit_percentage:.2f}%)"
            )
        else:
            logger.info("   No se encontraron trades rentables")
        logger.info(
            f"   Comprar y mantener: ${result.buy_hold.profit:,.2f} ({result.buy_hold.profit_percentage:.2f}%)"
        )
        logger.info(f"   Entradas y salidas evaluadas: {result.entry_exit_pairs_tested:,}")
        logger.info(f"   Combinaciones evaluadas: {result.combinations_tested:,}")
        logger.info(f"   Tiempo de análisis: {report.analysis_time_seconds:.2f}s")
        if len(report.comparison) > 1:
            logger.info("   Comparativa por timeframe:\n" + pd.DataFrame(report.comparison).to_string(index=False))
        if report.failures:
            logger.warning(f"   Timeframes descartados: {', '.join(f.timeframe for f in report.failures)}")
        if result.warnings:
            logger.warning(f"   Warnings: {', '.join(result.warnings)}")

    def _save_result(self, report: AnalysisReport) -> Optional[str]:
        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        base_name = f"{report.symbol.replace('/', '_')}_{report.timeframe}_{stamp}"
        json_path = safe_path_join(self.results_dir, f"{base_name}.json")
        csv_path = safe_path_join(self.results_dir, f"{base_name}_trades.csv")
        if json_path is None or csv_path is None:
            logger.error(f"❌ Nombre de reporte inválido: {base_name}")
            return None
        try:
            with open(json_path, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2, default=str)
            trades_frame(report.result).to_csv(csv_path, index=False)
            logger.info(f"💾 Resultado guardado en {json_path}")
            return json_path
        except OSError as e:
            logger.error(f"❌ Error guardando resultado: {e}")
            return None


TRADE_COLUMNS = [
    'entry_index', 'exit_index', 'entry_date', 'exit_date',
    'entry_price', 'exit_price', 'profit', 'profit_percentage',
]


def trades_frame(result: AnalysisResult) -> pd.DataFrame:
    """Tabla de operaciones con fechas legibles, lista para exportar."""
    rows = []
    for trade in result.trades:
        row = asdict(trade)
        row['entry_date'] = to_iso(trade.entry_time)
        row['exit_date'] = to_iso(trade.exit_time)
        rows.append(row)
    return pd.DataFrame(rows, columns=TRADE_COLUMNS)


def comparison_frame(results: Sequence[AnalysisResult]) -> pd.DataFrame:
    """Resumen por timeframe de un escaneo, ordenado como se escaneó."""
    return pd.DataFrame(
        [
            {
                'timeframe': r.timeframe,
                'candles': r.candles_analyzed,
                'trades': len(r.trades),
                'total_profit': r.total_profit,
                'total_profit_percentage': r.total_profit_percentage,
                'buy_hold_profit': r.buy_hold.profit,
            }
            for r in results
        ],
        columns=['timeframe', 'candles', 'trades', 'total_profit', 'total_profit_percentage', 'buy_hold_profit'],
    )
