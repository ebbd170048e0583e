"""
Módulo de seguridad centralizado.
Proporciona funciones para sanitización, validación y manejo seguro de datos sensibles.
"""
import os
import re
from typing import Any, Optional, Set, Tuple


class SecurityConfig:
    """Configuración de seguridad centralizada."""

    # Patrones para detectar información sensible
    SENSITIVE_PATTERNS = [
        r'(?i)(X-MBX-APIKEY["\']?\s*[:=]\s*["\']?)[A-Za-z0-9]{16,}',  # Cabecera de Binance
        r'(?i)((?:api_?key|secret|signature)=)[A-Za-z0-9]{16,}',  # Query strings firmadas
        r'\b[a-zA-Z0-9]{64}\b',  # API keys de Binance (64 caracteres)
    ]

    # Símbolos válidos: BTCUSDT o el formato unificado de ccxt BTC/USDT
    VALID_SYMBOL_PATTERN = r'^[A-Z0-9]{2,12}(/[A-Z0-9]{2,12})?$'

    # Límites de validación
    MAX_SYMBOL_LENGTH = 25


class SecretRedactor:
    """Redactor de secretos para logs y mensajes de error."""

    def __init__(self):
        self._secrets: Set[str] = set()
        self._compiled_patterns = [
            re.compile(p) for p in SecurityConfig.SENSITIVE_PATTERNS
        ]

    def register_secret(self, secret: Optional[str]) -> None:
        """Registra un secreto para ser redactado."""
        if secret and len(secret) >= 8:
            self._secrets.add(secret)

    def register_secrets_from_config(self, config_class: Any) -> None:
        """Registra secretos desde una clase de configuración."""
        for attr in ('BINANCE_API_KEY', 'BINANCE_API_SECRET'):
            value = getattr(config_class, attr, None)
            if value:
                self.register_secret(value)

    def redact(self, text: str) -> str:
        """Redacta todos los secretos registrados de un texto."""
        if not text:
            return text

        result = text

        # Redactar secretos registrados explícitamente
        for secret in self._secrets:
            if secret in result:
                # Mostrar primeros y últimos 2 caracteres para depuración
                if len(secret) > 8:
                    masked = f"{secret[:2]}***{secret[-2:]}"
                else:
                    masked = "[REDACTED]"
                result = result.replace(secret, masked)

        # Redactar patrones conocidos, conservando el prefijo si lo hay
        for pattern in self._compiled_patterns:
            if pattern.groups:
                result = pattern.sub(r'\1[SENSITIVE_DATA_REDACTED]', result)
            else:
                result = pattern.sub('[SENSITIVE_DATA_REDACTED]', result)

        return result

    def redact_exception(self, exc: Exception) -> str:
        """Redacta información sensible de una excepción."""
        return self.redact(str(exc))


# Instancia global del redactor
_redactor = SecretRedactor()


def get_redactor() -> SecretRedactor:
    """Obtiene la instancia global del redactor."""
    return _redactor


def sanitize_log_message(message: str) -> str:
    """Sanitiza un mensaje de log removiendo información sensible."""
    return _redactor.redact(message)


def sanitize_exception(exc: Exception) -> str:
    """Sanitiza una excepción para logging seguro."""
    return _redactor.redact_exception(exc)


class InputValidator:
    """Validador de entradas del usuario."""

    @staticmethod
    def validate_symbol(symbol: str) -> Tuple[bool, Optional[str]]:
        """
        Valida un símbolo de mercado (BTCUSDT o BTC/USDT).

        Returns:
            Tuple (es_válido, mensaje_error)
        """
        if not symbol:
            return False, "El símbolo no puede estar vacío"

        if len(symbol) > SecurityConfig.MAX_SYMBOL_LENGTH:
            return False, f"El símbolo excede {SecurityConfig.MAX_SYMBOL_LENGTH} caracteres"

        # Normalizar a mayúsculas
        symbol_upper = symbol.upper().strip()

        if not re.match(SecurityConfig.VALID_SYMBOL_PATTERN, symbol_upper):
            return False, "El símbolo contiene caracteres no permitidos"

        return True, None

    @staticmethod
    def validate_time_window(start_time: int, end_time: int) -> Tuple[bool, Optional[str]]:
        """
        Valida una ventana temporal en milisegundos (UTC).

        Returns:
            Tuple (es_válido, mensaje_error)
        """
        if not isinstance(start_time, int) or not isinstance(end_time, int):
            return False, "Los timestamps deben ser enteros en milisegundos"

        if start_time < 0 or end_time < 0:
            return False, "Los timestamps no pueden ser negativos"

        if end_time < start_time:
            return False, "La fecha final es anterior a la inicial"

        return True, None


def safe_path_join(base_path: str, *paths: str) -> Optional[str]:
    """
    Une paths de forma segura, previniendo path traversal.

    Returns:
        Path unido o None si hay intento de traversal.
    """
    base = os.path.abspath(base_path)
    result = os.path.abspath(os.path.join(base, *paths))

    # Verificar que el resultado está dentro del base
    if result != base and not result.startswith(base + os.sep):
        return None

    return result
