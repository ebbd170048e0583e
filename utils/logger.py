import logging
import sys

from config.config import Config
from utils.security import get_redactor, sanitize_log_message


class ColoredFormatter(logging.Formatter):
    """Formateador con colores para terminal"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        log_color = self.COLORS.get(record.levelname, self.RESET)
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{log_color}{record.levelname}{self.RESET}"
        return super().format(record)


class SecretsRedactionFilter(logging.Filter):
    """Filtro de logging que redacciona secretos (API keys de Binance) antes de escribir logs"""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            # Reemplazar el mensaje ya formateado y descartar los argumentos
            record.msg = sanitize_log_message(str(record.getMessage()))
            record.args = ()
        except Exception:
            # Si falla la sanitización, no bloquear el log
            pass
        return True


def _level(name: str) -> int:
    return getattr(logging, name, logging.DEBUG)


# Registrar las credenciales configuradas para que nunca lleguen a los logs
get_redactor().register_secrets_from_config(Config)

# Configurar logger
logger = logging.getLogger('OptimalTrades')
logger.setLevel(_level(Config.LOG_LEVEL))

# Limpiar handlers existentes para evitar duplicados si se recarga
if logger.hasHandlers():
    logger.handlers.clear()

# Handler para consola con colores
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(_level(Config.LOG_LEVEL))
console_formatter = ColoredFormatter(
    '%(asctime)s | %(levelname)s | %(message)s',
    datefmt='%H:%M:%S'
)
console_handler.setFormatter(console_formatter)
console_handler.addFilter(SecretsRedactionFilter())
logger.addHandler(console_handler)

# Handler para archivo (sin colores); LOG_FILE vacío lo desactiva
if Config.LOG_FILE:
    file_handler = logging.FileHandler(Config.LOG_FILE, encoding='utf-8', delay=True)
    file_handler.setLevel(logging.INFO)
    file_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    file_handler.addFilter(SecretsRedactionFilter())
    logger.addHandler(file_handler)
