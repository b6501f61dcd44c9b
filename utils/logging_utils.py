import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config import LOG_FILE

_LOGGER_NAME = "reservation_engine"
_LOG_FILE = Path(LOG_FILE)


def _configure_logger() -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    logger.propagate = False

    try:
        handler = RotatingFileHandler(_LOG_FILE, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    except OSError:
        handler = logging.StreamHandler()

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


_logger = _configure_logger()


def _format(area: str, actor: str, action: str, detail: str) -> str:
    message = f"{area.upper()} | Actor: {actor} | Accion: {action}"
    if detail:
        message += f" | Detalle: {detail}"
    return message


def log_event(area: str, actor: str, action: str, detail: str = "") -> None:
    _logger.info(_format(area, actor, action, detail))


def log_warning(area: str, actor: str, action: str, detail: str = "") -> None:
    _logger.warning(_format(area, actor, action, detail))


def log_error(area: str, actor: str, action: str, detail: str = "") -> None:
    _logger.error(_format(area, actor, action, detail))
