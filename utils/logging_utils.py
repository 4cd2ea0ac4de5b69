import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

_LOGGER_NAME = "cleaning_backend"
_LOG_FILE = Path(os.getenv("CLEANING_LOG_FILE", "cleaning_logs.txt"))


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


def log_event(area: str, usuario, accion: str, detalle: str = "") -> None:
    area_label = area.upper()
    message = f"{area_label} | Usuario: {usuario or '-'} | Accion: {accion}"
    if detalle:
        message += f" | Detalle: {detalle}"
    _logger.info(message)


def log_error(area: str, usuario, accion: str, detalle: str = "") -> None:
    message = f"{area.upper()} | Usuario: {usuario or '-'} | Accion: {accion} | Error: {detalle}"
    _logger.error(message)
