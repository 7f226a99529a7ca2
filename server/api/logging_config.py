# configuración de logging del servidor
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from server.api.settings import Settings, _env_bool, _env_str

API_LOGGER_NAME = "seasonrank_api"
UPSTREAM_LOGGER_NAME = "seasonrank.omdb"

_FILE_HANDLER_TAG = "_seasonrank_file_handler"
_LOGGER_FILE_PATH_SENTINEL: object = object()
_LOGGER_FILE_PATH_CACHED: Path | None | object = _LOGGER_FILE_PATH_SENTINEL

SERVER_DIR = Path(__file__).resolve().parents[1]

# Campos que metemos vía `extra=` y queremos ver en el fichero.
_CONTEXT_FIELDS = ("request_id", "client", "method", "path", "status", "duration_ms", "error_id", "kind")


class ContextFormatter(logging.Formatter):
    """Formatter que añade `k=v` para los campos de contexto presentes."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        parts = []
        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                parts.append(f"{name}={value}")
        return f"{base} {' '.join(parts)}" if parts else base


def _sanitize_filename_component(value: str) -> str:
    s = (value or "").strip()
    if not s:
        return ""
    cleaned = "".join(ch if (ch.isalnum() or ch in "-_.") else "_" for ch in s)
    return cleaned.strip("._-")


def _resolve_dir(raw: str, *, base: Path) -> Path:
    p = Path(raw)
    return p if p.is_absolute() else (base / p)


def _build_logger_file_path() -> Path | None:
    """
    Ruta del fichero de log (o None si LOGGER_FILE_ENABLED=0).

    Se resuelve una sola vez por proceso: así reloads de configuración no
    abren un fichero nuevo por llamada.
    """
    global _LOGGER_FILE_PATH_CACHED

    if _LOGGER_FILE_PATH_CACHED is not _LOGGER_FILE_PATH_SENTINEL:
        return _LOGGER_FILE_PATH_CACHED  # type: ignore[return-value]

    if not _env_bool("LOGGER_FILE_ENABLED", False):
        _LOGGER_FILE_PATH_CACHED = None
        return None

    explicit = _env_str("LOGGER_FILE_PATH", "").strip()
    if explicit:
        resolved = _resolve_dir(explicit, base=SERVER_DIR).resolve()
        _LOGGER_FILE_PATH_CACHED = resolved
        return resolved

    log_dir = _resolve_dir(_env_str("LOGGER_FILE_DIR", "logs"), base=SERVER_DIR)
    prefix = _sanitize_filename_component(_env_str("LOGGER_FILE_PREFIX", "seasonrank")) or "seasonrank"
    ts = datetime.now().strftime(_env_str("LOGGER_FILE_TIMESTAMP_FORMAT", "%Y-%m-%d_%H-%M-%S"))
    pid_part = f"_{os.getpid()}" if _env_bool("LOGGER_FILE_INCLUDE_PID", True) else ""

    resolved = (log_dir / f"{prefix}_{ts}{pid_part}.log").resolve()
    _LOGGER_FILE_PATH_CACHED = resolved
    return resolved


def _our_file_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [h for h in root.handlers if getattr(h, _FILE_HANDLER_TAG, False)]


def _ensure_file_handler(root: logging.Logger, *, level: str) -> None:
    path = _build_logger_file_path()
    if path is None:
        return

    existing = _our_file_handlers(root)
    if existing:
        for handler in existing:
            handler.setLevel(level)
        return

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    except OSError as exc:
        logging.getLogger(API_LOGGER_NAME).warning("No se pudo abrir el log %s: %r", path, exc)
        return

    handler.setLevel(level)
    handler.setFormatter(ContextFormatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    setattr(handler, _FILE_HANDLER_TAG, True)
    root.addHandler(handler)


def configure_logging(settings: Settings) -> logging.Logger:
    """
    Configuración mínima:
    - Respetamos handlers/format de quien ejecute (uvicorn, gunicorn, etc.).
    - Ajustamos nivel global y el del cliente OMDb según env.
    - Fichero opcional (LOGGER_FILE_*), idempotente.
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    _ensure_file_handler(root, level=settings.log_level)

    logging.getLogger(UPSTREAM_LOGGER_NAME).setLevel(settings.log_level)

    logger = logging.getLogger(API_LOGGER_NAME)
    logger.setLevel(settings.log_level)
    return logger
