"""
Estensioni Flask condivise: database (SQLAlchemy) e logging JSON.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

# Istanza globale di SQLAlchemy, sarà inizializzata in create_app()
db = SQLAlchemy()

# Attributi presenti in ogni LogRecord: tutto il resto arriva da extra={...}
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite applica ON DELETE CASCADE solo con foreign_keys attivo."""
    if dbapi_connection.__class__.__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class JsonFormatter(logging.Formatter):
    """
    Una riga JSON per record.

    Chiavi fisse: timestamp (UTC, ISO 8601), level, logger, module, message;
    ``exc_info`` se presente un'eccezione; ``extra`` con i campi passati
    dal chiamante (es. gli eventi di ``services.logging``).
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_record: Dict[str, Any] = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS
        }
        if extra_fields:
            log_record["extra"] = extra_fields

        # default=str: date e Decimal negli extra non devono rompere il log
        return json.dumps(log_record, ensure_ascii=False, default=str)


def init_extensions(app: Flask) -> None:
    """Chiamata da create_app(): database, poi logging."""
    _ensure_sqlite_dir(app.config.get("SQLALCHEMY_DATABASE_URI", ""))
    db.init_app(app)
    _init_logging(app)


def _ensure_sqlite_dir(uri: str) -> None:
    """Crea la cartella del file SQLite (es. instance/) se manca."""
    prefix = "sqlite:///"
    if uri.startswith(prefix) and len(uri) > len(prefix):
        directory = os.path.dirname(uri[len(prefix):])
        if directory:
            os.makedirs(directory, exist_ok=True)


def _build_handlers(log_path: str, log_level: int) -> List[logging.Handler]:
    """File rotante (5 MB x 3) e console, entrambi con formatter JSON."""
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()

    formatter = JsonFormatter()
    for handler in (file_handler, console_handler):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
    return [file_handler, console_handler]


def _init_logging(app: Flask) -> None:
    """
    Configura il root logger una sola volta per processo.

    Le chiamate successive a create_app (es. una per test) aggiornano solo
    il livello, senza duplicare gli handler.
    """
    log_level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, log_level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    app.logger.setLevel(log_level)

    if getattr(root_logger, "_json_logging_configured", False):
        for handler in root_logger.handlers:
            handler.setLevel(log_level)
        return

    log_dir = app.config.get("LOG_DIR")
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, app.config.get("LOG_FILE_NAME", "app.log"))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    for handler in _build_handlers(log_path, log_level):
        root_logger.addHandler(handler)
    root_logger._json_logging_configured = True  # type: ignore[attr-defined]

    app.logger.info(
        "Logging JSON inizializzato.",
        extra={"component": "logging", "log_path": log_path, "log_level": log_level_name},
    )
