"""
Logging setup for the clinic service.

Console output is human readable in development and JSON when ``LOG_JSON`` is
set. File output is always JSON lines, split into ``clinic.log`` and an
errors-only ``clinic_errors.log``, both rotated at 10 MB.

Structured fields travel in ``extra={"context": {...}}``:

    logger = logging.getLogger(__name__)
    logger.info("Injection saved", extra={"context": {"injection_id": "abc"}})
"""

import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from flask import Flask, g, request
from flask_login import current_user
from sqlalchemy import event
from sqlalchemy.engine import Engine

DEFAULT_LOG_DIR = Path(__file__).resolve().parents[2] / "logs"
ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_KEEP = 5

_setup_logger = logging.getLogger("clinic.logging")
_sql_timing_registered = False


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the ``context`` extra when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        context = getattr(record, "context", None)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored level names for terminals."""

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    def __init__(self):
        super().__init__(
            "%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
        )

    def format(self, record: logging.LogRecord) -> str:
        # Copy, the file handlers format the same record afterwards
        record = logging.makeLogRecord(record.__dict__)
        code = self.LEVEL_COLORS.get(record.levelno, "0")
        record.levelname = f"\033[{code}m{record.levelname:<8}\033[0m"
        return super().format(record)


def _resolve_level(log_level: Union[int, str]) -> int:
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def _rotating(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=ROTATE_BYTES, backupCount=ROTATE_KEEP, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def _file_handlers(log_dir: Path, level: int) -> List[logging.Handler]:
    log_dir.mkdir(parents=True, exist_ok=True)
    return [
        _rotating(log_dir / "clinic.log", level),
        _rotating(log_dir / "clinic_errors.log", logging.ERROR),
    ]


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: bool = True,
    use_json_format: bool = False,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Replace the root handlers with the clinic's console and file handlers.

    Args:
        app: when given, every request and response is logged with its duration
        log_level: level name or number
        enable_sql_echo: time each SQL statement at DEBUG level
        log_to_file: add the rotating JSON files under ``log_dir``
        use_json_format: JSON on the console as well
        log_dir: defaults to ``backend/logs``
    """
    level = _resolve_level(log_level)
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(JSONFormatter() if use_json_format else ConsoleFormatter())
    root.addHandler(console)

    if log_to_file:
        try:
            for handler in _file_handlers(log_dir or DEFAULT_LOG_DIR, level):
                root.addHandler(handler)
        except OSError as exc:
            log_to_file = False
            _setup_logger.warning(
                "Log files unavailable, console only",
                extra={"context": {"error": str(exc)}},
            )

    if enable_sql_echo:
        _register_sql_timing()
    if app is not None:
        _register_request_hooks(app)

    for noisy in ("werkzeug", "passlib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("clinic").setLevel(level)

    _setup_logger.info(
        "Logging ready",
        extra={
            "context": {
                "level": logging.getLevelName(level),
                "sql_timing": enable_sql_echo,
                "files": log_to_file,
                "json": use_json_format,
            }
        },
    )


def _register_sql_timing() -> None:
    global _sql_timing_registered
    if _sql_timing_registered:
        return
    sql_logger = logging.getLogger("clinic.sql")

    @event.listens_for(Engine, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("clinic_query_started", []).append(time.perf_counter())

    @event.listens_for(Engine, "after_cursor_execute")
    def _finish(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = (time.perf_counter() - conn.info["clinic_query_started"].pop()) * 1000
        sql_logger.debug(
            "SQL %.2fms",
            elapsed_ms,
            extra={"context": {"statement": statement[:500], "ms": round(elapsed_ms, 2)}},
        )

    _sql_timing_registered = True


def _register_request_hooks(app: Flask) -> None:
    http_logger = logging.getLogger("clinic.http")

    @app.before_request
    def _request_started():
        g.request_started = time.perf_counter()
        g.request_id = uuid.uuid4().hex[:12]
        actor_id = None
        if current_user and current_user.is_authenticated:
            actor_id = getattr(current_user, "id", None)
        http_logger.info(
            "%s %s",
            request.method,
            request.path,
            extra={
                "context": {
                    "request_id": g.request_id,
                    "actor_id": actor_id,
                    "remote_addr": request.remote_addr,
                }
            },
        )

    @app.after_request
    def _request_finished(response):
        started = g.get("request_started")
        if started is not None:
            elapsed_ms = (time.perf_counter() - started) * 1000
            http_logger.info(
                "%s %s -> %s",
                request.method,
                request.path,
                response.status_code,
                extra={
                    "context": {
                        "request_id": g.get("request_id"),
                        "status": response.status_code,
                        "ms": round(elapsed_ms, 2),
                    }
                },
            )
        return response


def log_performance(func_name: str, duration_ms: float, **kwargs) -> None:
    """Record how long an operation took, plus any counters passed as kwargs."""
    logging.getLogger("clinic.performance").info(
        "%s took %.2fms",
        func_name,
        duration_ms,
        extra={"context": {"operation": func_name, "ms": round(duration_ms, 2), **kwargs}},
    )
