"""
Logging configuration for the agency metrics service.

- JsonFormatter: one JSON object per line, for production log shipping
- ReadableFormatter: colored single-line output for local development
- ContextLogger: adapter that carries bound fields into every record
- log_performance: duration logging around sync or async callables

The request id and agency id are held in context variables so any log line
written while serving a request can be traced back to it.
"""

import inspect
import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
agency_id_var: ContextVar[Optional[str]] = ContextVar('agency_id', default=None)

NOISY_LOGGERS = ("httpx", "httpcore", "multipart")


def current_context() -> Dict[str, str]:
    """Request and agency ids bound to the running request, if any."""
    context = {}
    request_id = request_id_var.get()
    if request_id:
        context["request_id"] = request_id
    agency_id = agency_id_var.get()
    if agency_id:
        context["agency_id"] = agency_id
    return context


def _extra_data(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, 'extra_data', None) or {}


class JsonFormatter(logging.Formatter):
    """Structured formatter; bound context and extra_data become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        payload.update(current_context())
        payload.update(_extra_data(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ReadableFormatter(logging.Formatter):

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        clock = datetime.now().strftime('%H:%M:%S.%f')[:-3]
        parts = [f"{clock} {color}{record.levelname:8s}{self.RESET} [{record.name}] {record.getMessage()}"]

        agency_id = agency_id_var.get()
        if agency_id:
            parts.append(f"agency={agency_id}")
        parts.extend(f"{key}={value}" for key, value in _extra_data(record).items())

        line = " | ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """
    Adapter whose bound fields are merged into each call's extra_data.

    Fields passed on the call win over bound ones.
    """

    def process(self, msg: str, kwargs: Dict) -> tuple:
        extra = kwargs.get('extra') or {}
        merged = {**self.extra, **extra.get('extra_data', {})}
        kwargs['extra'] = {**extra, 'extra_data': merged}
        return msg, kwargs


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """
    Install handlers on the root logger, replacing any already there.

    Args:
        level: root log level
        json_output: JSON lines on stdout instead of readable output
        log_file: optional file that always receives JSON lines
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JsonFormatter() if json_output else ReadableFormatter())
    root.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JsonFormatter())
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, **extra) -> ContextLogger:
    """Logger for ``name`` with ``extra`` bound to every record."""
    return ContextLogger(logging.getLogger(name), extra)


def _report_duration(label: str, started: float, error: Optional[BaseException] = None) -> None:
    logger = get_logger("performance")
    fields: Dict[str, Any] = {'duration_ms': int((time.perf_counter() - started) * 1000)}
    if error is None:
        logger.info(f"{label} completed", extra={'extra_data': fields})
    else:
        fields['error'] = str(error)
        logger.error(f"{label} failed", extra={'extra_data': fields})


def log_performance(name: Optional[str] = None) -> Callable:
    """
    Log how long the decorated function took, and whether it raised.

    Works on coroutine functions (service methods awaiting the backend) as
    well as plain functions. Exceptions are re-raised unchanged.
    """
    def decorator(func: Callable) -> Callable:
        label = name or func.__name__

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _report_duration(label, started, e)
                    raise
                _report_duration(label, started)
                return result
            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _report_duration(label, started, e)
                raise
            _report_duration(label, started)
            return result
        return sync_wrapper

    return decorator
