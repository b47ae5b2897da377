"""
Structured JSON logging for the order kernel.

Every record under the ``order_kernel`` logger is written as one JSON line:

    {"ts": "...", "level": "INFO", "logger": "order_kernel.services.order",
     "message": "order_created", "correlation_id": "...", "actor_id": "E1001",
     "order_code": "24DEC1100001", "line_count": 2}

Services log snake_case event names and pass their fields through
``extra=``.  Fields that hold for a whole lifecycle call (who is acting,
which order) are bound once with ``LogContext.bind`` and stamped on every
record emitted inside the block.

When a record carries an OrderKernelError, its ``code`` and public
attributes are flattened into ``exc_*`` keys so failures are searchable
without parsing messages.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

LOGGER_NAMESPACE = "order_kernel"

CONTEXT_FIELDS = ("correlation_id", "actor_id", "order_id", "order_code")

_context: ContextVar[dict[str, str]] = ContextVar("order_log_context", default={})


class LogContext:
    """Per-thread / per-task fields stamped on every record."""

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    def bind(**fields: Any) -> "_BoundContext":
        """
        Bind context fields for the duration of a ``with`` block.

        None values are ignored; the previous context is restored on exit,
        so nested binds layer (an order_code bound inside a call keeps the
        outer correlation_id).

        Raises:
            ValueError: A field name outside CONTEXT_FIELDS.
        """
        unknown = set(fields) - set(CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"unknown log context fields: {sorted(unknown)}")
        return _BoundContext({k: str(v) for k, v in fields.items() if v is not None})


class _BoundContext:

    def __init__(self, fields: dict[str, str]):
        self._fields = fields
        self._token = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set({**_context.get(), **self._fields})
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _context.reset(self._token)


# Attributes every LogRecord has; anything else came in through ``extra=``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and key not in payload:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        return fields


def get_logger(name: str) -> logging.Logger:
    """``get_logger("services.order")`` -> ``order_kernel.services.order``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach the JSON handler to the ``order_kernel`` logger.

    Idempotent: only the first call in a process takes effect until
    ``reset_logging()``.  Records do not propagate to the root logger.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    kernel_logger = logging.getLogger(LOGGER_NAMESPACE)
    kernel_logger.setLevel(level)
    kernel_logger.propagate = False

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    kernel_logger.addHandler(handler)


def reset_logging() -> None:
    """Detach handlers and allow configure_logging() again.  Tests only."""
    global _configured
    with _lock:
        _configured = False
    kernel_logger = logging.getLogger(LOGGER_NAMESPACE)
    kernel_logger.handlers.clear()
    kernel_logger.setLevel(logging.WARNING)
