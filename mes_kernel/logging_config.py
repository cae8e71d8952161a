"""
mes_kernel.logging_config -- Structured JSON logging.

Every record under the ``mes_kernel`` logger tree is written as one JSON
object per line.  A record carries:

    ts, level, logger, message
    the scan context bound through LogContext (correlation_id, actor_id,
        process_code, line_code, trace_id)
    any ``extra=`` fields passed by the caller
    exc_* fields when logged with exc_info; MesKernelError subclasses
        contribute their ``code`` and structured attributes

Services log snake_case event names (``process_stock_registered``) and
put the numbers in ``extra``; messages are never formatted strings.
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

_LOGGER_PREFIX = "mes_kernel"

_CONTEXT_FIELDS = (
    "correlation_id",
    "actor_id",
    "process_code",
    "line_code",
    "trace_id",
)


class LogContext:
    """Scan-scoped log fields, safe across threads and tasks.

    A scan station binds the process and line it works for; every record
    logged while bound carries those fields.
    """

    _vars: dict[str, ContextVar[str | None]] = {
        name: ContextVar(f"mes_log_{name}", default=None) for name in _CONTEXT_FIELDS
    }

    @classmethod
    def _var(cls, name: str) -> ContextVar[str | None]:
        try:
            return cls._vars[name]
        except KeyError:
            raise TypeError(f"Unknown log context field: {name}") from None

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set context fields.  None values leave the field untouched."""
        for name, value in fields.items():
            if value is not None:
                cls._var(name).set(value)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {
            name: value
            for name, var in cls._vars.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in cls._vars.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        tokens = [
            (cls._var(name), cls._var(name).set(value))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


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
            if key not in _RESERVED_ATTRS:
                payload.setdefault(key, value)
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))
        return json.dumps(payload, default=_json_default, ensure_ascii=False)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # MesKernelError subclasses keep their context as public attributes
        for name, value in vars(exc).items():
            if not name.startswith("_") and name != "code":
                fields[f"exc_{name}"] = value
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger ``mes_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_config_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the ``mes_kernel`` tree.

    Only the first call has an effect until ``reset_logging()``.
    Records do not propagate to the root logger.
    """
    global _configured
    with _config_lock:
        if _configured:
            return
        _configured = True

    handler = handler or logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    tree = logging.getLogger(_LOGGER_PREFIX)
    tree.setLevel(level)
    tree.propagate = False
    tree.addHandler(handler)


def reset_logging() -> None:
    """Drop handlers and configuration state. Tests only."""
    global _configured
    with _config_lock:
        _configured = False
    tree = logging.getLogger(_LOGGER_PREFIX)
    tree.handlers.clear()
    tree.setLevel(logging.WARNING)
