"""
mes_engines.tracer -- MES_ENGINE_TRACE records for pure engine calls.

Responsibility:
    ``@traced_engine`` logs one record per engine call with the engine
    name and version, a fingerprint of the scalar inputs that decide the
    result, the number of rows the call was given and how long it took.
    Two calls with equal fingerprints and equal rows produce equal results.

Architecture position:
    Engines -- support for the pure calculation layer.  Emits a log
    record and nothing else; results pass through untouched.

Failure modes:
    - Exceptions raised by the engine propagate; no trace is written
      for a failed call.
    - Unknown value types are fingerprinted through ``str()``.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable, Mapping, Sized
from decimal import Decimal
from typing import Any

from mes_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonical(value: Any) -> Any:
    # Decimal("1.0") and Decimal("1") fingerprint identically
    if isinstance(value, Decimal):
        return str(value.normalize())
    if isinstance(value, Mapping):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if value is None or isinstance(value, (bool, int, str)):
        return value
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """16 hex chars of SHA-256 over the named arguments.

    Absent arguments hash as null.
    """
    selected = {name: _canonical(arguments.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _row_count(arguments: Mapping[str, Any]) -> int | None:
    for value in arguments.values():
        if isinstance(value, Sized) and not isinstance(value, (str, bytes, Mapping)):
            return len(value)
    return None


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Wrap an engine function so every call emits MES_ENGINE_TRACE.

    Args:
        engine_name: e.g. "fifo_depletion".
        engine_version: e.g. "1.0".
        fingerprint_fields: Parameter names hashed into
            ``input_fingerprint``; positional and keyword calls hash alike.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            arguments = bound.arguments

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            _logger.info(
                "MES_ENGINE_TRACE",
                extra={
                    "trace_type": "MES_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": (
                        compute_input_fingerprint(fingerprint_fields, arguments)
                        if fingerprint_fields
                        else ""
                    ),
                    "input_rows": _row_count(arguments),
                    "duration_ms": elapsed_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
