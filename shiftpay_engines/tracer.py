"""
shiftpay_engines.tracer -- SHIFTPAY_ENGINE_TRACE records for engine calls.

``@traced_engine`` wraps a pure engine function and, after it returns,
logs which engine ran, its version, how long it took and a short hash of
the arguments that identify the run (for payroll: year and month).  Two
runs with the same fingerprint worked on the same period, which is what an
operator needs when comparing a cached payload with a fresh computation.

The decorator reads arguments and writes one log record.  It does not
touch the arguments or the result, so the engines stay free of I/O apart
from logging.

Fingerprints are stable: mappings and sets are ordered before hashing,
sequences keep their order, and an argument that was not passed hashes
like None.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, TypeVar
from uuid import UUID

from shiftpay_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])


def _stable_text(value: Any) -> str:
    match value:
        case None:
            return "null"
        case bool() | int() | float() | Decimal() | UUID():
            return str(value)
        case str():
            return value
        case datetime() | date():
            return value.isoformat()
        case Mapping():
            pairs = sorted((str(k), _stable_text(v)) for k, v in value.items())
            return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
        case set() | frozenset():
            return "{" + ",".join(sorted(_stable_text(v) for v in value)) + "}"
        case list() | tuple():
            return "[" + ",".join(_stable_text(v) for v in value) + "]"
        case _:
            # Frozen DTOs have a deterministic repr
            return repr(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """First 16 hex chars of SHA-256 over ``name=value`` for each field."""
    canonical = "|".join(f"{name}={_stable_text(arguments.get(name))}" for name in fingerprint_fields)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:
    """Log SHIFTPAY_ENGINE_TRACE after each successful call of the wrapped engine.

    Args:
        engine_name: Name in the trace, e.g. "payroll".
        engine_version: Bumped when the engine's output changes for the
            same input.
        fingerprint_fields: Parameter names hashed into input_fingerprint,
            whether passed positionally or by keyword.
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            _logger.info(
                "SHIFTPAY_ENGINE_TRACE",
                extra={
                    "trace_type": "SHIFTPAY_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": fingerprint,
                    "duration_ms": elapsed_ms,
                },
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
