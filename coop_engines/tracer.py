"""
coop_engines.tracer -- ``@traced_engine`` emitting COOP_ENGINE_TRACE.

Responsibility:
    Wraps pure calculator/reconciler/aggregator calls with one structured log
    record: engine name, version, a fingerprint of the selected inputs and
    the duration. The engine itself stays pure.

Invariants enforced:
    - The fingerprint is deterministic: dict keys are sorted, Decimals keep
      their exact text, dates use ISO format, enums use their value.

Usage:
    @traced_engine("fixed_deposit", "1.0", fingerprint_fields=("principal", "rate"))
    def project_fixed_deposit(*, principal, rate, term_months): ...
"""

from __future__ import annotations

import functools
import hashlib
import logging
import time
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

# Sits under the coop_kernel logger so configure_logging() formats it.
_logger = logging.getLogger("coop_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{_canonicalize(k)}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """16-hex-char SHA-256 prefix over the named keyword arguments (missing -> null)."""
    canonical = "|".join(f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that logs COOP_ENGINE_TRACE after each successful call."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = compute_input_fingerprint(fingerprint_fields, kwargs) if fingerprint_fields else ""

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 3)

            _logger.info(
                "COOP_ENGINE_TRACE",
                extra={
                    "trace_type": "COOP_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
