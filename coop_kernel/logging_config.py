"""
Structured logging for the coop ledger.

Every record under the ``coop_kernel`` logger is written as one JSON object
per line. Three context fields ride along with every record emitted inside
a ``LogContext.bind`` scope:

    member_id        the member a write belongs to
    account_id       the account being appended to or changed
    correlation_id   ties together the records of one multi-write operation
                     (an account opening with its seed and fee, one maturity
                     sweep)

Event names are snake_case messages (``transaction_appended``,
``balance_cache_corrected``, ``withdrawal_rejected`` ...) with their data in
``extra``. Amounts are logged as strings so no float ever appears in the
log. A logged CoopLedgerError contributes its ``code``, ``retryable`` flag
and structured attributes as ``exc_*`` keys.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, TextIO
from uuid import uuid4

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

ROOT_LOGGER = "coop_kernel"

CONTEXT_FIELDS = ("correlation_id", "member_id", "account_id")

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"coop_log_{name}", default=None) for name in CONTEXT_FIELDS
}


class LogContext:
    """
    Context fields attached to every record.

    Backed by contextvars, so each thread and each asyncio task sees its own
    values.
    """

    @staticmethod
    def get_all() -> dict[str, str]:
        return {name: var.get() for name, var in _context_vars.items() if var.get() is not None}

    @staticmethod
    def clear() -> None:
        for var in _context_vars.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """
        Set context fields for the duration of the block.

        ``None`` values are skipped so an outer binding survives. Unknown
        field names raise TypeError.
        """
        unknown = set(fields) - set(CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        tokens = [
            (_context_vars[name], _context_vars[name].set(value))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)

    @classmethod
    @contextmanager
    def correlate(cls) -> Iterator[str]:
        """
        Give the block a correlation id.

        Reuses the caller's id when one is already bound, so nested
        operations log under the outermost one.
        """
        current = _context_vars["correlation_id"].get()
        if current is not None:
            yield current
            return
        correlation_id = uuid4().hex
        with cls.bind(correlation_id=correlation_id):
            yield correlation_id


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    # Decimal and anything else: exact text, never a float
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: core fields, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_to_json)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {"exc_type": type(exc).__name__, "exc_message": str(exc)}
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
            fields["exc_retryable"] = bool(getattr(exc, "retryable", False))
        fields.update(
            (f"exc_{key}", value) for key, value in vars(exc).items() if not key.startswith("_")
        )
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger ``coop_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


_configure_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on ``coop_kernel``. Later calls are no-ops.

    ``level`` accepts a number or a name such as ``"DEBUG"``.
    """
    global _configured
    with _configure_lock:
        if _configured:
            return
        _configured = True
        root = logging.getLogger(ROOT_LOGGER)
        root.setLevel(level.upper() if isinstance(level, str) else level)
        root.propagate = False
        target = handler or logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())
        root.addHandler(target)


def reset_logging() -> None:
    """Remove installed handlers so ``configure_logging`` runs again. Tests only."""
    global _configured
    with _configure_lock:
        _configured = False
        root = logging.getLogger(ROOT_LOGGER)
        for installed in list(root.handlers):
            root.removeHandler(installed)
        root.setLevel(logging.WARNING)
        root.propagate = True
