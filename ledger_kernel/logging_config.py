"""
Structured logging for the ledger kernel.

Every record under the ``ledger_kernel`` logger is rendered as one JSON
object: timestamp, level, logger, message, the bound posting context
(correlation, document, transaction and actor ids), any ``extra=`` fields,
and, for exceptions, the error class, its ``code`` and its structured
attributes.

Usage::

    logger = get_logger("services.posting_engine")
    with LogContext.bind(document_id=doc.document_id):
        logger.info("posting_started", extra={"document_kind": "sales_invoice"})
"""

from __future__ import annotations

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
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import IO, Any
from uuid import UUID

ROOT_LOGGER = "ledger_kernel"

CONTEXT_FIELDS = ("correlation_id", "document_id", "transaction_id", "actor_id")

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("ledger_log_context", default=_EMPTY)


class LogContext:
    """
    Posting-scoped fields stamped onto every record.

    Backed by a single ContextVar, so each thread and each asyncio task
    sees its own values.
    """

    @staticmethod
    def _merged(fields: Mapping[str, object]) -> Mapping[str, str]:
        unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context fields: {unknown}")
        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: object) -> None:
        """Set fields for the rest of the current context; None leaves a field as is."""
        _context.set(cls._merged(fields))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @classmethod
    def bind(cls, **fields: object) -> AbstractContextManager[None]:
        """Set fields inside a ``with`` block and restore the previous values after it."""
        return _bound(cls._merged(fields))


@contextmanager
def _bound(values: Mapping[str, str]) -> Iterator[None]:
    token = _context.set(values)
    try:
        yield
    finally:
        _context.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    fields.update(
        (f"exc_{name}", value)
        for name, value in vars(exc).items()
        if not name.startswith("_") and name != "code"
    )
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON line per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger named ``ledger_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


_setup_lock = threading.Lock()
_HANDLER_FLAG = "_ledger_kernel_handler"


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: IO[str] | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Send ``ledger_kernel`` records as JSON to ``handler`` (or a stream handler).

    Only the first call has an effect until reset_logging() is called.
    """
    root = logging.getLogger(ROOT_LOGGER)
    with _setup_lock:
        if any(getattr(h, _HANDLER_FLAG, False) for h in root.handlers):
            return
        target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())
        setattr(target, _HANDLER_FLAG, True)
        root.addHandler(target)
        root.setLevel(level)
        root.propagate = False


def reset_logging() -> None:
    """Remove the configured handler and restore the default level (tests)."""
    root = logging.getLogger(ROOT_LOGGER)
    with _setup_lock:
        for h in [h for h in root.handlers if getattr(h, _HANDLER_FLAG, False)]:
            root.removeHandler(h)
        root.setLevel(logging.WARNING)
