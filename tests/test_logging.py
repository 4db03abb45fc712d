"""Tests for the structured logging system (ledger_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from ledger_kernel.domain.documents import DocumentKind
from ledger_kernel.exceptions import InsufficientFundsError
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "ledger_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("posting_completed", extra={"entry_count": 4, "status": "posted"})

        record = _parse_log(stream)
        assert record["entry_count"] == 4
        assert record["status"] == "posted"

    def test_decimal_and_enum_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("amounts", extra={
            "total": Decimal("1003.00"), "kind": DocumentKind.SALES_INVOICE,
        })

        record = _parse_log(stream)
        assert record["total"] == "1003.00"
        assert record["kind"] == "sales_invoice"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", document_id="INV-1")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["document_id"] == "INV-1"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        """Kernel exceptions carry a .code attribute and structured fields."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InsufficientFundsError("1100", "500.00", "600.00", "USD")
        except InsufficientFundsError:
            get_logger("test").error("transfer_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INSUFFICIENT_FUNDS"
        assert record["exc_type"] == "InsufficientFundsError"
        assert record["exc_account_code"] == "1100"
        assert record["exc_available"] == "500.00"
        assert record["exc_requested"] == "600.00"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "document_id" not in record

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_uuid", extra={"transaction_id_value": uid})

        record = _parse_log(stream)
        assert record["transaction_id_value"] == str(uid)

    def test_default_level_drops_debug(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", document_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "document_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(document_id="outer")
        with LogContext.bind(document_id="inner"):
            assert LogContext.get_all()["document_id"] == "inner"
        assert LogContext.get_all()["document_id"] == "outer"

    def test_bind_restores_none(self):
        assert "transaction_id" not in LogContext.get_all()
        with LogContext.bind(transaction_id="temp"):
            assert LogContext.get_all()["transaction_id"] == "temp"
        assert "transaction_id" not in LogContext.get_all()

    def test_bind_rejects_unknown_fields(self):
        with pytest.raises(TypeError, match="Unknown log context fields"):
            LogContext.bind(event_id="e")

    def test_all_fields(self):
        LogContext.set(correlation_id="c", document_id="d", transaction_id="t", actor_id="a")
        ctx = LogContext.get_all()
        assert len(ctx) == 4
        assert ctx["actor_id"] == "a"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("ledger_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.posting").name == "ledger_kernel.services.posting"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "ledger_kernel.deep.nested.module"
