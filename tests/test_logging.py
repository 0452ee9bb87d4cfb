"""Tests for the structured logging system (contract_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from contract_kernel.domain.advisory import LOSS_SPLIT_APPROXIMATED, Advisory
from contract_kernel.domain.terms import ContractType
from contract_kernel.domain.values import Money
from contract_kernel.exceptions import NothingToSettleError
from contract_kernel.logging_config import (
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
    """Parse all JSON log lines from a stream."""
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
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "contract_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("schedule_built", extra={"row_count": 12, "currency": "NGN"})

        record = _parse_log(stream)
        assert record["row_count"] == 12
        assert record["currency"] == "NGN"

    def test_decimal_serialized_as_string(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("amount", extra={"amount": Decimal("95833.33")})

        assert _parse_log(stream)["amount"] == "95833.33"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(correlation_id="abc-123", contract_id="ctr-456")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["contract_id"] == "ctr-456"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_contract_exception_code_extracted(self):
        """Contract engine exceptions carry .code and their context attributes."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")

        try:
            raise NothingToSettleError(12, 12)
        except NothingToSettleError:
            logger.error("settlement_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "NOTHING_TO_SETTLE"
        assert record["exc_type"] == "NothingToSettleError"
        assert record["exc_paid_installments"] == 12
        assert record["exc_total_installments"] == 12

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "application_id" not in record

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_uuid", extra={"application_ref": uid})

        assert _parse_log(stream)["application_ref"] == str(uid)

    def test_money_rendered_compactly(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("priced", extra={"selling_price": Money.of("1150000.00", "NGN")})

        assert _parse_log(stream)["selling_price"] == "1150000.00 NGN"

    def test_enum_rendered_by_value(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("routed", extra={"contract_type": ContractType.LEASE})

        assert _parse_log(stream)["contract_type"] == "ijarah"

    def test_advisory_rendered_as_fields(self):
        """Result records without their own __str__ log as field maps."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        advisory = Advisory(LOSS_SPLIT_APPROXIMATED, "approximated", {"investor_pct": "60"})
        get_logger("test").warning("advisory", extra={"advisory": advisory})

        assert _parse_log(stream)["advisory"] == {
            "code": LOSS_SPLIT_APPROXIMATED,
            "message": "approximated",
            "details": {"investor_pct": "60"},
        }

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # default level is INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", application_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "application_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "contract_id" not in LogContext.get_all()
        with LogContext.bind(contract_id="temp"):
            assert LogContext.get_all()["contract_id"] == "temp"
        assert "contract_id" not in LogContext.get_all()

    def test_additive_set(self):
        LogContext.set(correlation_id="a")
        LogContext.set(actor_id="b")
        ctx = LogContext.get_all()
        assert ctx["correlation_id"] == "a"
        assert ctx["actor_id"] == "b"

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            application_id="app",
            contract_id="ctr",
            actor_id="a",
            trace_id="t",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 5
        assert ctx["application_id"] == "app"
        assert ctx["trace_id"] == "t"

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="tenant_id"):
            LogContext.set(tenant_id="x")

    def test_bind_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(contract_id="ctr-1"):
                raise RuntimeError("boom")
        assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        assert len(logging.getLogger("contract_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("engines.schedules").name == "contract_kernel.engines.schedules"

    def test_logger_hierarchy(self):
        """Child loggers inherit the contract_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "contract_kernel.deep.nested.module"
