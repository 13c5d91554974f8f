"""
Tests for structured event logging.
"""

import logging

from services.structured_logging import StructuredLogger, configure_logging, get_structured_logger


def test_event_renders_component_and_fields(caplog):
    log = get_structured_logger("retry")

    with caplog.at_level(logging.INFO, logger="bodyshape.retry"):
        log.info("backoff", attempt=1, delay_ms=1000.0, note=None)

    record = caplog.records[-1]
    assert record.getMessage() == "retry.backoff attempt=1 delay_ms=1000"
    assert record.event == "backoff"
    assert record.component == "retry"
    assert record.fields == {"attempt": 1, "delay_ms": 1000.0}


def test_sensitive_fields_are_masked(caplog):
    log = get_structured_logger("ai_client")

    with caplog.at_level(logging.INFO, logger="bodyshape.ai_client"):
        log.info("initialized", api_key="AIza-secret", model="m")

    message = caplog.records[-1].getMessage()
    assert "AIza-secret" not in message
    assert "api_key=***" in message


def test_bind_shares_sink(caplog):
    parent = StructuredLogger("orchestrator", logging.getLogger("bodyshape.test"))
    child = parent.bind("location")

    with caplog.at_level(logging.WARNING, logger="bodyshape.test"):
        child.warning("geo_unmapped", country="ZZ")
        child.debug("hidden")

    assert [r.getMessage() for r in caplog.records] == ["location.geo_unmapped country=ZZ"]


def test_configure_logging_is_idempotent():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        configure_logging("debug")
        configure_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == max(len(before), 1)
        assert logging.getLogger("google_genai").level == logging.WARNING
    finally:
        root.handlers = before
        root.setLevel(level)
