"""Tests for the call-logging decorators."""

from __future__ import annotations

import logging

import pytest

from f1standings.service_logging import configure_logging, get_logger, log_api_call, log_service_call


class _FakeService:
    @log_api_call
    def fetch(self, endpoint: str) -> list[dict]:
        return [{"a": 1}, {"a": 2}]

    @log_api_call
    def fetch_failing(self, endpoint: str) -> list[dict]:
        raise ValueError("boom")

    @log_service_call
    def compute(self, year: int) -> int:
        return year


@pytest.fixture(autouse=True)
def _propagate():
    """Let caplog see package records even after configure_logging ran."""
    logger = get_logger()
    old_propagate, old_level = logger.propagate, logger.level
    logger.propagate = True
    logger.setLevel(logging.DEBUG)
    yield
    logger.propagate = old_propagate
    logger.setLevel(old_level)


def test_api_call_logs_item_count(caplog):
    with caplog.at_level(logging.DEBUG, logger="f1standings"):
        assert len(_FakeService().fetch("/sessions")) == 2
    messages = [r.getMessage() for r in caplog.records]
    assert any("CALL: _FakeService.fetch('/sessions')" in m for m in messages)
    assert any("OK: _FakeService.fetch('/sessions') -> 2 items" in m for m in messages)


def test_api_call_failure_is_logged_and_reraised(caplog):
    with caplog.at_level(logging.DEBUG, logger="f1standings"):
        with pytest.raises(ValueError, match="boom"):
            _FakeService().fetch_failing("/drivers")
    failures = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(failures) == 1
    assert "FAIL: _FakeService.fetch_failing('/drivers') -> ValueError: boom" in failures[0].getMessage()


def test_service_call_skips_first_argument(caplog):
    with caplog.at_level(logging.INFO, logger="f1standings"):
        assert _FakeService().compute(2025) == 2025
    messages = [r.getMessage() for r in caplog.records]
    assert "SERVICE CALL: _FakeService.compute(2025)" in messages
    assert any(m.startswith("SERVICE OK: _FakeService.compute") for m in messages)


def test_configure_logging_adds_one_handler():
    logger = configure_logging("DEBUG")
    handlers = list(logger.handlers)
    configure_logging("warning")
    assert logger.handlers == handlers
    assert len(handlers) >= 1
    assert logger.level == logging.WARNING
