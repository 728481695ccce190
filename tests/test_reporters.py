"""Tests for the result reporters."""

from __future__ import annotations

import logging

from endpoint_monitor.checks.base import CheckOutcome
from endpoint_monitor.scheduling.reporters import CompositeReporter, LoggingReporter, StatusBoard

from conftest import ListReporter


class TestLoggingReporter:
    def test_success_logged_at_info(self, make_endpoint, caplog) -> None:
        outcome = CheckOutcome(make_endpoint(name="web-1"), True, "all good", 42.0)
        with caplog.at_level(logging.INFO, logger="endpoint_monitor.scheduling.reporters"):
            LoggingReporter().report(outcome)
        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert "web-1" in record.getMessage()
        assert "SUCCESS" in record.getMessage()
        assert "all good" in record.getMessage()

    def test_failure_logged_at_warning(self, make_endpoint, caplog) -> None:
        outcome = CheckOutcome(make_endpoint(name="db"), False, "refused", 5.0)
        with caplog.at_level(logging.INFO, logger="endpoint_monitor.scheduling.reporters"):
            LoggingReporter().report(outcome)
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "FAILED" in record.getMessage()


class TestStatusBoard:
    def test_keeps_latest_only(self, make_endpoint) -> None:
        board = StatusBoard()
        ep = make_endpoint(name="api")
        board.report(CheckOutcome(ep, False, "first", 1.0))
        board.report(CheckOutcome(ep, True, "second", 1.0))
        latest = board.latest("api")
        assert latest is not None
        assert latest.message == "second"
        assert list(board.snapshot()) == ["api"]

    def test_unknown_endpoint(self) -> None:
        assert StatusBoard().latest("nope") is None


class TestCompositeReporter:
    def test_fans_out_and_isolates_failures(self, make_endpoint, caplog) -> None:
        class Broken:
            def report(self, outcome: CheckOutcome) -> None:
                raise ValueError("sink down")

        first, last = ListReporter(), ListReporter()
        composite = CompositeReporter([first, Broken(), last])
        composite.report(CheckOutcome(make_endpoint(), True, "ok", 1.0))

        assert first.names == ["web-1"]
        assert last.names == ["web-1"]
        assert any("Broken" in r.getMessage() for r in caplog.records)
