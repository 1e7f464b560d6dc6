"""Tests for run listeners."""

import logging

import pytest

from suite_runner.listener import LoggingListener, RunListener
from suite_runner.models.result import TestStatus
from suite_runner.testing.factories import TestResultFactory, completed_result


def test_base_listener_ignores_events() -> None:
    """The default listener accepts every event without side effects."""
    listener = RunListener()
    test = TestResultFactory.build()

    listener.on_test_started(test)
    listener.on_test_completed(test)
    listener.on_progress(1, 2)
    listener.on_unmatched_failure("[FAIL] something")


def test_logging_listener_logs_completion(caplog: pytest.LogCaptureFixture) -> None:
    """Completed tests are logged with their status and message."""
    test = completed_result(
        "B", TestStatus.FAILED, "boom", class_name="SampleTests"
    )

    with caplog.at_level(logging.INFO):
        LoggingListener().on_test_completed(test)

    assert "Test completed: SampleTests.B status=Failed message=boom" in caplog.text


def test_logging_listener_logs_progress(caplog: pytest.LogCaptureFixture) -> None:
    """Progress is logged with a percentage."""
    with caplog.at_level(logging.INFO):
        LoggingListener().on_progress(1, 4)

    assert "Progress: 1/4 (25.0%)" in caplog.text


def test_logging_listener_warns_on_unmatched_failure(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Unmatched failure lines are logged as warnings."""
    logger = logging.getLogger("tests.listener")

    with caplog.at_level(logging.WARNING, logger="tests.listener"):
        LoggingListener(logger).on_unmatched_failure("Unknown [FAIL]")

    [record] = caplog.records
    assert record.levelno == logging.WARNING
    assert record.name == "tests.listener"
    assert "Unknown [FAIL]" in record.getMessage()
