"""Run listeners receiving per-test progress from the engine and the harness."""

import logging

from suite_runner.models.result import TestResult

log = logging.getLogger(__name__)


class RunListener:
    """Receives run events. Every hook is a no-op by default."""

    def on_test_started(self, test: TestResult) -> None:
        """Called when a test moves to Running."""

    def on_test_completed(self, test: TestResult) -> None:
        """Called when a test reaches a terminal status."""

    def on_progress(self, completed: int, total: int) -> None:
        """Called after every terminal transition."""

    def on_unmatched_failure(self, line: str) -> None:
        """Called when a failure line could not be tied to any known test."""


class LoggingListener(RunListener):
    """Logs run events."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or log

    def on_test_started(self, test: TestResult) -> None:
        self._log.debug("Test started: %s", test.full_name)

    def on_test_completed(self, test: TestResult) -> None:
        if test.error_message:
            self._log.info(
                "Test completed: %s status=%s message=%s",
                test.full_name,
                test.status,
                test.error_message,
            )
        else:
            self._log.info("Test completed: %s status=%s", test.full_name, test.status)

    def on_progress(self, completed: int, total: int) -> None:
        percent = completed / total * 100 if total else 100.0
        self._log.info("Progress: %d/%d (%.1f%%)", completed, total, percent)

    def on_unmatched_failure(self, line: str) -> None:
        self._log.warning("Failure line did not match any known test: %s", line)
