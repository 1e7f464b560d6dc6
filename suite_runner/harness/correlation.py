"""Correlate streamed runner output lines with discovered tests.

Two line formats are understood:

- ``text``: free-form console output of a runner such as ``dotnet test``,
  where outcomes appear as ``<name> [PASS]`` / ``<name> [FAIL]`` and the run
  is framed by start and finish markers;
- ``jsonl``: one JSON event per line,
  ``{"event": "fail", "name": "Ns.Class.Method", "message": "..."}``.

Tests that never report an outcome are finalized as passed once the run
finishes, since runners commonly omit explicit lines for passing tests.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from suite_runner.harness.config import HarnessConfig
from suite_runner.listener import RunListener
from suite_runner.models.result import TestResult, TestStatus

log = logging.getLogger(__name__)

PASS_MARKER = "[PASS]"
FAIL_MARKER = "[FAIL]"

SHORT_NAME_PATTERN = re.compile(r"(\w+)\s*\[(?:PASS|FAIL)\]")
QUALIFIED_NAME_PATTERN = re.compile(r"((?:\w+\.)+\w+)\s*\[(?:PASS|FAIL)\]")

# Longest stretch of a line, ending at its first outcome marker, that the name
# patterns are applied to.
NAME_WINDOW = 1024


def qualified_name_pattern(namespace_prefix: str | None) -> re.Pattern[str]:
    """Pattern capturing the dotted name before an outcome marker."""
    if not namespace_prefix:
        return QUALIFIED_NAME_PATTERN
    return re.compile(
        rf"({re.escape(namespace_prefix)}[\w.]*)\s*\[(?:PASS|FAIL)\]"
    )


def name_window(line: str) -> str:
    """The text of ``line`` up to and including its first outcome marker."""
    ends = [
        index + len(marker)
        for marker in (PASS_MARKER, FAIL_MARKER)
        if (index := line.find(marker)) >= 0
    ]
    if not ends:
        return line
    end = min(ends)
    return line[max(0, end - NAME_WINDOW) : end]


class OutputCorrelator(ABC):
    """Applies output lines to the results of one run.

    Lines must be fed in the order the process wrote them, from a single
    task; the correlator holds no lock.
    """

    def __init__(
        self,
        tests: Sequence[TestResult],
        listener: RunListener | None = None,
    ) -> None:
        self.tests = list(tests)
        self.listener = listener or RunListener()
        self.unmatched_failures: list[str] = []
        self._completed = sum(1 for test in self.tests if test.is_terminal)

    @property
    def completed(self) -> int:
        return self._completed

    def feed(self, line: str) -> None:
        """Apply one output line. Errors are logged and do not stop the run."""
        try:
            self.handle_line(line)
        except Exception as e:
            log.warning("Failed to process output line %r: %s", line, e, exc_info=e)

    @abstractmethod
    def handle_line(self, line: str) -> None:
        """Apply one output line to the results."""

    def finalize(self) -> None:
        """Mark every test without an observed outcome as passed."""
        for test in self.tests:
            if not test.is_terminal:
                self._complete(test, TestStatus.PASSED, report_progress=False)
        self.listener.on_progress(self._completed, len(self.tests))

    def mark_all_running(self) -> None:
        """Move every pending test to Running."""
        for test in self.tests:
            if test.status is TestStatus.PENDING:
                self._start(test)

    @staticmethod
    def accepts_failure(test: TestResult) -> bool:
        """Whether a failure line may be applied to ``test``.

        A failure naming a test that already passed or was skipped is kept
        as unmatched rather than dropped.
        """
        return test.is_failed or not test.is_terminal

    def record_unmatched_failure(self, line: str) -> None:
        self.unmatched_failures.append(line)
        self.listener.on_unmatched_failure(line)

    def _start(self, test: TestResult) -> None:
        test.start()
        self.listener.on_test_started(test)

    def _complete(
        self,
        test: TestResult,
        status: TestStatus,
        error_message: str | None = None,
        *,
        report_progress: bool = True,
    ) -> None:
        if test.is_terminal:
            log.debug(
                "Ignoring %s for %s, already %s", status, test.full_name, test.status
            )
            return

        test.complete(status, error_message)
        self._completed += 1
        self.listener.on_test_completed(test)
        if report_progress:
            self.listener.on_progress(self._completed, len(self.tests))


class TextOutputCorrelator(OutputCorrelator):
    """Matches free-form ``[PASS]`` / ``[FAIL]`` lines to tests by name.

    Matching tries, in order: configured pinned names (failure lines only),
    the word before the marker, the dotted name before the marker, and
    finally any test name occurring anywhere in the line. Within a tier,
    tests without an outcome win over finished ones, and a test whose
    qualified name appears in the line wins over one whose does not.
    """

    def __init__(
        self,
        tests: Sequence[TestResult],
        config: HarnessConfig,
        listener: RunListener | None = None,
    ) -> None:
        super().__init__(tests, listener)
        self.config = config
        self._qualified_pattern = qualified_name_pattern(config.namespace_prefix)

    def handle_line(self, line: str) -> None:
        if PASS_MARKER in line:
            if (test := self.find_test(line)) is not None:
                self._complete(test, TestStatus.PASSED)
        elif FAIL_MARKER in line:
            test = self.find_test(line)
            if test is not None and self.accepts_failure(test):
                self._complete(test, TestStatus.FAILED, f"Test failed: {line.strip()}")
            else:
                self.record_unmatched_failure(line)
        elif self.config.start_marker in line:
            self.mark_all_running()
        elif self.config.finish_marker in line:
            self.finalize()

    def find_test(self, line: str) -> TestResult | None:
        """Find the test an outcome line refers to."""
        return (
            self._match_pinned(line)
            or self._match_short_name(line)
            or self._match_qualified_name(line)
            or self._match_anywhere(line)
        )

    @staticmethod
    def _pick(line: str, candidates: Iterable[TestResult]) -> TestResult | None:
        ranked = sorted(
            candidates, key=lambda test: (test.is_terminal, test.full_name not in line)
        )
        return ranked[0] if ranked else None

    def _match_pinned(self, line: str) -> TestResult | None:
        if FAIL_MARKER not in line:
            return None
        for name in self.config.pinned_failure_names:
            if name not in line:
                continue
            candidates = (test for test in self.tests if test.name == name)
            if (test := self._pick(line, candidates)) is not None:
                return test
        return None

    def _match_short_name(self, line: str) -> TestResult | None:
        if (match := SHORT_NAME_PATTERN.search(name_window(line))) is None:
            return None

        token = match.group(1).casefold()
        exact = self._pick(
            line, (test for test in self.tests if test.name.casefold() == token)
        )
        if exact is not None:
            return exact

        partial = self._pick(
            line,
            (
                test
                for test in self.tests
                if token in test.name.casefold() or test.name.casefold() in token
            ),
        )
        if partial is not None:
            log.debug("Matched %s by partial name %r", partial.full_name, token)
        return partial

    def _match_qualified_name(self, line: str) -> TestResult | None:
        if (match := self._qualified_pattern.search(name_window(line))) is None:
            return None

        token = match.group(1)
        test = self._pick(
            line,
            (
                test
                for test in self.tests
                if token.endswith(test.full_name) or test.name in token
            ),
        )
        if test is not None:
            log.debug("Matched %s by qualified name %r", test.full_name, token)
        return test

    def _match_anywhere(self, line: str) -> TestResult | None:
        test = self._pick(line, (test for test in self.tests if test.name in line))
        if test is not None:
            log.debug("Matched %s by containment", test.full_name)
        return test


class JsonLineCorrelator(OutputCorrelator):
    """Applies structured events, one JSON object per line.

    Events: ``run_start``, ``start``, ``pass``, ``fail``, ``skip`` and
    ``run_finish``. Lines that are not JSON objects are ignored.
    """

    def handle_line(self, line: str) -> None:
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            log.debug("Ignoring non-JSON output line %r", line)
            return
        if not isinstance(event, dict):
            return

        kind = event.get("event")
        name = event.get("name")
        message = event.get("message")

        if kind == "run_start":
            self.mark_all_running()
            return
        if kind == "run_finish":
            self.finalize()
            return
        if kind not in ("start", "pass", "fail", "skip"):
            log.debug("Ignoring unknown event %r", kind)
            return

        test = self.find_test(name) if isinstance(name, str) else None
        if kind == "fail" and (test is None or not self.accepts_failure(test)):
            self.record_unmatched_failure(line)
            return
        if test is None:
            return

        if kind == "start":
            if test.status is TestStatus.PENDING:
                self._start(test)
        elif kind == "pass":
            self._complete(test, TestStatus.PASSED)
        elif kind == "fail":
            self._complete(test, TestStatus.FAILED, message or "Test failed")
        else:
            self._complete(test, TestStatus.SKIPPED, message or "Skipped")

    def find_test(self, name: str) -> TestResult | None:
        """Find a test by qualified name, falling back to its short name.

        Among tests sharing a short name, one without an outcome is preferred.
        """
        for test in self.tests:
            if test.full_name == name:
                return test
        candidates = [test for test in self.tests if test.name == name]
        return next(
            (test for test in candidates if not test.is_terminal),
            candidates[0] if candidates else None,
        )


def create_correlator(
    config: HarnessConfig,
    tests: Sequence[TestResult],
    listener: RunListener | None = None,
) -> OutputCorrelator:
    """Create the correlator for the configured output protocol."""
    if config.protocol == "jsonl":
        return JsonLineCorrelator(tests, listener)
    return TextOutputCorrelator(tests, config, listener)
