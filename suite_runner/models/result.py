"""Models for test execution results.

Results form a three-level rollup: test, class, suite. Counts at the class and
suite level are always derived from the individual test statuses.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum


class ResultStateError(RuntimeError):
    """Raised on a status transition or mutation the result model forbids."""


class TestStatus(StrEnum):
    """Lifecycle status of a single test."""

    __test__ = False

    NOT_STARTED = "NotStarted"
    PENDING = "Pending"
    RUNNING = "Running"
    PASSED = "Passed"
    FAILED = "Failed"
    SKIPPED = "Skipped"
    TIMEOUT = "Timeout"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


WAITING_STATUSES: frozenset[TestStatus] = frozenset(
    [TestStatus.NOT_STARTED, TestStatus.PENDING]
)
TERMINAL_STATUSES: frozenset[TestStatus] = frozenset(
    [TestStatus.PASSED, TestStatus.FAILED, TestStatus.SKIPPED, TestStatus.TIMEOUT]
)
STATUSES_WITH_MESSAGE: frozenset[TestStatus] = frozenset(
    [TestStatus.FAILED, TestStatus.SKIPPED, TestStatus.TIMEOUT]
)


@dataclass(kw_only=True)
class TestResult:
    """Outcome of a single test.

    Status moves forward only: waiting -> Running -> terminal, or straight
    from waiting to terminal. Once terminal, only a screenshot path may still
    be attached.
    """

    __test__ = False

    name: str
    display_name: str = ""
    class_name: str = ""
    category: str = ""
    description: str = ""
    expected_duration_ms: int = 0
    status: TestStatus = TestStatus.NOT_STARTED
    start_time: datetime | None = None
    end_time: datetime | None = None
    error_message: str | None = None
    screenshot_path: str | None = None

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.name

    @property
    def full_name(self) -> str:
        if not self.class_name:
            return self.name
        return f"{self.class_name}.{self.name}"

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_passed(self) -> bool:
        return self.status is TestStatus.PASSED

    @property
    def is_failed(self) -> bool:
        return self.status in (TestStatus.FAILED, TestStatus.TIMEOUT)

    @property
    def is_skipped(self) -> bool:
        return self.status is TestStatus.SKIPPED

    @property
    def duration(self) -> timedelta | None:
        """Elapsed time, available once the test reached a terminal status."""
        if not self.is_terminal or self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float | None:
        if (duration := self.duration) is None:
            return None
        return duration.total_seconds() * 1000

    def start(self) -> None:
        """Move a waiting test to Running."""
        if self.status not in WAITING_STATUSES:
            raise ResultStateError(
                f"Cannot start test '{self.full_name}' in status {self.status}"
            )
        self.status = TestStatus.RUNNING
        self.start_time = datetime.now()

    def complete(self, status: TestStatus, error_message: str | None = None) -> None:
        """Move a non-terminal test to the terminal ``status``."""
        if not status.is_terminal:
            raise ResultStateError(f"{status} is not a terminal status")
        if self.is_terminal:
            raise ResultStateError(
                f"Test '{self.full_name}' already completed with {self.status}"
            )

        now = datetime.now()
        if self.start_time is None:
            self.start_time = now
        self.end_time = now
        self.status = status
        self.error_message = error_message if status in STATUSES_WITH_MESSAGE else None

    def attach_screenshot(self, path: str) -> None:
        """Record a screenshot path on a completed test."""
        if not self.is_terminal:
            raise ResultStateError(
                f"Cannot attach a screenshot to unfinished test '{self.full_name}'"
            )
        self.screenshot_path = path


@dataclass(kw_only=True)
class TestClassResult:
    """Results of all tests of one class, in registration or discovery order."""

    __test__ = False

    class_name: str
    display_name: str = ""
    tests: list[TestResult] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.class_name

    def add(self, test: TestResult) -> None:
        self.tests.append(test)

    @property
    def passed(self) -> int:
        return sum(1 for test in self.tests if test.is_passed)

    @property
    def failed(self) -> int:
        return sum(1 for test in self.tests if test.is_failed)

    @property
    def skipped(self) -> int:
        return sum(1 for test in self.tests if test.is_skipped)

    @property
    def pending(self) -> int:
        return sum(1 for test in self.tests if not test.is_terminal)

    @property
    def total(self) -> int:
        return len(self.tests)


@dataclass(kw_only=True)
class TestSuiteResult:
    """Results of a whole run.

    Sealed once the run completes; a sealed suite accepts no more classes and
    holds only terminal tests.
    """

    __test__ = False

    classes: list[TestClassResult] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None

    @property
    def is_sealed(self) -> bool:
        return self.end_time is not None

    def add_class(self, test_class: TestClassResult) -> None:
        if self.is_sealed:
            raise ResultStateError("Cannot add a test class to a sealed suite")
        self.classes.append(test_class)

    def seal(self) -> None:
        """Stamp the end time; every test must have reached a terminal status."""
        if self.is_sealed:
            raise ResultStateError("Suite result is already sealed")
        unfinished = [
            test.full_name for test in self.iter_tests() if not test.is_terminal
        ]
        if unfinished:
            raise ResultStateError(
                f"Cannot seal suite with unfinished tests: {', '.join(unfinished)}"
            )
        self.end_time = datetime.now()

    def iter_tests(self) -> Iterator[TestResult]:
        for test_class in self.classes:
            yield from test_class.tests

    def failed_tests(self) -> Sequence[TestResult]:
        return [test for test in self.iter_tests() if test.is_failed]

    @property
    def total(self) -> int:
        return sum(test_class.total for test_class in self.classes)

    @property
    def passed(self) -> int:
        return sum(test_class.passed for test_class in self.classes)

    @property
    def failed(self) -> int:
        return sum(test_class.failed for test_class in self.classes)

    @property
    def skipped(self) -> int:
        return sum(test_class.skipped for test_class in self.classes)

    @property
    def pending(self) -> int:
        return sum(test_class.pending for test_class in self.classes)

    @property
    def duration(self) -> timedelta:
        return (self.end_time or datetime.now()) - self.start_time

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.passed / self.total * 100

    @property
    def all_passed(self) -> bool:
        return self.failed == 0 and self.total > 0
