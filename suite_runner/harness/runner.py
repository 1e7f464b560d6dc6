"""External test harness: discover and run tests in a child process."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from suite_runner.harness.config import HarnessConfig
from suite_runner.harness.correlation import create_correlator
from suite_runner.harness.discovery import discover_tests
from suite_runner.harness.process import HarnessError, stream_process
from suite_runner.harness.project_root import locate_project_root
from suite_runner.listener import RunListener
from suite_runner.models.result import TestClassResult, TestResult, TestSuiteResult

log = logging.getLogger(__name__)


def group_by_class(tests: Sequence[TestResult]) -> Sequence[TestClassResult]:
    """Group results per class, keeping first-seen order of classes and tests."""
    classes: dict[str, TestClassResult] = {}
    for test in tests:
        if (test_class := classes.get(test.class_name)) is None:
            test_class = TestClassResult(class_name=test.class_name)
            classes[test.class_name] = test_class
        test_class.add(test)
    return list(classes.values())


@dataclass(kw_only=True)
class ExternalTestHarness:
    """Runs the tests of an external project and tracks their status.

    One harness instance supports a single run at a time.
    """

    config: HarnessConfig = field(default_factory=HarnessConfig)
    listener: RunListener = field(default_factory=RunListener)
    project_root: Path | None = None
    unmatched_failures: list[str] = field(default_factory=list, init=False)

    def resolve_project_root(self) -> Path:
        """Return the configured project root, locating it on first use."""
        if self.project_root is None:
            self.project_root = locate_project_root(self.config.root_markers)
        return self.project_root

    async def discover(self) -> Sequence[TestResult]:
        """List the tests of the project.

        Raises:
            HarnessError: If the project root cannot be found or listing fails.

        """
        return await discover_tests(self.config, self.resolve_project_root())

    async def run(self, tests: Sequence[TestResult] | None = None) -> TestSuiteResult:
        """Run the project's tests and return the sealed suite result.

        Args:
            tests: Previously discovered tests; discovered now when omitted.

        Raises:
            HarnessError: If the project root cannot be found or the test
                process fails.

        """
        project_root = self.resolve_project_root()
        if tests is None:
            tests = await self.discover()

        suite = TestSuiteResult()
        for test_class in group_by_class(tests):
            suite.add_class(test_class)

        correlator = create_correlator(self.config, tests, self.listener)
        log.info("Running %d test(s) in %s", len(tests), project_root)

        output = await stream_process(
            self.config.run_command,
            project_root,
            correlator.feed,
            terminate_on_cancel=self.config.terminate_on_cancel,
        )
        self.unmatched_failures = correlator.unmatched_failures

        if output.failed:
            raise HarnessError(
                f"Test run failed with exit code {output.exit_code}: "
                f"{output.stderr.strip()}"
            )

        correlator.finalize()
        suite.seal()

        if self.unmatched_failures:
            log.warning(
                "%d failure line(s) did not match any known test",
                len(self.unmatched_failures),
            )
        log.info(
            "Run completed: %d passed, %d failed, %d skipped of %d",
            suite.passed,
            suite.failed,
            suite.skipped,
            suite.total,
        )
        return suite
