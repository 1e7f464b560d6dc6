"""In-process engine running catalog tests sequentially."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from suite_runner.listener import RunListener
from suite_runner.models.catalog import (
    Catalog,
    LifecycleHook,
    TestClassSpec,
    TestMethodSpec,
)
from suite_runner.models.result import (
    TestClassResult,
    TestResult,
    TestStatus,
    TestSuiteResult,
)

log = logging.getLogger(__name__)

ScreenshotCapture = Callable[[TestResult], Awaitable[str]]

CANCELLED_REASON = "Run cancelled"


async def _invoke(callback: Callable[[], Awaitable[None] | None]) -> None:
    """Call a sync or async no-arg callable and wait for it."""
    outcome = callback()
    if inspect.isawaitable(outcome):
        await outcome


@dataclass(kw_only=True)
class _Progress:
    total: int
    completed: int = 0


@dataclass(frozen=True, kw_only=True)
class InProcessEngine:
    """Runs every test of a catalog, one at a time.

    A failing test never stops the run. Cancellation is only observed between
    tests; tests not yet run when it is requested are recorded as skipped.
    """

    catalog: Catalog
    listener: RunListener = field(default_factory=RunListener)
    capture_screenshot: ScreenshotCapture | None = None

    async def run(self, cancel: asyncio.Event | None = None) -> TestSuiteResult:
        """Run the catalog and return the sealed suite result."""
        suite = TestSuiteResult()
        progress = _Progress(total=self.catalog.total_tests)

        log.info(
            "Running %d test(s) in %d class(es)...",
            progress.total,
            len(self.catalog),
        )

        for test_class in self.catalog.classes:
            class_result = TestClassResult(
                class_name=test_class.name,
                display_name=test_class.display_name,
            )
            suite.add_class(class_result)
            await self._run_class(test_class, class_result, progress, cancel)

        suite.seal()
        log.info(
            "Run completed: %d passed, %d failed, %d skipped of %d",
            suite.passed,
            suite.failed,
            suite.skipped,
            suite.total,
        )
        return suite

    async def _run_class(
        self,
        test_class: TestClassSpec,
        class_result: TestClassResult,
        progress: _Progress,
        cancel: asyncio.Event | None,
    ) -> None:
        """Run one class between its initialize and cleanup hooks."""
        if cancel is not None and cancel.is_set():
            log.info("Run cancelled, skipping test class %s", test_class.display_name)
            for method in test_class.methods:
                result = self._create_result(test_class, method)
                class_result.add(result)
                result.complete(TestStatus.SKIPPED, CANCELLED_REASON)
                self._report_completed(result, progress)
            return

        log.info(
            "Running test class %s (%d method(s))",
            test_class.display_name,
            len(test_class.methods),
        )

        init_error = await self._run_hook(
            test_class.initialize, test_class, "initialize"
        )
        try:
            for method in test_class.methods:
                result = self._create_result(test_class, method)
                class_result.add(result)

                if cancel is not None and cancel.is_set():
                    result.complete(TestStatus.SKIPPED, CANCELLED_REASON)
                elif not method.enabled:
                    log.info("Skipping %s: %s", method.display_name, method.skip_reason)
                    result.complete(TestStatus.SKIPPED, method.skip_reason)
                elif init_error is not None:
                    result.complete(
                        TestStatus.FAILED, f"Initialize failed: {init_error}"
                    )
                else:
                    await self._run_method(method, result)

                self._report_completed(result, progress)
        finally:
            await self._run_hook(test_class.cleanup, test_class, "cleanup")

    async def _run_method(self, method: TestMethodSpec, result: TestResult) -> None:
        """Invoke a test body and record its outcome."""
        log.debug(
            "Running %s (%s, expected %dms)",
            method.display_name,
            method.category,
            method.expected_duration_ms,
        )
        result.start()
        self.listener.on_test_started(result)

        try:
            await _invoke(method.body)
        except Exception as e:
            log.info("Test %s failed: %s", result.full_name, e)
            result.complete(TestStatus.FAILED, str(e) or type(e).__name__)
            await self._attach_screenshot(result)
        else:
            result.complete(TestStatus.PASSED)

    async def _attach_screenshot(self, result: TestResult) -> None:
        """Capture a screenshot of a failed test, ignoring capture failures."""
        if self.capture_screenshot is None:
            return

        try:
            path = await self.capture_screenshot(result)
        except Exception as e:
            log.warning("Screenshot capture failed for %s: %s", result.full_name, e)
            return

        result.attach_screenshot(path)
        log.info("Saved failure screenshot for %s: %s", result.full_name, path)

    async def _run_hook(
        self,
        hook: LifecycleHook | None,
        test_class: TestClassSpec,
        hook_name: str,
    ) -> Exception | None:
        """Run a lifecycle hook, returning the error it raised, if any."""
        if hook is None:
            return None

        try:
            await _invoke(hook)
        except Exception as e:
            log.error(
                "Test class %s %s failed: %s",
                test_class.name,
                hook_name,
                e,
                exc_info=e,
            )
            return e
        return None

    def _report_completed(self, result: TestResult, progress: _Progress) -> None:
        progress.completed += 1
        self.listener.on_test_completed(result)
        self.listener.on_progress(progress.completed, progress.total)

    @staticmethod
    def _create_result(
        test_class: TestClassSpec, method: TestMethodSpec
    ) -> TestResult:
        return TestResult(
            name=method.name,
            display_name=method.display_name,
            class_name=test_class.name,
            category=method.category,
            description=method.description,
            expected_duration_ms=method.expected_duration_ms,
        )
