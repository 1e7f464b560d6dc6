"""CLI entry point for the test suite runner."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from suite_runner.catalog_loader import load_catalog
from suite_runner.engine import InProcessEngine
from suite_runner.harness import ExternalTestHarness, HarnessConfig, load_harness_config
from suite_runner.listener import LoggingListener
from suite_runner.models.options import RunnerOptions
from suite_runner.models.result import TestStatus, TestSuiteResult
from suite_runner.reporting import save_report

EXIT_ALL_PASSED = 0
EXIT_FAILURES = 1
EXIT_CRASHED = 2

STATUS_SYMBOLS = {
    TestStatus.PASSED: "✓",
    TestStatus.FAILED: "✗",
    TestStatus.SKIPPED: "-",
    TestStatus.TIMEOUT: "⏱",
}


def log_results_summary(
    log: logging.Logger, suite: TestSuiteResult, *, verbose: bool = False
) -> None:
    """Log a summary of the run, listing every test when ``verbose``."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)
    log.info(
        "Total: %d, Passed: %d, Failed: %d, Skipped: %d",
        suite.total,
        suite.passed,
        suite.failed,
        suite.skipped,
    )
    log.info(
        "Duration: %.0fms, Success rate: %.1f%%",
        suite.duration.total_seconds() * 1000,
        suite.success_rate,
    )

    if verbose:
        for test_class in suite.classes:
            log.info(
                "%s: %d passed, %d failed, %d skipped",
                test_class.class_name,
                test_class.passed,
                test_class.failed,
                test_class.skipped,
            )
            for test in test_class.tests:
                duration = test.duration_ms or 0.0
                log.info(
                    "  %s %s (%.0fms)",
                    STATUS_SYMBOLS.get(test.status, "?"),
                    test.name,
                    duration,
                )
                if test.is_failed and test.error_message:
                    log.info("    Message: %s", test.error_message)
    elif failed := suite.failed_tests():
        log.info("Failed tests:")
        for test in failed:
            log.info(
                "  %s %s: %s",
                STATUS_SYMBOLS.get(test.status, "?"),
                test.name,
                test.error_message,
            )


def finish_run(
    log: logging.Logger, suite: TestSuiteResult, options: RunnerOptions
) -> int:
    """Report a finished run and return the exit code."""
    log_results_summary(log, suite, verbose=options.verbose)

    if options.output_file is not None:
        try:
            save_report(suite, options.output_file, options.output_format)
        except Exception as e:
            log.error("Failed to save report to %s: %s", options.output_file, e)

    return EXIT_ALL_PASSED if suite.all_passed else EXIT_FAILURES


async def run_catalog(catalog_reference: str, options: RunnerOptions) -> int:
    """Run a catalog in-process and return exit code."""
    log = logging.getLogger("suite_runner")

    log.info("Loading catalog: %s", catalog_reference)
    catalog = load_catalog(catalog_reference)

    engine = InProcessEngine(catalog=catalog, listener=LoggingListener())
    suite = await engine.run()

    return finish_run(log, suite, options)


async def run_harness(
    config: HarnessConfig,
    project_root: Path | None,
    options: RunnerOptions,
) -> int:
    """Discover and run tests in an external process and return exit code."""
    log = logging.getLogger("suite_runner")

    harness = ExternalTestHarness(
        config=config,
        listener=LoggingListener(),
        project_root=project_root,
    )
    suite = await harness.run()

    for line in harness.unmatched_failures:
        log.warning("Unreported failure: %s", line)

    return finish_run(log, suite, options)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file",
    )
    common.add_argument(
        "-f",
        "--format",
        default="json",
        help="Report format (json, xml, text)",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="List every test and enable debug logging",
    )

    parser = argparse.ArgumentParser(description="Run automated test suites")
    commands = parser.add_subparsers(dest="command", required=True)

    run_parser = commands.add_parser(
        "run", parents=[common], help="Run a test catalog in-process"
    )
    run_parser.add_argument(
        "catalog",
        help="Catalog entry point name or module:attribute reference",
    )

    harness_parser = commands.add_parser(
        "harness", parents=[common], help="Run tests through an external runner"
    )
    harness_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML harness configuration (defaults target dotnet test)",
    )
    harness_parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Project directory (located from marker files when omitted)",
    )

    return parser


async def dispatch(args: argparse.Namespace) -> int:
    """Run the selected command, mapping crashes to the crash exit code."""
    log = logging.getLogger("suite_runner")

    try:
        options = RunnerOptions(
            output_file=args.output,
            output_format=args.format,
            verbose=args.verbose,
        )
        if args.command == "run":
            return await run_catalog(args.catalog, options)

        config = load_harness_config(args.config) if args.config else HarnessConfig()
        return await run_harness(config, args.project_root, options)
    except Exception as e:
        log.error("Test runner crashed: %s", e, exc_info=e)
        return EXIT_CRASHED


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    sys.exit(asyncio.run(dispatch(args)))


if __name__ == "__main__":  # pragma: no cover
    main()
