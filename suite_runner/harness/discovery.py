"""Discover tests by parsing the listing printed by the external runner."""

import logging
import re
from collections.abc import Sequence
from pathlib import Path

from suite_runner.harness.config import HarnessConfig
from suite_runner.harness.process import HarnessError, run_process
from suite_runner.models.result import TestResult, TestStatus

log = logging.getLogger(__name__)

# Qualified.Class.Method with an optional trailing "(parameters)"
TEST_IDENTIFIER = re.compile(
    r"^(?P<class_name>[\w.]+)\.(?P<method>[^.(\s]+)(?P<params>\(.*\))?$"
)


def is_candidate_line(line: str, config: HarnessConfig) -> bool:
    """Check if a listing line may name a test."""
    if any(marker in line for marker in config.artifact_markers):
        return False

    prefix = config.namespace_prefix
    if prefix:
        return line.startswith(prefix) and len(line) > len(prefix)
    return True


def parse_test_line(line: str) -> TestResult | None:
    """Build a pending result from one test identifier, or None if it is not one."""
    if (match := TEST_IDENTIFIER.match(line)) is None:
        return None

    name = match["method"] + (match["params"] or "")
    return TestResult(
        name=name,
        display_name=name,
        class_name=match["class_name"],
        status=TestStatus.PENDING,
    )


def parse_test_listing(output: str, config: HarnessConfig) -> Sequence[TestResult]:
    """Parse the full output of the list command into pending results.

    Lines that do not match the identifier grammar are ignored.
    """
    tests: list[TestResult] = []
    seen: set[str] = set()

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line or not is_candidate_line(line, config):
            continue

        try:
            test = parse_test_line(line)
        except (re.error, ValueError) as e:
            log.debug("Ignoring unparsable listing line %r: %s", line, e)
            continue

        if test is None:
            continue
        if test.full_name in seen:
            log.debug("Ignoring duplicate listing entry %s", test.full_name)
            continue

        seen.add(test.full_name)
        tests.append(test)

    return tests


async def discover_tests(
    config: HarnessConfig, project_root: Path
) -> Sequence[TestResult]:
    """Run the list command in ``project_root`` and parse its output.

    Raises:
        HarnessError: If the command fails.

    """
    log.info("Discovering tests in %s", project_root)
    output = await run_process(config.list_command, project_root)

    if output.failed:
        raise HarnessError(
            f"Test listing failed with exit code {output.exit_code}: "
            f"{output.stderr.strip()}"
        )

    tests = parse_test_listing(output.stdout, config)
    log.info("Discovered %d test(s)", len(tests))
    return tests
