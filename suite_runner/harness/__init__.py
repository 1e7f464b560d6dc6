"""External process test harness."""

from suite_runner.harness.config import HarnessConfig, load_harness_config
from suite_runner.harness.correlation import (
    JsonLineCorrelator,
    OutputCorrelator,
    TextOutputCorrelator,
    create_correlator,
)
from suite_runner.harness.discovery import discover_tests, parse_test_listing
from suite_runner.harness.process import HarnessError
from suite_runner.harness.project_root import (
    ProjectRootNotFoundError,
    locate_project_root,
)
from suite_runner.harness.runner import ExternalTestHarness

__all__ = [
    "ExternalTestHarness",
    "HarnessConfig",
    "HarnessError",
    "JsonLineCorrelator",
    "OutputCorrelator",
    "ProjectRootNotFoundError",
    "TextOutputCorrelator",
    "create_correlator",
    "discover_tests",
    "load_harness_config",
    "locate_project_root",
    "parse_test_listing",
]
