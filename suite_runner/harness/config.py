"""Configuration for the external test harness."""

from collections.abc import Sequence
from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field, ValidationError

from suite_runner.models.base import Model

OutputProtocol = Literal["text", "jsonl"]


class HarnessConfig(Model):
    """How to list and run tests in an external process, and how to read them.

    The defaults target ``dotnet test`` with xUnit-style console output.
    """

    list_command: Sequence[str] = Field(
        default=("dotnet", "test", "--list-tests", "--verbosity", "quiet"),
        description="Command printing one test identifier per line",
    )
    run_command: Sequence[str] = Field(
        default=("dotnet", "test", "--verbosity", "normal"),
        description="Command running the tests and streaming progress lines",
    )
    root_markers: Sequence[str] = Field(
        default=("*.sln",),
        description="Glob patterns of files marking the project root",
    )
    namespace_prefix: str | None = Field(
        default=None,
        description="Qualified-name prefix every listed test must start with",
    )
    artifact_markers: Sequence[str] = Field(
        default=(".dll", "(.NETCoreApp"),
        description="Substrings marking listing lines that name build artifacts",
    )
    start_marker: str = Field(
        default="Starting:", description="Marks the start of the test run"
    )
    finish_marker: str = Field(
        default="Finished:", description="Marks the end of the test run"
    )
    protocol: OutputProtocol = Field(
        default="text",
        description="'text' for free-form output, 'jsonl' for one event per line",
    )
    pinned_failure_names: Sequence[str] = Field(
        default=(),
        description="Test names matched by plain substring on failure lines first",
    )
    terminate_on_cancel: bool = Field(
        default=True,
        description="Terminate the test process when the run is cancelled",
    )


def load_harness_config(path: Path) -> HarnessConfig:
    """Load harness configuration from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is empty, not valid YAML or fails validation.

    """
    if not path.is_file():
        raise FileNotFoundError(f"Harness config not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        raise ValueError(f"Empty harness config: {path}")

    if not isinstance(data, dict):
        raise ValueError(f"Harness config must be a mapping: {path}")

    try:
        return HarnessConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid harness config schema in {path}: {e}") from e
