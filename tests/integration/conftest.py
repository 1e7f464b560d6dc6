"""Fixtures for integration tests."""

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import pytest

from suite_runner.harness import HarnessConfig

RUNNER_TEMPLATE = """\
import sys
import time

LISTING = {listing!r}
RUN_LINES = {run_lines!r}

if "--list" in sys.argv:
    print("\\n".join(LISTING))
else:
    for line in RUN_LINES:
        if line.startswith("@sleep "):
            time.sleep(float(line.split()[1]))
            continue
        print(line, flush=True)
sys.stderr.write({stderr!r})
sys.exit({exit_code!r})
"""


class WriteRunnerFn(Protocol):
    """Protocol for fake test runner creation function."""

    def __call__(
        self,
        *,
        listing: Sequence[str] = (),
        run_lines: Sequence[str] = (),
        stderr: str = "",
        exit_code: int = 0,
    ) -> HarnessConfig:
        """Write a runner script and return a config invoking it."""


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Create a project directory marked by a solution file."""
    root = tmp_path / "TodoApp"
    root.mkdir()
    (root / "TodoApp.sln").write_text("", encoding="utf-8")
    return root


@pytest.fixture
def write_runner(project_root: Path) -> WriteRunnerFn:
    """Return a function writing a fake test runner into the project.

    The runner prints ``listing`` when called with ``--list`` and
    ``run_lines`` otherwise; a line ``@sleep <seconds>`` pauses instead of
    printing.
    """

    def _write(
        *,
        listing: Sequence[str] = (),
        run_lines: Sequence[str] = (),
        stderr: str = "",
        exit_code: int = 0,
    ) -> HarnessConfig:
        script = project_root / "fake_runner.py"
        script.write_text(
            RUNNER_TEMPLATE.format(
                listing=list(listing),
                run_lines=list(run_lines),
                stderr=stderr,
                exit_code=exit_code,
            ),
            encoding="utf-8",
        )
        return HarnessConfig(
            list_command=(sys.executable, str(script), "--list"),
            run_command=(sys.executable, str(script)),
        )

    return _write
