"""Locate the root of the project whose tests the harness runs."""

import logging
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path

from suite_runner.harness.process import HarnessError

log = logging.getLogger(__name__)


class ProjectRootNotFoundError(HarnessError):
    """Raised when no directory holding a project marker file is found."""


def default_start_dirs() -> Sequence[Path]:
    """Working directory first, then the directory of the launching script."""
    return [Path.cwd(), Path(sys.argv[0]).resolve().parent]


def has_marker(directory: Path, markers: Iterable[str]) -> bool:
    """Check if any file in ``directory`` matches one of the glob ``markers``."""
    return any(
        candidate.is_file()
        for marker in markers
        for candidate in directory.glob(marker)
    )


def find_marked_ancestor(start: Path, markers: Sequence[str]) -> Path | None:
    """Walk from ``start`` up to the filesystem root looking for a marker."""
    for directory in (start, *start.parents):
        if has_marker(directory, markers):
            return directory
    return None


def locate_project_root(
    markers: Sequence[str],
    start_dirs: Sequence[Path] | None = None,
) -> Path:
    """Find the project root from each start directory in turn.

    Raises:
        ProjectRootNotFoundError: If no start directory has a marked ancestor.

    """
    searched = list(start_dirs) if start_dirs is not None else default_start_dirs()

    for start in searched:
        if (root := find_marked_ancestor(start.resolve(), markers)) is not None:
            log.info("Found project root %s", root)
            return root

    raise ProjectRootNotFoundError(
        f"No project root found (markers={list(markers)}) "
        f"above {[str(path) for path in searched]}"
    )
