"""Tests for project root location."""

from pathlib import Path

import pytest

from suite_runner.harness.project_root import (
    ProjectRootNotFoundError,
    find_marked_ancestor,
    has_marker,
    locate_project_root,
)


@pytest.fixture
def solution_root(tmp_path: Path) -> Path:
    """Directory holding a solution file and a nested test project."""
    root = tmp_path / "solution"
    (root / "tests" / "TodoApp.Tests" / "bin").mkdir(parents=True)
    (root / "TodoApp.sln").write_text("", encoding="utf-8")
    return root


def test_has_marker(solution_root: Path) -> None:
    """Matches marker globs against files of the directory."""
    assert has_marker(solution_root, ["*.sln"]) is True
    assert has_marker(solution_root, ["*.csproj"]) is False
    assert has_marker(solution_root / "tests", ["*.sln"]) is False


def test_directory_matching_marker_is_ignored(tmp_path: Path) -> None:
    """Only files count as markers."""
    (tmp_path / "weird.sln").mkdir()

    assert has_marker(tmp_path, ["*.sln"]) is False


def test_find_marked_ancestor_walks_up(solution_root: Path) -> None:
    """Finds the nearest ancestor holding a marker."""
    start = solution_root / "tests" / "TodoApp.Tests" / "bin"

    assert find_marked_ancestor(start, ["*.sln"]) == solution_root


def test_find_marked_ancestor_prefers_nearest(solution_root: Path) -> None:
    """A marker closer to the start wins."""
    nested = solution_root / "tests" / "TodoApp.Tests"
    (nested / "TodoApp.Tests.sln").write_text("", encoding="utf-8")

    assert find_marked_ancestor(nested / "bin", ["*.sln"]) == nested


def test_locate_uses_start_dirs_in_order(
    solution_root: Path, tmp_path: Path
) -> None:
    """Falls back to later start directories."""
    unrelated = tmp_path / "unrelated"
    unrelated.mkdir()

    root = locate_project_root(
        ["*.sln"],
        start_dirs=[unrelated, solution_root / "tests"],
    )

    assert root == solution_root.resolve()


def test_locate_raises_when_nothing_found(tmp_path: Path) -> None:
    """Raises when no start directory has a marked ancestor."""
    with pytest.raises(ProjectRootNotFoundError, match="No project root found"):
        locate_project_root(["*.does-not-exist"], start_dirs=[tmp_path])
