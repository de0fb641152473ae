"""Shared fixtures for Roost tests."""

import os
import time
from pathlib import Path
from typing import Optional

import pytest

from roost.config import RoostConfig


HOUR = 3600
DAY = 24 * HOUR


def set_mtime(path: Path, seconds_ago: float) -> int:
    """Set a path's mtime relative to now, in whole seconds, and return it."""
    stamp = int(time.time() - seconds_ago)
    os.utime(path, (stamp, stamp))
    return stamp


def make_project(
    parent: Path,
    name: str,
    marker: str = "pyproject.toml",
    age: Optional[float] = None,
    readme: Optional[str] = None,
) -> Path:
    """Create a project directory with a marker and an optional age in seconds.

    ``marker`` may be ".git" for a repository (created as a directory).
    """
    project = parent / name
    project.mkdir(parents=True, exist_ok=True)
    marker_path = project / marker
    if marker == ".git":
        marker_path.mkdir(exist_ok=True)
    else:
        marker_path.write_text("", encoding="utf-8")
    if readme is not None:
        (project / "README.md").write_text(readme, encoding="utf-8")
    if age is not None:
        if readme is not None:
            set_mtime(project / "README.md", age)
        set_mtime(marker_path, age)
        set_mtime(project, age)
    return project


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A root directory holding three projects of different ages.

    - alpha: manifest, modified 3 days ago
    - projA: git repository, modified 2 hours ago
    - projB: manifest, modified 1 day ago
    """
    root = tmp_path / "code"
    root.mkdir()
    make_project(root, "alpha", age=3 * DAY)
    make_project(root, "projA", marker=".git", age=2 * HOUR, readme="# projA\n\nHello")
    make_project(root, "projB", marker="package.json", age=DAY)
    return root


@pytest.fixture
def config(workspace: Path) -> RoostConfig:
    """Config scanning the workspace without git queries."""
    return RoostConfig(roots=(workspace,), vcs_recency=False)
