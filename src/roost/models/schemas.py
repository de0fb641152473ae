"""Dataclass schemas for discovered projects and scan updates."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Union


def utcnow() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def from_timestamp(seconds: float) -> datetime:
    """Convert a POSIX timestamp into an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class ProjectKind(str, Enum):
    """How a project boundary was recognised. Display only, never ranked on."""

    GIT_REPOSITORY = "git-repository"  # has .git metadata
    PLAIN_DIRECTORY = "plain-directory"  # manifest file only


class ScanStatus(str, Enum):
    """Lifecycle of a scan session."""

    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class ProjectRecord:
    """A discovered project.

    ``path`` is the identity of the record within a scan session. Refreshing
    the recency signal produces a new record with the same path.
    """

    path: Path
    last_modified: datetime
    name: str = ""
    kind: ProjectKind = ProjectKind.PLAIN_DIRECTORY
    markers: tuple[str, ...] = ()
    readme: Optional[str] = None
    file_count: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.path.is_absolute():
            raise ValueError(f"project path must be absolute: {self.path}")
        if not self.name:
            object.__setattr__(self, "name", self.path.name or str(self.path))

    @property
    def key(self) -> Path:
        return self.path

    @property
    def is_git(self) -> bool:
        return self.kind == ProjectKind.GIT_REPOSITORY

    def refreshed(
        self,
        last_modified: datetime,
        file_count: Optional[int] = None,
    ) -> "ProjectRecord":
        """Return a copy carrying a newer recency signal."""
        return replace(
            self,
            last_modified=last_modified,
            file_count=file_count if file_count is not None else self.file_count,
        )


# =============================================================================
# Scan updates delivered through the result bridge
# =============================================================================


@dataclass(frozen=True)
class Added:
    """A project boundary was discovered."""

    record: ProjectRecord


@dataclass(frozen=True)
class Updated:
    """A known project has a newer recency signal."""

    path: Path
    last_modified: datetime
    file_count: Optional[int] = None


@dataclass(frozen=True)
class ScanComplete:
    """Traversal finished. ``skipped`` lists directories that could not be read."""

    skipped: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ScanFailed:
    """The scan stopped early; records already delivered stay valid."""

    reason: str


ScanEvent = Union[Added, Updated, ScanComplete, ScanFailed]
