"""Project boundary markers."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from roost.models import ProjectKind


# Manifest files recognised out of the box
DEFAULT_MANIFESTS = (
    "pyproject.toml",
    "setup.py",
    "Cargo.toml",
    "package.json",
    "go.mod",
    "pom.xml",
    "build.gradle",
    "build.gradle.kts",
    "Gemfile",
    "composer.json",
    "mix.exs",
    "CMakeLists.txt",
    "Makefile",
    "deno.json",
    "pubspec.yaml",
    "flake.nix",
)


class BaseMarker(ABC):
    """Recognises a project root from the names found directly inside it."""

    @property
    @abstractmethod
    def kind(self) -> ProjectKind:
        """Kind reported for projects found by this marker."""
        pass

    @abstractmethod
    def match(self, names: set[str]) -> Optional[str]:
        """Return the matching entry name, or None."""
        pass


class GitMarker(BaseMarker):
    """A ``.git`` directory, or a ``.git`` file for worktrees and submodules."""

    NAME = ".git"

    @property
    def kind(self) -> ProjectKind:
        return ProjectKind.GIT_REPOSITORY

    def match(self, names: set[str]) -> Optional[str]:
        return self.NAME if self.NAME in names else None


class ManifestMarker(BaseMarker):
    """A build or package manifest file."""

    def __init__(self, filename: str) -> None:
        self.filename = filename

    @property
    def kind(self) -> ProjectKind:
        return ProjectKind.PLAIN_DIRECTORY

    def match(self, names: set[str]) -> Optional[str]:
        return self.filename if self.filename in names else None


class MarkerRegistry:
    """Registry of project markers."""

    def __init__(self) -> None:
        self._markers: list[BaseMarker] = []

    def register(self, marker: BaseMarker) -> None:
        """Register a marker."""
        self._markers.append(marker)

    def detect(self, names: Iterable[str]) -> tuple[Optional[ProjectKind], tuple[str, ...]]:
        """Match directory entry names against every marker.

        Returns the kind of the first marker that matched (registration
        order decides) and all matched entry names.
        """
        name_set = set(names)
        kind: Optional[ProjectKind] = None
        found: list[str] = []
        for marker in self._markers:
            hit = marker.match(name_set)
            if hit is None:
                continue
            if kind is None:
                kind = marker.kind
            found.append(hit)
        return kind, tuple(found)

    @classmethod
    def default(cls, extra_manifests: Iterable[str] = ()) -> "MarkerRegistry":
        """Create registry with the git marker and known manifests."""
        registry = cls()
        registry.register(GitMarker())
        seen: set[str] = set()
        for filename in (*DEFAULT_MANIFESTS, *extra_manifests):
            if filename not in seen:
                seen.add(filename)
                registry.register(ManifestMarker(filename))
        return registry
