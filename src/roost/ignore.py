"""Gitignore-style exclusion rules for traversal."""

import logging
from pathlib import Path
from typing import Iterable, Optional

import pathspec

logger = logging.getLogger(__name__)


# Directories that never hold projects worth listing
BUILTIN_IGNORES = (
    "node_modules/",
    ".venv/",
    "venv/",
    "__pycache__/",
    ".tox/",
    ".mypy_cache/",
    ".pytest_cache/",
    "site-packages/",
    "target/",
    "dist/",
    "build/",
)

# Per-root files whose patterns are honoured
IGNORE_FILES = (".gitignore", ".ignore", ".roostignore")


def _read_patterns(path: Path) -> list[str]:
    try:
        lines = path.read_text(encoding="utf-8", errors="ignore").splitlines()
    except OSError as e:
        logger.warning("Could not read ignore file %s: %s", path, e)
        return []
    return [line.rstrip() for line in lines if line.strip() and not line.lstrip().startswith("#")]


class IgnoreRules:
    """Compiled exclusion predicate.

    Patterns are matched against paths relative to the deepest configured
    root containing them, the way a .gitignore at that root would be.
    """

    def __init__(
        self,
        roots: Iterable[Path],
        patterns: Iterable[str] = (),
        use_builtin: bool = True,
        read_ignore_files: bool = True,
    ) -> None:
        shared = list(BUILTIN_IGNORES if use_builtin else ()) + list(patterns)
        self._specs: list[tuple[Path, pathspec.GitIgnoreSpec]] = []

        for root in roots:
            lines = list(shared)
            if read_ignore_files:
                for name in IGNORE_FILES:
                    candidate = root / name
                    if candidate.is_file():
                        lines.extend(_read_patterns(candidate))
            self._specs.append((root, pathspec.GitIgnoreSpec.from_lines(lines)))

        # Deepest root first so nested roots win
        self._specs.sort(key=lambda item: len(item[0].parts), reverse=True)

    @classmethod
    def compile(cls, roots: Iterable[Path], patterns: Iterable[str] = ()) -> "IgnoreRules":
        """Compile rules for ``roots`` from built-ins, extra patterns and ignore files."""
        return cls(list(roots), patterns)

    def _spec_for(self, path: Path) -> Optional[tuple[Path, pathspec.GitIgnoreSpec]]:
        for root, spec in self._specs:
            if path == root or root in path.parents:
                return root, spec
        return None

    def is_ignored(self, path: Path, is_dir: bool = True) -> bool:
        """Return True if ``path`` is excluded. Roots themselves never are."""
        found = self._spec_for(path)
        if found is None:
            return False
        root, spec = found
        if path == root:
            return False

        rel = path.relative_to(root).as_posix()
        if spec.match_file(rel):
            return True
        return is_dir and spec.match_file(f"{rel}/")

    def __call__(self, path: Path) -> bool:
        return self.is_ignored(path)
