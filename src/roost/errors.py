"""Exception hierarchy for Roost.

All application errors inherit from RoostError. Only ConfigError and
TerminalError are fatal; the rest are recovered where they occur.
"""

from pathlib import Path
from typing import Optional


class RoostError(Exception):
    """Base exception for all Roost errors."""


class ConfigError(RoostError):
    """Missing or malformed configuration."""


class ScanError(RoostError):
    """A directory could not be traversed and was skipped."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class VcsQueryError(RoostError):
    """Version-control metadata could not be read for a project."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class TerminalError(RoostError):
    """The terminal could not be taken over or handed back."""


class OpenerError(RoostError):
    """An external program could not be launched for a project."""
