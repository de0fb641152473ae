"""Project discovery for Roost."""

from .markers import BaseMarker, GitMarker, ManifestMarker, MarkerRegistry
from .recency import (
    FilesystemRecency,
    GitRecency,
    RecencyResolver,
    RecencySource,
    tree_summary,
)
from .session import ScanCoordinator, ScanSession
from .walker import Scanner

__all__ = [
    "BaseMarker",
    "FilesystemRecency",
    "GitMarker",
    "GitRecency",
    "ManifestMarker",
    "MarkerRegistry",
    "RecencyResolver",
    "RecencySource",
    "ScanCoordinator",
    "ScanSession",
    "Scanner",
    "tree_summary",
]
