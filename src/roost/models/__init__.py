"""Data models for Roost."""

from .schemas import (
    Added,
    ProjectKind,
    ProjectRecord,
    ScanComplete,
    ScanEvent,
    ScanFailed,
    ScanStatus,
    Updated,
    from_timestamp,
    utcnow,
)

__all__ = [
    "Added",
    "ProjectKind",
    "ProjectRecord",
    "ScanComplete",
    "ScanEvent",
    "ScanFailed",
    "ScanStatus",
    "Updated",
    "from_timestamp",
    "utcnow",
]
