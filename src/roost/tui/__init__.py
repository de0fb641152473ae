"""Terminal interface for Roost."""

from .app import RoostApp

__all__ = ["RoostApp"]
