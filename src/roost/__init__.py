"""Roost - find and open your code projects, most recently active first."""

__version__ = "0.1.0"
