"""Reusable widgets for the TUI."""

from __future__ import annotations

from .status import StatusBar

__all__ = ["StatusBar"]
