"""Panel screens for the TUI."""

from __future__ import annotations

from .layout import LayoutScreen
from .plugins import PluginsScreen
from .settings import SettingsScreen
from .setup import SetupScreen

__all__ = ["LayoutScreen", "PluginsScreen", "SettingsScreen", "SetupScreen"]
