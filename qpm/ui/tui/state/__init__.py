"""State models for TUI panels and app-wide UI state."""

from __future__ import annotations

from .app_state import AppState, AppStateSnapshot, Notification, ProgressLine
from .base import PanelActionResult
from .edit_session import EditResult, EditSession
from .layout_view_model import LayoutSnapshot, LayoutViewModel
from .operation_runner import OperationRequest, OperationRunner
from .plugins_view_model import PluginsSnapshot, PluginsViewModel
from .settings_view_model import SettingsRow, SettingsSnapshot, SettingsViewModel
from .setup_view_model import SetupViewModel

__all__ = [
    "AppState",
    "AppStateSnapshot",
    "EditResult",
    "EditSession",
    "LayoutSnapshot",
    "LayoutViewModel",
    "Notification",
    "OperationRequest",
    "OperationRunner",
    "PanelActionResult",
    "PluginsSnapshot",
    "PluginsViewModel",
    "ProgressLine",
    "SettingsRow",
    "SettingsSnapshot",
    "SettingsViewModel",
    "SetupViewModel",
]
