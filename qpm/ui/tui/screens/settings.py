"""
Settings panel: the ``configuration`` section as a collapsible tree.
"""

from __future__ import annotations

from typing import Optional

from rich.text import Text

from qpm.ui.tui.presenters.panels import render_settings
from qpm.ui.tui.state.base import PanelActionResult
from qpm.ui.tui.state.edit_session import Append, Cancel, Confirm, Delete, EditSession, Move, Submit, Swap
from qpm.ui.tui.state.settings_view_model import SettingsViewModel

from .base import PanelScreen

SESSION_KEYS = {
    "up": Move(-1),
    "down": Move(1),
    "shift+up": Swap(-1),
    "shift+down": Swap(1),
    "enter": Confirm(),
    "d": Delete(),
    "a": Append(),
    "escape": Cancel(),
}


def session_event(session: EditSession, key: str):
    """Edit event for ``key`` while a session is open (text states only take Escape)."""
    if session.needs_text:
        return Cancel() if key == "escape" else None
    return SESSION_KEYS.get(key)


class SettingsScreen(PanelScreen):
    """Tree editor over the global configuration."""

    panel_name = "settings"

    def __init__(self, view_model: SettingsViewModel, **kwargs) -> None:
        super().__init__(**kwargs)
        self.view_model = view_model

    def render_body(self) -> Text:
        return render_settings(self.view_model.snapshot(), self.view_model.session)

    def wants_text(self) -> bool:
        return self.view_model.session.needs_text

    def prompt_text(self) -> str:
        return self.view_model.session.prompt_text()

    @property
    def is_idle(self) -> bool:
        return not self.view_model.session.active

    def dispatch_key(self, key: str) -> Optional[PanelActionResult]:
        vm = self.view_model
        if vm.session.active:
            event = session_event(vm.session, key)
            return vm.handle(event) if event is not None else None
        if key == "up":
            return vm.move(-1)
        if key == "down":
            return vm.move(1)
        if key == "enter":
            return vm.activate()
        if key == "D":
            return vm.restore_default()
        return None

    def submit_text(self, text: str) -> Optional[PanelActionResult]:
        return self.view_model.handle(Submit(text))
