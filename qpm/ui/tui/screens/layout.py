"""
Layout panel: zone grid per page type, component edits, groups and page types.
"""

from __future__ import annotations

from typing import Optional

from rich.text import Text

from qpm.ui.tui.presenters.panels import render_layout
from qpm.ui.tui.state.base import PanelActionResult
from qpm.ui.tui.state.layout_view_model import LayoutViewModel

from .base import PanelScreen


class LayoutScreen(PanelScreen):
    """Zone grid editor."""

    panel_name = "layout"

    def __init__(self, view_model: LayoutViewModel, **kwargs) -> None:
        super().__init__(**kwargs)
        self.view_model = view_model

    def render_body(self) -> Text:
        return render_layout(self.view_model)

    def wants_text(self) -> bool:
        return self.view_model.needs_text

    def prompt_text(self) -> str:
        return self.view_model.prompt_text()

    @property
    def is_idle(self) -> bool:
        vm = self.view_model
        return vm.view == "zones" and not vm.grid.drilled

    def dispatch_key(self, key: str) -> Optional[PanelActionResult]:
        vm = self.view_model
        if vm.awaiting_confirmation:
            if key in ("y", "n", "escape"):
                return vm.confirm(key == "y")
            return None
        if vm.needs_text:
            return vm.cancel() if key == "escape" else None

        common = {
            "up": lambda: vm.move(-1),
            "down": lambda: vm.move(1),
            "enter": vm.select,
            "escape": vm.cancel,
        }
        if vm.view == "zones" and vm.grid.drilled:
            actions = {
                **common,
                "shift+up": lambda: vm.swap(-1),
                "shift+down": lambda: vm.swap(1),
                "m": vm.begin_move_zone,
                "p": vm.begin_priority,
                "v": vm.begin_display,
                "c": vm.begin_condition,
                "x": vm.request_remove,
                "D": vm.restore_component_defaults,
            }
        elif vm.view == "zones":
            actions = {
                **common,
                "left": lambda: vm.move_column(-1),
                "right": lambda: vm.move_column(1),
                "[": lambda: vm.cycle_page_type(-1),
                "]": lambda: vm.cycle_page_type(1),
                "g": vm.open_groups,
                "t": vm.open_page_types,
            }
        else:
            actions = {**common, "n": vm.new_item, "d": vm.delete_item}
        action = actions.get(key)
        return action() if action is not None else None

    def submit_text(self, text: str) -> Optional[PanelActionResult]:
        return self.view_model.submit(text)
