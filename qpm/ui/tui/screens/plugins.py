"""
Plugins panel: categorized plugin listing, options and external operations.
"""

from __future__ import annotations

from typing import Optional

from rich.text import Text

from qpm.ui.tui.presenters.panels import render_plugins
from qpm.ui.tui.state.base import PanelActionResult
from qpm.ui.tui.state.edit_session import Submit
from qpm.ui.tui.state.operation_runner import OperationRequest
from qpm.ui.tui.state.plugins_view_model import PluginsViewModel

from .base import PanelScreen
from .settings import session_event


class PluginsScreen(PanelScreen):
    """Declared plugins with enable/disable, options and npx operations."""

    panel_name = "plugins"

    def __init__(self, view_model: PluginsViewModel, **kwargs) -> None:
        super().__init__(**kwargs)
        self.view_model = view_model

    def render_body(self) -> Text:
        return render_plugins(self.view_model)

    def wants_text(self) -> bool:
        vm = self.view_model
        if vm.view == "add":
            return True
        return vm.active_session.needs_text

    def prompt_text(self) -> str:
        if self.view_model.view == "add":
            return ""
        return self.view_model.active_session.prompt_text()

    @property
    def is_idle(self) -> bool:
        return self.view_model.view == "list"

    def dispatch_key(self, key: str) -> Optional[PanelActionResult]:
        vm = self.view_model
        session = vm.active_session
        if session.active:
            event = session_event(session, key)
            return vm.handle(event) if event is not None else None
        if vm.view == "confirm-remove":
            if key in ("y", "n", "escape"):
                return self._start(vm.confirm_remove(key == "y"))
            return None
        if vm.view == "add":
            return vm.close_view() if key == "escape" else None
        if vm.view == "options":
            return self._options_key(key)
        return self._list_key(key)

    def _options_key(self, key: str) -> Optional[PanelActionResult]:
        vm = self.view_model
        if key == "up":
            return vm.move_option(-1)
        if key == "down":
            return vm.move_option(1)
        if key == "enter":
            return vm.edit_option()
        if key == "D":
            return vm.restore_option_default()
        if key == "escape":
            return vm.leave_options()
        return None

    def _list_key(self, key: str) -> Optional[PanelActionResult]:
        vm = self.view_model
        actions = {
            "up": lambda: vm.move(-1),
            "down": lambda: vm.move(1),
            "e": lambda: vm.set_enabled(True),
            "d": lambda: vm.set_enabled(False),
            "s": vm.cycle_sort,
            "K": lambda: vm.move_in_list(-1),
            "J": lambda: vm.move_in_list(1),
            "o": vm.open_options,
            "enter": vm.open_options,
            "O": vm.open_order,
            "a": vm.open_add,
            "r": vm.request_remove,
            "i": lambda: self._start(vm.request_install()),
            "u": lambda: self._start(vm.request_update(only_selected=True)),
            "U": lambda: self._start(vm.request_update()),
            "R": lambda: self._start(vm.request_restore()),
        }
        action = actions.get(key)
        return action() if action is not None else None

    def submit_text(self, text: str) -> Optional[PanelActionResult]:
        vm = self.view_model
        if vm.view == "add":
            return self._start(vm.submit_add(text))
        return vm.handle(Submit(text))

    def _start(self, request: Optional[OperationRequest]) -> PanelActionResult:
        """Hand an operation to the runner and run it in a worker."""
        if request is None:
            return PanelActionResult(handled=True)
        runner = getattr(self.app, "operation_runner", None)
        if runner is None or not runner.start(request):
            return PanelActionResult(handled=True)
        self._start_managed_worker(
            worker_key=f"operation-{request.action}",
            work_factory=lambda: runner.run(request),
            exclusive=True,
        )
        return PanelActionResult(handled=True, message=request.label)
