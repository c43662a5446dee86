"""First-run setup modal shown when no plugin configuration exists."""

from __future__ import annotations

from textual import events
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static

from qpm.logging import get_logger
from qpm.ui.tui.presenters.panels import render_setup
from qpm.ui.tui.state.setup_view_model import SetupViewModel

logger = get_logger(__name__)


class SetupScreen(ModalScreen[bool]):
    """Offers default or empty configuration; dismisses with True once created."""

    DEFAULT_CSS = """
    SetupScreen {
        align: center middle;
    }

    #setup-container {
        width: 60;
        height: auto;
        border: round $primary;
        padding: 1 2;
        background: $surface;
    }
    """

    def __init__(self, view_model: SetupViewModel) -> None:
        super().__init__()
        self.view_model = view_model

    def compose(self) -> ComposeResult:
        with Container(id="setup-container"):
            yield Static(render_setup(self.view_model), id="setup-body")

    def on_key(self, event: events.Key) -> None:
        vm = self.view_model
        if event.key in ("up", "down"):
            vm.move(-1 if event.key == "up" else 1)
        elif event.key == "enter":
            result = vm.select()
            if vm.completed:
                self.dismiss(True)
                return
            if result.error:
                logger.warning("Setup choice failed: %s", result.error)
                panel_changed = getattr(self.app, "panel_changed", None)
                if callable(panel_changed):
                    panel_changed("setup", result)
        elif event.key in ("q", "escape"):
            self.app.exit()
            return
        else:
            return
        event.stop()
        self.query_one("#setup-body", Static).update(render_setup(vm))
