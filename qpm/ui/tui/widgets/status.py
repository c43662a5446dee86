"""
Status bar widget for the plugin manager TUI.

Displays:
- Active panel and its key hints
- Plugin sort mode
- Running operation
- Quartz version
"""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from qpm.logging import get_logger

logger = get_logger(__name__)


class StatusBar(Widget):
    """
    Status bar widget for session information.

    Shows:
    - Current tab
    - Sort mode of the plugin listing
    - Busy indicator while an external operation runs
    - Key hints for the current tab
    """

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: 2;
        background: $primary-darken-1;
        padding: 0 1;
    }

    StatusBar > Horizontal {
        width: 100%;
        height: 1;
    }

    .status-item {
        width: auto;
        margin-right: 3;
    }

    .status-tab {
        color: $success;
        text-style: bold;
    }

    .status-sort {
        color: $secondary;
    }

    .status-operation {
        color: $warning;
    }

    .status-hints {
        color: $text-muted;
        height: 1;
    }
    """

    tab: reactive[str] = reactive("plugins")
    sort_mode: reactive[str] = reactive("config")
    operation: reactive[str] = reactive("")
    version: reactive[str] = reactive("")
    hints: reactive[str] = reactive("")

    def compose(self) -> ComposeResult:
        """Compose the status bar layout."""
        with Horizontal():
            yield Static(self._tab_text(self.tab), id="status-tab", classes="status-item status-tab")
            yield Static(f"Sort: {self.sort_mode}", id="status-sort", classes="status-item status-sort")
            yield Static(
                self._operation_text(self.operation),
                id="status-operation",
                classes="status-item status-operation",
            )
            yield Static(self._version_text(self.version), id="status-version", classes="status-item")
        yield Static(self.hints, id="status-hints", classes="status-hints")

    @staticmethod
    def _tab_text(tab: str) -> str:
        return tab.capitalize()

    @staticmethod
    def _operation_text(operation: str) -> str:
        return f"⏳ {operation}" if operation else "Ready"

    @staticmethod
    def _version_text(version: str) -> str:
        return f"Quartz {version}" if version else ""

    def _update(self, selector: str, text: str) -> None:
        try:
            self.query_one(selector, Static).update(text)
        except NoMatches:
            # Not composed yet; compose() renders the current value.
            return

    def watch_tab(self, tab: str) -> None:
        self._update("#status-tab", self._tab_text(tab))

    def watch_sort_mode(self, mode: str) -> None:
        self._update("#status-sort", f"Sort: {mode}")

    def watch_operation(self, operation: str) -> None:
        self._update("#status-operation", self._operation_text(operation))

    def watch_version(self, version: str) -> None:
        self._update("#status-version", self._version_text(version))

    def watch_hints(self, hints: str) -> None:
        self._update("#status-hints", hints)
