"""
Main TUI Application for the Quartz plugin manager.

Provides a terminal interface using Textual with:
- Tabbed interface for Plugins/Layout/Settings
- First-run setup wizard when no configuration exists
- Background plugin operations with streamed progress
- Reactive status display with StatusBar widget
"""

from __future__ import annotations

from typing import Any, Callable, Optional, cast

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Header, Static, TabbedContent, TabPane

from qpm import __version__
from qpm.config.loader import read_quartz_version
from qpm.config.store import DocumentStore
from qpm.logging import get_logger
from qpm.paths import ProjectPaths
from qpm.plugins.operations import OperationResult, PluginOperations
from qpm.plugins.registry import PluginRegistry
from qpm.ui.tui.presenters.panels import key_hints, render_progress
from qpm.ui.tui.screens.base import PanelScreen
from qpm.ui.tui.screens.layout import LayoutScreen
from qpm.ui.tui.screens.plugins import PluginsScreen
from qpm.ui.tui.screens.settings import SettingsScreen
from qpm.ui.tui.screens.setup import SetupScreen
from qpm.ui.tui.state import (
    AppState,
    LayoutViewModel,
    OperationRequest,
    OperationRunner,
    PanelActionResult,
    PluginsViewModel,
    SettingsViewModel,
    SetupViewModel,
)
from qpm.ui.tui.state.app_state import TabType
from qpm.ui.tui.widgets.status import StatusBar

logger = get_logger(__name__)

TABS: tuple[TabType, ...] = ("plugins", "layout", "settings")

_SEVERITY_MAP = {"info": "information", "warning": "warning", "error": "error"}


class QuartzPluginsApp(App):
    """
    Quartz plugin manager TUI application.

    Edits the plugin list, page layout and global settings of one Quartz
    project, and runs plugin install/update/remove commands in the background.
    """

    TITLE = "Quartz Plugin Manager"

    _NOTIFY_TIMEOUT_SECONDS = 3.0
    _NOTIFY_ERROR_TIMEOUT_SECONDS = 8.0

    CSS = """
    #progress-log {
        dock: bottom;
        height: auto;
        max-height: 8;
        padding: 0 1;
        display: none;
    }

    #progress-log.-visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("tab", "next_tab", "Next tab", show=False, priority=True),
        Binding("shift+tab", "previous_tab", "Previous tab", show=False, priority=True),
        Binding("ctrl+c", "quit", "Quit", show=False),
    ]

    def __init__(
        self,
        paths: ProjectPaths,
        *,
        store: Optional[DocumentStore] = None,
        registry: Optional[PluginRegistry] = None,
        operations: Optional[PluginOperations] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the application.

        Args:
            paths: Resolved project paths
            store: Document store; loaded from ``paths`` when omitted
            registry: Plugin registry; built from ``paths`` when omitted
            operations: External plugin command runner
        """
        super().__init__(**kwargs)
        self.paths = paths
        self.store = store or DocumentStore.for_project(paths)
        if not self.store.is_loaded:
            self.store.load()
        self.registry = registry or PluginRegistry(paths)
        self.ui_state = AppState()
        self.plugins_vm = PluginsViewModel(self.store, self.ui_state, self.registry)
        self.layout_vm = LayoutViewModel(self.store, self.ui_state, self.registry)
        self.settings_vm = SettingsViewModel(self.store, self.ui_state)
        self.operation_runner = OperationRunner(
            operations or PluginOperations(paths.root),
            self.store,
            self.ui_state,
            dispatch=self._dispatch,
            on_complete=self._operation_finished,
        )
        self.quartz_version = read_quartz_version(paths) or ""
        self._unsubscribe: Optional[Callable[[], None]] = None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Header(icon="")

        with TabbedContent(initial="plugins", id="main-tabs"):
            with TabPane("Plugins", id="plugins"):
                yield PluginsScreen(self.plugins_vm, id="plugins-screen")
            with TabPane("Layout", id="layout"):
                yield LayoutScreen(self.layout_vm, id="layout-screen")
            with TabPane("Settings", id="settings"):
                yield SettingsScreen(self.settings_vm, id="settings-screen")

        yield Static("", id="progress-log")
        yield StatusBar(id="main-status-bar")

    def on_mount(self) -> None:
        """Subscribe to the store and open setup on first run."""
        logger.info("TUI mounted for %s", self.paths.root)
        self.sub_title = f"v{__version__} │ {self.paths.root}"
        self._unsubscribe = self.store.subscribe(self._on_store_changed)
        self._refresh_chrome()
        if self.store.document is None:
            logger.info("No configuration found; showing setup")
            self.push_screen(SetupScreen(SetupViewModel(self.store, self.ui_state)), self._setup_finished)
        else:
            self._focus_active_panel()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # -------------------------------------------------------------------------
    # Thread marshalling
    # -------------------------------------------------------------------------

    def run_on_ui_thread(self, callback: Callable[[], Any]) -> None:
        """Run a callback on the app UI thread from either same or worker thread."""
        try:
            self.call_from_thread(callback)
        except RuntimeError as exc:
            # Textual raises this when already on the app thread.
            if "must run in a different thread" in str(exc):
                callback()
                return
            raise

    def _dispatch(self, callback: Callable[[], Any]) -> None:
        def _run() -> None:
            callback()
            self._refresh_chrome()

        self.run_on_ui_thread(_run)

    # -------------------------------------------------------------------------
    # Panels
    # -------------------------------------------------------------------------

    @property
    def active_tab(self) -> TabType:
        return self.ui_state.active_tab

    def _panels(self) -> list[PanelScreen]:
        panels: list[PanelScreen] = []
        for screen_id in ("#plugins-screen", "#layout-screen", "#settings-screen"):
            try:
                panels.append(self.query_one(screen_id, PanelScreen))
            except NoMatches:
                continue
        return panels

    def _active_panel(self) -> Optional[PanelScreen]:
        try:
            return self.query_one(f"#{self.active_tab}-screen", PanelScreen)
        except NoMatches:
            return None

    def _focus_active_panel(self) -> None:
        panel = self._active_panel()
        if panel is not None:
            panel.refresh_view()
            if not panel.wants_text():
                panel.focus()

    def panel_changed(self, panel: str, result: Optional[PanelActionResult]) -> None:
        """Called by panels after every handled key."""
        if result is not None and result.changed:
            logger.debug("Panel %s changed the document", panel)
        self._refresh_chrome()

    def refresh_panels(self) -> None:
        for view_model in (self.plugins_vm, self.layout_vm, self.settings_vm):
            view_model.refresh()
        for panel in self._panels():
            panel.refresh_view()
        self._refresh_chrome()

    def _on_store_changed(self, revision: int) -> None:
        if self.is_running:
            self._refresh_chrome()

    def _setup_finished(self, created: Optional[bool]) -> None:
        if created:
            self.refresh_panels()
            self._focus_active_panel()

    def _operation_finished(self, request: OperationRequest, result: Optional[OperationResult]) -> None:
        """Drop edit state that referred to the pre-operation document."""
        logger.info("Operation %s finished (success=%s)", request.action, bool(result and result.success))
        for view_model in (self.plugins_vm, self.layout_vm, self.settings_vm):
            view_model.on_reload()
        for panel in self._panels():
            panel.refresh_view()

    # -------------------------------------------------------------------------
    # Status, progress and notifications
    # -------------------------------------------------------------------------

    def _refresh_chrome(self) -> None:
        self._drain_notifications()
        snapshot = self.ui_state.snapshot()
        try:
            status = self.query_one("#main-status-bar", StatusBar)
            progress = self.query_one("#progress-log", Static)
        except NoMatches:
            return
        status.tab = snapshot.active_tab
        status.sort_mode = self.plugins_vm.sort_mode
        status.operation = snapshot.operation or ""
        status.version = self.quartz_version
        status.hints = key_hints(snapshot.active_tab)
        progress.update(render_progress(snapshot.progress, snapshot.operation))
        progress.set_class(snapshot.loading, "-visible")

    def _drain_notifications(self) -> None:
        for notification in self.ui_state.drain_notifications():
            timeout = (
                self._NOTIFY_ERROR_TIMEOUT_SECONDS
                if notification.severity == "error"
                else self._NOTIFY_TIMEOUT_SECONDS
            )
            self.notify(
                notification.message,
                severity=cast(Any, _SEVERITY_MAP.get(notification.severity, "information")),
                timeout=timeout,
            )

    # -------------------------------------------------------------------------
    # Tab switching
    # -------------------------------------------------------------------------

    def action_next_tab(self) -> None:
        self._cycle_tab(1)

    def action_previous_tab(self) -> None:
        self._cycle_tab(-1)

    def _cycle_tab(self, delta: int) -> None:
        panel = self._active_panel()
        if panel is not None and not panel.is_idle:
            return
        position = TABS.index(self.active_tab)
        target = TABS[(position + delta) % len(TABS)]
        self.query_one("#main-tabs", TabbedContent).active = target

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        """Track the active tab and refresh its panel."""
        pane_id = event.pane.id if event.pane is not None else None
        if pane_id not in TABS:
            return
        self.ui_state.set_active_tab(cast(TabType, pane_id))
        logger.debug("Tab activated: %s", pane_id)
        for view_model in (self.plugins_vm, self.layout_vm, self.settings_vm):
            view_model.refresh()
        self._focus_active_panel()
        self._refresh_chrome()

    def action_quit(self) -> None:
        logger.info("User requested quit")
        self.exit()


def run_tui(paths: ProjectPaths, store: Optional[DocumentStore] = None) -> int:
    """
    Run the TUI application.

    Args:
        paths: Resolved project paths
        store: Already loaded document store, if any

    Returns:
        Exit code (0 for success)
    """
    app = QuartzPluginsApp(paths, store=store)
    app.run()
    return 0
