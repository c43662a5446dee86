"""Plugins panel view model: categorized listing, toggles, options and operations."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Literal, Optional

from qpm.config.defaults import MISSING, deep_equal, option_default
from qpm.config.schema import FieldKind, FieldSchema, resolve_option_field
from qpm.config.store import DocumentStore
from qpm.plugins.registry import EnrichedPlugin, PluginRegistry, find_by_source

from .app_state import AppState
from .base import IGNORED, PanelActionResult, PanelViewModel
from .edit_session import EditEvent, EditSession, EditState
from .navigation import Cursor, KeyPath, ListingRow, PluginListNavigator
from .operation_runner import OperationRequest

PluginsView = Literal["list", "options", "add", "order", "confirm-remove"]

_ORDER_PATH: KeyPath = ("order",)
_ORDER_SCHEMA = FieldSchema(FieldKind.FREEFORM)


@dataclass(frozen=True)
class OptionRow:
    """One option of the selected plugin."""

    key: str
    value: Any
    schema: FieldSchema
    has_default: bool
    modified: bool
    selected: bool


@dataclass(frozen=True)
class PluginsSnapshot:
    """Immutable snapshot of plugins panel state."""

    view: PluginsView
    sort_mode: str
    rows: tuple[ListingRow, ...]
    selected_row: Optional[int]
    selected: Optional[EnrichedPlugin]
    options: tuple[OptionRow, ...]
    edit_state: EditState


def option_summary(plugin: EnrichedPlugin) -> list[tuple[str, Any, bool]]:
    """(key, value, modified) for each option; modified compares to manifest defaults."""
    summary: list[tuple[str, Any, bool]] = []
    for key, value in plugin.options.items():
        default = option_default(plugin.manifest, key)
        summary.append((key, value, default is not MISSING and not deep_equal(value, default)))
    return summary


class PluginsViewModel(PanelViewModel):
    """ViewModel over the declared plugin list."""

    def __init__(
        self,
        store: DocumentStore,
        app_state: AppState,
        registry: PluginRegistry,
    ) -> None:
        super().__init__(store, app_state, registry)
        self.navigator = PluginListNavigator()
        self.view: PluginsView = "list"
        self.option_cursor = Cursor()
        self.session = EditSession(self._read_option, self._write_option)
        self.order_session = EditSession(self._read_plugin_field, self._write_plugin_field)
        self._selected_source: Optional[str] = None
        self.refresh()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        self.navigator.refresh(self.plugins())
        self._sync_selection()

    def on_reload(self) -> None:
        """Drop edits that referenced the previous document."""
        self.session.reset()
        self.order_session.reset()
        if self.view != "list":
            self.view = "list"
        self.refresh()

    @property
    def selected(self) -> Optional[EnrichedPlugin]:
        """Selected plugin, re-found by source in the current snapshot."""
        if self._selected_source is None:
            return None
        return find_by_source(self.plugins(), self._selected_source)

    @property
    def sort_mode(self) -> str:
        return self.navigator.sort_mode

    def option_keys(self, plugin: Optional[EnrichedPlugin] = None) -> list[str]:
        """Configured options first, then manifest defaults not yet set."""
        plugin = plugin or self.selected
        if plugin is None:
            return []
        keys = list(plugin.options.keys())
        defaults = (plugin.manifest or {}).get("defaultOptions")
        if isinstance(defaults, dict):
            keys.extend(key for key in defaults if key not in plugin.options)
        return keys

    def option_rows(self) -> list[OptionRow]:
        plugin = self.selected
        if plugin is None:
            return []
        rows: list[OptionRow] = []
        for position, key in enumerate(self.option_keys(plugin)):
            value = plugin.options.get(key, MISSING)
            default = option_default(plugin.manifest, key)
            rows.append(
                OptionRow(
                    key=key,
                    value=value,
                    schema=resolve_option_field(plugin.manifest, key, default if value is MISSING else value),
                    has_default=default is not MISSING,
                    modified=default is not MISSING and not deep_equal(value, default),
                    selected=position == self.option_cursor.index,
                )
            )
        return rows

    def snapshot(self) -> PluginsSnapshot:
        return PluginsSnapshot(
            view=self.view,
            sort_mode=self.sort_mode,
            rows=tuple(self.navigator.rows),
            selected_row=self.navigator.selected_row_position,
            selected=self.selected,
            options=tuple(self.option_rows()) if self.view == "options" else (),
            edit_state=self.active_session.state,
        )

    @property
    def active_session(self) -> EditSession:
        return self.order_session if self.view == "order" else self.session

    # ------------------------------------------------------------------
    # List view
    # ------------------------------------------------------------------

    def move(self, delta: int) -> PanelActionResult:
        if self.locked or self.view != "list":
            return IGNORED
        self.navigator.move(delta)
        self._sync_selection()
        return PanelActionResult(handled=True)

    def cycle_sort(self) -> PanelActionResult:
        if self.locked or self.view != "list":
            return IGNORED
        mode = self.navigator.cycle_sort(self.plugins())
        self._sync_selection()
        return self.notify(f"Sort: {mode}")

    def set_enabled(self, enabled: bool) -> PanelActionResult:
        if self.locked or self.view != "list":
            return IGNORED
        plugin = self.selected
        if plugin is None or plugin.enabled == enabled:
            return IGNORED
        self.update_plugin(plugin.index, {"enabled": enabled})
        self.refresh()
        verb = "Enabled" if enabled else "Disabled"
        return self._changed(self.notify(f"{verb} {plugin.display_name}"))

    def move_in_list(self, delta: int) -> PanelActionResult:
        """Move the selected plugin within the declared plugin list."""
        if self.locked or self.view != "list":
            return IGNORED
        plugin = self.selected
        if plugin is None:
            return IGNORED
        target = plugin.index + delta
        if not 0 <= target < len(self._store.plugins):
            return PanelActionResult(handled=True)
        self.mutate(lambda: self._store.move_plugin(plugin.index, target))
        self.refresh()
        return self._changed(self.notify(f"Moved {plugin.display_name} to position {target + 1}"))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def open_options(self) -> PanelActionResult:
        if self.locked or self.view != "list":
            return IGNORED
        plugin = self.selected
        if plugin is None:
            return IGNORED
        if not self.option_keys(plugin):
            return self.notify("No options to configure")
        self.view = "options"
        self.option_cursor.reset()
        self.session.reset()
        return PanelActionResult(handled=True)

    def open_order(self) -> PanelActionResult:
        if self.locked or self.view != "list" or self.selected is None:
            return IGNORED
        self.view = "order"
        self.order_session.begin(_ORDER_PATH, _ORDER_SCHEMA)
        return PanelActionResult(handled=True)

    def open_add(self) -> PanelActionResult:
        if self.locked or self.view != "list":
            return IGNORED
        self.view = "add"
        return PanelActionResult(handled=True)

    def request_remove(self) -> PanelActionResult:
        if self.locked or self.view != "list" or self.selected is None:
            return IGNORED
        self.view = "confirm-remove"
        return PanelActionResult(handled=True)

    def close_view(self) -> PanelActionResult:
        """Escape from add, order or confirm views back to the list."""
        if self.view == "list":
            return IGNORED
        self.view = "list"
        self.session.reset()
        self.order_session.reset()
        return PanelActionResult(handled=True)

    # ------------------------------------------------------------------
    # Options view
    # ------------------------------------------------------------------

    def move_option(self, delta: int) -> PanelActionResult:
        if self.locked or self.view != "options" or self.session.active:
            return IGNORED
        self.option_cursor.move(delta, len(self.option_keys()), wrap=True)
        return PanelActionResult(handled=True)

    def edit_option(self) -> PanelActionResult:
        if self.locked or self.view != "options" or self.session.active:
            return IGNORED
        row = self._selected_option()
        if row is None:
            return IGNORED
        self.session.begin((row.key,), row.schema)
        return PanelActionResult(handled=True)

    def restore_option_default(self) -> PanelActionResult:
        if self.locked or self.view != "options" or self.session.active:
            return IGNORED
        plugin = self.selected
        row = self._selected_option()
        if plugin is None or row is None:
            return IGNORED
        default = option_default(plugin.manifest, row.key)
        if default is MISSING:
            return self.notify(f"No default available for {row.key}", "error")
        if deep_equal(row.value, default):
            return self.notify(f"{row.key} is already default")
        self._write_option((row.key,), copy.deepcopy(default))
        return self._changed(self.notify(f"Restored {row.key} to default"))

    def leave_options(self) -> PanelActionResult:
        if self.view != "options" or self.session.active:
            return IGNORED
        self.view = "list"
        return PanelActionResult(handled=True)

    # ------------------------------------------------------------------
    # Edit routing
    # ------------------------------------------------------------------

    def handle(self, event: EditEvent) -> PanelActionResult:
        """Route an event into the options or order edit session."""
        if self.locked:
            return IGNORED
        session = self.active_session
        if not session.active:
            return IGNORED
        result = self.report(session.handle(event))
        if self.view == "order" and not session.active:
            self.view = "list"
        if result.changed:
            self.refresh()
        return result

    # ------------------------------------------------------------------
    # External operations
    # ------------------------------------------------------------------

    def submit_add(self, text: str) -> Optional[OperationRequest]:
        if self.locked or self.view != "add":
            return None
        source = text.strip()
        self.view = "list"
        if not source:
            return None
        return OperationRequest(action="add", targets=(source,), subject=source)

    def confirm_remove(self, confirmed: bool) -> Optional[OperationRequest]:
        if self.locked or self.view != "confirm-remove":
            return None
        self.view = "list"
        plugin = self.selected
        if not confirmed or plugin is None:
            return None
        return OperationRequest(action="remove", targets=(plugin.name,), subject=plugin.display_name)

    def request_update(self, only_selected: bool = False) -> Optional[OperationRequest]:
        if self.locked or self.view != "list":
            return None
        if only_selected:
            plugin = self.selected
            if plugin is None:
                return None
            return OperationRequest(action="update", targets=(plugin.name,), subject=plugin.display_name)
        return OperationRequest(action="update")

    def request_install(self) -> Optional[OperationRequest]:
        if self.locked or self.view != "list":
            return None
        return OperationRequest(action="install")

    def request_restore(self) -> Optional[OperationRequest]:
        if self.locked or self.view != "list":
            return None
        return OperationRequest(action="restore")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _sync_selection(self) -> None:
        plugin = self.navigator.selected
        self._selected_source = plugin.source if plugin else None

    def _selected_option(self) -> Optional[OptionRow]:
        rows = self.option_rows()
        if not rows:
            return None
        return rows[self.option_cursor.clamp(len(rows))]

    def _changed(self, result: PanelActionResult) -> PanelActionResult:
        return PanelActionResult(handled=True, changed=True, message=result.message, error=result.error)

    def _read_option(self, path: KeyPath) -> Any:
        plugin = self.selected
        if plugin is None or not path:
            return MISSING
        return plugin.options.get(path[0], MISSING)

    def _write_option(self, path: KeyPath, value: Any) -> None:
        plugin = self.selected
        if plugin is None or not path:
            return
        options = dict(plugin.options)
        options[path[0]] = value
        self.update_plugin(plugin.index, {"options": options})

    def _read_plugin_field(self, path: KeyPath) -> Any:
        plugin = self.selected
        if plugin is None or not path:
            return MISSING
        if path == _ORDER_PATH:
            return plugin.order
        return plugin.raw.get(path[0], MISSING)

    def _write_plugin_field(self, path: KeyPath, value: Any) -> None:
        plugin = self.selected
        if plugin is None or not path:
            return
        self.update_plugin(plugin.index, {path[0]: value})

