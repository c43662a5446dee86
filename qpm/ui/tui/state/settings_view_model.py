"""Settings panel view model: tree navigation, editing and restore-to-default."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Optional

from qpm.config.defaults import MISSING, DefaultDiff, is_at_default
from qpm.config.schema import FieldSchema, resolve_global_field_kind
from qpm.config.store import DocumentStore, PersistenceError

from .app_state import AppState
from .base import IGNORED, PanelActionResult, PanelViewModel
from .edit_session import EditEvent, EditSession, EditState
from .navigation import FlatEntry, KeyPath, TreeNavigator


@dataclass(frozen=True)
class SettingsRow:
    """Single row of the settings tree."""

    entry: FlatEntry
    selected: bool
    collapsed: bool
    schema: FieldSchema
    has_default: bool
    modified: bool

    @property
    def at_default(self) -> bool:
        return self.has_default and not self.modified


@dataclass(frozen=True)
class SettingsSnapshot:
    """Immutable snapshot of settings panel state."""

    rows: tuple[SettingsRow, ...]
    edit_state: EditState
    has_defaults: bool


class SettingsViewModel(PanelViewModel):
    """ViewModel over the ``configuration`` section of the document."""

    SECTION = "configuration"

    def __init__(
        self,
        store: DocumentStore,
        app_state: AppState,
        *,
        diff: Optional[DefaultDiff] = None,
    ) -> None:
        super().__init__(store, app_state)
        self.navigator = TreeNavigator()
        self.diff = diff or DefaultDiff(store.default_document)
        self.session = EditSession(self._read, self._write)
        self.refresh()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Rebuild the projection after any document change or reload."""
        self.diff.set_default_document(self._store.default_document)
        self.navigator.refresh(self._store.configuration)

    def on_reload(self) -> None:
        self.session.reset()
        self.refresh()

    @property
    def selected(self) -> Optional[FlatEntry]:
        return self.navigator.selected

    def field_schema(self, key_path: KeyPath) -> FieldSchema:
        return resolve_global_field_kind(key_path)

    def default_for(self, key_path: KeyPath) -> Any:
        return self.diff.lookup_default(key_path, section=self.SECTION)

    def is_modified(self, key_path: KeyPath) -> bool:
        value = self._read(key_path)
        return self.diff.is_modified(key_path, value, section=self.SECTION)

    def rows(self) -> list[SettingsRow]:
        selected = self.navigator.selected
        rows: list[SettingsRow] = []
        for entry in self.navigator.visible:
            default = self.default_for(entry.key_path)
            rows.append(
                SettingsRow(
                    entry=entry,
                    selected=entry is selected,
                    collapsed=entry.key_path in self.navigator.collapsed,
                    schema=self.field_schema(entry.key_path),
                    has_default=default is not MISSING,
                    modified=default is not MISSING and not is_at_default(entry.value, default),
                )
            )
        return rows

    def snapshot(self) -> SettingsSnapshot:
        return SettingsSnapshot(
            rows=tuple(self.rows()),
            edit_state=self.session.state,
            has_defaults=self.diff.has_defaults,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def move(self, delta: int) -> PanelActionResult:
        if self.locked or self.session.active:
            return IGNORED
        self.navigator.move(delta)
        return PanelActionResult(handled=True)

    def activate(self) -> PanelActionResult:
        """Enter: collapse/expand a container or open the field editor."""
        if self.locked or self.session.active:
            return IGNORED
        entry = self.navigator.selected
        if entry is None:
            return IGNORED
        if entry.is_container:
            self.navigator.toggle(entry.key_path)
            return PanelActionResult(handled=True)
        self.session.begin(entry.key_path, self.field_schema(entry.key_path))
        return PanelActionResult(handled=True)

    def handle(self, event: EditEvent) -> PanelActionResult:
        """Route an event into the active edit session."""
        if self.locked or not self.session.active:
            return IGNORED
        result = self.report(self.session.handle(event))
        if result.changed:
            self.refresh()
        return result

    def restore_default(self) -> PanelActionResult:
        """Restore the selected key path to the shipped default."""
        if self.locked or self.session.active:
            return IGNORED
        entry = self.navigator.selected
        if entry is None:
            return IGNORED
        label = entry.dotted
        default = self.default_for(entry.key_path)
        if default is MISSING:
            return self.notify(f"No default available for {label}", "error")
        if is_at_default(self._read(entry.key_path), default):
            return self.notify(f"{label} is already default")
        self._write(entry.key_path, copy.deepcopy(default))
        self.refresh()
        result = self.notify(f"Restored {label} to default")
        return PanelActionResult(handled=True, changed=True, message=result.message)

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def _read(self, key_path: KeyPath) -> Any:
        return self._store.get_at_path((self.SECTION, *key_path))

    def _write(self, key_path: KeyPath, value: Any) -> None:
        try:
            self._store.update_configuration(key_path, value)
        except PersistenceError as exc:
            self._persistence_failed(exc)
