"""Layout panel view model: zone grid, component edits, groups and page types."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Literal, Optional

from qpm.config.constants import (
    DEFAULT_DISPLAY,
    DEFAULT_GROUP,
    DEFAULT_PAGE_TYPE,
    DEFAULT_POSITION,
    DEFAULT_PRIORITY,
    DISPLAY_MODES,
    GROUP_DIRECTIONS,
    ZONES,
)
from qpm.config.schema import NUMBER_ERROR, parse_number
from qpm.config.store import DocumentStore
from qpm.logging import get_logger
from qpm.plugins.registry import EnrichedPlugin, PluginRegistry

from .app_state import AppState
from .base import IGNORED, PanelActionResult, PanelViewModel
from .navigation import Cursor, ZoneComponent, ZoneGridCursor, build_zone_components, page_types

logger = get_logger(__name__)

LayoutView = Literal[
    "zones",
    "move-zone",
    "priority",
    "display",
    "condition",
    "confirm-remove",
    "groups",
    "page-types",
]
GroupsMode = Literal["list", "add", "direction", "gap", "confirm-delete"]
PageTypesMode = Literal[
    "list",
    "add",
    "confirm-delete",
    "detail",
    "exclude",
    "positions",
    "add-position",
    "select-position",
]

PAGE_TYPE_SECTIONS: tuple[str, ...] = ("exclude", "positions")

_TEXT_VIEWS = frozenset({"priority", "condition"})
_CHOICE_VIEWS = frozenset({"move-zone", "display"})


@dataclass(frozen=True)
class PositionEntry:
    """One ``positions`` override of a page type.

    ``kind`` is ``plugin`` for a plugin-name key relocating a component and
    ``clear`` for a zone key holding a list.
    """

    kind: Literal["plugin", "clear"]
    key: str
    value: Any

    @property
    def label(self) -> str:
        if self.kind == "plugin":
            return f"→ {self.value}"
        count = len(self.value)
        return "(cleared)" if count == 0 else f"(custom {count})"


@dataclass(frozen=True)
class LayoutSnapshot:
    """Immutable snapshot of layout panel state."""

    view: LayoutView
    page_type: str
    page_types: tuple[str, ...]
    zone: str
    drilled: bool
    zones: dict[str, tuple[ZoneComponent, ...]]
    component_index: int
    selected_component: Optional[ZoneComponent]
    choices: tuple[str, ...]
    choice_index: int
    groups_mode: GroupsMode
    group_index: int
    page_types_mode: PageTypesMode
    page_type_index: int
    error: Optional[str]


class LayoutViewModel(PanelViewModel):
    """ViewModel over the ``layout`` section and per-plugin layout specs."""

    def __init__(
        self,
        store: DocumentStore,
        app_state: AppState,
        registry: PluginRegistry,
    ) -> None:
        super().__init__(store, app_state, registry)
        self.view: LayoutView = "zones"
        self.grid = ZoneGridCursor()
        self.page_type = DEFAULT_PAGE_TYPE
        self.choice = Cursor()
        self.error: Optional[str] = None

        self.groups_mode: GroupsMode = "list"
        self.group_cursor = Cursor()
        self.page_types_mode: PageTypesMode = "list"
        self.page_type_cursor = Cursor()
        self.detail_cursor = Cursor()
        self.exclude_cursor = Cursor()
        self.position_cursor = Cursor()
        self.candidate_cursor = Cursor()
        self.position_plugin: Optional[str] = None

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    @property
    def layout(self) -> dict[str, Any]:
        return self._store.layout

    def page_types(self) -> list[str]:
        return page_types(self.layout)

    def zone_components(self) -> dict[str, list[ZoneComponent]]:
        return build_zone_components(self.plugins(), self.layout, self.page_type)

    def current_components(self) -> list[ZoneComponent]:
        return self.zone_components()[self.grid.zone]

    @property
    def selected_component(self) -> Optional[ZoneComponent]:
        if not self.grid.drilled:
            return None
        components = self.current_components()
        if not components:
            return None
        return components[self.grid.clamp(len(components))]

    def groups(self) -> dict[str, dict[str, Any]]:
        groups = self.layout.get("groups")
        if not isinstance(groups, dict):
            return {}
        return {name: dict(config) if isinstance(config, dict) else {} for name, config in groups.items()}

    def selected_group(self) -> Optional[str]:
        names = list(self.groups())
        if not names:
            return None
        return names[self.group_cursor.clamp(len(names))]

    def by_page_type(self) -> dict[str, dict[str, Any]]:
        overrides = self.layout.get("byPageType")
        if not isinstance(overrides, dict):
            return {}
        return {name: dict(value) if isinstance(value, dict) else {} for name, value in overrides.items()}

    def selected_page_type(self) -> Optional[str]:
        names = list(self.by_page_type())
        if not names:
            return None
        return names[self.page_type_cursor.clamp(len(names))]

    def enabled_plugins(self) -> list[EnrichedPlugin]:
        return [plugin for plugin in self.plugins() if plugin.enabled]

    def exclusions(self, page_type: Optional[str] = None) -> list[str]:
        override = self.by_page_type().get(page_type or self.selected_page_type() or "", {})
        exclude = override.get("exclude")
        return list(exclude) if isinstance(exclude, list) else []

    def position_entries(self, page_type: Optional[str] = None) -> list[PositionEntry]:
        override = self.by_page_type().get(page_type or self.selected_page_type() or "", {})
        positions = override.get("positions")
        if not isinstance(positions, dict):
            return []
        entries: list[PositionEntry] = []
        for key, value in positions.items():
            if isinstance(value, str):
                entries.append(PositionEntry("plugin", key, value))
            elif isinstance(value, list):
                entries.append(PositionEntry("clear", key, value))
        return entries

    def position_candidates(self) -> list[EnrichedPlugin]:
        """Enabled plugins without a position override yet."""
        taken = {entry.key for entry in self.position_entries() if entry.kind == "plugin"}
        return [plugin for plugin in self.enabled_plugins() if plugin.name not in taken]

    @property
    def choices(self) -> tuple[str, ...]:
        """Options of the active choice editor."""
        if self.view == "move-zone":
            component = self.selected_component
            current = component.zone if component else None
            return tuple(zone for zone in ZONES if zone != current)
        if self.view == "display":
            return DISPLAY_MODES
        if self.view == "groups" and self.groups_mode == "direction":
            return GROUP_DIRECTIONS
        if self.view == "page-types":
            if self.page_types_mode == "detail":
                return PAGE_TYPE_SECTIONS
            if self.page_types_mode == "select-position":
                return ZONES
        return ()

    @property
    def needs_text(self) -> bool:
        """True when the active mode consumes free-text ``submit`` calls."""
        if self.view in _TEXT_VIEWS:
            return True
        if self.view == "groups":
            return self.groups_mode in ("add", "gap")
        if self.view == "page-types":
            return self.page_types_mode == "add"
        return False

    def prompt_text(self) -> str:
        """Pre-fill text for the active input."""
        component = self.selected_component
        if self.view == "priority" and component is not None:
            return str(component.priority)
        if self.view == "condition" and component is not None:
            return component.condition or ""
        if self.view == "groups" and self.groups_mode == "gap":
            name = self.selected_group()
            return str(self.groups().get(name or "", {}).get("gap", ""))
        return ""

    @property
    def awaiting_confirmation(self) -> bool:
        if self.view == "confirm-remove":
            return True
        if self.view == "groups":
            return self.groups_mode == "confirm-delete"
        if self.view == "page-types":
            return self.page_types_mode == "confirm-delete"
        return False

    def snapshot(self) -> LayoutSnapshot:
        zones = self.zone_components()
        components = zones[self.grid.zone]
        index = self.grid.clamp(len(components))
        selected = components[index] if self.grid.drilled and components else None
        return LayoutSnapshot(
            view=self.view,
            page_type=self.page_type,
            page_types=tuple(self.page_types()),
            zone=self.grid.zone,
            drilled=self.grid.drilled,
            zones={zone: tuple(items) for zone, items in zones.items()},
            component_index=index,
            selected_component=selected,
            choices=self.choices,
            choice_index=self.choice.index,
            groups_mode=self.groups_mode,
            group_index=self.group_cursor.index,
            page_types_mode=self.page_types_mode,
            page_type_index=self.page_type_cursor.index,
            error=self.error,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Re-clamp every cursor against the current document."""
        if self.page_type not in self.page_types():
            self.page_type = DEFAULT_PAGE_TYPE
        self.grid.clamp(len(self.current_components()))
        self.group_cursor.clamp(len(self.groups()))
        self.page_type_cursor.clamp(len(self.by_page_type()))
        self.exclude_cursor.clamp(len(self.enabled_plugins()))
        self.position_cursor.clamp(len(self.position_entries()))
        self.candidate_cursor.clamp(len(self.position_candidates()))
        if self.grid.drilled and self.view in _TEXT_VIEWS | _CHOICE_VIEWS | {"confirm-remove"}:
            if self.selected_component is None:
                self._leave_to_zones()

    def on_reload(self) -> None:
        self.view = "zones"
        self.grid.leave()
        self.groups_mode = "list"
        self.page_types_mode = "list"
        self.position_plugin = None
        self.error = None
        self.refresh()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def move(self, delta: int) -> PanelActionResult:
        """Up/down inside whatever the active view lists."""
        if self.locked:
            return IGNORED
        if self.view == "zones":
            if self.grid.drilled:
                self.grid.move_component(delta, len(self.current_components()))
            else:
                self.grid.move_row(delta)
            return PanelActionResult(handled=True)
        choices = self.choices
        if choices:
            self.choice.move(delta, len(choices), wrap=True)
            return PanelActionResult(handled=True)
        if self.view == "groups" and self.groups_mode == "list":
            self.group_cursor.move(delta, len(self.groups()), wrap=False)
            return PanelActionResult(handled=True)
        if self.view == "page-types":
            cursor, length = self._page_types_cursor()
            if cursor is not None:
                cursor.move(delta, length, wrap=False)
                return PanelActionResult(handled=True)
        return IGNORED

    def move_column(self, delta: int) -> PanelActionResult:
        if self.locked or self.view != "zones" or self.grid.drilled:
            return IGNORED
        self.grid.move_column(delta)
        return PanelActionResult(handled=True)

    def cycle_page_type(self, delta: int) -> PanelActionResult:
        if self.locked or self.view != "zones" or self.grid.drilled:
            return IGNORED
        names = self.page_types()
        if len(names) < 2:
            return IGNORED
        position = names.index(self.page_type) if self.page_type in names else 0
        self.page_type = names[(position + delta) % len(names)]
        self.grid.component.reset()
        return PanelActionResult(handled=True, message=f"Page type: {self.page_type}")

    def drill(self) -> PanelActionResult:
        if self.locked or self.view != "zones" or self.grid.drilled:
            return IGNORED
        self.grid.drill(len(self.current_components()))
        return PanelActionResult(handled=True)

    def select(self) -> PanelActionResult:
        """Enter: drill into a zone or commit the highlighted choice."""
        if self.locked:
            return IGNORED
        if self.view == "zones":
            return self.drill()
        if self.view == "move-zone":
            return self._commit_zone()
        if self.view == "display":
            return self._commit_display()
        if self.view == "groups":
            return self._select_group()
        if self.view == "page-types":
            return self._select_page_type_entry()
        return IGNORED

    def cancel(self) -> PanelActionResult:
        """Escape unwinds one level."""
        self.error = None
        if self.view == "zones":
            if not self.grid.drilled:
                return IGNORED
            self.grid.leave()
            return PanelActionResult(handled=True)
        if self.view == "groups" and self.groups_mode != "list":
            self.groups_mode = "list"
            return PanelActionResult(handled=True)
        if self.view == "page-types" and self.page_types_mode != "list":
            self.page_types_mode = _PAGE_TYPES_PARENT[self.page_types_mode]
            self.position_plugin = None
            return PanelActionResult(handled=True)
        self._leave_to_zones()
        return PanelActionResult(handled=True)

    def submit(self, text: str) -> PanelActionResult:
        """Free-text commit for the active input."""
        if self.locked or not self.needs_text:
            return IGNORED
        if self.view == "priority":
            return self._commit_priority(text)
        if self.view == "condition":
            return self._commit_condition(text)
        if self.view == "groups":
            if self.groups_mode == "add":
                return self._add_group(text)
            return self._commit_gap(text)
        return self._add_page_type(text)

    def confirm(self, confirmed: bool) -> PanelActionResult:
        """Answer the active yes/no prompt."""
        if self.locked or not self.awaiting_confirmation:
            return IGNORED
        if self.view == "confirm-remove":
            if not confirmed:
                self._leave_to_zones(keep_drill=True)
                return PanelActionResult(handled=True)
            return self._remove_from_layout()
        if self.view == "groups":
            self.groups_mode = "list"
            if not confirmed:
                return PanelActionResult(handled=True)
            return self._delete_group()
        self.page_types_mode = "list"
        if not confirmed:
            return PanelActionResult(handled=True)
        return self._delete_page_type()

    # ------------------------------------------------------------------
    # Component edits (drilled into a zone)
    # ------------------------------------------------------------------

    def begin_move_zone(self) -> PanelActionResult:
        if not self._can_edit_component():
            return IGNORED
        self.view = "move-zone"
        self.choice.reset()
        return PanelActionResult(handled=True)

    def begin_priority(self) -> PanelActionResult:
        if not self._can_edit_component():
            return IGNORED
        self.view = "priority"
        self.error = None
        return PanelActionResult(handled=True)

    def begin_display(self) -> PanelActionResult:
        component = self.selected_component
        if not self._can_edit_component() or component is None:
            return IGNORED
        self.view = "display"
        self.choice.index = DISPLAY_MODES.index(component.display) if component.display in DISPLAY_MODES else 0
        return PanelActionResult(handled=True)

    def begin_condition(self) -> PanelActionResult:
        if not self._can_edit_component():
            return IGNORED
        self.view = "condition"
        return PanelActionResult(handled=True)

    def request_remove(self) -> PanelActionResult:
        if not self._can_edit_component():
            return IGNORED
        self.view = "confirm-remove"
        return PanelActionResult(handled=True)

    def swap(self, delta: int) -> PanelActionResult:
        """
        Exchange priorities with the neighbouring component.

        When the exchange alone would not move the component exactly one
        slot (equal priorities), the zone is renumbered in its new order with
        strictly increasing priorities, changing as few entries as possible.
        """
        if not self._can_edit_component():
            return IGNORED
        components = self.current_components()
        index = self.grid.clamp(len(components))
        target = index + delta
        if not 0 <= target < len(components):
            return PanelActionResult(handled=True)
        mine, other = components[index], components[target]
        plugins = {plugin.index: plugin for plugin in self.plugins()}
        if plugins[mine.plugin_index].layout is None or plugins[other.plugin_index].layout is None:
            return PanelActionResult(handled=True)

        desired = list(components)
        desired[index], desired[target] = other, mine
        priorities = {mine.plugin_index: other.priority, other.plugin_index: mine.priority}
        if not _sorts_as(desired, priorities):
            priorities = _renumber(desired)
        for component in desired:
            priority = priorities.get(component.plugin_index, component.priority)
            if priority != component.priority:
                self._update_layout(
                    plugins[component.plugin_index],
                    {"priority": priority},
                    position=component.zone,
                )
        self.refresh()
        moved = [item.plugin_index for item in self.current_components()]
        if mine.plugin_index in moved:
            self.grid.component.index = moved.index(mine.plugin_index)
        return self._changed("Moved up" if delta < 0 else "Moved down")

    def restore_component_defaults(self) -> PanelActionResult:
        """Reset placement to what the plugin manifest declares."""
        component = self.selected_component
        if not self._can_edit_component() or component is None:
            return IGNORED
        plugin = self._plugin_for(component)
        if plugin is None:
            return IGNORED
        components = (plugin.manifest or {}).get("components")
        if isinstance(components, dict) and components:
            declared = next(iter(components.values()))
            if not isinstance(declared, dict) or not declared:
                return self.notify("No component defaults found in manifest", "error")
            changes = {
                "position": declared.get("defaultPosition") or DEFAULT_POSITION,
                "priority": declared.get("defaultPriority") or DEFAULT_PRIORITY,
                "display": DEFAULT_DISPLAY,
            }
            self._update_layout(plugin, changes, position=component.zone)
            self.refresh()
            return self._changed(f"Restored {component.display_name} to defaults")
        if isinstance(components, dict):
            return self.notify("No component defaults found in manifest", "error")
        self._update_layout(
            plugin,
            {"priority": DEFAULT_PRIORITY, "display": DEFAULT_DISPLAY},
            position=component.zone,
        )
        self.refresh()
        return self._changed(f"Reset {component.display_name} display settings")

    def _commit_zone(self) -> PanelActionResult:
        component = self.selected_component
        choices = self.choices
        if component is None or not choices:
            return IGNORED
        zone = choices[self.choice.clamp(len(choices))]
        plugin = self._plugin_for(component)
        if plugin is None:
            return IGNORED
        self._update_layout(plugin, {"position": zone}, position=component.zone)
        self.view = "zones"
        self.grid.leave()
        self.grid.focus_zone(zone)
        self.refresh()
        return self._changed(f"Moved {component.display_name} to {zone}")

    def _commit_priority(self, text: str) -> PanelActionResult:
        component = self.selected_component
        if component is None:
            return IGNORED
        value = parse_number(text)
        if value is None:
            self.error = NUMBER_ERROR
            return self.notify(NUMBER_ERROR, "error")
        plugin = self._plugin_for(component)
        if plugin is None:
            return IGNORED
        self._update_layout(plugin, {"priority": value}, position=component.zone)
        self._leave_to_zones(keep_drill=True)
        self.refresh()
        return self._changed(f"Priority set to {value}")

    def _commit_display(self) -> PanelActionResult:
        component = self.selected_component
        if component is None:
            return IGNORED
        plugin = self._plugin_for(component)
        if plugin is None:
            return IGNORED
        mode = DISPLAY_MODES[self.choice.clamp(len(DISPLAY_MODES))]
        self._update_layout(plugin, {"display": mode}, position=component.zone)
        self._leave_to_zones(keep_drill=True)
        self.refresh()
        return self._changed(f"Display set to {mode}")

    def _commit_condition(self, text: str) -> PanelActionResult:
        component = self.selected_component
        if component is None:
            return IGNORED
        plugin = self._plugin_for(component)
        if plugin is None:
            return IGNORED
        condition = text.strip()
        self._update_layout(plugin, {"condition": condition or None}, position=component.zone)
        self._leave_to_zones(keep_drill=True)
        self.refresh()
        if condition:
            return self._changed(f"Condition set to {condition}")
        return self._changed("Condition removed")

    def _remove_from_layout(self) -> PanelActionResult:
        component = self.selected_component
        if component is None:
            self._leave_to_zones()
            return IGNORED
        self.update_plugin(component.plugin_index, {"layout": None})
        self._leave_to_zones(keep_drill=True)
        self.refresh()
        return self._changed(f"Removed {component.display_name} from layout")

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def open_groups(self) -> PanelActionResult:
        if self.locked or self.view != "zones" or self.grid.drilled:
            return IGNORED
        self.view = "groups"
        self.groups_mode = "list"
        self.group_cursor.reset()
        return PanelActionResult(handled=True)

    def new_item(self) -> PanelActionResult:
        """``n``: start adding a group, page type or position override."""
        if self.locked:
            return IGNORED
        if self.view == "groups" and self.groups_mode == "list":
            self.groups_mode = "add"
            return PanelActionResult(handled=True)
        if self.view == "page-types":
            if self.page_types_mode == "list":
                self.page_types_mode = "add"
                return PanelActionResult(handled=True)
            if self.page_types_mode == "positions":
                self.page_types_mode = "add-position"
                self.candidate_cursor.reset()
                return PanelActionResult(handled=True)
        return IGNORED

    def delete_item(self) -> PanelActionResult:
        """``d``: delete the highlighted group, page type or position override."""
        if self.locked:
            return IGNORED
        if self.view == "groups" and self.groups_mode == "list" and self.selected_group() is not None:
            self.groups_mode = "confirm-delete"
            return PanelActionResult(handled=True)
        if self.view == "page-types":
            if self.page_types_mode == "list" and self.selected_page_type() is not None:
                self.page_types_mode = "confirm-delete"
                return PanelActionResult(handled=True)
            if self.page_types_mode == "positions":
                return self._delete_position()
        return IGNORED

    def _select_group(self) -> PanelActionResult:
        if self.groups_mode == "list":
            name = self.selected_group()
            if name is None:
                return IGNORED
            direction = self.groups()[name].get("direction")
            self.choice.index = GROUP_DIRECTIONS.index(direction) if direction in GROUP_DIRECTIONS else 0
            self.groups_mode = "direction"
            return PanelActionResult(handled=True)
        if self.groups_mode == "direction":
            name = self.selected_group()
            if name is None:
                return IGNORED
            direction = GROUP_DIRECTIONS[self.choice.clamp(len(GROUP_DIRECTIONS))]
            self._write_group(name, {**self.groups()[name], "direction": direction})
            self.groups_mode = "gap"
            return PanelActionResult(handled=True, changed=True)
        return IGNORED

    def _add_group(self, text: str) -> PanelActionResult:
        name = text.strip()
        self.groups_mode = "list"
        if not name:
            return PanelActionResult(handled=True)
        self._write_group(name, dict(DEFAULT_GROUP))
        self.group_cursor.index = list(self.groups()).index(name)
        return self._changed("Groups updated")

    def _commit_gap(self, text: str) -> PanelActionResult:
        name = self.selected_group()
        self.groups_mode = "list"
        if name is None:
            return IGNORED
        self._write_group(name, {**self.groups()[name], "gap": text.strip()})
        return self._changed("Groups updated")

    def _delete_group(self) -> PanelActionResult:
        name = self.selected_group()
        if name is None:
            return IGNORED
        groups = self.groups()
        del groups[name]
        self._save_layout({**self.layout, "groups": groups})
        self.group_cursor.clamp(len(groups))
        return self._changed("Groups updated")

    def _write_group(self, name: str, config: dict[str, Any]) -> None:
        groups = self.groups()
        groups[name] = config
        self._save_layout({**self.layout, "groups": groups})

    # ------------------------------------------------------------------
    # Page types
    # ------------------------------------------------------------------

    def open_page_types(self) -> PanelActionResult:
        if self.locked or self.view != "zones" or self.grid.drilled:
            return IGNORED
        self.view = "page-types"
        self.page_types_mode = "list"
        self.page_type_cursor.reset()
        return PanelActionResult(handled=True)

    def _page_types_cursor(self) -> tuple[Optional[Cursor], int]:
        mode = self.page_types_mode
        if mode == "list":
            return self.page_type_cursor, len(self.by_page_type())
        if mode == "exclude":
            return self.exclude_cursor, len(self.enabled_plugins())
        if mode == "positions":
            return self.position_cursor, len(self.position_entries())
        if mode == "add-position":
            return self.candidate_cursor, len(self.position_candidates())
        return None, 0

    def _select_page_type_entry(self) -> PanelActionResult:
        mode = self.page_types_mode
        if mode == "list":
            if self.selected_page_type() is None:
                return IGNORED
            self.page_types_mode = "detail"
            self.choice.reset()
            return PanelActionResult(handled=True)
        if mode == "detail":
            section = PAGE_TYPE_SECTIONS[self.choice.clamp(len(PAGE_TYPE_SECTIONS))]
            self.page_types_mode = "exclude" if section == "exclude" else "positions"
            self.exclude_cursor.reset()
            self.position_cursor.reset()
            return PanelActionResult(handled=True)
        if mode == "exclude":
            return self._toggle_exclusion()
        if mode == "positions":
            entries = self.position_entries()
            if not entries:
                return IGNORED
            entry = entries[self.position_cursor.clamp(len(entries))]
            if entry.kind != "plugin":
                return IGNORED
            return self._choose_position_for(entry.key, entry.value)
        if mode == "add-position":
            candidates = self.position_candidates()
            if not candidates:
                return IGNORED
            plugin = candidates[self.candidate_cursor.clamp(len(candidates))]
            return self._choose_position_for(plugin.name, None)
        if mode == "select-position":
            return self._commit_position()
        return IGNORED

    def _choose_position_for(self, plugin_name: str, current: Optional[str]) -> PanelActionResult:
        self.position_plugin = plugin_name
        self.page_types_mode = "select-position"
        self.choice.index = ZONES.index(current) if current in ZONES else 0
        return PanelActionResult(handled=True)

    def _add_page_type(self, text: str) -> PanelActionResult:
        name = text.strip()
        if not name:
            self.page_types_mode = "list"
            return PanelActionResult(handled=True)
        if name == DEFAULT_PAGE_TYPE or name in self.by_page_type():
            self.error = f'Page type "{name}" already exists'
            return self.notify(self.error, "error")
        self.error = None
        self.page_types_mode = "list"
        overrides = self.by_page_type()
        overrides[name] = {}
        self._save_layout({**self.layout, "byPageType": overrides})
        self.page_type_cursor.index = list(overrides).index(name)
        return self._changed(f"Added page type {name}")

    def _delete_page_type(self) -> PanelActionResult:
        name = self.selected_page_type()
        if name is None:
            return IGNORED
        overrides = self.by_page_type()
        del overrides[name]
        self._save_layout({**self.layout, "byPageType": overrides})
        if self.page_type == name:
            self.page_type = DEFAULT_PAGE_TYPE
        self.refresh()
        return self._changed(f"Deleted page type {name}")

    def _toggle_exclusion(self) -> PanelActionResult:
        page_type = self.selected_page_type()
        plugins = self.enabled_plugins()
        if page_type is None or not plugins:
            return IGNORED
        plugin = plugins[self.exclude_cursor.clamp(len(plugins))]
        exclude = self.exclusions(page_type)
        if plugin.name in exclude:
            exclude.remove(plugin.name)
            message = f"Included {plugin.display_name} on {page_type}"
        else:
            exclude.append(plugin.name)
            message = f"Excluded {plugin.display_name} from {page_type}"
        self._write_override(page_type, "exclude", exclude)
        return self._changed(message)

    def _commit_position(self) -> PanelActionResult:
        page_type = self.selected_page_type()
        plugin_name = self.position_plugin
        if page_type is None or plugin_name is None:
            return IGNORED
        zone = ZONES[self.choice.clamp(len(ZONES))]
        positions = {entry.key: entry.value for entry in self.position_entries(page_type)}
        positions[plugin_name] = zone
        self._write_override(page_type, "positions", positions)
        self.page_types_mode = "positions"
        self.position_plugin = None
        self.position_cursor.index = list(positions).index(plugin_name)
        return self._changed(f"{plugin_name} → {zone} on {page_type}")

    def _delete_position(self) -> PanelActionResult:
        page_type = self.selected_page_type()
        entries = self.position_entries(page_type)
        if page_type is None or not entries:
            return IGNORED
        entry = entries[self.position_cursor.clamp(len(entries))]
        positions = {item.key: item.value for item in entries if item.key != entry.key}
        self._write_override(page_type, "positions", positions)
        self.position_cursor.index = max(0, self.position_cursor.index - 1)
        return self._changed(f"Removed position override for {entry.key}")

    def _write_override(self, page_type: str, key: str, value: Any) -> None:
        """Store one section of a page-type override; empty sections are dropped."""
        overrides = self.by_page_type()
        override = dict(overrides.get(page_type, {}))
        if value:
            override[key] = value
        else:
            override.pop(key, None)
        overrides[page_type] = override
        self._save_layout({**self.layout, "byPageType": overrides})
        self.refresh()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _can_edit_component(self) -> bool:
        return (
            not self.locked
            and self.view == "zones"
            and self.grid.drilled
            and self.selected_component is not None
        )

    def _leave_to_zones(self, *, keep_drill: bool = False) -> None:
        self.view = "zones"
        self.error = None
        if not keep_drill:
            self.grid.leave()

    def _plugin_for(self, component: ZoneComponent) -> Optional[EnrichedPlugin]:
        for plugin in self.plugins():
            if plugin.index == component.plugin_index:
                return plugin
        logger.warning("Component %s no longer maps to a declared plugin", component.name)
        return None

    def _update_layout(
        self,
        plugin: EnrichedPlugin,
        changes: dict[str, Any],
        *,
        position: Optional[str] = None,
    ) -> bool:
        """
        Merge ``changes`` into the plugin's base layout.

        Unknown keys of the raw layout survive. A ``None`` value removes the
        key. A plugin placed only through a page-type override gets a base
        layout seeded with ``position``.
        """
        raw = plugin.raw.get("layout")
        layout = copy.deepcopy(raw) if isinstance(raw, dict) else {}
        if "position" not in layout:
            layout["position"] = position or DEFAULT_POSITION
        for key, value in changes.items():
            if value is None:
                layout.pop(key, None)
            else:
                layout[key] = value
        return self.update_plugin(plugin.index, {"layout": layout})

    def _save_layout(self, layout: dict[str, Any]) -> bool:
        return self.mutate(lambda: self._store.set_layout(layout))

    def _changed(self, message: str) -> PanelActionResult:
        result = self.notify(message)
        return PanelActionResult(handled=True, changed=True, message=result.message)


def _sorts_as(order: list[ZoneComponent], priorities: dict[int, Any]) -> bool:
    """True when zone sorting under ``priorities`` reproduces ``order``."""
    ranked = sorted(
        order,
        key=lambda item: (priorities.get(item.plugin_index, item.priority), item.plugin_index),
    )
    return [item.plugin_index for item in ranked] == [item.plugin_index for item in order]


def _renumber(order: list[ZoneComponent]) -> dict[int, Any]:
    priorities: dict[int, Any] = {}
    previous: Any = None
    for item in order:
        priority = item.priority
        if previous is not None and priority <= previous:
            priority = previous + 1
        priorities[item.plugin_index] = priority
        previous = priority
    return priorities


_PAGE_TYPES_PARENT: dict[str, PageTypesMode] = {
    "add": "list",
    "confirm-delete": "list",
    "detail": "list",
    "exclude": "detail",
    "positions": "detail",
    "add-position": "positions",
    "select-position": "positions",
}
