"""
Cursor-based projections over the configuration document.

Three projections share the same cursor rules: the settings tree (flattened
nested mapping with collapsible containers), the categorized plugin listing,
and the six-zone layout grid. Every projection re-clamps its cursor whenever
its visible length changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from qpm.config.constants import (
    CENTER_ZONES,
    DEFAULT_DISPLAY,
    DEFAULT_PAGE_TYPE,
    DEFAULT_PRIORITY,
    SORT_MODES,
    ZONE_COLUMNS,
    ZONES,
)
from qpm.plugins.registry import EnrichedPlugin

KeyPath = tuple[str, ...]


# ----------------------------------------------------------------------
# Cursor
# ----------------------------------------------------------------------


class Cursor:
    """Bounded index into a sequence whose length changes over time."""

    def __init__(self, index: int = 0) -> None:
        self.index = max(0, index)

    def clamp(self, length: int) -> int:
        """Pull the index back inside ``[0, length-1]`` (0 when empty)."""
        if length <= 0:
            self.index = 0
        elif self.index >= length:
            self.index = length - 1
        elif self.index < 0:
            self.index = 0
        return self.index

    def move(self, delta: int, length: int, *, wrap: bool = True) -> int:
        if length <= 0:
            self.index = 0
            return 0
        target = self.index + delta
        if wrap:
            self.index = target % length
        else:
            self.index = max(0, min(length - 1, target))
        return self.index

    def reset(self) -> None:
        self.index = 0


# ----------------------------------------------------------------------
# Settings tree
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class FlatEntry:
    """One row of a flattened nested mapping."""

    key_path: KeyPath
    value: Any
    depth: int
    is_container: bool

    @property
    def key(self) -> str:
        return self.key_path[-1] if self.key_path else ""

    @property
    def dotted(self) -> str:
        return ".".join(self.key_path)


def flatten_tree(obj: Mapping[str, Any], prefix: KeyPath = (), depth: int = 0) -> list[FlatEntry]:
    """Depth-first flattening in key order; mappings become container rows."""
    entries: list[FlatEntry] = []
    for key, value in obj.items():
        path = (*prefix, str(key))
        if isinstance(value, Mapping):
            entries.append(FlatEntry(path, value, depth, True))
            entries.extend(flatten_tree(value, path, depth + 1))
        else:
            entries.append(FlatEntry(path, value, depth, False))
    return entries


def visible_entries(entries: Iterable[FlatEntry], collapsed: Iterable[KeyPath]) -> list[FlatEntry]:
    """Drop rows that sit under any collapsed container."""
    collapsed_set = set(collapsed)
    visible: list[FlatEntry] = []
    for entry in entries:
        hidden = any(entry.key_path[:size] in collapsed_set for size in range(1, len(entry.key_path)))
        if not hidden:
            visible.append(entry)
    return visible


class TreeNavigator:
    """Collapse state plus cursor over a flattened settings tree."""

    def __init__(self) -> None:
        self.cursor = Cursor()
        self.collapsed: set[KeyPath] = set()
        self._entries: list[FlatEntry] = []
        self._visible: list[FlatEntry] = []

    @property
    def entries(self) -> list[FlatEntry]:
        """Full flattened sequence, ignoring collapse."""
        return list(self._entries)

    @property
    def visible(self) -> list[FlatEntry]:
        return list(self._visible)

    @property
    def selected(self) -> Optional[FlatEntry]:
        if not self._visible:
            return None
        return self._visible[self.cursor.index]

    def refresh(self, tree: Mapping[str, Any]) -> None:
        """Rebuild from the current document, keeping the selection by key path."""
        previous = self.selected.key_path if self.selected else None
        self._entries = flatten_tree(tree)
        self._recompute(previous)

    def toggle(self, key_path: KeyPath) -> bool:
        entry = next((item for item in self._entries if item.key_path == key_path), None)
        if entry is None or not entry.is_container:
            return False
        if key_path in self.collapsed:
            self.collapsed.discard(key_path)
        else:
            self.collapsed.add(key_path)
        self._recompute(key_path)
        return True

    def move(self, delta: int) -> Optional[FlatEntry]:
        self.cursor.move(delta, len(self._visible), wrap=True)
        return self.selected

    def _recompute(self, keep: Optional[KeyPath]) -> None:
        self._visible = visible_entries(self._entries, self.collapsed)
        if keep is not None:
            for position, entry in enumerate(self._visible):
                if entry.key_path == keep:
                    self.cursor.index = position
                    break
        self.cursor.clamp(len(self._visible))


# ----------------------------------------------------------------------
# Plugin listing
# ----------------------------------------------------------------------


def next_sort_mode(mode: str) -> str:
    position = SORT_MODES.index(mode) if mode in SORT_MODES else -1
    return SORT_MODES[(position + 1) % len(SORT_MODES)]


def _sort_key(mode: str):
    if mode == "alpha":
        return lambda plugin: plugin.display_name.casefold()
    if mode == "order":
        return lambda plugin: plugin.order
    return lambda plugin: plugin.index


def sort_plugins(plugins: Sequence[EnrichedPlugin], mode: str) -> list[EnrichedPlugin]:
    """Stable sort; ties keep declaration order."""
    ordered = sorted(plugins, key=lambda plugin: plugin.index)
    return sorted(ordered, key=_sort_key(mode))


@dataclass(frozen=True)
class ListingRow:
    """Separator or plugin row of the categorized listing."""

    category: str
    plugin: Optional[EnrichedPlugin] = None

    @property
    def is_separator(self) -> bool:
        return self.plugin is None

    @property
    def identity(self) -> Optional[tuple[str, str]]:
        if self.plugin is None:
            return None
        return (self.plugin.source, self.category)


def build_plugin_listing(plugins: Sequence[EnrichedPlugin], mode: str) -> list[ListingRow]:
    """
    Group plugins by category with a separator row per category.

    A plugin with several categories appears once under each of them.
    Categories are ordered alphabetically; rows inside a category follow
    the sort mode.
    """
    by_category: dict[str, list[EnrichedPlugin]] = {}
    for plugin in sort_plugins(plugins, mode):
        for category in plugin.categories:
            by_category.setdefault(category, []).append(plugin)

    rows: list[ListingRow] = []
    for category in sorted(by_category, key=str.casefold):
        rows.append(ListingRow(category=category))
        rows.extend(ListingRow(category=category, plugin=plugin) for plugin in by_category[category])
    return rows


class PluginListNavigator:
    """Cursor over the selectable rows of a categorized plugin listing."""

    def __init__(self) -> None:
        self.cursor = Cursor()
        self.sort_mode = SORT_MODES[0]
        self._rows: list[ListingRow] = []
        self._selectable: list[int] = []

    @property
    def rows(self) -> list[ListingRow]:
        return list(self._rows)

    @property
    def selected_row(self) -> Optional[ListingRow]:
        if not self._selectable:
            return None
        return self._rows[self._selectable[self.cursor.index]]

    @property
    def selected(self) -> Optional[EnrichedPlugin]:
        row = self.selected_row
        return row.plugin if row else None

    @property
    def selected_row_position(self) -> Optional[int]:
        """Index of the selected row within ``rows`` (separators included)."""
        if not self._selectable:
            return None
        return self._selectable[self.cursor.index]

    def refresh(self, plugins: Sequence[EnrichedPlugin]) -> None:
        """Rebuild rows and re-find the selection by (source, category)."""
        previous = self.selected_row.identity if self.selected_row else None
        self._rows = build_plugin_listing(plugins, self.sort_mode)
        self._selectable = [position for position, row in enumerate(self._rows) if not row.is_separator]
        if previous is not None:
            for cursor_index, row_index in enumerate(self._selectable):
                if self._rows[row_index].identity == previous:
                    self.cursor.index = cursor_index
                    break
        self.cursor.clamp(len(self._selectable))

    def cycle_sort(self, plugins: Sequence[EnrichedPlugin]) -> str:
        self.sort_mode = next_sort_mode(self.sort_mode)
        self.cursor.reset()
        self._rows = []
        self._selectable = []
        self.refresh(plugins)
        return self.sort_mode

    def move(self, delta: int) -> Optional[EnrichedPlugin]:
        self.cursor.move(delta, len(self._selectable), wrap=True)
        return self.selected


# ----------------------------------------------------------------------
# Zone grid
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class ZoneComponent:
    """A plugin's layout component as placed for one page type."""

    name: str
    display_name: str
    plugin_index: int
    source: str
    zone: str
    priority: int | float = DEFAULT_PRIORITY
    display: str = DEFAULT_DISPLAY
    condition: Optional[str] = None
    group: Optional[str] = None
    relocated: bool = False


def page_types(layout: Mapping[str, Any]) -> list[str]:
    """``default`` followed by the configured page-type names."""
    names = [DEFAULT_PAGE_TYPE]
    by_page_type = layout.get("byPageType") if isinstance(layout, Mapping) else None
    if isinstance(by_page_type, Mapping):
        names.extend(name for name in by_page_type if name != DEFAULT_PAGE_TYPE)
    return names


def page_type_override(layout: Mapping[str, Any], page_type: str) -> Mapping[str, Any]:
    if page_type == DEFAULT_PAGE_TYPE:
        return {}
    by_page_type = layout.get("byPageType") if isinstance(layout, Mapping) else None
    if not isinstance(by_page_type, Mapping):
        return {}
    override = by_page_type.get(page_type)
    return override if isinstance(override, Mapping) else {}


def build_zone_components(
    plugins: Sequence[EnrichedPlugin],
    layout: Mapping[str, Any],
    page_type: str = DEFAULT_PAGE_TYPE,
) -> dict[str, list[ZoneComponent]]:
    """
    Place enabled plugins into zones for one page type.

    Exclusion removes a plugin everywhere. A string position override always
    places the plugin in that zone, whatever its default zone. A zone key with
    a list value clears the components that land there by default; components
    explicitly relocated into it stay. Each zone is sorted by priority with
    ties in declaration order.
    """
    override = page_type_override(layout, page_type)
    exclude = set(override.get("exclude") or ()) if isinstance(override.get("exclude"), list) else set()
    positions = override.get("positions") if isinstance(override.get("positions"), Mapping) else {}
    cleared = {zone for zone, value in positions.items() if zone in ZONES and isinstance(value, list)}

    zones: dict[str, list[ZoneComponent]] = {zone: [] for zone in ZONES}
    for plugin in sorted(plugins, key=lambda item: item.index):
        if not plugin.enabled or plugin.name in exclude:
            continue
        target = positions.get(plugin.name)
        relocated = isinstance(target, str) and target in ZONES
        if relocated:
            zone = target
        else:
            if plugin.layout is None or plugin.layout.position not in ZONES:
                continue
            zone = plugin.layout.position
            if zone in cleared:
                continue
        spec = plugin.layout
        zones[zone].append(
            ZoneComponent(
                name=plugin.name,
                display_name=plugin.display_name,
                plugin_index=plugin.index,
                source=plugin.source,
                zone=zone,
                priority=spec.priority if spec else DEFAULT_PRIORITY,
                display=spec.display if spec else DEFAULT_DISPLAY,
                condition=spec.condition if spec else None,
                group=spec.group if spec else None,
                relocated=relocated,
            )
        )

    for zone in ZONES:
        zones[zone].sort(key=lambda component: component.priority)
    return zones


class ZoneGridCursor:
    """Two-dimensional zone focus plus a component index inside the zone."""

    def __init__(self) -> None:
        self.column = 1
        self.center_row = 0
        self.drilled = False
        self.component = Cursor()

    @property
    def zone(self) -> str:
        column = ZONE_COLUMNS[self.column]
        if len(column) == 1:
            return column[0]
        return column[self.center_row]

    def move_column(self, delta: int) -> str:
        previous = self.zone
        self.column = max(0, min(len(ZONE_COLUMNS) - 1, self.column + delta))
        self._zone_changed(previous)
        return self.zone

    def move_row(self, delta: int) -> str:
        if self.column != 1:
            return self.zone
        previous = self.zone
        self.center_row = max(0, min(len(CENTER_ZONES) - 1, self.center_row + delta))
        self._zone_changed(previous)
        return self.zone

    def focus_zone(self, zone: str) -> None:
        previous = self.zone
        for column_index, column in enumerate(ZONE_COLUMNS):
            if zone in column:
                self.column = column_index
                if len(column) > 1:
                    self.center_row = column.index(zone)
        self._zone_changed(previous)

    def drill(self, count: int) -> bool:
        self.drilled = True
        self.component.reset()
        self.component.clamp(count)
        return True

    def leave(self) -> None:
        self.drilled = False
        self.component.reset()

    def move_component(self, delta: int, count: int) -> int:
        return self.component.move(delta, count, wrap=False)

    def clamp(self, count: int) -> int:
        return self.component.clamp(count)

    def _zone_changed(self, previous: str) -> None:
        if self.zone != previous:
            self.component.reset()
