"""Text rendering for each panel.

Every function takes a view model (or its snapshot) and returns a Rich
``Text`` so screens only push the result into a ``Static``.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from rich.text import Text

from qpm.config.constants import CONDITION_HINT, ZONE_COLUMNS
from qpm.config.schema import BOOLEAN_CHOICES, FieldKind
from qpm.ui.tui.state.app_state import ProgressLine
from qpm.ui.tui.state.edit_session import (
    AddingObjectField,
    EditingArrayItem,
    EditingField,
    EditingObjectKey,
    EditSession,
    Viewing,
    format_value,
)
from qpm.ui.tui.state.layout_view_model import LayoutViewModel
from qpm.ui.tui.state.plugins_view_model import PluginsViewModel
from qpm.ui.tui.state.settings_view_model import SettingsSnapshot
from qpm.ui.tui.state.setup_view_model import SetupViewModel

from .values import (
    CURSOR_MARKER,
    NO_CURSOR,
    category_separator,
    component_description,
    component_label,
    default_marker,
    format_field_value,
    option_marker,
    plugin_description,
    plugin_label,
    truncate,
)

KEY_HINTS: dict[str, tuple[str, ...]] = {
    "plugins": (
        "↑↓ navigate",
        "e enable",
        "d disable",
        "a add",
        "r remove",
        "i install",
        "u update",
        "U update all",
        "R restore",
        "o options",
        "O order",
        "J/K move",
        "s sort",
        "Tab switch tab",
        "q quit",
    ),
    "layout": (
        "↑↓ navigate",
        "←→ move zone",
        "[ ] page type",
        "shift+↑↓ reorder",
        "m move",
        "p priority",
        "v display",
        "c condition",
        "x remove",
        "D restore",
        "g groups",
        "t page-types",
        "Tab switch tab",
        "q quit",
    ),
    "settings": ("↑↓ navigate", "Enter edit", "D restore default", "Tab switch tab", "q quit"),
}

_PROGRESS_STYLES = {"success": "green", "error": "red", "warning": "yellow", "info": "dim"}


def key_hints(tab: str) -> str:
    return "  ".join(KEY_HINTS.get(tab, ()))


def _choice_lines(text: Text, choices: Sequence[str], highlight: int, *, indent: str = "  ") -> None:
    for position, choice in enumerate(choices):
        if position == highlight:
            text.append(f"{indent}{CURSOR_MARKER}{choice}\n", style="bold cyan")
        else:
            text.append(f"{indent}{NO_CURSOR}{choice}\n")


def _slot_lines(text: Text, labels: Iterable[str], highlight: int, trailer: str) -> None:
    labels = list(labels) + [trailer]
    _choice_lines(text, labels, highlight)


def render_editor(session: EditSession, label: str = "") -> Text:
    """Render the active field editor of ``session``."""
    state = session.state
    text = Text()
    if isinstance(state, Viewing):
        return text
    title = label or ".".join(state.path)

    if isinstance(state, EditingField):
        kind = state.schema.kind
        text.append(f"Edit {title}\n", style="bold")
        if kind == FieldKind.BOOLEAN:
            _choice_lines(text, BOOLEAN_CHOICES, state.highlight)
        elif kind == FieldKind.ENUM:
            _choice_lines(text, state.schema.choices, state.highlight)
        elif state.schema.is_array:
            _slot_lines(
                text,
                (f"[{index}] {format_value(item)}" for index, item in enumerate(session.items())),
                state.highlight,
                "+ Add item",
            )
            text.append("Enter edit · a append · d delete · shift+↑↓ reorder · Esc done\n", style="dim")
        elif kind == FieldKind.OBJECT:
            value = session.current_value()
            _slot_lines(
                text,
                (f"{key}: {format_value(value[key])}" for key in session.keys()),
                state.highlight,
                "+ Add field",
            )
            text.append("Enter edit · d delete · Esc done\n", style="dim")
        else:
            text.append(f"  current: {format_value(session.current_value())}\n", style="dim")
            text.append("Type a value and press Enter · Esc cancel\n", style="dim")
    elif isinstance(state, EditingArrayItem):
        slot = "new item" if state.index >= len(session.items()) else f"item {state.index}"
        text.append(f"Edit {title} → {slot}\n", style="bold")
        if state.schema.kind == FieldKind.ENUM_ARRAY:
            _choice_lines(text, state.schema.choices, state.highlight)
    elif isinstance(state, EditingObjectKey):
        text.append(f"Edit {title}.{state.key}\n", style="bold")
        value = session.current_value()
        if isinstance(value, dict) and isinstance(value.get(state.key), bool):
            _choice_lines(text, BOOLEAN_CHOICES, state.highlight)
    elif isinstance(state, AddingObjectField):
        if state.step == "name":
            text.append(f"New field name for {title}\n", style="bold")
        else:
            text.append(f"Value for {title}.{state.pending_key}\n", style="bold")

    if state.error:
        text.append(f"{state.error}\n", style="bold red")
    return text


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------


def render_settings(snapshot: SettingsSnapshot, session: EditSession) -> Text:
    text = Text()
    if not snapshot.rows:
        text.append("No settings in configuration\n", style="dim")
    for row in snapshot.rows:
        entry = row.entry
        marker = CURSOR_MARKER if row.selected else NO_CURSOR
        indent = "  " * entry.depth
        style = "bold cyan" if row.selected else ""
        if entry.is_container:
            arrow = "▸" if row.collapsed else "▾"
            text.append(f"{marker}{indent}{entry.key}: {arrow}\n", style=style)
            continue
        value, value_style = format_field_value(entry.value, row.schema)
        text.append(f"{marker}{indent}{entry.key}: ", style=style)
        text.append(value, style=value_style or style)
        text.append(default_marker(row.has_default, row.modified), style="cyan")
        text.append("\n")
    if not snapshot.has_defaults:
        text.append("\nNo default configuration found; restore is unavailable\n", style="dim")
    if session.active:
        text.append("\n")
        text.append_text(render_editor(session))
    return text


# ----------------------------------------------------------------------
# Plugins
# ----------------------------------------------------------------------


def render_plugins(vm: PluginsViewModel) -> Text:
    snapshot = vm.snapshot()
    text = Text()
    text.append(f"Sort: {snapshot.sort_mode}\n", style="dim")
    if not snapshot.rows:
        text.append("No plugins declared. Press a to add one.\n", style="dim")
    for position, row in enumerate(snapshot.rows):
        if row.is_separator:
            text.append(f"{category_separator(row.category)}\n", style="bold magenta")
            continue
        plugin = row.plugin
        selected = position == snapshot.selected_row
        marker = CURSOR_MARKER if selected else NO_CURSOR
        style = "bold cyan" if selected else ("" if plugin.enabled else "dim")
        text.append(f"{marker}{plugin_label(plugin)}", style=style)
        text.append(f"  {plugin_description(plugin)}\n", style="dim")

    view = snapshot.view
    if view == "options" and snapshot.selected is not None:
        text.append(f"\nOptions for {snapshot.selected.display_name}\n", style="bold")
        for option in snapshot.options:
            marker = CURSOR_MARKER if option.selected else NO_CURSOR
            value, value_style = format_field_value(option.value, option.schema)
            text.append(f"{marker}{option_marker(option.modified)}{option.key}: ")
            text.append(value, style=value_style)
            text.append(default_marker(option.has_default, option.modified), style="cyan")
            text.append("\n")
        if vm.session.active:
            text.append_text(render_editor(vm.session))
        else:
            text.append("Enter edit · D restore default · Esc back\n", style="dim")
    elif view == "order" and snapshot.selected is not None:
        text.append("\n")
        text.append_text(render_editor(vm.order_session, f"{snapshot.selected.display_name} order"))
    elif view == "add":
        text.append("\nAdd plugin: enter a source (github:owner/repo, git URL or npm name)\n", style="bold")
    elif view == "confirm-remove" and snapshot.selected is not None:
        text.append(f"\nRemove {snapshot.selected.display_name}? (y/n)\n", style="bold yellow")
    return text


# ----------------------------------------------------------------------
# Layout
# ----------------------------------------------------------------------


def _render_zone(text: Text, vm: LayoutViewModel, zone: str, components, focused: bool, index: int) -> None:
    title_style = "bold cyan" if focused else "bold"
    text.append(f"┌ {zone} ({len(components)})\n", style=title_style)
    if not components:
        text.append("│   (empty)\n", style="dim")
    for position, component in enumerate(components):
        selected = focused and vm.grid.drilled and position == index
        marker = CURSOR_MARKER if selected else NO_CURSOR
        text.append(f"│ {marker}{component_label(component)}", style="bold cyan" if selected else "")
        text.append(f"  {component_description(component)}\n", style="dim")


def render_layout(vm: LayoutViewModel) -> Text:
    snapshot = vm.snapshot()
    text = Text()
    if len(snapshot.page_types) > 1:
        for name in snapshot.page_types:
            style = "reverse" if name == snapshot.page_type else "dim"
            text.append(f" {name} ", style=style)
        text.append("\n")

    if snapshot.view == "groups":
        return text + render_groups(vm)
    if snapshot.view == "page-types":
        return text + render_page_types(vm)

    for column in ZONE_COLUMNS:
        for zone in column:
            _render_zone(
                text,
                vm,
                zone,
                snapshot.zones[zone],
                zone == snapshot.zone,
                snapshot.component_index,
            )

    component = snapshot.selected_component
    if component is None:
        return text
    if snapshot.view == "move-zone":
        text.append(f"\nMove {component.display_name} to:\n", style="bold")
        _choice_lines(text, snapshot.choices, snapshot.choice_index)
    elif snapshot.view == "display":
        text.append(f"\nDisplay for {component.display_name}:\n", style="bold")
        _choice_lines(text, snapshot.choices, snapshot.choice_index)
    elif snapshot.view == "priority":
        text.append(f"\nPriority for {component.display_name} (lower renders first)\n", style="bold")
    elif snapshot.view == "condition":
        text.append(f"\nCondition for {component.display_name} (empty removes)\n", style="bold")
        text.append(f"  e.g. {CONDITION_HINT}\n", style="dim")
    elif snapshot.view == "confirm-remove":
        text.append(f"\nRemove {component.display_name} from layout? (y/n)\n", style="bold yellow")
    if snapshot.error:
        text.append(f"{snapshot.error}\n", style="bold red")
    return text


def render_groups(vm: LayoutViewModel) -> Text:
    text = Text("Layout groups\n", style="bold")
    groups = vm.groups()
    mode = vm.groups_mode
    if mode == "add":
        text.append("New group name (empty cancels)\n")
        return text
    name = vm.selected_group()
    if mode == "confirm-delete" and name is not None:
        text.append(f"Delete group {name}? (y/n)\n", style="bold yellow")
        return text
    if mode == "direction" and name is not None:
        text.append(f"Edit {name} → direction\n")
        _choice_lines(text, vm.choices, vm.choice.index)
        return text
    if mode == "gap" and name is not None:
        text.append(f'Edit {name} → gap (CSS gap, e.g. "0.5rem")\n')
        return text
    if not groups:
        text.append("No groups defined. Press n to add one.\n", style="dim")
    index = vm.group_cursor.clamp(len(groups))
    for position, (group, config) in enumerate(groups.items()):
        marker = CURSOR_MARKER if position == index else NO_CURSOR
        text.append(f"{marker}{group}", style="bold cyan" if position == index else "")
        text.append(
            f"  direction={config.get('direction', 'row')} gap={config.get('gap', '0')}\n",
            style="dim",
        )
    text.append("Enter edit · n new · d delete · Esc back\n", style="dim")
    return text


def render_page_types(vm: LayoutViewModel) -> Text:
    text = Text("Page types\n", style="bold")
    mode = vm.page_types_mode
    overrides = vm.by_page_type()
    selected = vm.selected_page_type()

    if mode == "add":
        text.append("New page type name (empty cancels)\n")
        if vm.error:
            text.append(f"{vm.error}\n", style="bold red")
        return text
    if mode == "confirm-delete" and selected is not None:
        text.append(f"Delete page type {selected}? (y/n)\n", style="bold yellow")
        return text
    if mode == "detail" and selected is not None:
        text.append(f"{selected}\n")
        _choice_lines(text, vm.choices, vm.choice.index)
        return text
    if mode == "exclude" and selected is not None:
        text.append(f"Exclusions for {selected}\n")
        excluded = set(vm.exclusions(selected))
        plugins = vm.enabled_plugins()
        if not plugins:
            text.append("No enabled plugins\n", style="dim")
        index = vm.exclude_cursor.clamp(len(plugins))
        for position, plugin in enumerate(plugins):
            marker = CURSOR_MARKER if position == index else NO_CURSOR
            state = "excluded" if plugin.name in excluded else "included"
            text.append(f"{marker}{plugin.display_name}", style="bold cyan" if position == index else "")
            text.append(f"  {state}\n", style="red" if state == "excluded" else "dim")
        return text
    if mode in ("positions", "add-position", "select-position") and selected is not None:
        return text + _render_positions(vm, selected)

    if not overrides:
        text.append("No page-type overrides. Press n to add one.\n", style="dim")
    index = vm.page_type_cursor.clamp(len(overrides))
    for position, (name, override) in enumerate(overrides.items()):
        marker = CURSOR_MARKER if position == index else NO_CURSOR
        exclude = override.get("exclude") if isinstance(override.get("exclude"), list) else []
        positions = override.get("positions") if isinstance(override.get("positions"), dict) else {}
        text.append(f"{marker}{name}", style="bold cyan" if position == index else "")
        text.append(f"  {len(exclude)} excluded │ {len(positions)} position(s)\n", style="dim")
    text.append("Enter open · n new · d delete · Esc back\n", style="dim")
    return text


def _render_positions(vm: LayoutViewModel, page_type: str) -> Text:
    text = Text(f"Positions for {page_type}\n")
    mode = vm.page_types_mode
    if mode == "add-position":
        candidates = vm.position_candidates()
        if not candidates:
            text.append("Every enabled plugin already has an override\n", style="dim")
        index = vm.candidate_cursor.clamp(len(candidates))
        for position, plugin in enumerate(candidates):
            marker = CURSOR_MARKER if position == index else NO_CURSOR
            text.append(f"{marker}{plugin.display_name}", style="bold cyan" if position == index else "")
            text.append(f"  {plugin.name}\n", style="dim")
        return text
    if mode == "select-position":
        text.append(f"Zone for {vm.position_plugin}\n")
        _choice_lines(text, vm.choices, vm.choice.index)
        return text
    entries = vm.position_entries(page_type)
    if not entries:
        text.append("No position overrides. Press n to add one.\n", style="dim")
    index = vm.position_cursor.clamp(len(entries))
    for position, entry in enumerate(entries):
        marker = CURSOR_MARKER if position == index else NO_CURSOR
        text.append(f"{marker}{entry.key}", style="bold cyan" if position == index else "")
        text.append(f"  {entry.label}\n", style="dim")
    text.append("Enter change · n new · d delete · Esc back\n", style="dim")
    return text


# ----------------------------------------------------------------------
# Setup and progress
# ----------------------------------------------------------------------


def render_setup(vm: SetupViewModel) -> Text:
    text = Text("No plugin configuration found\n\n", style="bold")
    for option in vm.options():
        marker = CURSOR_MARKER if option.selected else NO_CURSOR
        text.append(f"{marker}{option.label}\n", style="bold cyan" if option.selected else "")
    text.append("\n↑↓ choose · Enter confirm · q quit\n", style="dim")
    return text


def render_progress(lines: Sequence[ProgressLine], operation: str | None = None) -> Text:
    text = Text()
    if operation:
        text.append(f"{operation}\n", style="bold")
    for line in lines:
        text.append(f"{truncate(line.text, 100)}\n", style=_PROGRESS_STYLES.get(line.kind, ""))
    return text
