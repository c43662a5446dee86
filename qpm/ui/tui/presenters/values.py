"""Value and marker formatting shared by the panels."""

from __future__ import annotations

import json
from typing import Any

from qpm.config.defaults import MISSING
from qpm.config.schema import FieldKind, FieldSchema, is_valid_color
from qpm.plugins.registry import EnrichedPlugin
from qpm.ui.tui.state.navigation import ZoneComponent

DEFAULT_MARKER = " (default)"
MODIFIED_MARKER = "*"
CURSOR_MARKER = "▸ "
NO_CURSOR = "  "


def truncate(text: str, limit: int = 60) -> str:
    """Single-line text clipped to ``limit`` characters.

    Args:
        text: Text to clip.
        limit: Maximum length including the ellipsis.

    Returns:
        Clipped text.
    """
    text = text.replace("\n", " ")
    if len(text) > limit:
        return text[: limit - 3].rstrip() + "..."
    return text


def format_scalar(value: Any) -> str:
    if value is MISSING:
        return "(unset)"
    if value is None:
        return "null"
    if isinstance(value, str):
        return f'"{value}"'
    return json.dumps(value, ensure_ascii=False)


def format_field_value(value: Any, schema: FieldSchema) -> tuple[str, str]:
    """Return (text, style) for a settings or option value.

    Args:
        value: Current value (``MISSING`` when unset).
        schema: Resolved field schema.

    Returns:
        Display text and a Rich style string (empty for the default style).
    """
    if schema.kind == FieldKind.BOOLEAN:
        enabled = bool(value) if value is not MISSING else False
        return ("● true", "green") if enabled else ("○ false", "red")
    if schema.kind == FieldKind.ENUM:
        return ("" if value is MISSING else str(value), "")
    if schema.is_array:
        length = len(value) if isinstance(value, list) else 0
        return f"[{length} items]", ""
    if schema.kind == FieldKind.OBJECT:
        length = len(value) if isinstance(value, dict) else 0
        return f"{{{length} fields}}", ""
    if schema.kind == FieldKind.COLOR:
        text = "" if value is MISSING else str(value)
        return text, text if is_valid_color(text) and text.startswith("#") else ""
    return truncate(format_scalar(value)), ""


def default_marker(has_default: bool, modified: bool) -> str:
    return DEFAULT_MARKER if has_default and not modified else ""


def option_marker(modified: bool) -> str:
    return MODIFIED_MARKER if modified else " "


def plugin_status(enabled: bool) -> str:
    return "● ON " if enabled else "○ OFF"


def category_separator(category: str) -> str:
    return f"── {category.upper()} ──"


def plugin_label(plugin: EnrichedPlugin) -> str:
    """Listing line: status, name, options gear and order."""
    gear = " ⚙" if plugin.options else ""
    return f"{plugin_status(plugin.enabled)} {plugin.display_name}{gear} [{plugin.order}]"


def plugin_description(plugin: EnrichedPlugin) -> str:
    parts = [plugin.source]
    if not plugin.installed:
        parts.append("NOT INSTALLED")
    elif plugin.modified:
        parts.append("modified")
    return " │ ".join(parts)


def component_label(component: ZoneComponent) -> str:
    group = f" [{component.group}]" if component.group else ""
    return f"{str(component.priority).rjust(3)} {component.display_name}{group}"


def component_description(component: ZoneComponent) -> str:
    text = f"display: {component.display}"
    if component.condition:
        text += f" │ condition: {component.condition}"
    if component.relocated:
        text += " │ page-type override"
    return text
