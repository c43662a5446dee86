"""
Field kind resolution for global settings and plugin options.

Two independent tags describe a value: ``ValueType`` is structural (what the
value is), ``FieldKind`` is presentational (how it is edited and validated).
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from .constants import (
    COLOR_PATH_PATTERN,
    GLOBAL_BOOLEAN_PATHS,
    GLOBAL_ENUM_PATHS,
    GLOBAL_STRING_ARRAY_PATHS,
)

_HEX_COLOR_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_CSS_COLOR_FUNCTION_RE = re.compile(r"^(rgba?|hsla?|hwb|lab|lch|color)\(.+\)$", re.IGNORECASE)
_COLOR_PATH_RE = re.compile(COLOR_PATH_PATTERN)

COLOR_ERROR = "Invalid color. Use #RGB, #RRGGBB, #RRGGBBAA, or a CSS color function like rgba(...)"
NUMBER_ERROR = "Invalid: expected a number"


class FieldKind(str, Enum):
    BOOLEAN = "boolean"
    ENUM = "enum"
    ENUM_ARRAY = "enum-array"
    STRING_ARRAY = "string-array"
    ARRAY = "array"
    OBJECT = "object"
    COLOR = "color"
    FREEFORM = "freeform"


class ValueType(str, Enum):
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"


@dataclass(frozen=True)
class FieldSchema:
    """Resolved editor behavior for one key path."""

    kind: FieldKind
    choices: tuple[str, ...] = ()

    @property
    def is_array(self) -> bool:
        return self.kind in (FieldKind.ARRAY, FieldKind.ENUM_ARRAY, FieldKind.STRING_ARRAY)


BOOLEAN_CHOICES: tuple[str, ...] = ("true", "false")


def is_number(value: Any) -> bool:
    """int/float but not bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def value_type(value: Any) -> ValueType:
    if value is None:
        return ValueType.NULL
    if isinstance(value, bool):
        return ValueType.BOOL
    if is_number(value):
        return ValueType.NUMBER
    if isinstance(value, list):
        return ValueType.ARRAY
    if isinstance(value, Mapping):
        return ValueType.OBJECT
    return ValueType.STRING


def _join_path(key_path: str | Sequence[str]) -> str:
    if isinstance(key_path, str):
        return key_path
    return ".".join(key_path)


def resolve_global_field_kind(key_path: str | Sequence[str]) -> FieldSchema:
    """
    Resolve the field kind for a global ``configuration`` key path.

    Args:
        key_path: Dotted string or sequence of segments

    Returns:
        FieldSchema; unmatched paths are free-form
    """
    dotted = _join_path(key_path)
    if dotted in GLOBAL_BOOLEAN_PATHS:
        return FieldSchema(FieldKind.BOOLEAN, BOOLEAN_CHOICES)
    if dotted in GLOBAL_ENUM_PATHS:
        return FieldSchema(FieldKind.ENUM, GLOBAL_ENUM_PATHS[dotted])
    if dotted in GLOBAL_STRING_ARRAY_PATHS:
        return FieldSchema(FieldKind.STRING_ARRAY)
    if _COLOR_PATH_RE.match(dotted):
        return FieldSchema(FieldKind.COLOR)
    return FieldSchema(FieldKind.FREEFORM)


def _enum_values(raw: Any) -> Optional[tuple[str, ...]]:
    if not isinstance(raw, Mapping) or raw.get("type") != "enum":
        return None
    values = raw.get("values")
    if not isinstance(values, list):
        return None
    return tuple(str(value) for value in values)


def resolve_plugin_option_kind(
    manifest: Optional[Mapping[str, Any]],
    option_key: str,
) -> Optional[FieldSchema]:
    """
    Resolve a plugin option's kind from ``manifest.optionSchema``.

    Returns None when the manifest declares nothing usable for the key.
    """
    if not manifest:
        return None
    option_schema = manifest.get("optionSchema")
    if not isinstance(option_schema, Mapping):
        return None
    entry = option_schema.get(option_key)
    if not isinstance(entry, Mapping):
        return None

    values = _enum_values(entry)
    if values is not None:
        return FieldSchema(FieldKind.ENUM, values)
    if entry.get("type") == "array":
        item_values = _enum_values(entry.get("items"))
        if item_values is not None:
            return FieldSchema(FieldKind.ENUM_ARRAY, item_values)
    return None


def resolve_option_field(
    manifest: Optional[Mapping[str, Any]],
    option_key: str,
    value: Any,
) -> FieldSchema:
    """Declared option schema first, runtime inspection of ``value`` otherwise."""
    declared = resolve_plugin_option_kind(manifest, option_key)
    if declared is not None:
        return declared
    return inspect_value_kind(value)


def inspect_value_kind(value: Any) -> FieldSchema:
    kind = value_type(value)
    if kind is ValueType.BOOL:
        return FieldSchema(FieldKind.BOOLEAN, BOOLEAN_CHOICES)
    if kind is ValueType.ARRAY:
        return FieldSchema(FieldKind.ARRAY)
    if kind is ValueType.OBJECT:
        return FieldSchema(FieldKind.OBJECT)
    return FieldSchema(FieldKind.FREEFORM)


def parse_json_or_string(text: str) -> Any:
    """
    Parse ``text`` as JSON, falling back to the literal string.

    ``NaN`` and ``Infinity`` are not JSON and stay strings.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, ValueError):
        return text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"not a JSON value: {name}")


def parse_number(text: str) -> Optional[int | float]:
    """Parse a numeric commit; None when ``text`` is not a finite number."""
    stripped = text.strip()
    if not stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def is_valid_color(text: str) -> bool:
    stripped = text.strip()
    return bool(_HEX_COLOR_RE.match(stripped) or _CSS_COLOR_FUNCTION_RE.match(stripped))
