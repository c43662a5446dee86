"""
Per-field editing state machine shared by the settings, plugin options and
layout editors.

The session is always in exactly one state. ``handle`` is total: every
(state, event) pair returns an ``EditResult``; pairs with no meaning return
``handled=False`` and leave the state untouched. Cancel unwinds one level:
item or key editor, then field editor, then viewing.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Callable, Literal, Optional, Union

from qpm.config.defaults import MISSING
from qpm.config.schema import (
    BOOLEAN_CHOICES,
    COLOR_ERROR,
    NUMBER_ERROR,
    FieldKind,
    FieldSchema,
    is_number,
    is_valid_color,
    parse_json_or_string,
    parse_number,
)

KeyPath = tuple[str, ...]
Reader = Callable[[KeyPath], Any]
Writer = Callable[[KeyPath, Any], None]


# ----------------------------------------------------------------------
# States
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Viewing:
    """Cursor navigation only."""


@dataclass(frozen=True)
class EditingField:
    """One field open in its kind-specific editor.

    ``highlight`` is the choice index for boolean and enum fields, and the
    slot index (items plus the trailing append/add slot) for arrays and
    objects.
    """

    path: KeyPath
    schema: FieldSchema
    highlight: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class EditingArrayItem:
    """Nested editor for one array item; ``index == len`` means appending."""

    path: KeyPath
    schema: FieldSchema
    index: int
    highlight: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class EditingObjectKey:
    path: KeyPath
    schema: FieldSchema
    key: str
    highlight: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class AddingObjectField:
    path: KeyPath
    schema: FieldSchema
    step: Literal["name", "value"] = "name"
    pending_key: Optional[str] = None
    error: Optional[str] = None


EditState = Union[Viewing, EditingField, EditingArrayItem, EditingObjectKey, AddingObjectField]


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Move:
    delta: int


@dataclass(frozen=True)
class Swap:
    delta: int


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Submit:
    text: str


@dataclass(frozen=True)
class Delete:
    pass


@dataclass(frozen=True)
class Append:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


EditEvent = Union[Move, Swap, Confirm, Submit, Delete, Append, Cancel]


@dataclass(frozen=True)
class EditResult:
    """Outcome of one event."""

    handled: bool
    committed: bool = False
    message: Optional[str] = None
    error: Optional[str] = None


_UNHANDLED = EditResult(handled=False)


def format_value(value: Any) -> str:
    """Compact single-line rendering used in prompts and messages."""
    if value is MISSING:
        return "undefined"
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def initial_text(value: Any) -> str:
    """Text pre-filled into a free-form input for ``value``."""
    if value is MISSING or value is None:
        return ""
    return format_value(value)


def _choice_index(choices: tuple[str, ...], value: Any) -> int:
    if isinstance(value, str) and value in choices:
        return choices.index(value)
    return 0


def _bool_index(value: Any) -> int:
    return 0 if value is True else 1


class EditSession:
    """Drives one field edit against reader/writer callbacks.

    The current value is always re-read through ``reader`` so the session
    never acts on a stale copy after the store changes.
    """

    def __init__(
        self,
        reader: Reader,
        writer: Writer,
        *,
        label: Optional[Callable[[KeyPath], str]] = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._label = label or (lambda path: ".".join(path))
        self.state: EditState = Viewing()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return not isinstance(self.state, Viewing)

    @property
    def needs_text(self) -> bool:
        """True when the current state consumes free-text ``Submit`` events."""
        state = self.state
        if isinstance(state, AddingObjectField):
            return True
        if isinstance(state, EditingField):
            return state.schema.kind in (FieldKind.FREEFORM, FieldKind.COLOR)
        if isinstance(state, EditingArrayItem):
            return state.schema.kind != FieldKind.ENUM_ARRAY
        if isinstance(state, EditingObjectKey):
            return not isinstance(self._object_value(state.path).get(state.key), bool)
        return False

    def current_value(self) -> Any:
        state = self.state
        if isinstance(state, Viewing):
            return MISSING
        return self._reader(state.path)

    def items(self) -> list[Any]:
        """Items of the array being edited (empty for other kinds)."""
        state = self.state
        if isinstance(state, Viewing):
            return []
        return self._array_value(state.path)

    def keys(self) -> list[str]:
        state = self.state
        if isinstance(state, Viewing):
            return []
        return list(self._object_value(state.path).keys())

    def prompt_text(self) -> str:
        """Pre-fill text for the active text input."""
        state = self.state
        if isinstance(state, EditingField):
            return initial_text(self._reader(state.path))
        if isinstance(state, EditingArrayItem):
            items = self._array_value(state.path)
            if state.index < len(items):
                return initial_text(items[state.index])
            return ""
        if isinstance(state, EditingObjectKey):
            return initial_text(self._object_value(state.path).get(state.key, MISSING))
        return ""

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def begin(self, path: KeyPath, schema: FieldSchema) -> EditingField:
        """Open a field editor with the highlight seeded from the current value."""
        value = self._reader(path)
        highlight = 0
        if schema.kind == FieldKind.BOOLEAN:
            highlight = _bool_index(value)
        elif schema.kind == FieldKind.ENUM:
            highlight = _choice_index(schema.choices, value)
        self.state = EditingField(path=tuple(path), schema=schema, highlight=highlight)
        return self.state

    def reset(self) -> None:
        """Drop any edit, e.g. after a store reload."""
        self.state = Viewing()

    def handle(self, event: EditEvent) -> EditResult:
        state = self.state
        if isinstance(state, EditingField):
            return self._handle_field(state, event)
        if isinstance(state, EditingArrayItem):
            return self._handle_array_item(state, event)
        if isinstance(state, EditingObjectKey):
            return self._handle_object_key(state, event)
        if isinstance(state, AddingObjectField):
            return self._handle_adding(state, event)
        return _UNHANDLED

    # ------------------------------------------------------------------
    # EditingField
    # ------------------------------------------------------------------

    def _handle_field(self, state: EditingField, event: EditEvent) -> EditResult:
        if isinstance(event, Cancel):
            self.state = Viewing()
            return EditResult(handled=True)

        kind = state.schema.kind
        if kind in (FieldKind.BOOLEAN, FieldKind.ENUM):
            return self._handle_choice_field(state, event)
        if state.schema.is_array:
            return self._handle_array_field(state, event)
        if kind == FieldKind.OBJECT:
            return self._handle_object_field(state, event)
        return self._handle_text_field(state, event)

    def _handle_choice_field(self, state: EditingField, event: EditEvent) -> EditResult:
        choices = BOOLEAN_CHOICES if state.schema.kind == FieldKind.BOOLEAN else state.schema.choices
        if isinstance(event, Move):
            if not choices:
                return EditResult(handled=True)
            self.state = replace(state, highlight=(state.highlight + event.delta) % len(choices))
            return EditResult(handled=True)
        if isinstance(event, Confirm):
            if not choices:
                self.state = Viewing()
                return EditResult(handled=True)
            choice = choices[state.highlight % len(choices)]
            value: Any = choice == "true" if state.schema.kind == FieldKind.BOOLEAN else choice
            self._writer(state.path, value)
            self.state = Viewing()
            return EditResult(handled=True, committed=True, message=f"Set {self._label(state.path)} = {format_value(value)}")
        return _UNHANDLED

    def _handle_array_field(self, state: EditingField, event: EditEvent) -> EditResult:
        items = self._array_value(state.path)
        slots = len(items) + 1
        if isinstance(event, Move):
            self.state = replace(state, highlight=(state.highlight + event.delta) % slots, error=None)
            return EditResult(handled=True)
        if isinstance(event, Swap):
            source = state.highlight
            target = source + event.delta
            if source >= len(items) or not 0 <= target < len(items):
                return EditResult(handled=True)
            updated = list(items)
            updated[source], updated[target] = updated[target], updated[source]
            self._writer(state.path, updated)
            self.state = replace(state, highlight=target, error=None)
            return EditResult(handled=True, committed=True)
        if isinstance(event, Delete):
            if state.highlight >= len(items):
                return EditResult(handled=True)
            updated = items[: state.highlight] + items[state.highlight + 1:]
            self._writer(state.path, updated)
            self.state = replace(state, highlight=min(state.highlight, max(0, len(updated) - 1)), error=None)
            return EditResult(handled=True, committed=True, message=f"Removed item from {self._label(state.path)}")
        if isinstance(event, Confirm):
            if state.highlight >= len(items):
                return self._open_array_item(state, len(items), items)
            return self._open_array_item(state, state.highlight, items)
        if isinstance(event, Append):
            return self._open_array_item(state, len(items), items)
        return _UNHANDLED

    def _open_array_item(self, state: EditingField, index: int, items: list[Any]) -> EditResult:
        highlight = 0
        if state.schema.kind == FieldKind.ENUM_ARRAY and index < len(items):
            highlight = _choice_index(state.schema.choices, items[index])
        self.state = EditingArrayItem(path=state.path, schema=state.schema, index=index, highlight=highlight)
        return EditResult(handled=True)

    def _handle_object_field(self, state: EditingField, event: EditEvent) -> EditResult:
        obj = self._object_value(state.path)
        keys = list(obj.keys())
        slots = len(keys) + 1
        if isinstance(event, Move):
            self.state = replace(state, highlight=(state.highlight + event.delta) % slots, error=None)
            return EditResult(handled=True)
        if isinstance(event, Delete):
            if state.highlight >= len(keys):
                return EditResult(handled=True)
            key = keys[state.highlight]
            updated = {name: value for name, value in obj.items() if name != key}
            self._writer(state.path, updated)
            self.state = replace(state, highlight=min(state.highlight, max(0, len(updated) - 1)), error=None)
            return EditResult(handled=True, committed=True, message=f"Removed {self._label(state.path)}.{key}")
        if isinstance(event, Confirm):
            if state.highlight >= len(keys):
                self.state = AddingObjectField(path=state.path, schema=state.schema)
                return EditResult(handled=True)
            key = keys[state.highlight]
            self.state = EditingObjectKey(
                path=state.path,
                schema=state.schema,
                key=key,
                highlight=_bool_index(obj[key]),
            )
            return EditResult(handled=True)
        if isinstance(event, Append):
            self.state = AddingObjectField(path=state.path, schema=state.schema)
            return EditResult(handled=True)
        return _UNHANDLED

    def _handle_text_field(self, state: EditingField, event: EditEvent) -> EditResult:
        if not isinstance(event, Submit):
            return _UNHANDLED
        current = self._reader(state.path)
        if state.schema.kind == FieldKind.COLOR:
            text = event.text.strip()
            if not is_valid_color(text):
                self.state = replace(state, error=COLOR_ERROR)
                return EditResult(handled=True, error=COLOR_ERROR)
            value: Any = text
        elif is_number(current):
            value = parse_number(event.text)
            if value is None:
                self.state = replace(state, error=NUMBER_ERROR)
                return EditResult(handled=True, error=NUMBER_ERROR)
        else:
            value = parse_json_or_string(event.text)
        self._writer(state.path, value)
        self.state = Viewing()
        return EditResult(handled=True, committed=True, message=f"Set {self._label(state.path)} = {format_value(value)}")

    # ------------------------------------------------------------------
    # EditingArrayItem
    # ------------------------------------------------------------------

    def _handle_array_item(self, state: EditingArrayItem, event: EditEvent) -> EditResult:
        if isinstance(event, Cancel):
            self._return_to_field(state.path, state.schema, state.index)
            return EditResult(handled=True)

        items = self._array_value(state.path)
        if state.schema.kind == FieldKind.ENUM_ARRAY:
            choices = state.schema.choices
            if isinstance(event, Move) and choices:
                self.state = replace(state, highlight=(state.highlight + event.delta) % len(choices))
                return EditResult(handled=True)
            if isinstance(event, Confirm):
                if not choices:
                    self._return_to_field(state.path, state.schema, state.index)
                    return EditResult(handled=True)
                return self._commit_item(state, items, choices[state.highlight % len(choices)])
            return _UNHANDLED

        if not isinstance(event, Submit):
            return _UNHANDLED
        text = event.text.strip()
        if not text:
            self._return_to_field(state.path, state.schema, state.index)
            return EditResult(handled=True)
        value = text if state.schema.kind == FieldKind.STRING_ARRAY else parse_json_or_string(text)
        return self._commit_item(state, items, value)

    def _commit_item(self, state: EditingArrayItem, items: list[Any], value: Any) -> EditResult:
        updated = list(items)
        if state.index >= len(updated):
            updated.append(value)
            index = len(updated) - 1
            message = f"Added {format_value(value)} to {self._label(state.path)}"
        else:
            updated[state.index] = value
            index = state.index
            message = f"Set {self._label(state.path)}[{index}]"
        self._writer(state.path, updated)
        self._return_to_field(state.path, state.schema, index)
        return EditResult(handled=True, committed=True, message=message)

    # ------------------------------------------------------------------
    # EditingObjectKey / AddingObjectField
    # ------------------------------------------------------------------

    def _handle_object_key(self, state: EditingObjectKey, event: EditEvent) -> EditResult:
        obj = self._object_value(state.path)
        if isinstance(event, Cancel):
            self._return_to_field(state.path, state.schema, self._key_slot(obj, state.key))
            return EditResult(handled=True)

        if isinstance(obj.get(state.key), bool):
            if isinstance(event, Move):
                self.state = replace(state, highlight=(state.highlight + event.delta) % len(BOOLEAN_CHOICES))
                return EditResult(handled=True)
            if isinstance(event, Confirm):
                return self._commit_key(state, obj, state.highlight % 2 == 0)
            return _UNHANDLED

        if isinstance(event, Submit):
            return self._commit_key(state, obj, parse_json_or_string(event.text))
        return _UNHANDLED

    def _commit_key(self, state: EditingObjectKey, obj: dict[str, Any], value: Any) -> EditResult:
        updated = dict(obj)
        updated[state.key] = value
        self._writer(state.path, updated)
        self._return_to_field(state.path, state.schema, self._key_slot(updated, state.key))
        return EditResult(handled=True, committed=True, message=f"Set {self._label(state.path)}.{state.key}")

    def _handle_adding(self, state: AddingObjectField, event: EditEvent) -> EditResult:
        obj = self._object_value(state.path)
        if isinstance(event, Cancel):
            self._return_to_field(state.path, state.schema, len(obj))
            return EditResult(handled=True)
        if not isinstance(event, Submit):
            return _UNHANDLED

        if state.step == "name":
            name = event.text.strip()
            if not name:
                self._return_to_field(state.path, state.schema, len(obj))
                return EditResult(handled=True)
            if name in obj:
                error = f'Field "{name}" already exists'
                self.state = replace(state, error=error)
                return EditResult(handled=True, error=error)
            self.state = replace(state, step="value", pending_key=name, error=None)
            return EditResult(handled=True)

        key = state.pending_key or ""
        updated = dict(obj)
        updated[key] = parse_json_or_string(event.text)
        self._writer(state.path, updated)
        self._return_to_field(state.path, state.schema, self._key_slot(updated, key))
        return EditResult(handled=True, committed=True, message=f"Added {self._label(state.path)}.{key}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _return_to_field(self, path: KeyPath, schema: FieldSchema, highlight: int) -> None:
        self.state = EditingField(path=path, schema=schema, highlight=max(0, highlight))

    @staticmethod
    def _key_slot(obj: dict[str, Any], key: str) -> int:
        keys = list(obj.keys())
        return keys.index(key) if key in keys else len(keys)

    def _array_value(self, path: KeyPath) -> list[Any]:
        value = self._reader(path)
        return list(value) if isinstance(value, list) else []

    def _object_value(self, path: KeyPath) -> dict[str, Any]:
        value = self._reader(path)
        return dict(value) if isinstance(value, dict) else {}
