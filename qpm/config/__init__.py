"""Configuration document handling: loading, schema, defaults and the store."""

from __future__ import annotations

from .defaults import MISSING, DefaultDiff, deep_equal, is_at_default, lookup_path
from .schema import FieldKind, FieldSchema, ValueType, parse_json_or_string
from .store import DocumentStore, PersistenceError

__all__ = [
    "DefaultDiff",
    "DocumentStore",
    "FieldKind",
    "FieldSchema",
    "MISSING",
    "PersistenceError",
    "ValueType",
    "deep_equal",
    "is_at_default",
    "lookup_path",
    "parse_json_or_string",
]
