"""Comparison of live values against the shipped default document."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .schema import is_number


class _Missing:
    """Sentinel type for a path with no value."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def lookup_path(tree: Any, path: Iterable[str]) -> Any:
    """Return the value at ``path`` inside ``tree``, or MISSING."""
    node = tree
    for segment in path:
        if isinstance(node, Mapping) and segment in node:
            node = node[segment]
        elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
            node = node[int(segment)]
        else:
            return MISSING
    return node


def deep_equal(left: Any, right: Any) -> bool:
    """
    Structural equality over document values.

    Booleans never equal numbers; arrays need equal length and equal items;
    objects need equal key sets and recursively equal values.
    """
    if left is MISSING or right is MISSING:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) or is_number(right):
        return is_number(left) and is_number(right) and left == right
    if isinstance(left, list) or isinstance(right, list):
        if not (isinstance(left, list) and isinstance(right, list)):
            return False
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
            return False
        if set(left.keys()) != set(right.keys()):
            return False
        return all(deep_equal(left[key], right[key]) for key in left)
    return left == right


def is_at_default(value: Any, default: Any) -> bool:
    """True when ``value`` equals a defined default. MISSING never matches."""
    if default is MISSING:
        return False
    return deep_equal(value, default)


class DefaultDiff:
    """Answers default lookups and modified queries against a default document."""

    def __init__(self, default_document: Optional[Mapping[str, Any]] = None) -> None:
        self._default_document = default_document

    @property
    def has_defaults(self) -> bool:
        return self._default_document is not None

    def set_default_document(self, default_document: Optional[Mapping[str, Any]]) -> None:
        self._default_document = default_document

    def lookup_default(self, key_path: Iterable[str], *, section: str = "configuration") -> Any:
        if self._default_document is None:
            return MISSING
        return lookup_path(self._default_document, (section, *key_path))

    def is_modified(self, key_path: Iterable[str], value: Any, *, section: str = "configuration") -> bool:
        """A value counts as modified only when a default exists and differs."""
        default = self.lookup_default(key_path, section=section)
        if default is MISSING:
            return False
        return not deep_equal(value, default)


def option_default(manifest: Optional[Mapping[str, Any]], key: str) -> Any:
    """Return a plugin option default from ``manifest.defaultOptions``."""
    if not manifest:
        return MISSING
    defaults = manifest.get("defaultOptions")
    if not isinstance(defaults, Mapping):
        return MISSING
    return defaults.get(key, MISSING)


def is_option_modified(manifest: Optional[Mapping[str, Any]], key: str, value: Any) -> bool:
    default = option_default(manifest, key)
    return default is not MISSING and not deep_equal(value, default)
