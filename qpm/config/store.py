"""
In-memory owner of the plugin configuration document.

Every mutation replaces the containers along the touched path with new
containers, so previously returned snapshots are never changed underneath a
reader. Mutations persist immediately; a failed save leaves the in-memory
document ahead of disk and raises ``PersistenceError``.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

import yaml

from qpm.logging import get_logger
from qpm.paths import ProjectPaths

from .constants import BASELINE_CONFIGURATION
from .defaults import MISSING, lookup_path
from .loader import load_default_document, load_document, save_document

logger = get_logger(__name__)

Document = dict[str, Any]
Listener = Callable[[int], None]


class PersistenceError(RuntimeError):
    """Raised when the document could not be written back to disk."""


def empty_document() -> Document:
    """Baseline document offered on first run."""
    return {
        "configuration": copy.deepcopy(BASELINE_CONFIGURATION),
        "plugins": [],
        "layout": {"groups": {}, "byPageType": {}},
    }


def assoc_path(tree: Any, path: Sequence[str], value: Any) -> Any:
    """
    Return a copy of ``tree`` with ``value`` stored at ``path``.

    Only the containers along ``path`` are copied. A segment whose current
    value is not a container becomes a new mapping. List segments must be an
    existing index or the list length (append); anything else returns MISSING
    and leaves ``tree`` untouched.
    """
    if not path:
        return value
    head, rest = path[0], path[1:]
    if isinstance(tree, list):
        if not head.isdigit() or int(head) > len(tree):
            return MISSING
        index = int(head)
        child = assoc_path(tree[index] if index < len(tree) else None, rest, value)
        if child is MISSING:
            return MISSING
        updated = list(tree)
        if index == len(tree):
            updated.append(child)
        else:
            updated[index] = child
        return updated
    container = dict(tree) if isinstance(tree, Mapping) else {}
    child = assoc_path(container.get(head), rest, value)
    if child is MISSING:
        return MISSING
    container[head] = child
    return container


def dissoc_path(tree: Any, path: Sequence[str]) -> Any:
    """Return a copy of ``tree`` without the value at ``path``; MISSING if absent."""
    if not path:
        return MISSING
    head, rest = path[0], path[1:]
    if isinstance(tree, list) and head.isdigit() and int(head) < len(tree):
        index = int(head)
        if not rest:
            return tree[:index] + tree[index + 1:]
        child = dissoc_path(tree[index], rest)
        if child is MISSING:
            return MISSING
        updated = list(tree)
        updated[index] = child
        return updated
    if not isinstance(tree, Mapping) or head not in tree:
        return MISSING
    container = dict(tree)
    if not rest:
        del container[head]
        return container
    child = dissoc_path(tree[head], rest)
    if child is MISSING:
        return MISSING
    container[head] = child
    return container


class DocumentStore:
    """Owns the canonical configuration tree for the process lifetime."""

    def __init__(
        self,
        *,
        loader: Callable[[], Optional[Document]],
        saver: Callable[[Document], None],
        default_loader: Optional[Callable[[], Optional[Document]]] = None,
    ) -> None:
        self._loader = loader
        self._saver = saver
        self._default_loader = default_loader
        self._document: Optional[Document] = None
        self._default_document: Optional[Document] = None
        self._revision = 0
        self._listeners: list[Listener] = []

    @classmethod
    def for_project(cls, paths: ProjectPaths) -> "DocumentStore":
        return cls(
            loader=lambda: load_document(paths),
            saver=lambda document: save_document(document, paths),
            default_loader=lambda: load_default_document(paths),
        )

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @property
    def document(self) -> Optional[Document]:
        """Current tree. Treat as read-only; use the mutation methods."""
        return self._document

    @property
    def default_document(self) -> Optional[Document]:
        return self._default_document

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def is_loaded(self) -> bool:
        return self._document is not None

    @property
    def configuration(self) -> dict[str, Any]:
        value = lookup_path(self._document, ("configuration",))
        return value if isinstance(value, dict) else {}

    @property
    def plugins(self) -> list[dict[str, Any]]:
        value = lookup_path(self._document, ("plugins",))
        return value if isinstance(value, list) else []

    @property
    def layout(self) -> dict[str, Any]:
        value = lookup_path(self._document, ("layout",))
        return value if isinstance(value, dict) else {}

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> Optional[Document]:
        """
        Read the document and the shipped default.

        Returns:
            The loaded document, or None when no configuration exists yet
        """
        self._document = self._loader()
        if self._default_loader is not None:
            self._default_document = self._default_loader()
        self._bump("load")
        return self._document

    def reload(self) -> Optional[Document]:
        """Unconditional re-read after an external operation."""
        return self.load()

    def initialize_from_default(self) -> bool:
        """Adopt the shipped default document as the configuration."""
        if self._default_document is None:
            return False
        self._commit(copy.deepcopy(self._default_document), "initialize from default")
        return True

    def initialize_empty(self) -> None:
        """Write the baseline document with empty plugin and layout collections."""
        self._commit(empty_document(), "initialize empty")

    # ------------------------------------------------------------------
    # Path access
    # ------------------------------------------------------------------

    def get_at_path(self, path: Iterable[str]) -> Any:
        return lookup_path(self._document, tuple(path))

    def set_at_path(self, path: Iterable[str], value: Any) -> bool:
        """Store ``value`` at ``path``, creating intermediate mappings."""
        segments = tuple(path)
        if self._document is None or not segments:
            return False
        updated = assoc_path(self._document, segments, value)
        if updated is MISSING:
            logger.warning("Rejected list index in path %s", ".".join(segments))
            return False
        self._commit(updated, f"set {'.'.join(segments)}")
        return True

    def delete_at_path(self, path: Iterable[str]) -> bool:
        segments = tuple(path)
        if self._document is None or not segments:
            return False
        updated = dissoc_path(self._document, segments)
        if updated is MISSING:
            return False
        self._commit(updated, f"delete {'.'.join(segments)}")
        return True

    def update_configuration(self, key_path: Sequence[str], value: Any) -> bool:
        return self.set_at_path(("configuration", *key_path), value)

    def set_layout(self, layout: Mapping[str, Any]) -> bool:
        return self.set_at_path(("layout",), dict(layout))

    # ------------------------------------------------------------------
    # Plugin list
    # ------------------------------------------------------------------

    def replace_plugin_list(self, entries: Sequence[Mapping[str, Any]]) -> bool:
        return self.set_at_path(("plugins",), [dict(entry) for entry in entries])

    def remove_plugin_at(self, index: int) -> bool:
        plugins = self.plugins
        if not 0 <= index < len(plugins):
            return False
        return self.set_at_path(("plugins",), plugins[:index] + plugins[index + 1:])

    def insert_plugin(self, entry: Mapping[str, Any], index: Optional[int] = None) -> bool:
        plugins = list(self.plugins)
        position = len(plugins) if index is None else max(0, min(index, len(plugins)))
        plugins.insert(position, dict(entry))
        return self.set_at_path(("plugins",), plugins)

    def move_plugin(self, from_index: int, to_index: int) -> bool:
        plugins = list(self.plugins)
        if not 0 <= from_index < len(plugins) or not 0 <= to_index < len(plugins):
            return False
        if from_index == to_index:
            return False
        entry = plugins.pop(from_index)
        plugins.insert(to_index, entry)
        return self.set_at_path(("plugins",), plugins)

    def update_plugin(self, index: int, updates: Mapping[str, Any]) -> bool:
        """Shallow-merge ``updates`` into one plugin entry."""
        plugins = self.plugins
        if not 0 <= index < len(plugins):
            return False
        entry = dict(plugins[index])
        entry.update(updates)
        if "layout" in updates and updates["layout"] is None:
            del entry["layout"]
        return self.set_at_path(("plugins", str(index)), entry)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self) -> None:
        """
        Rewrite the whole document.

        Raises:
            PersistenceError: If serialization or the write fails
        """
        if self._document is None:
            return
        try:
            self._saver(self._document)
        except (OSError, yaml.YAMLError, TypeError, ValueError) as exc:
            logger.error("Failed to save plugin configuration: %s", exc)
            raise PersistenceError(f"Failed to save configuration: {exc}") from exc

    def _commit(self, document: Document, reason: str) -> None:
        self._document = document
        self._bump(reason)
        self.persist()

    def _bump(self, reason: str) -> None:
        self._revision += 1
        logger.debug("Document revision %d (%s)", self._revision, reason)
        for listener in list(self._listeners):
            listener(self._revision)
