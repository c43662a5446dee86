"""
Plugin source parsing and enrichment with on-disk install state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from qpm.config.constants import UNKNOWN_CATEGORY
from qpm.config.loader import (
    build_lock_record,
    build_plugin_entry,
    read_current_commit,
    read_lockfile,
    read_manifest,
)
from qpm.config.models import LayoutSpec, LockRecord
from qpm.logging import get_logger
from qpm.paths import ProjectPaths

logger = get_logger(__name__)

_URL_NAME_RE = re.compile(r"/([^/]+?)(?:\.git)?(?:#|$)")


def extract_plugin_name(source: str) -> str:
    """
    Derive the plugin directory name from a source specifier.

    ``github:owner/repo#ref`` gives ``repo``; git and https URLs give the
    last path segment without ``.git``; anything else is returned unchanged.
    """
    if source.startswith("github:"):
        repo_path = source[len("github:"):].split("#", 1)[0]
        return repo_path.split("/")[-1]
    if source.startswith("git+") or source.startswith("https://"):
        url = source[len("git+"):] if source.startswith("git+") else source
        match = _URL_NAME_RE.search(url)
        return match.group(1) if match else source
    return source


def normalize_categories(category: Any) -> tuple[str, ...]:
    """Manifest ``category`` as a non-empty tuple of names."""
    if isinstance(category, str) and category:
        return (category,)
    if isinstance(category, (list, tuple)):
        names = tuple(str(item) for item in category if item)
        if names:
            return names
    return (UNKNOWN_CATEGORY,)


@dataclass(frozen=True)
class EnrichedPlugin:
    """A declared plugin joined with its installed state for one snapshot."""

    index: int
    name: str
    display_name: str
    source: str
    enabled: bool
    options: dict[str, Any]
    order: int | float
    layout: Optional[LayoutSpec]
    categories: tuple[str, ...]
    installed: bool
    locked: Optional[LockRecord] = None
    manifest: Optional[dict[str, Any]] = None
    current_commit: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def modified(self) -> bool:
        """Installed commit drifted from the lockfile record."""
        if self.locked is None or not self.current_commit:
            return False
        return self.current_commit != self.locked.commit

    @property
    def primary_category(self) -> str:
        return self.categories[0]


class PluginRegistry:
    """Reads install state for declared plugins, once per document revision."""

    def __init__(
        self,
        paths: ProjectPaths,
        *,
        manifest_reader: Callable[[ProjectPaths, str], Optional[dict[str, Any]]] = read_manifest,
        commit_reader: Callable[..., Optional[str]] = read_current_commit,
        lockfile_reader: Callable[[ProjectPaths], Optional[dict[str, Any]]] = read_lockfile,
    ) -> None:
        self._paths = paths
        self._manifest_reader = manifest_reader
        self._commit_reader = commit_reader
        self._lockfile_reader = lockfile_reader
        self._cache_key: Optional[int] = None
        self._cache: list[EnrichedPlugin] = []

    def enrich(self, raw_plugins: Sequence[Mapping[str, Any]], *, revision: Optional[int] = None) -> list[EnrichedPlugin]:
        """
        Join declared plugin entries with manifests, commits and lock records.

        Results are cached per ``revision``; pass the store revision so the
        disk is read once per snapshot.
        """
        if revision is not None and revision == self._cache_key:
            return list(self._cache)

        try:
            lockfile = self._lockfile_reader(self._paths) or {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable lockfile: %s", exc)
            lockfile = {}
        locked_plugins = lockfile.get("plugins") if isinstance(lockfile.get("plugins"), dict) else {}

        enriched: list[EnrichedPlugin] = []
        for index, raw in enumerate(raw_plugins):
            try:
                entry = build_plugin_entry(dict(raw) if isinstance(raw, Mapping) else raw)
            except ValueError as exc:
                logger.warning("Skipping plugins[%d]: %s", index, exc)
                continue
            name = extract_plugin_name(entry.source)
            plugin_dir = self._paths.plugin_dir(name)
            installed = plugin_dir.exists()
            manifest = self._manifest_reader(self._paths, name) if installed else None
            current_commit = self._commit_reader(plugin_dir) if installed else None
            display_name = (manifest or {}).get("displayName") or name
            enriched.append(
                EnrichedPlugin(
                    index=index,
                    name=name,
                    display_name=str(display_name),
                    source=entry.source,
                    enabled=entry.enabled,
                    options=entry.options,
                    order=entry.order,
                    layout=entry.layout,
                    categories=normalize_categories((manifest or {}).get("category")),
                    installed=installed,
                    locked=build_lock_record(locked_plugins.get(name)),
                    manifest=manifest,
                    current_commit=current_commit,
                    raw=dict(raw),
                )
            )

        self._cache_key = revision
        self._cache = enriched
        logger.debug("Enriched %d plugin(s) for revision %s", len(enriched), revision)
        return list(enriched)


def find_by_source(plugins: Sequence[EnrichedPlugin], source: str) -> Optional[EnrichedPlugin]:
    """Identity lookup used to re-find a selection after a reload."""
    for plugin in plugins:
        if plugin.source == source:
            return plugin
    return None
