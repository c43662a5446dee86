"""
Shared pytest fixtures for Quartz plugin manager tests.

This module provides reusable fixtures for testing the plugin manager,
including sample configuration documents, in-memory document stores and a
plugin registry backed by a temporary project directory.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from qpm.config.store import DocumentStore
from qpm.paths import ProjectPaths
from qpm.plugins.registry import PluginRegistry
from qpm.ui.tui.state import AppState


# -----------------------------------------------------------------------------
# Sample documents
# -----------------------------------------------------------------------------

SAMPLE_CONFIGURATION: Dict[str, Any] = {
    "pageTitle": "Quartz",
    "enableSPA": True,
    "enablePopovers": True,
    "locale": "en-US",
    "ignorePatterns": ["private", "templates", ".obsidian"],
    "defaultDateType": "created",
    "theme": {
        "fontOrigin": "googleFonts",
        "cdnCaching": True,
        "colors": {
            "lightMode": {"light": "#faf8f8", "dark": "#2b2b2b"},
        },
    },
}

SAMPLE_PLUGINS: list[Dict[str, Any]] = [
    {
        "source": "github:quartz-community/explorer",
        "enabled": True,
        "options": {"folderClickBehavior": "collapse"},
        "order": 50,
        "layout": {"position": "left", "priority": 50, "display": "all"},
    },
    {
        "source": "github:quartz-community/search",
        "enabled": True,
        "options": {},
        "order": 10,
        "layout": {"position": "left", "priority": 20, "display": "all"},
    },
    {
        "source": "github:quartz-community/footer",
        "enabled": True,
        "options": {},
        "order": 60,
        "layout": {"position": "footer", "priority": 50, "display": "all"},
    },
    {
        "source": "github:quartz-community/graph",
        "enabled": False,
        "options": {},
        "order": 30,
        "layout": {"position": "right", "priority": 10, "display": "all"},
    },
    {
        "source": "github:quartz-community/syntax-highlighting",
        "enabled": True,
        "options": {
            "theme": {"light": "github-light", "dark": "github-dark"},
            "keepBackground": False,
        },
        "order": 20,
    },
]

SAMPLE_MANIFESTS: Dict[str, Dict[str, Any]] = {
    "explorer": {
        "displayName": "Explorer",
        "category": "component",
        "defaultOptions": {"folderClickBehavior": "collapse", "folderDefaultState": "collapsed"},
        "components": {"Explorer": {"defaultPosition": "left", "defaultPriority": 50}},
    },
    "search": {
        "displayName": "Search",
        "category": ["component", "search"],
    },
    "footer": {
        "displayName": "Footer",
        "category": "component",
        "components": {"Footer": {"defaultPosition": "footer", "defaultPriority": 50}},
    },
    "graph": {
        "displayName": "Graph View",
        "category": "component",
    },
    "syntax-highlighting": {
        "displayName": "Syntax Highlighting",
        "category": "transformer",
        "defaultOptions": {
            "theme": {"light": "github-light", "dark": "github-dark"},
            "keepBackground": False,
        },
        "optionSchema": {
            "mode": {"type": "enum", "values": ["inline", "block"]},
        },
    },
}


def sample_document() -> Dict[str, Any]:
    """Fresh copy of a small but complete configuration document."""
    return {
        "configuration": copy.deepcopy(SAMPLE_CONFIGURATION),
        "plugins": copy.deepcopy(SAMPLE_PLUGINS),
        "layout": {"groups": {}, "byPageType": {}},
    }


class MemoryDocuments:
    """In-memory loader/saver pair standing in for the project files."""

    def __init__(
        self,
        document: Optional[Dict[str, Any]],
        default: Optional[Dict[str, Any]] = None,
        *,
        fail_saves: bool = False,
    ) -> None:
        self.document = document
        self.default = default
        self.fail_saves = fail_saves
        self.saved: list[Dict[str, Any]] = []

    def load(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self.document)

    def load_default(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self.default)

    def save(self, document: Dict[str, Any]) -> None:
        if self.fail_saves:
            raise OSError("disk full")
        self.saved.append(copy.deepcopy(document))
        self.document = copy.deepcopy(document)


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def project_paths(tmp_path: Path) -> ProjectPaths:
    """Project rooted in a temporary directory."""
    return ProjectPaths(root=tmp_path)


@pytest.fixture
def document() -> Dict[str, Any]:
    return sample_document()


@pytest.fixture
def app_state() -> AppState:
    return AppState()


@pytest.fixture
def store_factory():
    """
    Factory for loaded in-memory document stores.

    Returns a callable ``(document, default, fail_saves) -> (store, backend)``.
    ``document`` defaults to the sample document and ``default`` to a copy
    of it, so a fresh store starts with every value at its default.
    """

    def _create(
        document: Optional[Dict[str, Any]] = None,
        default: Optional[Dict[str, Any]] = None,
        *,
        fail_saves: bool = False,
        no_document: bool = False,
        no_default: bool = False,
    ) -> tuple[DocumentStore, MemoryDocuments]:
        doc = None if no_document else (document if document is not None else sample_document())
        dflt = None if no_default else (default if default is not None else sample_document())
        backend = MemoryDocuments(doc, dflt, fail_saves=fail_saves)
        store = DocumentStore(
            loader=backend.load,
            saver=backend.save,
            default_loader=backend.load_default,
        )
        store.load()
        return store, backend

    return _create


@pytest.fixture
def store(store_factory) -> DocumentStore:
    """Loaded store over the sample document."""
    loaded, _backend = store_factory()
    return loaded


@pytest.fixture
def registry_factory(project_paths: ProjectPaths):
    """
    Factory for plugin registries with injected disk readers.

    Every manifest key is created as an installed plugin directory unless
    ``installed`` names a different set.
    """

    def _create(
        manifests: Optional[Dict[str, Dict[str, Any]]] = None,
        *,
        installed: Optional[set[str]] = None,
        commits: Optional[Dict[str, str]] = None,
        lockfile: Optional[Dict[str, Any]] = None,
    ) -> PluginRegistry:
        manifests = SAMPLE_MANIFESTS if manifests is None else manifests
        names = set(manifests) if installed is None else set(installed)
        for name in names:
            project_paths.plugin_dir(name).mkdir(parents=True, exist_ok=True)
        return PluginRegistry(
            project_paths,
            manifest_reader=lambda paths, name: copy.deepcopy(manifests.get(name)),
            commit_reader=lambda plugin_dir: (commits or {}).get(plugin_dir.name),
            lockfile_reader=lambda paths: copy.deepcopy(lockfile),
        )

    return _create


@pytest.fixture
def registry(registry_factory) -> PluginRegistry:
    return registry_factory()
