from __future__ import annotations

import pytest

from qpm.plugins.registry import (
    extract_plugin_name,
    find_by_source,
    normalize_categories,
)


def _named(plugins, name: str):
    return next(plugin for plugin in plugins if plugin.name == name)


@pytest.mark.parametrize(
    "source, name",
    [
        ("github:quartz-community/explorer", "explorer"),
        ("github:quartz-community/explorer#v2", "explorer"),
        ("git+https://gitlab.com/me/graph.git", "graph"),
        ("https://github.com/me/search.git#main", "search"),
        ("https://github.com/me/search", "search"),
        ("local-plugin", "local-plugin"),
    ],
)
def test_extract_plugin_name(source: str, name: str) -> None:
    assert extract_plugin_name(source) == name


def test_normalize_categories() -> None:
    assert normalize_categories("emitter") == ("emitter",)
    assert normalize_categories(["component", "search"]) == ("component", "search")
    assert normalize_categories([]) == ("unknown",)
    assert normalize_categories(None) == ("unknown",)


def test_enrich_joins_manifests(store, registry) -> None:
    plugins = registry.enrich(store.plugins, revision=store.revision)

    explorer = _named(plugins, "explorer")
    assert explorer.display_name == "Explorer"
    assert explorer.installed is True
    assert explorer.categories == ("component",)
    assert explorer.layout.position == "left"
    assert _named(plugins, "search").categories == ("component", "search")
    assert find_by_source(plugins, "github:quartz-community/graph").enabled is False


def test_enrich_uninstalled_plugin_uses_name(store, registry_factory) -> None:
    registry = registry_factory(installed=set())
    plugins = registry.enrich(store.plugins)

    explorer = plugins[0]
    assert explorer.installed is False
    assert explorer.manifest is None
    assert explorer.display_name == "explorer"
    assert explorer.primary_category == "unknown"


def test_enrich_skips_entries_without_source(registry) -> None:
    plugins = registry.enrich([{"enabled": True}, {"source": "github:a/footer"}])
    assert [plugin.name for plugin in plugins] == ["footer"]
    assert plugins[0].index == 1


def test_enrich_caches_per_revision(store, project_paths) -> None:
    from qpm.plugins.registry import PluginRegistry

    reads: list[str] = []

    def _manifest(paths, name):
        reads.append(name)
        return None

    project_paths.plugin_dir("explorer").mkdir(parents=True)
    registry = PluginRegistry(
        project_paths,
        manifest_reader=_manifest,
        commit_reader=lambda plugin_dir: None,
        lockfile_reader=lambda paths: None,
    )

    registry.enrich(store.plugins, revision=7)
    registry.enrich(store.plugins, revision=7)
    assert reads == ["explorer"]

    registry.enrich(store.plugins, revision=8)
    assert reads == ["explorer", "explorer"]


def test_modified_when_commit_drifts_from_lockfile(store, registry_factory) -> None:
    lockfile = {
        "plugins": {
            "explorer": {"source": "github:quartz-community/explorer", "commit": "aaa"},
            "search": {"source": "github:quartz-community/search", "commit": "bbb"},
        }
    }
    registry = registry_factory(commits={"explorer": "zzz", "search": "bbb"}, lockfile=lockfile)
    plugins = registry.enrich(store.plugins)

    assert _named(plugins, "explorer").modified is True
    assert _named(plugins, "search").modified is False
    assert _named(plugins, "footer").modified is False
