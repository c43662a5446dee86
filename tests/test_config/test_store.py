from __future__ import annotations

import pytest

from qpm.config.defaults import MISSING
from qpm.config.store import (
    DocumentStore,
    PersistenceError,
    assoc_path,
    dissoc_path,
    empty_document,
)


def test_assoc_path_copies_only_touched_containers() -> None:
    tree = {"theme": {"colors": {"light": "#fff"}}, "locale": "en-US"}

    updated = assoc_path(tree, ("theme", "colors", "dark"), "#000")

    assert updated["theme"]["colors"] == {"light": "#fff", "dark": "#000"}
    assert tree["theme"]["colors"] == {"light": "#fff"}
    assert updated is not tree


def test_assoc_path_creates_intermediate_mappings() -> None:
    assert assoc_path({}, ("a", "b", "c"), 1) == {"a": {"b": {"c": 1}}}
    assert assoc_path({"a": 5}, ("a", "b"), 1) == {"a": {"b": 1}}


def test_assoc_path_indexes_lists() -> None:
    tree = {"plugins": [{"source": "a"}, {"source": "b"}]}
    updated = assoc_path(tree, ("plugins", "1", "enabled"), False)
    assert updated["plugins"][1] == {"source": "b", "enabled": False}
    assert tree["plugins"][1] == {"source": "b"}


def test_assoc_path_appends_at_list_end_and_rejects_bad_index() -> None:
    tree = {"plugins": [{"source": "a"}, {"source": "b"}]}

    appended = assoc_path(tree, ("plugins", "2", "enabled"), False)
    assert appended["plugins"] == [{"source": "a"}, {"source": "b"}, {"enabled": False}]

    assert assoc_path(tree, ("plugins", "5", "enabled"), False) is MISSING
    assert assoc_path(tree, ("plugins", "name"), "x") is MISSING
    assert tree["plugins"] == [{"source": "a"}, {"source": "b"}]


def test_set_at_path_never_replaces_list_with_mapping(store_factory) -> None:
    store, backend = store_factory()

    assert store.set_at_path(("configuration", "ignorePatterns", "3"), "drafts")
    assert store.configuration["ignorePatterns"] == ["private", "templates", ".obsidian", "drafts"]

    saves = len(backend.saved)
    assert store.set_at_path(("configuration", "ignorePatterns", "9"), "nope") is False
    assert store.set_at_path(("plugins", "first", "enabled"), False) is False
    assert isinstance(store.document["plugins"], list)
    assert len(backend.saved) == saves


def test_dissoc_path_missing_and_present() -> None:
    tree = {"a": {"b": 1, "c": 2}}
    assert dissoc_path(tree, ("a", "x")) is MISSING
    assert dissoc_path(tree, ("a", "b")) == {"a": {"c": 2}}
    assert dissoc_path({"items": [1, 2, 3]}, ("items", "1")) == {"items": [1, 3]}


def test_get_set_round_trip(store: DocumentStore) -> None:
    assert store.set_at_path(("configuration", "theme", "fontOrigin"), "local")
    assert store.get_at_path(("configuration", "theme", "fontOrigin")) == "local"


def test_previous_snapshot_is_not_mutated(store: DocumentStore) -> None:
    before = store.document
    store.update_configuration(("enableSPA",), False)

    assert before["configuration"]["enableSPA"] is True
    assert store.configuration["enableSPA"] is False


def test_every_mutation_persists_whole_document(store_factory) -> None:
    store, backend = store_factory()

    store.update_configuration(("pageTitle",), "Garden")
    store.update_plugin(0, {"enabled": False})

    assert len(backend.saved) == 2
    assert backend.saved[-1]["configuration"]["pageTitle"] == "Garden"
    assert backend.saved[-1]["plugins"][0]["enabled"] is False


def test_revision_and_listeners(store: DocumentStore) -> None:
    seen: list[int] = []
    unsubscribe = store.subscribe(seen.append)
    start = store.revision

    store.update_configuration(("locale",), "de-DE")
    unsubscribe()
    store.update_configuration(("locale",), "fr-FR")

    assert seen == [start + 1]
    assert store.revision == start + 2


def test_failed_save_keeps_memory_ahead_of_disk(store_factory) -> None:
    store, backend = store_factory(fail_saves=True)

    with pytest.raises(PersistenceError):
        store.update_configuration(("pageTitle",), "Unsaved")

    assert store.configuration["pageTitle"] == "Unsaved"
    assert backend.document["configuration"]["pageTitle"] == "Quartz"


def test_set_at_path_without_document_is_rejected(store_factory) -> None:
    store, backend = store_factory(no_document=True)
    assert store.document is None
    assert store.set_at_path(("configuration", "x"), 1) is False
    assert backend.saved == []


def test_initialize_from_default_and_empty(store_factory) -> None:
    store, backend = store_factory(no_document=True)

    assert store.initialize_from_default() is True
    assert store.document == store.default_document
    assert store.document is not store.default_document

    store.initialize_empty()
    assert store.document == empty_document()
    assert len(backend.saved) == 2


def test_initialize_from_default_without_default(store_factory) -> None:
    store, _backend = store_factory(no_document=True, no_default=True)
    assert store.initialize_from_default() is False
    assert store.document is None


def test_plugin_list_operations(store: DocumentStore) -> None:
    sources = lambda: [entry["source"].split("/")[-1] for entry in store.plugins]

    assert store.move_plugin(0, 2)
    assert sources()[:3] == ["search", "footer", "explorer"]

    assert store.remove_plugin_at(0)
    assert sources()[0] == "footer"

    assert store.insert_plugin({"source": "github:owner/new"}, index=1)
    assert sources()[1] == "new"

    assert store.move_plugin(0, 0) is False
    assert store.remove_plugin_at(99) is False


def test_update_plugin_merges_and_deletes_layout(store: DocumentStore) -> None:
    assert store.update_plugin(0, {"order": 5})
    assert store.plugins[0]["order"] == 5
    assert store.plugins[0]["options"] == {"folderClickBehavior": "collapse"}

    assert store.update_plugin(0, {"layout": None})
    assert "layout" not in store.plugins[0]


def test_set_layout_replaces_section(store: DocumentStore) -> None:
    store.set_layout({"groups": {"toolbar": {"direction": "row"}}, "byPageType": {}})
    assert store.layout["groups"] == {"toolbar": {"direction": "row"}}


def test_reload_rereads_backend(store_factory) -> None:
    store, backend = store_factory()
    backend.document["configuration"]["pageTitle"] = "External"

    store.reload()

    assert store.configuration["pageTitle"] == "External"
