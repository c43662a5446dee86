from __future__ import annotations

from qpm.config.defaults import (
    MISSING,
    DefaultDiff,
    deep_equal,
    is_at_default,
    is_option_modified,
    lookup_path,
    option_default,
)


def test_deep_equal_structures() -> None:
    assert deep_equal({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]})
    assert not deep_equal({"a": [1, 2]}, {"a": [2, 1]})
    assert not deep_equal({"a": 1}, {"a": 1, "b": 2})
    assert not deep_equal([1], [1, 1])


def test_deep_equal_keeps_bool_and_number_apart() -> None:
    assert not deep_equal(True, 1)
    assert not deep_equal(0, False)
    assert deep_equal(1, 1.0)


def test_missing_is_never_equal() -> None:
    assert not deep_equal(MISSING, MISSING)
    assert not is_at_default("x", MISSING)
    assert not MISSING


def test_lookup_path() -> None:
    tree = {"theme": {"colors": ["#fff", "#000"]}}
    assert lookup_path(tree, ("theme", "colors", "1")) == "#000"
    assert lookup_path(tree, ("theme", "missing")) is MISSING
    assert lookup_path(None, ("a",)) is MISSING


def test_default_diff_modified_requires_default() -> None:
    diff = DefaultDiff({"configuration": {"enableSPA": True}})

    assert diff.is_modified(("enableSPA",), False)
    assert not diff.is_modified(("enableSPA",), True)
    assert not diff.is_modified(("notInDefaults",), "anything")
    assert diff.lookup_default(("notInDefaults",)) is MISSING


def test_default_diff_without_document() -> None:
    diff = DefaultDiff()
    assert not diff.has_defaults
    assert diff.lookup_default(("enableSPA",)) is MISSING
    diff.set_default_document({"configuration": {}})
    assert diff.has_defaults


def test_option_defaults_come_from_manifest() -> None:
    manifest = {"defaultOptions": {"keepBackground": False}}

    assert option_default(manifest, "keepBackground") is False
    assert option_default(manifest, "other") is MISSING
    assert option_default(None, "keepBackground") is MISSING
    assert is_option_modified(manifest, "keepBackground", True)
    assert not is_option_modified(manifest, "other", True)
