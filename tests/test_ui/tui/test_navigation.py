from __future__ import annotations

import pytest

from qpm.plugins.registry import EnrichedPlugin
from qpm.ui.tui.state.navigation import (
    Cursor,
    PluginListNavigator,
    TreeNavigator,
    ZoneGridCursor,
    build_plugin_listing,
    build_zone_components,
    flatten_tree,
    next_sort_mode,
    page_types,
    sort_plugins,
    visible_entries,
)

pytestmark = pytest.mark.tui_fast


@pytest.fixture
def plugins(store, registry):
    return registry.enrich(store.plugins, revision=store.revision)


def _names(items) -> list[str]:
    return [item.name for item in items]


# -----------------------------------------------------------------------------
# Cursor
# -----------------------------------------------------------------------------


def test_cursor_clamp() -> None:
    cursor = Cursor(5)
    assert cursor.clamp(3) == 2
    assert cursor.clamp(0) == 0
    cursor.index = -4
    assert cursor.clamp(2) == 0


def test_cursor_move_wraps_or_saturates() -> None:
    cursor = Cursor()
    assert cursor.move(-1, 3) == 2
    assert cursor.move(1, 3) == 0
    assert cursor.move(5, 3, wrap=False) == 2
    assert cursor.move(1, 0) == 0


# -----------------------------------------------------------------------------
# Settings tree
# -----------------------------------------------------------------------------


def test_flatten_tree_depth_first() -> None:
    entries = flatten_tree({"a": 1, "theme": {"colors": {"light": "#fff"}, "cdn": True}})

    assert [entry.dotted for entry in entries] == [
        "a",
        "theme",
        "theme.colors",
        "theme.colors.light",
        "theme.cdn",
    ]
    assert [entry.depth for entry in entries] == [0, 0, 1, 2, 1]
    assert entries[1].is_container and not entries[3].is_container


def test_visible_entries_hides_collapsed_descendants() -> None:
    entries = flatten_tree({"theme": {"colors": {"light": "#fff"}, "cdn": True}, "b": 2})
    visible = visible_entries(entries, {("theme", "colors")})
    assert [entry.dotted for entry in visible] == ["theme", "theme.colors", "theme.cdn", "b"]


def test_tree_navigator_keeps_selection_by_key_path() -> None:
    navigator = TreeNavigator()
    navigator.refresh({"a": 1, "b": 2, "c": 3})
    navigator.move(2)
    assert navigator.selected.key == "c"

    navigator.refresh({"new": 0, "a": 1, "b": 2, "c": 3})
    assert navigator.selected.key == "c"

    navigator.refresh({"a": 1})
    assert navigator.selected.key == "a"


def test_tree_navigator_toggle_collapses_container() -> None:
    navigator = TreeNavigator()
    navigator.refresh({"theme": {"x": 1, "y": 2}, "z": 3})

    assert navigator.toggle(("theme",)) is True
    assert [entry.dotted for entry in navigator.visible] == ["theme", "z"]
    assert navigator.toggle(("z",)) is False

    navigator.toggle(("theme",))
    assert len(navigator.visible) == 4


def test_tree_navigator_empty_tree() -> None:
    navigator = TreeNavigator()
    navigator.refresh({})
    assert navigator.selected is None
    assert navigator.move(1) is None


# -----------------------------------------------------------------------------
# Plugin listing
# -----------------------------------------------------------------------------


def test_next_sort_mode_cycles() -> None:
    assert next_sort_mode("config") == "alpha"
    assert next_sort_mode("alpha") == "order"
    assert next_sort_mode("order") == "config"
    assert next_sort_mode("bogus") == "config"


def test_sort_plugins_modes(plugins) -> None:
    assert _names(sort_plugins(plugins, "config")) == [
        "explorer",
        "search",
        "footer",
        "graph",
        "syntax-highlighting",
    ]
    assert _names(sort_plugins(plugins, "alpha")) == [
        "explorer",
        "footer",
        "graph",
        "search",
        "syntax-highlighting",
    ]
    assert _names(sort_plugins(plugins, "order")) == [
        "search",
        "syntax-highlighting",
        "graph",
        "explorer",
        "footer",
    ]


def test_sort_by_order_is_stable_for_ties(store, registry) -> None:
    for index in range(len(store.plugins)):
        store.update_plugin(index, {"order": 1})
    plugins = registry.enrich(store.plugins, revision=store.revision)

    assert _names(sort_plugins(plugins, "order")) == _names(sort_plugins(plugins, "config"))


def _plugin(index: int, source: str, display_name: str, category: str = "component") -> EnrichedPlugin:
    return EnrichedPlugin(
        index=index,
        name=source.rsplit("/", 1)[-1],
        display_name=display_name,
        source=source,
        enabled=True,
        options={},
        order=50,
        layout=None,
        categories=(category,),
        installed=True,
    )


@pytest.fixture
def same_named() -> list[EnrichedPlugin]:
    return [
        _plugin(0, "github:owner/zeta-widget", "Widget"),
        _plugin(1, "github:owner/alpha-widget", "widget"),
        _plugin(2, "github:owner/archive", "Archive"),
        _plugin(3, "github:owner/beta-emitter", "Widget", category="emitter"),
    ]


def test_sort_by_alpha_is_stable_for_ties(same_named) -> None:
    expected = ["archive", "zeta-widget", "alpha-widget", "beta-emitter"]

    assert _names(sort_plugins(same_named, "alpha")) == expected
    assert _names(sort_plugins(list(reversed(same_named)), "alpha")) == expected


@pytest.mark.parametrize("mode", ["config", "alpha", "order"])
def test_listing_keeps_declaration_order_for_ties(same_named, mode: str) -> None:
    rows = build_plugin_listing(list(reversed(same_named)), mode)

    component = [row.plugin.name for row in rows if row.category == "component" and row.plugin]
    widgets = [name for name in component if name.endswith("widget")]
    assert widgets == ["zeta-widget", "alpha-widget"]
    assert [row.category for row in rows if row.is_separator] == ["component", "emitter"]


def test_listing_groups_by_category_with_duplicates(plugins) -> None:
    rows = build_plugin_listing(plugins, "config")

    separators = [row.category for row in rows if row.is_separator]
    assert separators == ["component", "search", "transformer"]

    search_rows = [row for row in rows if row.plugin is not None and row.plugin.name == "search"]
    assert [row.category for row in search_rows] == ["component", "search"]
    assert len(rows) == 9


def test_plugin_list_navigator_skips_separators_and_wraps(plugins) -> None:
    navigator = PluginListNavigator()
    navigator.refresh(plugins)

    assert navigator.selected.name == "explorer"
    assert navigator.selected_row_position == 1

    navigator.move(-1)
    assert navigator.selected.name == "syntax-highlighting"
    navigator.move(1)
    assert navigator.selected.name == "explorer"


def test_plugin_list_navigator_refinds_selection(plugins) -> None:
    navigator = PluginListNavigator()
    navigator.refresh(plugins)
    navigator.move(4)
    assert navigator.selected.name == "search"
    assert navigator.selected_row.category == "search"

    navigator.refresh(list(reversed(plugins)))
    assert navigator.selected_row.identity == ("github:quartz-community/search", "search")


def test_plugin_list_navigator_clamps_when_list_shrinks(plugins) -> None:
    navigator = PluginListNavigator()
    navigator.refresh(plugins)
    navigator.move(5)
    assert navigator.selected.name == "syntax-highlighting"
    navigator.refresh(plugins[:1])
    assert navigator.selected.name == "explorer"

    navigator.refresh([])
    assert navigator.selected is None


def test_cycle_sort_resets_cursor(plugins) -> None:
    navigator = PluginListNavigator()
    navigator.refresh(plugins)
    navigator.move(3)

    assert navigator.cycle_sort(plugins) == "alpha"
    assert navigator.selected.name == "explorer"


# -----------------------------------------------------------------------------
# Zones
# -----------------------------------------------------------------------------


def test_zone_components_default_placement(plugins) -> None:
    zones = build_zone_components(plugins, {})

    assert _names(zones["left"]) == ["search", "explorer"]
    assert _names(zones["footer"]) == ["footer"]
    assert zones["right"] == []
    assert zones["header"] == []


def test_zone_components_ties_keep_declaration_order(store, registry) -> None:
    store.update_plugin(1, {"layout": {"position": "left", "priority": 50}})
    plugins = registry.enrich(store.plugins, revision=store.revision)

    assert _names(build_zone_components(plugins, {})["left"]) == ["explorer", "search"]


def test_zone_components_page_type_overrides(plugins) -> None:
    layout = {
        "byPageType": {
            "folder": {
                "exclude": ["search"],
                "positions": {
                    "footer": "right",
                    "left": [],
                    "syntax-highlighting": "left",
                },
            }
        }
    }

    zones = build_zone_components(plugins, layout, "folder")

    assert _names(zones["left"]) == ["syntax-highlighting"]
    assert zones["left"][0].relocated is True
    assert zones["left"][0].priority == 50
    assert _names(zones["right"]) == ["footer"]
    assert zones["footer"] == []

    default_zones = build_zone_components(plugins, layout)
    assert _names(default_zones["left"]) == ["search", "explorer"]


def test_page_types_lists_default_first() -> None:
    assert page_types({}) == ["default"]
    assert page_types({"byPageType": {"folder": {}, "tag": {}}}) == ["default", "folder", "tag"]


def test_zone_grid_cursor_navigation() -> None:
    grid = ZoneGridCursor()
    assert grid.zone == "header"

    grid.move_row(2)
    assert grid.zone == "afterBody"
    grid.move_row(5)
    assert grid.zone == "footer"

    grid.move_column(-1)
    assert grid.zone == "left"
    grid.move_row(1)
    assert grid.zone == "left"
    grid.move_column(-1)
    assert grid.zone == "left"

    grid.move_column(2)
    assert grid.zone == "right"

    grid.focus_zone("beforeBody")
    assert grid.zone == "beforeBody"


def test_zone_grid_drill_and_component_cursor() -> None:
    grid = ZoneGridCursor()
    grid.drill(3)
    assert grid.drilled
    assert grid.move_component(5, 3) == 2
    assert grid.clamp(1) == 0

    grid.leave()
    assert not grid.drilled
    assert grid.component.index == 0
