from __future__ import annotations

import pytest

from qpm.config.schema import NUMBER_ERROR
from qpm.ui.tui.state import LayoutViewModel
from qpm.ui.tui.state.layout_view_model import PositionEntry

pytestmark = pytest.mark.tui_fast


def _names(components) -> list[str]:
    return [component.name for component in components]


def _drill_left(vm: LayoutViewModel) -> None:
    vm.move_column(-1)
    vm.drill()


# -----------------------------------------------------------------------------
# Zone grid
# -----------------------------------------------------------------------------


def test_initial_snapshot(layout_vm: LayoutViewModel) -> None:
    snapshot = layout_vm.snapshot()

    assert snapshot.view == "zones"
    assert snapshot.zone == "header"
    assert snapshot.page_types == ("default",)
    assert _names(snapshot.zones["left"]) == ["search", "explorer"]
    assert snapshot.selected_component is None


def test_drill_selects_component(layout_vm: LayoutViewModel) -> None:
    _drill_left(layout_vm)

    assert layout_vm.selected_component.name == "search"
    layout_vm.move(1)
    assert layout_vm.selected_component.name == "explorer"
    layout_vm.move(1)
    assert layout_vm.selected_component.name == "explorer"

    assert layout_vm.move_column(1).handled is False
    layout_vm.cancel()
    assert not layout_vm.grid.drilled


def test_swap_exchanges_priorities(layout_vm: LayoutViewModel, store) -> None:
    _drill_left(layout_vm)

    result = layout_vm.swap(1)

    assert result.message == "Moved down"
    assert store.plugins[1]["layout"]["priority"] == 50
    assert store.plugins[0]["layout"]["priority"] == 20
    assert _names(layout_vm.current_components()) == ["explorer", "search"]
    assert layout_vm.selected_component.name == "search"


def test_swap_with_equal_priorities_nudges_mover(layout_vm: LayoutViewModel, store) -> None:
    store.update_plugin(1, {"layout": {"position": "left", "priority": 50, "display": "all"}})
    _drill_left(layout_vm)
    assert layout_vm.selected_component.name == "explorer"

    layout_vm.swap(1)

    assert store.plugins[0]["layout"]["priority"] == 51
    assert store.plugins[1]["layout"]["priority"] == 50
    assert _names(layout_vm.current_components()) == ["search", "explorer"]


def test_swap_among_equal_priorities_moves_one_slot(layout_vm: LayoutViewModel, store) -> None:
    store.update_plugin(1, {"layout": {"position": "left", "priority": 50, "display": "all"}})
    store.update_plugin(2, {"layout": {"position": "left", "priority": 50, "display": "all"}})
    _drill_left(layout_vm)
    assert _names(layout_vm.current_components()) == ["explorer", "search", "footer"]
    layout_vm.move(1)
    layout_vm.move(1)
    assert layout_vm.selected_component.name == "footer"

    layout_vm.swap(-1)

    assert _names(layout_vm.current_components()) == ["explorer", "footer", "search"]
    assert layout_vm.selected_component.name == "footer"
    assert store.plugins[0]["layout"]["priority"] == 50
    assert store.plugins[2]["layout"]["priority"] == 51
    assert store.plugins[1]["layout"]["priority"] == 52


def test_swap_at_edge_is_noop(layout_vm: LayoutViewModel, store) -> None:
    _drill_left(layout_vm)
    assert layout_vm.swap(-1).changed is False
    assert store.plugins[1]["layout"]["priority"] == 20


def test_move_component_to_other_zone(layout_vm: LayoutViewModel, store) -> None:
    _drill_left(layout_vm)
    layout_vm.begin_move_zone()
    assert "left" not in layout_vm.choices

    layout_vm.move(3)
    result = layout_vm.select()

    assert result.message == "Moved Search to right"
    assert store.plugins[1]["layout"]["position"] == "right"
    assert layout_vm.view == "zones"
    assert layout_vm.grid.zone == "right"
    assert not layout_vm.grid.drilled


def test_priority_rejects_non_numeric(layout_vm: LayoutViewModel, store, app_state) -> None:
    _drill_left(layout_vm)
    layout_vm.begin_priority()
    assert layout_vm.needs_text
    assert layout_vm.prompt_text() == "20"

    rejected = layout_vm.submit("soon")
    assert rejected.error == NUMBER_ERROR
    assert layout_vm.view == "priority"
    assert layout_vm.error == NUMBER_ERROR

    accepted = layout_vm.submit("5")
    assert accepted.message == "Priority set to 5"
    assert store.plugins[1]["layout"]["priority"] == 5
    assert layout_vm.view == "zones"
    assert layout_vm.grid.drilled


def test_display_choice(layout_vm: LayoutViewModel, store) -> None:
    _drill_left(layout_vm)
    layout_vm.begin_display()
    assert layout_vm.choice.index == 0

    layout_vm.move(1)
    result = layout_vm.select()

    assert result.message == "Display set to desktop-only"
    assert store.plugins[1]["layout"]["display"] == "desktop-only"


def test_condition_set_and_removed(layout_vm: LayoutViewModel, store) -> None:
    _drill_left(layout_vm)
    layout_vm.begin_condition()
    assert layout_vm.submit("not-index").message == "Condition set to not-index"
    assert store.plugins[1]["layout"]["condition"] == "not-index"

    layout_vm.begin_condition()
    assert layout_vm.prompt_text() == "not-index"
    assert layout_vm.submit("  ").message == "Condition removed"
    assert "condition" not in store.plugins[1]["layout"]


def test_remove_from_layout_requires_confirmation(layout_vm: LayoutViewModel, store) -> None:
    _drill_left(layout_vm)
    layout_vm.request_remove()
    assert layout_vm.awaiting_confirmation

    layout_vm.confirm(False)
    assert layout_vm.view == "zones"
    assert layout_vm.grid.drilled
    assert "layout" in store.plugins[1]

    layout_vm.request_remove()
    result = layout_vm.confirm(True)
    assert result.message == "Removed Search from layout"
    assert "layout" not in store.plugins[1]
    assert _names(layout_vm.current_components()) == ["explorer"]


def test_restore_defaults_from_manifest(layout_vm: LayoutViewModel, store) -> None:
    store.update_plugin(0, {"layout": {"position": "left", "priority": 5, "display": "mobile-only"}})
    _drill_left(layout_vm)
    assert layout_vm.selected_component.name == "explorer"

    result = layout_vm.restore_component_defaults()

    assert result.message == "Restored Explorer to defaults"
    assert store.plugins[0]["layout"] == {"position": "left", "priority": 50, "display": "all"}


def test_restore_without_components_resets_display(layout_vm: LayoutViewModel, store) -> None:
    store.update_plugin(1, {"layout": {"position": "left", "priority": 20, "display": "mobile-only"}})
    _drill_left(layout_vm)

    result = layout_vm.restore_component_defaults()

    assert result.message == "Reset Search display settings"
    assert store.plugins[1]["layout"] == {"position": "left", "priority": 50, "display": "all"}


def test_restore_with_empty_components_reports_error(store, app_state, registry_factory) -> None:
    manifests = {"search": {"displayName": "Search", "category": "component", "components": {}}}
    vm = LayoutViewModel(store, app_state, registry_factory(manifests))
    _drill_left(vm)

    result = vm.restore_component_defaults()

    assert result.error == "No component defaults found in manifest"
    assert store.plugins[1]["layout"]["priority"] == 20


def test_component_edit_ignored_when_not_drilled(layout_vm: LayoutViewModel) -> None:
    assert layout_vm.begin_priority().handled is False
    assert layout_vm.swap(1).handled is False


def test_refresh_leaves_editor_when_component_disappears(layout_vm: LayoutViewModel, store) -> None:
    layout_vm.move(3)
    assert layout_vm.grid.zone == "footer"
    layout_vm.drill()
    layout_vm.begin_move_zone()

    store.update_plugin(2, {"enabled": False})
    layout_vm.refresh()

    assert layout_vm.view == "zones"
    assert layout_vm.selected_component is None
    assert layout_vm.snapshot().selected_component is None


def test_locked_ignores_input(layout_vm: LayoutViewModel, app_state) -> None:
    app_state.begin_operation("Updating plugins...")
    assert layout_vm.move_column(-1).handled is False
    assert layout_vm.open_groups().handled is False


# -----------------------------------------------------------------------------
# Groups
# -----------------------------------------------------------------------------


def test_group_add_edit_and_delete(layout_vm: LayoutViewModel, store) -> None:
    layout_vm.open_groups()
    layout_vm.new_item()
    assert layout_vm.needs_text

    added = layout_vm.submit("toolbar")
    assert added.message == "Groups updated"
    assert store.layout["groups"] == {"toolbar": {"direction": "row", "gap": "0.5rem"}}

    layout_vm.select()
    assert layout_vm.groups_mode == "direction"
    assert layout_vm.choices == ("row", "column")
    layout_vm.move(1)
    layout_vm.select()
    assert store.layout["groups"]["toolbar"]["direction"] == "column"

    assert layout_vm.groups_mode == "gap"
    assert layout_vm.prompt_text() == "0.5rem"
    layout_vm.submit("1rem")
    assert store.layout["groups"]["toolbar"] == {"direction": "column", "gap": "1rem"}

    layout_vm.delete_item()
    assert layout_vm.awaiting_confirmation
    layout_vm.confirm(True)
    assert store.layout["groups"] == {}


def test_group_add_empty_name_cancels(layout_vm: LayoutViewModel, store) -> None:
    layout_vm.open_groups()
    layout_vm.new_item()
    result = layout_vm.submit("")
    assert result.changed is False
    assert layout_vm.groups_mode == "list"
    assert store.layout["groups"] == {}


# -----------------------------------------------------------------------------
# Page types
# -----------------------------------------------------------------------------


def _add_page_type(vm: LayoutViewModel, name: str):
    vm.open_page_types()
    vm.new_item()
    return vm.submit(name)


def test_add_page_type_and_reject_duplicates(layout_vm: LayoutViewModel, store) -> None:
    assert _add_page_type(layout_vm, "folder").message == "Added page type folder"
    assert store.layout["byPageType"] == {"folder": {}}

    layout_vm.new_item()
    duplicate = layout_vm.submit("folder")
    assert duplicate.error == 'Page type "folder" already exists'
    assert layout_vm.page_types_mode == "add"
    assert layout_vm.submit("default").error == 'Page type "default" already exists'

    layout_vm.cancel()
    assert layout_vm.page_types_mode == "list"
    assert layout_vm.error is None


def test_toggle_exclusion(layout_vm: LayoutViewModel, store) -> None:
    _add_page_type(layout_vm, "folder")
    layout_vm.select()
    assert layout_vm.choices == ("exclude", "positions")
    layout_vm.select()
    assert layout_vm.page_types_mode == "exclude"

    excluded = layout_vm.select()
    assert excluded.message == "Excluded Explorer from folder"
    assert store.layout["byPageType"]["folder"] == {"exclude": ["explorer"]}

    included = layout_vm.select()
    assert included.message == "Included Explorer on folder"
    assert store.layout["byPageType"]["folder"] == {}


def test_position_override_relocates_component(layout_vm: LayoutViewModel, store) -> None:
    _add_page_type(layout_vm, "folder")
    layout_vm.select()
    layout_vm.move(1)
    layout_vm.select()
    assert layout_vm.page_types_mode == "positions"

    layout_vm.new_item()
    assert [plugin.name for plugin in layout_vm.position_candidates()] == [
        "explorer",
        "search",
        "footer",
        "syntax-highlighting",
    ]
    layout_vm.move(2)
    layout_vm.select()
    assert layout_vm.page_types_mode == "select-position"
    layout_vm.move(4)
    result = layout_vm.select()

    assert result.message == "footer → right on folder"
    assert store.layout["byPageType"]["folder"] == {"positions": {"footer": "right"}}
    assert layout_vm.position_entries("folder") == [PositionEntry("plugin", "footer", "right")]

    for _ in range(3):
        layout_vm.cancel()
    assert layout_vm.view == "zones"

    assert layout_vm.cycle_page_type(1).message == "Page type: folder"
    zones = layout_vm.zone_components()
    assert _names(zones["right"]) == ["footer"]
    assert zones["footer"] == []


def test_delete_position_and_page_type(layout_vm: LayoutViewModel, store) -> None:
    store.set_layout(
        {
            "groups": {},
            "byPageType": {"folder": {"positions": {"footer": "right", "left": []}}},
        }
    )
    layout_vm.refresh()
    layout_vm.cycle_page_type(1)
    assert layout_vm.page_type == "folder"

    layout_vm.open_page_types()
    layout_vm.select()
    layout_vm.move(1)
    layout_vm.select()
    entries = layout_vm.position_entries()
    assert [entry.label for entry in entries] == ["→ right", "(cleared)"]

    removed = layout_vm.delete_item()
    assert removed.message == "Removed position override for footer"
    assert store.layout["byPageType"]["folder"] == {"positions": {"left": []}}

    layout_vm.cancel()
    layout_vm.cancel()
    layout_vm.delete_item()
    assert layout_vm.page_types_mode == "confirm-delete"
    deleted = layout_vm.confirm(True)

    assert deleted.message == "Deleted page type folder"
    assert store.layout["byPageType"] == {}
    assert layout_vm.page_type == "default"


def test_position_entry_labels() -> None:
    assert PositionEntry("plugin", "search", "header").label == "→ header"
    assert PositionEntry("clear", "left", []).label == "(cleared)"
    assert PositionEntry("clear", "left", ["a", "b"]).label == "(custom 2)"


def test_cycle_page_type_needs_two_types(layout_vm: LayoutViewModel) -> None:
    assert layout_vm.cycle_page_type(1).handled is False


def test_on_reload_resets_modes(layout_vm: LayoutViewModel) -> None:
    layout_vm.open_groups()
    layout_vm.new_item()
    layout_vm.on_reload()
    assert layout_vm.view == "zones"
    assert layout_vm.groups_mode == "list"
