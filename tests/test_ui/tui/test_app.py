"""Lifecycle tests for QuartzPluginsApp without a running event loop."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

pytest.importorskip("textual")

from qpm.plugins.operations import OperationResult
from qpm.ui.tui.app import TABS, QuartzPluginsApp
from qpm.ui.tui.screens.setup import SetupScreen
from qpm.ui.tui.state import OperationRequest

pytestmark = pytest.mark.tui_slow


class _NoOperations:
    async def install(self, on_progress=None):
        return OperationResult(success=True)


@pytest.fixture
def make_app(project_paths, registry):
    def _create(store) -> QuartzPluginsApp:
        return QuartzPluginsApp(
            project_paths,
            store=store,
            registry=registry,
            operations=_NoOperations(),
        )

    return _create


def _quiet(app: QuartzPluginsApp, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app, "_refresh_chrome", lambda: None)
    monkeypatch.setattr(app, "_focus_active_panel", lambda: None)


def test_init_wires_shared_state(make_app, store) -> None:
    app = make_app(store)

    assert app.store is store
    assert app.ui_state.active_tab == "plugins"
    assert app.plugins_vm.store is store
    assert app.layout_vm.store is store
    assert app.quartz_version == ""


def test_init_loads_unloaded_store(make_app, store_factory) -> None:
    from qpm.config.store import DocumentStore

    _loaded, backend = store_factory()
    store = DocumentStore(loader=backend.load, saver=backend.save)

    make_app(store)

    assert store.is_loaded
    assert store.plugins[0]["source"] == "github:quartz-community/explorer"


def test_on_mount_opens_setup_without_configuration(
    make_app,
    store_factory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    store, _backend = store_factory(no_document=True)
    app = make_app(store)
    _quiet(app, monkeypatch)
    pushed: list[object] = []
    monkeypatch.setattr(app, "push_screen", lambda screen, callback=None: pushed.append(screen))

    app.on_mount()

    assert len(pushed) == 1
    assert isinstance(pushed[0], SetupScreen)
    app.on_unmount()


def test_on_mount_with_configuration_focuses_panel(make_app, store, monkeypatch: pytest.MonkeyPatch) -> None:
    app = make_app(store)
    monkeypatch.setattr(app, "_refresh_chrome", lambda: None)
    focused: list[bool] = []
    monkeypatch.setattr(app, "_focus_active_panel", lambda: focused.append(True))
    monkeypatch.setattr(app, "push_screen", lambda *args, **kwargs: pytest.fail("setup shown"))

    app.on_mount()

    assert focused == [True]
    app.on_unmount()


def test_run_on_ui_thread_falls_back_on_app_thread(make_app, store, monkeypatch: pytest.MonkeyPatch) -> None:
    app = make_app(store)
    calls: list[str] = []

    def _same_thread(callback):
        raise RuntimeError("The `call_from_thread` method must run in a different thread from the app")

    monkeypatch.setattr(app, "call_from_thread", _same_thread)
    app.run_on_ui_thread(lambda: calls.append("ran"))
    assert calls == ["ran"]

    def _not_running(callback):
        raise RuntimeError("App is not running")

    monkeypatch.setattr(app, "call_from_thread", _not_running)
    with pytest.raises(RuntimeError):
        app.run_on_ui_thread(lambda: calls.append("again"))
    assert calls == ["ran"]


def test_tab_cycle_blocked_while_panel_busy(make_app, store, monkeypatch: pytest.MonkeyPatch) -> None:
    app = make_app(store)
    tabs = SimpleNamespace(active="plugins")
    monkeypatch.setattr(app, "query_one", lambda *args, **kwargs: tabs)

    monkeypatch.setattr(app, "_active_panel", lambda: SimpleNamespace(is_idle=False))
    app.action_next_tab()
    assert tabs.active == "plugins"

    monkeypatch.setattr(app, "_active_panel", lambda: SimpleNamespace(is_idle=True))
    app.action_next_tab()
    assert tabs.active == "layout"
    app.action_previous_tab()
    assert tabs.active == TABS[-1]


def test_tab_activation_updates_state(make_app, store, monkeypatch: pytest.MonkeyPatch) -> None:
    app = make_app(store)
    _quiet(app, monkeypatch)

    app.on_tabbed_content_tab_activated(SimpleNamespace(pane=SimpleNamespace(id="settings")))
    assert app.ui_state.active_tab == "settings"

    app.on_tabbed_content_tab_activated(SimpleNamespace(pane=SimpleNamespace(id="other")))
    assert app.ui_state.active_tab == "settings"


def test_notifications_are_drained_to_toasts(make_app, store, monkeypatch: pytest.MonkeyPatch) -> None:
    app = make_app(store)
    shown: list[tuple[str, str, float]] = []
    monkeypatch.setattr(
        app,
        "notify",
        lambda message, *, severity, timeout: shown.append((message, severity, timeout)),
    )
    app.ui_state.push_notification("Enabled Explorer")
    app.ui_state.push_notification("Failed to save configuration", severity="error")

    app._drain_notifications()

    assert shown == [
        ("Enabled Explorer", "information", 3.0),
        ("Failed to save configuration", "error", 8.0),
    ]
    assert app.ui_state.notifications == ()


def test_operation_finished_resets_panels(make_app, store, monkeypatch: pytest.MonkeyPatch) -> None:
    app = make_app(store)
    monkeypatch.setattr(app, "_panels", lambda: [])
    app.plugins_vm.open_options()
    app.layout_vm.open_groups()

    app._operation_finished(OperationRequest("install"), OperationResult(success=True))

    assert app.plugins_vm.view == "list"
    assert app.layout_vm.view == "zones"
