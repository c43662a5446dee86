"""TUI-specific pytest configuration and fixtures.

This module provides:
- Test speed markers (tui_fast, tui_slow)
- View model fixtures wired to the shared in-memory store and registry

Usage::

    @pytest.mark.tui_fast
    def test_something(plugins_vm):
        # Fast unit test against a view model, no app lifecycle
        ...

"""

from __future__ import annotations

import pytest

from qpm.ui.tui.state import (
    LayoutViewModel,
    PluginsViewModel,
    SettingsViewModel,
)


def pytest_configure(config):
    """Register TUI test markers."""
    config.addinivalue_line(
        "markers",
        "tui_fast: Fast unit tests with fakes, no app lifecycle (<100ms)",
    )
    config.addinivalue_line(
        "markers",
        "tui_slow: Slower tests with real app lifecycle (startup, mount, workers)",
    )


@pytest.fixture
def settings_vm(store, app_state) -> SettingsViewModel:
    return SettingsViewModel(store, app_state)


@pytest.fixture
def plugins_vm(store, app_state, registry) -> PluginsViewModel:
    return PluginsViewModel(store, app_state, registry)


@pytest.fixture
def layout_vm(store, app_state, registry) -> LayoutViewModel:
    vm = LayoutViewModel(store, app_state, registry)
    vm.refresh()
    return vm
