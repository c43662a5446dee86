"""
TUI (Text User Interface) module for the Quartz plugin manager.

Provides a terminal interface built with Textual.
"""

from __future__ import annotations

__all__ = [
    "QuartzPluginsApp",
    "run_tui",
]


def __getattr__(name: str):
    if name in __all__:
        from qpm.ui.tui.app import QuartzPluginsApp, run_tui
        return {"QuartzPluginsApp": QuartzPluginsApp, "run_tui": run_tui}[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
