"""Shared base for panel screens: worker lifecycle and key dispatch.

Concrete panels render a view model into a ``Static`` and show a single
``Input`` whenever the view model is waiting for free text.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import ScrollableContainer
from textual.widget import Widget
from textual.widgets import Input, Static
from textual.worker import Worker

from qpm.logging import get_logger
from qpm.ui.tui.state.base import PanelActionResult

logger = get_logger(__name__)


def normalize_key(event: events.Key) -> str:
    """Key name with printable characters reported as typed (``D``, ``[``)."""
    character = event.character
    if character and len(character) == 1 and character.isprintable() and character != " ":
        return character
    return event.key


class ManagedScreenMixin:
    """Mixin providing worker lifecycle delegation for panel widgets.

    Concrete screens inherit from both ``Widget`` and this mixin:

        class MyScreen(ManagedScreenMixin, Widget):
            ...

    Workers are started in a group named after the owner so they can be
    cancelled together when the screen goes away.
    """

    def _worker_owner_token(self) -> str:
        """Return a stable owner identifier for this screen."""
        widget_id = str(getattr(self, "id", "") or "").strip()
        if widget_id:
            return widget_id
        return self.__class__.__name__

    def _start_managed_worker(
        self,
        *,
        worker_key: str,
        work_factory: Callable[[], Any],
        exclusive: bool,
    ) -> Worker:
        """Start a background worker owned by this screen.

        Args:
            worker_key: Name for this worker (unique per owner).
            work_factory: Callable that returns a coroutine to run.
            exclusive: Whether to cancel other workers of the same group.

        Returns:
            The started worker.
        """
        logger.debug("Starting worker '%s' for %s", worker_key, self._worker_owner_token())
        return self.run_worker(  # type: ignore[attr-defined]
            work_factory(),
            name=worker_key,
            group=self._worker_owner_token(),
            exclusive=exclusive,
        )

    def _cancel_managed_workers(self, *, reason: str) -> None:
        """Cancel all workers owned by this screen."""
        owner = self._worker_owner_token()
        logger.debug("Cancelling workers for %s (%s)", owner, reason)
        self.app.workers.cancel_group(self, owner)  # type: ignore[attr-defined]


class PanelScreen(ManagedScreenMixin, Widget):
    """Base widget for one tab: a rendered body plus an optional text input."""

    can_focus = True

    DEFAULT_CSS = """
    PanelScreen {
        height: 1fr;
    }

    PanelScreen > ScrollableContainer {
        height: 1fr;
        padding: 0 1;
    }

    PanelScreen > Input {
        display: none;
    }

    PanelScreen > Input.-visible {
        display: block;
    }
    """

    panel_name = ""

    def compose(self) -> ComposeResult:
        with ScrollableContainer():
            yield Static("", id=f"{self.panel_name}-body")
        yield Input(id=f"{self.panel_name}-input")

    def on_mount(self) -> None:
        logger.debug("%s screen mounted", self.panel_name)
        self.refresh_view()

    def on_unmount(self) -> None:
        self._cancel_managed_workers(reason="unmount")

    # ------------------------------------------------------------------
    # Hooks for concrete panels
    # ------------------------------------------------------------------

    def render_body(self) -> Text:
        raise NotImplementedError

    def wants_text(self) -> bool:
        return False

    def prompt_text(self) -> str:
        return ""

    def dispatch_key(self, key: str) -> Optional[PanelActionResult]:
        """Map a key to a view model action; None when the key is not ours."""
        raise NotImplementedError

    def submit_text(self, text: str) -> Optional[PanelActionResult]:
        raise NotImplementedError

    @property
    def is_idle(self) -> bool:
        """True when the panel is at its top level (tab switching allowed)."""
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def refresh_view(self) -> None:
        """Re-render the body and show or hide the text input."""
        if not self.is_mounted:
            return
        self.query_one(f"#{self.panel_name}-body", Static).update(self.render_body())
        text_input = self.query_one(f"#{self.panel_name}-input", Input)
        wants_text = self.wants_text()
        if wants_text and not text_input.has_class("-visible"):
            text_input.value = self.prompt_text()
            text_input.add_class("-visible")
            text_input.focus()
        elif not wants_text and text_input.has_class("-visible"):
            text_input.remove_class("-visible")
            text_input.value = ""
            self.focus()

    def _after_action(self, result: Optional[PanelActionResult]) -> None:
        self.refresh_view()
        panel_changed = getattr(self.app, "panel_changed", None)
        if callable(panel_changed):
            panel_changed(self.panel_name, result)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_key(self, event: events.Key) -> None:
        text_input = self.query_one(f"#{self.panel_name}-input", Input)
        if text_input.has_focus and event.key != "escape":
            return
        key = normalize_key(event)
        if key == "q" and self.is_idle and not text_input.has_focus:
            event.stop()
            self.app.exit()
            return
        result = self.dispatch_key(key)
        if result is None:
            return
        event.stop()
        event.prevent_default()
        self._after_action(result)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != f"{self.panel_name}-input":
            return
        event.stop()
        value = event.value
        # Hide first so the next text state re-seeds the input.
        event.input.remove_class("-visible")
        event.input.value = ""
        self.focus()
        self._after_action(self.submit_text(value))
