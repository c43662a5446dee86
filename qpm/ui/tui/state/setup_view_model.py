"""First-run setup: choose how to create the project configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

import yaml

from qpm.config.store import DocumentStore, PersistenceError
from qpm.logging import format_exception_summary, get_logger

from .app_state import AppState
from .base import IGNORED, PanelActionResult
from .navigation import Cursor

logger = get_logger(__name__)

SetupChoice = Literal["default", "empty"]

_LABELS: dict[str, str] = {
    "default": "Use default configuration",
    "empty": "Start with empty configuration",
}


@dataclass(frozen=True)
class SetupOption:
    choice: SetupChoice
    label: str
    selected: bool


class SetupViewModel:
    """Offers the first-run choices and creates the document."""

    def __init__(self, store: DocumentStore, app_state: AppState) -> None:
        self._store = store
        self._app_state = app_state
        self.cursor = Cursor()
        self.completed = False

    def choices(self) -> list[SetupChoice]:
        if self._store.default_document is not None:
            return ["default", "empty"]
        return ["empty"]

    def options(self) -> list[SetupOption]:
        index = self.cursor.clamp(len(self.choices()))
        return [
            SetupOption(choice=choice, label=_LABELS[choice], selected=position == index)
            for position, choice in enumerate(self.choices())
        ]

    def move(self, delta: int) -> PanelActionResult:
        if self.completed:
            return IGNORED
        self.cursor.move(delta, len(self.choices()), wrap=True)
        return PanelActionResult(handled=True)

    def select(self, choice: Optional[SetupChoice] = None) -> PanelActionResult:
        """Create the configuration from the highlighted (or given) choice."""
        if self.completed:
            return IGNORED
        choices = self.choices()
        choice = choice or choices[self.cursor.clamp(len(choices))]
        if choice not in choices:
            return IGNORED
        try:
            if choice == "default":
                if not self._store.initialize_from_default():
                    return self._failed("Default configuration could not be read")
            else:
                self._store.initialize_empty()
        except PersistenceError as exc:
            # The document exists in memory; the editor can still open.
            logger.error("Created configuration but could not save it: %s", exc)
            self.completed = True
            message = format_exception_summary(exc.__cause__ or exc)
            self._app_state.push_notification(message, severity="error")
            return PanelActionResult(handled=True, changed=True, error=message)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            return self._failed(format_exception_summary(exc))
        self.completed = True
        message = "Created configuration from defaults" if choice == "default" else "Created empty configuration"
        logger.info(message)
        self._app_state.push_notification(message)
        return PanelActionResult(handled=True, changed=True, message=message)

    def _failed(self, message: str) -> PanelActionResult:
        logger.error("Setup failed: %s", message)
        self._app_state.push_notification(message, severity="error")
        return PanelActionResult(handled=True, error=message)
