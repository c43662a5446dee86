"""Shared plumbing for panel view models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from qpm.config.store import DocumentStore, PersistenceError
from qpm.logging import format_exception_summary, get_logger
from qpm.plugins.registry import EnrichedPlugin, PluginRegistry

from .app_state import AppState, Severity
from .edit_session import EditResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class PanelActionResult:
    """Result value for view model actions."""

    handled: bool
    changed: bool = False
    message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_edit(cls, result: EditResult) -> "PanelActionResult":
        return cls(
            handled=result.handled,
            changed=result.committed,
            message=result.message,
            error=result.error,
        )


IGNORED = PanelActionResult(handled=False)


class PanelViewModel:
    """Base for view models that read and write through the document store."""

    def __init__(
        self,
        store: DocumentStore,
        app_state: AppState,
        registry: Optional[PluginRegistry] = None,
    ) -> None:
        self._store = store
        self._app_state = app_state
        self._registry = registry

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def locked(self) -> bool:
        """Mutating input is ignored while an external operation runs."""
        return self._app_state.loading

    def plugins(self) -> list[EnrichedPlugin]:
        if self._registry is None:
            return []
        return self._registry.enrich(self._store.plugins, revision=self._store.revision)

    def notify(self, message: str, severity: Severity = "info") -> PanelActionResult:
        self._app_state.push_notification(message, severity=severity)
        if severity == "error":
            return PanelActionResult(handled=True, error=message)
        return PanelActionResult(handled=True, message=message)

    def report(self, result: EditResult) -> PanelActionResult:
        """Forward an edit outcome to the notification queue."""
        if result.error:
            self._app_state.push_notification(result.error, severity="error")
        elif result.message:
            self._app_state.push_notification(result.message, severity="info")
        return PanelActionResult.from_edit(result)

    def mutate(self, action: Callable[[], bool]) -> bool:
        """
        Run one store mutation.

        A failed save keeps the in-memory change and surfaces an error
        notification.
        """
        try:
            return action()
        except PersistenceError as exc:
            self._persistence_failed(exc)
            return True

    def write(self, path: Sequence[str], value: Any) -> bool:
        return self.mutate(lambda: self._store.set_at_path(tuple(path), value))

    def update_plugin(self, index: int, updates: dict[str, Any]) -> bool:
        return self.mutate(lambda: self._store.update_plugin(index, updates))

    def _persistence_failed(self, exc: PersistenceError) -> None:
        logger.error("Change kept in memory but not saved: %s", exc)
        self._app_state.push_notification(
            format_exception_summary(exc.__cause__ or exc),
            severity="error",
        )
