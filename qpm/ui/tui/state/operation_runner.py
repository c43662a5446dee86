"""Runs external plugin operations against the shared application state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

import yaml

from qpm.config.store import DocumentStore
from qpm.logging import exception_exc_info, format_exception_summary, get_logger
from qpm.plugins.operations import (
    LineKind,
    OperationResult,
    PluginOperations,
    summarize_result,
)

from .app_state import AppState

logger = get_logger(__name__)

OperationAction = Literal["install", "add", "remove", "update", "restore"]

_ACTION_LABELS: dict[str, str] = {
    "install": "Installing plugins from lockfile...",
    "add": "Adding plugin...",
    "remove": "Removing plugin...",
    "update": "Updating plugins...",
    "restore": "Restoring plugins from lockfile...",
}


@dataclass(frozen=True)
class OperationRequest:
    """An external operation a panel asked for."""

    action: OperationAction
    targets: tuple[str, ...] = ()
    subject: str = ""

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self.action]


class OperationRunner:
    """
    Executes one operation at a time.

    While an operation runs ``AppState.loading`` is set. Completion, success
    or failure, reloads the document store exactly once.
    """

    def __init__(
        self,
        operations: PluginOperations,
        store: DocumentStore,
        app_state: AppState,
        *,
        dispatch: Optional[Callable[[Callable[[], Any]], Any]] = None,
        on_complete: Optional[Callable[[OperationRequest, Optional[OperationResult]], None]] = None,
    ) -> None:
        self._operations = operations
        self._store = store
        self._app_state = app_state
        self._dispatch = dispatch or (lambda callback: callback())
        self._on_complete = on_complete

    def start(self, request: OperationRequest) -> bool:
        """Enter the loading state; False if another operation is running."""
        if not self._app_state.begin_operation(request.label):
            self._app_state.push_notification("An operation is already running", severity="warning")
            return False
        self._app_state.push_progress(f"→ {request.label}")
        return True

    async def run(self, request: OperationRequest) -> Optional[OperationResult]:
        """Run a started operation to completion. Call ``start`` first."""
        result: Optional[OperationResult] = None
        try:
            result = await self._invoke(request)
        except Exception as exc:
            summary = format_exception_summary(exc)
            logger.error("Plugin %s failed: %s", request.action, summary, exc_info=exception_exc_info(exc))
            self._notify(f"{request.action.capitalize()} failed: {summary}", "error")
        else:
            message, severity = summarize_result(request.action, result, subject=request.subject)
            self._notify(message, severity)
        finally:
            self._finish()
        if self._on_complete is not None:
            self._dispatch(lambda: self._on_complete(request, result))
        return result

    async def _invoke(self, request: OperationRequest) -> OperationResult:
        progress = self._progress_callback
        if request.action == "install":
            return await self._operations.install(progress)
        if request.action == "add":
            return await self._operations.add(request.targets, progress)
        if request.action == "remove":
            return await self._operations.remove(request.targets, progress)
        if request.action == "update":
            return await self._operations.update(request.targets or None, progress)
        return await self._operations.restore(progress)

    def _progress_callback(self, line: str, kind: LineKind) -> None:
        self._dispatch(lambda: self._app_state.push_progress(line, kind))

    def _notify(self, message: str, severity: str) -> None:
        self._dispatch(lambda: self._app_state.push_notification(message, severity=severity))

    def _finish(self) -> None:
        def _complete() -> None:
            self._app_state.end_operation()
            try:
                self._store.reload()
            except (OSError, ValueError, yaml.YAMLError) as exc:
                logger.error("Reload after plugin operation failed: %s", exc)
                self._app_state.push_notification(
                    f"Reload failed: {format_exception_summary(exc)}",
                    severity="error",
                )

        self._dispatch(_complete)
