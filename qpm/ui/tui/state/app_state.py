"""Global TUI application state container."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

TabType = Literal["plugins", "layout", "settings"]
Severity = Literal["info", "warning", "error"]
LineKind = Literal["info", "success", "error", "warning"]

PROGRESS_HISTORY_LIMIT = 20


@dataclass(frozen=True)
class Notification:
    """Single UI notification event."""

    message: str
    severity: Severity = "info"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ProgressLine:
    """One streamed line of external operation output."""

    text: str
    kind: LineKind = "info"


@dataclass(frozen=True)
class AppStateSnapshot:
    """Immutable snapshot of global UI state."""

    active_tab: TabType
    loading: bool
    operation: Optional[str]
    progress: tuple[ProgressLine, ...]
    notifications: tuple[Notification, ...]


class AppState:
    """Typed mutable container for cross-panel UI state."""

    def __init__(self, *, active_tab: TabType = "plugins") -> None:
        self._active_tab: TabType = active_tab
        self._loading = False
        self._operation: Optional[str] = None
        self._progress: deque[ProgressLine] = deque(maxlen=PROGRESS_HISTORY_LIMIT)
        self._notifications: list[Notification] = []

    @property
    def active_tab(self) -> TabType:
        return self._active_tab

    @property
    def loading(self) -> bool:
        """True while an external operation is in flight."""
        return self._loading

    @property
    def operation(self) -> Optional[str]:
        return self._operation

    @property
    def progress(self) -> tuple[ProgressLine, ...]:
        return tuple(self._progress)

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    def snapshot(self) -> AppStateSnapshot:
        """Return an immutable snapshot of current app UI state."""
        return AppStateSnapshot(
            active_tab=self._active_tab,
            loading=self._loading,
            operation=self._operation,
            progress=tuple(self._progress),
            notifications=tuple(self._notifications),
        )

    def set_active_tab(self, tab: TabType) -> None:
        self._active_tab = tab

    def begin_operation(self, label: str) -> bool:
        """Enter the loading state. Returns False if an operation is running."""
        if self._loading:
            return False
        self._loading = True
        self._operation = label
        self._progress.clear()
        return True

    def end_operation(self) -> None:
        self._loading = False
        self._operation = None

    def push_progress(self, text: str, kind: LineKind = "info") -> ProgressLine:
        line = ProgressLine(text=text, kind=kind)
        self._progress.append(line)
        return line

    def push_notification(self, message: str, *, severity: Severity = "info") -> Notification:
        notification = Notification(message=message, severity=severity)
        self._notifications.append(notification)
        return notification

    def clear_notifications(self) -> None:
        self._notifications.clear()

    def drain_notifications(self) -> list[Notification]:
        items = list(self._notifications)
        self._notifications.clear()
        return items
