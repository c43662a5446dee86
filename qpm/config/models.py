"""
Typed views over the raw configuration document.

The store keeps the document as plain nested values; these dataclasses are the
read-side shapes handed to the plugin registry and the panels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .constants import DEFAULT_DISPLAY, DEFAULT_ORDER, DEFAULT_PRIORITY


@dataclass(frozen=True)
class LayoutSpec:
    """
    Layout placement contributed by one plugin.
    """

    position: str
    """Zone the component renders in."""

    priority: int = DEFAULT_PRIORITY
    """Ordering inside the zone, lower renders first."""

    display: str = DEFAULT_DISPLAY
    """One of all, desktop-only, mobile-only."""

    condition: Optional[str] = None
    """Named render condition such as not-index."""

    group: Optional[str] = None
    """Layout group the component belongs to."""

    group_options: Optional[dict[str, Any]] = None
    """Per-component options for the group (raw key ``groupOptions``)."""


@dataclass(frozen=True)
class PluginEntry:
    """
    One entry of the declared plugin list.
    """

    source: str
    """Plugin source specifier, e.g. ``github:owner/repo``."""

    enabled: bool = True
    options: dict[str, Any] = field(default_factory=dict)
    order: int = DEFAULT_ORDER
    layout: Optional[LayoutSpec] = None


@dataclass(frozen=True)
class LockRecord:
    """
    Resolved install state recorded in the lockfile.
    """

    source: str
    resolved: str
    commit: str
    installed_at: str
    """ISO timestamp of the install (raw key ``installedAt``)."""
