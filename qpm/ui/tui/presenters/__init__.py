"""Pure rendering helpers for TUI panels.

Presenters turn view-model snapshots into Rich text so the formatting can be
tested without mounting Textual widgets.
"""

from __future__ import annotations
