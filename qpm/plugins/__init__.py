"""Plugin source parsing, install-state enrichment and external operations."""

from __future__ import annotations

from .operations import OperationResult, PluginOperations, classify_line, parse_output
from .registry import (
    EnrichedPlugin,
    PluginRegistry,
    extract_plugin_name,
    normalize_categories,
)

__all__ = [
    "EnrichedPlugin",
    "OperationResult",
    "PluginOperations",
    "PluginRegistry",
    "classify_line",
    "extract_plugin_name",
    "normalize_categories",
    "parse_output",
]
