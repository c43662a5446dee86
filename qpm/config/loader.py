"""
Configuration loader for the Quartz plugin manager.

Handles reading and writing the plugin configuration document, the shipped
default document, the lockfile, and installed plugin manifests.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from qpm.logging import get_logger
from qpm.paths import ProjectPaths

from .constants import (
    DEFAULT_DISPLAY,
    DEFAULT_ORDER,
    DEFAULT_PRIORITY,
    YAML_SCHEMA_HEADER,
)
from .models import LayoutSpec, LockRecord, PluginEntry

logger = get_logger(__name__)

_GIT_TIMEOUT_SECONDS = 5


def load_raw_document(path: Path) -> Dict[str, Any]:
    """
    Load a raw document from a JSON or YAML file.

    Args:
        path: Path to a .json, .yaml, or .yml file

    Returns:
        Dictionary with the parsed document

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported or the root is not a mapping
        json.JSONDecodeError: If JSON is invalid
        yaml.YAMLError: If YAML is invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    suffix = path.suffix.lower()
    content = path.read_text(encoding="utf-8")

    if suffix in {".yaml", ".yml"}:
        document = yaml.safe_load(content) or {}
    elif suffix == ".json":
        document = json.loads(content)
    else:
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .json, .yaml, or .yml"
        )

    if not isinstance(document, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    return document


def load_document(paths: ProjectPaths) -> Optional[Dict[str, Any]]:
    """
    Load the project's plugin configuration document.

    Also loads environment variables from a .env file if present.

    Args:
        paths: Resolved project paths

    Returns:
        Parsed document, or None when no configuration exists yet
    """
    load_dotenv()
    path = paths.existing_config_file()
    if path is None:
        logger.info("No plugin configuration found under %s", paths.root)
        return None
    logger.debug("Loading plugin configuration from %s", path)
    return load_raw_document(path)


def load_default_document(paths: ProjectPaths) -> Optional[Dict[str, Any]]:
    """
    Load the shipped default document used for setup and restore.

    Args:
        paths: Resolved project paths

    Returns:
        Parsed default document, or None when the project ships none
    """
    path = paths.existing_default_config_file()
    if path is None:
        return None
    return load_raw_document(path)


def dump_document(document: Dict[str, Any], *, fmt: str = "yaml") -> str:
    """
    Serialize a document for writing.

    The ``$schema`` key is dropped; YAML output gets the language-server
    schema header instead.
    """
    raw = {key: value for key, value in document.items() if key != "$schema"}
    if fmt == "json":
        return json.dumps(raw, indent=2) + "\n"
    if fmt == "yaml":
        body = yaml.safe_dump(raw, sort_keys=False, allow_unicode=True, width=100)
        return YAML_SCHEMA_HEADER + body
    raise ValueError(f"Unsupported config format: {fmt}")


def save_document(document: Dict[str, Any], paths: ProjectPaths) -> None:
    """
    Rewrite the whole configuration document to ``quartz.config.yaml``.

    Args:
        document: Full configuration document
        paths: Resolved project paths
    """
    path = paths.config_file
    path.write_text(dump_document(document), encoding="utf-8")
    logger.debug("Saved plugin configuration to %s", path)


def read_lockfile(paths: ProjectPaths) -> Optional[Dict[str, Any]]:
    """Read ``quartz.lock.json``; None when absent."""
    if not paths.lockfile.exists():
        return None
    data = json.loads(paths.lockfile.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Lockfile root must be an object: {paths.lockfile}")
    return data


def read_manifest(paths: ProjectPaths, name: str) -> Optional[Dict[str, Any]]:
    """
    Read the ``quartz`` manifest block from an installed plugin's package.json.

    Args:
        paths: Resolved project paths
        name: Plugin directory name

    Returns:
        Manifest mapping, or None if the plugin is not installed or declares none
    """
    package_json = paths.plugin_dir(name) / "package.json"
    if not package_json.exists():
        return None
    try:
        package = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Unreadable manifest for plugin '%s': %s", name, exc)
        return None
    manifest = package.get("quartz") if isinstance(package, dict) else None
    return manifest if isinstance(manifest, dict) else None


def read_current_commit(plugin_dir: Path) -> Optional[str]:
    """Return ``git rev-parse HEAD`` for an installed plugin, or None."""
    if not plugin_dir.is_dir():
        return None
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=str(plugin_dir),
            capture_output=True,
            text=True,
            timeout=_GIT_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("git rev-parse failed in %s: %s", plugin_dir, exc)
        return None
    if completed.returncode != 0:
        return None
    return completed.stdout.strip() or None


def read_quartz_version(paths: ProjectPaths) -> Optional[str]:
    """Return the host project's package.json version, if any."""
    if not paths.package_json.exists():
        return None
    try:
        package = json.loads(paths.package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    version = package.get("version") if isinstance(package, dict) else None
    return str(version) if version else None


def build_layout_spec(raw: Any) -> Optional[LayoutSpec]:
    """
    Build a LayoutSpec from a raw ``layout`` value.

    Args:
        raw: Raw layout mapping, or None

    Returns:
        LayoutSpec, or None when the plugin has no layout
    """
    if not isinstance(raw, dict):
        return None
    priority = raw.get("priority", DEFAULT_PRIORITY)
    if isinstance(priority, bool) or not isinstance(priority, (int, float)):
        priority = DEFAULT_PRIORITY
    group_options = raw.get("groupOptions")
    return LayoutSpec(
        position=str(raw.get("position") or ""),
        priority=priority,
        display=str(raw.get("display") or DEFAULT_DISPLAY),
        condition=raw.get("condition"),
        group=raw.get("group"),
        group_options=dict(group_options) if isinstance(group_options, dict) else None,
    )


def build_plugin_entry(raw: Dict[str, Any]) -> PluginEntry:
    """
    Build a PluginEntry from a raw ``plugins[]`` item.

    Args:
        raw: Raw plugin mapping

    Returns:
        PluginEntry instance

    Raises:
        ValueError: If the entry is not a mapping or has no source
    """
    if not isinstance(raw, dict):
        raise ValueError("Each plugins[] entry must be a mapping")
    source = raw.get("source")
    if not source or not isinstance(source, str):
        raise ValueError("Each plugins[] entry must include 'source'")
    options = raw.get("options")
    order = raw.get("order", DEFAULT_ORDER)
    if isinstance(order, bool) or not isinstance(order, (int, float)):
        order = DEFAULT_ORDER
    return PluginEntry(
        source=source,
        enabled=raw.get("enabled", True) is not False,
        options=dict(options) if isinstance(options, dict) else {},
        order=order,
        layout=build_layout_spec(raw.get("layout")),
    )


def build_lock_record(raw: Any) -> Optional[LockRecord]:
    """Build a LockRecord from a lockfile ``plugins.<name>`` value."""
    if not isinstance(raw, dict):
        return None
    return LockRecord(
        source=str(raw.get("source", "")),
        resolved=str(raw.get("resolved", "")),
        commit=str(raw.get("commit", "")),
        installed_at=str(raw.get("installedAt", "")),
    )
