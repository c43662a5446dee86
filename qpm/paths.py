"""
Project path helpers for the Quartz plugin manager.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


PROJECT_DIR_ENV_VAR = "QPM_PROJECT_DIR"

CONFIG_FILENAME = "quartz.config.yaml"
LEGACY_CONFIG_FILENAME = "quartz.plugins.json"
DEFAULT_CONFIG_FILENAME = "quartz.config.default.yaml"
LEGACY_DEFAULT_CONFIG_FILENAME = "quartz.plugins.default.json"
LOCKFILE_FILENAME = "quartz.lock.json"
PLUGINS_DIRNAME = os.path.join(".quartz", "plugins")


def get_project_dir(override: Optional[str | Path] = None) -> Path:
    """
    Resolve the Quartz project directory.

    Priority:
    1. Explicit override argument
    2. QPM_PROJECT_DIR environment variable
    3. Current working directory
    """
    candidate: str | Path | None = override
    if candidate is None:
        candidate = os.environ.get(PROJECT_DIR_ENV_VAR)
    if candidate is None:
        candidate = Path.cwd()
    return Path(candidate).expanduser().resolve()


@dataclass(frozen=True)
class ProjectPaths:
    """Well-known file locations inside one Quartz project."""

    root: Path

    @classmethod
    def discover(cls, override: Optional[str | Path] = None) -> "ProjectPaths":
        return cls(root=get_project_dir(override))

    @property
    def config_file(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def legacy_config_file(self) -> Path:
        return self.root / LEGACY_CONFIG_FILENAME

    @property
    def default_config_file(self) -> Path:
        return self.root / DEFAULT_CONFIG_FILENAME

    @property
    def legacy_default_config_file(self) -> Path:
        return self.root / LEGACY_DEFAULT_CONFIG_FILENAME

    @property
    def lockfile(self) -> Path:
        return self.root / LOCKFILE_FILENAME

    @property
    def plugins_dir(self) -> Path:
        return self.root / PLUGINS_DIRNAME

    @property
    def package_json(self) -> Path:
        return self.root / "package.json"

    def plugin_dir(self, name: str) -> Path:
        """Return the install directory for a plugin name."""
        return self.plugins_dir / name

    def existing_config_file(self) -> Optional[Path]:
        """Return the config file to read, preferring YAML over legacy JSON."""
        for candidate in (self.config_file, self.legacy_config_file):
            if candidate.exists():
                return candidate
        return None

    def existing_default_config_file(self) -> Optional[Path]:
        """Return the shipped default document, preferring YAML over legacy JSON."""
        for candidate in (self.default_config_file, self.legacy_default_config_file):
            if candidate.exists():
                return candidate
        return None
