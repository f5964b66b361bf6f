"""Launcher configuration file management.

Reads the YAML launcher config that stores default test selection and
execution settings. Missing keys fall back to DEFAULT_CONFIG.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "include": [],
    "tags": [],
    "exclude_tags": [],
    "timeout": 300.0,
}


class LauncherConfig:
    """Manages the launcher YAML configuration file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        if path is not None and path.exists():
            self._load()

    def _load(self) -> None:
        """Load config from the file."""
        assert self.path is not None
        try:
            data = yaml.safe_load(self.path.read_text())
            if isinstance(data, dict):
                self._data = {**DEFAULT_CONFIG, **data}
        except (yaml.YAMLError, OSError):
            self._data = dict(DEFAULT_CONFIG)

    @property
    def config(self) -> dict[str, Any]:
        """Get the full configuration dict."""
        return dict(self._data)

    @property
    def include(self) -> list[str]:
        """Unique-id patterns a test must match (empty = all)."""
        return as_str_list(self._data.get("include"))

    @property
    def tags(self) -> list[str]:
        """Tags a test must carry at least one of (empty = any)."""
        return as_str_list(self._data.get("tags"))

    @property
    def exclude_tags(self) -> list[str]:
        return as_str_list(self._data.get("exclude_tags"))

    @property
    def timeout(self) -> float:
        """Per-test timeout in seconds for executable engines."""
        return float(self._data.get("timeout", DEFAULT_CONFIG["timeout"]))

    def set_config(
        self,
        include: list[str] | None = None,
        tags: list[str] | None = None,
        exclude_tags: list[str] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Update configuration values; None leaves a value unchanged."""
        if include is not None:
            self._data["include"] = list(include)
        if tags is not None:
            self._data["tags"] = list(tags)
        if exclude_tags is not None:
            self._data["exclude_tags"] = list(exclude_tags)
        if timeout is not None:
            self._data["timeout"] = timeout


def as_str_list(value: Any) -> list[str]:
    # A bare string in YAML means a single entry
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]
