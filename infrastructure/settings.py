"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

DEFAULT_SETTINGS: dict[str, Any] = {
    "cache": {"path": None},
    "logging": {"dir": None, "level": "INFO"},
    "remote": {
        "enabled": False,
        "url": "",
        "key": "",
        "table": "photos",
        "bucket": "photos",
        "timeout": 15.0,
    },
    "geocoding": {"user_agent": "geosnap-journal", "timeout": 5.0},
    "caption": {
        "endpoint": "https://generativelanguage.googleapis.com/v1beta",
        "model": "gemini-2.0-flash",
        "key": "",
        "timeout": 20.0,
    },
    "map": {"neighborhood_zoom": 10, "max_zoom": 12, "padding": 50},
    "ui": {"language": "en"},
}

# Environment variables override secrets and endpoints from the file.
ENV_OVERRIDES: dict[str, str] = {
    "GEOSNAP_REMOTE_URL": "remote.url",
    "GEOSNAP_REMOTE_KEY": "remote.key",
    "GEOSNAP_CAPTION_KEY": "caption.key",
    "GEOSNAP_CACHE_PATH": "cache.path",
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access.

    File values are layered over `DEFAULT_SETTINGS`, then environment
    overrides from `ENV_OVERRIDES` are applied.
    """

    def __init__(self, settings_path: str | Path, environ: dict[str, str] | None = None) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ValueError(f"settings.json must hold an object: {self._path}")
        self._data = _merge(copy.deepcopy(DEFAULT_SETTINGS), loaded)
        self._apply_env(os.environ if environ is None else environ)

    @classmethod
    def from_defaults(cls, environ: dict[str, str] | None = None) -> JsonSettings:
        """Settings built from defaults and the environment only."""
        inst = cls.__new__(cls)
        inst._path = Path()
        inst._data = copy.deepcopy(DEFAULT_SETTINGS)
        inst._apply_env(os.environ if environ is None else environ)
        return inst

    def _apply_env(self, environ: Any) -> None:
        for env_name, key in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if value:
                self.set(key, value)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Set dotted `key` in memory (the file is not rewritten)."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get(key, default))
        except (TypeError, ValueError):
            return default

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(self.get(key, default))
        except (TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
