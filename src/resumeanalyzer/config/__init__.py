"""Configuration management utilities."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..schemas.config import AppConfig, load_config


class ConfigManager:
    """YAML-backed configuration loader with environment fallbacks."""

    def __init__(self, base_path: str | Path | None = None, *, environ: Mapping[str, str] | None = None):
        self._base_path = Path(base_path) if base_path is not None else None
        self._environ = environ if environ is not None else os.environ

    def read(self, path: str | Path) -> dict[str, Any]:
        """Read a YAML mapping; relative paths resolve against the base path."""
        path = Path(path)
        if self._base_path is not None and not path.is_absolute():
            path = self._base_path / path
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file must be a YAML mapping: {path}")
        return loaded

    def load(self, path: str | Path | None = None, *, overrides: Mapping[str, Any] | None = None) -> AppConfig:
        """Validate settings from ``path`` (optional) and resolve the API key."""
        raw: dict[str, Any] = self.read(path) if path is not None else {}
        if overrides:
            raw = _deep_merge(raw, overrides)
        app_config = load_config(raw)
        if not app_config.inference.api_key:
            api_key = self.api_key_from_env(app_config.inference.api_key_env)
            if api_key:
                app_config.inference.api_key = api_key
        return app_config

    def api_key_from_env(self, names: list[str]) -> str | None:
        for name in names:
            value = self._environ.get(name)
            if value:
                return value
        return None


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


__all__ = ["ConfigManager"]
