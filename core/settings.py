"""User preferences (settings.yaml) for EasyCount."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from core.fileio import read_yaml, write_yaml_atomic
from core.models import Settings, parse_bool
from core.workspace import settings_path


logger = logging.getLogger(__name__)


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml into a Settings value.

    A missing file gives defaults. An unreadable or malformed file is logged
    and also gives defaults; preferences never block the app from starting.
    """
    path = settings_path(root)
    try:
        data = read_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return Settings()
    return Settings.from_dict(data)


def save_settings(settings: Settings, root: Path | None = None) -> None:
    """Save settings back to settings.yaml atomically."""
    write_yaml_atomic(settings_path(root), settings.to_dict())


def update_settings(settings: Settings, updates: dict[str, Any]) -> Settings:
    """Return a copy of *settings* with camelCase *updates* applied and clamped.

    Unknown keys are ignored. A value of the wrong type raises ValueError.
    """
    merged = settings.to_dict()
    for key, value in updates.items():
        if key == "startCountingAtZero":
            merged[key] = parse_bool(value)
        elif key in merged:
            try:
                merged[key] = int(value)
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be an integer, got {value!r}") from None
    return Settings.from_dict(merged)
