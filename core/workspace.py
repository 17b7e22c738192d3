"""Workspace root and path helpers for EasyCount."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path


def workspace_root() -> Path:
    """Get the workspace root directory (contains data/, exports/, settings.yaml)."""
    return Path(
        os.environ.get("EASYCOUNT_ROOT", str(Path.home() / "easycount"))
    ).expanduser().resolve()


def now_utc() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# ── Path helpers ──────────────────────────────────────────────

def store_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data" / "counters.json"


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def exports_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "exports"


def log_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "easycount.log"
