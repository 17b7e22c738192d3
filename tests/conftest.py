"""Shared test fixtures for EasyCount tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml

from core.store import CounterStore


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a seeded store and settings."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    # Settings
    settings = {
        "stepCount": 1,
        "startCountingAtZero": True,
        "listPadding": 5,
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    # Store
    store = {
        "version": 1,
        "counters": [
            {"id": "birds", "name": "Bird count", "timestamp": "2020-02-10T09:00:00+00:00"},
            {"id": "cars", "name": "Cars", "timestamp": "2020-02-11T09:00:00+00:00"},
        ],
        "details": [
            {"id": "sparrow", "name": "Sparrow", "count": 7, "counterId": "birds"},
            {"id": "blackbird", "name": "Blackbird", "count": 3, "counterId": "birds"},
            {"id": "red", "name": "Red", "count": 2, "counterId": "cars"},
        ],
    }
    (root / "data" / "counters.json").write_text(
        json.dumps(store, indent=2), encoding="utf-8"
    )

    # Set env var
    os.environ["EASYCOUNT_ROOT"] = str(root)
    yield root
    # Cleanup
    if "EASYCOUNT_ROOT" in os.environ:
        del os.environ["EASYCOUNT_ROOT"]


@pytest.fixture
def store(workspace: Path) -> CounterStore:
    return CounterStore.open(root=workspace)


@pytest.fixture
def empty_store(tmp_path: Path) -> CounterStore:
    return CounterStore.open(tmp_path / "counters.json")
