"""Shared fixtures for the migration test suites."""

import json
from pathlib import Path

import pytest

from figmigrate.config import (
    CACHE_FILE_ENV,
    COMPONENT_DIR_ENV,
    LOG_FILE_ENV,
    LOG_LEVEL_ENV,
    PAGE_DIR_ENV,
    ROOT_ENV,
    SINGLE_ACTIVE_ENV,
    STATE_FILE_ENV,
    MigrationSettings,
)
from figmigrate.migration_logging import observability_hooks
from figmigrate.workflow import MigrationManager


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep FIGMA_MIGRATION_* variables from the outer environment out of the tests."""
    for name in (
        ROOT_ENV,
        STATE_FILE_ENV,
        CACHE_FILE_ENV,
        COMPONENT_DIR_ENV,
        PAGE_DIR_ENV,
        SINGLE_ACTIVE_ENV,
        LOG_LEVEL_ENV,
        LOG_FILE_ENV,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def figma_data():
    """Two components where Card instantiates Button, and one page using both.

    Button (1:1) has no dependencies and 10 instances, Card (2:1) contains a
    Button instance, and the Home Page frame (9:1) uses both.
    """
    return {
        "pages": [{"id": "0:1", "name": "Page 1"}],
        "sections": {},
        "components": {
            "1:1": {
                "name": "Button",
                "instanceCount": 10,
                "definition": {
                    "type": "COMPONENT",
                    "name": "Button",
                    "id": "1:1",
                    "cornerRadius": 8,
                    "fills": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 1, "a": 1}}],
                    "children": [
                        {"type": "TEXT", "name": "Label", "id": "1:2", "characters": "Click me"},
                    ],
                },
            },
            "2:1": {
                "name": "Card",
                "instanceCount": 4,
                "definition": {
                    "type": "COMPONENT",
                    "name": "Card",
                    "id": "2:1",
                    "children": [
                        {"type": "INSTANCE", "name": "Button", "id": "2:2", "componentId": "1:1"},
                    ],
                },
            },
        },
        "frames": {
            "9:1": {
                "name": "Home Page",
                "componentsUsed": ["1:1", "2:1"],
                "node": {
                    "type": "FRAME",
                    "name": "Home Page",
                    "id": "9:1",
                    "layoutMode": "VERTICAL",
                    "children": [
                        {"type": "INSTANCE", "name": "Card", "id": "9:2", "componentId": "2:1"},
                    ],
                },
            },
        },
    }


@pytest.fixture
def workdir(tmp_path, figma_data) -> Path:
    """A working directory with the Figma cache already fetched."""
    (tmp_path / ".figma-cache.json").write_text(json.dumps(figma_data), encoding="utf-8")
    return tmp_path


@pytest.fixture
def manager(workdir) -> MigrationManager:
    return MigrationManager(MigrationSettings.from_env(str(workdir)))


@pytest.fixture
def recorded_events():
    """Record observability events; call with the event types to listen for."""
    recorded = []
    registered = []

    def record(*event_types):
        for event_type in event_types:
            def callback(_event_type=event_type, **data):
                recorded.append((_event_type, data))

            observability_hooks.register_hook(event_type, callback)
            registered.append((event_type, callback))
        return recorded

    yield record

    for event_type, callback in registered:
        observability_hooks.unregister_hook(event_type, callback)
