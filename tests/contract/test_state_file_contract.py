"""
Contract tests for the persisted migration state file.

The state file is read by other tools and by later sessions, so its field
names, value shapes and write behavior are part of the public contract.
"""

import json
import re
from pathlib import Path

import pytest

from figmigrate.config import MigrationSettings
from figmigrate.workflow import MigrationManager

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestStateFileContract:
    """Contract tests for .figma-migration.json."""

    @pytest.fixture
    def initialized(self, manager, workdir):
        manager.initialize(file_url="https://www.figma.com/file/AbC123/App")
        return manager, workdir / ".figma-migration.json"

    def test_top_level_fields(self, initialized):
        _, path = initialized
        state = json.loads(path.read_text())

        assert set(state) == {
            "figmaFileKey", "figmaFileUrl", "createdAt", "updatedAt", "stats", "components", "pages",
        }
        assert state["figmaFileKey"] == "AbC123"
        assert TIMESTAMP.match(state["createdAt"])
        assert TIMESTAMP.match(state["updatedAt"])

    def test_component_task_shape(self, initialized):
        _, path = initialized
        component = json.loads(path.read_text())["components"]["2:1"]

        assert component == {
            "figmaId": "2:1",
            "name": "Card",
            "status": "pending",
            "dependencies": ["1:1"],
            "dependenciesReady": False,
            "instanceCount": 4,
        }

    def test_page_task_shape(self, initialized):
        _, path = initialized
        page = json.loads(path.read_text())["pages"]["9:1"]

        assert page == {
            "figmaId": "9:1",
            "frameName": "Home Page",
            "status": "blocked",
            "componentsUsed": ["1:1", "2:1"],
            "componentsReady": False,
        }

    def test_stats_shape(self, initialized):
        _, path = initialized
        stats = json.loads(path.read_text())["stats"]

        assert stats == {
            "totalComponents": 2,
            "completedComponents": 0,
            "skippedComponents": 0,
            "totalPages": 1,
            "completedPages": 0,
            "blockedPages": 1,
            "phase": "components",
        }

    def test_completed_task_fields(self, initialized):
        manager, path = initialized
        manager.complete("1:1", "src/components/Button.tsx")

        component = json.loads(path.read_text())["components"]["1:1"]

        assert component["status"] == "done"
        assert component["outputPath"] == "src/components/Button.tsx"
        assert TIMESTAMP.match(component["completedAt"])

    def test_updated_at_rewritten_on_every_write(self, initialized):
        manager, path = initialized
        before = json.loads(path.read_text())

        manager.start("1:1")
        after = json.loads(path.read_text())

        assert after["createdAt"] == before["createdAt"]
        assert after["updatedAt"] >= before["updatedAt"]

    def test_reinitialize_leaves_file_unchanged(self, initialized):
        manager, path = initialized
        before = path.read_bytes()

        assert manager.initialize()["code"] == "AlreadyInitialized"
        assert path.read_bytes() == before

    def test_reads_leave_file_unchanged(self, initialized):
        manager, path = initialized
        before = path.read_bytes()

        manager.list_ready()
        manager.list_ready(item_type="page")
        manager.progress()

        assert path.read_bytes() == before

    def test_failed_operations_leave_file_unchanged(self, initialized):
        manager, path = initialized
        before = path.read_bytes()

        manager.start("2:1")
        manager.start("missing")
        manager.complete("9:1", "x")
        manager.skip("9:1", "x")

        assert path.read_bytes() == before

    def test_state_survives_new_manager(self, initialized, workdir):
        manager, _ = initialized
        manager.complete("1:1", "src/components/Button.tsx")

        reopened = MigrationManager(MigrationSettings.from_env(str(workdir)))

        assert reopened.list_ready()["items"][0]["name"] == "Card"

    def test_no_temporary_files_left(self, initialized, workdir):
        manager, _ = initialized
        manager.complete("1:1", "src/components/Button.tsx")

        names = sorted(p.name for p in Path(workdir).iterdir())

        assert names == [".figma-cache.json", ".figma-migration.json"]

    def test_corrupt_state_file_raises(self, initialized):
        manager, path = initialized
        path.write_text("{ not json")

        with pytest.raises(ValueError):
            manager.progress()
