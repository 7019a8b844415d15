"""Unit tests for Figma source access."""

import json
import logging
import os

import pytest

from figmigrate.models import SourceData
from figmigrate.source import SourceContext, parse_file_key


@pytest.mark.parametrize("value, expected", [
    ("https://www.figma.com/file/AbC123/My-Design?node-id=0%3A1", "AbC123"),
    ("https://www.figma.com/design/XyZ789/Other", "XyZ789"),
    ("AbC123", "AbC123"),
    ("https://example.com/whatever", "https://example.com/whatever"),
])
def test_parse_file_key(value, expected):
    assert parse_file_key(value) == expected


class TestSourceContext:
    """Test cases for SourceContext."""

    def test_reads_through_to_cache(self, workdir):
        context = SourceContext(workdir / ".figma-cache.json")

        data = context.get()

        assert data is not None
        assert data.components["1:1"].name == "Button"

    def test_keeps_snapshot_while_file_unchanged(self, workdir):
        context = SourceContext(workdir / ".figma-cache.json")

        first = context.get()

        assert context.get() is first

    def test_reloads_after_cache_rewritten(self, workdir, figma_data):
        path = workdir / ".figma-cache.json"
        context = SourceContext(path)
        assert len(context.get().components) == 2

        del figma_data["components"]["2:1"]
        path.write_text(json.dumps(figma_data))
        stat = path.stat()
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

        assert set(context.get().components) == {"1:1"}

    def test_cache_removed_means_no_data(self, workdir):
        path = workdir / ".figma-cache.json"
        context = SourceContext(path)
        assert context.get() is not None

        path.unlink()

        assert context.get() is None

    def test_missing_cache(self, tmp_path):
        assert SourceContext(tmp_path / ".figma-cache.json").get() is None

    def test_missing_cache_retried_later(self, tmp_path, figma_data):
        path = tmp_path / ".figma-cache.json"
        context = SourceContext(path)
        assert context.get() is None

        path.write_text(json.dumps(figma_data))

        assert context.get() is not None

    def test_unreadable_cache_logs_warning(self, tmp_path, caplog):
        path = tmp_path / ".figma-cache.json"
        path.write_text("[1, 2")

        with caplog.at_level(logging.WARNING, logger="figmigrate.source"):
            assert SourceContext(path).get() is None

        assert "Ignoring unreadable Figma cache" in caplog.text

    def test_non_object_cache(self, tmp_path):
        path = tmp_path / ".figma-cache.json"
        path.write_text("[]")

        assert SourceContext(path).get() is None

    def test_in_memory_snapshot_wins(self, workdir):
        snapshot = SourceData()
        context = SourceContext(workdir / ".figma-cache.json", snapshot)

        assert context.get() is snapshot

    def test_set_with_persist(self, tmp_path, figma_data):
        path = tmp_path / ".figma-cache.json"
        context = SourceContext(path)

        context.set(SourceData.from_dict(figma_data), persist=True)

        written = json.loads(path.read_text())
        assert written["components"]["2:1"]["name"] == "Card"
        assert SourceContext(path).get().frames["9:1"].name == "Home Page"

    def test_set_without_persist(self, tmp_path):
        path = tmp_path / ".figma-cache.json"
        context = SourceContext(path)

        context.set(SourceData())

        assert not path.exists()
        assert context.get() == SourceData()
