"""Tests for the file-backed context cache."""

import json

import pytest

from alb_attachment.common.exceptions import StackConfigurationError
from alb_attachment.context.store import ContextStore


class TestContextStore:
    """Test saving and replaying resolved contexts."""

    def test_save_then_load_replays_context(self, tmp_path, context):
        """Test that a saved context loads back unchanged."""
        store = ContextStore(tmp_path / "context" / "test.json")

        store.save(context)

        assert store.exists()
        assert store.load() == context

    def test_resaving_unchanged_context_is_byte_identical(self, tmp_path, context):
        """Test that re-saving a loaded context rewrites identical bytes."""
        store = ContextStore(tmp_path / "test.json")

        store.save(context)
        first = store.path.read_bytes()
        store.save(store.load())

        assert store.path.read_bytes() == first

    def test_saved_file_records_route_zone_kind(self, tmp_path, context):
        """Test that the saved file records the route zone kind."""
        store = ContextStore(tmp_path / "test.json")

        store.save(context)

        assert json.loads(store.path.read_text(encoding="utf-8"))["route_zone"]["kind"] == "reference"

    def test_corrupt_file_raises_configuration_error(self, tmp_path):
        """Test that a corrupt context file raises StackConfigurationError."""
        path = tmp_path / "test.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StackConfigurationError) as exc_info:
            ContextStore(path).load()
        assert exc_info.value.config_key == "ContextFile"

    def test_missing_file_raises_configuration_error(self, tmp_path):
        """Test that a missing context file raises StackConfigurationError."""
        store = ContextStore(tmp_path / "missing.json")

        assert not store.exists()
        with pytest.raises(StackConfigurationError) as exc_info:
            store.load()
        assert exc_info.value.config_key == "ContextFile"
