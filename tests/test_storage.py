"""Tests for MemorySessionStorage."""
import pytest

from navigator_guard.storage import MemorySessionStorage, SessionStorage


class TestMemorySessionStorage:
    """Tests for the in-process session storage."""

    def test_satisfies_protocol(self, storage):
        assert isinstance(storage, SessionStorage)

    def test_get_set_remove(self, storage):
        assert storage.get("name") is None
        storage.set("name", "value")
        assert storage.get("name") == "value"
        assert "name" in storage
        storage.remove("name")
        assert storage.get("name") is None
        storage.remove("name")

    def test_text_only(self, storage):
        with pytest.raises(TypeError):
            storage.set("name", b"bytes")

    def test_clear(self, storage):
        storage.set("a", "1")
        storage.set("b", "2")
        storage.clear()
        assert len(storage) == 0

    def test_repr_hides_values(self, storage):
        storage.set("key", "super-secret")
        assert "super-secret" not in repr(storage)
        assert "key" in repr(storage)

    def test_instances_are_isolated(self):
        first, second = MemorySessionStorage(), MemorySessionStorage()
        first.set("k", "v")
        assert second.get("k") is None
