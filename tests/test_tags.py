"""Tests for tag rules."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest  # type: ignore[import-not-found]

from metron.core.errors import DuplicateName, TagLimitExceeded, TagNotFound
from metron.core.models import Session
from metron.core.storage import StorageManager
from metron.core.tags import MAX_TAGS, TagManager


@pytest.fixture  # type: ignore[misc]
def storage() -> StorageManager:
    """Create a storage manager backed by a temporary file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield StorageManager(Path(tmpdir) / "metron_data.json")


class TestTagManager:
    """Test TagManager."""

    def test_create(self, storage: StorageManager) -> None:
        TagManager(storage).create("deep")

        assert [t.name for t in StorageManager(storage.data_file).data.tags] == ["deep"]

    def test_duplicate(self, storage: StorageManager) -> None:
        manager = TagManager(storage)
        manager.create("deep")

        with pytest.raises(DuplicateName):
            manager.create("deep")

    def test_eighth_tag_rejected(self, storage: StorageManager) -> None:
        """Test the store keeps exactly seven tags."""
        manager = TagManager(storage)
        for i in range(MAX_TAGS):
            manager.create(f"tag{i}")

        with pytest.raises(TagLimitExceeded):
            manager.create("one-too-many")
        assert len(storage.data.tags) == 7
        assert len(StorageManager(storage.data_file).data.tags) == 7

    def test_duplicate_checked_before_limit(self, storage: StorageManager) -> None:
        manager = TagManager(storage)
        for i in range(MAX_TAGS):
            manager.create(f"tag{i}")

        with pytest.raises(DuplicateName):
            manager.create("tag0")

    def test_delete_frees_a_slot(self, storage: StorageManager) -> None:
        manager = TagManager(storage)
        for i in range(MAX_TAGS):
            manager.create(f"tag{i}")

        assert manager.delete("tag3") is True
        manager.create("fresh")
        assert [t.name for t in storage.data.tags][-1] == "fresh"

    def test_delete_missing(self, storage: StorageManager) -> None:
        with pytest.raises(TagNotFound):
            TagManager(storage).delete("nope")

    def test_delete_used_declined(self, storage: StorageManager) -> None:
        """Test declining leaves the data file byte-for-byte unchanged."""
        manager = TagManager(storage, confirm=lambda msg: False)
        manager.create("deep")
        storage.data.sessions.append(
            Session(
                title="Focus",
                category="work",
                tags=["deep"],
                start=datetime(2025, 11, 19, 9, 0, tzinfo=timezone.utc),
            )
        )
        storage.save()
        before = storage.data_file.read_bytes()

        assert manager.delete("deep") is False
        assert storage.data_file.read_bytes() == before

    def test_delete_used_confirmed(self, storage: StorageManager) -> None:
        """Test confirmed deletion keeps the tag on existing sessions."""
        manager = TagManager(storage, confirm=lambda msg: True)
        manager.create("deep")
        storage.data.sessions.append(
            Session(
                title="Focus",
                category="work",
                tags=["deep"],
                start=datetime(2025, 11, 19, 9, 0, tzinfo=timezone.utc),
            )
        )

        assert manager.delete("deep") is True
        assert storage.data.tags == []
        assert storage.data.sessions[0].tags == ["deep"]

    def test_list(self, storage: StorageManager) -> None:
        manager = TagManager(storage)
        manager.create("b")
        manager.create("a")

        listing = manager.list()

        assert [t.name for t in listing.tags] == ["b", "a"]
        assert listing.count == 2
        assert listing.limit == 7
