"""Tests for category rules."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest  # type: ignore[import-not-found]

from metron.core.categories import CategoryManager
from metron.core.errors import CategoryNotFound, DuplicateName, InvalidQuota, QuotaExceeded
from metron.core.models import Category, Session
from metron.core.storage import StorageManager


@pytest.fixture  # type: ignore[misc]
def storage() -> StorageManager:
    """Create a storage manager backed by a temporary file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield StorageManager(Path(tmpdir) / "metron_data.json")


def add_session(storage: StorageManager, category: str) -> None:
    storage.data.sessions.append(
        Session(
            title="Existing",
            category=category,
            start=datetime(2025, 11, 19, 9, 0, tzinfo=timezone.utc),
            duration_minutes=30,
        )
    )
    storage.save()


class TestCreate:
    """Test category creation."""

    def test_create_persists(self, storage: StorageManager) -> None:
        """Test that a created category is written to disk."""
        category = CategoryManager(storage).create("work", 10)

        assert category == Category("work", 10)
        assert StorageManager(storage.data_file).data.categories == [Category("work", 10)]

    def test_duplicate_name(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.create("work", 10)

        with pytest.raises(DuplicateName):
            manager.create("work", 5)
        assert len(storage.data.categories) == 1

    def test_no_total_quota_means_no_limit(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.create("work", 100)
        manager.create("play", 100)

        assert storage.data.used_quota_hours() == 200

    def test_quota_exceeded(self, storage: StorageManager) -> None:
        """Test 10 + 15 > 20 is rejected and 10 + 10 = 20 is accepted."""
        manager = CategoryManager(storage)
        manager.set_total_quota(20)
        manager.create("work", 10)

        with pytest.raises(QuotaExceeded):
            manager.create("play", 15)
        assert [c.name for c in storage.data.categories] == ["work"]

        manager.create("play", 10)
        assert storage.data.used_quota_hours() == 20

    def test_negative_quota_rejected(self, storage: StorageManager) -> None:
        """Test a negative quota cannot make room for a larger category."""
        manager = CategoryManager(storage)
        manager.set_total_quota(10)

        with pytest.raises(InvalidQuota):
            manager.create("hole", -30)
        with pytest.raises(QuotaExceeded):
            manager.create("big", 40)
        assert storage.data.categories == []

    def test_failed_create_leaves_file_unchanged(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.set_total_quota(5)
        before = storage.data_file.read_bytes()

        with pytest.raises(QuotaExceeded):
            manager.create("work", 6)
        assert storage.data_file.read_bytes() == before

    def test_quota_sum_never_exceeds_total(self, storage: StorageManager) -> None:
        """Test a mixed sequence of creates and updates keeps the sum bounded."""
        manager = CategoryManager(storage)
        manager.set_total_quota(40)
        operations = [
            ("create", "a", 10),
            ("create", "b", 25),
            ("create", "c", 10),
            ("update", "a", 20),
            ("update", "a", 5),
            ("create", "c", 10),
            ("update", "b", 30),
            ("update", "c", 1),
        ]

        for op, name, hours in operations:
            try:
                if op == "create":
                    manager.create(name, hours)
                else:
                    manager.update(name, hours)
            except QuotaExceeded:
                pass
            assert storage.data.used_quota_hours() <= 40

        assert {c.name: c.weekly_quota_hours for c in storage.data.categories} == {
            "a": 5,
            "b": 25,
            "c": 1,
        }


class TestUpdate:
    """Test category updates."""

    def test_update_quota(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.create("work", 10)

        old_quota, category = manager.update("work", 12)

        assert old_quota == 10
        assert category.weekly_quota_hours == 12
        assert StorageManager(storage.data_file).data.categories[0].weekly_quota_hours == 12

    def test_update_missing(self, storage: StorageManager) -> None:
        with pytest.raises(CategoryNotFound):
            CategoryManager(storage).update("missing", 1)

    def test_update_missing_reported_before_quota(self, storage: StorageManager) -> None:
        """Test a missing category is reported even when the quota would not fit."""
        manager = CategoryManager(storage)
        manager.set_total_quota(1)

        with pytest.raises(CategoryNotFound):
            manager.update("missing", 50)

    def test_update_negative_quota_rejected(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.set_total_quota(20)
        manager.create("work", 10)
        before = storage.data_file.read_bytes()

        with pytest.raises(InvalidQuota):
            manager.update("work", -5)
        assert storage.data.get_category("work").weekly_quota_hours == 10
        assert storage.data_file.read_bytes() == before

    def test_update_excludes_own_quota(self, storage: StorageManager) -> None:
        """Test that only the other categories count against the new quota."""
        manager = CategoryManager(storage)
        manager.set_total_quota(20)
        manager.create("work", 10)
        manager.create("play", 5)

        manager.update("work", 15)
        assert storage.data.used_quota_hours() == 20

        with pytest.raises(QuotaExceeded):
            manager.update("work", 16)
        assert storage.data.get_category("work").weekly_quota_hours == 15


class TestDelete:
    """Test category deletion."""

    def test_delete_unused(self, storage: StorageManager) -> None:
        """Test unused categories are deleted without asking."""
        asked = []
        manager = CategoryManager(storage, confirm=lambda msg: asked.append(msg) or False)
        manager.create("work", 10)

        assert manager.delete("work") is True
        assert storage.data.categories == []
        assert asked == []

    def test_delete_missing(self, storage: StorageManager) -> None:
        with pytest.raises(CategoryNotFound):
            CategoryManager(storage).delete("missing")

    def test_delete_used_declined_is_noop(self, storage: StorageManager) -> None:
        """Test declining leaves the data file byte-for-byte unchanged."""
        manager = CategoryManager(storage, confirm=lambda msg: False)
        manager.create("work", 10)
        add_session(storage, "work")
        before = storage.data_file.read_bytes()

        assert manager.delete("work") is False
        assert storage.data_file.read_bytes() == before
        assert storage.data.get_category("work") is not None

    def test_delete_used_confirmed_keeps_reference(self, storage: StorageManager) -> None:
        """Test confirmed deletion leaves sessions pointing at the old name."""
        prompts = []

        def confirm(message: str) -> bool:
            prompts.append(message)
            return True

        manager = CategoryManager(storage, confirm=confirm)
        manager.create("work", 10)
        add_session(storage, "work")

        assert manager.delete("work") is True
        assert storage.data.categories == []
        assert storage.data.sessions[0].category == "work"
        assert len(prompts) == 1
        assert "work" in prompts[0]

    def test_default_confirmation_declines(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.create("work", 10)
        add_session(storage, "work")

        assert manager.delete("work") is False


class TestListAndTotal:
    """Test listing and the total weekly quota."""

    def test_list(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.create("work", 10)
        manager.create("play", 4)

        listing = manager.list()

        assert [c.name for c in listing.categories] == ["work", "play"]
        assert listing.used_hours == 14
        assert listing.total_hours is None

    def test_list_with_total(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.set_total_quota(30)

        assert manager.list().total_hours == 30

    def test_set_total_below_usage(self, storage: StorageManager) -> None:
        """Test the total cannot drop below the current sum of quotas."""
        manager = CategoryManager(storage)
        manager.create("work", 10)
        manager.create("play", 10)

        with pytest.raises(QuotaExceeded):
            manager.set_total_quota(19)
        assert storage.data.total_weekly_quota_hours is None

        manager.set_total_quota(20)
        assert StorageManager(storage.data_file).data.total_weekly_quota_hours == 20

    def test_set_negative_total(self, storage: StorageManager) -> None:
        with pytest.raises(InvalidQuota):
            CategoryManager(storage).set_total_quota(-1)
        assert storage.data.total_weekly_quota_hours is None

    def test_clear_total(self, storage: StorageManager) -> None:
        manager = CategoryManager(storage)
        manager.set_total_quota(20)
        manager.clear_total_quota()

        assert StorageManager(storage.data_file).data.total_weekly_quota_hours is None
