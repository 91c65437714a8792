"""Category rules: quota-checked create, update and delete."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from metron.core.errors import CategoryNotFound, DuplicateName, InvalidQuota, QuotaExceeded
from metron.core.models import Category
from metron.core.storage import StorageManager

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]


def decline(message: str) -> bool:
    """Confirmation callback that always answers no."""
    return False


@dataclass
class CategoryListing:
    """Categories together with quota usage, for display."""

    categories: list[Category]
    used_hours: int
    total_hours: Optional[int]


class CategoryManager:
    """Applies create/update/delete on categories against the weekly quota."""

    def __init__(self, storage: StorageManager, confirm: Optional[ConfirmCallback] = None):
        """Initialize category manager.

        Args:
            storage: Loaded storage manager
            confirm: Asked before deleting a category that sessions still use.
                Declines when None.
        """
        self.storage = storage
        self.confirm = confirm or decline

    def _check_quota(self, quota_hours: int, exclude: Optional[str] = None) -> None:
        if quota_hours < 0:
            raise InvalidQuota(f"Weekly quota must be non-negative, got {quota_hours}h")

        total = self.storage.data.total_weekly_quota_hours
        if total is None:
            return
        used = self.storage.data.used_quota_hours(exclude=exclude)
        if used + quota_hours > total:
            raise QuotaExceeded(
                f"Weekly quota would be exceeded: {used}h + {quota_hours}h > {total}h"
            )

    def create(self, name: str, quota_hours: int) -> Category:
        """Create a category.

        Raises:
            DuplicateName: If a category with this name exists
            InvalidQuota: If quota_hours is negative
            QuotaExceeded: If the new quota pushes the sum over the total
        """
        data = self.storage.data
        if data.get_category(name) is not None:
            raise DuplicateName(f"Category '{name}' already exists")

        self._check_quota(quota_hours)

        category = Category(name=name, weekly_quota_hours=quota_hours)
        data.categories.append(category)
        self.storage.save()

        logger.info(f"Created category '{name}' with {quota_hours}h/week")
        return category

    def update(self, name: str, quota_hours: int) -> tuple[int, Category]:
        """Replace the weekly quota of a category.

        Returns:
            Tuple of (previous quota, updated category)

        Raises:
            CategoryNotFound: If no category has this name
            InvalidQuota: If quota_hours is negative
            QuotaExceeded: If the other quotas plus the new one exceed the total
        """
        category = self.storage.data.get_category(name)
        if category is None:
            raise CategoryNotFound(f"Category '{name}' not found")

        self._check_quota(quota_hours, exclude=name)

        old_quota = category.weekly_quota_hours
        category.weekly_quota_hours = quota_hours
        self.storage.save()

        logger.info(f"Updated category '{name}' quota: {old_quota}h -> {quota_hours}h")
        return old_quota, category

    def delete(self, name: str) -> bool:
        """Delete a category.

        Sessions referencing the category keep their reference; the caller is
        asked to confirm first.

        Returns:
            True if deleted, False if the confirmation was declined

        Raises:
            CategoryNotFound: If no category has this name
        """
        data = self.storage.data
        category = data.get_category(name)
        if category is None:
            raise CategoryNotFound(f"Category '{name}' not found")

        if any(s.category == name for s in data.sessions):
            if not self.confirm(f"Category '{name}' is used by existing sessions. Delete anyway?"):
                logger.info(f"Deletion of category '{name}' cancelled")
                return False

        data.categories.remove(category)
        self.storage.save()

        logger.info(f"Deleted category '{name}'")
        return True

    def list(self) -> CategoryListing:
        data = self.storage.data
        return CategoryListing(
            categories=list(data.categories),
            used_hours=data.used_quota_hours(),
            total_hours=data.total_weekly_quota_hours,
        )

    def set_total_quota(self, hours: int) -> int:
        """Set the total weekly quota.

        Raises:
            InvalidQuota: If hours is negative
            QuotaExceeded: If existing category quotas already sum above hours
        """
        if hours < 0:
            raise InvalidQuota(f"Total weekly quota must be non-negative, got {hours}h")

        used = self.storage.data.used_quota_hours()
        if used > hours:
            raise QuotaExceeded(
                f"Categories already use {used}h, cannot set total quota to {hours}h"
            )

        self.storage.data.total_weekly_quota_hours = hours
        self.storage.save()

        logger.info(f"Set total weekly quota to {hours}h")
        return hours

    def clear_total_quota(self) -> None:
        """Remove the total weekly quota."""
        self.storage.data.total_weekly_quota_hours = None
        self.storage.save()
        logger.info("Cleared total weekly quota")
