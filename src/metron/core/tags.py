"""Tag rules: capped create and confirmed delete."""

import logging
from dataclasses import dataclass
from typing import Optional

from metron.core.categories import ConfirmCallback, decline
from metron.core.errors import DuplicateName, TagLimitExceeded, TagNotFound
from metron.core.models import Tag
from metron.core.storage import StorageManager

logger = logging.getLogger(__name__)

MAX_TAGS = 7


@dataclass
class TagListing:
    tags: list[Tag]
    count: int
    limit: int = MAX_TAGS


class TagManager:
    """Applies create/delete on tags, keeping at most MAX_TAGS."""

    def __init__(self, storage: StorageManager, confirm: Optional[ConfirmCallback] = None):
        self.storage = storage
        self.confirm = confirm or decline

    def create(self, name: str) -> Tag:
        """Create a tag.

        Raises:
            DuplicateName: If a tag with this name exists
            TagLimitExceeded: If MAX_TAGS tags already exist
        """
        data = self.storage.data
        if data.get_tag(name) is not None:
            raise DuplicateName(f"Tag '{name}' already exists")
        if len(data.tags) >= MAX_TAGS:
            raise TagLimitExceeded(f"Maximum of {MAX_TAGS} tags allowed")

        tag = Tag(name=name)
        data.tags.append(tag)
        self.storage.save()

        logger.info(f"Created tag '{name}'")
        return tag

    def delete(self, name: str) -> bool:
        """Delete a tag, asking for confirmation if sessions use it.

        Returns:
            True if deleted, False if the confirmation was declined

        Raises:
            TagNotFound: If no tag has this name
        """
        data = self.storage.data
        tag = data.get_tag(name)
        if tag is None:
            raise TagNotFound(f"Tag '{name}' not found")

        if any(name in s.tags for s in data.sessions):
            if not self.confirm(f"Tag '{name}' is used by existing sessions. Delete anyway?"):
                logger.info(f"Deletion of tag '{name}' cancelled")
                return False

        data.tags.remove(tag)
        self.storage.save()

        logger.info(f"Deleted tag '{name}'")
        return True

    def list(self) -> TagListing:
        tags = list(self.storage.data.tags)
        return TagListing(tags=tags, count=len(tags))
