"""Core data models for Metron."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC.

    Accepts the trailing ``Z`` designator and nanosecond fractions written
    by other RFC 3339 tools.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION_RE.sub(r"\1", value)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class Category:
    """Work bucket with a weekly hour quota.

    Attributes:
        name: Unique category name
        weekly_quota_hours: Hours per week allotted to this category
    """

    name: str
    weekly_quota_hours: int = 0

    @property
    def weekly_quota_minutes(self) -> int:
        return self.weekly_quota_hours * 60

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "weekly_quota_hours": self.weekly_quota_hours}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        """Create Category from dictionary (JSON deserialization)."""
        quota = data.get("weekly_quota_hours", data.get("category_weekly_quota", 0))
        return cls(name=data["name"], weekly_quota_hours=int(quota))


@dataclass
class Tag:
    """Free-form label attached to sessions."""

    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tag":
        return cls(name=data["name"])


@dataclass
class Session:
    """Timed work entry.

    Attributes:
        title: Session description
        category: Name of the category the session counts against
        start: When the session started (UTC)
        id: Unique identifier (UUID string), stable once created
        tags: Names of the tags applied to the session
        end: When the session ended or is planned to end (UTC)
        duration_minutes: Recorded duration, a multiple of 15
    """

    title: str
    category: str
    start: datetime
    id: str = field(default_factory=lambda: str(uuid4()))
    tags: list[str] = field(default_factory=list)
    end: Optional[datetime] = None
    duration_minutes: int = 0

    def short_id(self, length: int = 8) -> str:
        """Return the leading characters of the id for display."""
        return self.id[:length]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "tags": list(self.tags),
            "start": self.start.isoformat(),
            "end": self.end.isoformat() if self.end else None,
            "duration_minutes": self.duration_minutes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        """Create Session from dictionary (JSON deserialization)."""
        duration = data.get("duration_minutes", data.get("duration", 0))
        return cls(
            id=str(data["id"]),
            title=data["title"],
            category=data["category"],
            tags=[str(t) for t in data.get("tags") or []],
            start=parse_timestamp(data["start"]),
            end=parse_timestamp(data["end"]) if data.get("end") else None,
            duration_minutes=int(duration),
        )


@dataclass
class MetronData:
    """Root of the persisted document.

    Attributes:
        categories: All categories
        tags: All tags, in creation order
        sessions: All sessions, in insertion order
        total_weekly_quota_hours: Optional cap on the sum of category quotas
    """

    categories: list[Category] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
    total_weekly_quota_hours: Optional[int] = None

    def get_category(self, name: str) -> Optional[Category]:
        for category in self.categories:
            if category.name == name:
                return category
        return None

    def get_tag(self, name: str) -> Optional[Tag]:
        for tag in self.tags:
            if tag.name == name:
                return tag
        return None

    def used_quota_hours(self, exclude: Optional[str] = None) -> int:
        """Sum category quotas, optionally skipping one category by name."""
        return sum(c.weekly_quota_hours for c in self.categories if c.name != exclude)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "categories": [c.to_dict() for c in self.categories],
            "tags": [t.to_dict() for t in self.tags],
            "sessions": [s.to_dict() for s in self.sessions],
            "total_weekly_quota_hours": self.total_weekly_quota_hours,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetronData":
        """Create MetronData from dictionary (JSON deserialization)."""
        total = data.get("total_weekly_quota_hours", data.get("total_weekly_quota"))
        return cls(
            categories=[Category.from_dict(c) for c in data.get("categories") or []],
            tags=[Tag.from_dict(t) for t in data.get("tags") or []],
            sessions=[Session.from_dict(s) for s in data.get("sessions") or []],
            total_weekly_quota_hours=int(total) if total is not None else None,
        )
