"""Core functionality: data store and mutation rules."""

from metron.core.categories import CategoryManager
from metron.core.models import Category, MetronData, Session, Tag
from metron.core.sessions import SessionManager
from metron.core.storage import StorageManager
from metron.core.tags import TagManager

__all__ = [
    "Category",
    "Tag",
    "Session",
    "MetronData",
    "StorageManager",
    "CategoryManager",
    "TagManager",
    "SessionManager",
]
