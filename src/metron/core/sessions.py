"""Session rules: start, end early, delete."""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from metron.core.categories import ConfirmCallback, decline
from metron.core.errors import (
    AmbiguousSessionId,
    CategoryNotFound,
    InvalidDuration,
    SessionNotFound,
    TagNotFound,
)
from metron.core.models import Session, utc_now
from metron.core.storage import StorageManager

logger = logging.getLogger(__name__)

SLOT_MINUTES = 15


def round_down_to_slot(minutes: int) -> int:
    """Round minutes down to the nearest multiple of SLOT_MINUTES."""
    return (max(0, minutes) // SLOT_MINUTES) * SLOT_MINUTES


class SessionManager:
    """Applies start/end/delete on sessions."""

    def __init__(
        self,
        storage: StorageManager,
        confirm: Optional[ConfirmCallback] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize session manager.

        Args:
            storage: Loaded storage manager
            confirm: Asked before every deletion. Declines when None.
            clock: Returns the current aware UTC time. Defaults to utc_now.
        """
        self.storage = storage
        self.confirm = confirm or decline
        self.clock = clock or utc_now

    def start(
        self,
        title: str,
        category: str,
        tags: Optional[list[str]] = None,
        duration_minutes: int = 0,
    ) -> Session:
        """Start a planned session ending duration_minutes from now.

        Raises:
            InvalidDuration: If duration is zero or not a multiple of 15
            CategoryNotFound: If the category does not exist
            TagNotFound: If any tag does not exist
        """
        if duration_minutes <= 0 or duration_minutes % SLOT_MINUTES != 0:
            raise InvalidDuration(
                f"Duration must be a positive multiple of {SLOT_MINUTES} minutes, "
                f"got {duration_minutes}"
            )

        data = self.storage.data
        if data.get_category(category) is None:
            raise CategoryNotFound(f"Category '{category}' not found")

        tags = tags or []
        for tag in tags:
            if data.get_tag(tag) is None:
                raise TagNotFound(f"Tag '{tag}' not found")

        now = self.clock()
        session = Session(
            title=title,
            category=category,
            tags=list(tags),
            start=now,
            end=now + timedelta(minutes=duration_minutes),
            duration_minutes=duration_minutes,
        )

        data.sessions.append(session)
        self.storage.save()

        logger.info(f"Started session {session.id} '{title}' in '{category}' for {duration_minutes}min")
        return session

    def end(self, session_id: str) -> tuple[Session, int]:
        """End a session now, recording elapsed time rounded down to 15 minutes.

        Only a full id matches.

        Returns:
            Tuple of (updated session, raw elapsed minutes)

        Raises:
            SessionNotFound: If no session has exactly this id
        """
        for session in self.storage.data.sessions:
            if session.id == session_id:
                break
        else:
            raise SessionNotFound(f"Session '{session_id}' not found")

        now = self.clock()
        elapsed = max(0, int((now - session.start).total_seconds() // 60))

        session.end = now
        session.duration_minutes = round_down_to_slot(elapsed)
        self.storage.save()

        logger.info(
            f"Ended session {session.id}: elapsed {elapsed}min, recorded {session.duration_minutes}min"
        )
        return session, elapsed

    def resolve(self, session_id: str) -> int:
        """Find the index of a session by exact id, else by unique prefix.

        Raises:
            SessionNotFound: If nothing matches
            AmbiguousSessionId: If the prefix matches several sessions
        """
        sessions = self.storage.data.sessions
        for index, session in enumerate(sessions):
            if session.id == session_id:
                return index

        if not session_id:
            raise SessionNotFound("Session id must not be empty")

        matches = [i for i, s in enumerate(sessions) if s.id.startswith(session_id)]
        if not matches:
            raise SessionNotFound(f"Session '{session_id}' not found")
        if len(matches) > 1:
            candidates = ", ".join(sessions[i].short_id() for i in matches)
            raise AmbiguousSessionId(
                f"Session id '{session_id}' matches {len(matches)} sessions: {candidates}"
            )
        return matches[0]

    def delete(self, session_id: str) -> Optional[Session]:
        """Delete a session after confirmation.

        Returns:
            Deleted session, or None if the confirmation was declined

        Raises:
            SessionNotFound: If nothing matches
            AmbiguousSessionId: If the prefix matches several sessions
        """
        index = self.resolve(session_id)
        sessions = self.storage.data.sessions
        session = sessions[index]

        if not self.confirm(f"Delete session '{session.title}'?"):
            logger.info(f"Deletion of session {session.id} cancelled")
            return None

        del sessions[index]
        self.storage.save()

        logger.info(f"Deleted session {session.id}")
        return session

    def list(self) -> list[Session]:
        return list(self.storage.data.sessions)
