"""JSON storage manager with atomic writes and file locking."""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from metron.core.errors import StorageError
from metron.core.models import MetronData

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path.home() / ".metron" / "metron_data.json"


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


class StorageManager:
    """Holds the in-memory store and persists it as a single JSON document.

    The document is read once when the manager is created. Every mutating
    rule calls :meth:`save` right after applying its change.
    """

    def __init__(self, data_file: Optional[Path] = None):
        """Initialize storage manager and load the data file.

        Args:
            data_file: Path to the JSON document. Defaults to ~/.metron/metron_data.json

        Raises:
            StorageError: If an existing file cannot be read or parsed
        """
        self.data_file = Path(data_file) if data_file else DEFAULT_DATA_FILE
        self.data = self.load()

    def load(self) -> MetronData:
        """Read the data file into a fresh MetronData.

        A missing file yields an empty store.

        Returns:
            Loaded data

        Raises:
            StorageError: If the file cannot be read or is malformed
        """
        if not self.data_file.exists():
            logger.debug(f"No data file at {self.data_file}, starting empty")
            return MetronData()

        try:
            with open(self.data_file, encoding="utf-8") as f:
                _lock_file(f, exclusive=False)
                try:
                    raw = json.load(f)
                finally:
                    _unlock_file(f)
        except OSError as e:
            logger.error(f"Failed to read {self.data_file}: {e}")
            raise StorageError(str(e)) from e
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {self.data_file}: {e}")
            raise StorageError(f"invalid JSON in {self.data_file}: {e}") from e

        if not isinstance(raw, dict):
            raise StorageError(f"expected a JSON object in {self.data_file}")

        try:
            data = MetronData.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"malformed record in {self.data_file}: {e!r}") from e

        logger.debug(
            f"Loaded {len(data.categories)} categories, {len(data.tags)} tags, "
            f"{len(data.sessions)} sessions"
        )
        return data

    def save(self) -> None:
        """Write the current store atomically using a temporary file and rename.

        Raises:
            StorageError: If the document cannot be written
        """
        temp_file = self.data_file.with_suffix(".tmp")

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(self.data.to_dict(), indent=2, ensure_ascii=False)

            with open(temp_file, "w", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
                _unlock_file(f)

            temp_file.replace(self.data_file)
        except (OSError, TypeError, ValueError) as e:
            if temp_file.exists():
                temp_file.unlink()
            logger.error(f"Failed to save {self.data_file}: {e}")
            raise StorageError(str(e)) from e

        logger.debug(f"Saved data file {self.data_file}")
