"""Snapshot persistence for Anime Update Bot."""

import contextlib
import json
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from .errors import CorruptSnapshotError, SnapshotNotFoundError, SnapshotPersistError
from .logging_config import create_execution_logger
from .models import Item


class SnapshotStore:
    """Stores the last fetched item list as a JSON file.

    The file holds a list of item records, newest first. Saves go through a
    temporary file and an atomic rename, so a crash mid-write leaves the old
    snapshot in place.
    """

    def __init__(self, path: str | Path, execution_id: str | None = None):
        """Initialize the store.

        Args:
            path: Location of the snapshot file
            execution_id: Execution ID for logging context
        """
        self.path = Path(path)
        self.logger = create_execution_logger("snapshot_store", execution_id)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[Item]:
        """Read the persisted snapshot.

        Returns:
            Items in stored order (newest first)

        Raises:
            SnapshotNotFoundError: If no snapshot has been written yet
            CorruptSnapshotError: If the file cannot be read or parsed
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise SnapshotNotFoundError(f"No snapshot at {self.path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptSnapshotError(f"Cannot read snapshot {self.path}: {e}") from e

        try:
            records = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as e:
            raise CorruptSnapshotError(f"Invalid JSON in snapshot {self.path}: {e}") from e

        if not isinstance(records, list):
            raise CorruptSnapshotError(
                f"Snapshot {self.path} must contain a list, got {type(records).__name__}"
            )

        try:
            items = [Item.from_dict(record) for record in records]
        except ValueError as e:
            raise CorruptSnapshotError(f"Invalid item in snapshot {self.path}: {e}") from e

        self.logger.debug("Loaded snapshot", path=str(self.path), items_count=len(items))
        return items

    def load_previous(self) -> list[Item] | None:
        """Load the snapshot, degrading to None when there is no usable state.

        An empty stored list also counts as no state, since save() never
        writes one.
        """
        try:
            items = self.load()
        except SnapshotNotFoundError:
            self.logger.info("No previous snapshot found", path=str(self.path))
            return None
        except CorruptSnapshotError as e:
            self.logger.error(
                f"Snapshot is corrupt, continuing without previous state: {e}",
                path=str(self.path),
                error=str(e),
            )
            return None

        if not items:
            self.logger.warning(
                "Snapshot is empty, treating as no previous state", path=str(self.path)
            )
            return None
        return items

    def save(self, items: Sequence[Item]) -> bool:
        """Atomically replace the snapshot with ``items``.

        An empty list is never written.

        Args:
            items: Items to persist, newest first

        Returns:
            True if the snapshot was written, False if skipped

        Raises:
            SnapshotPersistError: If the snapshot could not be written
        """
        if not items:
            self.logger.warning("Refusing to persist an empty snapshot", path=str(self.path))
            return False

        payload = json.dumps(
            [item.to_dict() for item in items], ensure_ascii=False, indent=2
        )

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            self.logger.error(
                f"Failed to persist snapshot: {e}", path=str(self.path), error=str(e)
            )
            raise SnapshotPersistError(f"Cannot write snapshot {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

        self.logger.info("Snapshot saved", path=str(self.path), items_count=len(items))
        return True
