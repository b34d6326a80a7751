"""Update detection for Anime Update Bot."""

import hashlib
import json
from collections.abc import Callable, Sequence

from .logging_config import create_execution_logger
from .models import Item


def fingerprint(item: Item) -> str:
    """Generate the content identity of an item.

    SHA256 of the compact JSON serialization in canonical field order. No
    normalization is applied, so any change to any field (whitespace included)
    yields a different fingerprint.

    Args:
        item: The item to fingerprint

    Returns:
        64-character hex digest
    """
    serialized = json.dumps(item.to_dict(), ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


class UpdateDetector:
    """Finds items in a fresh fetch that were not in the previous snapshot."""

    def __init__(
        self,
        fingerprint_fn: Callable[[Item], str] = fingerprint,
        execution_id: str | None = None,
    ):
        """Initialize the detector.

        Args:
            fingerprint_fn: Identity function used for comparisons
            execution_id: Execution ID for logging context
        """
        self.fingerprint_fn = fingerprint_fn
        self.logger = create_execution_logger("update_detector", execution_id)

    def detect(
        self, fetched: Sequence[Item], previous: Sequence[Item] | None
    ) -> list[Item]:
        """Return the new items of a fetch, newest first.

        Both lists must be newest-first. The walk stops at the first fetched
        item already present in ``previous``: everything older than it was
        handled by an earlier cycle.

        Args:
            fetched: Items from the current fetch, newest first
            previous: Last persisted snapshot, or None if there is none

        Returns:
            New items in the same relative order as ``fetched``
        """
        if not fetched:
            return []

        if previous is None:
            self.logger.info(
                "No previous snapshot, treating every fetched item as new",
                fetched_count=len(fetched),
            )
            return list(fetched)

        seen = {self.fingerprint_fn(item) for item in previous}

        updates = []
        for item in fetched:
            if self.fingerprint_fn(item) in seen:
                break
            updates.append(item)

        self.logger.info(
            f"Detected {len(updates)} new items",
            fetched_count=len(fetched),
            previous_count=len(previous),
            updates_count=len(updates),
        )
        return updates
