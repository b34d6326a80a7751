"""Data models for Anime Update Bot."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Item:
    """One episode release entry from the anime timeline.

    Field order is the canonical serialization order used for fingerprints
    and for the snapshot file.
    """

    title: str
    link: str
    content: str  # Exact message delivered to the channel
    image: str
    time: str  # "MM/DD HH:MM"

    def to_dict(self) -> dict[str, str]:
        """Return the item as a dict in canonical field order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Item":
        """Build an Item from a mapping, rejecting missing or non-string fields."""
        if not isinstance(data, Mapping):
            raise ValueError(f"Item record must be an object, got {type(data).__name__}")

        values = {}
        for f in fields(cls):
            if f.name not in data:
                raise ValueError(f"Item record is missing field '{f.name}'")
            value = data[f.name]
            if not isinstance(value, str):
                raise ValueError(
                    f"Item field '{f.name}' must be a string, got {type(value).__name__}"
                )
            values[f.name] = value
        return cls(**values)


class CycleState(str, Enum):
    """States a single poll cycle passes through."""

    FETCHING = "fetching"
    DETECTING = "detecting"
    DELIVERING = "delivering"
    RECONCILING = "reconciling"
    DONE = "done"


@dataclass
class CycleResult:
    """Outcome and metrics of one poll cycle."""

    execution_id: str
    state: CycleState = CycleState.FETCHING
    items_fetched: int = 0
    updates_detected: int = 0
    messages_sent: int = 0
    unsent: list[Item] = field(default_factory=list)
    snapshot_saved: bool = False
    delivery_suppressed: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors and not self.unsent

    def metrics(self) -> dict[str, Any]:
        """Metrics dict suitable for structured logging."""
        return {
            "items_fetched": self.items_fetched,
            "updates_detected": self.updates_detected,
            "messages_sent": self.messages_sent,
            "unsent": len(self.unsent),
            "snapshot_saved": self.snapshot_saved,
            "delivery_suppressed": self.delivery_suppressed,
            "errors": list(self.errors),
        }
