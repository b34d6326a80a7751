"""Ordered delivery of new items to the notification channel."""

from collections.abc import Sequence
from typing import Protocol

from .errors import SendError
from .logging_config import create_execution_logger
from .models import Item


class Notifier(Protocol):
    """Anything that can post one message to the destination channel."""

    def send_message(self, text: str) -> bool: ...


class DeliveryEngine:
    """Sends updates oldest-first and reports what could not be sent."""

    def __init__(self, notifier: Notifier, execution_id: str | None = None):
        """Initialize the delivery engine.

        Args:
            notifier: Channel the messages are posted to
            execution_id: Execution ID for logging context
        """
        self.notifier = notifier
        self.logger = create_execution_logger("delivery_engine", execution_id)
        self.sent_count = 0

    def deliver(self, updates: Sequence[Item]) -> list[Item]:
        """Send updates one at a time in chronological order.

        Stops at the first failure so the channel never sees an item before
        an older one.

        Args:
            updates: New items, newest first

        Returns:
            The failed item and everything not yet attempted, newest first.
            Empty when every item was sent.
        """
        self.sent_count = 0
        chronological = list(reversed(updates))

        for index, item in enumerate(chronological):
            try:
                self._send(item)
            except SendError as e:
                unsent = chronological[index:]
                self.logger.error(
                    f"Delivery stopped: {e}",
                    item_title=item.title,
                    sent_count=self.sent_count,
                    unsent_count=len(unsent),
                )
                return list(reversed(unsent))

            self.sent_count += 1
            self.logger.log_item_processing(item.title, "sent")

        return []

    def _send(self, item: Item) -> None:
        try:
            success = self.notifier.send_message(item.content)
        except Exception as e:
            raise SendError(
                f"Notifier raised while sending '{item.title}': {e}", item.title
            ) from e

        if not success:
            raise SendError(f"Notifier rejected '{item.title}'", item.title)
