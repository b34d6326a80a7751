"""Poll cycle orchestration for Anime Update Bot."""

import time
from collections.abc import Callable, Sequence

from .dedup import UpdateDetector, fingerprint
from .delivery import DeliveryEngine
from .errors import SnapshotPersistError
from .logging_config import create_execution_logger, new_execution_id
from .models import CycleResult, CycleState, Item
from .snapshot import SnapshotStore


def reconcile(
    fetched: Sequence[Item],
    unsent: Sequence[Item],
    fingerprint_fn: Callable[[Item], str] = fingerprint,
) -> list[Item]:
    """Return the items to persist: ``fetched`` minus ``unsent``.

    Unsent items are left out of the snapshot so the next cycle detects them
    as new again and retries them in the same order.
    """
    excluded = {fingerprint_fn(item) for item in unsent}
    return [item for item in fetched if fingerprint_fn(item) not in excluded]


class UpdateCycle:
    """Runs one fetch, detect, deliver, persist pass."""

    def __init__(
        self,
        provider,
        store: SnapshotStore,
        detector: UpdateDetector,
        engine: DeliveryEngine,
        deliver_on_first_run: bool = False,
        settle_delay: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the cycle.

        Args:
            provider: Source provider with a ``fetch() -> list[Item]`` method
            store: Snapshot persistence
            detector: Update detector
            engine: Delivery engine wrapping the notifier
            deliver_on_first_run: Send every item when no usable snapshot exists
            settle_delay: Seconds to wait before fetching on scheduled runs
            sleep: Sleep function, replaceable in tests
        """
        self.provider = provider
        self.store = store
        self.detector = detector
        self.engine = engine
        self.deliver_on_first_run = deliver_on_first_run
        self.settle_delay = settle_delay
        self.sleep = sleep

    def run(self, deliver: bool = True, settle: bool = True) -> CycleResult:
        """Run one cycle. Never raises.

        Args:
            deliver: Send detected updates; False only seeds the snapshot
            settle: Wait ``settle_delay`` seconds before fetching

        Returns:
            Metrics and final state of the cycle
        """
        result = CycleResult(execution_id=new_execution_id("cycle"))
        logger = create_execution_logger("update_cycle", result.execution_id)
        logger.log_execution_start(deliver=deliver, settle=settle)

        try:
            self._run_states(result, logger, deliver, settle)
        except Exception as e:
            logger.exception(
                f"Cycle aborted in state {result.state.value}: {e}", error=str(e)
            )
            result.errors.append(f"{result.state.value}: {e}")

        result.state = CycleState.DONE
        logger.log_metrics(result.metrics())
        logger.log_execution_end(success=result.success)
        return result

    def _run_states(self, result: CycleResult, logger, deliver: bool, settle: bool) -> None:
        result.state = CycleState.FETCHING
        if settle and self.settle_delay > 0:
            # Give the page time to publish the slot the trigger fired for
            logger.info(f"Waiting {self.settle_delay} seconds before fetching")
            self.sleep(self.settle_delay)

        fetched = self.provider.fetch()
        result.items_fetched = len(fetched)
        if not fetched:
            logger.warning("Fetch returned no items, skipping cycle")
            return

        result.state = CycleState.DETECTING
        previous = self.store.load_previous()
        updates = self.detector.detect(fetched, previous)
        result.updates_detected = len(updates)

        result.state = CycleState.DELIVERING
        unsent: list[Item] = []
        if not deliver or (previous is None and not self.deliver_on_first_run):
            result.delivery_suppressed = bool(updates)
            if updates:
                logger.info(
                    f"Delivery suppressed, seeding snapshot with {len(updates)} items",
                    first_run=previous is None,
                )
        elif updates:
            unsent = self.engine.deliver(updates)
            result.messages_sent = self.engine.sent_count
            result.unsent = unsent
            if unsent:
                result.errors.append(f"{len(unsent)} items left unsent")

        result.state = CycleState.RECONCILING
        to_persist = reconcile(fetched, unsent)
        try:
            result.snapshot_saved = self.store.save(to_persist)
        except SnapshotPersistError as e:
            logger.error(f"Snapshot not persisted: {e}", error=str(e))
            result.errors.append(f"{CycleState.RECONCILING.value}: {e}")
