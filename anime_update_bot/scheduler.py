"""Recurring trigger for poll cycles."""

import signal
import threading
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from .config import ScheduleConfig
from .logging_config import create_execution_logger
from .models import CycleResult
from .pipeline import UpdateCycle


def next_run_time(now: datetime, interval_minutes: int) -> datetime:
    """Return the next wall-clock boundary that is a multiple of the interval.

    Behaves like the cron expression ``*/<interval> * * * *``: with a
    15 minute interval, 10:07:30 yields 10:15:00 and 10:15:00 yields 10:30:00.
    """
    floored = now.replace(
        minute=now.minute - now.minute % interval_minutes, second=0, microsecond=0
    )
    return floored + timedelta(minutes=interval_minutes)


class CycleScheduler:
    """Fires UpdateCycle runs on a fixed schedule, never two at a time."""

    def __init__(self, cycle: UpdateCycle, config: ScheduleConfig | None = None):
        """Initialize the scheduler.

        Args:
            cycle: The cycle to run on every trigger
            config: Schedule configuration
        """
        self.cycle = cycle
        self.config = config or ScheduleConfig()
        self.timezone = ZoneInfo(self.config.timezone)
        self.logger = create_execution_logger("scheduler")
        self._stop = threading.Event()
        self._cycle_lock = threading.Lock()

    def now(self) -> datetime:
        return datetime.now(self.timezone)

    def run_cycle(self, deliver: bool = True, settle: bool = True) -> CycleResult | None:
        """Run one cycle unless another is still in progress.

        Returns:
            The cycle result, or None if the trigger was skipped
        """
        if not self._cycle_lock.acquire(blocking=False):
            self.logger.warning("Previous cycle still running, skipping this trigger")
            return None
        try:
            self.logger.info(
                f"Scheduled at: {self.now().strftime('%Y/%m/%d %H:%M:%S')}",
                deliver=deliver,
            )
            return self.cycle.run(deliver=deliver, settle=settle)
        finally:
            self._cycle_lock.release()

    def run_startup(self) -> CycleResult | None:
        """Seed the snapshot at process start without delivering anything.

        Skipped when a snapshot already exists, so items published while the
        process was down are still delivered by the next scheduled cycle.
        """
        if self.cycle.store.exists():
            self.logger.info("Snapshot present, skipping startup run")
            return None
        self.logger.info("No snapshot yet, running startup seed cycle")
        return self.run_cycle(deliver=False, settle=False)

    def run_forever(self) -> None:
        """Run cycles on schedule until stop() is called."""
        self.logger.info(
            "Scheduler started",
            interval_minutes=self.config.interval_minutes,
            timezone=self.config.timezone,
            run_on_start=self.config.run_on_start,
        )

        if self.config.run_on_start and not self._stop.is_set():
            self.run_startup()

        while not self._stop.is_set():
            next_run = next_run_time(self.now(), self.config.interval_minutes)
            wait_seconds = max((next_run - self.now()).total_seconds(), 0.0)
            self.logger.debug(
                "Waiting for next trigger",
                next_run=next_run.isoformat(),
                wait_seconds=wait_seconds,
            )
            if self._stop.wait(wait_seconds):
                break
            self.run_cycle()

        self.logger.info("Scheduler stopped")

    def stop(self) -> None:
        """Request shutdown. A running cycle is allowed to finish."""
        self._stop.set()

    def install_signal_handlers(self) -> None:
        """Stop the scheduler on SIGINT and SIGTERM."""

        def _handle(signum, frame):
            self.logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.stop()

        signal.signal(signal.SIGINT, _handle)
        signal.signal(signal.SIGTERM, _handle)
