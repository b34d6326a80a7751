"""Process entry point for Anime Update Bot."""

import sys

from .config import Config
from .dedup import UpdateDetector
from .delivery import DeliveryEngine
from .errors import ConfigurationError
from .logging_config import create_execution_logger, setup_structured_logging
from .pipeline import UpdateCycle
from .scheduler import CycleScheduler
from .scraper import AnimeSourceProvider
from .snapshot import SnapshotStore
from .telegram import TelegramPublisher


def build_scheduler(config: Config) -> CycleScheduler:
    """Wire every component of the bot from configuration."""
    source_config = config.get_source_config()
    schedule_config = config.get_schedule_config()

    cycle = UpdateCycle(
        provider=AnimeSourceProvider(source_config),
        store=SnapshotStore(config.get_storage_config().data_path),
        detector=UpdateDetector(),
        engine=DeliveryEngine(TelegramPublisher(config.get_telegram_config())),
        deliver_on_first_run=schedule_config.deliver_on_first_run,
        settle_delay=source_config.settle_delay,
    )
    return CycleScheduler(cycle, schedule_config)


def main() -> int:
    """Load configuration and run the scheduler until interrupted."""
    try:
        config = Config()
        config.validate()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_structured_logging(config.log_level)
    logger = create_execution_logger("main")
    logger.info(
        "Configuration loaded",
        source_url=config.source_url,
        data_path=config.data_path,
        channel_id=config.channel_id,
    )

    scheduler = build_scheduler(config)
    scheduler.install_signal_handlers()
    scheduler.run_forever()
    return 0
