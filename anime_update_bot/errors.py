"""Exception types for Anime Update Bot."""


class AnimeUpdateBotError(Exception):
    """Base class for all bot errors."""


class ConfigurationError(AnimeUpdateBotError):
    """Required configuration is missing or invalid."""


class SnapshotNotFoundError(AnimeUpdateBotError):
    """No snapshot has been persisted yet (first run)."""


class CorruptSnapshotError(AnimeUpdateBotError):
    """The persisted snapshot exists but cannot be read or parsed."""


class SnapshotPersistError(AnimeUpdateBotError):
    """Writing the snapshot to durable storage failed."""


class FetchError(AnimeUpdateBotError):
    """The source page could not be downloaded or did not have the expected markup."""


class SendError(AnimeUpdateBotError):
    """The notification channel rejected or failed to deliver a message."""

    def __init__(self, message: str, item_title: str | None = None):
        super().__init__(message)
        self.item_title = item_title
