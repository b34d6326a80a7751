"""Telegram Publisher for Anime Update Bot."""

import json
import time
import urllib.error
import urllib.request

from .config import TelegramConfig
from .logging_config import create_execution_logger

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramPublisher:
    """Posts plain-text messages to one Telegram channel."""

    def __init__(self, config: TelegramConfig, execution_id: str | None = None):
        """Initialize Telegram publisher with configuration."""
        self.config = config
        self.logger = create_execution_logger("telegram_publisher", execution_id)
        self.base_url = f"{TELEGRAM_API_URL}/bot{config.bot_token}"

        self.logger.info(
            "TelegramPublisher initialized",
            chat_id=config.chat_id,
            parse_mode=config.parse_mode,
            retry_attempts=config.retry_attempts,
        )

    def send_message(self, text: str) -> bool:
        """
        Send a message to the configured channel.

        Args:
            text: Message text, sent as-is

        Returns:
            True if message was sent successfully, False otherwise
        """
        url = f"{self.base_url}/sendMessage"

        data = {
            "chat_id": self.config.chat_id,
            "text": text,
        }
        if self.config.parse_mode:
            data["parse_mode"] = self.config.parse_mode

        for attempt in range(self.config.retry_attempts):
            try:
                self.logger.debug(
                    f"Sending message to Telegram API (attempt {attempt + 1})",
                    attempt=attempt + 1,
                    message_length=len(text),
                )

                req = urllib.request.Request(
                    url,
                    data=json.dumps(data).encode("utf-8"),
                    headers={
                        "Content-Type": "application/json",
                        "User-Agent": "Anime-Update-Bot/1.0",
                    },
                )

                with urllib.request.urlopen(req, timeout=self.config.timeout) as response:
                    if response.status == 200:
                        self.logger.info(
                            "Message sent successfully to Telegram",
                            status_code=response.status,
                        )
                        return True
                    self.logger.error(
                        f"Telegram API returned status {response.status}",
                        status_code=response.status,
                    )
                    return False

            except urllib.error.HTTPError as e:
                if e.code == 429:
                    self.logger.warning(
                        f"Rate limited by Telegram API (attempt {attempt + 1})",
                        attempt=attempt + 1,
                        http_code=e.code,
                    )
                    if attempt < self.config.retry_attempts - 1:
                        self.handle_rate_limit(attempt, self._retry_after(e))
                        continue
                    self.logger.error("Max retry attempts reached for rate limiting")
                    return False

                self.logger.error(
                    f"HTTP error sending message: {e.code} - {e.reason}",
                    http_code=e.code,
                    http_reason=str(e.reason),
                )
                return False

            except urllib.error.URLError as e:
                self.logger.error(
                    f"URL error sending message: {e.reason}", error_reason=str(e.reason)
                )
                return False

            except Exception as e:
                self.logger.error(
                    f"Unexpected error sending message: {type(e).__name__}: {e}",
                    error=str(e),
                )
                return False

        return False

    def handle_rate_limit(self, retry_count: int, retry_after: float | None = None) -> None:
        """
        Handle rate limiting with exponential backoff.

        Telegram's own ``retry_after`` hint wins when it asks for a longer wait.

        Args:
            retry_count: Current retry attempt number
            retry_after: Seconds requested by the API, if any
        """
        backoff_time = self.config.backoff_factor**retry_count
        if retry_after is not None and retry_after > backoff_time:
            backoff_time = retry_after
        self.logger.warning(
            f"Rate limited, waiting {backoff_time} seconds before retry {retry_count + 1}",
            retry_count=retry_count,
            backoff_time=backoff_time,
        )
        time.sleep(backoff_time)

    def _retry_after(self, error: urllib.error.HTTPError) -> float | None:
        """Read ``parameters.retry_after`` from a 429 response body."""
        try:
            body = json.loads(error.read().decode("utf-8"))
            return float(body["parameters"]["retry_after"])
        except (OSError, ValueError, KeyError, TypeError, AttributeError):
            return None
