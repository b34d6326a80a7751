"""Anime timeline scraping for Anime Update Bot."""

import re
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Tag

from .config import SourceConfig
from .errors import FetchError
from .logging_config import create_execution_logger
from .models import Item

TIMELINE_SELECTOR = (
    "div.newanime-wrap.timeline-ver > div.newanime-block > "
    "div.newanime-date-area:not(.premium-block)"
)
NOTIFICATION_PREFIX = "【更新通知】"

EPISODE_PATTERN = re.compile(r"\d+")
DATE_PATTERN = re.compile(r"\b\d{2}/\d{2}\b")


class AnimeSourceProvider:
    """Fetches the anime timeline page and extracts episode items."""

    def __init__(self, config: SourceConfig | None = None, execution_id: str | None = None):
        """Initialize the provider.

        Args:
            config: Source page configuration
            execution_id: Execution ID for logging context
        """
        self.config = config or SourceConfig()
        self.logger = create_execution_logger("scraper", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

        self.logger.info(
            "AnimeSourceProvider initialized",
            url=self.config.url,
            timeout=self.config.timeout,
        )

    def fetch(self) -> list[Item]:
        """Fetch the timeline, returning an empty list on any failure.

        Returns:
            Items newest first, or [] if the page could not be fetched or parsed
        """
        try:
            return self.fetch_items()
        except FetchError as e:
            self.logger.error(f"Failed to fetch timeline: {e}", url=self.config.url, error=str(e))
            return []

    def fetch_items(self) -> list[Item]:
        """Download and parse the timeline page.

        Returns:
            Items newest first

        Raises:
            FetchError: On network errors, non-200 status or unexpected markup
        """
        self.logger.info("Downloading timeline", url=self.config.url)
        try:
            response = self.session.get(self.config.url, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Request to {self.config.url} failed: {e}") from e

        if response.status_code != 200:
            raise FetchError(f"Status code: {response.status_code}")

        items = self.parse(response.text)
        self.logger.info("Timeline parsed", url=self.config.url, items_count=len(items))
        return items

    def parse(self, html: str) -> list[Item]:
        """Extract items from the timeline markup.

        A single malformed entry fails the whole parse; a partial list would
        no longer be a reliable newest-first view of the page.

        Args:
            html: Raw page document

        Returns:
            Items in page order (newest first)

        Raises:
            FetchError: If an entry does not have the expected structure
        """
        soup = BeautifulSoup(html, "html.parser")
        nodes = soup.select(TIMELINE_SELECTOR)

        items = []
        for position, node in enumerate(nodes):
            try:
                items.append(self.parse_node(node))
            except (AttributeError, KeyError, ValueError) as e:
                raise FetchError(f"Unexpected markup in timeline entry {position}: {e}") from e

        if not items:
            self.logger.warning("No timeline entries matched", url=self.config.url)
        return items

    def parse_node(self, node: Tag) -> Item:
        """Build an Item from one timeline entry."""
        title = _select_text(node, "div.anime-name > p")
        href = _select_attr(node, "a.anime-card-block", "href")
        link = urljoin(self.config.url, href)

        episode_match = EPISODE_PATTERN.search(_select_text(node, "div.anime-episode > p"))
        if not episode_match:
            raise ValueError("episode label has no number")
        episode = episode_match.group(0)

        image = _select_attr(node, "div.anime-blocker > img", "data-src")

        date_match = DATE_PATTERN.search(_select_text(node, "span.anime-date-info"))
        if not date_match:
            raise ValueError("date label has no MM/DD")
        hours = _select_text(node, "span.anime-hours")

        return Item(
            title=title,
            link=link,
            content=f"{NOTIFICATION_PREFIX}{title} [{episode}]\n{link}",
            image=image,
            time=f"{date_match.group(0)} {hours}",
        )


def _select_text(node: Tag, selector: str) -> str:
    element = node.select_one(selector)
    if element is None:
        raise ValueError(f"missing element '{selector}'")
    return element.get_text().strip()


def _select_attr(node: Tag, selector: str, attribute: str) -> str:
    element = node.select_one(selector)
    if element is None:
        raise ValueError(f"missing element '{selector}'")
    value = element.get(attribute)
    if not value:
        raise ValueError(f"element '{selector}' has no '{attribute}'")
    return value
