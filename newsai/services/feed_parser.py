"""
Feed download and parsing.

Documents are downloaded with aiohttp and handed to feedparser as bytes, so
network failures and parse failures surface separately as ``FetchError``.
Every entry is converted into a ``RawFeedItem`` immediately; nothing past
this module sees feedparser's dynamic dictionaries.
"""
import asyncio
import calendar
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import aiohttp
import feedparser
from pydantic import ValidationError

from ..core.errors import FetchError
from ..models.feed_items import RawFeedItem

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; NewsAI/1.0; +rss-reader)"


class FeedParser:
    def __init__(self):
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(headers={"User-Agent": USER_AGENT})
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> bytes:
        """Download the raw feed document."""
        session = await self._get_session()
        try:
            async with session.get(url, allow_redirects=True) as response:
                if response.status >= 400:
                    raise FetchError(url, f"HTTP {response.status}")
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(url, str(e)) from e

    def parse_document(self, content: bytes, url: str = "") -> List[RawFeedItem]:
        feed = feedparser.parse(content)
        entries = feed.get("entries") or []

        if feed.get("bozo"):
            exc = feed.get("bozo_exception")
            if not entries:
                raise FetchError(url, f"malformed feed document: {exc}")
            logger.warning(f"Feed {url} is not well-formed ({exc}); using {len(entries)} recovered entries")

        items: List[RawFeedItem] = []
        for entry in entries:
            try:
                items.append(entry_to_item(entry))
            except ValidationError as e:
                logger.warning(f"Skipping invalid entry in {url}: {e}")
        return items

    async def parse_feed(self, url: str) -> List[RawFeedItem]:
        """Fetch and parse the feed at ``url``."""
        content = await self.fetch(url)
        return self.parse_document(content, url)


def _struct_to_datetime(value: Any) -> Optional[datetime]:
    # feedparser normalizes dates to UTC struct_time
    if not value:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc).replace(tzinfo=None)
    except (TypeError, ValueError, OverflowError):
        return None


def _first_url(values: Any) -> Optional[str]:
    for value in values or []:
        url = value.get("url") or value.get("href")
        if url:
            return url
    return None


def entry_to_item(entry: Any) -> RawFeedItem:
    """Convert a feedparser entry into a ``RawFeedItem``."""
    content_encoded = None
    content = None
    for block in entry.get("content") or []:
        value = block.get("value")
        if not value:
            continue
        if content_encoded is None and "html" in (block.get("type") or ""):
            content_encoded = value
        elif content is None:
            content = value

    enclosure_url = _first_url(entry.get("enclosures"))
    if enclosure_url is None:
        enclosure_url = _first_url(
            link for link in entry.get("links") or [] if link.get("rel") == "enclosure"
        )

    categories = []
    for tag in entry.get("tags") or []:
        term = (tag.get("term") or "").strip()
        if term and term not in categories:
            categories.append(term)

    return RawFeedItem(
        title=(entry.get("title") or "").strip(),
        link=(entry.get("link") or "").strip(),
        iso_date=_struct_to_datetime(entry.get("published_parsed") or entry.get("updated_parsed")),
        pub_date=entry.get("published") or entry.get("updated"),
        author=entry.get("author"),
        content_encoded=content_encoded,
        content=content,
        description=entry.get("summary"),
        enclosure_url=enclosure_url,
        thumbnail_url=_first_url(entry.get("media_thumbnail")),
        media_content=[m["url"] for m in entry.get("media_content") or [] if m.get("url")],
        guid=entry.get("id"),
        categories=categories,
    )


# Global parser instance
feed_parser = FeedParser()
