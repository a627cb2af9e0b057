"""
Map raw feed items onto canonical article records.

Pure transformation: no network and no database access.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

from ..models.feed_items import ParsedArticle, RawFeedItem
from ..utils.text import strip_html

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 500

_IMG_RE = re.compile(r"""<img[^>]+src=["']([^"'>]+)["']""", re.IGNORECASE)


def extract_image_url(item: RawFeedItem) -> Optional[str]:
    """Return the first image reference: enclosure, thumbnail, media content,
    then the first ``<img src>`` found in the HTML body."""
    if item.enclosure_url:
        return item.enclosure_url
    if item.thumbnail_url:
        return item.thumbnail_url
    if item.media_content:
        return item.media_content[0]

    for html in (item.content, item.content_encoded, item.description):
        if not html:
            continue
        match = _IMG_RE.search(html)
        if match:
            return match.group(1)
    return None


def parse_pub_date(item: RawFeedItem) -> Optional[datetime]:
    """Prefer the structured timestamp, otherwise parse the raw date string.

    Returned datetimes are naive UTC.
    """
    if item.iso_date is not None:
        if item.iso_date.tzinfo is not None:
            return item.iso_date.astimezone(timezone.utc).replace(tzinfo=None)
        return item.iso_date

    if not item.pub_date:
        return None
    try:
        parsed = date_parser.parse(item.pub_date)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Unparseable pubDate {item.pub_date!r}: {e}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_item(item: RawFeedItem) -> ParsedArticle:
    # Richest body wins; HTML is kept as-is.
    full_content = item.content_encoded or item.content or item.description or ""

    if item.description:
        description = strip_html(item.description)
    else:
        description = strip_html(full_content)[:DESCRIPTION_MAX_LENGTH]

    return ParsedArticle(
        title=item.title,
        description=description,
        content=full_content,
        link=item.link,
        image_url=extract_image_url(item),
        author=item.author or None,
        pub_date=parse_pub_date(item),
        guid=item.guid or item.link,
        categories=[label.strip() for label in item.categories if label and label.strip()],
    )
