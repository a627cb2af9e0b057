"""
RSS ingestion pipeline: fetch -> normalize -> dedupe on link -> persist.

One bad item never aborts the rest of its feed, and one failing feed never
aborts a run over all sources.  The link existence check is not atomic with
the insert; a concurrent run that inserts the same link first surfaces as an
``IntegrityError`` which is treated as "already exists".
"""
import logging
from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..core.database import NewsDatabase, db as default_db
from ..core.errors import FetchError
from ..models.entities import Article, FeedSource
from ..models.feed_items import FeedCheckResult, FetchAllSummary, ParsedArticle
from .article_normalizer import normalize_item
from .category_service import CategoryService, category_service
from .feed_parser import FeedParser, feed_parser

logger = logging.getLogger(__name__)


def source_name_from_url(url: str) -> str:
    """Human readable source name: the URL host without a leading ``www.``."""
    host = urlparse(url).hostname
    if not host:
        raise ValueError(f"Invalid feed URL: {url!r}")
    return host[4:] if host.startswith("www.") else host


class RSSService:
    def __init__(
        self,
        database: Optional[NewsDatabase] = None,
        parser: Optional[FeedParser] = None,
        categories: Optional[CategoryService] = None,
    ):
        self.database = database or default_db
        self.parser = parser or feed_parser
        self.categories = categories or category_service

    def _link_exists(self, link: str) -> bool:
        with self.database.session() as session:
            return session.scalar(select(Article.id).where(Article.link == link)) is not None

    async def _resolve_categories(self, labels: List[str]) -> List[str]:
        if not labels:
            return []
        mapping = await self.categories.normalize_batch(labels)
        names: List[str] = []
        for label in labels:
            name = mapping.get(label)
            if name and name not in names:
                names.append(name)
        return names

    def _insert_article(self, source_id: int, article: ParsedArticle, category_names: List[str]) -> None:
        with self.database.session() as session:
            row = Article(
                title=article.title,
                description=article.description,
                content=article.content,
                link=article.link,
                image_url=article.image_url,
                author=article.author,
                pub_date=article.pub_date,
                guid=article.guid,
                source_id=source_id,
            )
            row.categories = [
                self.categories.get_or_create_category(session, name) for name in category_names
            ]
            session.add(row)

    async def save_article(self, source_id: int, article: ParsedArticle) -> bool:
        """Persist ``article`` unless its link is already stored.

        Returns True when a new row was inserted.
        """
        if self._link_exists(article.link):
            return False

        category_names = await self._resolve_categories(article.categories)
        try:
            self._insert_article(source_id, article, category_names)
        except IntegrityError:
            if self._link_exists(article.link):
                logger.info(f"Article already stored by a concurrent run: {article.link}")
                return False
            raise
        return True

    async def fetch_and_save_articles(self, source_id: int, feed_url: str) -> int:
        """Ingest one feed and return the number of newly stored articles."""
        try:
            items = await self.parser.parse_feed(feed_url)
        except FetchError as e:
            logger.error(f"Failed to fetch articles from {feed_url}: {e}")
            raise

        saved_count = 0
        for item in items:
            try:
                article = normalize_item(item)
                if not article.link:
                    logger.warning(f"Skipping item without link in {feed_url}: {article.title!r}")
                    continue
                if await self.save_article(source_id, article):
                    saved_count += 1
            except Exception as e:
                logger.error(f"Failed to save article {item.link!r} from {feed_url}: {e}")

        with self.database.session() as session:
            source = session.get(FeedSource, source_id)
            if source is not None:
                source.last_check = datetime.utcnow()

        logger.info(f"Fetched and saved {saved_count} new articles from {feed_url}")
        return saved_count

    def _active_sources(self) -> List[FeedSource]:
        with self.database.session() as session:
            return list(session.scalars(
                select(FeedSource).where(FeedSource.is_active.is_(True)).order_by(FeedSource.id)
            ))

    async def check_all_feeds(self) -> List[FeedCheckResult]:
        """Ingest every active source; failures are recorded per source."""
        sources = self._active_sources()
        logger.info(f"Checking {len(sources)} RSS feeds for new articles")

        results: List[FeedCheckResult] = []
        for source in sources:
            try:
                count = await self.fetch_and_save_articles(source.id, source.url)
                results.append(FeedCheckResult(
                    source_id=source.id, source_name=source.name, new_articles=count, status="success",
                ))
            except Exception as e:
                logger.error(f"Failed to check feed {source.name}: {e}")
                results.append(FeedCheckResult(
                    source_id=source.id, source_name=source.name, status="failed", error=str(e),
                ))
        return results

    async def fetch_all_feeds(self) -> FetchAllSummary:
        results = await self.check_all_feeds()
        return FetchAllSummary(
            total_new_articles=sum(r.new_articles for r in results),
            total_sources=len(results),
            results=results,
        )

    async def initialize_feed_sources(self, feed_urls: List[str]) -> int:
        """Register every URL not yet known as an active source."""
        added = 0
        for url in feed_urls:
            try:
                with self.database.session() as session:
                    exists = session.scalar(select(FeedSource.id).where(FeedSource.url == url))
                    if exists is not None:
                        continue
                    name = source_name_from_url(url)
                    session.add(FeedSource(name=name, url=url, is_active=True))
                added += 1
                logger.info(f"Added new feed source: {name}")
            except (ValueError, IntegrityError) as e:
                logger.error(f"Failed to initialize feed source {url}: {e}")
        return added


# Global instance
rss_service = RSSService()
