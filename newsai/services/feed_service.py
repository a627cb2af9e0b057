"""Feed source management on top of the ingestion pipeline."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from ..core.config import Settings, settings as default_settings
from ..core.database import NewsDatabase, db as default_db
from ..core.errors import DuplicateFeedError, NotFoundError
from ..models.entities import Article, FeedSource
from .rss_service import RSSService, rss_service

logger = logging.getLogger(__name__)


def _source_dict(source: FeedSource, article_count: Optional[int] = None) -> Dict[str, Any]:
    data = {
        "id": source.id,
        "name": source.name,
        "url": source.url,
        "is_active": source.is_active,
        "last_check": source.last_check,
        "created_at": source.created_at,
        "updated_at": source.updated_at,
    }
    if article_count is not None:
        data["article_count"] = article_count
    return data


class FeedService:
    def __init__(
        self,
        database: Optional[NewsDatabase] = None,
        rss: Optional[RSSService] = None,
        settings: Optional[Settings] = None,
    ):
        self.database = database or default_db
        self.rss = rss or rss_service
        self.settings = settings or default_settings

    async def list_sources(self) -> List[Dict[str, Any]]:
        with self.database.session() as session:
            rows = session.execute(
                select(FeedSource, func.count(Article.id))
                .outerjoin(Article, Article.source_id == FeedSource.id)
                .group_by(FeedSource.id)
                .order_by(FeedSource.name)
            ).all()
            return [_source_dict(source, count) for source, count in rows]

    async def get_source(self, source_id: int) -> Dict[str, Any]:
        with self.database.session() as session:
            source = session.get(FeedSource, source_id)
            if source is None:
                raise NotFoundError("Feed source not found")
            return _source_dict(source)

    async def create_source(self, name: str, url: str) -> Dict[str, Any]:
        """Register a source and ingest it immediately.

        A failing first fetch is logged; the source stays registered.
        """
        with self.database.session() as session:
            if session.scalar(select(FeedSource.id).where(FeedSource.url == url)) is not None:
                raise DuplicateFeedError()
            source = FeedSource(name=name, url=url, is_active=True)
            session.add(source)
            session.flush()
            source_id = source.id

        try:
            await self.rss.fetch_and_save_articles(source_id, url)
        except Exception as e:
            logger.error(f"Initial fetch failed for new source {url}: {e}")
        return await self.get_source(source_id)

    async def update_source(
        self,
        source_id: int,
        name: Optional[str] = None,
        url: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        with self.database.session() as session:
            source = session.get(FeedSource, source_id)
            if source is None:
                raise NotFoundError("Feed source not found")
            if name:
                source.name = name
            if url and url != source.url:
                if session.scalar(select(FeedSource.id).where(FeedSource.url == url)) is not None:
                    raise DuplicateFeedError()
                source.url = url
            if is_active is not None:
                source.is_active = is_active
            session.flush()
            return _source_dict(source)

    async def delete_source(self, source_id: int) -> None:
        with self.database.session() as session:
            source = session.get(FeedSource, source_id)
            if source is None:
                raise NotFoundError("Feed source not found")
            session.delete(source)
        logger.info(f"Deleted feed source {source_id}")

    async def check_source(self, source_id: int) -> int:
        source = await self.get_source(source_id)
        return await self.rss.fetch_and_save_articles(source["id"], source["url"])

    async def reload_from_config(self) -> int:
        """Register feeds listed in ``RSS_FEEDS`` that are not known yet."""
        added = await self.rss.initialize_feed_sources(self.settings.RSS_FEEDS)
        logger.info(f"Reloaded feeds from configuration, {added} new")
        return added


# Global instance
feed_service = FeedService()
