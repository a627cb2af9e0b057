"""Read-side queries over stored articles."""
import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from ..core.database import NewsDatabase, db as default_db
from ..core.errors import NotFoundError
from ..models.entities import Article, Category, FeedSource, article_categories
from ..models.schemas import ArticlePage, ArticleResponse, ArticleStatistics, Pagination

logger = logging.getLogger(__name__)


def _with_relations(stmt):
    return stmt.options(selectinload(Article.source), selectinload(Article.categories))


class ArticleService:
    def __init__(self, database: Optional[NewsDatabase] = None):
        self.database = database or default_db

    async def get_articles(
        self,
        page: int = 1,
        limit: int = 20,
        source_id: Optional[int] = None,
        category_id: Optional[int] = None,
        category_names: Optional[List[str]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> ArticlePage:
        """Filtered article listing, newest publication first."""
        page = max(page, 1)
        limit = max(limit, 1)

        conditions = []
        if source_id is not None:
            conditions.append(Article.source_id == source_id)
        if category_id is not None:
            conditions.append(Article.id.in_(
                select(article_categories.c.article_id).where(article_categories.c.category_id == category_id)
            ))
        if category_names:
            conditions.append(Article.id.in_(
                select(article_categories.c.article_id)
                .join(Category, Category.id == article_categories.c.category_id)
                .where(Category.name.in_(category_names))
            ))
        if start_date is not None:
            conditions.append(Article.pub_date >= start_date)
        if end_date is not None:
            conditions.append(Article.pub_date <= end_date)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                Article.title.ilike(pattern),
                Article.description.ilike(pattern),
                Article.content.ilike(pattern),
            ))

        with self.database.session() as session:
            total = session.scalar(select(func.count(Article.id)).where(*conditions)) or 0
            rows = session.scalars(
                _with_relations(select(Article))
                .where(*conditions)
                .order_by(Article.pub_date.desc(), Article.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            articles = [ArticleResponse.model_validate(row) for row in rows]

        return ArticlePage(
            articles=articles,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit) if total else 0,
            ),
        )

    async def get_article_by_id(self, article_id: int) -> ArticleResponse:
        with self.database.session() as session:
            article = session.scalar(_with_relations(select(Article)).where(Article.id == article_id))
            if article is None:
                raise NotFoundError("Article not found")
            return ArticleResponse.model_validate(article)

    async def get_latest_articles(self, limit: int = 10) -> List[ArticleResponse]:
        with self.database.session() as session:
            rows = session.scalars(
                _with_relations(select(Article))
                .order_by(Article.pub_date.desc(), Article.id.desc())
                .limit(limit)
            ).all()
            return [ArticleResponse.model_validate(row) for row in rows]

    async def get_trending_articles(self, limit: int = 10) -> List[ArticleResponse]:
        """Articles stored during the last 24 hours, newest publication first."""
        since = datetime.utcnow() - timedelta(hours=24)
        with self.database.session() as session:
            rows = session.scalars(
                _with_relations(select(Article))
                .where(Article.created_at >= since)
                .order_by(Article.pub_date.desc(), Article.id.desc())
                .limit(limit)
            ).all()
            return [ArticleResponse.model_validate(row) for row in rows]

    async def search_articles(self, query: str, page: int = 1, limit: int = 20) -> ArticlePage:
        return await self.get_articles(page=page, limit=limit, search=query)

    async def get_statistics(self) -> ArticleStatistics:
        now = datetime.utcnow()
        with self.database.session() as session:
            def count_since(since: datetime) -> int:
                return session.scalar(
                    select(func.count(Article.id)).where(Article.created_at >= since)
                ) or 0

            return ArticleStatistics(
                total_articles=session.scalar(select(func.count(Article.id))) or 0,
                total_sources=session.scalar(select(func.count(FeedSource.id))) or 0,
                total_categories=session.scalar(select(func.count(Category.id))) or 0,
                articles_last_24h=count_since(now - timedelta(hours=24)),
                articles_last_7days=count_since(now - timedelta(days=7)),
            )


# Global instance
article_service = ArticleService()
