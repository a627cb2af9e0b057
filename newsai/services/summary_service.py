"""On-demand AI summaries of stored articles and grounded web research."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from ..core.database import NewsDatabase, db as default_db
from ..models.entities import Article, SearchHistory, Summary
from ..models.schemas import SearchHistoryResponse, SummaryResponse
from ..utils.text import strip_html
from .llm_service import LLMService, llm_service

logger = logging.getLogger(__name__)

NO_ARTICLES_MESSAGE = "Belirtilen tarih aralığında haber bulunamadı."

DEFAULT_SUMMARY_PROMPT = (
    "Aşağıdaki haberleri Türkçe olarak özetle. Ana temaları, önemli olayları ve trendleri vurgula. "
    "Özet net, anlaşılır ve bilgilendirici olmalı:"
)

SEARCH_PROMPT = """"{query}" konusunda kapsamlı ve detaylı bir araştırma raporu hazırla.

## ARAŞTIRMA KRİTERLERİ:
1. En güncel gelişmeleri öncelikle araştır ve detaylandır
2. Haberlerin yalnızca başlıklarını değil, içeriklerini ve arka planını da analiz et
3. Farklı haber kaynaklarından bilgi topla
4. Her konu başlığı altında detaylı açıklama yap

## ÖNEMLİ:
- Her bilgi parçası için kaynak belirt
- Tarih ve saat bilgilerini dahil et
- Sayısal veriler varsa belirt
- Kişi ve kurum isimlerini tam olarak yaz

Arama konusu: "{query}"
"""


def _summary_response(summary: Summary) -> SummaryResponse:
    return SummaryResponse(
        id=summary.id,
        content=summary.content,
        start_date=summary.start_date,
        end_date=summary.end_date,
        prompt=summary.prompt,
        created_at=summary.created_at,
        article_count=len(summary.articles),
    )


class SummaryService:
    def __init__(self, database: Optional[NewsDatabase] = None, llm: Optional[LLMService] = None):
        self.database = database or default_db
        self.llm = llm or llm_service

    @staticmethod
    def _format_article(article: Article) -> str:
        categories = ", ".join(c.name for c in article.categories)
        published = article.pub_date.strftime("%d.%m.%Y %H:%M") if article.pub_date else ""
        body = strip_html(article.description or article.content or "") or "İçerik yok"
        return (
            f"Başlık: {article.title}\n"
            f"Kaynak: {article.source.name}\n"
            f"Tarih: {published}\n"
            f"Kategoriler: {categories}\n"
            f"İçerik: {body}\n"
            "---"
        )

    async def summarize_articles(
        self, start_date: datetime, end_date: datetime, prompt: Optional[str] = None
    ) -> str:
        """Summarize every article published between the two dates.

        With no articles in range a fixed message is returned and nothing is stored.
        """
        with self.database.session() as session:
            articles = list(session.scalars(
                select(Article)
                .options(selectinload(Article.source), selectinload(Article.categories))
                .where(Article.pub_date >= start_date, Article.pub_date <= end_date)
                .order_by(Article.pub_date.desc())
            ))

        if not articles:
            return NO_ARTICLES_MESSAGE

        full_prompt = f"{prompt or DEFAULT_SUMMARY_PROMPT}\n\n" + "\n".join(
            self._format_article(a) for a in articles
        )
        content = await self.llm.generate_content(full_prompt)

        with self.database.session() as session:
            summary = Summary(content=content, start_date=start_date, end_date=end_date, prompt=prompt)
            summary.articles = list(session.scalars(
                select(Article).where(Article.id.in_([a.id for a in articles]))
            ))
            session.add(summary)

        logger.info(f"Generated summary for {len(articles)} articles")
        return content

    async def search_web(self, query: str) -> Dict[str, Any]:
        """Grounded web research on ``query``; the result is kept in the search history."""
        result = await self.llm.search_web(SEARCH_PROMPT.format(query=query))
        sources = [
            {"uri": chunk.web.uri, "title": chunk.web.title}
            for chunk in result.sources
            if chunk.web is not None
        ]

        with self.database.session() as session:
            session.add(SearchHistory(
                query=query,
                result=result.text_with_citations or result.text,
                sources=sources,
                search_queries=result.search_queries,
            ))

        logger.info(f"Web search for {query!r} returned {len(sources)} sources")
        return {
            "text": result.text,
            "text_with_citations": result.text_with_citations,
            "sources": sources,
            "search_queries": result.search_queries,
            "sources_count": len(sources),
        }

    async def list_summaries(self, page: int = 1, limit: int = 10) -> List[SummaryResponse]:
        with self.database.session() as session:
            rows = session.scalars(
                select(Summary)
                .options(selectinload(Summary.articles))
                .order_by(Summary.created_at.desc(), Summary.id.desc())
                .offset((max(page, 1) - 1) * limit)
                .limit(limit)
            ).all()
            return [_summary_response(row) for row in rows]

    async def list_search_history(self, page: int = 1, limit: int = 10) -> List[SearchHistoryResponse]:
        with self.database.session() as session:
            rows = session.scalars(
                select(SearchHistory)
                .order_by(SearchHistory.created_at.desc(), SearchHistory.id.desc())
                .offset((max(page, 1) - 1) * limit)
                .limit(limit)
            ).all()
            return [SearchHistoryResponse.model_validate(row) for row in rows]


# Global instance
summary_service = SummaryService()
