from fastapi import APIRouter, Query
from typing import List, Optional
from datetime import datetime

from ..models.schemas import (
    ArticlePage,
    ArticleResponse,
    ArticleStatistics,
    CategoryResponse,
    Envelope,
)
from ..services.article_service import article_service
from ..services.category_service import category_service

router = APIRouter()


@router.get("", response_model=Envelope[ArticlePage])
async def list_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    source_id: Optional[int] = Query(None, description="Only articles of this feed source"),
    category_id: Optional[int] = Query(None, description="Only articles in this category"),
    categories: Optional[str] = Query(None, description="Comma separated category names"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, description="Text searched in title, description and content"),
):
    category_names = [c.strip() for c in categories.split(",") if c.strip()] if categories else None
    result = await article_service.get_articles(
        page=page,
        limit=limit,
        source_id=source_id,
        category_id=category_id,
        category_names=category_names,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return Envelope(data=result)


@router.get("/latest", response_model=Envelope[List[ArticleResponse]])
async def latest_articles(limit: int = Query(10, ge=1, le=100)):
    return Envelope(data=await article_service.get_latest_articles(limit))


@router.get("/trending", response_model=Envelope[List[ArticleResponse]])
async def trending_articles(limit: int = Query(10, ge=1, le=100)):
    return Envelope(data=await article_service.get_trending_articles(limit))


@router.get("/search", response_model=Envelope[ArticlePage])
async def search_articles(
    q: str = Query(..., min_length=1, description="Search text"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    return Envelope(data=await article_service.search_articles(q, page=page, limit=limit))


@router.get("/statistics", response_model=Envelope[ArticleStatistics])
async def statistics():
    return Envelope(data=await article_service.get_statistics())


@router.get("/categories", response_model=Envelope[List[CategoryResponse]])
async def list_categories():
    return Envelope(data=await category_service.list_categories())


@router.get("/{article_id}", response_model=Envelope[ArticleResponse])
async def get_article(article_id: int):
    return Envelope(data=await article_service.get_article_by_id(article_id))
