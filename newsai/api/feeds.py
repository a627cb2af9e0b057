from fastapi import APIRouter
from typing import List
import logging

from ..models.feed_items import FeedCheckResult, FetchAllSummary
from ..models.schemas import (
    Envelope,
    FeedCheckResponse,
    FeedSourceCreate,
    FeedSourceResponse,
    FeedSourceUpdate,
)
from ..services.feed_service import feed_service
from ..services.rss_service import rss_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=Envelope[List[FeedSourceResponse]])
async def list_feeds():
    return Envelope(data=await feed_service.list_sources())


@router.post("", response_model=Envelope[FeedSourceResponse], status_code=201)
async def add_feed(request: FeedSourceCreate):
    source = await feed_service.create_source(request.name, request.url)
    return Envelope(data=source, message="Feed source added successfully")


@router.post("/check", response_model=Envelope[List[FeedCheckResult]])
async def check_feeds():
    results = await rss_service.check_all_feeds()
    return Envelope(data=results, message="Feed check completed")


@router.post("/fetch-all", response_model=Envelope[FetchAllSummary])
async def fetch_all_feeds():
    summary = await rss_service.fetch_all_feeds()
    return Envelope(
        data=summary,
        message=f"Fetched {summary.total_new_articles} new articles from {summary.total_sources} sources",
    )


@router.post("/reload", response_model=Envelope[dict])
async def reload_feeds():
    added = await feed_service.reload_from_config()
    return Envelope(data={"added": added}, message="Feeds reloaded from configuration")


@router.put("/{source_id}", response_model=Envelope[FeedSourceResponse])
async def update_feed(source_id: int, request: FeedSourceUpdate):
    source = await feed_service.update_source(
        source_id, name=request.name, url=request.url, is_active=request.is_active
    )
    return Envelope(data=source, message="Feed source updated successfully")


@router.delete("/{source_id}", response_model=Envelope[None])
async def delete_feed(source_id: int):
    await feed_service.delete_source(source_id)
    return Envelope(message="Feed source deleted successfully")


@router.post("/{source_id}/check", response_model=Envelope[FeedCheckResponse])
async def check_feed(source_id: int):
    count = await feed_service.check_source(source_id)
    return Envelope(data=FeedCheckResponse(new_articles=count), message=f"Found {count} new articles")
