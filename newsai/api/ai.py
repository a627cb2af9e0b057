from fastapi import APIRouter, HTTPException, Query
from typing import Any, Dict, List
import logging

from ..models.schemas import (
    Envelope,
    SearchHistoryResponse,
    SummarizeRequest,
    SummaryResponse,
    WebSearchRequest,
)
from ..services.summary_service import summary_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/summarize", response_model=Envelope[Dict[str, Any]])
async def summarize(request: SummarizeRequest):
    if request.start_date > request.end_date:
        raise HTTPException(status_code=400, detail="Start date must be before end date")
    summary = await summary_service.summarize_articles(request.start_date, request.end_date, request.prompt)
    return Envelope(data={
        "summary": summary,
        "date_range": {"start": request.start_date, "end": request.end_date},
    })


@router.post("/search", response_model=Envelope[Dict[str, Any]])
async def search(request: WebSearchRequest):
    logger.info(f"Starting web search with query: {request.query}")
    return Envelope(data=await summary_service.search_web(request.query))


@router.get("/summaries", response_model=Envelope[List[SummaryResponse]])
async def list_summaries(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
    return Envelope(data=await summary_service.list_summaries(page, limit))


@router.get("/search-history", response_model=Envelope[List[SearchHistoryResponse]])
async def search_history(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
    return Envelope(data=await summary_service.list_search_history(page, limit))
