from fastapi import APIRouter, Depends, Query
from typing import List, Optional
import logging

from ..models.schemas import (
    Envelope,
    ReportHistoryItem,
    ReportRequest,
    ReportResponse,
    ReportType,
    TokenUser,
    WordFrequencyRequest,
    WordFrequencyResponse,
)
from ..services.analytics_service import analytics_service
from .deps import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/wordfrequency/generate", response_model=Envelope[WordFrequencyResponse])
async def generate_word_frequency(request: Optional[WordFrequencyRequest] = None):
    limit = request.limit if request else None
    result = await analytics_service.analyze_word_frequency(limit)
    if result is None:
        return Envelope(message="No articles found for word frequency analysis")
    return Envelope(data=result, message="Word frequency analysis completed")


@router.get("/wordfrequency/latest", response_model=Envelope[WordFrequencyResponse])
async def latest_word_frequency():
    result = await analytics_service.get_latest_word_frequency()
    if result is None:
        return Envelope(message="No word frequency data available")
    return Envelope(data=result)


@router.post("/report/generate", response_model=Envelope[ReportResponse])
async def generate_report(request: ReportRequest, user: TokenUser = Depends(get_current_user)):
    report = await analytics_service.generate_report(
        request.type, request.date, user_id=user.user_id, keyword=request.keyword
    )
    if report is None:
        return Envelope(message=f"No articles found for {request.type} report")
    return Envelope(data=report, message=f"{request.type} report generated successfully")


@router.get("/report/latest", response_model=Envelope[ReportResponse])
async def latest_report(type: ReportType = Query("daily"), user: TokenUser = Depends(get_current_user)):
    report = await analytics_service.get_latest_report(type, user_id=user.user_id)
    if report is None:
        return Envelope(message=f"No {type} report available")
    return Envelope(data=report)


@router.get("/report/history", response_model=Envelope[List[ReportHistoryItem]])
async def report_history(
    type: ReportType = Query("daily"),
    limit: int = Query(10, ge=1, le=100),
    user: TokenUser = Depends(get_current_user),
):
    return Envelope(data=await analytics_service.get_report_history(type, limit, user_id=user.user_id))


@router.get("/report/{report_id}", response_model=Envelope[ReportResponse])
async def get_report(report_id: int, user: TokenUser = Depends(get_current_user)):
    return Envelope(data=await analytics_service.get_report_by_id(report_id, user_id=user.user_id))
