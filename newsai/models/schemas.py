from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar
from datetime import date, datetime

ReportType = Literal["daily", "weekly", "monthly"]
Role = Literal["admin", "editor", "viewer"]
# The report request has a field called "date".
Day = date

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = Field(True, description="False when the request failed")
    data: Optional[T] = Field(None, description="Response payload")
    message: Optional[str] = Field(None, description="Human readable status message")
    error: Optional[str] = Field(None, description="Error message when success is false")


class _ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Feeds ------------------------------------------------------------

class FeedSourceCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Display name of the source")
    url: str = Field(..., min_length=1, description="RSS/Atom feed URL")


class FeedSourceUpdate(BaseModel):
    name: Optional[str] = Field(None, description="New display name")
    url: Optional[str] = Field(None, description="New feed URL")
    is_active: Optional[bool] = Field(None, description="Enable or disable polling")


class FeedSourceResponse(_ORMModel):
    id: int
    name: str
    url: str
    is_active: bool
    last_check: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    article_count: Optional[int] = Field(None, description="Number of stored articles")


class FeedCheckResponse(BaseModel):
    new_articles: int = Field(..., description="Articles inserted by this check")


# --- Articles ---------------------------------------------------------

class SourceBrief(_ORMModel):
    id: int
    name: str
    url: str


class CategoryBrief(_ORMModel):
    id: int
    name: str


class CategoryResponse(CategoryBrief):
    article_count: int = 0


class ArticleResponse(_ORMModel):
    id: int
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    link: str
    image_url: Optional[str] = None
    author: Optional[str] = None
    pub_date: Optional[datetime] = None
    guid: Optional[str] = None
    source_id: int
    created_at: Optional[datetime] = None
    source: Optional[SourceBrief] = None
    categories: List[CategoryBrief] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ArticlePage(BaseModel):
    articles: List[ArticleResponse]
    pagination: Pagination


class ArticleStatistics(BaseModel):
    total_articles: int
    total_sources: int
    total_categories: int
    articles_last_24h: int
    articles_last_7days: int


# --- Analytics --------------------------------------------------------

class WordCount(BaseModel):
    word: str = Field(..., min_length=3)
    count: int = Field(..., gt=0)


class WordFrequencyRequest(BaseModel):
    limit: int = Field(10, ge=1, le=500, description="Number of latest articles to analyse")


class WordFrequencyResponse(_ORMModel):
    id: int
    words: List[WordCount]
    article_ids: List[int]
    article_count: int
    created_at: datetime


class ReportRequest(BaseModel):
    type: ReportType = Field(..., description="daily, weekly or monthly")
    date: Optional[Day] = Field(None, description="Reference day (defaults to today)")
    keyword: Optional[str] = Field(None, description="Only use articles mentioning this keyword")


class ReportResponse(_ORMModel):
    id: int
    type: str
    start_date: datetime
    end_date: datetime
    article_count: int
    article_ids: List[int]
    summary: str
    analysis: Optional[Dict[str, Any]] = None
    user_id: Optional[int] = None
    created_at: datetime


class ReportHistoryItem(_ORMModel):
    id: int
    type: str
    start_date: datetime
    end_date: datetime
    article_count: int
    created_at: datetime


# --- AI summaries and search ------------------------------------------

class SummarizeRequest(BaseModel):
    start_date: datetime = Field(..., description="Start of the publication window")
    end_date: datetime = Field(..., description="End of the publication window")
    prompt: Optional[str] = Field(None, description="Custom instruction replacing the default one")


class SummaryResponse(_ORMModel):
    id: int
    content: str
    start_date: datetime
    end_date: datetime
    prompt: Optional[str] = None
    created_at: datetime
    article_count: int = 0


class WebSearchRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Topic to research")


class SearchHistoryResponse(_ORMModel):
    id: int
    query: str
    result: Optional[str] = None
    sources: Optional[List[Dict[str, Any]]] = None
    search_queries: Optional[List[str]] = None
    created_at: datetime


# --- Auth -------------------------------------------------------------

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, description="Login name (stored lowercase)")
    password: str = Field(..., min_length=6, description="Plain text password")
    role: Role = Field("viewer", description="admin, editor or viewer")


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RoleUpdateRequest(BaseModel):
    role: Role


class UserResponse(_ORMModel):
    id: int
    username: str
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class TokenUser(BaseModel):
    user_id: int
    username: str
    role: str


class HealthResponse(BaseModel):
    success: bool = True
    message: str = Field(..., description="Descriptive health message")
    timestamp: datetime = Field(..., description="Timestamp of health check (UTC)")
    ai_available: bool = Field(..., description="True if an AI API key is configured")
