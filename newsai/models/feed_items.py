from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RawFeedItem(BaseModel):
    """One entry of a parsed RSS/Atom document, validated at the parser boundary."""
    title: str = Field("", description="Entry title")
    link: str = Field("", description="Canonical article link")
    iso_date: Optional[datetime] = Field(None, description="Structured publish/update timestamp (UTC)")
    pub_date: Optional[str] = Field(None, description="Raw publish date string as found in the feed")
    author: Optional[str] = Field(None, description="Author / dc:creator")
    content_encoded: Optional[str] = Field(None, description="Full HTML body (content:encoded)")
    content: Optional[str] = Field(None, description="Atom content or equivalent")
    description: Optional[str] = Field(None, description="Description / summary field")
    enclosure_url: Optional[str] = Field(None, description="First enclosure URL")
    thumbnail_url: Optional[str] = Field(None, description="media:thumbnail URL")
    media_content: List[str] = Field(default_factory=list, description="media:content URLs in document order")
    guid: Optional[str] = Field(None, description="Entry identifier")
    categories: List[str] = Field(default_factory=list, description="Free-text category labels")


class ParsedArticle(BaseModel):
    """Canonical article record produced by the normalizer."""
    title: str
    description: str = ""
    content: str = ""
    link: str
    image_url: Optional[str] = None
    author: Optional[str] = None
    pub_date: Optional[datetime] = None
    guid: Optional[str] = None
    categories: List[str] = Field(default_factory=list)


class FeedCheckResult(BaseModel):
    source_id: int
    source_name: str
    new_articles: int = 0
    status: str = Field(..., description="'success' or 'failed'")
    error: Optional[str] = None


class FetchAllSummary(BaseModel):
    total_new_articles: int
    total_sources: int
    results: List[FeedCheckResult]
