"""
Database models for the news aggregation backend.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.database import Base


article_categories = Table(
    "article_categories",
    Base.metadata,
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

summary_articles = Table(
    "summary_articles",
    Base.metadata,
    Column("summary_id", Integer, ForeignKey("summaries.id", ondelete="CASCADE"), primary_key=True),
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(100), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="viewer")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class FeedSource(Base):
    """A registered RSS/Atom endpoint."""
    __tablename__ = "feed_sources"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    url = Column(String(1000), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_check = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Deleting a source removes its articles at the storage level.
    articles = relationship("Article", back_populates="source", cascade="all, delete-orphan", passive_deletes=True)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    articles = relationship("Article", secondary=article_categories, back_populates="categories")


class Article(Base):
    """A news article; ``link`` is the dedup key."""
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True)
    title = Column(String(1000), nullable=False)
    description = Column(Text)
    content = Column(Text)
    link = Column(String(2000), nullable=False, unique=True, index=True)
    image_url = Column(String(2000))
    author = Column(String(255))
    pub_date = Column(DateTime, index=True)
    guid = Column(String(2000))
    source_id = Column(Integer, ForeignKey("feed_sources.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    source = relationship("FeedSource", back_populates="articles")
    categories = relationship("Category", secondary=article_categories, back_populates="articles")
    summaries = relationship("Summary", secondary=summary_articles, back_populates="articles")


class WordFrequency(Base):
    __tablename__ = "word_frequencies"

    id = Column(Integer, primary_key=True)
    words = Column(JSON, nullable=False)  # [{"word": ..., "count": ...}] ranked by count
    article_ids = Column(JSON, nullable=False)
    article_count = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True)
    type = Column(String(20), nullable=False)  # daily, weekly, monthly
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    article_count = Column(Integer, nullable=False)
    article_ids = Column(JSON, nullable=False)
    summary = Column(Text, nullable=False)
    analysis = Column(JSON)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_report_type_created", "type", "created_at"),
    )


class Summary(Base):
    """AI summary of the articles published in a date range."""
    __tablename__ = "summaries"

    id = Column(Integer, primary_key=True)
    content = Column(Text, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    prompt = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    articles = relationship("Article", secondary=summary_articles, back_populates="summaries")


class SearchHistory(Base):
    __tablename__ = "search_history"

    id = Column(Integer, primary_key=True)
    query = Column(String(1000), nullable=False)
    result = Column(Text)
    sources = Column(JSON)
    search_queries = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class SystemLog(Base):
    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True)
    type = Column(String(20), nullable=False)  # info, warning, error
    message = Column(Text, nullable=False)
    logger = Column(String(255))
    metadata_json = Column("metadata", JSON)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
