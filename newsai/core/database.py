from contextlib import contextmanager
from typing import Iterator
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_db_engine(url: str) -> Engine:
    """Build an engine; SQLite connections are shared across threads and
    an in-memory database is pinned to a single connection."""
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


class NewsDatabase:
    def __init__(self, url: str = "sqlite:///./news_ai.db"):
        self.url = url
        self.engine = create_db_engine(url)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    async def init_db(self):
        # Importing the entities registers every table on ``Base.metadata``.
        from ..models import entities  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info("Database initialized successfully")

    async def reset_db(self):
        from ..models import entities  # noqa: F401

        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)
        logger.warning("Database reset: all tables dropped and recreated")


# Global DB instance
db = NewsDatabase(settings.DATABASE_URL)


async def init_db():
    await db.init_db()
