"""Maintenance and inspection of the persisted ``system_logs`` table."""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select

from ..core.config import Settings, settings as default_settings
from ..core.database import NewsDatabase, db as default_db
from ..models.entities import SystemLog

logger = logging.getLogger(__name__)


class LogService:
    def __init__(self, database: Optional[NewsDatabase] = None, settings: Optional[Settings] = None):
        self.database = database or default_db
        self.settings = settings or default_settings

    async def cleanup(self, retention_days: Optional[int] = None) -> int:
        """Delete records older than the retention window; returns the count removed."""
        days = retention_days if retention_days is not None else self.settings.LOG_RETENTION_DAYS
        cutoff = datetime.utcnow() - timedelta(days=days)
        with self.database.session() as session:
            removed = session.execute(delete(SystemLog).where(SystemLog.created_at < cutoff)).rowcount
        logger.info(f"Cleaned up {removed} old log entries")
        return removed

    async def recent(self, limit: int = 50, level: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(SystemLog).order_by(SystemLog.created_at.desc(), SystemLog.id.desc()).limit(limit)
        if level:
            stmt = stmt.where(SystemLog.type == level)
        with self.database.session() as session:
            return [
                {
                    "id": row.id,
                    "type": row.type,
                    "message": row.message,
                    "logger": row.logger,
                    "metadata": row.metadata_json,
                    "created_at": row.created_at,
                }
                for row in session.scalars(stmt)
            ]


# Global instance
log_service = LogService()
