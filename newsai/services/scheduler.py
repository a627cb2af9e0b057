"""
Cron driven background jobs.

Each job runs through ``Scheduler._run`` which logs and swallows whatever
the job raises, so one failing job never affects the others or the
scheduler itself.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Awaitable, Callable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..core.config import Settings, settings as default_settings
from .analytics_service import AnalyticsService, analytics_service, local_today
from .log_service import LogService, log_service
from .rss_service import RSSService, rss_service

logger = logging.getLogger(__name__)

WORD_FREQUENCY_CRON = "*/15 * * * *"
DAILY_REPORT_CRON = "59 23 * * *"
# Named weekday: APScheduler 3 numbers weekdays from Monday.
WEEKLY_REPORT_CRON = "59 23 * * sun"
MONTHLY_REPORT_CRON = "59 23 28-31 * *"
LOG_CLEANUP_CRON = "0 3 * * *"


@dataclass
class ScheduledJob:
    name: str
    cron: str
    func: Callable[[], Awaitable[object]]


def is_last_day_of_month(day: date) -> bool:
    return (day + timedelta(days=1)).day == 1


class Scheduler:
    def __init__(self, jobs: List[ScheduledJob], timezone: str = "UTC"):
        self.jobs = jobs
        self.timezone = timezone
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @staticmethod
    async def _run(job: ScheduledJob) -> None:
        logger.info(f"Starting scheduled job: {job.name}")
        try:
            await job.func()
        except Exception as e:
            logger.exception(f"Scheduled job {job.name} failed: {e}")
        else:
            logger.info(f"Scheduled job {job.name} finished")

    def start(self) -> None:
        """Register every job; must be called with a running event loop."""
        if self.running:
            return
        self._scheduler = AsyncIOScheduler(timezone=self.timezone)
        for job in self.jobs:
            self._scheduler.add_job(
                self._run,
                CronTrigger.from_crontab(job.cron, timezone=self.timezone),
                args=[job],
                id=job.name,
                name=job.name,
                replace_existing=True,
            )
            logger.info(f"Scheduled job {job.name} ({job.cron})")
        self._scheduler.start()
        logger.info(f"Scheduler started with {len(self.jobs)} jobs")

    def stop(self) -> None:
        """Stop firing new runs; runs already in flight are not awaited."""
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")


def build_default_jobs(
    settings: Optional[Settings] = None,
    rss: Optional[RSSService] = None,
    analytics: Optional[AnalyticsService] = None,
    logs: Optional[LogService] = None,
    today: Optional[Callable[[], date]] = None,
) -> List[ScheduledJob]:
    settings = settings or default_settings
    today = today or (lambda: local_today(settings.SCHEDULER_TIMEZONE))
    rss = rss or rss_service
    analytics = analytics or analytics_service
    logs = logs or log_service

    async def check_feeds():
        await rss.check_all_feeds()

    async def word_frequency():
        await analytics.analyze_word_frequency(settings.WORD_FREQUENCY_ARTICLE_LIMIT)

    async def daily_report():
        await analytics.generate_report("daily", today())

    async def weekly_report():
        await analytics.generate_report("weekly", today())

    async def monthly_report():
        # The trigger fires on days 28-31; only the real last day counts.
        day = today()
        if not is_last_day_of_month(day):
            return
        await analytics.generate_report("monthly", day)

    async def cleanup_logs():
        await logs.cleanup(settings.LOG_RETENTION_DAYS)

    return [
        ScheduledJob("feed-check", settings.feed_check_cron, check_feeds),
        ScheduledJob("word-frequency", WORD_FREQUENCY_CRON, word_frequency),
        ScheduledJob("daily-report", DAILY_REPORT_CRON, daily_report),
        ScheduledJob("weekly-report", WEEKLY_REPORT_CRON, weekly_report),
        ScheduledJob("monthly-report", MONTHLY_REPORT_CRON, monthly_report),
        ScheduledJob("log-cleanup", LOG_CLEANUP_CRON, cleanup_logs),
    ]
