"""
Periodic analytics over the stored articles: word frequency snapshots and
AI written daily/weekly/monthly reports.
"""
import logging
import re
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Any, Dict, Iterable, List, NamedTuple, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from ..core.config import Settings, settings as default_settings
from ..core.database import NewsDatabase, db as default_db
from ..core.errors import AIResponseError, NotFoundError
from ..models.entities import Article, Report, WordFrequency
from ..models.schemas import ReportHistoryItem, ReportResponse, WordFrequencyResponse
from ..utils.text import strip_html, turkish_lower
from .llm_service import LLMService, llm_service, parse_json_text

logger = logging.getLogger(__name__)

MIN_WORD_LENGTH = 3

TURKISH_STOP_WORDS = frozenset("""
acaba ama ancak arada artık aslında az bana bazen bazı bazıları belki ben beni benim
beri bile bir birçok biri birkaç birkez birşey birşeyi biz bize bizi bizim böyle böylece
bu buna bunda bundan bunlar bunları bunların bunu bunun burada bütün çok çünkü da daha
dahi de defa değil diğer diye dolayı dolayısıyla edecek eden ederek edilen ediliyor edilmesi
ediyor eğer en etmesi etti ettiği ettiğini gibi göre halen hangi hatta hem henüz hep hepsi
her herhangi herkes hiç hiçbir için ile ilgili ise işte itibaren itibariyle kadar karşın
kendi kendine kendini kendisi kendisine kendisini kez ki kim kimden kime kimi kimse mı mi
mu mü nasıl ne neden nedenle nerde nerede nereye niye niçin olan olarak oldu olduğu olduğunu
olduklarını olmadı olmadığı olmak olması olmayan olmaz olsa olsun olup olur olursa oluyor
ona onlar onları onların onu onun orada öyle pek rağmen sadece sanki şey şeyler şimdi şöyle
şu şuna şunda şundan şunları şunu tarafından üzere var vardı ve veya ya yani yapacak yapılan
yapılması yapıyor yaptı yaptığı yaptığını yaptıkları yerine yine yoksa zaten
""".split())

_WORD_RE = re.compile(r"[^\W\d_]+")
_JSON_OBJECT_RE = re.compile(r"\{[^{}]*\}")

REPORT_TYPE_NAMES = {"daily": "günlük", "weekly": "haftalık", "monthly": "aylık"}

REPORT_PROMPT = """Aşağıda {period} haber raporu için {count} adet haber metni bulunmaktadır.

Bu haberlerden yaklaşık 5000 karakterlik kapsamlı bir {period} rapor hazırla.

Rapor şu bölümleri içermelidir:
1. **Genel Özet**: Dönemin en önemli gelişmelerinin 2-3 paragraflık özeti
2. **Öne Çıkan Konular**: En çok işlenen haber konuları ve trendlerin kapsamlı analizi
3. **Pozitif/Negatif Gelişmeler**: Olumlu ve olumsuz haberlerin analizi
4. **Trend Analizi**: Dönem boyunca görülen eğilimler ve değişimler
5. **Önemli Olaylar**: Dönemin en dikkat çeken olayları

Son olarak kaç haberin olumlu, olumsuz ve nötr olduğunu say ve sonucu
{{"positive": 10, "negative": 5, "neutral": 7}} biçiminde tek bir JSON nesnesi olarak ekle.

Raporu Türkçe olarak, profesyonel ve anlaşılır bir dille hazırla.

HABER METİNLERİ:
{articles}
"""


class ReportWindow(NamedTuple):
    start: datetime
    end: datetime
    limit: int
    ascending: bool


def local_today(timezone: str, now: Optional[datetime] = None) -> date:
    """Calendar date in ``timezone``, the zone the report crons fire in."""
    now = now or datetime.now(dt_timezone.utc)
    return now.astimezone(ZoneInfo(timezone)).date()


def report_window(report_type: str, target: date) -> ReportWindow:
    """Publication window, article cap and ordering for a report of ``report_type``."""
    end = datetime.combine(target, time.max)
    if report_type == "daily":
        return ReportWindow(datetime.combine(target, time.min), end, 50, False)
    if report_type == "weekly":
        return ReportWindow(datetime.combine(target - timedelta(days=7), time.min), end, 200, True)
    if report_type == "monthly":
        return ReportWindow(datetime.combine(target - timedelta(days=30), time.min), end, 400, True)
    raise ValueError(f"Unknown report type: {report_type!r}")


def tokenize(text: str) -> List[str]:
    """Lowercased words of at least three letters that are not stop words."""
    return [
        word for word in _WORD_RE.findall(turkish_lower(text))
        if len(word) >= MIN_WORD_LENGTH and word not in TURKISH_STOP_WORDS
    ]


def extract_word_frequencies(texts: Iterable[str], top_k: int = 30) -> List[Dict[str, Any]]:
    """Rank words across ``texts`` by count; equal counts keep first-seen order."""
    counter: Counter = Counter()
    for text in texts:
        counter.update(tokenize(text))
    return [{"word": word, "count": count} for word, count in counter.most_common(top_k)]


def mentions_keyword(article: Article, keyword: str) -> bool:
    needle = turkish_lower(keyword)
    return needle in turkish_lower(article.title or "") or needle in turkish_lower(article.content or "")


def extract_sentiment(text: str) -> Optional[Dict[str, int]]:
    """Pull the positive/negative/neutral tally out of a report, if present."""
    for block in reversed(_JSON_OBJECT_RE.findall(text or "")):
        try:
            data = parse_json_text(block)
        except AIResponseError:
            continue
        if not isinstance(data, dict) or "positive" not in data:
            continue
        neutral = data.get("neutral", data.get("nötr", 0))
        try:
            return {
                "positive": int(data.get("positive", 0)),
                "negative": int(data.get("negative", 0)),
                "neutral": int(neutral),
            }
        except (TypeError, ValueError):
            continue
    return None


def _distribution(values: Iterable[str]) -> Dict[str, int]:
    return dict(Counter(values).most_common())


class AnalyticsService:
    def __init__(
        self,
        database: Optional[NewsDatabase] = None,
        llm: Optional[LLMService] = None,
        settings: Optional[Settings] = None,
    ):
        self.database = database or default_db
        self.llm = llm or llm_service
        self.settings = settings or default_settings

    # --- Word frequency ---------------------------------------------------

    async def analyze_word_frequency(self, limit: Optional[int] = None) -> Optional[WordFrequencyResponse]:
        """Snapshot the most frequent words of the latest ``limit`` articles.

        Returns ``None`` and stores nothing when there are no articles.
        """
        limit = limit or self.settings.WORD_FREQUENCY_ARTICLE_LIMIT
        with self.database.session() as session:
            rows = session.execute(
                select(Article.id, Article.title, Article.content)
                .order_by(Article.pub_date.desc(), Article.id.desc())
                .limit(limit)
            ).all()

            if not rows:
                logger.info("No articles found for word frequency analysis")
                return None

            words = extract_word_frequencies(
                (f"{title}\n{strip_html(content or '')}" for _, title, content in rows),
                self.settings.WORD_FREQUENCY_TOP_K,
            )
            snapshot = WordFrequency(
                words=words,
                article_ids=[row[0] for row in rows],
                article_count=len(rows),
            )
            session.add(snapshot)
            session.flush()
            result = WordFrequencyResponse.model_validate(snapshot)

        logger.info(f"Word frequency analysis completed for {len(rows)} articles, found {len(words)} words")
        return result

    async def get_latest_word_frequency(self) -> Optional[WordFrequencyResponse]:
        with self.database.session() as session:
            latest = session.scalar(
                select(WordFrequency).order_by(WordFrequency.created_at.desc(), WordFrequency.id.desc()).limit(1)
            )
            return WordFrequencyResponse.model_validate(latest) if latest else None

    # --- Reports ------------------------------------------------------------

    def _report_articles(self, window: ReportWindow, keyword: Optional[str]) -> List[Article]:
        order = Article.pub_date.asc() if window.ascending else Article.pub_date.desc()
        stmt = (
            select(Article)
            .options(selectinload(Article.source), selectinload(Article.categories))
            .where(Article.pub_date >= window.start, Article.pub_date <= window.end)
            .order_by(order, Article.id)
        )
        with self.database.session() as session:
            if not keyword:
                return list(session.scalars(stmt.limit(window.limit)))
            matching = [a for a in session.scalars(stmt) if mentions_keyword(a, keyword)]
            return matching[:window.limit]

    @staticmethod
    def _format_article(article: Article) -> str:
        published = article.pub_date.strftime("%d.%m.%Y") if article.pub_date else "Tarih belirtilmemiş"
        return (
            f"Başlık: {article.title}\n"
            f"İçerik: {strip_html(article.content or article.description or '')}\n"
            f"Kaynak: {article.source.name}\n"
            f"Tarih: {published}\n"
        )

    async def generate_report(
        self,
        report_type: str,
        target: Optional[date] = None,
        user_id: Optional[int] = None,
        keyword: Optional[str] = None,
    ) -> Optional[ReportResponse]:
        """Write and store an AI report for the window ending on ``target``.

        Returns ``None`` without calling the AI service when the window holds
        no articles.  AI failures propagate and nothing is stored.
        """
        target = target or local_today(self.settings.SCHEDULER_TIMEZONE)
        window = report_window(report_type, target)
        keyword = keyword if keyword is not None else self.settings.REPORT_KEYWORD

        articles = self._report_articles(window, keyword)
        if not articles:
            logger.info(f"No articles found for {report_type} report")
            return None

        prompt = REPORT_PROMPT.format(
            period=REPORT_TYPE_NAMES[report_type],
            count=len(articles),
            articles="\n---\n\n".join(self._format_article(a) for a in articles),
        )
        try:
            summary = await self.llm.generate_content(prompt)
        except Exception as e:
            logger.error(f"Failed to generate {report_type} report: {e}")
            raise

        analysis = {
            "totalArticles": len(articles),
            "dateRange": {"start": window.start.isoformat(), "end": window.end.isoformat()},
            "sources": _distribution(a.source.name for a in articles),
            "categories": _distribution(c.name for a in articles for c in a.categories),
            "sentiment": extract_sentiment(summary),
        }
        if keyword:
            analysis["keyword"] = keyword

        with self.database.session() as session:
            report = Report(
                type=report_type,
                start_date=window.start,
                end_date=window.end,
                article_count=len(articles),
                article_ids=[a.id for a in articles],
                summary=summary,
                analysis=analysis,
                user_id=user_id,
            )
            session.add(report)
            session.flush()
            result = ReportResponse.model_validate(report)

        logger.info(f"{report_type} report generated successfully for {len(articles)} articles")
        return result

    def _scoped(self, stmt, user_id: Optional[int]):
        if user_id is not None and self.settings.reports_per_user:
            return stmt.where(Report.user_id == user_id)
        return stmt

    async def get_latest_report(self, report_type: str, user_id: Optional[int] = None) -> Optional[ReportResponse]:
        stmt = self._scoped(select(Report).where(Report.type == report_type), user_id)
        with self.database.session() as session:
            report = session.scalar(stmt.order_by(Report.created_at.desc(), Report.id.desc()).limit(1))
            return ReportResponse.model_validate(report) if report else None

    async def get_report_history(
        self, report_type: str, limit: int = 10, user_id: Optional[int] = None
    ) -> List[ReportHistoryItem]:
        stmt = self._scoped(select(Report).where(Report.type == report_type), user_id)
        with self.database.session() as session:
            reports = session.scalars(stmt.order_by(Report.created_at.desc(), Report.id.desc()).limit(limit))
            return [ReportHistoryItem.model_validate(r) for r in reports]

    async def get_report_by_id(self, report_id: int, user_id: Optional[int] = None) -> ReportResponse:
        stmt = self._scoped(select(Report).where(Report.id == report_id), user_id)
        with self.database.session() as session:
            report = session.scalar(stmt)
            if report is None:
                raise NotFoundError("Report not found")
            return ReportResponse.model_validate(report)


# Global instance
analytics_service = AnalyticsService()
