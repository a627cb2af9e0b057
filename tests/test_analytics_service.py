from datetime import date, datetime, time

import pytest
from sqlalchemy import func, select

from newsai.core.errors import AIServiceError, NotFoundError
from newsai.models.entities import Article, Category, FeedSource, Report, User, WordFrequency
from newsai.services.analytics_service import (
    AnalyticsService,
    extract_sentiment,
    extract_word_frequencies,
    report_window,
    tokenize,
)

from conftest import FakeLLM, run

REPORT_TEXT = """**Genel Özet**
Gaziantep'te festival haftası.

{"positive": 2, "negative": 1, "neutral": 0}
"""


def seed(database, articles):
    """Insert ``(title, content, pub_date, category)`` tuples under one source."""
    with database.session() as session:
        source = FeedSource(name="Yerel Haber", url="https://yerel.example.com/rss")
        session.add(source)
        session.flush()
        ids = []
        for i, (title, content, pub_date, category) in enumerate(articles):
            article = Article(
                title=title, content=content, link=f"https://yerel/{i}", pub_date=pub_date, source_id=source.id,
            )
            if category:
                existing = session.scalar(select(Category).where(Category.name == category))
                article.categories = [existing or Category(name=category)]
            session.add(article)
            session.flush()
            ids.append(article.id)
        return ids


@pytest.fixture
def llm():
    return FakeLLM(text=REPORT_TEXT)


@pytest.fixture
def analytics(database, llm, settings):
    return AnalyticsService(database=database, llm=llm, settings=settings)


def test_tokenize_drops_stop_words_numbers_and_short_words():
    assert tokenize("Gaziantep ve bir 2024 ab <p> İSTANBUL'da") == ["gaziantep", "istanbul"]


def test_word_ranking_keeps_first_seen_order_on_ties():
    words = extract_word_frequencies(
        ["Festival festival Gaziantep ve bir 2024", "Gaziantep zeytin"], top_k=30,
    )
    assert words == [
        {"word": "festival", "count": 2},
        {"word": "gaziantep", "count": 2},
        {"word": "zeytin", "count": 1},
    ]
    assert extract_word_frequencies(["alfa beta gama"], top_k=2) == [
        {"word": "alfa", "count": 1},
        {"word": "beta", "count": 1},
    ]


def test_word_frequency_without_articles_stores_nothing(analytics, database):
    assert run(analytics.analyze_word_frequency(10)) is None
    with database.session() as session:
        assert session.scalar(select(func.count(WordFrequency.id))) == 0


def test_word_frequency_uses_latest_articles(analytics, database):
    ids = seed(database, [
        ("Eski haber", "<p>deprem deprem</p>", datetime(2025, 1, 1), None),
        ("Festival başladı", "<p>festival coşkusu</p>", datetime(2025, 1, 3), None),
        ("Festival sürüyor", "festival", datetime(2025, 1, 2), None),
    ])

    snapshot = run(analytics.analyze_word_frequency(2))

    assert snapshot.article_ids == [ids[1], ids[2]]
    assert snapshot.article_count == 2
    assert snapshot.words[0].word == "festival"
    assert snapshot.words[0].count == 4
    assert "deprem" not in [w.word for w in snapshot.words]
    assert run(analytics.get_latest_word_frequency()).id == snapshot.id


def test_report_windows():
    day = date(2025, 3, 15)
    daily = report_window("daily", day)
    assert (daily.start, daily.end) == (datetime(2025, 3, 15), datetime.combine(day, time.max))
    assert (daily.limit, daily.ascending) == (50, False)

    weekly = report_window("weekly", day)
    assert weekly.start == datetime(2025, 3, 8)
    assert (weekly.limit, weekly.ascending) == (200, True)

    monthly = report_window("monthly", day)
    assert monthly.start == datetime(2025, 2, 13)
    assert (monthly.limit, monthly.ascending) == (400, True)

    with pytest.raises(ValueError):
        report_window("yearly", day)


def test_daily_report_is_persisted(analytics, database, llm):
    ids = seed(database, [
        ("Sabah haberi", "içerik", datetime(2025, 3, 15, 8), "Yerel"),
        ("Akşam haberi", "içerik", datetime(2025, 3, 15, 20), "Spor"),
        ("Dünkü haber", "içerik", datetime(2025, 3, 14, 20), "Spor"),
    ])

    report = run(analytics.generate_report("daily", date(2025, 3, 15), user_id=None))

    assert report.article_ids == [ids[1], ids[0]]
    assert report.article_count == 2
    assert report.summary == REPORT_TEXT
    assert report.analysis["totalArticles"] == 2
    assert report.analysis["sources"] == {"Yerel Haber": 2}
    assert report.analysis["categories"] == {"Spor": 1, "Yerel": 1}
    assert report.analysis["sentiment"] == {"positive": 2, "negative": 1, "neutral": 0}
    assert "günlük" in llm.prompts[0]
    assert "Dünkü haber" not in llm.prompts[0]


def test_weekly_report_orders_oldest_first(analytics, database):
    ids = seed(database, [
        ("Yeni", "x", datetime(2025, 3, 14), None),
        ("Eski", "x", datetime(2025, 3, 9), None),
        ("Çok eski", "x", datetime(2025, 3, 1), None),
    ])
    report = run(analytics.generate_report("weekly", date(2025, 3, 15)))
    assert report.article_ids == [ids[1], ids[0]]


def test_empty_window_produces_no_report(analytics, database, llm):
    assert run(analytics.generate_report("daily", date(2025, 3, 15))) is None
    assert llm.prompts == []
    with database.session() as session:
        assert session.scalar(select(func.count(Report.id))) == 0


def test_keyword_filter(analytics, database, llm):
    ids = seed(database, [
        ("GAZİANTEP'te yol çalışması", "x", datetime(2025, 3, 15, 9), None),
        ("Ankara gündemi", "x", datetime(2025, 3, 15, 10), None),
        ("Ekonomi", "Gaziantep ihracatı arttı", datetime(2025, 3, 15, 11), None),
    ])
    report = run(analytics.generate_report("daily", date(2025, 3, 15), keyword="gaziantep"))

    assert sorted(report.article_ids) == [ids[0], ids[2]]
    assert report.analysis["keyword"] == "gaziantep"


def test_ai_failure_propagates_and_stores_nothing(database, settings):
    seed(database, [("Haber", "x", datetime(2025, 3, 15, 9), None)])
    analytics = AnalyticsService(database=database, llm=FakeLLM(error=AIServiceError("quota")), settings=settings)

    with pytest.raises(AIServiceError):
        run(analytics.generate_report("daily", date(2025, 3, 15)))
    with database.session() as session:
        assert session.scalar(select(func.count(Report.id))) == 0


def test_report_lookup_scope(analytics, database, settings):
    with database.session() as session:
        session.add_all([User(id=1, username="ayse", password="x"), User(id=2, username="mehmet", password="x")])
    seed(database, [("Haber", "x", datetime(2025, 3, 15, 9), None)])
    report = run(analytics.generate_report("daily", date(2025, 3, 15), user_id=1))

    assert run(analytics.get_latest_report("daily", user_id=2)).id == report.id
    assert [r.id for r in run(analytics.get_report_history("daily", 10, user_id=2))] == [report.id]
    assert run(analytics.get_latest_report("weekly")) is None

    settings.REPORT_SCOPE = "user"
    assert run(analytics.get_latest_report("daily", user_id=2)) is None
    assert run(analytics.get_latest_report("daily", user_id=1)).id == report.id
    with pytest.raises(NotFoundError):
        run(analytics.get_report_by_id(report.id, user_id=2))


def test_extract_sentiment():
    assert extract_sentiment('... {"positive": 3, "negative": 1, "nötr": 4}') == {
        "positive": 3, "negative": 1, "neutral": 4,
    }
    assert extract_sentiment("no tally here") is None
    assert extract_sentiment('{"foo": 1}') is None
