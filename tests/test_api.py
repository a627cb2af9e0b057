import pytest
from fastapi.testclient import TestClient

from newsai.core.database import db
from newsai.main import app
from newsai.models.ai import GroundedSearchResult, GroundingChunk, WebSource
from newsai.services.analytics_service import analytics_service
from newsai.services.auth_service import auth_service
from newsai.services.category_service import category_service
from newsai.services.rss_service import rss_service
from newsai.services.summary_service import summary_service

from conftest import FakeLLM, FakeParser, make_item, run

FEED_URL = "https://haber.example.com/rss"


class SearchingLLM(FakeLLM):
    async def search_web(self, prompt):
        self.prompts.append(prompt)
        return GroundedSearchResult(
            text="Gaziantep'te bugün.",
            sources=[GroundingChunk(web=WebSource(uri="https://kaynak.example.com", title="Kaynak"))],
            search_queries=["gaziantep bugün"],
            text_with_citations="Gaziantep'te bugün.[1](https://kaynak.example.com)",
        )


@pytest.fixture
def parser(monkeypatch):
    parser = FakeParser({FEED_URL: [
        make_item("https://haber.example.com/1", title="Gaziantep festivali", categories=["Kültür"]),
        make_item("https://haber.example.com/2", title="Derbi heyecanı", categories=["FUTBOL"]),
    ]})
    monkeypatch.setattr(rss_service, "parser", parser)
    return parser


@pytest.fixture
def llm(monkeypatch):
    llm = SearchingLLM(text='Rapor metni {"positive": 1, "negative": 0, "neutral": 1}')
    monkeypatch.setattr(analytics_service, "llm", llm)
    monkeypatch.setattr(summary_service, "llm", llm)
    return llm


@pytest.fixture
def client():
    run(db.reset_db())
    run(category_service.initialize_standard_categories())
    return TestClient(app)


def login(client, username, role):
    run(auth_service.create_user(username, "gizli123", role))
    response = client.post("/api/auth/login", json={"username": username, "password": "gizli123"})
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


@pytest.fixture
def admin(client):
    return login(client, "admin", "admin")


@pytest.fixture
def viewer(client):
    return login(client, "viewer", "viewer")


def test_health(client):
    body = client.get("/health").json()
    assert body["success"] is True
    assert body["ai_available"] is False


def test_protected_routes_need_a_token(client):
    response = client.get("/api/articles")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Access token is required"}

    response = client.get("/api/feeds", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 403
    assert response.json()["success"] is False


def test_register_login_and_profile(client):
    response = client.post("/api/auth/register", json={"username": "Ayse", "password": "gizli123"})
    assert response.status_code == 201
    assert response.json()["data"]["username"] == "ayse"

    assert client.post("/api/auth/register", json={"username": "ayse", "password": "gizli123"}).status_code == 409

    response = client.post("/api/auth/login", json={"username": "ayse", "password": "yanlis"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"

    token = client.post("/api/auth/login", json={"username": "ayse", "password": "gizli123"}).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}
    assert client.get("/api/auth/profile", headers=headers).json()["data"]["role"] == "viewer"
    assert client.get("/api/auth/verify", headers=headers).json()["data"]["username"] == "ayse"


def test_validation_errors_use_the_envelope(client):
    response = client.post("/api/auth/register", json={"username": "ab", "password": "1"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_role_update_is_admin_only(client, admin, viewer):
    user_id = client.get("/api/auth/profile", headers=viewer).json()["data"]["id"]

    denied = client.put(f"/api/auth/users/{user_id}/role", json={"role": "admin"}, headers=viewer)
    assert denied.status_code == 403
    assert denied.json() == {"success": False, "error": "Insufficient permissions"}

    response = client.put(f"/api/auth/users/{user_id}/role", json={"role": "editor"}, headers=admin)
    assert response.status_code == 200
    assert response.json()["data"]["role"] == "editor"


def test_feed_management(client, admin, parser):
    response = client.post("/api/feeds", json={"name": "Haber", "url": FEED_URL}, headers=admin)
    assert response.status_code == 201
    source_id = response.json()["data"]["id"]

    assert client.post("/api/feeds", json={"name": "Tekrar", "url": FEED_URL}, headers=admin).status_code == 400

    feeds = client.get("/api/feeds", headers=admin).json()["data"]
    assert [(f["name"], f["article_count"]) for f in feeds] == [("Haber", 2)]

    assert client.post(f"/api/feeds/{source_id}/check", headers=admin).json()["data"] == {"new_articles": 0}

    summary = client.post("/api/feeds/fetch-all", headers=admin).json()["data"]
    assert (summary["total_new_articles"], summary["total_sources"]) == (0, 1)

    response = client.put(f"/api/feeds/{source_id}", json={"is_active": False}, headers=admin)
    assert response.json()["data"]["is_active"] is False

    assert client.delete(f"/api/feeds/{source_id}", headers=admin).json()["success"] is True
    assert client.delete(f"/api/feeds/{source_id}", headers=admin).status_code == 404


def test_article_queries(client, admin, parser):
    client.post("/api/feeds", json={"name": "Haber", "url": FEED_URL}, headers=admin)

    page = client.get("/api/articles", params={"limit": 1}, headers=admin).json()["data"]
    assert page["pagination"] == {"page": 1, "limit": 1, "total": 2, "total_pages": 2}
    assert page["articles"][0]["source"]["name"] == "Haber"

    found = client.get("/api/articles/search", params={"q": "derbi"}, headers=admin).json()["data"]
    assert [a["title"] for a in found["articles"]] == ["Derbi heyecanı"]
    assert [c["name"] for c in found["articles"][0]["categories"]] == ["Spor"]

    by_category = client.get("/api/articles", params={"categories": "Kültür-Sanat"}, headers=admin).json()["data"]
    assert [a["title"] for a in by_category["articles"]] == ["Gaziantep festivali"]

    article_id = found["articles"][0]["id"]
    assert client.get(f"/api/articles/{article_id}", headers=admin).json()["data"]["id"] == article_id
    response = client.get("/api/articles/9999", headers=admin)
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Article not found"}

    stats = client.get("/api/articles/statistics", headers=admin).json()["data"]
    assert (stats["total_articles"], stats["total_sources"], stats["articles_last_24h"]) == (2, 1, 2)

    assert len(client.get("/api/articles/latest", headers=admin).json()["data"]) == 2
    assert len(client.get("/api/articles/trending", headers=admin).json()["data"]) == 2

    categories = {c["name"]: c["article_count"] for c in client.get("/api/articles/categories", headers=admin).json()["data"]}
    assert categories["Spor"] == 1
    assert categories["Ekonomi"] == 0


def test_analytics_endpoints(client, admin, parser, llm):
    client.post("/api/feeds", json={"name": "Haber", "url": FEED_URL}, headers=admin)

    snapshot = client.post("/api/analytics/wordfrequency/generate", json={"limit": 5}, headers=admin).json()["data"]
    assert snapshot["article_count"] == 2
    assert client.get("/api/analytics/wordfrequency/latest", headers=admin).json()["data"]["id"] == snapshot["id"]

    response = client.post("/api/analytics/report/generate", json={"type": "daily", "date": "2025-01-06"}, headers=admin)
    report = response.json()["data"]
    assert report["article_count"] == 2
    assert report["analysis"]["sentiment"] == {"positive": 1, "negative": 0, "neutral": 1}

    empty = client.post("/api/analytics/report/generate", json={"type": "daily", "date": "2020-01-01"}, headers=admin)
    assert empty.json()["data"] is None

    assert client.get("/api/analytics/report/latest", params={"type": "daily"}, headers=admin).json()["data"]["id"] == report["id"]
    history = client.get("/api/analytics/report/history", params={"type": "daily"}, headers=admin).json()["data"]
    assert [h["id"] for h in history] == [report["id"]]
    assert client.get(f"/api/analytics/report/{report['id']}", headers=admin).json()["data"]["summary"].startswith("Rapor")
    assert client.get("/api/analytics/report/9999", headers=admin).status_code == 404


def test_ai_endpoints(client, admin, parser, llm):
    client.post("/api/feeds", json={"name": "Haber", "url": FEED_URL}, headers=admin)

    bad = client.post(
        "/api/ai/summarize",
        json={"start_date": "2025-01-07T00:00:00", "end_date": "2025-01-06T00:00:00"},
        headers=admin,
    )
    assert bad.status_code == 400

    response = client.post(
        "/api/ai/summarize",
        json={"start_date": "2025-01-06T00:00:00", "end_date": "2025-01-06T23:59:59"},
        headers=admin,
    )
    assert response.json()["data"]["summary"].startswith("Rapor")
    summaries = client.get("/api/ai/summaries", headers=admin).json()["data"]
    assert summaries[0]["article_count"] == 2

    result = client.post("/api/ai/search", json={"query": "Gaziantep"}, headers=admin).json()["data"]
    assert result["sources"] == [{"uri": "https://kaynak.example.com", "title": "Kaynak"}]
    assert result["sources_count"] == 1
    history = client.get("/api/ai/search-history", headers=admin).json()["data"]
    assert history[0]["query"] == "Gaziantep"
    assert history[0]["result"].endswith("(https://kaynak.example.com)")


def test_ai_errors_map_to_bad_gateway(client, admin, parser):
    # The global AI client has no key in tests.
    client.post("/api/feeds", json={"name": "Haber", "url": FEED_URL}, headers=admin)
    response = client.post("/api/analytics/report/generate", json={"type": "daily", "date": "2025-01-06"}, headers=admin)
    assert response.status_code == 503
    assert response.json()["success"] is False
