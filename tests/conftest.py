import asyncio
import os

# Configure the global settings before any application module is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEMINI_API_KEY"] = ""
os.environ["RSS_FEEDS"] = ""
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["CHECK_FEEDS_ON_STARTUP"] = "false"
os.environ["LOG_TO_DATABASE"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REPORT_KEYWORD"] = ""
os.environ["REPORT_SCOPE"] = "global"

import pytest

from newsai.core.config import Settings
from newsai.core.database import NewsDatabase
from newsai.core.errors import AIServiceError, FetchError
from newsai.models.feed_items import RawFeedItem
from newsai.services.category_service import CategoryService


class FakeLLM:
    """Stands in for ``LLMService``; answers come from queues set by the test."""

    def __init__(self, text="", json_answer=None, error=None):
        self.text = text
        self.json_answer = json_answer
        self.error = error
        self.prompts = []
        self.json_prompts = []

    @property
    def is_available(self):
        return True

    async def generate_content(self, prompt, **kwargs):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.text

    async def generate_json(self, prompt, **kwargs):
        self.json_prompts.append(prompt)
        if self.error:
            raise self.error
        return self.json_answer

    async def close(self):
        pass


class FakeParser:
    """Serves canned feed items per URL; an exception value is raised instead."""

    def __init__(self, feeds=None):
        self.feeds = feeds or {}
        self.calls = []

    async def parse_feed(self, url):
        self.calls.append(url)
        result = self.feeds.get(url)
        if result is None:
            raise FetchError(url, "HTTP 404")
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def close(self):
        pass


def make_item(link, title="Haber", categories=None, pub_date="Mon, 06 Jan 2025 10:00:00 GMT", **kwargs):
    return RawFeedItem(
        title=title,
        link=link,
        pub_date=pub_date,
        description=kwargs.pop("description", f"{title} açıklaması"),
        categories=categories or [],
        **kwargs,
    )


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def database():
    database = NewsDatabase("sqlite://")
    run(database.init_db())
    yield database
    database.engine.dispose()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def fake_llm():
    return FakeLLM(error=AIServiceError("AI disabled in tests"))


@pytest.fixture
def category_service(database, fake_llm):
    return CategoryService(database=database, llm=fake_llm)
