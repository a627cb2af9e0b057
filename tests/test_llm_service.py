import json

import pytest

from newsai.core.categories import FALLBACK_CATEGORY
from newsai.core.config import Settings
from newsai.core.errors import AIConfigurationError, AIResponseError, AIServiceError
from newsai.core.llm_config import LLMManager
from newsai.models.ai import GroundingMetadata
from newsai.services.category_service import CategoryService
from newsai.services.llm_service import LLMService, add_citations, parse_json_text

from conftest import run


def grounded_body(text):
    return {
        "candidates": [{
            "content": {"role": "model", "parts": [{"text": text}]},
            "finishReason": "STOP",
            "groundingMetadata": {
                "webSearchQueries": ["gaziantep haberleri"],
                "groundingChunks": [
                    {"web": {"uri": "https://a.example.com", "title": "A"}},
                    {"web": {"uri": "https://b.example.com", "title": "B"}},
                ],
                "groundingSupports": [
                    {"segment": {"startIndex": 0, "endIndex": 5}, "groundingChunkIndices": [0]},
                    {"segment": {"startIndex": 6, "endIndex": 11}, "groundingChunkIndices": [0, 1]},
                ],
            },
        }],
    }


class FakeResponse:
    def __init__(self, status, body=None, text=""):
        self.status = status
        self.body = body
        self._text = text

    async def json(self):
        if isinstance(self.body, str):
            return json.loads(self.body)
        return self.body

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    closed = False

    def __init__(self, responses):
        self.responses = list(responses)
        self.urls = []

    def post(self, url, headers=None, json=None):
        self.urls.append(url)
        return self.responses.pop(0)

    async def close(self):
        self.closed = True


@pytest.fixture
def service():
    LLMManager._exhausted_models.clear()
    settings = Settings()
    settings.GEMINI_API_KEY = "test-key"
    yield LLMService(settings)
    LLMManager._exhausted_models.clear()


def test_parse_json_text_strips_fences_and_repairs():
    assert parse_json_text('```json\n{"Spor": "Spor"}\n```') == {"Spor": "Spor"}
    assert parse_json_text("{'a': 1,}") == {"a": 1}
    with pytest.raises(AIResponseError):
        parse_json_text("")
    with pytest.raises(AIResponseError):
        parse_json_text("bu bir json değil")


def test_add_citations_inserts_from_the_end():
    metadata = GroundingMetadata.model_validate(grounded_body("")["candidates"][0]["groundingMetadata"])
    cited = add_citations("Hello world!", metadata)
    assert cited == (
        "Hello[1](https://a.example.com) "
        "world[1](https://a.example.com), [2](https://b.example.com)!"
    )


def test_disabled_mode_raises_configuration_error():
    settings = Settings()
    settings.GEMINI_API_KEY = None
    disabled = LLMService(settings)

    assert disabled.is_available is False
    with pytest.raises(AIConfigurationError):
        run(disabled.generate_content("merhaba"))


def test_search_web_returns_sources_and_citations(service):
    service.session = FakeSession([FakeResponse(200, grounded_body("Hello world!"))])

    result = run(service.search_web("gaziantep"))

    assert result.text == "Hello world!"
    assert [c.web.uri for c in result.sources] == ["https://a.example.com", "https://b.example.com"]
    assert result.search_queries == ["gaziantep haberleri"]
    assert result.text_with_citations.startswith("Hello[1](https://a.example.com)")


def test_malformed_payload_raises_response_error(service):
    service.session = FakeSession([FakeResponse(200, {"candidates": "oops"})])
    with pytest.raises(AIResponseError):
        run(service.generate_content("merhaba"))


def test_empty_answer_raises_response_error(service):
    service.session = FakeSession([FakeResponse(200, {"candidates": []})])
    with pytest.raises(AIResponseError):
        run(service.generate_content("merhaba"))


def test_quota_error_falls_back_to_next_model(service):
    session = FakeSession([
        FakeResponse(429, text="quota exceeded"),
        FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": "Spor"}]}}]}),
    ])
    service.session = session

    assert run(service.generate_content("merhaba")) == "Spor"
    first_model = service.models_ranked[0]
    assert first_model in session.urls[0]
    assert LLMManager.is_exhausted(first_model)


def test_all_models_failing_raises_service_error(service):
    service.session = FakeSession([FakeResponse(500, text="boom") for _ in service.models_ranked])
    with pytest.raises(AIServiceError):
        run(service.generate_content("merhaba"))


def test_truncated_body_raises_response_error(service):
    service.session = FakeSession([FakeResponse(200, '{"candidates": [')])
    with pytest.raises(AIResponseError):
        run(service.generate_content("merhaba"))


def test_truncated_body_falls_back_to_default_category(service, database):
    service.session = FakeSession([FakeResponse(200, '{"candidates": [')])
    categories = CategoryService(database=database, llm=service)

    assert run(categories.normalize_category("Zeytinyağı Festivali")) == FALLBACK_CATEGORY


def test_config_uses_the_configured_model_first():
    settings = Settings()
    settings.GEMINI_API_KEY = "test-key"
    settings.LLM_MODEL = "gemini-2.0-flash"

    config = LLMManager.get_config(settings)
    assert (config.model, config.api_key) == ("gemini-2.0-flash", "test-key")
    assert LLMManager.ranked_models(config.model)[0] == "gemini-2.0-flash"

    settings.LLM_MODEL = "gpt-4"
    with pytest.raises(ValueError):
        LLMManager.get_config(settings)
