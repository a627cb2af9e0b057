"""
Generative AI client - Gemini ``generateContent`` over aiohttp
"""
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

import aiohttp
import json_repair
from pydantic import ValidationError

from ..core.config import Settings, settings as default_settings
from ..core.errors import AIConfigurationError, AIResponseError, AIServiceError
from ..core.llm_config import LLMConfig, LLMManager
from ..models.ai import GenerateContentResponse, GroundedSearchResult, GroundingMetadata

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*|```", re.IGNORECASE)


def parse_json_text(text: str) -> Any:
    """Decode a JSON object or array from model output.

    Markdown fences are removed and minor syntax errors repaired; anything
    that still does not decode to a container raises ``AIResponseError``.
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    if not cleaned:
        raise AIResponseError("Empty response where JSON was expected")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    repaired = json_repair.loads(cleaned)
    if not isinstance(repaired, (dict, list)) or not repaired:
        raise AIResponseError(f"Response is not valid JSON: {cleaned[:200]!r}")
    return repaired


def add_citations(text: str, metadata: GroundingMetadata) -> str:
    """Insert ``[n](uri)`` markers after each grounded segment.

    Supports are applied from the highest end index down so earlier insertions
    do not shift later offsets.
    """
    chunks = metadata.grounding_chunks
    supports = sorted(
        metadata.grounding_supports,
        key=lambda s: (s.segment.end_index or 0) if s.segment else 0,
        reverse=True,
    )
    for support in supports:
        end_index = support.segment.end_index if support.segment else None
        if end_index is None or not support.grounding_chunk_indices:
            continue
        links = []
        for i in support.grounding_chunk_indices:
            if 0 <= i < len(chunks) and chunks[i].web is not None:
                links.append(f"[{i + 1}]({chunks[i].web.uri})")
        if links:
            text = text[:end_index] + ", ".join(links) + text[end_index:]
    return text


class LLMService:
    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or default_settings
        self.config: Optional[LLMConfig]
        try:
            self.config = LLMManager.get_config(settings)
        except ValueError as e:
            logger.warning(f"LLM config load failed: {e}; running in disabled mode.")
            self.config = None

        self.session: Optional[aiohttp.ClientSession] = None
        self.models_ranked: List[str] = []

        if self.config:
            self.models_ranked = LLMManager.ranked_models(self.config.model)
            logger.info(f"LLM initialized with model fallback order: {self.models_ranked}")
        else:
            logger.info("LLM initialized in disabled mode.")

    @property
    def is_available(self) -> bool:
        return bool(self.config and self.config.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def _make_request(self, payload: Dict[str, Any]) -> GenerateContentResponse:
        if not self.is_available:
            raise AIConfigurationError("LLM is not configured.")

        session = await self._get_session()
        last_error: Optional[Exception] = None

        for model_name in self.models_ranked or [self.config.model]:
            if LLMManager.is_exhausted(model_name):
                continue

            headers = {
                "x-goog-api-key": self.config.api_key,
                "Content-Type": "application/json",
            }
            url = f"{self.config.base_url}/models/{model_name}:generateContent"

            try:
                async with session.post(url, headers=headers, json=payload) as response:
                    if response.status == 200:
                        try:
                            body = await response.json()
                            return GenerateContentResponse.model_validate(body)
                        except (ValueError, aiohttp.ContentTypeError, ValidationError) as e:
                            raise AIResponseError(f"Unexpected response from {model_name}: {e}") from e
                    error_text = await response.text()
                    logger.warning(f"{model_name} failed [{response.status}]: {error_text[:500]}")
                    if response.status == 429 or "quota" in error_text.lower():
                        LLMManager.mark_exhausted(model_name)
                    last_error = AIServiceError(f"LLM error {response.status}: {error_text[:500]}")
            except AIResponseError:
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning(f"{model_name} request failed: {e}")
                last_error = AIServiceError(str(e))

        logger.error(f"All LLM models failed: {last_error}")
        raise last_error or AIServiceError("All LLM requests failed.")

    def _payload(self, prompt: str, **kwargs) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {
            "maxOutputTokens": kwargs.get("max_tokens", self.config.max_tokens),
            "temperature": kwargs.get("temperature", self.config.temperature),
        }
        if kwargs.get("json_mode", False):
            generation_config["responseMimeType"] = "application/json"
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if kwargs.get("tools"):
            payload["tools"] = kwargs["tools"]
        return payload

    # ------------------------------------------------------------

    async def generate_content(self, prompt: str, **kwargs) -> str:
        """Send a single-turn prompt and return the response text."""
        if not self.is_available:
            raise AIConfigurationError("LLM is not configured.")
        response = await self._make_request(self._payload(prompt, **kwargs))
        text = response.first_text()
        if not text.strip():
            raise AIResponseError("Model returned no text")
        return text

    async def generate_json(self, prompt: str, **kwargs) -> Any:
        text = await self.generate_content(prompt, json_mode=True, **kwargs)
        return parse_json_text(text)

    async def search_web(self, prompt: str) -> GroundedSearchResult:
        """Run ``prompt`` with Google Search grounding enabled."""
        if not self.is_available:
            raise AIConfigurationError("LLM is not configured.")
        response = await self._make_request(
            self._payload(prompt, temperature=0.5, tools=[{"google_search": {}}])
        )
        text = response.first_text()
        if not text.strip():
            raise AIResponseError("Could not extract text from grounded response")

        metadata = response.candidates[0].grounding_metadata or GroundingMetadata()
        if not metadata.grounding_chunks:
            logger.info("Grounded search returned no grounding metadata")

        return GroundedSearchResult(
            text=text,
            sources=metadata.grounding_chunks,
            search_queries=metadata.web_search_queries,
            text_with_citations=add_citations(text, metadata),
        )


# Global instance
llm_service = LLMService()
