"""
LLM Configuration - Gemini with Dynamic Model Failover
"""
import time
from typing import Dict, List, Optional
from dataclasses import dataclass

from .config import Settings, settings as default_settings


@dataclass
class LLMConfig:
    provider: str
    model: str
    api_key: str
    base_url: Optional[str] = None
    max_tokens: int = 8192
    temperature: float = 0.7


class LLMManager:
    # Track temporarily exhausted models with a cooldown period
    _exhausted_models: Dict[str, float] = {}
    COOLDOWN_SECONDS = 300

    # Model ids and display names, in fallback order
    PROVIDERS = {
        "gemini": {
            "name": "Google Gemini",
            "base_url": "https://generativelanguage.googleapis.com/v1beta",
            "models": {
                "gemini-2.5-flash": "Gemini 2.5 Flash",
                "gemini-2.0-flash": "Gemini 2.0 Flash",
                "gemini-2.5-flash-lite": "Gemini 2.5 Flash-Lite",
            },
        }
    }

    @classmethod
    def get_config(cls, settings: Optional[Settings] = None) -> LLMConfig:
        settings = settings or default_settings
        key = settings.GEMINI_API_KEY
        if not key:
            raise ValueError("Missing GEMINI_API_KEY")

        models = cls.PROVIDERS["gemini"]["models"]
        model = settings.LLM_MODEL
        if model not in models:
            raise ValueError(f"Unsupported model: {model}")

        return LLMConfig(
            provider="gemini",
            model=model,
            api_key=key,
            base_url=cls.PROVIDERS["gemini"]["base_url"],
            max_tokens=settings.LLM_MAX_TOKENS,
            temperature=settings.LLM_TEMPERATURE,
        )

    @classmethod
    def ranked_models(cls, preferred: str) -> List[str]:
        """Return the configured model first, then the rest in table order."""
        models = list(cls.PROVIDERS["gemini"]["models"])
        if preferred in models:
            models.remove(preferred)
            models.insert(0, preferred)
        return models

    @classmethod
    def is_exhausted(cls, model: str) -> bool:
        until = cls._exhausted_models.get(model)
        if until is None:
            return False
        if time.time() < until:
            return True
        del cls._exhausted_models[model]
        return False

    @classmethod
    def mark_exhausted(cls, model: str) -> None:
        cls._exhausted_models[model] = time.time() + cls.COOLDOWN_SECONDS

