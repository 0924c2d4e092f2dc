# Multi-LLM provider configuration
from pydantic import BaseModel
from typing import List, Optional
from config.settings import Settings, get_settings


class ProviderConfig(BaseModel):
    name: str
    enabled: bool
    base_url: str
    model: str
    api_key: Optional[str] = None
    requires_api_key: bool = True
    local: bool = False
    max_tokens: int = 4000
    temperature: float = 0.0
    timeout: float = 15.0


def get_provider_configs(settings: Optional[Settings] = None) -> List[ProviderConfig]:
    """Provider table in fallback order: fast/free first, paid last"""
    settings = settings or get_settings()

    return [
        # PRIMARY: Groq (free tier, OpenAI-compatible)
        ProviderConfig(
            name='groq',
            enabled=settings.llm_groq_enabled,
            base_url=settings.groq_base_url,
            model=settings.groq_model,
            api_key=settings.groq_api_key or None,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout_seconds,
        ),
        # FALLBACK 1: local Ollama, no key but must be reachable
        ProviderConfig(
            name='ollama',
            enabled=settings.llm_ollama_enabled,
            base_url=settings.ollama_base_url,
            model=settings.ollama_model,
            requires_api_key=False,
            local=True,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout_seconds,
        ),
        # FALLBACK 2: OpenAI (paid)
        ProviderConfig(
            name='openai',
            enabled=settings.llm_openai_enabled,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            api_key=settings.openai_api_key or None,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout_seconds,
        ),
    ]
