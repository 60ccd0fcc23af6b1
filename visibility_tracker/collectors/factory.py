"""Provider selection from settings."""

import logging

from visibility_tracker.collectors.llm_base import BaseLlmProvider
from visibility_tracker.collectors.llm_gemini import GeminiProvider
from visibility_tracker.collectors.llm_ollama import OllamaProvider
from visibility_tracker.collectors.llm_openai import GroqProvider, OpenAiProvider, OpenRouterProvider
from visibility_tracker.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def _build(name: str, cfg: Settings) -> BaseLlmProvider | None:
    timeout = cfg.provider_timeout_seconds
    if name == "openrouter" and cfg.openrouter_api_key:
        return OpenRouterProvider(cfg.openrouter_api_key, timeout=max(timeout, 120.0))
    if name == "groq" and cfg.groq_api_key:
        return GroqProvider(cfg.groq_api_key, timeout=timeout)
    if name == "gemini" and cfg.gemini_api_key:
        return GeminiProvider(cfg.gemini_api_key, timeout=timeout)
    if name == "openai" and cfg.openai_api_key:
        return OpenAiProvider(cfg.openai_api_key, timeout=timeout)
    if name == "ollama" and cfg.ollama_url:
        return OllamaProvider(cfg.ollama_url, cfg.ollama_model, timeout=timeout)
    return None


# Order tried when the preferred provider has no key
FALLBACK_ORDER = ("openrouter", "groq", "gemini", "openai")


def create_provider(cfg: Settings | None = None) -> BaseLlmProvider | None:
    """Pick the configured provider, falling back to any provider with a key."""
    cfg = cfg or default_settings

    preferred = _build(cfg.ai_provider.lower(), cfg)
    if preferred is not None:
        logger.info("Using %s provider (%s)", preferred.provider, preferred.model_name)
        return preferred

    for name in FALLBACK_ORDER:
        provider = _build(name, cfg)
        if provider is not None:
            logger.info(
                "Preferred provider %r not configured; falling back to %s (%s)",
                cfg.ai_provider,
                provider.provider,
                provider.model_name,
            )
            return provider

    logger.warning("No AI provider configured; analysis runs will be rejected")
    return None
