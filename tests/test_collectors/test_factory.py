"""Tests for provider selection."""

from visibility_tracker.collectors.factory import create_provider
from visibility_tracker.collectors.llm_gemini import GeminiProvider
from visibility_tracker.collectors.llm_ollama import OllamaProvider
from visibility_tracker.collectors.llm_openai import GroqProvider, OpenAiProvider, OpenRouterProvider


def _cfg(test_settings, **overrides):
    return test_settings.model_copy(update=overrides)


class TestCreateProvider:
    def test_preferred_provider_with_key(self, test_settings):
        provider = create_provider(_cfg(test_settings, ai_provider="openai", openai_api_key="sk", groq_api_key="gsk"))
        assert isinstance(provider, OpenAiProvider)

    def test_preferred_name_is_case_insensitive(self, test_settings):
        provider = create_provider(_cfg(test_settings, ai_provider="Gemini", gemini_api_key="gm"))
        assert isinstance(provider, GeminiProvider)

    def test_falls_back_in_order(self, test_settings):
        provider = create_provider(_cfg(test_settings, ai_provider="gemini", groq_api_key="gsk", openai_api_key="sk"))
        assert isinstance(provider, GroqProvider)

    def test_openrouter_first_in_fallback(self, test_settings):
        provider = create_provider(_cfg(test_settings, ai_provider="openai", openrouter_api_key="or", groq_api_key="gsk"))
        assert isinstance(provider, OpenRouterProvider)
        assert provider.timeout >= 120.0

    def test_ollama_only_when_named(self, test_settings):
        assert create_provider(_cfg(test_settings, ai_provider="gemini")) is None
        provider = create_provider(_cfg(test_settings, ai_provider="ollama", ollama_model="llama3"))
        assert isinstance(provider, OllamaProvider)
        assert provider.model_name == "ollama/llama3"

    def test_nothing_configured(self, test_settings):
        assert create_provider(test_settings) is None
