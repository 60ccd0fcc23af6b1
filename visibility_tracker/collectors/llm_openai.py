"""OpenAI-compatible chat completion providers: OpenAI, Groq and OpenRouter."""

import logging

import httpx

from visibility_tracker.collectors.llm_base import SYSTEM_PROMPT, BaseLlmProvider, ModelInfo

logger = logging.getLogger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"
OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"

OPENAI_DEFAULT_MODEL = "gpt-3.5-turbo"
GROQ_DEFAULT_MODEL = "llama-3.3-70b-versatile"
OPENROUTER_DEFAULT_MODEL = "google/gemini-2.0-flash-001"

# Free OpenRouter models offered in the comparison view
OPENROUTER_MODELS: tuple[ModelInfo, ...] = (
    ModelInfo("google/gemma-3-27b-it:free", "Gemma 3 27B", "Google", "#4285f4"),
    ModelInfo("meta-llama/llama-3.3-70b-instruct:free", "Llama 3.3 70B", "Meta", "#0668e1"),
    ModelInfo("qwen/qwen3-coder:free", "Qwen3 Coder", "Qwen", "#6366f1"),
    ModelInfo("tngtech/deepseek-r1t2-chimera:free", "DeepSeek Chimera", "TNG", "#00d4aa"),
)
GROQ_MODEL_INFO = ModelInfo("groq", "Groq Llama 3.3", "Groq", "#f55036")


class OpenAiCompatibleProvider(BaseLlmProvider):
    """POSTs a system + user message pair to a chat completions endpoint."""

    api_url: str = OPENAI_API_URL

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _payload(self, prompt: str, model: str) -> dict:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 1000,
            "temperature": 0.7,
        }

    async def _send(self, prompt: str, model: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                self.api_url,
                json=self._payload(prompt, model),
                headers=self._headers(),
            )
            resp.raise_for_status()
            data = resp.json()

        choices = data.get("choices") or []
        if not choices:
            logger.warning("%s returned no choices for model %s", self.provider, model)
            return ""
        return choices[0].get("message", {}).get("content") or ""


class OpenAiProvider(OpenAiCompatibleProvider):
    provider = "openai"
    api_url = OPENAI_API_URL

    def __init__(self, api_key: str, model: str = OPENAI_DEFAULT_MODEL, timeout: float = 30.0):
        super().__init__(api_key=api_key, model=model, timeout=timeout)


class GroqProvider(OpenAiCompatibleProvider):
    provider = "groq"
    api_url = GROQ_API_URL

    def __init__(self, api_key: str, model: str = GROQ_DEFAULT_MODEL, timeout: float = 60.0):
        super().__init__(api_key=api_key, model=model, timeout=timeout)

    @property
    def model_name(self) -> str:
        return "groq-llama-3.3-70b" if self.model == GROQ_DEFAULT_MODEL else f"groq-{self.model}"


class OpenRouterProvider(OpenAiCompatibleProvider):
    """OpenRouter gateway; also queries arbitrary catalogue models for comparisons."""

    provider = "openrouter"
    api_url = OPENROUTER_API_URL

    def __init__(self, api_key: str, model: str = OPENROUTER_DEFAULT_MODEL, timeout: float = 120.0):
        # Free models are slow to answer
        super().__init__(api_key=api_key, model=model, timeout=timeout)

    @property
    def model_name(self) -> str:
        return f"openrouter-{self.model}"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["HTTP-Referer"] = "https://ai-visibility-tracker.local"
        headers["X-Title"] = "AI Visibility Tracker"
        return headers

    async def query_with_model(self, prompt: str, model: str) -> str:
        """Query a specific OpenRouter model instead of the configured one."""
        return await self._call(prompt, model)
