"""Google Gemini provider (native generateContent API)."""

import logging

import httpx

from visibility_tracker.collectors.llm_base import BaseLlmProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiProvider(BaseLlmProvider):
    provider = "gemini"

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float = 60.0):
        super().__init__(api_key=api_key, model=model, timeout=timeout)

    async def _send(self, prompt: str, model: str) -> str:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                f"{API_BASE}/{model}:generateContent",
                params={"key": self.api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            resp.raise_for_status()
            data = resp.json()

        candidates = data.get("candidates") or []
        if not candidates:
            logger.warning("Gemini returned no candidates for model %s", model)
            return ""
        parts = candidates[0].get("content", {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)
