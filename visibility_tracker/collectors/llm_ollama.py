"""Local Ollama provider (no API key)."""

import logging

import httpx

from visibility_tracker.collectors.llm_base import BaseLlmProvider

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama2"


class OllamaProvider(BaseLlmProvider):
    provider = "ollama"

    def __init__(self, base_url: str = DEFAULT_URL, model: str = DEFAULT_MODEL, timeout: float = 60.0):
        super().__init__(model=model, timeout=timeout)
        self.base_url = base_url.rstrip("/")

    @property
    def model_name(self) -> str:
        return f"ollama/{self.model}"

    def is_available(self) -> bool:
        return bool(self.base_url)

    async def ping(self) -> bool:
        """Whether the Ollama server answers on /api/tags."""
        try:
            async with httpx.AsyncClient(timeout=5) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
        except httpx.HTTPError as exc:
            logger.info("Ollama not reachable at %s: %s", self.base_url, exc)
            return False
        return resp.status_code == 200

    async def _send(self, prompt: str, model: str) -> str:
        payload = {"model": model, "prompt": prompt, "stream": False}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(f"{self.base_url}/api/generate", json=payload)
            resp.raise_for_status()
            data = resp.json()

        return data.get("response") or ""
