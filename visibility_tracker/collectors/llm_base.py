"""Base text-generation provider.

Every provider answers ``query(prompt) -> str``. The base class owns the parts
that are the same for all of them:
  - availability check (API key configured)
  - Prometheus call counters and latency histogram
  - mapping HTTP 429 to RateLimitedError and blank text to EmptyResponseError

Subclasses only implement ``_send(prompt, model)`` for their wire format.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from visibility_tracker.core.metrics import PROVIDER_CALL_DURATION, PROVIDER_CALLS
from visibility_tracker.gateway.errors import EmptyResponseError, ProviderUnavailableError, RateLimitedError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant providing information about software tools and products. "
    "Give concise, relevant answers."
)
DEFAULT_RETRY_AFTER = 60.0


@runtime_checkable
class LlmProvider(Protocol):
    """What the analysis services need from a provider."""

    @property
    def model_name(self) -> str: ...

    def is_available(self) -> bool: ...

    async def query(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class ModelInfo:
    """A model offered in multi-model comparisons."""

    id: str
    name: str
    provider: str
    color: str


def _retry_after(response: httpx.Response) -> float:
    raw = response.headers.get("retry-after", "") if response.headers else ""
    try:
        return float(raw)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER


class BaseLlmProvider(ABC):
    """Shared behaviour of httpx-based providers."""

    provider: str = ""  # short label used in metrics and logs

    def __init__(self, api_key: str = "", model: str = "", timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @property
    def model_name(self) -> str:
        return self.model

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def query(self, prompt: str) -> str:
        """Send a prompt with the configured model and return the answer text."""
        return await self._call(prompt, self.model)

    async def _call(self, prompt: str, model: str) -> str:
        if not self.is_available():
            raise ProviderUnavailableError(f"{self.provider} provider is not configured")

        started = time.monotonic()
        try:
            text = await self._send(prompt, model)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            PROVIDER_CALLS.labels(provider=self.provider, status=str(status)).inc()
            if status == 429:
                wait = _retry_after(exc.response)
                logger.warning(
                    "%s rate limited (429), retry after %.0fs",
                    self.provider,
                    wait,
                    extra={"provider": self.provider},
                )
                raise RateLimitedError(wait) from exc
            raise
        except httpx.HTTPError:
            PROVIDER_CALLS.labels(provider=self.provider, status="error").inc()
            raise
        finally:
            PROVIDER_CALL_DURATION.labels(provider=self.provider).observe(time.monotonic() - started)

        if not text or not text.strip():
            PROVIDER_CALLS.labels(provider=self.provider, status="empty").inc()
            raise EmptyResponseError(self.model_name)

        PROVIDER_CALLS.labels(provider=self.provider, status="success").inc()
        return text

    @abstractmethod
    async def _send(self, prompt: str, model: str) -> str:
        """Perform the HTTP call and extract the answer text."""
