"""Error taxonomy for analysis runs and provider calls."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for errors raised around an analysis run."""


class RateLimitedError(AnalysisError):
    """The rate limiter refused the call; back off for ``wait_seconds``."""

    def __init__(self, wait_seconds: float = 0.0, message: str = ""):
        self.wait_seconds = max(0.0, wait_seconds)
        super().__init__(message or f"Rate limited. Please wait {int(round(self.wait_seconds))} seconds")


class AlreadyInFlightError(AnalysisError):
    """An analysis for this brand is already running."""

    def __init__(self, brand_id: int):
        self.brand_id = brand_id
        super().__init__(f"Analysis already in progress for brand {brand_id}")


class ProviderUnavailableError(AnalysisError):
    """No usable provider is configured."""

    def __init__(self, message: str = "AI provider not configured or unavailable"):
        super().__init__(message)


class EmptyResponseError(AnalysisError):
    """The provider answered without usable text."""

    def __init__(self, model_name: str = ""):
        self.model_name = model_name
        suffix = f" ({model_name})" if model_name else ""
        super().__init__(f"Received empty response from AI{suffix}")


class BrandNotFoundError(LookupError):
    """The brand lookup has no entry for the identifier."""

    def __init__(self, brand_id: int):
        self.brand_id = brand_id
        super().__init__(f"Brand {brand_id} not found")
