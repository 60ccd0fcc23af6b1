"""Competitor insights: asks the provider why competitors outrank the brand."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from visibility_tracker.analysis.types import BrandProfile
from visibility_tracker.collectors.llm_base import LlmProvider
from visibility_tracker.core.config import Settings, settings as default_settings
from visibility_tracker.core.metrics import GATE_REJECTIONS
from visibility_tracker.gateway.errors import BrandNotFoundError
from visibility_tracker.gateway.rate_limiter import RateLimiter
from visibility_tracker.repositories.base import AnalysisRepository
from visibility_tracker.schemas.analysis import InsightsResult
from visibility_tracker.services.analysis_service import PROMPT_ERRORS
from visibility_tracker.services.throttle import wait_for_call_slot

logger = logging.getLogger(__name__)

DEFAULT_INDUSTRY = "Technology"

INSIGHTS_PROMPT = """You are an AI visibility optimization expert. Analyze why competitors ({competitors}) might rank better than "{brand}" in AI assistant responses.

Format your response with these sections:

## Why Competitors Rank Higher
- List 3-4 key reasons with specific examples

## Actionable Recommendations for {brand}
- List 5 specific, actionable steps to improve AI visibility
- Include SEO, content strategy, structured data, and brand authority tips

Keep each point concise (1-2 sentences). Industry: {industry}"""


def build_insights_prompt(profile: BrandProfile) -> str:
    return INSIGHTS_PROMPT.format(
        competitors=", ".join(profile.competitors),
        brand=profile.name,
        industry=profile.industry or DEFAULT_INDUSTRY,
    )


class InsightsService:
    """Generates competitor insights; failures come back as unsuccessful results."""

    def __init__(
        self,
        provider: LlmProvider | None,
        repository: AnalysisRepository,
        rate_limiter: RateLimiter | None = None,
        cfg: Settings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.repository = repository
        self.rate_limiter = rate_limiter
        self.cfg = cfg or default_settings
        self._sleep = sleep
        self._clock = clock

    async def generate_competitor_insights(self, brand_id: int) -> InsightsResult:
        try:
            profile = await self.repository.get_brand(brand_id)
        except BrandNotFoundError as exc:
            return InsightsResult(success=False, error=f"Brand not found: {exc}")

        if not profile.competitors:
            return InsightsResult(success=False, error="No competitors configured for this brand")

        if self.provider is None or not self.provider.is_available():
            GATE_REJECTIONS.labels(reason="provider_unavailable").inc()
            return InsightsResult(success=False, error="AI provider not configured")

        if self.rate_limiter is not None:
            admitted = await wait_for_call_slot(
                self.rate_limiter,
                self.cfg.rate_limit_max_wait_seconds,
                sleep=self._sleep,
                clock=self._clock,
            )
            if not admitted:
                GATE_REJECTIONS.labels(reason="rate_limited").inc()
                wait = self.rate_limiter.time_until_next_allowed()
                return InsightsResult(success=False, error=f"Rate limited. Please wait {int(wait)} seconds")

        logger.info("Generating competitor insights for %s vs %s", profile.name, ", ".join(profile.competitors))
        try:
            insights = await self.provider.query(build_insights_prompt(profile))
        except PROMPT_ERRORS as exc:
            logger.warning("Competitor insights failed for brand %d: %s", brand_id, exc)
            return InsightsResult(success=False, error=f"AI analysis failed: {exc}")

        return InsightsResult(success=True, insights=insights)
