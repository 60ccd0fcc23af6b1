"""Analysis Service: one analysis run for one brand.

Flow of ``run_analysis``:
  1. Provider must be available (else ProviderUnavailableError)
  2. Claim the brand's in-flight slot (else AlreadyInFlightError)
  3. Load brand + prompts (capped at max_prompts_per_run)
  4. Per prompt: wait for the rate limiter → query → store response →
     detect + store mentions. Per-prompt failures are collected, the batch
     continues.
  5. If at least one response succeeded, compute and store the snapshot.

The service is an explicit object built once per process (see
``build_analysis_service``) and passed to call sites; nothing here is global.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

import httpx

from visibility_tracker.analysis.pipeline import MentionDetector
from visibility_tracker.analysis.types import BrandProfile, DetectedMention, ResponseText
from visibility_tracker.collectors.factory import create_provider
from visibility_tracker.collectors.llm_base import LlmProvider
from visibility_tracker.core.config import Settings, settings as default_settings
from visibility_tracker.core.metrics import ANALYSIS_RUNS, GATE_REJECTIONS
from visibility_tracker.gateway.errors import (
    AlreadyInFlightError,
    AnalysisError,
    ProviderUnavailableError,
    RateLimitedError,
)
from visibility_tracker.gateway.in_flight import InFlightRegistry
from visibility_tracker.gateway.rate_limiter import RateLimiter
from visibility_tracker.repositories.base import AnalysisRepository, PromptTemplate
from visibility_tracker.repositories.memory import InMemoryRepository
from visibility_tracker.schemas.analysis import (
    AnalysisStatus,
    MentionOut,
    RateLimitStatus,
    ResponseOut,
    RunAnalysisResult,
)
from visibility_tracker.services.metrics_service import MetricsCalculator
from visibility_tracker.services.prompts import build_prompt_with_context
from visibility_tracker.services.throttle import wait_for_call_slot

logger = logging.getLogger(__name__)

PROVIDER_NOT_READY = "AI provider not configured or unavailable"

# Errors a single prompt may fail with without aborting the batch
PROMPT_ERRORS = (httpx.HTTPError, AnalysisError, ValueError)


def mentions_out(mentions: Sequence[DetectedMention]) -> list[MentionOut]:
    return [MentionOut(**m.to_dict()) for m in mentions]


def run_message(responses_run: int, errors: Sequence[str]) -> tuple[bool, str]:
    """Overall success flag and summary line of a batch."""
    if errors and responses_run == 0:
        return False, "All prompts failed"
    if errors:
        return True, f"Completed with {len(errors)} errors"
    return True, f"Successfully processed {responses_run} prompts"


class AnalysisService:
    """Runs prompts for a brand through one provider and scores the results."""

    def __init__(
        self,
        provider: LlmProvider | None,
        repository: AnalysisRepository,
        rate_limiter: RateLimiter,
        in_flight: InFlightRegistry,
        metrics_calculator: MetricsCalculator | None = None,
        detector: MentionDetector | None = None,
        cfg: Settings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.repository = repository
        self.rate_limiter = rate_limiter
        self.in_flight = in_flight
        self.cfg = cfg or default_settings
        self.metrics_calculator = metrics_calculator or MetricsCalculator(
            repository, history_size=self.cfg.confidence_history_size
        )
        self.detector = detector or MentionDetector()
        self._sleep = sleep
        self._clock = clock

    # -- status ---------------------------------------------------------------

    def _provider_ready(self) -> bool:
        return self.provider is not None and self.provider.is_available()

    def get_status(self) -> AnalysisStatus:
        limiter_status = self.rate_limiter.get_status()
        available = self._provider_ready()
        return AnalysisStatus(
            provider_available=available,
            provider_name=self.provider.model_name if self.provider is not None else "",
            rate_limit_status=RateLimitStatus(**limiter_status),
            can_run_analysis=available and limiter_status["can_proceed"],
            in_flight_brands=self.in_flight.active(),
        )

    def can_run(self, brand_id: int) -> tuple[bool, str]:
        """Whether a run for the brand would be admitted right now, and why not."""
        if not self._provider_ready():
            return False, PROVIDER_NOT_READY
        if self.in_flight.is_in_flight(brand_id):
            return False, "Analysis already in progress for this brand"
        if not self.rate_limiter.can_proceed():
            wait = self.rate_limiter.time_until_next_allowed()
            return False, f"Rate limited. Please wait {int(wait)} seconds"
        return True, ""

    def detect_mentions(self, text: str, profile: BrandProfile) -> list[DetectedMention]:
        return self.detector.detect_mentions(text, profile)

    # -- runs -----------------------------------------------------------------

    async def run_analysis(self, brand_id: int, prompt_ids: Sequence[int] | None = None) -> RunAnalysisResult:
        """Run the brand's prompts and store responses, mentions and a snapshot.

        Raises:
            ProviderUnavailableError: no usable provider.
            AlreadyInFlightError: a run for this brand is active.
            RateLimitedError: the limiter did not admit the first call in time.
            BrandNotFoundError: unknown brand id.
        """
        if not self._provider_ready():
            GATE_REJECTIONS.labels(reason="provider_unavailable").inc()
            raise ProviderUnavailableError(PROVIDER_NOT_READY)

        try:
            with self.in_flight.slot(brand_id):
                result = await self._run(brand_id, prompt_ids)
        except AlreadyInFlightError:
            GATE_REJECTIONS.labels(reason="in_flight").inc()
            logger.info("Analysis for brand %d rejected: already in flight", brand_id)
            raise

        status = "failed" if not result.success else ("partial" if result.errors else "success")
        ANALYSIS_RUNS.labels(status=status).inc()
        logger.info(
            "Analysis for brand %d finished: %s (%d responses, %d errors)",
            brand_id,
            result.message,
            result.responses_run,
            len(result.errors),
            extra={"brand_id": brand_id},
        )
        return result

    async def _load_prompts(self, prompt_ids: Sequence[int] | None) -> list[PromptTemplate]:
        prompts = await self.repository.get_prompts(list(prompt_ids) if prompt_ids else None)
        return prompts[: self.cfg.max_prompts_per_run]

    async def _run(self, brand_id: int, prompt_ids: Sequence[int] | None) -> RunAnalysisResult:
        profile = await self.repository.get_brand(brand_id)
        prompts = await self._load_prompts(prompt_ids)
        logger.info("Starting analysis for brand %d (%s): %d prompts", brand_id, profile.name, len(prompts))

        # Opened on the first stored response; a rejected first call leaves the latest run untouched
        run_id: int | None = None
        result = RunAnalysisResult(success=True, message="")

        for index, prompt in enumerate(prompts):
            admitted = await wait_for_call_slot(
                self.rate_limiter,
                self.cfg.rate_limit_max_wait_seconds,
                sleep=self._sleep,
                clock=self._clock,
            )
            if not admitted:
                wait = self.rate_limiter.time_until_next_allowed()
                GATE_REJECTIONS.labels(reason="rate_limited").inc()
                if index == 0:
                    raise RateLimitedError(wait)
                logger.warning("Rate limit reached for brand %d after %d prompts", brand_id, index)
                result.errors.append("Rate limit reached, stopping analysis")
                break

            actual_prompt = build_prompt_with_context(prompt.template, profile)
            try:
                text = await self.provider.query(actual_prompt)
            except PROMPT_ERRORS as exc:
                logger.warning(
                    "Prompt %d failed for brand %d: %s",
                    prompt.id,
                    brand_id,
                    exc,
                    extra={"brand_id": brand_id, "run_id": run_id},
                )
                result.errors.append(f"Prompt {prompt.id} failed: {exc}")
                continue

            response = ResponseText(text=text, model_name=self.provider.model_name, created_at=self._clock())
            if run_id is None:
                run_id = await self.repository.begin_run(brand_id)
            stored = await self.repository.store_response(run_id, brand_id, prompt.id, actual_prompt, response)

            mentions = self.detector.detect_mentions(text, profile)
            if mentions:
                await self.repository.store_mentions(stored.id, mentions)

            result.responses.append(
                ResponseOut(
                    id=stored.id,
                    prompt_id=prompt.id,
                    prompt_text=actual_prompt,
                    model_name=response.model_name,
                    response_text=text,
                    mentions=mentions_out(mentions),
                )
            )
            result.responses_run += 1

            if index < len(prompts) - 1:
                await self._sleep(self.cfg.inter_call_delay_seconds)

        if result.responses_run > 0:
            snapshot = await self.metrics_calculator.calculate_and_store_metrics(brand_id)
            result.snapshot_id = snapshot.id
            result.visibility_score = snapshot.visibility_score

        result.success, result.message = run_message(result.responses_run, result.errors)
        return result


def build_analysis_service(
    cfg: Settings | None = None,
    repository: AnalysisRepository | None = None,
    provider: LlmProvider | None = None,
) -> AnalysisService:
    """Wire an AnalysisService from settings. Call once per process."""
    cfg = cfg or default_settings
    repository = repository if repository is not None else InMemoryRepository()
    if provider is None:
        provider = create_provider(cfg)

    return AnalysisService(
        provider=provider,
        repository=repository,
        rate_limiter=RateLimiter(
            min_interval=cfg.rate_limit_min_interval_seconds,
            max_calls_per_minute=cfg.rate_limit_max_calls_per_minute,
        ),
        in_flight=InFlightRegistry(timeout=cfg.in_flight_timeout_seconds),
        metrics_calculator=MetricsCalculator(repository, history_size=cfg.confidence_history_size),
        cfg=cfg,
    )
