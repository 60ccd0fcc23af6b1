"""Multi-model comparison.

Each prompt is sent to every selected model at once (OpenRouter catalogue
models and/or Groq); prompts are processed one after another. Each provider
has its own rate limiter guarding the fan-out. Successful answers are stored
as one run for the brand and the composite score is recalculated, after all
mentions are written.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from visibility_tracker.analysis.pipeline import MentionDetector
from visibility_tracker.analysis.scoring import calculate_response_score
from visibility_tracker.analysis.types import BrandProfile, DetectedMention, ResponseText
from visibility_tracker.collectors.llm_base import ModelInfo
from visibility_tracker.collectors.llm_openai import GROQ_MODEL_INFO, OPENROUTER_MODELS, GroqProvider, OpenRouterProvider
from visibility_tracker.core.config import Settings, settings as default_settings
from visibility_tracker.core.metrics import ANALYSIS_RUNS, GATE_REJECTIONS
from visibility_tracker.gateway.errors import AlreadyInFlightError, ProviderUnavailableError, RateLimitedError
from visibility_tracker.gateway.in_flight import InFlightRegistry
from visibility_tracker.gateway.rate_limiter import RateLimiter
from visibility_tracker.repositories.base import AnalysisRepository, PromptTemplate
from visibility_tracker.schemas.analysis import CompareModelsRequest, CompareModelsResult, ModelResult
from visibility_tracker.services.analysis_service import PROMPT_ERRORS, mentions_out
from visibility_tracker.services.metrics_service import MetricsCalculator
from visibility_tracker.services.prompts import build_prompt_with_context
from visibility_tracker.services.throttle import wait_for_call_slot

logger = logging.getLogger(__name__)

UNKNOWN_PROVIDER = "Unknown"
UNKNOWN_COLOR = "#888888"


@dataclass
class _ModelCall:
    """One model's answer to one prompt, kept until the run is stored."""

    prompt: PromptTemplate
    result: ModelResult
    mentions: list[DetectedMention] = field(default_factory=list)


def model_info(model_id: str) -> ModelInfo:
    """Display info for a comparison model id; unknown ids get a grey placeholder."""
    if model_id == GROQ_MODEL_INFO.id:
        return GROQ_MODEL_INFO
    for info in OPENROUTER_MODELS:
        if info.id == model_id:
            return info
    return ModelInfo(model_id, model_id, UNKNOWN_PROVIDER, UNKNOWN_COLOR)


class CompareService:
    """Compares how several models talk about a brand."""

    def __init__(
        self,
        repository: AnalysisRepository,
        in_flight: InFlightRegistry,
        openrouter: OpenRouterProvider | None = None,
        groq: GroqProvider | None = None,
        metrics_calculator: MetricsCalculator | None = None,
        detector: MentionDetector | None = None,
        cfg: Settings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.in_flight = in_flight
        self.openrouter = openrouter
        self.groq = groq
        self.cfg = cfg or default_settings
        self.metrics_calculator = metrics_calculator or MetricsCalculator(
            repository, history_size=self.cfg.confidence_history_size
        )
        self.detector = detector or MentionDetector()
        self._sleep = sleep
        self._clock = clock
        self.limiters = {
            name: RateLimiter(
                min_interval=0.0,
                max_calls_per_minute=self.cfg.compare_max_calls_per_minute,
                clock=clock,
            )
            for name in ("openrouter", "groq")
        }

    def _openrouter_ready(self) -> bool:
        return self.openrouter is not None and self.openrouter.is_available()

    def _groq_ready(self) -> bool:
        return self.groq is not None and self.groq.is_available()

    def is_available(self) -> bool:
        return self._openrouter_ready() or self._groq_ready()

    def get_available_models(self) -> list[ModelInfo]:
        models: list[ModelInfo] = []
        if self._openrouter_ready():
            models.extend(OPENROUTER_MODELS)
        if self._groq_ready():
            models.append(GROQ_MODEL_INFO)
        return models

    # -- single call ----------------------------------------------------------

    async def _query(self, model_id: str, prompt_text: str) -> str:
        if model_id == GROQ_MODEL_INFO.id:
            if not self._groq_ready():
                raise ProviderUnavailableError("Groq provider not available")
            provider_name = "groq"
        else:
            if not self._openrouter_ready():
                raise ProviderUnavailableError("OpenRouter provider not available")
            provider_name = "openrouter"

        limiter = self.limiters[provider_name]
        admitted = await wait_for_call_slot(
            limiter,
            self.cfg.rate_limit_max_wait_seconds,
            sleep=self._sleep,
            clock=self._clock,
        )
        if not admitted:
            GATE_REJECTIONS.labels(reason="rate_limited").inc()
            raise RateLimitedError(limiter.time_until_next_allowed())

        if provider_name == "groq":
            return await self.groq.query(prompt_text)
        return await self.openrouter.query_with_model(prompt_text, model_id)

    async def _call_model(self, model_id: str, prompt: PromptTemplate, prompt_text: str, profile: BrandProfile) -> _ModelCall:
        info = model_info(model_id)
        result = ModelResult(
            model_id=model_id,
            model_name=info.name,
            provider=info.provider,
            color=info.color,
            prompt_text=prompt_text,
        )
        call = _ModelCall(prompt=prompt, result=result)

        try:
            text = await self._query(model_id, prompt_text)
        except PROMPT_ERRORS as exc:
            logger.warning("Comparison call to %s failed: %s", info.name, exc)
            result.error = str(exc)
            return call

        call.mentions = self.detector.detect_mentions(text, profile)
        result.response = text
        result.mentions = mentions_out(call.mentions)
        result.score = calculate_response_score(call.mentions)
        return call

    # -- runs -----------------------------------------------------------------

    async def run_comparison(self, request: CompareModelsRequest) -> CompareModelsResult:
        """Query every selected model for each prompt and store the answers.

        Raises:
            ProviderUnavailableError: neither OpenRouter nor Groq is configured.
            AlreadyInFlightError: a run for this brand is active.
        """
        if not self.is_available():
            GATE_REJECTIONS.labels(reason="provider_unavailable").inc()
            raise ProviderUnavailableError("Compare service not available - configure OPENROUTER_API_KEY or GROQ_API_KEY")

        try:
            with self.in_flight.slot(request.brand_id):
                result = await self._run(request)
        except AlreadyInFlightError:
            GATE_REJECTIONS.labels(reason="in_flight").inc()
            raise

        status = "failed" if not result.success else ("partial" if result.errors else "success")
        ANALYSIS_RUNS.labels(status=status).inc()
        return result

    async def _run(self, request: CompareModelsRequest) -> CompareModelsResult:
        profile = await self.repository.get_brand(request.brand_id)
        prompts = await self.repository.get_prompts(request.prompt_ids or None)
        prompts = prompts[: self.cfg.max_prompts_per_run]
        model_ids = list(request.model_ids) or [m.id for m in self.get_available_models()]

        logger.info(
            "Comparing %d models across %d prompts for brand %d",
            len(model_ids),
            len(prompts),
            request.brand_id,
        )
        result = CompareModelsResult(success=True, message="", total_calls=len(prompts) * len(model_ids))
        calls: list[_ModelCall] = []

        for index, prompt in enumerate(prompts):
            prompt_text = build_prompt_with_context(prompt.template, profile)
            batch = await asyncio.gather(
                *(self._call_model(model_id, prompt, prompt_text, profile) for model_id in model_ids)
            )
            for call in batch:
                result.results.append(call.result)
                if call.result.error is None:
                    result.success_calls += 1
                    calls.append(call)
                else:
                    result.errors.append(f"{call.result.model_name}: {call.result.error}")

            if index < len(prompts) - 1:
                await self._sleep(self.cfg.compare_prompt_delay_seconds)

        if result.success_calls == 0 and result.errors:
            result.success = False
            result.message = "All model queries failed"
        elif result.errors:
            result.message = f"Completed with {result.success_calls}/{result.total_calls} successful calls"
        else:
            result.message = f"Successfully compared {len(model_ids)} models across {len(prompts)} prompts"

        if calls:
            await self._store(request.brand_id, calls)
        return result

    async def _store(self, brand_id: int, calls: list[_ModelCall]) -> None:
        """Persist successful answers as one run, then rescore."""
        run_id = await self.repository.begin_run(brand_id)
        for call in calls:
            response = ResponseText(
                text=call.result.response,
                model_name=call.result.model_name,
                created_at=self._clock(),
            )
            stored = await self.repository.store_response(
                run_id, brand_id, call.prompt.id, call.result.prompt_text, response
            )
            if call.mentions:
                await self.repository.store_mentions(stored.id, call.mentions)

        snapshot = await self.metrics_calculator.calculate_and_store_metrics(brand_id)
        logger.info(
            "Stored %d comparison responses for brand %d (visibility %.1f)",
            len(calls),
            brand_id,
            snapshot.visibility_score,
            extra={"brand_id": brand_id, "run_id": run_id},
        )
