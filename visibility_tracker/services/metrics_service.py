"""Metrics Calculator: composite snapshots and dashboard aggregates.

Async fetch layer over the repository + pure functions for the dashboard
breakdowns, so the aggregation logic is testable without a store.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime

from visibility_tracker.analysis.confidence import HISTORY_SIZE
from visibility_tracker.analysis.scoring import calculate_response_score, calculate_snapshot, sentiment_score
from visibility_tracker.analysis.types import AnalyzedResponse, BrandProfile, EntityType, MetricSnapshot, Sentiment
from visibility_tracker.core.metrics import VISIBILITY_SCORE
from visibility_tracker.repositories.base import AnalysisRepository
from visibility_tracker.schemas.analysis import (
    CitationBreakdown,
    CompetitorMetrics,
    DashboardData,
    ModelVisibility,
    TrendPoint,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TREND_SIZE = 7
BRAND_COLOR = "#6366f1"
COMPETITOR_COLORS = ("#10b981", "#f59e0b", "#ef4444", "#8b5cf6")
DEFAULT_MODEL_COLOR = "#888888"
UNKNOWN_MODEL = "Unknown"

MODEL_COLORS: dict[str, str] = {
    # OpenRouter comparison models
    "Gemma 3 27B": "#4285f4",
    "Llama 3.3 70B": "#0668e1",
    "Qwen3 Coder": "#6366f1",
    "DeepSeek Chimera": "#00d4aa",
    "Groq Llama 3.3": "#f55036",
    # Direct providers
    "gpt-4": "#10a37f",
    "gpt-3.5": "#10a37f",
    "claude-3": "#d4a574",
    "gemini": "#4285f4",
    "groq": "#f55036",
    "ollama": "#000000",
}


# ---------------------------------------------------------------------------
# Pure aggregation helpers
# ---------------------------------------------------------------------------


def model_color(model_name: str) -> str:
    """Chart colour for a model: exact name first, then substring match."""
    lowered = model_name.lower()
    for key, color in MODEL_COLORS.items():
        if lowered == key.lower():
            return color
    for key, color in MODEL_COLORS.items():
        if key.lower() in lowered:
            return color
    return DEFAULT_MODEL_COLOR


def _entity_key(profile: BrandProfile, entity_type: EntityType, entity_name: str) -> str:
    """Collapse aliases onto the brand name and competitor spellings onto the configured name."""
    if entity_type == EntityType.BRAND:
        return profile.name
    lowered = entity_name.lower()
    for competitor in profile.competitors:
        if competitor.lower() == lowered:
            return competitor
    return entity_name


def competitor_metrics(profile: BrandProfile, responses: Sequence[AnalyzedResponse]) -> list[CompetitorMetrics]:
    """Mention and sentiment counts for the brand followed by each competitor."""
    names = [profile.name, *profile.competitors]
    counts: dict[str, dict[Sentiment, int]] = {name: {s: 0 for s in Sentiment} for name in names}

    for analyzed in responses:
        for mention in analyzed.mentions:
            key = _entity_key(profile, mention.entity_type, mention.entity_name)
            if key in counts:
                counts[key][mention.sentiment] += 1

    return [
        CompetitorMetrics(
            name=name,
            mentions=sum(counts[name].values()),
            positive=counts[name][Sentiment.POSITIVE],
            neutral=counts[name][Sentiment.NEUTRAL],
            negative=counts[name][Sentiment.NEGATIVE],
        )
        for name in names
    ]


def citation_breakdown(profile: BrandProfile, responses: Sequence[AnalyzedResponse]) -> list[CitationBreakdown]:
    """Each entity's share (%) of all entity mentions; brand plus up to four competitors."""
    rows = competitor_metrics(profile, responses)
    total = sum(row.mentions for row in rows)

    breakdown = []
    for i, row in enumerate(rows[: 1 + len(COMPETITOR_COLORS)]):
        color = BRAND_COLOR if i == 0 else COMPETITOR_COLORS[i - 1]
        value = round(row.mentions / total * 100, 1) if total else 0.0
        breakdown.append(CitationBreakdown(name=row.name, value=value, color=color))
    return breakdown


def model_visibility(responses: Sequence[AnalyzedResponse]) -> list[ModelVisibility]:
    """Average per-response score and brand mention count per model."""
    totals: dict[str, int] = defaultdict(int)
    counts: dict[str, int] = defaultdict(int)
    brand_mentions: dict[str, int] = defaultdict(int)

    for analyzed in responses:
        model = analyzed.response.model_name or UNKNOWN_MODEL
        totals[model] += calculate_response_score(analyzed.mentions)
        counts[model] += 1
        brand_mentions[model] += len(analyzed.brand_mentions)

    result = []
    for model in sorted(counts):
        avg = totals[model] / counts[model]
        logger.debug("Model visibility: model=%s responses=%d avg=%.1f", model, counts[model], avg)
        result.append(
            ModelVisibility(
                model=model,
                model_id=model,
                color=model_color(model),
                score=avg,
                mentions=brand_mentions[model],
            )
        )
    return result


def trend_points(history: Sequence[MetricSnapshot]) -> list[TrendPoint]:
    """Chronological trend line from snapshots given newest first."""
    return [
        TrendPoint(
            snapshot_date=s.snapshot_date,
            visibility_score=s.visibility_score,
            citation_share=s.citation_share,
            confidence_level=s.confidence_level.value,
        )
        for s in reversed(history)
    ]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class MetricsCalculator:
    """Computes and stores run snapshots; assembles dashboard data."""

    def __init__(self, repository: AnalysisRepository, history_size: int = HISTORY_SIZE):
        self.repository = repository
        self.history_size = history_size

    async def calculate_and_store_metrics(self, brand_id: int, now: datetime | None = None) -> MetricSnapshot:
        """Score the brand's latest run against its prior snapshots and persist the result.

        Callers must finish storing the run's mentions first.
        """
        responses = await self.repository.get_latest_run(brand_id)
        history = await self.repository.get_recent_snapshots(brand_id, self.history_size)

        snapshot = calculate_snapshot(
            brand_id,
            responses,
            history=history,
            now=now,
            history_size=self.history_size,
        )
        stored = await self.repository.store_snapshot(snapshot)
        VISIBILITY_SCORE.observe(stored.visibility_score)
        return stored

    async def get_dashboard(self, brand_id: int) -> DashboardData:
        history = await self.repository.get_recent_snapshots(brand_id, TREND_SIZE)
        if not history:
            return DashboardData()

        latest = history[0]
        profile = await self.repository.get_brand(brand_id)
        latest_run = await self.repository.get_latest_run(brand_id)
        all_responses = await self.repository.get_brand_responses(brand_id)

        return DashboardData(
            visibility_score=latest.visibility_score,
            citation_share=latest.citation_share,
            total_mentions=latest.mention_count,
            sentiment_score=sentiment_score(latest.positive_count, latest.neutral_count, latest.negative_count),
            trends=trend_points(history),
            citation_breakdown=citation_breakdown(profile, latest_run),
            competitor_data=competitor_metrics(profile, latest_run),
            model_visibility=model_visibility(all_responses),
            normalized_mention_rate=latest.normalized_mention_rate,
            weighted_position_score=latest.weighted_position_score,
            recommendation_rate=latest.recommendation_rate,
            relative_sentiment_index=latest.relative_sentiment_index,
            confidence_score=latest.confidence_score,
            confidence_level=latest.confidence_level.value,
            response_count=latest.response_count,
            category_avg_sentiment=latest.category_avg_sentiment,
        )
