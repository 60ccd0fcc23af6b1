"""Composite Score Calculator.

Aggregates every response of one analysis run into a MetricSnapshot:

  normalized_mention_rate  = responses with a brand mention / N
  weighted_position_score  = mean per-response Σ position weight, clamped to [0, 1]
  recommendation_rate      = responses with a recommended brand mention / N
  relative_sentiment_index = ((brand mean − competitor mean) + 4) / 8, clamped
                             (positive=5, neutral=3, negative=1; 3.0 when absent)

  visibility_score = 100 × (0.40·mention + 0.25·position + 0.20·recommend + 0.15·sentiment)
  citation_share   = 100 × normalized_mention_rate

N = 0 yields an all-zero snapshot with low confidence.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from visibility_tracker.analysis.confidence import HISTORY_SIZE, estimate_confidence
from visibility_tracker.analysis.ranking_parser import response_position_score
from visibility_tracker.analysis.types import (
    SENTIMENT_VALUES,
    AnalyzedResponse,
    ConfidenceLevel,
    DetectedMention,
    EntityType,
    MetricSnapshot,
    Sentiment,
)

logger = logging.getLogger(__name__)

# Score weights (sum to 1.0)
WEIGHT_MENTION_RATE = 0.40
WEIGHT_POSITION = 0.25
WEIGHT_RECOMMEND = 0.20
WEIGHT_SENTIMENT = 0.15

NEUTRAL_SENTIMENT = SENTIMENT_VALUES[Sentiment.NEUTRAL]
SENTIMENT_SPAN = 4.0  # max |brand mean − competitor mean| on the 1–5 scale


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def composite_score(
    mention_rate: float,
    position_score: float,
    recommendation_rate: float,
    sentiment_index: float,
) -> float:
    """Weighted 0–100 visibility score from the four 0–1 components."""
    raw = (
        WEIGHT_MENTION_RATE * mention_rate
        + WEIGHT_POSITION * position_score
        + WEIGHT_RECOMMEND * recommendation_rate
        + WEIGHT_SENTIMENT * sentiment_index
    ) * 100
    return _clamp(raw, 0.0, 100.0)


def relative_sentiment_index(brand_mean: float, competitor_mean: float) -> float:
    """Map the brand-vs-competitor sentiment difference onto [0, 1]."""
    diff = brand_mean - competitor_mean
    return _clamp((diff + SENTIMENT_SPAN) / (2 * SENTIMENT_SPAN))


def empty_snapshot(brand_id: int, now: datetime | None = None) -> MetricSnapshot:
    """Snapshot for a run in which no response succeeded."""
    return MetricSnapshot(
        brand_id=brand_id,
        confidence_score=0.0,
        confidence_level=ConfidenceLevel.LOW,
        snapshot_date=now or datetime.now(timezone.utc),
    )


def calculate_snapshot(
    brand_id: int,
    responses: Sequence[AnalyzedResponse],
    history: Sequence[MetricSnapshot] = (),
    now: datetime | None = None,
    history_size: int = HISTORY_SIZE,
) -> MetricSnapshot:
    """Compute the composite metrics of one run.

    Args:
        brand_id: Brand the run belongs to.
        responses: Every response of the run with its annotated mentions.
        history: Prior snapshots for the brand, newest first.
        now: Snapshot timestamp (defaults to current UTC time).
    """
    total_responses = len(responses)
    if total_responses == 0:
        return empty_snapshot(brand_id, now)

    responses_with_brand = 0
    responses_with_recommendation = 0
    total_position_score = 0.0

    brand_mentions = 0
    brand_sentiment_sum = 0.0
    sentiment_counts = {s: 0 for s in Sentiment}

    competitor_mentions = 0
    competitor_sentiment_sum = 0.0

    for analyzed in responses:
        has_brand = False
        has_recommendation = False

        for mention in analyzed.mentions:
            value = SENTIMENT_VALUES[mention.sentiment]
            if mention.entity_type == EntityType.BRAND:
                has_brand = True
                brand_mentions += 1
                brand_sentiment_sum += value
                sentiment_counts[mention.sentiment] += 1
                if mention.is_recommendation:
                    has_recommendation = True
            else:
                competitor_mentions += 1
                competitor_sentiment_sum += value

        total_position_score += response_position_score(analyzed.mentions)
        if has_brand:
            responses_with_brand += 1
        if has_recommendation:
            responses_with_recommendation += 1

    mention_rate = responses_with_brand / total_responses
    position_score = _clamp(total_position_score / total_responses)
    recommendation_rate = responses_with_recommendation / total_responses

    brand_avg = brand_sentiment_sum / brand_mentions if brand_mentions else NEUTRAL_SENTIMENT
    category_avg = competitor_sentiment_sum / competitor_mentions if competitor_mentions else NEUTRAL_SENTIMENT
    sentiment_index = relative_sentiment_index(brand_avg, category_avg)

    visibility = composite_score(mention_rate, position_score, recommendation_rate, sentiment_index)
    confidence, level = estimate_confidence(history, history_size)

    logger.info(
        "Composite score for brand %d: %.1f (MentionRate=%.2f, Position=%.2f, Recommend=%.2f, Sentiment=%.2f, N=%d)",
        brand_id,
        visibility,
        mention_rate,
        position_score,
        recommendation_rate,
        sentiment_index,
        total_responses,
    )

    return MetricSnapshot(
        brand_id=brand_id,
        visibility_score=visibility,
        citation_share=mention_rate * 100,
        normalized_mention_rate=mention_rate,
        weighted_position_score=position_score,
        recommendation_rate=recommendation_rate,
        relative_sentiment_index=sentiment_index,
        confidence_score=confidence,
        confidence_level=level,
        mention_count=brand_mentions,
        positive_count=sentiment_counts[Sentiment.POSITIVE],
        neutral_count=sentiment_counts[Sentiment.NEUTRAL],
        negative_count=sentiment_counts[Sentiment.NEGATIVE],
        response_count=total_responses,
        category_avg_sentiment=category_avg,
        snapshot_date=now or datetime.now(timezone.utc),
    )


def sentiment_score(positive: int, neutral: int, negative: int) -> float:
    """Average sentiment on the 1–5 scale; 3.0 when there is nothing to average."""
    total = positive + neutral + negative
    if total == 0:
        return NEUTRAL_SENTIMENT
    return (positive * 5 + neutral * 3 + negative * 1) / total


def calculate_response_score(mentions: Sequence[DetectedMention]) -> int:
    """Simple 0–100 score of a single response (model comparison view).

    50 for being mentioned, ±25 for the sentiment of the last brand mention,
    plus up to 25 for the brand's share of all mentioned entities.
    """
    brand_mention: DetectedMention | None = None
    competitor_count = 0
    for mention in mentions:
        if mention.entity_type == EntityType.BRAND:
            brand_mention = mention
        else:
            competitor_count += 1

    if brand_mention is None:
        return 0

    score = 50
    if brand_mention.sentiment == Sentiment.POSITIVE:
        score += 25
    elif brand_mention.sentiment == Sentiment.NEGATIVE:
        score -= 25

    score += int((1.0 / (1 + competitor_count)) * 25)
    return max(0, min(100, score))
