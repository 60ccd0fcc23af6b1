"""Tests for the Composite Score Calculator."""

from datetime import datetime, timezone

import pytest

from visibility_tracker.analysis.pipeline import detect_mentions
from visibility_tracker.analysis.scoring import (
    WEIGHT_MENTION_RATE,
    WEIGHT_POSITION,
    WEIGHT_RECOMMEND,
    WEIGHT_SENTIMENT,
    calculate_response_score,
    calculate_snapshot,
    composite_score,
    relative_sentiment_index,
    sentiment_score,
)
from visibility_tracker.analysis.types import (
    AnalyzedResponse,
    BrandProfile,
    ConfidenceLevel,
    DetectedMention,
    EntityType,
    MetricSnapshot,
    ResponseText,
    Sentiment,
)

PROFILE = BrandProfile(name="Acme", competitors=("Globex",), brand_id=1)


def _analyzed(text: str) -> AnalyzedResponse:
    return AnalyzedResponse(response=ResponseText(text=text), mentions=detect_mentions(text, PROFILE))


def _mention(entity_type=EntityType.BRAND, sentiment=Sentiment.NEUTRAL, rank=1, recommended=False):
    return DetectedMention(
        entity_name="Acme" if entity_type == EntityType.BRAND else "Globex",
        entity_type=entity_type,
        sentiment=sentiment,
        position_rank=rank if entity_type == EntityType.BRAND else 0,
        is_recommendation=recommended,
    )


class TestWeights:
    def test_weights_sum_to_one(self):
        assert WEIGHT_MENTION_RATE + WEIGHT_POSITION + WEIGHT_RECOMMEND + WEIGHT_SENTIMENT == pytest.approx(1.0)

    def test_composite_bounds(self):
        assert composite_score(0, 0, 0, 0) == 0.0
        assert composite_score(1, 1, 1, 1) == pytest.approx(100.0)
        assert composite_score(1, 1, 1, 1) <= 100.0


class TestRelativeSentimentIndex:
    def test_extremes(self):
        assert relative_sentiment_index(5, 1) == 1.0
        assert relative_sentiment_index(1, 5) == 0.0

    def test_equal_is_half(self):
        assert relative_sentiment_index(3, 3) == 0.5


class TestCalculateSnapshot:
    def test_scenario_scores_100(self):
        text = "I recommend Acme because it's the best choice, unlike Globex which has issues."
        snapshot = calculate_snapshot(1, [_analyzed(text)])

        assert snapshot.normalized_mention_rate == 1.0
        assert snapshot.weighted_position_score == 1.0
        assert snapshot.recommendation_rate == 1.0
        assert snapshot.relative_sentiment_index == 1.0
        assert snapshot.visibility_score == pytest.approx(100.0)
        assert snapshot.citation_share == 100.0
        assert snapshot.category_avg_sentiment == 1.0
        assert snapshot.positive_count == 1
        assert snapshot.response_count == 1

    def test_empty_run(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        snapshot = calculate_snapshot(7, [], now=now)
        assert snapshot.brand_id == 7
        assert snapshot.visibility_score == 0.0
        assert snapshot.normalized_mention_rate == 0.0
        assert snapshot.relative_sentiment_index == 0.0
        assert snapshot.confidence_level == ConfidenceLevel.LOW
        assert snapshot.snapshot_date == now

    def test_partial_mention_rate(self):
        responses = [
            AnalyzedResponse(response=ResponseText("a"), mentions=[_mention()]),
            AnalyzedResponse(response=ResponseText("b"), mentions=[]),
        ]
        snapshot = calculate_snapshot(1, responses)
        assert snapshot.normalized_mention_rate == 0.5
        assert snapshot.citation_share == 50.0
        assert snapshot.weighted_position_score == 0.5
        # No sentiment on either side → neutral vs neutral
        assert snapshot.relative_sentiment_index == 0.5
        assert snapshot.visibility_score == pytest.approx(100 * (0.4 * 0.5 + 0.25 * 0.5 + 0.15 * 0.5))

    def test_position_average_clamped(self):
        mentions = [_mention(rank=1), _mention(rank=2), _mention(rank=3)]
        snapshot = calculate_snapshot(1, [AnalyzedResponse(response=ResponseText("a"), mentions=mentions)])
        assert snapshot.weighted_position_score == 1.0

    def test_recommendation_counts_brand_only(self):
        mentions = [_mention(), _mention(EntityType.COMPETITOR, recommended=True)]
        snapshot = calculate_snapshot(1, [AnalyzedResponse(response=ResponseText("a"), mentions=mentions)])
        assert snapshot.recommendation_rate == 0.0

    def test_negative_brand_positive_competitor(self):
        mentions = [
            _mention(sentiment=Sentiment.NEGATIVE),
            _mention(EntityType.COMPETITOR, sentiment=Sentiment.POSITIVE),
        ]
        snapshot = calculate_snapshot(1, [AnalyzedResponse(response=ResponseText("a"), mentions=mentions)])
        assert snapshot.relative_sentiment_index == 0.0
        assert snapshot.negative_count == 1

    def test_confidence_from_history(self):
        history = [MetricSnapshot(brand_id=1, visibility_score=70) for _ in range(3)]
        snapshot = calculate_snapshot(1, [_analyzed("Acme")], history=history)
        assert snapshot.confidence_score == pytest.approx(1.0)
        assert snapshot.confidence_level == ConfidenceLevel.HIGH

    def test_components_always_bounded(self):
        responses = [_analyzed(t) for t in ("Acme Acme Acme Acme", "Globex is the worst", "I recommend Acme")]
        snapshot = calculate_snapshot(1, responses)
        for value in (
            snapshot.normalized_mention_rate,
            snapshot.weighted_position_score,
            snapshot.recommendation_rate,
            snapshot.relative_sentiment_index,
        ):
            assert 0.0 <= value <= 1.0
        assert 0.0 <= snapshot.visibility_score <= 100.0


class TestLegacyScores:
    def test_sentiment_score(self):
        assert sentiment_score(0, 0, 0) == 3.0
        assert sentiment_score(1, 0, 1) == 3.0
        assert sentiment_score(2, 0, 0) == 5.0

    def test_response_score_absent_brand(self):
        assert calculate_response_score([_mention(EntityType.COMPETITOR)]) == 0

    def test_response_score_alone_positive(self):
        assert calculate_response_score([_mention(sentiment=Sentiment.POSITIVE)]) == 100

    def test_response_score_with_competitors(self):
        mentions = [_mention(), _mention(EntityType.COMPETITOR), _mention(EntityType.COMPETITOR)]
        assert calculate_response_score(mentions) == 50 + 8

    def test_response_score_negative(self):
        assert calculate_response_score([_mention(sentiment=Sentiment.NEGATIVE)]) == 50
