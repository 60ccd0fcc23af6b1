"""Tests for MetricsCalculator and the dashboard aggregation helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from visibility_tracker.analysis.pipeline import detect_mentions
from visibility_tracker.analysis.types import AnalyzedResponse, ConfidenceLevel, ResponseText
from visibility_tracker.services.metrics_service import (
    BRAND_COLOR,
    DEFAULT_MODEL_COLOR,
    MetricsCalculator,
    citation_breakdown,
    competitor_metrics,
    model_color,
    model_visibility,
)

SCENARIO = "I recommend Acme because it's the best choice, unlike Globex which has issues."


async def _store_run(repository, profile, texts, model="fake-model"):
    run_id = await repository.begin_run(profile.brand_id)
    for i, text in enumerate(texts, start=1):
        stored = await repository.store_response(run_id, profile.brand_id, i, f"prompt {i}", ResponseText(text, model))
        await repository.store_mentions(stored.id, detect_mentions(text, profile))


def _analyzed(profile, text, model="fake-model"):
    return AnalyzedResponse(response=ResponseText(text, model), mentions=detect_mentions(text, profile))


class TestModelColor:
    def test_exact(self):
        assert model_color("Groq Llama 3.3") == "#f55036"

    def test_substring(self):
        assert model_color("openrouter-google/gemini-2.0-flash-001") == "#4285f4"

    def test_unknown(self):
        assert model_color("mystery") == DEFAULT_MODEL_COLOR


class TestBreakdowns:
    def test_competitor_metrics_collapse_aliases(self, profile):
        responses = [_analyzed(profile, "AcmePM and Acme are great. globex is slow.")]
        rows = {row.name: row for row in competitor_metrics(profile, responses)}
        assert rows["Acme"].mentions == 2
        assert rows["Globex"].mentions == 1
        assert rows["Globex"].negative == 1
        assert rows["Initech"].mentions == 0

    def test_citation_breakdown_shares(self, profile):
        responses = [_analyzed(profile, "Acme, Acme and Acme beat Globex")]
        breakdown = citation_breakdown(profile, responses)
        assert [(b.name, b.value) for b in breakdown] == [("Acme", 75.0), ("Globex", 25.0), ("Initech", 0.0)]
        assert breakdown[0].color == BRAND_COLOR

    def test_citation_breakdown_no_mentions(self, profile):
        breakdown = citation_breakdown(profile, [_analyzed(profile, "nothing")])
        assert all(b.value == 0.0 for b in breakdown)

    def test_model_visibility_average(self, profile):
        responses = [
            _analyzed(profile, "Acme is great", model="Gemma 3 27B"),
            _analyzed(profile, "nothing here", model="Gemma 3 27B"),
            _analyzed(profile, "Acme", model=""),
        ]
        rows = {row.model: row for row in model_visibility(responses)}
        assert rows["Gemma 3 27B"].score == pytest.approx(50.0)
        assert rows["Gemma 3 27B"].color == "#4285f4"
        assert rows["Gemma 3 27B"].mentions == 1
        assert rows["Unknown"].score == pytest.approx(75.0)


class TestMetricsCalculator:
    @pytest.mark.asyncio
    async def test_calculate_and_store(self, repository, profile):
        await _store_run(repository, profile, [SCENARIO])
        calc = MetricsCalculator(repository)

        snapshot = await calc.calculate_and_store_metrics(1)

        assert snapshot.id > 0
        assert snapshot.visibility_score == pytest.approx(100.0)
        assert snapshot.confidence_level == ConfidenceLevel.MEDIUM
        assert (await repository.get_recent_snapshots(1, 1))[0].id == snapshot.id

    @pytest.mark.asyncio
    async def test_uses_latest_run_only(self, repository, profile):
        await _store_run(repository, profile, ["Acme"])
        await _store_run(repository, profile, ["nothing", "still nothing"])
        snapshot = await MetricsCalculator(repository).calculate_and_store_metrics(1)
        assert snapshot.response_count == 2
        # No mentions at all: only the neutral-vs-neutral sentiment term contributes
        assert snapshot.visibility_score == pytest.approx(7.5)

    @pytest.mark.asyncio
    async def test_no_run_gives_empty_snapshot(self, repository):
        snapshot = await MetricsCalculator(repository).calculate_and_store_metrics(1)
        assert snapshot.response_count == 0
        assert snapshot.confidence_level == ConfidenceLevel.LOW

    @pytest.mark.asyncio
    async def test_confidence_after_history(self, repository, profile):
        calc = MetricsCalculator(repository)
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for day in range(4):
            await _store_run(repository, profile, [SCENARIO])
            snapshot = await calc.calculate_and_store_metrics(1, now=base + timedelta(days=day))
        assert snapshot.confidence_level == ConfidenceLevel.HIGH
        assert snapshot.confidence_score == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_empty_dashboard(self, repository):
        dashboard = await MetricsCalculator(repository).get_dashboard(1)
        assert dashboard.visibility_score == 0.0
        assert dashboard.sentiment_score == 3.0
        assert dashboard.trends == []

    @pytest.mark.asyncio
    async def test_dashboard(self, repository, profile):
        calc = MetricsCalculator(repository)
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        await _store_run(repository, profile, ["nothing"])
        await calc.calculate_and_store_metrics(1, now=base)
        await _store_run(repository, profile, [SCENARIO])
        await calc.calculate_and_store_metrics(1, now=base + timedelta(days=1))

        dashboard = await calc.get_dashboard(1)

        assert dashboard.visibility_score == pytest.approx(100.0)
        assert dashboard.citation_share == 100.0
        assert dashboard.total_mentions == 1
        assert dashboard.sentiment_score == 5.0
        assert [t.snapshot_date for t in dashboard.trends] == [base, base + timedelta(days=1)]
        assert dashboard.citation_breakdown[0].value == 50.0
        assert dashboard.competitor_data[1].name == "Globex"
        assert dashboard.competitor_data[1].negative == 1
        assert len(dashboard.model_visibility) == 1
        assert dashboard.model_visibility[0].score == pytest.approx((0 + 87) / 2)
