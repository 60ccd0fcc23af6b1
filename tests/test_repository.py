"""Tests for the in-memory repository."""

from datetime import datetime, timedelta, timezone

import pytest

from visibility_tracker.analysis.types import DetectedMention, EntityType, MetricSnapshot, ResponseText
from visibility_tracker.gateway.errors import BrandNotFoundError


class TestInMemoryRepository:
    @pytest.mark.asyncio
    async def test_unknown_brand(self, repository):
        with pytest.raises(BrandNotFoundError):
            await repository.get_brand(99)

    @pytest.mark.asyncio
    async def test_prompts_by_id_keep_order(self, repository):
        prompts = await repository.get_prompts([3, 1, 42])
        assert [p.id for p in prompts] == [3, 1]

    @pytest.mark.asyncio
    async def test_latest_run_only(self, repository):
        first = await repository.begin_run(1)
        await repository.store_response(first, 1, 1, "p1", ResponseText("old"))
        second = await repository.begin_run(1)
        stored = await repository.store_response(second, 1, 2, "p2", ResponseText("new"))
        await repository.store_mentions(
            stored.id, [DetectedMention(entity_name="Acme", entity_type=EntityType.BRAND)]
        )

        latest = await repository.get_latest_run(1)
        assert [r.response.text for r in latest] == ["new"]
        assert len(latest[0].mentions) == 1
        assert len(await repository.get_brand_responses(1)) == 2

    @pytest.mark.asyncio
    async def test_snapshots_newest_first(self, repository):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for day in range(3):
            await repository.store_snapshot(
                MetricSnapshot(brand_id=1, visibility_score=day, snapshot_date=base + timedelta(days=day))
            )
        recent = await repository.get_recent_snapshots(1, 2)
        assert [s.visibility_score for s in recent] == [2, 1]
        assert all(s.id > 0 for s in recent)
