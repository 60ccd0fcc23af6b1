"""In-memory AnalysisRepository for tests, scripts and single-process use."""

from __future__ import annotations

import asyncio
import dataclasses
import itertools
from collections.abc import Sequence

from visibility_tracker.analysis.types import (
    AnalyzedResponse,
    BrandProfile,
    DetectedMention,
    MetricSnapshot,
    ResponseText,
)
from visibility_tracker.gateway.errors import BrandNotFoundError
from visibility_tracker.repositories.base import DEFAULT_PROMPTS, PromptTemplate, StoredResponse


class InMemoryRepository:
    """Dict-backed store. Safe to share between tasks of one event loop."""

    def __init__(self, prompts: Sequence[PromptTemplate] = DEFAULT_PROMPTS):
        self._lock = asyncio.Lock()
        self._brands: dict[int, BrandProfile] = {}
        self._prompts: dict[int, PromptTemplate] = {p.id: p for p in prompts}
        self._responses: dict[int, StoredResponse] = {}
        self._mentions: dict[int, list[DetectedMention]] = {}
        self._latest_run: dict[int, int] = {}
        self._snapshots: list[MetricSnapshot] = []
        self._ids = {
            "brand": itertools.count(1),
            "run": itertools.count(1),
            "response": itertools.count(1),
            "snapshot": itertools.count(1),
        }

    # -- brands / prompts -----------------------------------------------------

    def add_brand(self, profile: BrandProfile) -> BrandProfile:
        """Register a brand; assigns an id when the profile has none."""
        brand_id = profile.brand_id or next(self._ids["brand"])
        stored = dataclasses.replace(profile, brand_id=brand_id)
        self._brands[brand_id] = stored
        return stored

    async def get_brand(self, brand_id: int) -> BrandProfile:
        try:
            return self._brands[brand_id]
        except KeyError:
            raise BrandNotFoundError(brand_id) from None

    async def get_prompts(self, prompt_ids: Sequence[int] | None = None) -> list[PromptTemplate]:
        if prompt_ids is None:
            return [p for p in self._prompts.values() if p.is_active]
        return [self._prompts[pid] for pid in prompt_ids if pid in self._prompts]

    # -- responses / mentions -------------------------------------------------

    async def begin_run(self, brand_id: int) -> int:
        async with self._lock:
            run_id = next(self._ids["run"])
            self._latest_run[brand_id] = run_id
            return run_id

    async def store_response(
        self,
        run_id: int,
        brand_id: int,
        prompt_id: int,
        prompt_text: str,
        response: ResponseText,
    ) -> StoredResponse:
        async with self._lock:
            stored = StoredResponse(
                id=next(self._ids["response"]),
                run_id=run_id,
                brand_id=brand_id,
                prompt_id=prompt_id,
                prompt_text=prompt_text,
                response=response,
            )
            self._responses[stored.id] = stored
            self._mentions.setdefault(stored.id, [])
            return stored

    async def store_mentions(self, response_id: int, mentions: Sequence[DetectedMention]) -> None:
        async with self._lock:
            self._mentions.setdefault(response_id, []).extend(dataclasses.replace(m) for m in mentions)

    def _analyzed(self, stored: StoredResponse) -> AnalyzedResponse:
        return AnalyzedResponse(
            response=stored.response,
            mentions=[dataclasses.replace(m) for m in self._mentions.get(stored.id, [])],
            response_id=stored.id,
            prompt_id=stored.prompt_id,
            prompt_text=stored.prompt_text,
        )

    async def get_latest_run(self, brand_id: int) -> list[AnalyzedResponse]:
        run_id = self._latest_run.get(brand_id)
        if run_id is None:
            return []
        return [
            self._analyzed(stored)
            for stored in self._responses.values()
            if stored.brand_id == brand_id and stored.run_id == run_id
        ]

    async def get_brand_responses(self, brand_id: int) -> list[AnalyzedResponse]:
        return [self._analyzed(stored) for stored in self._responses.values() if stored.brand_id == brand_id]

    # -- snapshots --------------------------------------------------------------

    async def get_recent_snapshots(self, brand_id: int, limit: int) -> list[MetricSnapshot]:
        history = [s for s in self._snapshots if s.brand_id == brand_id]
        history.sort(key=lambda s: (s.snapshot_date, s.id), reverse=True)
        return history[:limit]

    async def store_snapshot(self, snapshot: MetricSnapshot) -> MetricSnapshot:
        async with self._lock:
            stored = dataclasses.replace(snapshot, id=next(self._ids["snapshot"]))
            self._snapshots.append(stored)
            return stored
