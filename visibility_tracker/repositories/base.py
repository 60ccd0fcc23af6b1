"""Persistence collaborator used by the analysis services.

Relational storage is out of scope; services depend only on this protocol so
any store (SQL, document, in-memory) can back them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from visibility_tracker.analysis.types import (
    AnalyzedResponse,
    BrandProfile,
    DetectedMention,
    MetricSnapshot,
    ResponseText,
)


@dataclass(frozen=True)
class PromptTemplate:
    """A prompt with ``{brand}``-style placeholders."""

    id: int
    name: str
    template: str
    is_active: bool = True


@dataclass(frozen=True)
class StoredResponse:
    """Identifiers assigned to a persisted response."""

    id: int
    run_id: int
    brand_id: int
    prompt_id: int
    prompt_text: str
    response: ResponseText


DEFAULT_PROMPTS: tuple[PromptTemplate, ...] = (
    PromptTemplate(1, "Best Tools", "What are the best {category} tools in 2024?"),
    PromptTemplate(2, "Alternatives", "What are the best alternatives to {competitor}?"),
    PromptTemplate(3, "Comparison", "Compare {brand} vs {competitor} for {use_case}"),
    PromptTemplate(4, "Beginner", "What {category} tool should a beginner use?"),
    PromptTemplate(5, "Reviews", "What do people say about {brand}?"),
)


class AnalysisRepository(Protocol):
    async def get_brand(self, brand_id: int) -> BrandProfile:
        """Raises BrandNotFoundError for unknown ids."""
        ...

    async def get_prompts(self, prompt_ids: Sequence[int] | None = None) -> list[PromptTemplate]:
        """Active prompts, or the requested ones in the requested order."""
        ...

    async def begin_run(self, brand_id: int) -> int: ...

    async def store_response(
        self,
        run_id: int,
        brand_id: int,
        prompt_id: int,
        prompt_text: str,
        response: ResponseText,
    ) -> StoredResponse: ...

    async def store_mentions(self, response_id: int, mentions: Sequence[DetectedMention]) -> None: ...

    async def get_latest_run(self, brand_id: int) -> list[AnalyzedResponse]:
        """Responses (with mentions) of the brand's most recent run."""
        ...

    async def get_brand_responses(self, brand_id: int) -> list[AnalyzedResponse]:
        """Every stored response of the brand, oldest first."""
        ...

    async def get_recent_snapshots(self, brand_id: int, limit: int) -> list[MetricSnapshot]:
        """Newest first."""
        ...

    async def store_snapshot(self, snapshot: MetricSnapshot) -> MetricSnapshot:
        """Persist and return the snapshot with its id assigned."""
        ...
