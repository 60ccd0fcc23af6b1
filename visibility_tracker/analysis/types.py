"""Core types and DTOs for the analysis engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class EntityType(str, Enum):
    """Which side of the comparison a mention belongs to."""

    BRAND = "brand"
    COMPETITOR = "competitor"


class Sentiment(str, Enum):
    """Coarse sentiment bucket of a mention's context."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ConfidenceLevel(str, Enum):
    """Qualitative trend stability."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Numeric value of each sentiment on the 1–5 scale
SENTIMENT_VALUES: dict[Sentiment, float] = {
    Sentiment.POSITIVE: 5.0,
    Sentiment.NEUTRAL: 3.0,
    Sentiment.NEGATIVE: 1.0,
}


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BrandProfile:
    """Read-only view of a tracked brand for one analysis run."""

    name: str
    industry: str = ""
    aliases: tuple[str, ...] = ()
    competitors: tuple[str, ...] = ()
    brand_id: int = 0

    def __post_init__(self) -> None:
        # Accept lists from callers but keep the profile immutable
        object.__setattr__(self, "aliases", tuple(self.aliases))
        object.__setattr__(self, "competitors", tuple(self.competitors))


@dataclass(frozen=True)
class ResponseText:
    """One piece of generated text and where it came from."""

    text: str
    model_name: str = ""
    created_at: float = 0.0  # time.monotonic() at creation


# ---------------------------------------------------------------------------
# Per-response analysis
# ---------------------------------------------------------------------------


@dataclass
class DetectedMention:
    """A single occurrence of the brand (or an alias) or a competitor."""

    entity_name: str
    entity_type: EntityType
    context_snippet: str = ""
    char_position: int = 0  # Offset of the match start in the response
    sentiment: Sentiment = Sentiment.NEUTRAL
    is_recommendation: bool = False
    position_rank: int = 0  # 1-based among brand mentions; 0 = unranked

    def to_dict(self) -> dict:
        return {
            "entity_name": self.entity_name,
            "entity_type": self.entity_type.value,
            "sentiment": self.sentiment.value,
            "context_snippet": self.context_snippet,
            "position": self.char_position,
            "is_recommendation": self.is_recommendation,
            "position_rank": self.position_rank,
        }


@dataclass
class AnalyzedResponse:
    """A stored response together with its annotated mentions."""

    response: ResponseText
    mentions: list[DetectedMention] = field(default_factory=list)
    response_id: int = 0
    prompt_id: int = 0
    prompt_text: str = ""

    @property
    def brand_mentions(self) -> list[DetectedMention]:
        return [m for m in self.mentions if m.entity_type == EntityType.BRAND]

    @property
    def competitor_mentions(self) -> list[DetectedMention]:
        return [m for m in self.mentions if m.entity_type == EntityType.COMPETITOR]


# ---------------------------------------------------------------------------
# Run-level aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricSnapshot:
    """Composite metrics over every response of one analysis run."""

    brand_id: int = 0
    visibility_score: float = 0.0  # 0–100
    citation_share: float = 0.0  # 0–100

    # Component scores (0–1)
    normalized_mention_rate: float = 0.0
    weighted_position_score: float = 0.0
    recommendation_rate: float = 0.0
    relative_sentiment_index: float = 0.0

    # Confidence
    confidence_score: float = 0.0
    confidence_level: ConfidenceLevel = ConfidenceLevel.LOW

    # Brand mention counts
    mention_count: int = 0
    positive_count: int = 0
    neutral_count: int = 0
    negative_count: int = 0

    # Metadata
    response_count: int = 0
    category_avg_sentiment: float = 0.0
    snapshot_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int = 0

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict for storage/API."""
        data = asdict(self)
        data["confidence_level"] = self.confidence_level.value
        data["snapshot_date"] = self.snapshot_date.isoformat()
        return data
