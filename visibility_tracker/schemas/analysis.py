"""Pydantic result models returned by the analysis services."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class RunAnalysisRequest(BaseModel):
    brand_id: int = Field(ge=1)
    prompt_ids: list[int] | None = None


class MentionOut(BaseModel):
    entity_name: str
    entity_type: str = Field(pattern=r"^(brand|competitor)$")
    sentiment: str = Field(pattern=r"^(positive|neutral|negative)$")
    context_snippet: str = ""
    position: int = Field(ge=0)
    is_recommendation: bool = False
    position_rank: int = Field(default=0, ge=0)


class ResponseOut(BaseModel):
    id: int
    prompt_id: int
    prompt_text: str
    model_name: str
    response_text: str
    mentions: list[MentionOut] = Field(default_factory=list)


class RunAnalysisResult(BaseModel):
    success: bool
    message: str
    responses_run: int = Field(default=0, ge=0)
    responses: list[ResponseOut] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    snapshot_id: int | None = None
    visibility_score: float | None = Field(default=None, ge=0, le=100)


class RateLimitStatus(BaseModel):
    calls_this_minute: int = Field(ge=0)
    max_calls_per_minute: int = Field(ge=1)
    seconds_until_reset: int = Field(ge=0)
    can_proceed: bool


class AnalysisStatus(BaseModel):
    provider_available: bool
    provider_name: str = ""
    rate_limit_status: RateLimitStatus
    can_run_analysis: bool
    in_flight_brands: list[int] = Field(default_factory=list)


class CompareModelsRequest(BaseModel):
    brand_id: int = Field(ge=1)
    prompt_ids: list[int] | None = None
    model_ids: list[str] = Field(default_factory=list, description="OpenRouter model ids or 'groq'")


class ModelResult(BaseModel):
    model_id: str
    model_name: str
    provider: str
    color: str
    prompt_text: str
    response: str = ""
    mentions: list[MentionOut] = Field(default_factory=list)
    score: int = Field(default=0, ge=0, le=100)
    error: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CompareModelsResult(BaseModel):
    success: bool
    message: str
    results: list[ModelResult] = Field(default_factory=list)
    total_calls: int = Field(default=0, ge=0)
    success_calls: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)


class InsightsResult(BaseModel):
    success: bool
    insights: str = ""
    error: str | None = None


class CitationBreakdown(BaseModel):
    name: str
    value: float = Field(ge=0, le=100, description="Share of all entity mentions (%)")
    color: str


class CompetitorMetrics(BaseModel):
    name: str
    mentions: int = Field(ge=0)
    positive: int = Field(ge=0)
    neutral: int = Field(ge=0)
    negative: int = Field(ge=0)


class ModelVisibility(BaseModel):
    model: str
    model_id: str
    color: str
    score: float = Field(ge=0, le=100, description="Average per-response score")
    mentions: int = Field(ge=0)


class TrendPoint(BaseModel):
    snapshot_date: datetime
    visibility_score: float = Field(ge=0, le=100)
    citation_share: float = Field(ge=0, le=100)
    confidence_level: str


class DashboardData(BaseModel):
    visibility_score: float = Field(default=0.0, ge=0, le=100)
    citation_share: float = Field(default=0.0, ge=0, le=100)
    total_mentions: int = Field(default=0, ge=0)
    sentiment_score: float = Field(default=3.0, ge=1, le=5)
    trends: list[TrendPoint] = Field(default_factory=list)
    citation_breakdown: list[CitationBreakdown] = Field(default_factory=list)
    competitor_data: list[CompetitorMetrics] = Field(default_factory=list)
    model_visibility: list[ModelVisibility] = Field(default_factory=list)
    # Component scores
    normalized_mention_rate: float = Field(default=0.0, ge=0, le=1)
    weighted_position_score: float = Field(default=0.0, ge=0, le=1)
    recommendation_rate: float = Field(default=0.0, ge=0, le=1)
    relative_sentiment_index: float = Field(default=0.0, ge=0, le=1)
    # Confidence
    confidence_score: float = Field(default=0.0, ge=0, le=1)
    confidence_level: str = "low"
    response_count: int = Field(default=0, ge=0)
    category_avg_sentiment: float = 0.0
