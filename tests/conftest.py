from collections.abc import Callable

import pytest

from visibility_tracker.analysis.types import BrandProfile
from visibility_tracker.core.config import Settings
from visibility_tracker.gateway.in_flight import InFlightRegistry
from visibility_tracker.gateway.rate_limiter import RateLimiter
from visibility_tracker.repositories.memory import InMemoryRepository


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Async sleep that advances a ManualClock instead of waiting."""

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)


class FakeProvider:
    """Scripted provider: returns (or raises) the queued outcomes in order."""

    def __init__(self, outcomes=None, model_name: str = "fake-model", available: bool = True):
        self.outcomes = list(outcomes or [])
        self._model_name = model_name
        self.available = available
        self.prompts: list[str] = []
        self.on_query: Callable[[str], None] | None = None

    @property
    def model_name(self) -> str:
        return self._model_name

    def is_available(self) -> bool:
        return self.available

    async def query(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.on_query is not None:
            self.on_query(prompt)
        outcome = self.outcomes.pop(0) if self.outcomes else "No relevant tools come to mind."
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def fake_sleep(clock):
    return FakeSleep(clock)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        ai_provider="gemini",
        openai_api_key="",
        gemini_api_key="",
        groq_api_key="",
        openrouter_api_key="",
        rate_limit_min_interval_seconds=2.0,
        rate_limit_max_calls_per_minute=10,
        rate_limit_max_wait_seconds=5.0,
        in_flight_timeout_seconds=300.0,
        max_prompts_per_run=6,
        inter_call_delay_seconds=0.5,
        compare_prompt_delay_seconds=0.5,
        compare_max_calls_per_minute=30,
        confidence_history_size=7,
    )


@pytest.fixture
def profile():
    return BrandProfile(
        name="Acme",
        industry="project management",
        aliases=("AcmePM",),
        competitors=("Globex", "Initech"),
        brand_id=1,
    )


@pytest.fixture
def repository(profile):
    repo = InMemoryRepository()
    repo.add_brand(profile)
    return repo


@pytest.fixture
def rate_limiter(clock):
    return RateLimiter(min_interval=2.0, max_calls_per_minute=10, clock=clock)


@pytest.fixture
def in_flight(clock):
    return InFlightRegistry(timeout=300.0, clock=clock)


@pytest.fixture
def make_provider():
    return FakeProvider
