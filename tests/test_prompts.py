"""Tests for prompt templating."""

from visibility_tracker.analysis.types import BrandProfile
from visibility_tracker.repositories.base import DEFAULT_PROMPTS
from visibility_tracker.services.prompts import build_prompt_with_context


class TestBuildPrompt:
    def test_all_placeholders(self, profile):
        prompt = build_prompt_with_context("Compare {brand} vs {competitor} for {use_case} in {category}", profile)
        assert prompt == "Compare Acme vs Globex for general business use in project management"

    def test_case_insensitive_placeholders(self, profile):
        assert build_prompt_with_context("What about {BRAND} and {Competitor}?", profile) == "What about Acme and Globex?"

    def test_no_competitor_fallback(self):
        profile = BrandProfile(name="Acme", industry="CRM")
        prompt = build_prompt_with_context("Best alternatives to {competitor}?", profile)
        assert prompt == "Best alternatives to similar products?"

    def test_value_with_backslash_kept_literal(self):
        profile = BrandProfile(name=r"Acme\1")
        assert build_prompt_with_context("{brand}", profile) == r"Acme\1"

    def test_default_prompts_seeded(self):
        names = [p.name for p in DEFAULT_PROMPTS]
        assert names == ["Best Tools", "Alternatives", "Comparison", "Beginner", "Reviews"]
