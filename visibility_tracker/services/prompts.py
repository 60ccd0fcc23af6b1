"""Prompt templating: fills ``{brand}``-style placeholders from a brand profile."""

import re

from visibility_tracker.analysis.types import BrandProfile

DEFAULT_COMPETITOR = "similar products"
DEFAULT_USE_CASE = "general business use"


def _replace(text: str, placeholder: str, value: str) -> str:
    pattern = re.compile(re.escape("{" + placeholder + "}"), re.IGNORECASE)
    return pattern.sub(lambda _: value, text)


def build_prompt_with_context(template: str, profile: BrandProfile) -> str:
    """Substitute brand, category, competitor and use-case placeholders.

    ``{competitor}`` uses the first competitor (or "similar products"),
    ``{category}`` the brand's industry. Placeholder names are case-insensitive.
    """
    competitor = profile.competitors[0] if profile.competitors else DEFAULT_COMPETITOR

    result = _replace(template, "brand", profile.name)
    result = _replace(result, "category", profile.industry)
    result = _replace(result, "competitor", competitor)
    result = _replace(result, "use_case", DEFAULT_USE_CASE)
    return result
