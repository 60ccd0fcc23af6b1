"""Lexicons for the rule-based sentiment and recommendation detectors.

Word lists are immutable values handed to the detectors, so tests and
localized deployments can swap them without touching module state.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

_POSITIVE_TERMS_EN = (
    "best",
    "excellent",
    "great",
    "amazing",
    "outstanding",
    "fantastic",
    "superior",
    "recommended",
    "top",
    "leading",
    "preferred",
    "favorite",
    "powerful",
    "efficient",
    "reliable",
    "innovative",
    "impressive",
    "love",
    "perfect",
    "awesome",
    "brilliant",
    "exceptional",
    "superb",
    "highly recommended",
    "top-rated",
    "must-have",
    "game-changer",
)

_NEGATIVE_TERMS_EN = (
    "worst",
    "terrible",
    "awful",
    "poor",
    "bad",
    "disappointing",
    "inferior",
    "avoid",
    "limited",
    "outdated",
    "slow",
    "expensive",
    "complicated",
    "confusing",
    "unreliable",
    "buggy",
    "frustrating",
    "hate",
    "horrible",
    "dreadful",
    "useless",
    "overpriced",
    "lacking",
    "not recommended",
    "stay away",
    "problems",
    "issues",
    "fails",
)

_NEGATION_TERMS_EN = (
    "not",
    "no",
    "never",
    "neither",
    "nobody",
    "nothing",
    "nowhere",
    "hardly",
    "barely",
    "doesn't",
    "don't",
    "didn't",
    "won't",
    "isn't",
    "aren't",
    "wasn't",
    "weren't",
    "hasn't",
    "haven't",
    "hadn't",
)

_RECOMMENDATION_PHRASES_EN = (
    "i recommend",
    "i'd recommend",
    "we recommend",
    "i strongly recommend",
    "highly recommend",
    "my recommendation is",
    "is the best choice",
    "is the best option",
    "is my top pick",
    "is my top choice",
    "you should use",
    "you should go with",
    "go with",
    "i suggest",
    "i'd suggest",
    "the best option is",
    "the best choice is",
    "top pick",
    "first choice",
    "stands out as",
    "is ideal for",
    "is perfect for",
)


def _normalize_terms(terms: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for term in terms:
        cleaned = term.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


@dataclass(frozen=True)
class Lexicon:
    """Immutable word lists used by the sentiment and recommendation detectors."""

    positive_terms: tuple[str, ...] = _POSITIVE_TERMS_EN
    negative_terms: tuple[str, ...] = _NEGATIVE_TERMS_EN
    negation_terms: tuple[str, ...] = _NEGATION_TERMS_EN
    recommendation_phrases: tuple[str, ...] = _RECOMMENDATION_PHRASES_EN
    negation_window: int = 30  # chars preceding a hit searched for a negation
    clause_breaks: str = ",;.!?:\n"

    def __post_init__(self) -> None:
        for name in ("positive_terms", "negative_terms", "negation_terms", "recommendation_phrases"):
            object.__setattr__(self, name, _normalize_terms(getattr(self, name)))
        if self.negation_window < 0:
            raise ValueError("negation_window must be non-negative")

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Lexicon:
        """Build a lexicon from a mapping (e.g. a parsed JSON file).

        Missing keys fall back to the English defaults.
        """
        known = {
            "positive_terms",
            "negative_terms",
            "negation_terms",
            "recommendation_phrases",
            "negation_window",
            "clause_breaks",
        }
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown lexicon keys: {sorted(unknown)}")
        kwargs: dict[str, object] = {}
        for key, value in data.items():
            if key in ("negation_window", "clause_breaks"):
                kwargs[key] = value
            elif isinstance(value, str):
                raise ValueError(f"Lexicon key {key!r} needs a list of terms, got a string")
            else:
                kwargs[key] = tuple(value)  # type: ignore[arg-type]
        return cls(**kwargs)  # type: ignore[arg-type]


DEFAULT_LEXICON = Lexicon()
