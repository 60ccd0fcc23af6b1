"""Recommendation Detector: Pipeline Step 4.

Flags a mention as an explicit recommendation when a recommendation phrase
("i recommend", "is my top pick", "go with", ...) occurs close to it:
  - |phrase_start − mention_position| < 150
  - mention_position ≥ phrase_start − 50 (the name may lead the phrase slightly)

The phrase scan runs once over the full lowercase response and is shared by
every mention of that response.
"""

from __future__ import annotations

import re
from functools import lru_cache

from visibility_tracker.analysis.lexicon import DEFAULT_LEXICON, Lexicon

# Proximity limits, in characters
RECOMMENDATION_WINDOW = 150
RECOMMENDATION_LEAD = 50


@lru_cache(maxsize=256)
def _phrase_pattern(phrase: str) -> re.Pattern:
    return re.compile(rf"(?<!\w){re.escape(phrase)}(?!\w)")


def find_recommendation_phrases(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> list[int]:
    """Start offsets of every recommendation phrase occurrence, ascending."""
    lowered = text.lower().replace("’", "'")
    if len(lowered) != len(text):
        # Offsets must line up with mention positions in the original text
        lowered = "".join(ch.lower() if len(ch.lower()) == 1 else ch for ch in text).replace("’", "'")

    starts: set[int] = set()
    for phrase in lexicon.recommendation_phrases:
        for match in _phrase_pattern(phrase).finditer(lowered):
            starts.add(match.start())
    return sorted(starts)


def is_recommendation(char_position: int, phrase_starts: list[int]) -> bool:
    """True when some phrase occurrence qualifies for a mention at ``char_position``."""
    for phrase_start in phrase_starts:
        if abs(phrase_start - char_position) >= RECOMMENDATION_WINDOW:
            continue
        if char_position >= phrase_start - RECOMMENDATION_LEAD:
            return True
    return False


def detect_recommendation(text: str, char_position: int, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Single-mention convenience wrapper around the two steps above."""
    return is_recommendation(char_position, find_recommendation_phrases(text, lexicon))
