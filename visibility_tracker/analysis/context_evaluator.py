"""Context Evaluator / Sentiment Classifier: Pipeline Step 3.

Rule-based lexicon lookup over a mention's context snippet:
  - Every positive/negative term occurrence is a hit (whole words only)
  - A negation within the 30 chars before a hit flips its polarity
  - positive > negative → positive, negative > positive → negative, else neutral

When the position of the mention inside the snippet is known, the clause
holding the mention (bounded by , ; . ! ? : or a newline) is scored first,
so "Acme is great, unlike Globex which has issues" rates each brand on its
own clause. If that clause carries no lexicon hit, the whole snippet is used.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from visibility_tracker.analysis.lexicon import DEFAULT_LEXICON, Lexicon
from visibility_tracker.analysis.types import Sentiment

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1024)
def _term_pattern(term: str) -> re.Pattern:
    """Whole-word pattern for a lowercase lexicon term."""
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)")


def _normalize(text: str) -> str:
    # Curly apostrophes ("doesn’t") compare equal to the lexicon's straight ones
    return text.lower().replace("’", "'")


def _has_nearby_negation(text: str, hit_start: int, lexicon: Lexicon) -> bool:
    """Check the window immediately preceding a hit for a negation term."""
    window_start = max(0, hit_start - lexicon.negation_window)
    for negation in lexicon.negation_terms:
        if _term_pattern(negation).search(text, window_start, hit_start):
            return True
    return False


def count_polarity(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> tuple[int, int]:
    """Count (positive, negative) hits in already-normalized text."""
    positive = 0
    negative = 0

    for term in lexicon.positive_terms:
        for match in _term_pattern(term).finditer(text):
            if _has_nearby_negation(text, match.start(), lexicon):
                negative += 1
            else:
                positive += 1

    for term in lexicon.negative_terms:
        for match in _term_pattern(term).finditer(text):
            # Double negative reads as positive
            if _has_nearby_negation(text, match.start(), lexicon):
                positive += 1
            else:
                negative += 1

    return positive, negative


def _label(positive: int, negative: int) -> Sentiment:
    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def clause_bounds(text: str, start: int, end: int, breaks: str) -> tuple[int, int]:
    """Bounds of the clause containing the span [start, end)."""
    left = max((text.rfind(ch, 0, start) for ch in breaks), default=-1) + 1
    right_hits = [pos for pos in (text.find(ch, end) for ch in breaks) if pos >= 0]
    right = min(right_hits) if right_hits else len(text)
    return left, right


def classify_sentiment(
    context: str,
    focus: tuple[int, int] | None = None,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> Sentiment:
    """Classify the sentiment of one mention's context snippet.

    Args:
        context: The mention's context snippet (not the whole response).
        focus: Span of the mentioned name inside ``context``, if known.
        lexicon: Word lists to use.
    """
    text = _normalize(context)

    # lower() can change length for a few code points; offsets are then unusable
    if focus is not None and len(text) == len(context):
        left, right = clause_bounds(text, focus[0], focus[1], lexicon.clause_breaks)
        positive, negative = count_polarity(text[left:right], lexicon)
        if positive or negative:
            return _label(positive, negative)

    positive, negative = count_polarity(text, lexicon)
    return _label(positive, negative)
