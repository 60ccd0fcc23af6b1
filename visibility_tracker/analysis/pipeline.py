"""Mention Detection Pipeline: orchestrator for steps 1–4.

Chains the per-response steps in order:
  1. Entity Mention Scanner
  2. Position Ranker
  3. Sentiment Classifier (per mention, on its own snippet)
  4. Recommendation Detector (per mention, against the full response)

Input:  response text + BrandProfile
Output: DetectedMention list sorted by char position, fully annotated
"""

from __future__ import annotations

import logging

from visibility_tracker.analysis.context_evaluator import classify_sentiment
from visibility_tracker.analysis.entity_resolver import build_candidates, scan_mentions, snippet_focus
from visibility_tracker.analysis.lexicon import DEFAULT_LEXICON, Lexicon
from visibility_tracker.analysis.ranking_parser import assign_position_ranks
from visibility_tracker.analysis.recommendation import find_recommendation_phrases, is_recommendation
from visibility_tracker.analysis.types import BrandProfile, DetectedMention, EntityType

logger = logging.getLogger(__name__)


class MentionDetector:
    """Detects and annotates brand/competitor mentions in one response."""

    def __init__(self, lexicon: Lexicon = DEFAULT_LEXICON):
        self.lexicon = lexicon

    def detect_mentions(self, response_text: str, brand: BrandProfile) -> list[DetectedMention]:
        if not response_text:
            return []

        # Step 1: raw occurrences
        mentions = scan_mentions(response_text, build_candidates(brand))
        if not mentions:
            return []

        # Step 2: order + brand ranks
        mentions = assign_position_ranks(mentions)

        # Steps 3–4: annotation
        phrase_starts = find_recommendation_phrases(response_text, self.lexicon)
        for mention in mentions:
            mention.sentiment = classify_sentiment(
                mention.context_snippet,
                focus=snippet_focus(mention),
                lexicon=self.lexicon,
            )
            mention.is_recommendation = is_recommendation(mention.char_position, phrase_starts)

        logger.debug(
            "Detected %d mentions for brand=%s (brand=%d, competitor=%d)",
            len(mentions),
            brand.name,
            sum(1 for m in mentions if m.entity_type == EntityType.BRAND),
            sum(1 for m in mentions if m.entity_type == EntityType.COMPETITOR),
        )
        return mentions


def detect_mentions(
    response_text: str,
    brand: BrandProfile,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> list[DetectedMention]:
    """Run the full per-response pipeline with the given lexicon."""
    return MentionDetector(lexicon).detect_mentions(response_text, brand)
