"""Position Ranker: Pipeline Step 2.

Orders mentions by where they appear and assigns 1-based ranks to brand
mentions only. Position weights for the composite score:

  Rank 1  → 1.0
  Rank 2  → 0.7
  Any other rank → 0.4 (ranks below 1 included)
"""

from __future__ import annotations

from visibility_tracker.analysis.types import DetectedMention, EntityType

POSITION_FIRST = 1.0
POSITION_SECOND = 0.7
POSITION_LATER = 0.4


def position_weight(rank: int) -> float:
    """Weight of a brand mention by its rank within one response."""
    if rank == 1:
        return POSITION_FIRST
    if rank == 2:
        return POSITION_SECOND
    return POSITION_LATER


def assign_position_ranks(mentions: list[DetectedMention]) -> list[DetectedMention]:
    """Sort mentions by char position and rank the brand ones.

    Returns a new list; competitor mentions keep rank 0. The sort is stable,
    so duplicates at the same offset (alias + name) keep scan order.
    """
    ordered = sorted(mentions, key=lambda m: m.char_position)

    brand_rank = 0
    for mention in ordered:
        if mention.entity_type == EntityType.BRAND:
            brand_rank += 1
            mention.position_rank = brand_rank
        else:
            mention.position_rank = 0

    return ordered


def response_position_score(mentions: list[DetectedMention]) -> float:
    """Sum of position weights over the brand mentions of one response.

    May exceed 1.0 when the brand appears several times; the run-level
    average is clamped by the score calculator.
    """
    return sum(position_weight(m.position_rank) for m in mentions if m.entity_type == EntityType.BRAND)
