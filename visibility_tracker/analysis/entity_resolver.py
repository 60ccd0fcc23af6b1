"""Entity Mention Scanner: Pipeline Step 1.

Finds every occurrence of the tracked brand, its aliases and its
competitors in a response:
  - Case-insensitive literal matching
  - Word-boundary check: no letter or digit directly before or after
  - Every occurrence is reported (no deduplication across candidates)
  - Context snippet of up to 50 chars on each side, "..." when clipped
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from visibility_tracker.analysis.types import BrandProfile, DetectedMention, EntityType

logger = logging.getLogger(__name__)

# Characters of context kept on each side of a match
CONTEXT_WINDOW = 50
ELLIPSIS = "..."


class Candidate(NamedTuple):
    """A name to look for and which side it belongs to."""

    name: str
    entity_type: EntityType


def build_candidates(profile: BrandProfile) -> list[Candidate]:
    """Brand name, every alias, then every competitor. Blank names are skipped."""
    candidates: list[Candidate] = []
    for name in (profile.name, *profile.aliases):
        if name and name.strip():
            candidates.append(Candidate(name.strip(), EntityType.BRAND))
    for name in profile.competitors:
        if name and name.strip():
            candidates.append(Candidate(name.strip(), EntityType.COMPETITOR))
    return candidates


def _is_word_char(ch: str) -> bool:
    return ch.isalpha() or ch.isdigit()


def _is_word_boundary(text: str, start: int, end: int) -> bool:
    """True when the span [start, end) is not glued to a letter or digit."""
    if start > 0 and _is_word_char(text[start - 1]):
        return False
    if end < len(text) and _is_word_char(text[end]):
        return False
    return True


def _extract_context(text: str, start: int, end: int, window: int = CONTEXT_WINDOW) -> str:
    """Text fragment around a match, marked with an ellipsis where clipped."""
    context_start = max(0, start - window)
    context_end = min(len(text), end + window)
    context = text[context_start:context_end]
    if context_start > 0:
        context = ELLIPSIS + context
    if context_end < len(text):
        context = context + ELLIPSIS
    return context


def snippet_focus(mention: DetectedMention, window: int = CONTEXT_WINDOW) -> tuple[int, int]:
    """Span of the matched name inside ``mention.context_snippet``."""
    lead = min(mention.char_position, window)
    if mention.char_position > window:
        lead += len(ELLIPSIS)
    return lead, lead + len(mention.entity_name)


def find_entity_mentions(text: str, entity_name: str, entity_type: EntityType) -> list[DetectedMention]:
    """Every word-bounded occurrence of one name in the text."""
    if not entity_name:
        return []

    pattern = re.compile(re.escape(entity_name), re.IGNORECASE)
    mentions: list[DetectedMention] = []

    for match in pattern.finditer(text):
        start, end = match.span()
        if not _is_word_boundary(text, start, end):
            continue
        mentions.append(
            DetectedMention(
                entity_name=entity_name,
                entity_type=entity_type,
                context_snippet=_extract_context(text, start, end),
                char_position=start,
            )
        )

    return mentions


def scan_mentions(text: str, candidates: list[Candidate]) -> list[DetectedMention]:
    """Scan the text for all candidates, in candidate order (unsorted)."""
    mentions: list[DetectedMention] = []
    for candidate in candidates:
        mentions.extend(find_entity_mentions(text, candidate.name, candidate.entity_type))

    logger.debug("Scanned %d candidates, found %d mentions", len(candidates), len(mentions))
    return mentions
