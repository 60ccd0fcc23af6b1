"""Confidence Estimator.

Confidence = 1 − (stdDev / mean) of the visibility scores of the most
recent prior snapshots (population standard deviation), clamped to [0, 1]:

  ≥ 0.8 → high
  < 0.5 → low
  else  → medium

Fewer than 3 snapshots → fixed 0.5 / medium. Mean of 0 → 0.0 / low.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from visibility_tracker.analysis.types import ConfidenceLevel, MetricSnapshot

HISTORY_SIZE = 7
MIN_HISTORY = 3
NEUTRAL_CONFIDENCE = 0.5
HIGH_THRESHOLD = 0.8
LOW_THRESHOLD = 0.5


def confidence_level(score: float) -> ConfidenceLevel:
    if score >= HIGH_THRESHOLD:
        return ConfidenceLevel.HIGH
    if score < LOW_THRESHOLD:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.MEDIUM


def estimate_confidence(
    history: Sequence[MetricSnapshot],
    history_size: int = HISTORY_SIZE,
) -> tuple[float, ConfidenceLevel]:
    """Estimate trend stability from prior snapshots, newest first.

    Only the first ``history_size`` snapshots are considered.
    """
    recent = list(history)[:history_size]
    if len(recent) < MIN_HISTORY:
        return NEUTRAL_CONFIDENCE, ConfidenceLevel.MEDIUM

    scores = [s.visibility_score for s in recent]
    mean = sum(scores) / len(scores)
    if mean == 0:
        return 0.0, ConfidenceLevel.LOW

    variance = sum((score - mean) ** 2 for score in scores) / len(scores)
    std_dev = math.sqrt(variance)

    confidence = max(0.0, min(1.0, 1 - (std_dev / mean)))
    return confidence, confidence_level(confidence)
