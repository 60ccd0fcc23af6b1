"""LLM Response Analysis & Scoring Engine.

Rule-based pipeline for analyzing generated responses about a tracked brand:
  1. Entity Mention Scanner (word-boundary, case-insensitive)
  2. Position Ranker
  3. Sentiment Classifier (lexicon + negation)
  4. Recommendation Detector
  5. Composite Score Calculator
  6. Confidence Estimator

Input:  ResponseText + BrandProfile
Output: DetectedMention list per response, MetricSnapshot per run
"""
