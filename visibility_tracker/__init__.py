"""AI visibility tracker: brand mention analysis and composite scoring for LLM responses."""

__version__ = "0.1.0"
