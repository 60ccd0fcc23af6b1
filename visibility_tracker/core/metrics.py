"""Prometheus metrics for provider calls, analysis runs and the concurrency gate."""

from prometheus_client import Counter, Histogram, Info, generate_latest

APP_INFO = Info("visibility_tracker", "AI visibility tracker info")
APP_INFO.info({"version": "0.1.0", "name": "visibility_tracker"})

PROVIDER_CALLS = Counter(
    "provider_calls_total",
    "Total text-generation provider calls",
    ["provider", "status"],
)

PROVIDER_CALL_DURATION = Histogram(
    "provider_call_duration_seconds",
    "Provider call duration in seconds",
    ["provider"],
    buckets=[0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120],
)

ANALYSIS_RUNS = Counter(
    "analysis_runs_total",
    "Total analysis runs",
    ["status"],
)

GATE_REJECTIONS = Counter(
    "gate_rejections_total",
    "Requests rejected by the concurrency gate",
    ["reason"],
)

VISIBILITY_SCORE = Histogram(
    "visibility_score",
    "Composite visibility scores computed per run",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)


def metrics_payload() -> bytes:
    """Prometheus text exposition for an external /metrics endpoint."""
    return generate_latest()
