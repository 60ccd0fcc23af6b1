"""Concurrency Gate for text-generation providers.

Two non-blocking primitives guard every provider call:
  - Rate Limiter: minimum inter-call interval + calls-per-minute ceiling
  - In-Flight Registry: at most one running analysis per brand, with a
    staleness timeout for abandoned slots

Callers poll and decide whether to reject, queue or wait; nothing here sleeps.
"""
