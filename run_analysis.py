"""
run_analysis.py: End-to-end analysis run against the configured provider

Runs the whole pipeline in one go:
  1. Provider selection from .env / environment
  2. Brand registration (in-memory store)
  3. Analysis run over the default prompts
  4. Snapshot + dashboard summary
  5. Optional multi-model comparison (OpenRouter / Groq keys)

Usage:
    python run_analysis.py "Acme" --industry "project management" --competitor Globex --competitor Initech
"""

import argparse
import asyncio
import json
import logging
import sys
import time

from visibility_tracker.analysis.types import BrandProfile
from visibility_tracker.collectors.llm_openai import GroqProvider, OpenRouterProvider
from visibility_tracker.core.config import settings, validate_settings_for_production
from visibility_tracker.core.logging import setup_logging
from visibility_tracker.core.metrics import metrics_payload
from visibility_tracker.gateway.errors import AnalysisError
from visibility_tracker.repositories.memory import InMemoryRepository
from visibility_tracker.schemas.analysis import CompareModelsRequest, RunAnalysisRequest
from visibility_tracker.services.analysis_service import build_analysis_service
from visibility_tracker.services.compare_service import CompareService

logger = logging.getLogger("run_analysis")


def _section(title: str) -> None:
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run one AI visibility analysis for a brand")
    parser.add_argument("brand", help="Brand name to track")
    parser.add_argument("--industry", default="", help="Industry / tool category")
    parser.add_argument("--alias", action="append", default=[], help="Alternative brand spelling (repeatable)")
    parser.add_argument("--competitor", action="append", default=[], help="Competitor name (repeatable)")
    parser.add_argument("--prompt-id", type=int, action="append", dest="prompt_ids", help="Limit to these prompts")
    parser.add_argument("--compare", action="store_true", help="Also run the multi-model comparison")
    parser.add_argument("--metrics", action="store_true", help="Print Prometheus metrics at the end")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()
    validate_settings_for_production()

    repository = InMemoryRepository()
    service = build_analysis_service(repository=repository)

    # ── Step 1: Provider ─────────────────────────────────────
    _section("Step 1: Provider")
    status = service.get_status()
    print(f"  Provider: {status.provider_name or '-'} ({'ready' if status.provider_available else 'NOT CONFIGURED'})")
    if not status.provider_available:
        print("\n  ❌ No provider configured. Set GEMINI_API_KEY, OPENROUTER_API_KEY, GROQ_API_KEY or OPENAI_API_KEY")
        return 1

    # ── Step 2: Brand ────────────────────────────────────────
    _section("Step 2: Brand")
    profile = repository.add_brand(
        BrandProfile(
            name=args.brand,
            industry=args.industry,
            aliases=args.alias,
            competitors=args.competitor,
        )
    )
    print(f"  id={profile.brand_id} name={profile.name} aliases={list(profile.aliases)}")
    print(f"  competitors={list(profile.competitors)}")

    # ── Step 3: Analysis run ─────────────────────────────────
    _section("Step 3: Analysis run")
    started = time.monotonic()
    try:
        request = RunAnalysisRequest(brand_id=profile.brand_id, prompt_ids=args.prompt_ids)
        result = await service.run_analysis(request.brand_id, request.prompt_ids)
    except AnalysisError as exc:
        print(f"  ❌ {exc}")
        return 1
    print(f"  {result.message} in {time.monotonic() - started:.1f}s")
    for response in result.responses:
        brand_hits = [m for m in response.mentions if m.entity_type == "brand"]
        print(f"    [{response.prompt_id}] {response.prompt_text[:55]:55s} brand mentions: {len(brand_hits)}")
    for error in result.errors:
        print(f"    ✗ {error}")

    # ── Step 4: Dashboard ────────────────────────────────────
    _section("Step 4: Dashboard")
    dashboard = await service.metrics_calculator.get_dashboard(profile.brand_id)
    print(json.dumps(dashboard.model_dump(mode="json"), indent=4, ensure_ascii=False))

    # ── Step 5: Comparison ───────────────────────────────────
    if args.compare:
        _section("Step 5: Multi-model comparison")
        compare = CompareService(
            repository=repository,
            in_flight=service.in_flight,
            openrouter=OpenRouterProvider(settings.openrouter_api_key) if settings.openrouter_api_key else None,
            groq=GroqProvider(settings.groq_api_key) if settings.groq_api_key else None,
        )
        if not compare.is_available():
            print("  Skipped: set OPENROUTER_API_KEY or GROQ_API_KEY")
        else:
            comparison = await compare.run_comparison(
                CompareModelsRequest(brand_id=profile.brand_id, prompt_ids=args.prompt_ids)
            )
            print(f"  {comparison.message}")
            for item in comparison.results:
                mark = "✓" if item.error is None else "✗"
                print(f"    {mark} {item.model_name:20s} score={item.score:3d} {item.prompt_text[:40]}")

    if args.metrics:
        _section("Metrics")
        print(metrics_payload().decode())

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
