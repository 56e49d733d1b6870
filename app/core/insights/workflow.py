import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.ai_feature.service import Summarizer, SummaryResult
from app.core.cache import SummaryCache
from app.core.config import settings
from app.core.insights.filters import FilterSet
from app.core.insights.query import fetch_feedback


# -----------------------------------------------------------------------------
# SUMMARY WORKFLOW MODULE
# Purpose: keep an hourly AI rollup of the latest feedback in the cache.
# Cache-aside on reads, unconditional recompute on refresh, canned fallback
# whenever the model is unavailable or answers with garbage.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = (
    "Feedback highlights center on performance bottlenecks, missing analytics "
    "fields, and compliance requirements. Positive signals point to onboarding, "
    "templates, and pricing discounts improving adoption."
)

FALLBACK_RECOMMENDATIONS = (
    "Prioritize performance fixes for dashboard load times and real-time metrics to protect revenue workflows.",
    "Expand analytics exports and attribution data to support sales and marketing teams.",
    "Ship security compliance items (SSO audit logs, retention policies) to reduce renewal risk.",
)

SYSTEM_PROMPT = "You return concise JSON only."


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_fallback(error: Optional[str] = None) -> Dict[str, Any]:
    """Canned summary stamped now, with an error annotation when degraded."""
    payload: Dict[str, Any] = {
        "summary": FALLBACK_SUMMARY,
        "recommendations": list(FALLBACK_RECOMMENDATIONS),
        "updated_at": utc_timestamp(),
    }
    if error:
        payload["error"] = error
    return payload


def build_summary_prompt(records: Sequence[Any]) -> str:
    """
    One line per record with its four categories and the message.

    Example line:
        - (high/performance/revenue/negative) Dashboard takes 20s to load
    """
    lines = "\n".join(
        f"- ({item.urgency}/{item.theme}/{item.value}/{item.sentiment}) {item.message}"
        for item in records
    )
    return (
        "You are an AI insights assistant. Summarize the key findings in the "
        "customer feedback below and propose 3-5 concrete solutions.\n"
        "Return JSON with fields: summary (string), recommendations (array of strings).\n"
        f"Feedback:\n{lines}"
    )


def repair_summary(result: SummaryResult) -> Dict[str, Any]:
    """
    Turn whatever the summarizer returned into a well-shaped summary.

    Fields are repaired one by one: a usable `summary` survives even when
    `recommendations` is missing, and the other way around. Failures and
    payloads that are not a JSON object become the annotated fallback.
    """
    if not result.ok:
        return build_fallback(result.error or "Summarization failed")

    parsed = result.payload
    if isinstance(parsed, (str, bytes)):
        try:
            parsed = json.loads(parsed)
        except json.JSONDecodeError as error:
            return build_fallback(f"Summarization returned invalid JSON: {error}")

    if not isinstance(parsed, dict):
        return build_fallback(
            f"Summarization returned {type(parsed).__name__} instead of an object"
        )

    summary = parsed.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = FALLBACK_SUMMARY

    recommendations = parsed.get("recommendations")
    if isinstance(recommendations, list):
        recommendations = [
            item.strip() for item in recommendations if isinstance(item, str) and item.strip()
        ]
    else:
        recommendations = list(FALLBACK_RECOMMENDATIONS)

    return {
        "summary": summary.strip(),
        "recommendations": recommendations,
        "updated_at": utc_timestamp(),
    }


async def run_summary_workflow(
    db: AsyncSession, summarizer: Summarizer
) -> Dict[str, Any]:
    """
    Compute a fresh summary from the most recent feedback.

    Reads through the same query path as the dashboard (no filters) with the
    larger internal window. Database errors propagate, summarizer problems
    never do.
    """
    records = await fetch_feedback(db, FilterSet(), settings.SUMMARY_WINDOW_SIZE)

    if not records:
        logger.info("No feedback yet, serving the canned summary")
        return build_fallback()

    try:
        result = await summarizer.summarize(SYSTEM_PROMPT, build_summary_prompt(records))
    except Exception as error:
        # A raising adapter counts as an adapter failure
        logger.error(f"Summarizer raised instead of returning a failure: {error}")
        result = SummaryResult.failure(str(error) or type(error).__name__)

    summary = repair_summary(result)
    if "error" in summary:
        logger.warning(f"Serving degraded AI summary: {summary['error']}")
    else:
        logger.info(f"Generated AI summary from {len(records)} feedback records")
    return summary


async def get_summary(
    db: AsyncSession, cache: SummaryCache, summarizer: Summarizer
) -> Dict[str, Any]:
    """
    Cache-aside read of the AI summary.

    A cached entry is served as is until Redis expires it. On a miss only one
    coroutine per process computes, the others wait and read its result.
    Degraded summaries are cached too, so a broken model is retried at most
    once per TTL.
    """
    cached = await cache.get()
    if cached is not None:
        return cached

    async with cache.refresh_lock:
        cached = await cache.get()
        if cached is not None:
            return cached

        summary = await run_summary_workflow(db, summarizer)
        await cache.put(summary)
        return summary


async def refresh_summary(
    db: AsyncSession, cache: SummaryCache, summarizer: Summarizer
) -> Dict[str, Any]:
    """Recompute and overwrite the cached summary without looking at it first."""
    async with cache.refresh_lock:
        summary = await run_summary_workflow(db, summarizer)
        await cache.put(summary)

    logger.info("AI summary refreshed on demand")
    return summary
