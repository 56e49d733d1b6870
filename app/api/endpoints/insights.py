import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai_feature.service import Summarizer, get_summarizer
from app.core import schemas
from app.core.cache import SummaryCache, get_summary_cache
from app.core.database import get_db
from app.core.insights import workflow

router = APIRouter(prefix="/api", tags=["Insights"])

db_dep = Annotated[AsyncSession, Depends(get_db)]
cache_dep = Annotated[SummaryCache, Depends(get_summary_cache)]
summarizer_dep = Annotated[Summarizer, Depends(get_summarizer)]


@router.get(
    "/ai-summary",
    response_model=schemas.SummaryResponse,
    response_model_exclude_none=True,
)
async def ai_summary(db: db_dep, cache: cache_dep, summarizer: summarizer_dep):
    """
    Return the cached AI summary, generating it when the cache is empty.
    `error` is only present on a degraded (fallback) summary.
    """
    try:
        return await workflow.get_summary(db, cache, summarizer)
    except (SQLAlchemyError, RedisError) as error:
        logging.error(f"Failed to load AI summary: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load AI summary",
        )


@router.api_route(
    "/workflow/run",
    methods=["GET", "POST"],
    response_model=schemas.WorkflowRunResponse,
    response_model_exclude_none=True,
)
async def run_workflow(db: db_dep, cache: cache_dep, summarizer: summarizer_dep):
    """Regenerate the AI summary now, even if a fresh one is cached."""
    try:
        summary = await workflow.refresh_summary(db, cache, summarizer)
    except (SQLAlchemyError, RedisError) as error:
        logging.error(f"Failed to refresh AI summary: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to refresh AI summary",
        )

    return {"status": "completed", "summary": summary}
