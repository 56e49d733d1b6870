import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import SummaryCache, get_summary_cache
from app.core.database import get_db

router = APIRouter(tags=["Health"])

db_dep = Annotated[AsyncSession, Depends(get_db)]
cache_dep = Annotated[SummaryCache, Depends(get_summary_cache)]


@router.get("/health")
async def health_check(db: db_dep, cache: cache_dep):
    """Reachability of the feedback store and the summary cache."""
    checks = {"database": "ok", "cache": "ok"}

    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as error:
        logging.error(f"Database health check failed: {error}")
        checks["database"] = "unavailable"

    try:
        await cache.ping()
    except RedisError as error:
        logging.error(f"Cache health check failed: {error}")
        checks["cache"] = "unavailable"

    healthy = all(state == "ok" for state in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", **checks},
    )
