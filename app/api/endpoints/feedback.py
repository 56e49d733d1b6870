import json
import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import models, schemas
from app.core.database import get_db
from app.core.insights.filters import (
    DASHBOARD_DEFAULTS,
    FILTER_OPTIONS,
    FilterSet,
    clamp_limit,
    sanitize_filter,
)
from app.core.insights.query import fetch_feedback

router = APIRouter(prefix="/api", tags=["Feedback"])

db_dep = Annotated[AsyncSession, Depends(get_db)]

# Used when a submitted field is left blank
SUBMIT_DEFAULTS = {
    "user_name": "Anonymous",
    "channel": "Web",
    "urgency": schemas.Urgency.MEDIUM.value,
    "theme": schemas.Theme.PRODUCT.value,
    "value": schemas.ValueImpact.RETENTION.value,
    "sentiment": schemas.Sentiment.NEUTRAL.value,
}

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _blank_to_default(raw: Any, field: str) -> str:
    cleaned = str(raw).strip() if raw not in (None, False) else ""
    return cleaned or SUBMIT_DEFAULTS[field]


async def _read_submission(request: Request) -> Dict[str, Any]:
    """
    Submitted fields from a form post or a JSON object body.
    A missing or unreadable body gives no fields, so the message check rejects it.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return dict(form)

    body = await request.body()
    if not body.strip():
        return {}
    try:
        parsed = json.loads(body)
    except ValueError:
        logging.warning("Ignoring feedback body that is not valid JSON")
        return {}
    return parsed if isinstance(parsed, dict) else {}


# Filtered feedback slice
@router.get("/feedback", response_model=schemas.FeedbackListResponse)
async def list_feedback(
    db: db_dep,
    urgency: Optional[str] = None,
    theme: Optional[str] = None,
    value: Optional[str] = None,
    sentiment: Optional[str] = None,
    limit: Optional[str] = None,
):
    """
    Newest-first feedback matching all four categorical filters.
    Bad filter values fall back to the default member, bad limits to 5.
    """
    filters = FilterSet.from_params(
        {"urgency": urgency, "theme": theme, "value": value, "sentiment": sentiment}
    )

    try:
        rows = await fetch_feedback(db, filters, clamp_limit(limit))
    except SQLAlchemyError as error:
        logging.error(f"Failed to read feedback: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load feedback",
        )

    return {"data": [dict(row._mapping) for row in rows]}


# Submit feedback
@router.post(
    "/feedback",
    response_model=schemas.FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_feedback(request: Request, db: db_dep):
    """
    Store one feedback entry sent as JSON or as a form post.
    Blank fields get defaults, unknown categories fall back like the filters do.
    """
    payload = schemas.FeedbackCreate.model_validate(await _read_submission(request))
    message = str(payload.message).strip() if payload.message is not None else ""
    if not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required."
        )

    entry = models.Feedback(
        user_name=_blank_to_default(payload.user_name, "user_name")[:80],
        channel=_blank_to_default(payload.channel, "channel")[:40],
        urgency=sanitize_filter("urgency", _blank_to_default(payload.urgency, "urgency")),
        theme=sanitize_filter("theme", _blank_to_default(payload.theme, "theme")),
        value=sanitize_filter("value", _blank_to_default(payload.value, "value")),
        sentiment=sanitize_filter(
            "sentiment", _blank_to_default(payload.sentiment, "sentiment")
        ),
        message=message,
    )

    try:
        db.add(entry)
        await db.commit()
        await db.refresh(entry)  # Pick up the id and created_at set by the DB
        return entry
    except SQLAlchemyError as error:
        await db.rollback()
        logging.error(f"Failed to store feedback: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit feedback",
        )


# Filter dropdown contents
@router.get("/filters", response_model=schemas.FilterOptionsResponse)
async def list_filter_options():
    return {"options": FILTER_OPTIONS, "defaults": DASHBOARD_DEFAULTS}
