from typing import List

from sqlalchemy import Row, Select, and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import models
from app.core.insights.filters import FilterSet


# -----------------------------------------------------------------------------
# QUERY MODULE
# Purpose: build the one read query behind every feedback slice.
# Values only ever reach the database as bound parameters.
# -----------------------------------------------------------------------------

# Explicit projection so new columns never leak into API responses
FEEDBACK_COLUMNS = (
    models.Feedback.id,
    models.Feedback.user_name,
    models.Feedback.channel,
    models.Feedback.urgency,
    models.Feedback.theme,
    models.Feedback.value,
    models.Feedback.sentiment,
    models.Feedback.message,
    models.Feedback.created_at,
)


def build_feedback_query(filters: FilterSet, limit: int) -> Select:
    """
    Compose the filtered, newest-first feedback query.

    Each present filter adds one equality predicate (AND-ed together),
    absent filters match everything. The limit is expected to be clamped by
    the caller already.

    Example:
        build_feedback_query(FilterSet(urgency="high"), 5)
        -> SELECT ... FROM feedback WHERE feedback.urgency = :urgency_1
           ORDER BY feedback.created_at DESC, feedback.id DESC LIMIT :param_1
    """
    predicates = [
        getattr(models.Feedback, attribute) == value
        for attribute, value in filters.present()
    ]

    stmt = select(*FEEDBACK_COLUMNS)
    if predicates:
        stmt = stmt.where(and_(*predicates))

    # id breaks ties between rows written in the same clock tick
    return stmt.order_by(
        desc(models.Feedback.created_at), desc(models.Feedback.id)
    ).limit(limit)


async def fetch_feedback(db: AsyncSession, filters: FilterSet, limit: int) -> List[Row]:
    """Run the feedback query and return the projected rows."""
    result = await db.execute(build_feedback_query(filters, limit))
    return list(result.all())
