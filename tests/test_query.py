from itertools import combinations

import pytest

from app.core.insights.filters import FilterSet
from app.core.insights.query import build_feedback_query, fetch_feedback

ALL_FILTERS = {
    "urgency": "low",
    "theme": "security",
    "value": "adoption",
    "sentiment": "negative",
}


def _sql(stmt) -> str:
    return str(stmt.compile())


@pytest.mark.parametrize(
    "present",
    [combo for k in range(5) for combo in combinations(ALL_FILTERS, k)],
)
def test_one_bound_predicate_per_present_filter(present):
    """k present filters -> k AND-ed equality predicates, all values bound"""
    filters = FilterSet(**{key: ALL_FILTERS[key] for key in present})
    stmt = build_feedback_query(filters, 5)
    sql = _sql(stmt)
    params = stmt.compile().params

    assert sql.count(" = :") == len(present)
    assert sql.count(" AND ") == max(len(present) - 1, 0)
    for key in present:
        assert f"feedback.{key} = :" in sql
        assert ALL_FILTERS[key] in params.values()
        # Values never end up inline in the SQL text
        assert ALL_FILTERS[key] not in sql


def test_empty_filter_set_has_no_where_clause():
    stmt = build_feedback_query(FilterSet(), 5)

    assert stmt.whereclause is None
    assert "WHERE" not in _sql(stmt)


def test_query_orders_newest_first_and_limits():
    stmt = build_feedback_query(FilterSet(urgency="high"), 7)
    sql = _sql(stmt)

    assert "ORDER BY feedback.created_at DESC, feedback.id DESC" in sql
    assert "LIMIT :" in sql
    assert 7 in stmt.compile().params.values()


def test_query_uses_fixed_projection():
    sql = _sql(build_feedback_query(FilterSet(), 5))

    assert "*" not in sql
    for column in (
        "id", "user_name", "channel", "urgency", "theme",
        "value", "sentiment", "message", "created_at",
    ):
        assert f"feedback.{column}" in sql


@pytest.mark.asyncio
async def test_fetch_feedback_applies_filters_and_limit(db_session, add_feedback):
    await add_feedback(urgency="low", message="old low")
    await add_feedback(urgency="high", message="high one")
    await add_feedback(urgency="low", message="new low")
    await add_feedback(urgency="low", theme="ux", message="ux low")

    rows = await fetch_feedback(db_session, FilterSet(urgency="low", theme="product"), 5)

    assert [row.message for row in rows] == ["new low", "old low"]


@pytest.mark.asyncio
async def test_fetch_feedback_without_filters_returns_most_recent(db_session, add_feedback):
    for _ in range(6):
        await add_feedback()

    rows = await fetch_feedback(db_session, FilterSet(), 3)

    assert [row.message for row in rows] == [
        "Feedback number 6",
        "Feedback number 5",
        "Feedback number 4",
    ]
