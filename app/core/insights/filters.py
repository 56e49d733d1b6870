from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, Tuple

from app.core import schemas


# -----------------------------------------------------------------------------
# FILTERS MODULE
# Purpose: turn raw categorical query values into members of fixed enumerations
# and keep the requested page size inside hard bounds.
# Invalid input never fails a request, it selects the default slice instead.
# -----------------------------------------------------------------------------

FILTER_OPTIONS: Dict[str, List[str]] = {
    "urgency": [item.value for item in schemas.Urgency],
    "theme": [item.value for item in schemas.Theme],
    "value": [item.value for item in schemas.ValueImpact],
    "sentiment": [item.value for item in schemas.Sentiment],
}

# Initial selections of the dashboard filter row
DASHBOARD_DEFAULTS: Dict[str, str] = {
    "urgency": schemas.Urgency.HIGH.value,
    "theme": schemas.Theme.PRODUCT.value,
    "value": schemas.ValueImpact.REVENUE.value,
    "sentiment": schemas.Sentiment.NEGATIVE.value,
}

DEFAULT_LIMIT = 5
MIN_LIMIT = 1
MAX_LIMIT = 25


def sanitize_filter(attribute: str, raw: Optional[Any]) -> str:
    """
    Normalize a raw filter value for one categorical attribute.

    Returns the lowercased value when it belongs to the attribute's
    enumeration, otherwise the enumeration's first member.

    Example:
        sanitize_filter("urgency", "LOW")      -> "low"
        sanitize_filter("urgency", "' OR 1=1") -> "high"
        sanitize_filter("theme", None)         -> "product"
    """
    options = FILTER_OPTIONS[attribute]
    normalized = str(raw or "").lower()
    return normalized if normalized in options else options[0]


def clamp_limit(raw: Optional[Any]) -> int:
    """
    Parse a requested page size.

    Missing, non-numeric and zero values use DEFAULT_LIMIT, anything else is
    clamped to [MIN_LIMIT, MAX_LIMIT].
    """
    try:
        requested = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_LIMIT

    if requested == 0:
        return DEFAULT_LIMIT

    return min(max(requested, MIN_LIMIT), MAX_LIMIT)


@dataclass(frozen=True)
class FilterSet:
    """Sanitized filters for one read. None means no constraint."""

    urgency: Optional[str] = None
    theme: Optional[str] = None
    value: Optional[str] = None
    sentiment: Optional[str] = None

    def __post_init__(self):
        for item in fields(self):
            current = getattr(self, item.name)
            if current is not None and current not in FILTER_OPTIONS[item.name]:
                raise ValueError(f"{current!r} is not a valid {item.name}")

    @classmethod
    def from_params(cls, params: Mapping[str, Optional[str]]) -> "FilterSet":
        """Sanitize all four attributes, missing ones resolve to the default member."""
        return cls(
            **{
                attribute: sanitize_filter(attribute, params.get(attribute))
                for attribute in FILTER_OPTIONS
            }
        )

    def present(self) -> List[Tuple[str, str]]:
        """(attribute, value) pairs that constrain the query, in column order."""
        return [
            (attribute, getattr(self, attribute))
            for attribute in FILTER_OPTIONS
            if getattr(self, attribute) is not None
        ]
