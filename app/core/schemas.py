from datetime import datetime
from typing import Any, Optional, List, Dict
from enum import Enum

from pydantic import BaseModel, ConfigDict


# =========================
# Enums
# Member order matters: the first member is the attribute's default.
# =========================
class Urgency(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Theme(str, Enum):
    PRODUCT = "product"
    SUPPORT = "support"
    PRICING = "pricing"
    UX = "ux"
    PERFORMANCE = "performance"
    SECURITY = "security"


class ValueImpact(str, Enum):
    REVENUE = "revenue"
    RETENTION = "retention"
    ADOPTION = "adoption"
    EFFICIENCY = "efficiency"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# =========================
# FEEDBACK
# =========================
class FeedbackCreate(BaseModel):
    # Any JSON or form value is accepted and coerced to text by the endpoint,
    # only an empty message is rejected (with a 400)
    user_name: Optional[Any] = None
    channel: Optional[Any] = None
    urgency: Optional[Any] = None
    theme: Optional[Any] = None
    value: Optional[Any] = None
    sentiment: Optional[Any] = None
    message: Optional[Any] = None

    model_config = ConfigDict(extra="ignore")


class FeedbackResponse(BaseModel):
    id: int
    user_name: str
    channel: str
    urgency: str
    theme: str
    value: str
    sentiment: str
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FeedbackListResponse(BaseModel):
    data: List[FeedbackResponse] = []


class FilterOptionsResponse(BaseModel):
    options: Dict[str, List[str]]
    defaults: Dict[str, str]


# =========================
# AI SUMMARY
# =========================
class SummaryResponse(BaseModel):
    summary: str
    recommendations: List[str]
    updated_at: str
    error: Optional[str] = None


class WorkflowRunResponse(BaseModel):
    status: str
    summary: SummaryResponse
