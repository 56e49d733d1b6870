from sqlalchemy import Column, Integer, String, TIMESTAMP, Text
from sqlalchemy.sql import func

from app.core.database import Base


# =========================
# Feedback (append-only)
# =========================
class Feedback(Base):
    """
    A single piece of submitted feedback.

    Rows are written once by the submit endpoint and only read afterwards:
    filtered lists → dashboard slices, recent window → AI summary.
    """

    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_name = Column(String(80), nullable=False)
    channel = Column(String(40), nullable=False)  # "Web", "Email", "Slack"

    # Categorical attributes, always members of their enumeration
    urgency = Column(String(16), nullable=False)
    theme = Column(String(16), nullable=False)
    value = Column(String(16), nullable=False)
    sentiment = Column(String(16), nullable=False)

    message = Column(Text, nullable=False)

    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
