"""Vote model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from backend.database import Base
from backend.models.user import _utcnow


class Vote(Base):
    """A cast ballot. Rows are only ever inserted."""
    __tablename__ = "votes"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    candidate_id = Column(
        Integer,
        ForeignKey("candidates.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    cast_at = Column(DateTime(timezone=True), default=_utcnow)
