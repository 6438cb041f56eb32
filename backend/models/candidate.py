"""Candidate model definitions."""

from sqlalchemy import Column, Integer, String
from backend.database import Base


class Candidate(Base):
    """Represents a candidate standing in the election."""
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    party = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    image_url = Column(String, nullable=True)
