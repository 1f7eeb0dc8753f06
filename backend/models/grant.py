"""Grant model definitions."""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, func
from backend.database import Base


class Grant(Base):
    """Represents funding awarded to a researcher."""
    __tablename__ = "grants"

    id = Column(Integer, primary_key=True)
    grant_title = Column(String, nullable=False)
    funder = Column(String, nullable=False)
    awarded = Column(Float, nullable=False)
    spent = Column(Float, nullable=False, default=0)
    remaining = Column(Float, nullable=False)
    end_date = Column(Date, nullable=False)
    researcher_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


def derive_remaining(awarded: float, spent: float) -> float:
    return awarded - spent
