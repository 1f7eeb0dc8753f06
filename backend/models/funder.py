"""Project funder model definitions."""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, func
from backend.database import Base


class Funder(Base):
    """Represents a funding source committed to a research project."""
    __tablename__ = "funders"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    funder = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
