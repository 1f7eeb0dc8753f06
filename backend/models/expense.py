"""Expense model definitions."""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, func
from backend.database import Base

EXPENSE_CATEGORIES = ("Equipment", "Personnel", "Travel", "Supplies", "Services", "Other")


class Expense(Base):
    """Represents money spent against a research project."""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    category = Column(String, default="Personnel", nullable=False)
    status = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
