"""Research project model definitions."""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, func
from backend.database import Base

PROJECT_STATUSES = ("Active", "Pending Collab", "Declined", "Active Collab", "Cancelled")


class Project(Base):
    """Represents a research project created by a researcher."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    research_goals = Column(Text, nullable=False)
    research_area = Column(String, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    funding_available = Column(Boolean, default=False, nullable=False)
    funding_amount = Column(Float)
    collaborators_needed = Column(Boolean, default=False, nullable=False)
    collaborator_roles = Column(String)
    institution = Column(String)
    contact_email = Column(String)
    status = Column(String, default="Active", nullable=False)
    created_at = Column(DateTime, server_default=func.now())
