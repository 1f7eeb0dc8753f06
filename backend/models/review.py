"""Reviewer assignment and evaluation model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from backend.database import Base

EVALUATION_SCORES = ("scientific_merit", "methodology", "feasibility", "impact")
SCORE_RANGE = (1, 5)

RECOMMENDATIONS = ("Approve", "Reject", "Revise")
FEEDBACK_PENDING = "Pending"
FEEDBACK_BY_RECOMMENDATION = {
    "Approve": "Approved",
    "Reject": "Rejected",
    "Revise": "Revisions Requested",
}


class Review(Base):
    """A reviewer assigned to a project, plus their evaluation once submitted."""
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned = Column(Boolean, default=True, nullable=False)
    feedback = Column(String, default=FEEDBACK_PENDING, nullable=False)

    # Evaluation; all null until the reviewer submits one.
    scientific_merit = Column(Integer)
    methodology = Column(Integer)
    feasibility = Column(Integer)
    impact = Column(Integer)
    comments = Column(Text)
    recommendation = Column(String)
    evaluated_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


def feedback_for(recommendation: str) -> str:
    return FEEDBACK_BY_RECOMMENDATION[recommendation]
