"""User model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from backend.database import Base

ROLE_RESEARCHER = "Researcher"
ROLE_REVIEWER = "Reviewer"
ROLE_ADMIN = "Admin"
ROLES = (ROLE_RESEARCHER, ROLE_REVIEWER, ROLE_ADMIN)

ACADEMIC_ROLES = ("Student", "Lecturer", "Academic Researcher")
RESEARCH_EXPERIENCE_LEVELS = ("Bachelor", "Honours", "Masters", "PhD")


class User(Base):
    """Represents a platform user, keyed by their Google account id."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    google_id = Column(String, unique=True, nullable=False, index=True)
    fname = Column(String, nullable=False)
    lname = Column(String, nullable=False)
    email = Column(String)
    role = Column(String)  # null until onboarding completes
    academic_role = Column(String)
    contact = Column(String)
    department = Column(String)
    research_area = Column(String)
    research_experience = Column(String)
    institution = Column(String)
    avatar = Column(String)
    status = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def is_onboarded(self) -> bool:
        return self.role is not None


def public_profile(user: User) -> dict:
    return {
        "_id": str(user.id),
        "fname": user.fname,
        "lname": user.lname,
        "email": user.email or "",
        "institution": user.institution or "",
        "avatar": user.avatar or "",
        "role": user.role,
    }
