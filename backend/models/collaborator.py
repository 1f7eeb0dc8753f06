"""Collaborator invitation model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from backend.database import Base

INVITE_PENDING = "Pending"
INVITE_ACCEPTED = "Accepted"
INVITE_DECLINED = "Declined"
INVITE_STATUSES = (INVITE_PENDING, INVITE_ACCEPTED, INVITE_DECLINED)

# "invite": a project creator asks someone to join.
# "application": someone asks a project creator to let them join.
INVITE_TYPES = ("invite", "application")


class CollaboratorInvite(Base):
    """A request to join a project, answered by its receiver."""
    __tablename__ = "collaborator_invites"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    message = Column(Text, default="", nullable=False)
    type = Column(String, nullable=False)
    status = Column(String, default=INVITE_PENDING, nullable=False)
    responded_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
