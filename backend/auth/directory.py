import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth.errors import DirectoryWriteConflict
from backend.auth.google import GoogleProfile
from backend.models.user import User

logger = logging.getLogger(__name__)


def find_by_external_id(db: Session, external_id: str) -> User | None:
    return db.query(User).filter(User.google_id == external_id).first()


def resolve_or_create(db: Session, external_id: str, profile: GoogleProfile) -> User:
    """Return the user for a Google account, creating it on first login.

    Existing records are returned untouched, so names and email are not
    refreshed on repeat logins. Two first logins for the same account can
    race; the loser's insert is rejected by the unique index on
    ``google_id`` and it re-reads the winner's record instead.
    """
    user = find_by_external_id(db, external_id)
    if user is not None:
        return user

    user = User(
        google_id=external_id,
        fname=profile.given_name,
        lname=profile.family_name,
        email=profile.email,
        avatar=profile.avatar,
        role=None,
        academic_role=None,
        contact=None,
        department=None,
        research_area=None,
        research_experience=None,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("Concurrent first login for google_id=%s, re-reading", external_id)
        existing = find_by_external_id(db, external_id)
        if existing is None:
            raise DirectoryWriteConflict(f"Could not create or load user {external_id}") from exc
        return existing

    db.refresh(user)
    logger.info("Provisioned user %s for a new Google account", user.id)
    return user
