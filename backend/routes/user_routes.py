import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.user import User, public_profile
from backend.routes.common import database_unavailable, raise_for_violations
from backend.validation import validate_signup

logger = logging.getLogger(__name__)

router = APIRouter(tags=['users'])


class SignupRequest(BaseModel):
    role: str | None = None
    academic_role: str | None = None
    contact: str | None = None
    department: str | None = None
    research_area: str | None = None
    research_experience: str | None = None
    institution: str | None = None


def get_user_or_404(user_id: int, db: Session) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='User not found.',
        )
    return user


@router.get('/{user_id}')
def get_user(user_id: int, db: Session = Depends(get_db)):
    try:
        return public_profile(get_user_or_404(user_id, db))
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/{user_id}/signup')
def complete_signup(user_id: int, data: SignupRequest, db: Session = Depends(get_db)):
    fields = data.model_dump()
    raise_for_violations(validate_signup(fields))

    try:
        user = get_user_or_404(user_id, db)

        if not user.status:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='This account has been deactivated.',
            )

        if user.role is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='This account has already completed signup.',
            )

        for field, value in fields.items():
            if value is not None:
                setattr(user, field, value)

        db.commit()
        db.refresh(user)
        logger.info('User %s completed signup as %s', user.id, user.role)

        return public_profile(user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{user_id}', status_code=status.HTTP_204_NO_CONTENT)
def deactivate_user(user_id: int, db: Session = Depends(get_db)):
    try:
        user = get_user_or_404(user_id, db)
        user.status = False
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
