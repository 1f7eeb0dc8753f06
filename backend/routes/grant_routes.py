from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.grant import Grant, derive_remaining
from backend.models.user import User
from backend.routes.common import column_values, database_unavailable, raise_for_violations
from backend.validation import Violation, validate_grant

router = APIRouter(tags=['grants'])


class CreateGrantRequest(BaseModel):
    grant_title: str | None = None
    funder: str | None = None
    awarded: float | None = None
    spent: float = 0
    end_date: date | None = None
    researcher_id: int


class UpdateGrantRequest(BaseModel):
    grant_title: str | None = None
    funder: str | None = None
    awarded: float | None = None
    spent: float | None = None
    end_date: date | None = None
    status: bool | None = None


class GrantResponse(BaseModel):
    id: int
    grant_title: str
    funder: str
    awarded: float
    spent: float
    remaining: float
    end_date: date
    researcher_id: int
    status: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


def get_grant_or_404(grant_id: int, db: Session) -> Grant:
    grant = db.query(Grant).filter(Grant.id == grant_id).first()
    if grant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Grant not found.',
        )
    return grant


@router.post('', response_model=GrantResponse, status_code=status.HTTP_201_CREATED)
def create_grant(data: CreateGrantRequest, db: Session = Depends(get_db)):
    fields = data.model_dump()
    raise_for_violations(validate_grant(fields))

    try:
        researcher = db.query(User).filter(User.id == data.researcher_id).first()
        if researcher is None:
            raise_for_violations([Violation('researcher_id', 'Researcher does not exist.')])

        fields['remaining'] = derive_remaining(fields['awarded'], fields['spent'])
        grant = Grant(**fields)
        db.add(grant)
        db.commit()
        db.refresh(grant)
        return grant
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('', response_model=list[GrantResponse])
def list_grants(db: Session = Depends(get_db)):
    try:
        return db.query(Grant).order_by(Grant.end_date.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{grant_id}', response_model=GrantResponse)
def get_grant(grant_id: int, db: Session = Depends(get_db)):
    try:
        return get_grant_or_404(grant_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{grant_id}', response_model=GrantResponse)
def update_grant(grant_id: int, data: UpdateGrantRequest, db: Session = Depends(get_db)):
    try:
        grant = get_grant_or_404(grant_id, db)

        changes = data.model_dump(exclude_unset=True)
        merged = {**column_values(grant), **changes}
        raise_for_violations(validate_grant(merged))

        for field, value in changes.items():
            setattr(grant, field, value)
        grant.remaining = derive_remaining(grant.awarded, grant.spent)

        db.commit()
        db.refresh(grant)
        return grant
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{grant_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_grant(grant_id: int, db: Session = Depends(get_db)):
    try:
        grant = get_grant_or_404(grant_id, db)
        db.delete(grant)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
