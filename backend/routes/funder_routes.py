from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.funder import Funder
from backend.models.project import Project
from backend.routes.common import column_values, database_unavailable, raise_for_violations
from backend.validation import Violation, validate_funder

router = APIRouter(tags=['funders'])


class CreateFunderRequest(BaseModel):
    project_id: int
    funder: str | None = None
    amount: float | None = None
    end_date: date | None = None


class UpdateFunderRequest(BaseModel):
    funder: str | None = None
    amount: float | None = None
    end_date: date | None = None
    status: bool | None = None


class FunderResponse(BaseModel):
    id: int
    project_id: int
    funder: str
    amount: float
    end_date: date
    status: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def get_funder_or_404(funder_id: int, db: Session) -> Funder:
    funder = db.query(Funder).filter(Funder.id == funder_id).first()
    if funder is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Funder not found.',
        )
    return funder


@router.post('', response_model=FunderResponse, status_code=status.HTTP_201_CREATED)
def create_funder(data: CreateFunderRequest, db: Session = Depends(get_db)):
    fields = data.model_dump()
    raise_for_violations(validate_funder(fields))

    try:
        if db.query(Project.id).filter(Project.id == data.project_id).first() is None:
            raise_for_violations([Violation('project_id', 'Project does not exist.')])

        funder = Funder(**fields)
        db.add(funder)
        db.commit()
        db.refresh(funder)
        return funder
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('', response_model=list[FunderResponse])
def list_funders(
    project_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(Funder)
        if project_id is not None:
            query = query.filter(Funder.project_id == project_id)
        return query.order_by(Funder.end_date.asc(), Funder.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{funder_id}', response_model=FunderResponse)
def get_funder(funder_id: int, db: Session = Depends(get_db)):
    try:
        return get_funder_or_404(funder_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{funder_id}', response_model=FunderResponse)
def update_funder(funder_id: int, data: UpdateFunderRequest, db: Session = Depends(get_db)):
    try:
        funder = get_funder_or_404(funder_id, db)

        changes = data.model_dump(exclude_unset=True)
        raise_for_violations(validate_funder({**column_values(funder), **changes}))

        for field, value in changes.items():
            setattr(funder, field, value)
        db.commit()
        db.refresh(funder)
        return funder
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{funder_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_funder(funder_id: int, db: Session = Depends(get_db)):
    try:
        funder = get_funder_or_404(funder_id, db)
        db.delete(funder)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
