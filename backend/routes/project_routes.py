from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.project import Project
from backend.models.user import User
from backend.routes.common import column_values, database_unavailable, raise_for_violations
from backend.validation import validate_project

router = APIRouter(tags=['projects'])


class ProjectFields(BaseModel):
    title: str | None = None
    description: str | None = None
    research_goals: str | None = None
    research_area: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    funding_available: bool | None = None
    funding_amount: float | None = None
    collaborators_needed: bool | None = None
    collaborator_roles: str | None = None
    institution: str | None = None
    contact_email: str | None = None
    status: str | None = None


class ProjectResponse(BaseModel):
    id: int
    creator_id: int
    title: str
    description: str
    research_goals: str
    research_area: str
    start_date: date
    end_date: date
    funding_available: bool
    funding_amount: float | None = None
    collaborators_needed: bool
    collaborator_roles: str | None = None
    institution: str | None = None
    contact_email: str | None = None
    status: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def get_project_or_404(project_id: int, db: Session) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Project not found.',
        )
    return project


def ensure_creator(project: Project, user: User) -> None:
    if project.creator_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the project creator can change this project.',
        )


@router.post('', response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectFields,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = data.model_dump(exclude_none=True)
    fields.setdefault('status', 'Active')
    fields.setdefault('funding_available', False)
    fields.setdefault('collaborators_needed', False)
    fields.setdefault('contact_email', current_user.email)
    raise_for_violations(validate_project(fields))

    try:
        project = Project(creator_id=current_user.id, **fields)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('', response_model=list[ProjectResponse])
def list_projects(
    area: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(Project)
        if area:
            query = query.filter(Project.research_area == area)
        return query.order_by(Project.created_at.desc(), Project.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/mine', response_model=list[ProjectResponse])
def list_my_projects(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(Project).filter(
            Project.creator_id == current_user.id,
        ).order_by(Project.created_at.desc(), Project.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{project_id}', response_model=ProjectResponse)
def get_project(project_id: int, db: Session = Depends(get_db)):
    try:
        return get_project_or_404(project_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{project_id}', response_model=ProjectResponse)
def update_project(
    project_id: int,
    data: ProjectFields,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        project = get_project_or_404(project_id, db)
        ensure_creator(project, current_user)

        changes = data.model_dump(exclude_unset=True)
        merged = {**column_values(project), **changes}
        raise_for_violations(validate_project(merged))

        for field, value in changes.items():
            setattr(project, field, value)
        db.commit()
        db.refresh(project)
        return project
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{project_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        project = get_project_or_404(project_id, db)
        ensure_creator(project, current_user)
        db.delete(project)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
