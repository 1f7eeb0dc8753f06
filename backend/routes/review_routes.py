import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.project import Project
from backend.models.review import Review, feedback_for
from backend.models.user import ROLE_REVIEWER, User
from backend.routes.common import database_unavailable, raise_for_violations
from backend.validation import Violation, validate_evaluation

logger = logging.getLogger(__name__)

router = APIRouter(tags=['reviews'])


class AssignReviewRequest(BaseModel):
    project_id: int
    reviewer_id: int


class EvaluationRequest(BaseModel):
    scientific_merit: int | None = None
    methodology: int | None = None
    feasibility: int | None = None
    impact: int | None = None
    comments: str | None = None
    recommendation: str | None = None


class ReviewResponse(BaseModel):
    id: int
    project_id: int
    reviewer_id: int
    assigned: bool
    feedback: str
    scientific_merit: int | None = None
    methodology: int | None = None
    feasibility: int | None = None
    impact: int | None = None
    comments: str | None = None
    recommendation: str | None = None
    evaluated_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def get_review_or_404(review_id: int, db: Session) -> Review:
    review = db.query(Review).filter(Review.id == review_id).first()
    if review is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Review assignment not found.',
        )
    return review


@router.post('', response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def assign_reviewer(data: AssignReviewRequest, db: Session = Depends(get_db)):
    try:
        project = db.query(Project.id).filter(Project.id == data.project_id).first()
        reviewer = db.query(User).filter(User.id == data.reviewer_id).first()

        violations = []
        if project is None:
            violations.append(Violation('project_id', 'Project does not exist.'))
        if reviewer is None:
            violations.append(Violation('reviewer_id', 'Reviewer does not exist.'))
        elif reviewer.role != ROLE_REVIEWER:
            violations.append(Violation('reviewer_id', 'Assigned user is not a reviewer.'))
        raise_for_violations(violations)

        existing = db.query(Review.id).filter(
            Review.project_id == data.project_id,
            Review.reviewer_id == data.reviewer_id,
        ).first()
        if existing is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='This reviewer is already assigned to the project.',
            )

        review = Review(project_id=data.project_id, reviewer_id=data.reviewer_id)
        db.add(review)
        db.commit()
        db.refresh(review)
        logger.info('Assigned reviewer %s to project %s', data.reviewer_id, data.project_id)
        return review
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('', response_model=list[ReviewResponse])
def list_reviews(
    project_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(Review)
        if project_id is not None:
            query = query.filter(Review.project_id == project_id)
        return query.order_by(Review.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/mine', response_model=list[ReviewResponse])
def list_my_reviews(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(Review).filter(
            Review.reviewer_id == current_user.id,
        ).order_by(Review.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{review_id}', response_model=ReviewResponse)
def get_review(review_id: int, db: Session = Depends(get_db)):
    try:
        return get_review_or_404(review_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{review_id}/evaluation', response_model=ReviewResponse)
def submit_evaluation(
    review_id: int,
    data: EvaluationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = data.model_dump()
    raise_for_violations(validate_evaluation(fields))

    try:
        review = get_review_or_404(review_id, db)
        if review.reviewer_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Only the assigned reviewer can evaluate this project.',
            )

        for field, value in fields.items():
            setattr(review, field, value)
        review.feedback = feedback_for(data.recommendation)
        review.evaluated_at = datetime.now(timezone.utc)

        db.commit()
        db.refresh(review)
        return review
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{review_id}', status_code=status.HTTP_204_NO_CONTENT)
def unassign_reviewer(review_id: int, db: Session = Depends(get_db)):
    try:
        review = get_review_or_404(review_id, db)
        db.delete(review)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
