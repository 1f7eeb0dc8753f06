import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.collaborator import (
    INVITE_ACCEPTED,
    INVITE_DECLINED,
    INVITE_PENDING,
    CollaboratorInvite,
)
from backend.models.project import Project
from backend.models.user import User
from backend.routes.common import database_unavailable, raise_for_violations
from backend.validation import Violation, validate_invite

logger = logging.getLogger(__name__)

router = APIRouter(tags=['collaborators'])

PROJECT_STATUS_ON_ACCEPT = 'Active Collab'


class CreateInviteRequest(BaseModel):
    project_id: int
    receiver_id: int
    type: str | None = None
    message: str = ''


class InviteResponse(BaseModel):
    id: int
    project_id: int
    sender_id: int
    receiver_id: int
    message: str
    type: str
    status: str
    responded_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def get_invite_or_404(invite_id: int, db: Session) -> CollaboratorInvite:
    invite = db.query(CollaboratorInvite).filter(CollaboratorInvite.id == invite_id).first()
    if invite is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Invitation not found.',
        )
    return invite


def respond_to_invite(invite: CollaboratorInvite, user: User, answer: str, db: Session) -> CollaboratorInvite:
    if invite.receiver_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the receiver can respond to this invitation.',
        )
    if invite.status != INVITE_PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'This invitation was already {invite.status.lower()}.',
        )

    invite.status = answer
    invite.responded_at = datetime.now(timezone.utc)
    if answer == INVITE_ACCEPTED:
        project = db.query(Project).filter(Project.id == invite.project_id).first()
        if project is not None:
            project.status = PROJECT_STATUS_ON_ACCEPT

    db.commit()
    db.refresh(invite)
    logger.info('Invitation %s %s by user %s', invite.id, answer.lower(), user.id)
    return invite


@router.post('', response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
def send_invite(
    data: CreateInviteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = data.model_dump()
    fields['sender_id'] = current_user.id
    raise_for_violations(validate_invite(fields))

    try:
        project = db.query(Project).filter(Project.id == data.project_id).first()
        receiver = db.query(User).filter(User.id == data.receiver_id).first()
        violations = []
        if project is None:
            violations.append(Violation('project_id', 'Project does not exist.'))
        if receiver is None:
            violations.append(Violation('receiver_id', 'Receiver does not exist.'))
        raise_for_violations(violations)

        if data.type == 'invite' and project.creator_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Only the project creator can invite collaborators.',
            )
        if data.type == 'application' and project.creator_id != data.receiver_id:
            raise_for_violations([
                Violation('receiver_id', 'Applications must be sent to the project creator.'),
            ])

        duplicate = db.query(CollaboratorInvite).filter(
            CollaboratorInvite.project_id == data.project_id,
            CollaboratorInvite.sender_id == current_user.id,
            CollaboratorInvite.receiver_id == data.receiver_id,
            CollaboratorInvite.status == INVITE_PENDING,
        ).first()
        if duplicate is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='A pending invitation already exists.',
            )

        invite = CollaboratorInvite(**fields)
        db.add(invite)
        db.commit()
        db.refresh(invite)
        return invite
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/received', response_model=list[InviteResponse])
def list_received_invites(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(CollaboratorInvite).filter(
            CollaboratorInvite.receiver_id == current_user.id,
        ).order_by(CollaboratorInvite.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/sent', response_model=list[InviteResponse])
def list_sent_invites(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(CollaboratorInvite).filter(
            CollaboratorInvite.sender_id == current_user.id,
        ).order_by(CollaboratorInvite.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{invite_id}', response_model=InviteResponse)
def get_invite(invite_id: int, db: Session = Depends(get_db)):
    try:
        return get_invite_or_404(invite_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{invite_id}/accept', response_model=InviteResponse)
def accept_invite(
    invite_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return respond_to_invite(get_invite_or_404(invite_id, db), current_user, INVITE_ACCEPTED, db)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{invite_id}/decline', response_model=InviteResponse)
def decline_invite(
    invite_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return respond_to_invite(get_invite_or_404(invite_id, db), current_user, INVITE_DECLINED, db)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{invite_id}', status_code=status.HTTP_204_NO_CONTENT)
def withdraw_invite(
    invite_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        invite = get_invite_or_404(invite_id, db)
        if invite.sender_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Only the sender can withdraw this invitation.',
            )
        db.delete(invite)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
