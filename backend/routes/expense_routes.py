import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.expense import Expense
from backend.models.project import Project
from backend.routes.common import column_values, database_unavailable, raise_for_violations
from backend.validation import Violation, validate_expense

router = APIRouter(tags=['expenses'])


class CreateExpenseRequest(BaseModel):
    project_id: int
    description: str | None = None
    amount: float | None = None
    date: datetime.date | None = None
    category: str = 'Personnel'


class UpdateExpenseRequest(BaseModel):
    description: str | None = None
    amount: float | None = None
    date: datetime.date | None = None
    category: str | None = None
    status: bool | None = None


class ExpenseResponse(BaseModel):
    id: int
    project_id: int
    description: str
    amount: float
    date: datetime.date
    category: str
    status: bool
    created_at: datetime.datetime | None = None

    class Config:
        from_attributes = True


def get_expense_or_404(expense_id: int, db: Session) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if expense is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Expense not found.',
        )
    return expense


@router.post('', response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense(data: CreateExpenseRequest, db: Session = Depends(get_db)):
    fields = data.model_dump()
    raise_for_violations(validate_expense(fields))

    try:
        if db.query(Project.id).filter(Project.id == data.project_id).first() is None:
            raise_for_violations([Violation('project_id', 'Project does not exist.')])

        expense = Expense(**fields)
        db.add(expense)
        db.commit()
        db.refresh(expense)
        return expense
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('', response_model=list[ExpenseResponse])
def list_expenses(
    project_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(Expense)
        if project_id is not None:
            query = query.filter(Expense.project_id == project_id)
        return query.order_by(Expense.date.desc(), Expense.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{expense_id}', response_model=ExpenseResponse)
def get_expense(expense_id: int, db: Session = Depends(get_db)):
    try:
        return get_expense_or_404(expense_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{expense_id}', response_model=ExpenseResponse)
def update_expense(expense_id: int, data: UpdateExpenseRequest, db: Session = Depends(get_db)):
    try:
        expense = get_expense_or_404(expense_id, db)

        changes = data.model_dump(exclude_unset=True)
        raise_for_violations(validate_expense({**column_values(expense), **changes}))

        for field, value in changes.items():
            setattr(expense, field, value)
        db.commit()
        db.refresh(expense)
        return expense
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{expense_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(expense_id: int, db: Session = Depends(get_db)):
    try:
        expense = get_expense_or_404(expense_id, db)
        db.delete(expense)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
