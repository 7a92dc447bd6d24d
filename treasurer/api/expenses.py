from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import extract
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_privileged
from ..models.models import Event, Expense, Member
from ..schemas.schemas import ExpenseCreate, ExpenseRead, ExpenseUpdate, MessageResponse

router = APIRouter()


def _get_expense(db: Session, expense_id: int) -> Expense:
    expense = db.get(Expense, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


def _apply(db: Session, expense: Expense, payload: ExpenseCreate) -> None:
    if payload.event_id and db.get(Event, payload.event_id) is None:
        raise HTTPException(status_code=404, detail="Event not found")
    expense.title = payload.title
    expense.amount = payload.amount
    expense.expense_date = payload.expense_date
    expense.category = payload.category or None
    expense.notes = payload.notes
    expense.event_id = payload.event_id or None
    if payload.attachment_id:
        expense.attachment_id = payload.attachment_id
    if payload.attachment_name:
        expense.attachment_name = payload.attachment_name
    if payload.attachment_url:
        expense.attachment_url = payload.attachment_url


@router.get("", response_model=List[ExpenseRead])
def list_expenses(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    _: Member = Depends(get_current_user),
) -> List[Expense]:
    query = db.query(Expense)
    if year:
        query = query.filter(extract("year", Expense.expense_date) == year)
    if month:
        query = query.filter(extract("month", Expense.expense_date) == month)
    return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


@router.post("", response_model=ExpenseRead)
def create_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> Expense:
    expense = Expense()
    _apply(db, expense, payload)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.put("/{expense_id}", response_model=ExpenseRead)
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> Expense:
    expense = _get_expense(db, expense_id)
    _apply(db, expense, payload)
    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{expense_id}", response_model=MessageResponse)
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> MessageResponse:
    db.delete(_get_expense(db, expense_id))
    db.commit()
    return MessageResponse(ok=True)
