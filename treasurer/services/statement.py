"""Statement ("extrato") reconstruction.

Paid payments, expenses and events are merged into one date-ordered list with a
running balance computed from zero. The scalar ``current_balance`` setting is
never consulted here; the statement is always derived from the three tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..constants import ENTRY_TYPE_EVENT, ENTRY_TYPE_EXPENSE, ENTRY_TYPE_PAYMENT, ENTRY_TYPES
from ..models.models import Event, Expense, Member, Payment

ZERO = Decimal("0.00")


@dataclass
class StatementFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    entry_type: Optional[str] = None
    member_id: Optional[int] = None

    def includes(self, entry_type: str) -> bool:
        return not self.entry_type or self.entry_type == entry_type


@dataclass
class StatementEntry:
    date: str
    type: str
    description: str
    amount: Decimal
    notes: str = ""
    running_balance: Decimal = ZERO


@dataclass
class StatementSummary:
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    count: int


def _decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _payment_date(payment: Payment) -> str:
    if payment.paid_at:
        return payment.paid_at.isoformat()
    if payment.created_at:
        return payment.created_at.date().isoformat()
    return f"{payment.year}-{payment.month:02d}-01"


def _payment_entries(session: Session, filters: StatementFilters) -> List[StatementEntry]:
    effective_date = func.coalesce(Payment.paid_at, func.date(Payment.created_at))
    query = (
        session.query(Payment, Member.name)
        .join(Member, Member.id == Payment.member_id)
        .filter(Payment.paid.is_(True))
    )
    if filters.member_id:
        query = query.filter(Payment.member_id == filters.member_id)
    if filters.start_date:
        query = query.filter(effective_date >= filters.start_date)
    if filters.end_date:
        query = query.filter(effective_date <= filters.end_date)

    entries = []
    for payment, member_name in query.order_by(Payment.id.asc()).all():
        entries.append(
            StatementEntry(
                date=_payment_date(payment),
                type=ENTRY_TYPE_PAYMENT,
                description=f"Pagamento - {member_name} ({payment.month:02d}/{payment.year})",
                amount=_decimal(payment.amount),
                notes=payment.notes or "",
            )
        )
    return entries


def _expense_entries(session: Session, filters: StatementFilters) -> List[StatementEntry]:
    query = session.query(Expense)
    if filters.start_date:
        query = query.filter(Expense.expense_date >= filters.start_date)
    if filters.end_date:
        query = query.filter(Expense.expense_date <= filters.end_date)

    entries = []
    for expense in query.order_by(Expense.id.asc()).all():
        description = f"Despesa - {expense.title}"
        if expense.category:
            description += f" ({expense.category})"
        entries.append(
            StatementEntry(
                date=expense.expense_date.isoformat(),
                type=ENTRY_TYPE_EXPENSE,
                description=description,
                amount=-_decimal(expense.amount),
                notes=expense.notes or "",
            )
        )
    return entries


def _event_entries(session: Session, filters: StatementFilters) -> List[StatementEntry]:
    query = session.query(Event)
    if filters.start_date:
        query = query.filter(Event.event_date >= filters.start_date)
    if filters.end_date:
        query = query.filter(Event.event_date <= filters.end_date)

    entries = []
    for event in query.order_by(Event.id.asc()).all():
        entries.append(
            StatementEntry(
                date=event.event_date.isoformat(),
                type=ENTRY_TYPE_EVENT,
                description=f"Evento - {event.name}",
                amount=_decimal(event.raised_amount) - _decimal(event.spent_amount),
                notes=event.description or "",
            )
        )
    return entries


def build_entries(session: Session, filters: Optional[StatementFilters] = None) -> List[StatementEntry]:
    filters = filters or StatementFilters()
    if filters.entry_type and filters.entry_type not in ENTRY_TYPES:
        raise ValueError(f"Unknown entry type: {filters.entry_type}")

    entries: List[StatementEntry] = []
    if filters.includes(ENTRY_TYPE_PAYMENT):
        entries.extend(_payment_entries(session, filters))
    if filters.includes(ENTRY_TYPE_EXPENSE):
        entries.extend(_expense_entries(session, filters))
    if filters.includes(ENTRY_TYPE_EVENT):
        entries.extend(_event_entries(session, filters))

    # list.sort is stable: same-day entries keep payments, expenses, events order.
    entries.sort(key=lambda entry: entry.date or "")

    running_balance = ZERO
    for entry in entries:
        running_balance += entry.amount
        entry.running_balance = running_balance
    return entries


def summarize(entries: List[StatementEntry]) -> StatementSummary:
    total_income = sum((entry.amount for entry in entries if entry.amount > 0), ZERO)
    total_expense = sum((-entry.amount for entry in entries if entry.amount < 0), ZERO)
    return StatementSummary(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
        count=len(entries),
    )
