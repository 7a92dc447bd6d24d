"""Payment mutations and their effect on the scalar balance.

Each operation changes the ``payments`` table and moves ``current_balance`` by
the signed difference in the row's contribution. Both writes happen on the
caller's session and are committed together, so a failed adjustment leaves no
half-applied payment behind.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..core import persistence
from ..models.models import Goal, Member, Payment
from .settings_store import adjust_current_balance, ensure_balance_row, parse_amount

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class PaymentInput:
    member_id: Optional[int]
    month: Optional[int]
    year: Optional[int]
    amount: Optional[Decimal]
    paid: bool = False
    paid_at: Optional[date] = None
    notes: Optional[str] = None
    goal_id: Optional[int] = None
    attachment_id: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_url: Optional[str] = None


@dataclass
class PaymentUpdate:
    amount: Optional[Decimal]
    paid: bool = False
    paid_at: Optional[date] = None
    notes: Optional[str] = None
    goal_id: Optional[int] = None
    attachment_id: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_url: Optional[str] = None


def balance_contribution(amount, paid: bool) -> Decimal:
    if settings.balance_policy == "paid_only" and not paid:
        return ZERO
    return parse_amount(amount)


def _require_positive_amount(amount) -> Decimal:
    if amount is None:
        raise ValueError("Amount is required")
    value = Decimal(str(amount))
    if value <= 0:
        raise ValueError("Amount must be greater than zero")
    return value


def _validate_input(data: PaymentInput) -> Decimal:
    if not data.member_id or not data.month or not data.year or data.amount is None:
        raise ValueError("memberId, month, year and amount are required")
    if data.month < 1 or data.month > 12:
        raise ValueError("Month must be between 1 and 12")
    if data.year < 1:
        raise ValueError("Year must be a positive number")
    return _require_positive_amount(data.amount)


def _ensure_goal(session: Session, goal_id: Optional[int]) -> None:
    if goal_id and session.get(Goal, goal_id) is None:
        raise LookupError("Goal not found")


def _merge_fields(payment: Payment, data, amount: Decimal) -> None:
    payment.amount = amount
    payment.paid = bool(data.paid)
    payment.paid_at = data.paid_at
    payment.notes = data.notes
    payment.goal_id = data.goal_id or None
    # A new submission without an attachment keeps the one already stored.
    if data.attachment_id:
        payment.attachment_id = data.attachment_id
    if data.attachment_name:
        payment.attachment_name = data.attachment_name
    if data.attachment_url:
        payment.attachment_url = data.attachment_url


def get_period_payment(session: Session, member_id: int, month: int, year: int) -> Optional[Payment]:
    return (
        session.query(Payment)
        .filter(Payment.member_id == member_id, Payment.month == month, Payment.year == year)
        .first()
    )


def create_or_replace_payment(session: Session, data: PaymentInput) -> Payment:
    amount = _validate_input(data)
    if session.get(Member, data.member_id) is None:
        raise LookupError("Member not found")
    _ensure_goal(session, data.goal_id)

    # Materialize the balance before the write so the seed never counts this row.
    ensure_balance_row(session)

    payment = get_period_payment(session, data.member_id, data.month, data.year)
    created = False
    if payment is None:
        # Two first submissions for the same period must land on one row.
        created = persistence.insert_ignore(
            session,
            Payment.__table__,
            {
                "member_id": data.member_id,
                "month": data.month,
                "year": data.year,
                "amount": amount,
                "paid": bool(data.paid),
            },
            index_elements=["member_id", "month", "year"],
        )
        payment = get_period_payment(session, data.member_id, data.month, data.year)
    previous = ZERO if created else balance_contribution(payment.amount, payment.paid)
    _merge_fields(payment, data, amount)
    session.flush()

    delta = balance_contribution(payment.amount, payment.paid) - previous
    adjust_current_balance(session, delta)
    logger.info(
        "Recorded payment %s for member %s (%02d/%s), balance delta %s",
        payment.id,
        payment.member_id,
        payment.month,
        payment.year,
        delta,
    )
    return payment


def update_payment(session: Session, payment_id: int, data: PaymentUpdate) -> Payment:
    amount = _require_positive_amount(data.amount)
    payment = session.get(Payment, payment_id)
    if payment is None:
        raise LookupError("Payment not found")
    _ensure_goal(session, data.goal_id)

    ensure_balance_row(session)
    previous = balance_contribution(payment.amount, payment.paid)
    _merge_fields(payment, data, amount)
    session.flush()

    delta = balance_contribution(payment.amount, payment.paid) - previous
    adjust_current_balance(session, delta)
    logger.info("Updated payment %s, balance delta %s", payment.id, delta)
    return payment


def delete_payment(session: Session, payment_id: int) -> Decimal:
    payment = session.get(Payment, payment_id)
    if payment is None:
        raise LookupError("Payment not found")

    ensure_balance_row(session)
    removed = balance_contribution(payment.amount, payment.paid)
    session.delete(payment)
    session.flush()

    adjust_current_balance(session, -removed)
    logger.info("Deleted payment %s, balance delta %s", payment_id, -removed)
    return removed
