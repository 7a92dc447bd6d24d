from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from ..models.models import Goal, Member, Payment
from .reports import sum_expenses, sum_paid_payments

ZERO = Decimal("0")
DASHBOARD_RANKING_LIMIT = 5


def goal_progress(raised: Decimal, target: Optional[Decimal]) -> float:
    if not target:
        return 0.0
    return float(min(Decimal("100"), (raised / Decimal(str(target))) * 100))


def goals_with_progress(
    session: Session,
    member_id: Optional[int] = None,
    paid_only: bool = False,
) -> List[Dict[str, Any]]:
    join_condition = Payment.goal_id == Goal.id
    if paid_only:
        join_condition = and_(join_condition, Payment.paid.is_(True))
    if member_id:
        join_condition = and_(join_condition, Payment.member_id == member_id)

    rows = (
        session.query(Goal, func.coalesce(func.sum(Payment.amount), 0))
        .outerjoin(Payment, join_condition)
        .group_by(Goal.id)
        .order_by(Goal.deadline.is_(None), Goal.deadline, Goal.id)
        .all()
    )
    goals = []
    for goal, raised in rows:
        raised_amount = Decimal(str(raised))
        goals.append(
            {
                "id": goal.id,
                "title": goal.title,
                "target_amount": goal.target_amount,
                "deadline": goal.deadline,
                "description": goal.description,
                "raised": raised_amount,
                "progress": goal_progress(raised_amount, goal.target_amount),
            }
        )
    return goals


def delinquent_members(
    session: Session,
    month: Optional[int] = None,
    year: Optional[int] = None,
    member_id: Optional[int] = None,
) -> List[Member]:
    """Members with no paid payment for the period (any period when unset)."""
    paid_filters = [Payment.member_id == Member.id, Payment.paid.is_(True)]
    if month:
        paid_filters.append(Payment.month == month)
    if year:
        paid_filters.append(Payment.year == year)

    has_paid = session.query(Payment.id).filter(*paid_filters).exists()
    query = session.query(Member).filter(~has_paid)
    if member_id:
        query = query.filter(Member.id == member_id)
    return query.order_by(Member.name).all()


def payment_ranking(
    session: Session,
    year: Optional[int] = None,
    member_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    join_condition = and_(Payment.member_id == Member.id, Payment.paid.is_(True))
    if year:
        join_condition = and_(join_condition, Payment.year == year)

    payment_count = func.count(Payment.id)
    query = (
        session.query(Member.name, payment_count)
        .outerjoin(Payment, join_condition)
        .group_by(Member.id, Member.name)
        .order_by(payment_count.desc(), Member.name.asc())
    )
    if member_id:
        query = query.filter(Member.id == member_id)
    if limit:
        query = query.limit(limit)
    return [{"name": name, "payments": count} for name, count in query.all()]


def monthly_collections(session: Session, year: Optional[int] = None, member_id: Optional[int] = None) -> List[Dict[str, Any]]:
    columns = [Payment.month]
    if year:
        columns.insert(0, Payment.year)
    query = session.query(*columns, func.sum(Payment.amount)).filter(Payment.paid.is_(True))
    if year:
        query = query.filter(Payment.year == year)
    if member_id:
        query = query.filter(Payment.member_id == member_id)
    rows = query.group_by(*columns).order_by(Payment.month).all()

    collections = []
    for row in rows:
        if year:
            row_year, month, total = row
        else:
            month, total = row
            row_year = None
        collections.append({"month": month, "year": row_year, "total": Decimal(str(total or 0))})
    return collections


def build_dashboard(
    session: Session,
    year: Optional[int] = None,
    month: Optional[int] = None,
    member_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Aggregate view; a member id scopes every figure to that member."""
    total_raised = sum_paid_payments(session, year=year, member_id=member_id)
    total_expenses = ZERO if member_id else sum_expenses(session, year=year)
    return {
        "total_raised": total_raised,
        "total_expenses": total_expenses,
        "balance": total_raised - total_expenses,
        "monthly_collections": monthly_collections(session, year=year, member_id=member_id),
        "goals": goals_with_progress(session, member_id=member_id, paid_only=True),
        "delinquent_members": [
            member.name for member in delinquent_members(session, month=month, year=year, member_id=member_id)
        ],
        "ranking": payment_ranking(session, year=year, member_id=member_id, limit=DASHBOARD_RANKING_LIMIT),
    }
