#!/usr/bin/env python
"""
Seed script to populate the database with sample data for local development.

Usage:
    python scripts/seed_data.py --members 5
"""

import argparse
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from treasurer.config import Base, SessionLocal, engine  # noqa: E402
from treasurer.constants import ROLE_ADMIN, ROLE_VIEWER  # noqa: E402
from treasurer.models.models import Event, Expense, Goal, Member  # noqa: E402
from treasurer.services.ledger import PaymentInput, create_or_replace_payment  # noqa: E402
from treasurer.services.members import create_member_account  # noqa: E402

DEFAULT_PASSWORD = "changeme"


def create_admin_member(session) -> Member:
    admin = session.query(Member).filter(Member.email == "admin@example.com").first()
    if admin:
        return admin
    return create_member_account(
        session,
        name="Tesoureiro",
        email="admin@example.com",
        password=DEFAULT_PASSWORD,
        registration_number="ADMIN-001",
        role=ROLE_ADMIN,
    )


def recent_periods(count: int):
    current = date.today().replace(day=1)
    periods = []
    for _ in range(count):
        periods.append((current.month, current.year))
        current = (current - timedelta(days=1)).replace(day=1)
    return list(reversed(periods))


def create_member_bundle(session, index: int, goal: Goal) -> None:
    member = create_member_account(
        session,
        name=f"Membro {index}",
        email=f"membro{index}@example.com",
        password=DEFAULT_PASSWORD,
        registration_number=f"MEM-{index:03d}",
        nickname=f"m{index}",
        role=ROLE_VIEWER,
    )
    for month, year in recent_periods(3):
        create_or_replace_payment(
            session,
            PaymentInput(
                member_id=member.id,
                month=month,
                year=year,
                amount=Decimal("100.00"),
                paid=index % 3 != 0 or month != date.today().month,
                paid_at=date(year, month, 10),
                goal_id=goal.id if index % 2 == 0 else None,
            ),
        )


def seed_database(members: int) -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        create_admin_member(session)

        goal = Goal(title="Uniformes novos", target_amount=Decimal("1500.00"), description="Camisetas do clã")
        event = Event(
            name="Torneio de inverno",
            event_date=date.today() - timedelta(days=20),
            raised_amount=Decimal("800.00"),
            spent_amount=Decimal("350.00"),
        )
        session.add_all([goal, event])
        session.flush()

        session.add(
            Expense(
                title="Servidor de voz",
                amount=Decimal("45.90"),
                expense_date=date.today() - timedelta(days=5),
                category="Infraestrutura",
            )
        )
        session.add(
            Expense(
                title="Premiação",
                amount=Decimal("200.00"),
                expense_date=event.event_date,
                category="Eventos",
                event_id=event.id,
            )
        )

        existing = session.query(Member).count()
        targets = max(members, 0)
        for offset in range(targets):
            create_member_bundle(session, existing + offset, goal)

        session.commit()
        print(f"Seed complete. Created {targets} member accounts (password: '{DEFAULT_PASSWORD}').")


def main():
    parser = argparse.ArgumentParser(description="Seed the treasurer database with sample data.")
    parser.add_argument("--members", type=int, default=5, help="Number of member accounts to create")
    args = parser.parse_args()
    seed_database(args.members)


if __name__ == "__main__":
    main()
