from datetime import datetime, timezone
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship as orm_relationship

from ..config import Base
from ..constants import PRIVILEGED_ROLES, ROLE_VIEWER


def utcnow():
    return datetime.now(timezone.utc)


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    nickname = Column(String, nullable=True)
    registration_number = Column(String(50), unique=True, nullable=True)
    role = Column(String, nullable=False, default=ROLE_VIEWER)
    active = Column(Boolean, nullable=False, default=True)
    password_hash = Column(String, nullable=True)
    must_reset_password = Column(Boolean, nullable=False, default=False)
    setup_token_hash = Column(String, nullable=True, index=True)
    setup_token_created_at = Column(DateTime, nullable=True)
    joined_at = Column(DateTime, default=utcnow, nullable=False)

    payments = orm_relationship("Payment", back_populates="member", cascade="all, delete-orphan")

    def has_any_role(self, *role_names: str) -> bool:
        return self.role in set(role_names)

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    target_amount = Column(Numeric(12, 2), nullable=False)
    deadline = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    payments = orm_relationship("Payment", back_populates="goal")


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    event_date = Column(Date, nullable=False, index=True)
    raised_amount = Column(Numeric(12, 2), nullable=False, default=0)
    spent_amount = Column(Numeric(12, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)

    expenses = orm_relationship("Expense", back_populates="event")

    @property
    def net_amount(self):
        return (self.raised_amount or 0) - (self.spent_amount or 0)


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("member_id", "month", "year", name="uq_payment_member_period"),)

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(Date, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    notes = Column(Text, nullable=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="SET NULL"), nullable=True)
    attachment_id = Column(String, nullable=True)
    attachment_name = Column(String, nullable=True)
    attachment_url = Column(String, nullable=True)

    member = orm_relationship("Member", back_populates="payments")
    goal = orm_relationship("Goal", back_populates="payments")

    @property
    def member_name(self):
        return self.member.name if self.member else None


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    expense_date = Column(Date, nullable=False, index=True)
    category = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)
    attachment_id = Column(String, nullable=True)
    attachment_name = Column(String, nullable=True)
    attachment_url = Column(String, nullable=True)

    event = orm_relationship("Event", back_populates="expenses")


class Setting(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
