"""Organization settings and the scalar ``current_balance``.

Settings are plain key/value rows. The balance row is materialized lazily: the
first read seeds it from the paid payments minus all expenses, and from then on
it only changes through :func:`adjust_current_balance` or an explicit
:func:`set_current_balance`.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..constants import CURRENT_BALANCE_KEY, DEFAULT_SETTINGS
from ..core import persistence
from ..models.models import Expense, Payment, Setting, utcnow

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

_ADJUST_BALANCE_SQL = {
    "sqlite": (
        "UPDATE settings "
        "SET value = CAST(CAST(COALESCE(value, '0') AS REAL) + CAST(? AS REAL) AS TEXT), "
        "updated_at = CURRENT_TIMESTAMP "
        "WHERE key = ?"
    ),
    "postgresql": (
        "UPDATE settings "
        "SET value = CAST(CAST(COALESCE(NULLIF(value, ''), '0') AS NUMERIC) + CAST(? AS NUMERIC) AS TEXT), "
        "updated_at = TIMEZONE('utc', NOW()) "
        "WHERE key = ?"
    ),
}


def parse_amount(value: Any) -> Decimal:
    """Coerce a stored value to ``Decimal``; anything unparsable reads as zero."""
    if value is None or value == "":
        return Decimal("0")
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not parsed.is_finite():
        return Decimal("0")
    return parsed.quantize(CENTS)


def normalize_due_day(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return None
    if parsed < 1 or parsed > 31:
        return None
    return parsed


def get_setting(session: Session, key: str) -> Optional[str]:
    if not key:
        return None
    row = persistence.query_one(session, "SELECT value FROM settings WHERE key = ?", [key])
    return None if row is None else row["value"]


def set_setting(session: Session, key: str, value: Any) -> None:
    if not key:
        return
    stored_value = None if value is None else str(value)
    persistence.upsert(
        session,
        Setting.__table__,
        {"key": key, "value": stored_value, "updated_at": utcnow()},
        index_elements=["key"],
        update_columns=["value", "updated_at"],
    )


def get_settings(session: Session) -> Dict[str, Optional[str]]:
    merged: Dict[str, Optional[str]] = dict(DEFAULT_SETTINGS)
    rows = session.execute(
        select(Setting.key, Setting.value).where(Setting.key.in_(list(DEFAULT_SETTINGS)))
    ).all()
    for key, value in rows:
        if value is not None:
            merged[key] = value
    return merged


def set_settings(session: Session, values: Mapping[str, Any]) -> None:
    for key, value in values.items():
        if key:
            set_setting(session, key, value)


def get_public_settings(session: Session) -> Dict[str, Any]:
    stored = get_settings(session)
    default_amount = parse_amount(stored.get("default_payment_amount"))
    if not default_amount:
        default_amount = parse_amount(DEFAULT_SETTINGS["default_payment_amount"])
    return {
        "orgName": stored.get("org_name") or DEFAULT_SETTINGS["org_name"],
        "orgTagline": stored.get("org_tagline") or "",
        "defaultPaymentAmount": default_amount,
        "paymentDueDay": normalize_due_day(stored.get("payment_due_day")),
        "pixKey": stored.get("pix_key") or "",
        "pixReceiver": stored.get("pix_receiver") or "",
        "dashboardNote": stored.get("dashboard_note") or "",
        "disclaimerText": stored.get("disclaimer_text") or "",
        "documentFooter": stored.get("document_footer") or "",
    }


def _seed_balance(session: Session) -> Decimal:
    session.flush()
    paid_total = session.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.paid.is_(True))
    ).scalar_one()
    expense_total = session.execute(select(func.coalesce(func.sum(Expense.amount), 0))).scalar_one()
    return parse_amount(paid_total) - parse_amount(expense_total)


def ensure_balance_row(session: Session) -> Decimal:
    stored = persistence.query_one(session, "SELECT value FROM settings WHERE key = ?", [CURRENT_BALANCE_KEY])
    if stored is not None:
        return parse_amount(stored["value"])
    initial = _seed_balance(session)
    set_current_balance(session, initial)
    logger.info("Seeded current balance at %s from payments and expenses", initial)
    return initial


def get_current_balance(session: Session) -> Decimal:
    return ensure_balance_row(session)


def set_current_balance(session: Session, value: Any) -> Decimal:
    balance = parse_amount(value)
    set_setting(session, CURRENT_BALANCE_KEY, str(balance))
    return balance


def adjust_current_balance(session: Session, delta: Any) -> Decimal:
    numeric_delta = parse_amount(delta)
    ensure_balance_row(session)
    if numeric_delta:
        dialect = persistence.dialect_name(session)
        sql = _ADJUST_BALANCE_SQL.get(dialect)
        if sql is None:
            raise NotImplementedError(f"Balance adjustment is not supported for the {dialect} dialect")
        persistence.execute(session, sql, [str(numeric_delta), CURRENT_BALANCE_KEY])
        logger.info("Adjusted current balance by %s", numeric_delta)
    return get_current_balance(session)
