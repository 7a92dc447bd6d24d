from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

import treasurer.config as app_config
from treasurer.models.models import Expense, Goal, Payment
from treasurer.services import ledger
from treasurer.services.settings_store import get_current_balance, set_current_balance


def _payment(member, amount, month=1, year=2024, **extra):
    return ledger.PaymentInput(member_id=member.id, month=month, year=year, amount=Decimal(amount), **extra)


def test_second_submission_for_same_period_replaces_the_first(db_session, create_member):
    member = create_member()
    ledger.create_or_replace_payment(db_session, _payment(member, "100", notes="primeira"))
    db_session.commit()
    ledger.create_or_replace_payment(db_session, _payment(member, "120", notes="segunda", paid_at=date(2024, 1, 9)))
    db_session.commit()

    rows = db_session.query(Payment).all()
    assert len(rows) == 1
    assert rows[0].amount == Decimal("120.00")
    assert rows[0].notes == "segunda"
    assert rows[0].paid_at == date(2024, 1, 9)


def test_balance_follows_create_update_and_delete(db_session, create_member):
    member = create_member()
    set_current_balance(db_session, "50")
    db_session.commit()

    payment = ledger.create_or_replace_payment(db_session, _payment(member, "100"))
    db_session.commit()
    assert get_current_balance(db_session) == Decimal("150.00")

    ledger.update_payment(db_session, payment.id, ledger.PaymentUpdate(amount=Decimal("80")))
    db_session.commit()
    assert get_current_balance(db_session) == Decimal("130.00")

    removed = ledger.delete_payment(db_session, payment.id)
    db_session.commit()
    assert removed == Decimal("80.00")
    assert get_current_balance(db_session) == Decimal("50.00")
    assert db_session.query(Payment).count() == 0


def test_replacing_a_period_adjusts_by_the_difference(db_session, create_member):
    member = create_member()
    set_current_balance(db_session, "0")
    ledger.create_or_replace_payment(db_session, _payment(member, "100"))
    ledger.create_or_replace_payment(db_session, _payment(member, "70"))
    db_session.commit()

    assert get_current_balance(db_session) == Decimal("70.00")


def test_first_payment_does_not_count_twice_when_balance_is_seeded(db_session, create_member):
    member = create_member()
    db_session.add(Expense(title="Servidor", amount=Decimal("30"), expense_date=date(2024, 1, 3)))
    db_session.commit()

    ledger.create_or_replace_payment(db_session, _payment(member, "100"))
    db_session.commit()

    assert get_current_balance(db_session) == Decimal("70.00")


def test_expenses_never_touch_the_scalar_balance(db_session, create_member):
    member = create_member()
    ledger.create_or_replace_payment(db_session, _payment(member, "100", paid_at=date(2024, 1, 10)))
    db_session.commit()
    assert get_current_balance(db_session) == Decimal("100.00")

    db_session.add(Expense(title="Servidor", amount=Decimal("50"), expense_date=date(2024, 2, 1)))
    db_session.commit()

    assert get_current_balance(db_session) == Decimal("100.00")


def test_unpaid_toggle_keeps_balance_under_amount_delta_policy(db_session, create_member):
    member = create_member()
    payment = ledger.create_or_replace_payment(db_session, _payment(member, "100"))
    db_session.commit()

    ledger.update_payment(db_session, payment.id, ledger.PaymentUpdate(amount=Decimal("100"), paid=False))
    db_session.commit()

    assert get_current_balance(db_session) == Decimal("100.00")


def test_paid_only_policy_moves_balance_when_paid_toggles(db_session, create_member, monkeypatch):
    monkeypatch.setattr(app_config.settings, "balance_policy", "paid_only")
    member = create_member()
    set_current_balance(db_session, "0")

    payment = ledger.create_or_replace_payment(db_session, _payment(member, "100", paid=False))
    db_session.commit()
    assert get_current_balance(db_session) == Decimal("0.00")

    ledger.update_payment(db_session, payment.id, ledger.PaymentUpdate(amount=Decimal("100"), paid=True))
    db_session.commit()
    assert get_current_balance(db_session) == Decimal("100.00")

    ledger.update_payment(db_session, payment.id, ledger.PaymentUpdate(amount=Decimal("100"), paid=False))
    db_session.commit()
    assert get_current_balance(db_session) == Decimal("0.00")

    ledger.delete_payment(db_session, payment.id)
    db_session.commit()
    assert get_current_balance(db_session) == Decimal("0.00")


def test_attachment_is_kept_when_new_submission_has_none(db_session, create_member):
    member = create_member()
    ledger.create_or_replace_payment(
        db_session,
        _payment(member, "100", attachment_id="file-1", attachment_name="comprovante.pdf", attachment_url="https://files/1"),
    )
    payment = ledger.create_or_replace_payment(db_session, _payment(member, "100"))
    db_session.commit()

    assert payment.attachment_id == "file-1"
    assert payment.attachment_name == "comprovante.pdf"
    assert payment.attachment_url == "https://files/1"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"member_id": None}, "required"),
        ({"month": None}, "required"),
        ({"amount": None}, "required"),
        ({"month": 13}, "Month"),
        ({"amount": Decimal("0")}, "greater than zero"),
    ],
)
def test_create_rejects_invalid_input(db_session, create_member, overrides, message):
    member = create_member()
    values = {"member_id": member.id, "month": 1, "year": 2024, "amount": Decimal("10")}
    values.update(overrides)

    with pytest.raises(ValueError, match=message):
        ledger.create_or_replace_payment(db_session, ledger.PaymentInput(**values))
    assert db_session.query(Payment).count() == 0


def test_unknown_references_raise_lookup_error(db_session, create_member):
    member = create_member()
    with pytest.raises(LookupError):
        ledger.create_or_replace_payment(
            db_session,
            ledger.PaymentInput(member_id=member.id + 100, month=1, year=2024, amount=Decimal("10")),
        )
    with pytest.raises(LookupError):
        ledger.create_or_replace_payment(db_session, _payment(member, "10", goal_id=999))
    with pytest.raises(LookupError):
        ledger.update_payment(db_session, 999, ledger.PaymentUpdate(amount=Decimal("10")))
    with pytest.raises(LookupError):
        ledger.delete_payment(db_session, 999)


def test_goal_reference_is_stored(db_session, create_member):
    member = create_member()
    goal = Goal(title="Uniformes", target_amount=Decimal("500"))
    db_session.add(goal)
    db_session.commit()

    payment = ledger.create_or_replace_payment(db_session, _payment(member, "50", goal_id=goal.id))
    db_session.commit()

    assert payment.goal_id == goal.id


def test_failed_balance_adjustment_rolls_back_the_payment(db_session, create_member, monkeypatch):
    member = create_member()
    set_current_balance(db_session, "10")
    db_session.commit()

    def _boom(session, delta):
        raise OperationalError("UPDATE settings", {}, Exception("database is locked"))

    monkeypatch.setattr(ledger, "adjust_current_balance", _boom)

    with pytest.raises(OperationalError):
        ledger.create_or_replace_payment(db_session, _payment(member, "100"))
    db_session.rollback()

    assert db_session.query(Payment).count() == 0
    assert get_current_balance(db_session) == Decimal("10.00")


def test_period_row_stored_concurrently_is_replaced_not_duplicated(db_session, create_member, monkeypatch):
    member = create_member()
    set_current_balance(db_session, "0")
    ledger.create_or_replace_payment(db_session, _payment(member, "100"))
    db_session.commit()

    original = ledger.get_period_payment
    calls = []

    def _stale_lookup(session, member_id, month, year):
        calls.append(member_id)
        if len(calls) == 1:
            return None
        return original(session, member_id, month, year)

    monkeypatch.setattr(ledger, "get_period_payment", _stale_lookup)

    payment = ledger.create_or_replace_payment(db_session, _payment(member, "130", notes="segunda"))
    db_session.commit()

    assert len(calls) == 2
    assert db_session.query(Payment).count() == 1
    assert payment.amount == Decimal("130.00")
    assert payment.notes == "segunda"
    assert get_current_balance(db_session) == Decimal("130.00")
