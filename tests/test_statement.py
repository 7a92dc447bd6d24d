from datetime import date, datetime
from decimal import Decimal

import pytest

from treasurer.models.models import Event, Expense, Payment
from treasurer.services import ledger
from treasurer.services.settings_store import get_current_balance
from treasurer.services.statement import StatementFilters, build_entries, summarize


@pytest.fixture
def ledger_data(db_session, create_member):
    alice = create_member("Alice")
    bruno = create_member("Bruno")
    db_session.add_all(
        [
            Payment(member_id=alice.id, month=1, year=2024, amount=Decimal("100"), paid=True, paid_at=date(2024, 1, 5)),
            Payment(member_id=bruno.id, month=1, year=2024, amount=Decimal("80"), paid=True, paid_at=date(2024, 1, 20)),
            Payment(member_id=bruno.id, month=2, year=2024, amount=Decimal("80"), paid=False),
            Expense(title="Servidor", amount=Decimal("50"), expense_date=date(2024, 1, 20), category="Infra"),
            Expense(title="Troféu", amount=Decimal("30"), expense_date=date(2024, 3, 1)),
            Event(
                name="Torneio",
                event_date=date(2024, 1, 20),
                raised_amount=Decimal("200"),
                spent_amount=Decimal("260"),
            ),
        ]
    )
    db_session.commit()
    return {"alice": alice, "bruno": bruno}


def test_entries_are_sorted_with_signed_amounts_and_running_balance(db_session, ledger_data):
    entries = build_entries(db_session)

    assert [entry.date for entry in entries] == [
        "2024-01-05",
        "2024-01-20",
        "2024-01-20",
        "2024-01-20",
        "2024-03-01",
    ]
    # Same-day ties keep payments, then expenses, then events.
    assert [entry.type for entry in entries] == ["pagamento", "pagamento", "despesa", "evento", "despesa"]
    assert [entry.amount for entry in entries] == [
        Decimal("100"),
        Decimal("80"),
        Decimal("-50"),
        Decimal("-60"),
        Decimal("-30"),
    ]
    assert [entry.running_balance for entry in entries] == [
        Decimal("100"),
        Decimal("180"),
        Decimal("130"),
        Decimal("70"),
        Decimal("40"),
    ]
    assert entries[0].description == f"Pagamento - {ledger_data['alice'].name} (01/2024)"
    assert entries[2].description == "Despesa - Servidor (Infra)"
    assert entries[3].description == "Evento - Torneio"
    assert entries[4].description == "Despesa - Troféu"


def test_final_running_balance_matches_summary(db_session, ledger_data):
    entries = build_entries(db_session)
    summary = summarize(entries)

    assert summary.total_income == Decimal("180")
    assert summary.total_expense == Decimal("140")
    assert summary.net_balance == Decimal("40")
    assert summary.count == 5
    assert entries[-1].running_balance == summary.net_balance == sum(entry.amount for entry in entries)


def test_building_twice_gives_identical_output(db_session, ledger_data):
    first = build_entries(db_session, StatementFilters(start_date=date(2024, 1, 1)))
    second = build_entries(db_session, StatementFilters(start_date=date(2024, 1, 1)))

    assert first == second


def test_type_filter_returns_only_expense_entries(db_session, ledger_data):
    entries = build_entries(db_session, StatementFilters(entry_type="despesa"))

    assert len(entries) == 2
    assert all(entry.type == "despesa" and entry.amount < 0 for entry in entries)
    assert entries[-1].running_balance == Decimal("-80")


def test_member_filter_only_applies_to_payments(db_session, ledger_data):
    bruno = ledger_data["bruno"]

    expenses_only = build_entries(db_session, StatementFilters(entry_type="despesa", member_id=bruno.id))
    assert [entry.type for entry in expenses_only] == ["despesa", "despesa"]

    everything = build_entries(db_session, StatementFilters(member_id=bruno.id))
    payments = [entry for entry in everything if entry.type == "pagamento"]
    assert len(payments) == 1
    assert bruno.name in payments[0].description
    assert len(everything) == 4


def test_date_range_filters_every_source(db_session, ledger_data):
    entries = build_entries(
        db_session,
        StatementFilters(start_date=date(2024, 1, 10), end_date=date(2024, 1, 31)),
    )

    assert [entry.type for entry in entries] == ["pagamento", "despesa", "evento"]


def test_zero_amount_event_counts_toward_neither_total(db_session):
    db_session.add(Event(name="Reunião", event_date=date(2024, 5, 1), raised_amount=Decimal("10"), spent_amount=Decimal("10")))
    db_session.commit()

    summary = summarize(build_entries(db_session))

    assert summary.total_income == Decimal("0")
    assert summary.total_expense == Decimal("0")
    assert summary.count == 1


def test_payment_without_paid_at_falls_back_to_created_at(db_session, create_member):
    member = create_member()
    db_session.add(
        Payment(
            member_id=member.id,
            month=4,
            year=2024,
            amount=Decimal("10"),
            paid=True,
            created_at=datetime(2024, 4, 18, 13, 30),
        )
    )
    db_session.commit()

    entries = build_entries(db_session, StatementFilters(start_date=date(2024, 4, 18), end_date=date(2024, 4, 18)))

    assert [entry.date for entry in entries] == ["2024-04-18"]


def test_unknown_type_is_rejected(db_session):
    with pytest.raises(ValueError):
        build_entries(db_session, StatementFilters(entry_type="transferencia"))


def test_statement_and_scalar_balance_diverge_after_an_expense(db_session, create_member):
    member = create_member()
    ledger.create_or_replace_payment(
        db_session,
        ledger.PaymentInput(member_id=member.id, month=1, year=2024, amount=Decimal("100"), paid_at=date(2024, 1, 10), paid=True),
    )
    db_session.commit()
    assert get_current_balance(db_session) == Decimal("100.00")

    db_session.add(Expense(title="Servidor", amount=Decimal("50"), expense_date=date(2024, 2, 1)))
    db_session.commit()

    assert get_current_balance(db_session) == Decimal("100.00")
    entries = build_entries(db_session)
    assert [entry.running_balance for entry in entries] == [Decimal("100"), Decimal("50")]
