from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import extract, func, select
from sqlalchemy.orm import Session

from ..constants import ENTRY_TYPE_LABELS, MONTH_NAMES
from ..models.models import Expense, Member, Payment
from ..utils.csv_utils import format_amount, format_currency, format_date_br, rows_to_csv
from ..utils.pdf_utils import render_lines_pdf, render_receipt_pdf, render_table_pdf
from .statement import StatementEntry, StatementSummary

CSV_MEDIA_TYPE = "text/csv"
PDF_MEDIA_TYPE = "application/pdf"
EXPORT_FORMATS = ("csv", "pdf")
EXPORT_TYPES = ("payments", "expenses")

STATEMENT_CSV_HEADERS = ["data", "tipo", "descricao", "valor", "saldo_acumulado", "observacoes"]
STATEMENT_PDF_HEADERS = ["Data", "Tipo", "Descrição", "Valor", "Saldo"]
STATEMENT_PDF_WIDTHS = [70, 70, 200, 85, 90]


@dataclass
class FileReport:
    filename: str
    content: bytes
    media_type: str


def _csv_report(filename: str, content: str) -> FileReport:
    return FileReport(filename=filename, content=content.encode("utf-8"), media_type=CSV_MEDIA_TYPE)


def _pdf_report(filename: str, content: bytes) -> FileReport:
    return FileReport(filename=filename, content=content, media_type=PDF_MEDIA_TYPE)


def _require_format(fmt: str) -> str:
    normalized = (fmt or "csv").lower()
    if normalized not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    return normalized


# --- Totals -----------------------------------------------------------------


def sum_paid_payments(
    session: Session,
    year: Optional[int] = None,
    month: Optional[int] = None,
    member_id: Optional[int] = None,
) -> Decimal:
    statement = select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.paid.is_(True))
    if year:
        statement = statement.where(Payment.year == year)
    if month:
        statement = statement.where(Payment.month == month)
    if member_id:
        statement = statement.where(Payment.member_id == member_id)
    return Decimal(str(session.execute(statement).scalar_one()))


def sum_expenses(session: Session, year: Optional[int] = None, month: Optional[int] = None) -> Decimal:
    statement = select(func.coalesce(func.sum(Expense.amount), 0))
    if year:
        statement = statement.where(extract("year", Expense.expense_date) == year)
    if month:
        statement = statement.where(extract("month", Expense.expense_date) == month)
    return Decimal(str(session.execute(statement).scalar_one()))


def monthly_total(session: Session, month: int, year: int) -> Dict[str, Any]:
    return {"month": month, "year": year, "total": sum_paid_payments(session, year=year, month=month)}


def annual_total(session: Session, year: int) -> Dict[str, Any]:
    return {"year": year, "total": sum_paid_payments(session, year=year)}


def balance_totals(session: Session, year: Optional[int] = None) -> Dict[str, Decimal]:
    total_raised = sum_paid_payments(session, year=year)
    total_expenses = sum_expenses(session, year=year)
    return {
        "total_raised": total_raised,
        "total_expenses": total_expenses,
        "balance": total_raised - total_expenses,
    }


# --- Statement exports --------------------------------------------------------


def statement_csv(entries: Sequence[StatementEntry]) -> FileReport:
    rows = [
        [
            format_date_br(entry.date),
            ENTRY_TYPE_LABELS.get(entry.type, entry.type),
            entry.description,
            format_amount(entry.amount),
            format_amount(entry.running_balance),
            entry.notes,
        ]
        for entry in entries
    ]
    return _csv_report("extrato.csv", rows_to_csv(STATEMENT_CSV_HEADERS, rows))


def statement_pdf(
    entries: Sequence[StatementEntry],
    summary: StatementSummary,
    public_settings: Dict[str, Any],
) -> FileReport:
    cards = [
        ("TOTAL ENTRADAS", format_currency(summary.total_income)),
        ("TOTAL SAÍDAS", format_currency(summary.total_expense)),
        ("SALDO LÍQUIDO", format_currency(summary.net_balance)),
    ]
    rows = [
        [
            format_date_br(entry.date),
            ENTRY_TYPE_LABELS.get(entry.type, entry.type),
            entry.description,
            format_currency(entry.amount),
            format_currency(entry.running_balance),
        ]
        for entry in entries
    ]
    content = render_table_pdf(
        "Extrato de Movimentações",
        [public_settings["orgName"], public_settings["orgTagline"], "Documento gerado automaticamente"],
        cards,
        STATEMENT_PDF_HEADERS,
        STATEMENT_PDF_WIDTHS,
        rows,
        footer=public_settings["documentFooter"],
    )
    return _pdf_report("extrato.pdf", content)


def export_statement(
    entries: Sequence[StatementEntry],
    summary: StatementSummary,
    public_settings: Dict[str, Any],
    fmt: str = "csv",
) -> FileReport:
    if _require_format(fmt) == "pdf":
        return statement_pdf(entries, summary, public_settings)
    return statement_csv(entries)


# --- Raw payment / expense exports --------------------------------------------


def _payment_rows(session: Session, month: Optional[int], year: Optional[int]) -> List[Dict[str, Any]]:
    query = session.query(Payment, Member.name).join(Member, Member.id == Payment.member_id)
    if year:
        query = query.filter(Payment.year == year)
    if month:
        query = query.filter(Payment.month == month)
    rows = []
    for payment, member_name in query.order_by(Payment.year.desc(), Payment.month.desc(), Member.name).all():
        rows.append(
            {
                "member": member_name,
                "month": payment.month,
                "year": payment.year,
                "amount": format_amount(payment.amount),
                "paid": "sim" if payment.paid else "não",
                "paidAt": format_date_br(payment.paid_at),
            }
        )
    return rows


def _expense_rows(session: Session, month: Optional[int], year: Optional[int]) -> List[Dict[str, Any]]:
    query = session.query(Expense)
    if year:
        query = query.filter(extract("year", Expense.expense_date) == year)
    if month:
        query = query.filter(extract("month", Expense.expense_date) == month)
    return [
        {
            "title": expense.title,
            "amount": format_amount(expense.amount),
            "date": format_date_br(expense.expense_date),
            "category": expense.category or "",
            "notes": expense.notes or "",
        }
        for expense in query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()
    ]


EXPORT_HEADERS = {
    "payments": ["member", "month", "year", "amount", "paid", "paidAt"],
    "expenses": ["title", "amount", "date", "category", "notes"],
}


def export_records(
    session: Session,
    export_type: str = "payments",
    fmt: str = "csv",
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> FileReport:
    fmt = _require_format(fmt)
    if export_type not in EXPORT_TYPES:
        raise ValueError(f"Unsupported export type: {export_type}")

    rows = _expense_rows(session, month, year) if export_type == "expenses" else _payment_rows(session, month, year)
    headers = EXPORT_HEADERS[export_type]
    filename = f"relatorio-{export_type}.{fmt}"

    if fmt == "pdf":
        title = "Relatório de despesas" if export_type == "expenses" else "Relatório de pagamentos"
        lines: List[str] = []
        for row in rows:
            lines.extend(f"{header}: {row[header]}" for header in headers)
            lines.append("")
        if not rows:
            lines.append("Nenhum registro encontrado.")
        return _pdf_report(filename, render_lines_pdf(title, lines))
    return _csv_report(filename, rows_to_csv(headers, ([row[header] for header in headers] for row in rows)))


# --- Receipts -----------------------------------------------------------------


def payment_receipt(payment: Payment, public_settings: Dict[str, Any], issued_on: Optional[date] = None) -> FileReport:
    member = payment.member
    month_label = MONTH_NAMES[payment.month] if 1 <= payment.month <= 12 else str(payment.month)
    fields = [
        ("Membro", member.name if member else "-"),
        ("Email", (member.email if member else None) or "não informado"),
        ("Recibo", f"#{payment.id}"),
        ("Competência", f"{month_label}/{payment.year}"),
        ("Pagamento em", format_date_br(payment.paid_at) or "não informado"),
    ]
    content = render_receipt_pdf(
        public_settings["orgName"],
        fields,
        format_currency(payment.amount),
        format_date_br(issued_on or date.today()),
        bool(payment.paid),
        notes=payment.notes,
        footer=public_settings["documentFooter"],
    )
    return _pdf_report(f"recibo-{payment.id}.pdf", content)
