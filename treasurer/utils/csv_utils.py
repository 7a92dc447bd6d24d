import csv
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Any, Iterable, Optional, Sequence, Union

CENTS = Decimal("0.01")


def format_date_br(value: Optional[Union[str, date]]) -> str:
    """Render an ISO date as ``DD/MM/YYYY``; unparseable values pass through."""
    if not value:
        return ""
    text = value.isoformat() if isinstance(value, date) else str(value)
    parts = text[:10].split("-")
    if len(parts) == 3:
        year, month, day = parts
        return f"{day}/{month}/{year}"
    return text


def format_currency(value: Any) -> str:
    amount = Decimal(str(value or 0)).quantize(CENTS)
    sign = "-" if amount < 0 else ""
    integer, _, cents = f"{abs(amount):,.2f}".partition(".")
    return f"{sign}R$ {integer.replace(',', '.')},{cents}"


def format_amount(value: Any) -> str:
    return str(Decimal(str(value or 0)).quantize(CENTS))


def rows_to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buffer = StringIO()
    # Bare header line, every data cell quoted.
    buffer.write(",".join(headers) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if cell is None else str(cell) for cell in row])
    return buffer.getvalue()
