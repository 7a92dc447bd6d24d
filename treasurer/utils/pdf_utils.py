from io import BytesIO
from textwrap import wrap
from typing import Iterable, List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

MARGIN = 40
HEADER_HEIGHT = 100
MAX_CHARS_PER_LINE = 95
ROW_HEIGHT = 18
MAX_CELL_CHARS = 35

DARK = colors.HexColor("#0f172a")
MUTED = colors.HexColor("#64748b")
BORDER = colors.HexColor("#e2e8f0")
SURFACE = colors.HexColor("#f8fafc")
ACCENT = colors.HexColor("#eff6ff")
PAID = colors.HexColor("#16a34a")
PENDING = colors.HexColor("#f97316")


def _new_canvas() -> Tuple[BytesIO, canvas.Canvas]:
    buffer = BytesIO()
    return buffer, canvas.Canvas(buffer, pagesize=A4)


def _finish(buffer: BytesIO, pdf_canvas: canvas.Canvas) -> bytes:
    pdf_canvas.showPage()
    pdf_canvas.save()
    return buffer.getvalue()


def _truncate(text: str, limit: int = MAX_CELL_CHARS) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _draw_header(pdf_canvas: canvas.Canvas, title: str, subtitle_lines: Sequence[str]) -> float:
    width, height = A4
    pdf_canvas.setFillColor(DARK)
    pdf_canvas.rect(0, height - HEADER_HEIGHT, width, HEADER_HEIGHT, stroke=0, fill=1)
    pdf_canvas.setFillColor(colors.white)
    pdf_canvas.setFont("Helvetica-Bold", 20)
    pdf_canvas.drawString(MARGIN, height - 45, title)
    pdf_canvas.setFont("Helvetica", 10)
    y = height - 62
    for line in subtitle_lines:
        if line:
            pdf_canvas.drawString(MARGIN, y, line)
            y -= 13
    pdf_canvas.setFillColor(DARK)
    return height - HEADER_HEIGHT - 25


def _draw_footer(pdf_canvas: canvas.Canvas, footer: Optional[str]) -> None:
    if not footer:
        return
    width, _ = A4
    pdf_canvas.setStrokeColor(BORDER)
    pdf_canvas.line(MARGIN, 60, width - MARGIN, 60)
    pdf_canvas.setFillColor(MUTED)
    pdf_canvas.setFont("Helvetica", 9)
    y = 46
    for chunk in wrap(footer, MAX_CHARS_PER_LINE) or [footer]:
        pdf_canvas.drawCentredString(width / 2, y, chunk)
        y -= 11


def render_lines_pdf(
    title: str,
    lines: Iterable[str],
    subtitle_lines: Sequence[str] = (),
    footer: Optional[str] = None,
) -> bytes:
    buffer, pdf_canvas = _new_canvas()
    y = _draw_header(pdf_canvas, title, subtitle_lines)
    pdf_canvas.setFont("Helvetica", 11)

    for line in lines:
        normalized = "" if line is None else str(line)
        for chunk in wrap(normalized, MAX_CHARS_PER_LINE) or [""]:
            if y < MARGIN + 40:
                pdf_canvas.showPage()
                pdf_canvas.setFont("Helvetica", 11)
                pdf_canvas.setFillColor(DARK)
                y = A4[1] - MARGIN
            pdf_canvas.drawString(MARGIN, y, chunk)
            y -= 15

    _draw_footer(pdf_canvas, footer)
    return _finish(buffer, pdf_canvas)


def render_table_pdf(
    title: str,
    subtitle_lines: Sequence[str],
    summary: Sequence[Tuple[str, str]],
    headers: Sequence[str],
    col_widths: Sequence[float],
    rows: Iterable[Sequence[str]],
    footer: Optional[str] = None,
) -> bytes:
    """Header band, a row of summary cards, then a paginated table."""
    buffer, pdf_canvas = _new_canvas()
    width, height = A4
    content_width = width - MARGIN * 2
    y = _draw_header(pdf_canvas, title, subtitle_lines)

    if summary:
        gap = 12
        card_width = (content_width - gap * (len(summary) - 1)) / len(summary)
        for index, (label, value) in enumerate(summary):
            x = MARGIN + index * (card_width + gap)
            pdf_canvas.setFillColor(SURFACE)
            pdf_canvas.roundRect(x, y - 50, card_width, 50, 8, stroke=0, fill=1)
            pdf_canvas.setFillColor(MUTED)
            pdf_canvas.setFont("Helvetica", 8)
            pdf_canvas.drawString(x + 10, y - 16, label)
            pdf_canvas.setFillColor(DARK)
            pdf_canvas.setFont("Helvetica-Bold", 12)
            pdf_canvas.drawString(x + 10, y - 36, value)
        y -= 70

    def draw_header_row(top: float) -> float:
        pdf_canvas.setFillColor(BORDER)
        pdf_canvas.rect(MARGIN, top - 20, content_width, 20, stroke=0, fill=1)
        pdf_canvas.setFillColor(DARK)
        pdf_canvas.setFont("Helvetica-Bold", 8)
        x = MARGIN
        for header, col_width in zip(headers, col_widths):
            pdf_canvas.drawString(x + 4, top - 14, header)
            x += col_width
        pdf_canvas.setFont("Helvetica", 8)
        return top - 20

    y = draw_header_row(y)
    for row in rows:
        if y - ROW_HEIGHT < MARGIN + 70:
            pdf_canvas.showPage()
            y = draw_header_row(height - MARGIN)
        x = MARGIN
        for cell, col_width in zip(row, col_widths):
            pdf_canvas.drawString(x + 4, y - 13, _truncate(str(cell or "-")))
            x += col_width
        y -= ROW_HEIGHT

    _draw_footer(pdf_canvas, footer)
    return _finish(buffer, pdf_canvas)


def render_receipt_pdf(
    org_name: str,
    fields: List[Tuple[str, str]],
    amount_text: str,
    issued_on: str,
    paid: bool,
    notes: Optional[str] = None,
    footer: Optional[str] = None,
) -> bytes:
    buffer, pdf_canvas = _new_canvas()
    width, _ = A4
    content_width = width - MARGIN * 2
    y = _draw_header(pdf_canvas, "Recibo de Pagamento", [org_name, "Documento gerado automaticamente"])

    pdf_canvas.setFont("Helvetica-Bold", 13)
    pdf_canvas.drawString(MARGIN, y, "Resumo do pagamento")
    y -= 28
    for label, value in fields:
        pdf_canvas.setFillColor(MUTED)
        pdf_canvas.setFont("Helvetica", 9)
        pdf_canvas.drawString(MARGIN, y, label.upper())
        pdf_canvas.setFillColor(DARK)
        pdf_canvas.setFont("Helvetica-Bold", 12)
        pdf_canvas.drawString(MARGIN, y - 14, value)
        y -= 38

    status_label = "Pago" if paid else "Pendente"
    pdf_canvas.setFillColor(PAID if paid else PENDING)
    badge_width = pdf_canvas.stringWidth(status_label, "Helvetica-Bold", 9) + 20
    pdf_canvas.roundRect(MARGIN, y - 4, badge_width, 18, 6, stroke=0, fill=1)
    pdf_canvas.setFillColor(colors.white)
    pdf_canvas.setFont("Helvetica-Bold", 9)
    pdf_canvas.drawCentredString(MARGIN + badge_width / 2, y + 2, status_label)
    y -= 40

    pdf_canvas.setFillColor(ACCENT)
    pdf_canvas.roundRect(MARGIN, y - 70, content_width, 70, 10, stroke=0, fill=1)
    pdf_canvas.setFillColor(colors.HexColor("#1d4ed8"))
    pdf_canvas.setFont("Helvetica-Bold", 12)
    pdf_canvas.drawString(MARGIN + 16, y - 20, "Valor recebido")
    pdf_canvas.setFillColor(DARK)
    pdf_canvas.setFont("Helvetica-Bold", 22)
    pdf_canvas.drawString(MARGIN + 16, y - 46, amount_text)
    pdf_canvas.setFillColor(MUTED)
    pdf_canvas.setFont("Helvetica", 10)
    pdf_canvas.drawString(MARGIN + 16, y - 62, f"Emitido em {issued_on}")
    y -= 95

    if notes:
        pdf_canvas.setFillColor(DARK)
        pdf_canvas.setFont("Helvetica-Bold", 11)
        pdf_canvas.drawString(MARGIN, y, "Observações")
        pdf_canvas.setFont("Helvetica", 10)
        for chunk in wrap(notes, MAX_CHARS_PER_LINE)[:4]:
            y -= 14
            pdf_canvas.drawString(MARGIN, y, chunk)

    _draw_footer(pdf_canvas, footer)
    return _finish(buffer, pdf_canvas)
