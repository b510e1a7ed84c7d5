"""PDF rendering of stored receipts."""
from __future__ import annotations

import io
from datetime import datetime
from typing import Any

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

MARGIN_X = 50
TOP_MARGIN = 60
BOTTOM_MARGIN = 60
BODY_FONT = "Helvetica"
BODY_SIZE = 14
LINE_HEIGHT = 20


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d") if value.time() == datetime.min.time() else value.isoformat(sep=" ")
    return "" if value is None else str(value)


def _format_amount(value: Any) -> str:
    if value is None:
        return ""
    try:
        return f"{float(value):,.2f}"
    except (TypeError, ValueError):
        return str(value)


def receipt_filename(receipt_id: str) -> str:
    return f"receipt_{receipt_id}.pdf"


def render_receipt_pdf(receipt: Any) -> bytes:
    """Render ``receipt`` as a PDF: centred title, then number, date, amount and client.

    Missing optional fields are skipped; long descriptions wrap and continue on
    a new page when the current one is full.
    """

    buffer = io.BytesIO()
    page_width, page_height = A4
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Receipt {receipt.id}")
    y = page_height - TOP_MARGIN

    pdf.setFont("Helvetica-Bold", 20)
    pdf.drawCentredString(page_width / 2, y, "Receipt")
    y -= LINE_HEIGHT * 2

    def write_line(text: str) -> None:
        nonlocal y
        if y < BOTTOM_MARGIN:
            pdf.showPage()
            pdf.setFont(BODY_FONT, BODY_SIZE)
            y = page_height - TOP_MARGIN
        pdf.drawString(MARGIN_X, y, text)
        y -= LINE_HEIGHT

    pdf.setFont(BODY_FONT, BODY_SIZE)
    write_line(f"Receipt number: {receipt.id}")
    write_line(f"Date: {_format_date(getattr(receipt, 'date', None))}")
    write_line(f"Amount: {_format_amount(getattr(receipt, 'amount', None))}")
    write_line(f"Client: {getattr(receipt, 'client_name', None) or ''}")

    description = getattr(receipt, "description", None)
    if description:
        y -= LINE_HEIGHT / 2
        write_line("Description:")
        width = page_width - 2 * MARGIN_X
        for paragraph in str(description).splitlines():
            for chunk in simpleSplit(paragraph, BODY_FONT, BODY_SIZE, width) or [""]:
                write_line(chunk)

    pdf.save()
    return buffer.getvalue()
