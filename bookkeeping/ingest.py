"""Turn an uploaded PDF into a new income record.

The text heuristics live in :func:`parse_income_text` and do not touch the
database, so they can be exercised on plain strings. :func:`ingest_income`
wires extraction, parsing, the client lookup and the insert together.
"""
from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from typing import Final, List, Optional

import pdfplumber
from bidi import get_display
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .logging import setup_logger

logger = setup_logger(__name__)

AMOUNT_LABEL: Final[str] = "סכום:"
COUNTERPARTY_LABEL: Final[str] = "לקוח:"
TOTAL_MARKER: Final[str] = 'סה"כ'
SUCCESS_MESSAGE: Final[str] = "הקובץ נקלט והנתונים נשמרו"

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class ClientLookupError(LookupError):
    """Raised when the name extracted from a document matches no client."""


@dataclass(frozen=True)
class ParsedIncome:
    amount: float
    counterparty: str
    totals: List[str] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)


def extract_pdf_text(payload: bytes) -> str:
    """Plain text of every page, in document order.

    pdfplumber yields each line in on-page (left to right) order, so Hebrew
    runs come out reversed; every line is passed through the bidi algorithm
    to restore reading order.
    """
    with pdfplumber.open(io.BytesIO(payload)) as pdf:
        text = "\n".join(page.extract_text() or "" for page in pdf.pages)
    return "\n".join(get_display(line) for line in text.splitlines())


def split_lines(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_amount(raw: str) -> float:
    """Leading numeric prefix of ``raw`` as a float, ``0.0`` when there is none."""
    match = _LEADING_NUMBER.match(raw.strip())
    if match is None:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def parse_income_text(text: str) -> ParsedIncome:
    """Pull the amount, counterparty name and total lines out of extracted text.

    Every line is scanned and the last labelled line wins for both the amount
    and the counterparty.
    """
    lines = split_lines(text)
    amount = 0.0
    counterparty = ""
    for line in lines:
        if line.startswith(AMOUNT_LABEL):
            amount = parse_amount(line[len(AMOUNT_LABEL):])
        if line.startswith(COUNTERPARTY_LABEL):
            counterparty = line[len(COUNTERPARTY_LABEL):].strip()
    totals = [line for line in lines if TOTAL_MARKER in line]
    return ParsedIncome(amount=amount, counterparty=counterparty, totals=totals, lines=lines)


def resolve_client(session: Session, name: str) -> models.Client:
    client = crud.clients.find_one(session, name=name) if name else None
    if client is None:
        raise ClientLookupError("Client not found in database")
    return client


def ingest_income(
    session: Session,
    payload: bytes,
    *,
    vat: Optional[str],
    payment_method: Optional[str],
    receipt_number: Optional[str],
) -> schemas.UploadRead:
    """Create an income from an uploaded document and the accompanying form fields.

    Raises:
        ClientLookupError: the extracted client name matches no stored client.
        pydantic.ValidationError: the form fields do not form a valid income.
        crud.EntityConflictError: the receipt number is already taken.
    """
    text = extract_pdf_text(payload)
    parsed = parse_income_text(text)
    logger.info(
        "Parsed upload: %d lines, amount=%s, client=%r",
        len(parsed.lines),
        parsed.amount,
        parsed.counterparty,
    )
    client = resolve_client(session, parsed.counterparty)

    income_in = schemas.IncomeCreate(
        amount=parsed.amount,
        client=client.id,
        date=models.utcnow(),
        vat=vat,
        payment_method=payment_method,
        receipt_number=receipt_number,
    )
    income = crud.incomes.create(session, income_in)
    return schemas.UploadRead(
        message=SUCCESS_MESSAGE,
        totals=parsed.totals,
        all_text=text,
        income=schemas.IncomeRead.model_validate(income),
    )


__all__ = [
    "AMOUNT_LABEL",
    "COUNTERPARTY_LABEL",
    "TOTAL_MARKER",
    "ClientLookupError",
    "ParsedIncome",
    "extract_pdf_text",
    "ingest_income",
    "parse_amount",
    "parse_income_text",
    "resolve_client",
    "split_lines",
]
