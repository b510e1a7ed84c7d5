from __future__ import annotations

import io
import pathlib
import sys
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bookkeeping.config import Settings
from bookkeeping.database import Database
from bookkeeping.server import create_app


@pytest.fixture()
def database() -> Iterator[Database]:
    test_database = Database("sqlite://")
    test_database.create_all()
    yield test_database
    test_database.drop_all()
    test_database.dispose()


@pytest.fixture()
def db_session(database) -> Iterator[Session]:
    session = database.session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def client(database) -> Iterator[TestClient]:
    app = create_app(database=database, settings=Settings(database_url="sqlite://"))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_pdf() -> Callable[[list[str]], bytes]:
    def _make_pdf(lines: list[str]) -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer)
        text = pdf.beginText(40, 800)
        for line in lines:
            text.textLine(line)
        pdf.drawText(text)
        pdf.save()
        return buffer.getvalue()

    return _make_pdf


def _glyph_pdf(lines: list[str]) -> bytes:
    codes = {char: index for index, char in enumerate(sorted({c for line in lines for c in line}), start=1)}
    content = ["BT", "/F1 14 Tf", "72 720 Td"]
    for number, line in enumerate(lines):
        if number:
            content.append("0 -28 Td")
        content.append("<" + "".join(f"{codes[char]:02X}" for char in line) + "> Tj")
    content.append("ET")
    to_unicode = [
        "/CIDInit /ProcSet findresource begin",
        "12 dict begin",
        "begincmap",
        "/CIDSystemInfo << /Registry (Adobe) /Ordering (UCS) /Supplement 0 >> def",
        "/CMapName /Adobe-Identity-UCS def",
        "/CMapType 2 def",
        "1 begincodespacerange",
        "<00> <FF>",
        "endcodespacerange",
        f"{len(codes)} beginbfchar",
        *(f"<{code:02X}> <{ord(char):04X}>" for char, code in codes.items()),
        "endbfchar",
        "endcmap",
        "CMapName currentdict /CMap defineresource pop",
        "end",
        "end",
    ]

    def stream(lines_: list[str]) -> bytes:
        data = "\n".join(lines_).encode("ascii")
        return b"<< /Length %d >>\nstream\n" % len(data) + data + b"\nendstream"

    widths = b" ".join([b"600"] * 256)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /GlyphMapped /FirstChar 0 /LastChar 255 "
        b"/Widths [" + widths + b"] /FontDescriptor 6 0 R /ToUnicode 7 0 R >>",
        stream(content),
        b"<< /Type /FontDescriptor /FontName /GlyphMapped /Flags 32 /FontBBox [0 -200 1000 800] "
        b"/ItalicAngle 0 /Ascent 800 /Descent -200 /CapHeight 700 /StemV 80 >>",
        stream(to_unicode),
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


@pytest.fixture()
def make_glyph_pdf() -> Callable[[list[str]], bytes]:
    """PDF that draws each line's characters left to right exactly as given.

    No font program is embedded; a ToUnicode map names every glyph's
    character, which is enough for text extraction of any script.
    """
    return _glyph_pdf
