"""Serializers — turn a filtered table back into CSV or XLSX bytes."""

from __future__ import annotations

import io
import re
from collections.abc import Sequence
from typing import Any

from openpyxl import Workbook

from catalog_export.io import FileFormat
from catalog_export.models import Table

EXPORT_SHEET_NAME = "Export"

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"

_CSV_SPECIAL = (",", '"', "\n", "\r")
_SUFFIX_RE: dict[str, re.Pattern[str]] = {
    "xlsx": re.compile(r"\.xlsx$", re.IGNORECASE),
    "csv": re.compile(r"\.csv$", re.IGNORECASE),
}


# ── CSV ──────────────────────────────────────────────────────────


def _csv_field(value: Any) -> str:
    text = "" if value is None else str(value)
    if any(ch in text for ch in _CSV_SPECIAL):
        return '"' + text.replace('"', '""') + '"'
    return text


def row_to_csv(row: Sequence[Any]) -> str:
    return ",".join(_csv_field(value) for value in row)


def to_csv_bytes(table: Table) -> bytes:
    """Render *table* as UTF-8 CSV, one line per row, lines joined by ``\\n``."""
    return "\n".join(row_to_csv(row) for row in table).encode("utf-8")


# ── XLSX ─────────────────────────────────────────────────────────


def to_xlsx_bytes(table: Table) -> bytes:
    """Write *table* into a single-sheet workbook named ``Export``."""
    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = EXPORT_SHEET_NAME

    for r_idx, row in enumerate(table, 1):
        for c_idx, value in enumerate(row, 1):
            if value is None or value == "":
                continue
            cell = ws.cell(row=r_idx, column=c_idx, value=value)
            # Text that looks like a formula stays text.
            if isinstance(value, str) and cell.data_type == "f":
                cell.data_type = "s"

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def serialize(table: Table, fmt: FileFormat) -> bytes:
    if fmt == "xlsx":
        return to_xlsx_bytes(table)
    return to_csv_bytes(table)


# ── Naming ───────────────────────────────────────────────────────


def output_filename(filename: str, fmt: FileFormat) -> str:
    """Swap a trailing ``.xlsx``/``.csv`` for ``-export.xlsx``/``-export.csv``.

    The suffix match ignores case; a name without the suffix is returned as-is.
    """
    return _SUFFIX_RE[fmt].sub(f"-export.{fmt}", filename, count=1)


def media_type(filename: str) -> str:
    """MIME type a download of *filename* should be served with."""
    if filename.lower().endswith(".xlsx"):
        return XLSX_MEDIA_TYPE
    return CSV_MEDIA_TYPE
