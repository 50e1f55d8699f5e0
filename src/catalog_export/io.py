"""I/O helpers — detect formats, normalize payloads, parse CSV/XLSX, write artifacts."""

from __future__ import annotations

import io
import json
import logging
import math
import os
from collections.abc import Mapping
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Callable, Literal, cast
from zipfile import BadZipFile

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from catalog_export.errors import FileReadError, InvalidFileFormat
from catalog_export.models import (
    BufferSource,
    BytesSource,
    Cell,
    FileSource,
    PathSource,
    Row,
    Table,
)

logger = logging.getLogger(__name__)

FileFormat = Literal["xlsx", "csv"]

# ── Format detection ─────────────────────────────────────────────


def detect_format(filename: str) -> FileFormat | None:
    """Return ``"xlsx"`` or ``"csv"`` from the filename suffix, or None if unsupported."""
    lowered = filename.lower()
    if lowered.endswith(".xlsx"):
        return "xlsx"
    if lowered.endswith(".csv"):
        return "csv"
    return None


# ── Input normalization ──────────────────────────────────────────

_BYTES_LIKE = (bytes, bytearray, memoryview)


def as_file_source(value: object) -> FileSource:
    """Turn a caller-supplied payload into a :data:`FileSource`.

    Accepts raw bytes, a filesystem path (``str`` or ``os.PathLike``), an
    object exposing a bytes-like ``buffer`` attribute, or a mapping with a
    ``"buffer"`` key.

    Raises
    ------
    InvalidFileFormat
        If *value* is none of the above.
    """
    if isinstance(value, (BytesSource, PathSource, BufferSource)):
        return value
    if isinstance(value, _BYTES_LIKE):
        return BytesSource(bytes(value))
    if isinstance(value, (str, os.PathLike)):
        return PathSource(Path(value))

    if isinstance(value, Mapping):
        buffer = value.get("buffer")
    else:
        buffer = getattr(value, "buffer", None)
    if isinstance(buffer, _BYTES_LIKE):
        return BufferSource(bytes(buffer))

    raise InvalidFileFormat()


def read_source(source: FileSource) -> bytes:
    """Return the raw bytes behind *source*."""
    if isinstance(source, BytesSource):
        return source.data
    if isinstance(source, BufferSource):
        return source.buffer
    try:
        return source.path.read_bytes()
    except OSError as exc:
        raise FileReadError(f"{source.path} ({exc.strerror or exc})") from exc


# ── CSV ──────────────────────────────────────────────────────────


def parse_csv(content: str) -> Table:
    """Split CSV *content* into rows of string fields.

    Quoted fields may contain commas, doubled quotes and line breaks.
    Records end at ``\\n``, ``\\r\\n`` or a bare ``\\r``. Blank lines never
    produce rows, and a final record without a trailing newline is kept.
    """
    rows: Table = []
    row: Row = []
    current: list[str] = []
    inside_quotes = False
    i = 0
    n = len(content)

    while i < n:
        char = content[i]
        if char == '"':
            if inside_quotes and i + 1 < n and content[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                inside_quotes = not inside_quotes
        elif char == "," and not inside_quotes:
            row.append("".join(current))
            current = []
        elif char in "\r\n" and not inside_quotes:
            if char == "\r" and i + 1 < n and content[i + 1] == "\n":
                i += 1
            if current or row:
                row.append("".join(current))
                rows.append(row)
                row = []
                current = []
        else:
            current.append(char)
        i += 1

    if current or row:
        row.append("".join(current))
        rows.append(row)

    return rows


def read_csv_rows(data: bytes) -> Table:
    """Decode *data* as UTF-8 (BOM tolerated, bad bytes replaced) and parse it."""
    return parse_csv(data.decode("utf-8-sig", errors="replace"))


# ── XLSX ─────────────────────────────────────────────────────────


def _coerce_cell(value: Any) -> Cell:
    if value is None:
        return ""
    if isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return "" if math.isnan(value) else value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    item = getattr(value, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, bool, int, float)):
            return _coerce_cell(converted)
    return str(value)


def _trim_row(values: tuple[Any, ...]) -> Row:
    row = [_coerce_cell(v) for v in values]
    while row and row[-1] == "":
        row.pop()
    return row


def read_xlsx_rows(data: bytes) -> Table:
    """Read the first worksheet of an XLSX payload as an array of rows.

    No header inference: row 0 is whatever the sheet's first row holds.
    Cells keep their primitive value; trailing empty cells are dropped.

    Raises
    ------
    FileReadError
        If *data* is not a readable workbook.
    """
    read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
    try:
        df = read_excel(
            io.BytesIO(data),
            sheet_name=0,
            header=None,
            engine="openpyxl",
            dtype=object,
            na_filter=False,
        )
    except (BadZipFile, InvalidFileException, KeyError, ValueError, OSError) as exc:
        raise FileReadError(f"not a readable XLSX workbook ({exc})") from exc

    return [_trim_row(values) for values in df.itertuples(index=False, name=None)]


def read_table(data: bytes, fmt: FileFormat) -> Table:
    """Parse *data* according to *fmt*."""
    if fmt == "xlsx":
        logger.info("Reading XLSX payload (%d bytes)", len(data))
        return read_xlsx_rows(data)
    logger.info("Reading CSV payload (%d bytes)", len(data))
    return read_csv_rows(data)


# ── Writing ──────────────────────────────────────────────────────


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"
    return write_bytes(path, payload.encode("utf-8"))


def write_bytes(path: Path, payload: bytes) -> Path:
    """Write *payload* to *path* through a temporary sibling file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(payload)
    tmp_path.replace(path)
    return path
