"""Top-level orchestration: payload + filename in, :class:`ExportResult` out."""

from __future__ import annotations

import logging
from collections.abc import Callable

from catalog_export.errors import ExportError, NoDataToExport, NoFileProvided, UnsupportedFormat
from catalog_export.io import FileFormat, as_file_source, detect_format, read_source, read_table
from catalog_export.models import ExportResult, Table
from catalog_export.pipeline import transform_rows
from catalog_export.writer import output_filename, serialize

logger = logging.getLogger(__name__)


def _build_result(rows: Table, fmt: FileFormat, filename: str) -> ExportResult:
    transformed = transform_rows(rows)
    if len(transformed) < 2:
        raise NoDataToExport()

    out_name = output_filename(filename, fmt)
    buffer = serialize(transformed, fmt)
    logger.info("Generated %s export: %s", fmt.upper(), out_name)
    return ExportResult.ok(out_name, buffer, transformed)


def _run_export(file: object, filename: str) -> ExportResult:
    # Empty bytes are a file with no rows, not a missing file.
    if file is None or (isinstance(file, str) and not file):
        raise NoFileProvided()

    fmt = detect_format(filename or "")
    if fmt is None:
        raise UnsupportedFormat()

    data = read_source(as_file_source(file))
    return _build_result(read_table(data, fmt), fmt, filename)


def _guarded(filename: str, action: Callable[[], ExportResult]) -> ExportResult:
    try:
        return action()
    except ExportError as exc:
        logger.info("Export of %r failed: %s", filename, exc)
        return ExportResult.fail(str(exc))
    except Exception as exc:
        logger.exception("Unexpected error while exporting %r", filename)
        return ExportResult.fail(f"Unexpected internal error: {exc}")


def create_export(file: object, filename: str) -> ExportResult:
    """Clean one product export and return the tagged result.

    *file* may be raw bytes, a filesystem path, or an object (or mapping)
    holding a ``buffer``. Never raises: every failure comes back as
    ``ExportResult(success=False, error=...)``.
    """
    return _guarded(filename, lambda: _run_export(file, filename))


def export_table(rows: Table, fmt: FileFormat, filename: str) -> ExportResult:
    """Like :func:`create_export`, for a table the caller already parsed."""
    return _guarded(filename, lambda: _build_result(rows, fmt, filename))
