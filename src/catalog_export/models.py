"""Data models shared by the engine and the CLI."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Integral
from pathlib import Path
from typing import Any, Union

Cell = Union[str, int, float, bool]
Row = list[Cell]
Table = list[Row]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── File sources ─────────────────────────────────────────────────


@dataclass(frozen=True)
class BytesSource:
    """Raw payload handed over in memory."""

    data: bytes


@dataclass(frozen=True)
class PathSource:
    """Payload that still has to be read from disk."""

    path: Path


@dataclass(frozen=True)
class BufferSource:
    """Payload taken from an upload object's ``buffer``."""

    buffer: bytes


FileSource = Union[BytesSource, PathSource, BufferSource]


# ── Column plan ──────────────────────────────────────────────────


@dataclass
class ColumnPlan:
    """Which header columns are pruned and where the SKU column ends up."""

    removed: list[tuple[int, str]] = field(default_factory=list)
    kept_headers: list[str] = field(default_factory=list)
    sku_index: int = -1

    @property
    def has_sku_column(self) -> bool:
        return self.sku_index >= 0

    def removed_headers(self) -> list[str]:
        return [header for _index, header in self.removed]


# ── Export result ────────────────────────────────────────────────


@dataclass
class ExportResult:
    """Outcome of one ``create_export`` call.

    Contract invariant: a successful result carries ``filename``, ``buffer``,
    ``row_count`` and ``data`` and no ``error``; a failed result carries only
    ``error``.
    """

    success: bool
    filename: str | None = None
    buffer: bytes | None = None
    row_count: int | None = None
    data: list[list[Any]] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.success:
            if self.error is not None:
                raise ValueError("a successful result cannot carry an error")
            if self.filename is None or self.buffer is None or self.data is None:
                raise ValueError("a successful result needs filename, buffer and data")
            self.row_count = _to_non_negative_int(self.row_count, "row_count")
        else:
            if not self.error:
                raise ValueError("a failed result needs an error message")
            if self.buffer is not None or self.data is not None:
                raise ValueError("a failed result cannot carry output")

    @classmethod
    def ok(cls, filename: str, buffer: bytes, data: list[list[Any]]) -> ExportResult:
        """Build a success result; ``row_count`` excludes the header row."""
        return cls(
            success=True,
            filename=filename,
            buffer=buffer,
            row_count=max(len(data) - 1, 0),
            data=data,
        )

    @classmethod
    def fail(cls, error: str) -> ExportResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "filename": self.filename,
            "row_count": self.row_count,
            "size_bytes": len(self.buffer or b""),
        }


# ── Manifest ─────────────────────────────────────────────────────


@dataclass
class ExportManifest:
    """Audit-trail manifest for a single CLI export run."""

    tool: str = "catalog-export"
    version: str = ""
    input_path: str = ""
    output_path: str = ""
    output_filename: str = ""
    media_type: str = ""
    created_at_utc: str = ""
    rows_in: int = 0
    row_count: int = 0
    removed_columns: list[str] = field(default_factory=list)
    sha256: str = ""
    status: str = "success"
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.row_count = _to_non_negative_int(self.row_count, "row_count")
        self.removed_columns = _to_string_list(self.removed_columns, "removed_columns")
        if self.status not in {"success", "failed"}:
            raise ValueError(f"status must be 'success' or 'failed', got {self.status!r}")
        if self.row_count > self.rows_in:
            raise ValueError("row_count must be <= rows_in")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "input_path": self.input_path,
            "output_path": self.output_path,
            "output_filename": self.output_filename,
            "media_type": self.media_type,
            "created_at_utc": self.created_at_utc,
            "rows_in": self.rows_in,
            "row_count": self.row_count,
            "removed_columns": list(self.removed_columns),
            "sha256": self.sha256,
            "status": self.status,
            "error_message": self.error_message,
        }
