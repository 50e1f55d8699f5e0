"""Error kinds raised inside the engine and turned into failed results by ``create_export``."""

from __future__ import annotations


class ExportError(ValueError):
    """Base class for every expected export failure."""

    default_message = "Export failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NoFileProvided(ExportError):
    default_message = "No file provided"


class InvalidFileFormat(ExportError):
    default_message = "Invalid file format"


class UnsupportedFormat(ExportError):
    default_message = "Unsupported file format"


class NoDataToExport(ExportError):
    default_message = "No data to export"


class FileReadError(ExportError):
    """The payload could not be read or decoded as the detected format."""

    default_message = "Could not read file"

    def __init__(self, detail: str | None = None) -> None:
        message = f"{self.default_message}: {detail}" if detail else None
        super().__init__(message)
