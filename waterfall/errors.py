"""Exceptions raised while ingesting uploaded flow files."""

from __future__ import annotations

REQUIRED_COLUMNS_TEXT = "Utility, Source, Target, Value"


class IngestError(ValueError):
    """Base class for upload failures.

    ``message`` is the text shown to the user; every failure is terminal
    for the current upload attempt.
    """

    default_message = "Unable to read the uploaded file."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnsupportedFileType(IngestError):
    default_message = "Please upload a CSV or Excel file."


class EmptySource(IngestError):
    default_message = "File appears to be empty."


class MissingColumns(IngestError):
    default_message = f"CSV must contain columns: {REQUIRED_COLUMNS_TEXT}"


class NoValidRows(IngestError):
    default_message = "No valid data found in file."


class LibraryUnavailable(IngestError):
    default_message = "Excel parsing library not loaded. Please try again."


class ParseFailure(IngestError):
    """Wraps an unexpected exception raised while parsing."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ParseFailure":
        return cls(f"Error parsing file: {exc}")
