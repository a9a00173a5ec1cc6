"""
meter/errors.py

Error taxonomy for file intake, validation and aggregation.

Every error carries enough structure for a caller to point at the exact
spreadsheet cell: the row number as seen in the spreadsheet (header row is
row 1), the column header and the offending value.
"""

from __future__ import annotations

from typing import Any


class ErrorCode:
    INVALID_FILE_TYPE = "invalid_file_type"
    FILE_TOO_LARGE = "file_too_large"
    FILE_CORRUPTED = "file_corrupted"
    NO_DATA = "no_data"
    ONLY_HEADERS = "only_headers"
    MISSING_COLUMNS = "missing_columns"
    INVALID_VALUE = "invalid_value"
    NO_MONTHS_SELECTED = "no_months_selected"
    PROCESSING_FAILED = "processing_failed"


class MeterError(Exception):
    """
    Base class for all meter errors with structured details.
    """

    default_code = ErrorCode.PROCESSING_FAILED

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: str | None = None,
        suggestion: str | None = None,
        row_number: int | None = None,
        column: str | None = None,
        value: Any = None,
    ) -> None:
        self.code = code or self.default_code
        self.message = message
        self.details = details
        self.suggestion = suggestion
        self.row_number = row_number
        self.column = column
        self.value = value
        super().__init__(self._render())

    def _render(self) -> str:
        text = self.message
        if self.row_number is not None:
            text += f" (row {self.row_number})"
        if self.column:
            text += f' - column "{self.column}"'
        if self.value is not None and self.value != "":
            text += f' (value: "{self.value}")'
        if self.details:
            text += f". {self.details}"
        if self.suggestion:
            text += f". Hint: {self.suggestion}"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
            "row_number": self.row_number,
            "column": self.column,
            "value": None if self.value is None else str(self.value),
        }


class FileTypeError(MeterError, ValueError):
    """
    Raised when an upload does not carry a spreadsheet extension.
    """

    default_code = ErrorCode.INVALID_FILE_TYPE


class FileSizeError(MeterError, ValueError):
    """
    Raised when an upload exceeds the configured size limit.
    """

    default_code = ErrorCode.FILE_TOO_LARGE


class FileCorruptedError(MeterError):
    """
    Raised when a workbook cannot be opened or holds no worksheet.
    """

    default_code = ErrorCode.FILE_CORRUPTED


class SheetValidationError(MeterError, ValueError):
    """
    Raised when sheet rows fail required-field, type or range checks.
    """

    default_code = ErrorCode.INVALID_VALUE


class NoMonthSelectedError(MeterError, ValueError):
    """
    Raised when aggregation is requested without any selected month.
    """

    default_code = ErrorCode.NO_MONTHS_SELECTED

    def __init__(self) -> None:
        super().__init__(
            "Select at least one month",
            suggestion="Choose one or more months between 1 and 12 before aggregating.",
        )


class ProcessingError(MeterError, RuntimeError):
    """
    Raised for unexpected failures while aggregating rows.
    """

    default_code = ErrorCode.PROCESSING_FAILED
