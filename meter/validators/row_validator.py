"""
meter/validators/row_validator.py

Strict whole-file validation and count parsing.

The sanitizer decides which rows take part in aggregation; this module
checks that the surviving rows carry usable values and reports the first
offending cell.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from meter.dates import parse_date
from meter.domain.activity import REQUIRED_COLUMNS, NumberedRow, Row, RowField, ValidationOutcome
from meter.errors import ErrorCode, SheetValidationError
from meter.validators.row_sanitizer import HEADER_ROW_OFFSET, RowSanitizer

_TEXT_COLUMNS: tuple[str, ...] = (RowField.PROGRAM_TYPE, RowField.PROGRAM_NAME, RowField.ACTION)
_COUNT_COLUMNS: tuple[str, ...] = (RowField.PEOPLE_COUNT, RowField.ACTION_COUNT)


def coerce_count(value: Any, *, row_number: int | None = None, column: str | None = None) -> int:
    """
    Parse a participant/action count into a non-negative integer.

    Numeric strings are accepted (decimal comma included); integral floats
    are narrowed to int.
    """

    number: float
    if isinstance(value, bool) or value is None:
        number = math.nan
    elif isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            number = math.nan
    else:
        number = math.nan

    if math.isnan(number) or math.isinf(number):
        raise SheetValidationError(
            f"{column or 'Count'} must be a number",
            row_number=row_number,
            column=column,
            value=value,
            suggestion="Enter a whole number greater than or equal to 0.",
        )
    if number < 0:
        raise SheetValidationError(
            f"{column or 'Count'} must be greater than or equal to 0",
            row_number=row_number,
            column=column,
            value=value,
        )
    if not number.is_integer():
        raise SheetValidationError(
            f"{column or 'Count'} must be a whole number",
            row_number=row_number,
            column=column,
            value=value,
        )
    return int(number)


def validate_row(item: NumberedRow) -> None:
    """
    Raise SheetValidationError for the first invalid cell of ``item``.
    """

    row = item.row
    for column in _TEXT_COLUMNS:
        value = row.get(column)
        if not isinstance(value, str) or not value.strip():
            raise SheetValidationError(
                f"{column} is required",
                row_number=item.row_number,
                column=column,
                value=value,
            )
    for column in _COUNT_COLUMNS:
        coerce_count(row.get(column), row_number=item.row_number, column=column)
    date_value = row.get(RowField.DATE)
    if parse_date(date_value) is None:
        raise SheetValidationError(
            "Invalid date format",
            row_number=item.row_number,
            column=RowField.DATE,
            value=date_value,
            suggestion="Use YYYY-MM-DD or DD.MM.YYYY.",
        )


def _present_columns(rows: Sequence[Row]) -> list[str]:
    columns: dict[str, None] = {}
    for row in rows:
        for column in row.keys():
            columns.setdefault(column, None)
    return list(columns)


def check_rows(rows: Sequence[Row], *, sanitizer: RowSanitizer | None = None) -> None:
    """
    Raise SheetValidationError for the first problem found in a decoded sheet.

    Row numbers in errors refer to the spreadsheet (header is row 1).
    """

    if not rows:
        raise SheetValidationError(
            "The file contains no data",
            code=ErrorCode.NO_DATA,
            suggestion="Make sure the first worksheet holds the activity table.",
        )

    present = _present_columns(rows)
    missing = [column for column in REQUIRED_COLUMNS if column not in present]
    if missing:
        raise SheetValidationError(
            "Missing required columns",
            code=ErrorCode.MISSING_COLUMNS,
            details=f"Missing: {', '.join(missing)}. Available: {', '.join(present)}",
            suggestion="Check the header row of the first worksheet.",
        )

    sanitizer = sanitizer or RowSanitizer()
    survivors = [
        NumberedRow(row_number=index + HEADER_ROW_OFFSET, row=row)
        for index, row in enumerate(rows)
        if not sanitizer.is_dropped_silently(row)
    ]
    if not survivors:
        raise SheetValidationError(
            "The file contains only headers or empty rows",
            code=ErrorCode.ONLY_HEADERS,
            suggestion="Fill in at least one complete activity row.",
        )

    for item in survivors:
        validate_row(item)


def validate_rows(rows: Sequence[Row], *, sanitizer: RowSanitizer | None = None) -> ValidationOutcome:
    """
    Non-raising form of ``check_rows``.
    """

    try:
        check_rows(rows, sanitizer=sanitizer)
    except SheetValidationError as exc:
        return ValidationOutcome(is_valid=False, error=str(exc), detail=exc.to_dict())
    return ValidationOutcome(is_valid=True)
