"""
meter/services/task_listing.py

Month-filtered activity listing used to prefill task forms.

Rows are selected by their date in any accepted format and the date is
normalised to ISO plus a ``DD.MM.YYYY`` display form. A row whose date
cannot be read is treated as dated today, both for month selection and
for the prefilled date.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import date

from meter.dates import format_date_display, parse_date, parse_date_to_iso
from meter.domain.activity import NumberedRow, Row, RowField, TaskEntry
from meter.validators.row_sanitizer import RowSanitizer
from meter.validators.row_validator import coerce_count


def filter_rows_by_months(
    rows: Sequence[Row],
    months: Collection[int],
    *,
    today: date | None = None,
    sanitizer: RowSanitizer | None = None,
) -> list[NumberedRow]:
    """
    Return sanitised rows whose month is selected; nothing when none is.
    """

    if not months:
        return []
    sanitizer = sanitizer or RowSanitizer()
    kept, _ = sanitizer.partition(rows)
    selected: list[NumberedRow] = []
    fallback = today or date.today()
    for item in kept:
        parsed = parse_date(item.row.get(RowField.DATE)) or fallback
        if parsed.month in months:
            selected.append(item)
    return selected


def list_tasks(
    rows: Sequence[Row],
    months: Collection[int],
    *,
    today: date | None = None,
    sanitizer: RowSanitizer | None = None,
) -> list[TaskEntry]:
    entries: list[TaskEntry] = []
    for item in filter_rows_by_months(rows, months, today=today, sanitizer=sanitizer):
        row = item.row
        iso_date = parse_date_to_iso(row.get(RowField.DATE), today=today)
        entries.append(
            TaskEntry(
                row_number=item.row_number,
                program_type=str(row.get(RowField.PROGRAM_TYPE)).strip(),
                program_name=str(row.get(RowField.PROGRAM_NAME)).strip(),
                action=str(row.get(RowField.ACTION)).strip(),
                people=coerce_count(
                    row.get(RowField.PEOPLE_COUNT),
                    row_number=item.row_number,
                    column=RowField.PEOPLE_COUNT,
                ),
                action_number=coerce_count(
                    row.get(RowField.ACTION_COUNT),
                    row_number=item.row_number,
                    column=RowField.ACTION_COUNT,
                ),
                date=iso_date,
                display_date=format_date_display(iso_date),
            )
        )
    return entries
