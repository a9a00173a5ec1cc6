"""
meter/dates.py

Date helpers shared by decoding, aggregation and the task listing.

Two fallback policies live here and are intentionally different:

- ``month_of`` (aggregation path) returns 0 for anything it cannot read,
  so the row lands in no monthly bucket.
- ``parse_date_to_iso`` (form-prefill path) falls back to today's date.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from openpyxl.utils.datetime import from_excel

_ISO_PREFIX = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})")

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%d %H:%M:%S",
    "%d.%m.%Y",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%Y/%m/%d",
    "%d.%m.%y",
    "%d-%m-%y",
    "%d/%m/%y",
)

MONTH_NAMES: tuple[str, ...] = (
    "Styczeń",
    "Luty",
    "Marzec",
    "Kwiecień",
    "Maj",
    "Czerwiec",
    "Lipiec",
    "Sierpień",
    "Wrzesień",
    "Październik",
    "Listopad",
    "Grudzień",
)


def month_name(month: int) -> str:
    """
    Return the report label for a 1-12 month number.
    """

    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return ""


def excel_serial_to_date(serial: float) -> date | None:
    """
    Convert a spreadsheet date serial (1900 date system) to a date.

    Serials below 1 carry only a time of day and are rejected.
    """

    if isinstance(serial, bool):
        return None
    try:
        numeric = float(serial)
    except (TypeError, ValueError):
        return None
    if numeric < 1:
        return None
    try:
        converted = from_excel(numeric)
    except (OverflowError, ValueError):
        return None
    if isinstance(converted, datetime):
        return converted.date()
    return None


def excel_serial_to_iso(serial: float) -> str | None:
    converted = excel_serial_to_date(serial)
    return converted.isoformat() if converted else None


def month_of(value: Any) -> int:
    """
    Return the calendar month (1-12) of a row date, or 0 when unreadable.

    Accepts text in any of ``DATE_FORMATS`` (an ISO date followed by other
    text still counts), date/datetime objects and numeric spreadsheet serials.
    """

    if isinstance(value, datetime):
        return value.month
    if isinstance(value, date):
        return value.month
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        converted = excel_serial_to_date(value)
        return converted.month if converted else 0
    if not isinstance(value, str):
        return 0

    match = _ISO_PREFIX.match(value)
    if match is not None:
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day).month
        except ValueError:
            return 0
    parsed = parse_date(value)
    return parsed.month if parsed is not None else 0


def parse_date(value: Any) -> date | None:
    """
    Parse a cell value using every accepted date format; None when unreadable.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return excel_serial_to_date(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def parse_date_to_iso(value: Any, *, today: date | None = None) -> str:
    """
    Normalise a cell value to ``YYYY-MM-DD``, falling back to today.
    """

    parsed = parse_date(value)
    if parsed is None:
        parsed = today or date.today()
    return parsed.isoformat()


def format_date_display(iso_date: str) -> str:
    """
    Render ``YYYY-MM-DD`` as ``DD.MM.YYYY`` for forms.
    """

    try:
        return datetime.strptime(iso_date, "%Y-%m-%d").strftime("%d.%m.%Y")
    except (TypeError, ValueError):
        return "Invalid date"
