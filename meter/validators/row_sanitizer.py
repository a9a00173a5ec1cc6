"""
meter/validators/row_sanitizer.py

Row classification and cleaning ahead of aggregation.

Checks run per row in this order, and a row dropped by an earlier check
is not looked at by later ones:

1. completely empty  -> dropped silently
2. incomplete        -> dropped silently
3. non-program site visit -> dropped and reported in a warning

Other non-program rows survive and are aggregated under their own
program type. Advisories (lecture/workshop/media sanity checks) are
informational only and never remove a row.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Callable

from meter.config import MeterSettings, get_meter_settings
from meter.domain.activity import FilteringWarnings, NumberedRow, Row, RowField

logger = logging.getLogger(__name__)

HEADER_ROW_OFFSET = 2

_LECTURE_ACTION = "wykład"
_WORKSHOP_ACTION = "warsztaty"
_MEDIA_ACTION_PREFIX = "publikacja media"
_LECTURE_MIN_PEOPLE = 50
_WORKSHOP_MAX_PEOPLE = 10


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _loose_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().replace(",", "."))
        except ValueError:
            return 0.0
    return 0.0


def format_row_preview(row_numbers: Sequence[int], limit: int) -> str:
    """
    Render ``2, 5, 9`` or ``2, 5, 9, … and 4 more`` for long lists.
    """

    shown = ", ".join(str(number) for number in row_numbers[:limit])
    hidden = len(row_numbers) - limit
    if hidden > 0:
        shown += f", … and {hidden} more"
    return shown


def is_completely_empty_row(row: Row) -> bool:
    """
    Return True when every value is missing, blank, or zero.
    """

    return all(_text(value) in {"", "0"} for value in row.values())


def is_incomplete_row(row: Row) -> bool:
    """
    Return True when any required field is missing.

    Text fields must be non-blank; the two count fields only need to be present.
    """

    for column in (RowField.PROGRAM_TYPE, RowField.PROGRAM_NAME, RowField.ACTION, RowField.DATE):
        if _text(row.get(column)) == "":
            return True
    return row.get(RowField.PEOPLE_COUNT) is None or row.get(RowField.ACTION_COUNT) is None


def is_non_program(row: Row, *, keyword: str = "nieprogramowe") -> bool:
    return keyword in _text(row.get(RowField.PROGRAM_TYPE)).lower()


def is_non_program_site_visit(
    row: Row,
    *,
    non_program_keyword: str = "nieprogramowe",
    site_visit_keyword: str = "wizytacja",
) -> bool:
    """
    Return True for non-program rows whose action is a site visit.

    This is the single exclusion predicate shared by the aggregator and
    the indicator regrouper.
    """

    if not is_non_program(row, keyword=non_program_keyword):
        return False
    return _text(row.get(RowField.ACTION)).lower() == site_visit_keyword


def is_lecture_below_minimum(row: Row) -> bool:
    people = _loose_number(row.get(RowField.PEOPLE_COUNT))
    action = _text(row.get(RowField.ACTION)).lower()
    return action == _LECTURE_ACTION and 0 < people < _LECTURE_MIN_PEOPLE


def is_workshop_above_maximum(row: Row) -> bool:
    people = _loose_number(row.get(RowField.PEOPLE_COUNT))
    action = _text(row.get(RowField.ACTION)).lower()
    return action == _WORKSHOP_ACTION and people > _WORKSHOP_MAX_PEOPLE


def is_media_publication_with_people(row: Row) -> bool:
    people = _loose_number(row.get(RowField.PEOPLE_COUNT))
    action = _text(row.get(RowField.ACTION)).lower()
    return action.startswith(_MEDIA_ACTION_PREFIX) and people != 0


_ADVISORY_CHECKS: tuple[tuple[Callable[[Row], bool], str], ...] = (
    (
        is_lecture_below_minimum,
        "Found {n} lecture(s) with fewer than 50 participants in row(s) {rows} — included in totals.",
    ),
    (
        is_workshop_above_maximum,
        "Found {n} workshop(s) with more than 10 participants in row(s) {rows} — included in totals.",
    ),
    (
        is_media_publication_with_people,
        "Found {n} media publication(s) with a non-zero participant count in row(s) {rows} — included in totals.",
    ),
)


class RowSanitizer:
    """
    Cleans raw spreadsheet rows and reports exclusions.
    """

    def __init__(self, settings: MeterSettings | None = None) -> None:
        self._settings = settings or get_meter_settings()

    def is_completely_empty_row(self, row: Row) -> bool:
        return is_completely_empty_row(row)

    def is_incomplete_row(self, row: Row) -> bool:
        return is_incomplete_row(row)

    def is_non_program(self, row: Row) -> bool:
        return is_non_program(row, keyword=self._settings.non_program_keyword)

    def is_non_program_site_visit(self, row: Row) -> bool:
        return is_non_program_site_visit(
            row,
            non_program_keyword=self._settings.non_program_keyword,
            site_visit_keyword=self._settings.site_visit_keyword,
        )

    def is_dropped_silently(self, row: Row) -> bool:
        return is_completely_empty_row(row) or is_incomplete_row(row)

    def partition(self, rows: Iterable[Row]) -> tuple[list[NumberedRow], list[int]]:
        """
        Split rows into survivors and warned exclusions.

        Returns the surviving rows paired with their spreadsheet row numbers,
        and the row numbers of excluded non-program site visits.
        """

        kept: list[NumberedRow] = []
        excluded: list[int] = []
        for index, row in enumerate(rows):
            row_number = index + HEADER_ROW_OFFSET
            if self.is_dropped_silently(row):
                continue
            if self.is_non_program_site_visit(row):
                excluded.append(row_number)
                continue
            kept.append(NumberedRow(row_number=row_number, row=row))
        return kept, excluded

    def filter(self, rows: Iterable[Row]) -> list[Row]:
        """
        Return the rows that survive every check, in input order.
        """

        kept, _ = self.partition(rows)
        return [item.row for item in kept]

    def warnings(self, rows: Iterable[Row]) -> FilteringWarnings:
        """
        Return the warned exclusions for ``rows``.
        """

        _, excluded = self.partition(rows)
        return self.build_warnings(excluded)

    def build_warnings(self, excluded: Sequence[int]) -> FilteringWarnings:
        if not excluded:
            return FilteringWarnings()
        message = (
            f"Found {len(excluded)} non-program visit(s) in row(s) "
            f"{format_row_preview(excluded, self._settings.warning_row_preview)} — not included in totals."
        )
        if self._settings.log_row_warnings:
            logger.warning("Excluded %d non-program site-visit row(s): %s", len(excluded), excluded)
        return FilteringWarnings(excluded_row_numbers=tuple(excluded), messages=(message,))

    def advisories(self, numbered_rows: Iterable[NumberedRow]) -> tuple[str, ...]:
        """
        Return informational notices for suspicious but valid rows.
        """

        items = list(numbered_rows)
        messages: list[str] = []
        for check, template in _ADVISORY_CHECKS:
            flagged = [item.row_number for item in items if check(item.row)]
            if flagged:
                messages.append(
                    template.format(
                        n=len(flagged),
                        rows=format_row_preview(flagged, self._settings.warning_row_preview),
                    )
                )
        return tuple(messages)
