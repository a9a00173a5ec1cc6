"""
meter/services/spreadsheet_reader.py

Decodes the first worksheet of an uploaded workbook into activity rows.

Row 1 holds the column names; every following non-blank row becomes a
mapping of header -> string-or-number. Empty cells are left out of the
mapping entirely.
"""

from __future__ import annotations

import io
import logging
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from meter.dates import excel_serial_to_iso, parse_date
from meter.domain.activity import Row, RowField
from meter.errors import FileCorruptedError
from meter.logging_utils import log_event

logger = logging.getLogger(__name__)


def normalize_cell(value: Any, *, header: str) -> Any:
    """
    Convert an openpyxl cell value into the row value shape.

    Dates become ISO strings, booleans ``"TRUE"``/``"FALSE"`` and unknown
    objects their text. In the date column, numeric serials and text in any
    accepted date format become ISO strings; unreadable text is kept as is.
    """

    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, (int, float)):
        if header == RowField.DATE:
            converted = excel_serial_to_iso(value)
            return converted if converted is not None else str(value)
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value
    if isinstance(value, str):
        if header == RowField.DATE:
            parsed = parse_date(value)
            return parsed.isoformat() if parsed is not None else value
        return value
    return str(value)


def _header_names(cells: tuple[Any, ...]) -> list[str | None]:
    names: list[str | None] = []
    seen: dict[str, int] = {}
    for cell in cells:
        if cell is None or str(cell).strip() == "":
            names.append(None)
            continue
        name = str(cell).strip()
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 0
        names.append(name)
    return names


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class SpreadsheetReader:
    """
    Reads activity rows from workbook bytes.
    """

    def decode(self, data: bytes) -> list[Row]:
        """
        Decode workbook bytes; raises FileCorruptedError on unreadable input.
        """

        try:
            workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
            raise FileCorruptedError(
                "The file is damaged or is not a readable workbook",
                details=str(exc),
                suggestion="Open the file in a spreadsheet editor and save it again as .xlsx.",
            ) from exc

        try:
            if not workbook.worksheets:
                raise FileCorruptedError(
                    "The workbook contains no worksheet",
                    suggestion="Make sure the activity table is on the first sheet.",
                )
            sheet = workbook.worksheets[0]
            rows_iter = sheet.iter_rows(values_only=True)
            header_cells = next(rows_iter, None)
            if header_cells is None:
                return []
            headers = _header_names(tuple(header_cells))

            rows: list[Row] = []
            for values in rows_iter:
                if all(_is_blank(value) for value in values):
                    continue
                row: dict[str, Any] = {}
                for header, value in zip(headers, values):
                    if header is None or value is None:
                        continue
                    row[header] = normalize_cell(value, header=header)
                rows.append(row)
        finally:
            workbook.close()

        log_event(
            logger,
            logging.INFO,
            "meter.decode.complete",
            sheet=sheet.title,
            headers=[header for header in headers if header],
            rows=len(rows),
        )
        return rows

    def read_path(self, path: str | Path) -> list[Row]:
        return self.decode(Path(path).read_bytes())


def decode(data: bytes) -> list[Row]:
    return SpreadsheetReader().decode(data)
