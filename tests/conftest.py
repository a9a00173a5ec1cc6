"""
tests/conftest.py

Shared row builders and in-memory workbook fixtures.
"""

from __future__ import annotations

import io
from typing import Any, Callable, Sequence

import pytest
from openpyxl import Workbook

from meter.config import MeterSettings
from meter.domain.activity import REQUIRED_COLUMNS, RowField

PROGRAMMED = "PROGRAMOWE"
NON_PROGRAMMED = "NIEPROGRAMOWE"


def make_row(
    *,
    program_type: str = PROGRAMMED,
    program_name: str = "Trzymaj Formę",
    action: str = "Wykład",
    people: Any = 60,
    actions: Any = 1,
    date: Any = "2024-01-15",
    **extra: Any,
) -> dict[str, Any]:
    row: dict[str, Any] = {
        RowField.PROGRAM_TYPE: program_type,
        RowField.PROGRAM_NAME: program_name,
        RowField.ACTION: action,
        RowField.PEOPLE_COUNT: people,
        RowField.ACTION_COUNT: actions,
        RowField.DATE: date,
    }
    row.update(extra)
    return row


def build_workbook_bytes(
    rows: Sequence[Sequence[Any]],
    *,
    header: Sequence[str] = REQUIRED_COLUMNS,
) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(header))
    for values in rows:
        sheet.append(list(values))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture()
def settings() -> MeterSettings:
    """Default settings with per-row warning logs switched off."""
    return MeterSettings(log_row_warnings=False)


@pytest.fixture()
def row_factory() -> Callable[..., dict[str, Any]]:
    return make_row


@pytest.fixture()
def workbook_bytes() -> Callable[..., bytes]:
    return build_workbook_bytes
