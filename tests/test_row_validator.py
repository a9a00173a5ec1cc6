"""
tests/test_row_validator.py

Strict whole-file validation and count coercion.
"""

from __future__ import annotations

import math

import pytest

from meter.domain.activity import RowField
from meter.errors import ErrorCode, SheetValidationError
from meter.validators.row_validator import check_rows, coerce_count, validate_rows


# ---------------------------------------------------------------------------
# coerce_count
# ---------------------------------------------------------------------------


class TestCoerceCount:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0, 0), (12, 12), (7.0, 7), ("15", 15), (" 3 ", 3), ("4,0", 4)],
    )
    def test_accepts_whole_numbers(self, value, expected: int) -> None:
        assert coerce_count(value) == expected

    @pytest.mark.parametrize("value", ["abc", None, True, math.nan, math.inf, object()])
    def test_rejects_non_numbers(self, value) -> None:
        with pytest.raises(SheetValidationError, match="must be a number"):
            coerce_count(value, column=RowField.PEOPLE_COUNT)

    def test_rejects_negative_values(self) -> None:
        with pytest.raises(SheetValidationError, match="greater than or equal to 0"):
            coerce_count(-1)

    def test_rejects_fractions(self) -> None:
        with pytest.raises(SheetValidationError, match="whole number"):
            coerce_count("2.5")

    def test_error_points_at_the_cell(self) -> None:
        with pytest.raises(SheetValidationError) as exc_info:
            coerce_count("x", row_number=9, column=RowField.ACTION_COUNT)

        error = exc_info.value
        assert error.code == ErrorCode.INVALID_VALUE
        assert error.row_number == 9
        assert error.column == RowField.ACTION_COUNT
        assert error.to_dict()["value"] == "x"
        assert '(row 9) - column "Liczba działań" (value: "x")' in str(error)


# ---------------------------------------------------------------------------
# check_rows
# ---------------------------------------------------------------------------


class TestCheckRows:
    def test_no_rows(self) -> None:
        with pytest.raises(SheetValidationError) as exc_info:
            check_rows([])
        assert exc_info.value.code == ErrorCode.NO_DATA

    def test_missing_columns_are_listed(self, row_factory) -> None:
        row = row_factory()
        del row[RowField.DATE]

        with pytest.raises(SheetValidationError) as exc_info:
            check_rows([row])

        assert exc_info.value.code == ErrorCode.MISSING_COLUMNS
        assert "Missing: Data" in (exc_info.value.details or "")

    def test_columns_may_be_spread_across_rows(self, row_factory) -> None:
        incomplete = row_factory()
        del incomplete[RowField.DATE]
        check_rows([incomplete, row_factory()])

    def test_only_headers_or_blank_rows(self, row_factory) -> None:
        with pytest.raises(SheetValidationError) as exc_info:
            check_rows([row_factory(program_type="", people=0, actions=0, date="")])
        assert exc_info.value.code == ErrorCode.ONLY_HEADERS

    def test_invalid_date_reports_row_number(self, row_factory) -> None:
        rows = [row_factory(), row_factory(date="someday")]

        with pytest.raises(SheetValidationError) as exc_info:
            check_rows(rows)

        assert exc_info.value.row_number == 3
        assert exc_info.value.column == RowField.DATE

    def test_non_text_name_is_rejected(self, row_factory) -> None:
        with pytest.raises(SheetValidationError) as exc_info:
            check_rows([row_factory(program_name=42)])
        assert exc_info.value.column == RowField.PROGRAM_NAME

    def test_silently_dropped_rows_are_not_validated(self, row_factory) -> None:
        check_rows([row_factory(), row_factory(people="oops", date="")])

    def test_valid_rows_pass(self, row_factory) -> None:
        check_rows([row_factory(date="15.01.2024"), row_factory(people="12")])


def test_validate_rows_returns_outcome(row_factory) -> None:
    outcome = validate_rows([row_factory(actions=-2)])

    assert not outcome.is_valid
    assert outcome.detail is not None
    assert outcome.detail["row_number"] == 2
    assert "Liczba działań" in (outcome.error or "")
    assert validate_rows([row_factory()]).is_valid
