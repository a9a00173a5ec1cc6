"""
indicators/calculation.py

Per-indicator participant and action totals over sanitised rows.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from indicators.definitions import IndicatorCatalog, IndicatorDefinition, get_indicator_catalog, matches_indicator
from indicators.taxonomy import Taxonomy, get_taxonomy
from meter.domain.activity import Row, RowField
from meter.validators.row_sanitizer import is_non_program
from meter.validators.row_validator import coerce_count


@dataclass(frozen=True)
class IndicatorResult:
    indicator_id: str
    indicator_name: str
    total_people: int
    total_actions: int
    rows_processed: int

    def to_dict(self) -> dict[str, object]:
        return {
            "indicator_id": self.indicator_id,
            "indicator_name": self.indicator_name,
            "total_people": self.total_people,
            "total_actions": self.total_actions,
            "rows_processed": self.rows_processed,
        }


def _text(row: Row, column: str) -> str:
    value = row.get(column)
    return "" if value is None else str(value).strip()


def calculate_indicator(
    rows: Iterable[Row],
    indicator: IndicatorDefinition,
    *,
    taxonomy: Taxonomy | None = None,
    non_program_keyword: str = "nieprogramowe",
) -> IndicatorResult:
    """
    Sum people and actions over rows selected by ``indicator``.

    Non-program rows only count when the indicator includes them.
    """

    taxonomy = taxonomy or get_taxonomy()
    total_people = 0
    total_actions = 0
    rows_processed = 0

    for row in rows:
        program_type = _text(row, RowField.PROGRAM_TYPE)
        program_name = _text(row, RowField.PROGRAM_NAME)
        category = taxonomy.category_of(program_name)
        if not matches_indicator(category, program_type, program_name, indicator):
            continue
        if not indicator.include_non_program and is_non_program(row, keyword=non_program_keyword):
            continue
        total_people += coerce_count(row.get(RowField.PEOPLE_COUNT), column=RowField.PEOPLE_COUNT)
        total_actions += coerce_count(row.get(RowField.ACTION_COUNT), column=RowField.ACTION_COUNT)
        rows_processed += 1

    return IndicatorResult(
        indicator_id=indicator.id,
        indicator_name=indicator.name,
        total_people=total_people,
        total_actions=total_actions,
        rows_processed=rows_processed,
    )


def calculate_all_indicators(
    rows: Sequence[Row],
    *,
    catalog: IndicatorCatalog | None = None,
    taxonomy: Taxonomy | None = None,
    non_program_keyword: str = "nieprogramowe",
) -> dict[str, IndicatorResult]:
    """
    Return indicator id -> result for every catalogue indicator, in catalogue order.
    """

    catalog = catalog or get_indicator_catalog()
    return {
        indicator.id: calculate_indicator(
            rows,
            indicator,
            taxonomy=taxonomy,
            non_program_keyword=non_program_keyword,
        )
        for indicator in catalog.all()
    }
