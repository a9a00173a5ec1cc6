"""
meter/services/aggregation_service.py

Core aggregator: folds sanitised rows into a program type -> program name
-> action tree for the selected months.

Grand totals are running sums kept next to the tree; ``tree_totals``
recomputes them by traversal so the two can be compared.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from functools import lru_cache

from indicators.calculation import calculate_all_indicators
from indicators.definitions import IndicatorCatalog
from indicators.taxonomy import Taxonomy
from meter.config import MeterSettings, get_meter_settings
from meter.dates import month_of
from meter.domain.activity import AggregatedResult, AggregateTree, ProgramAction, Row, RowField
from meter.errors import MeterError, NoMonthSelectedError, ProcessingError
from meter.logging_utils import log_event
from meter.validators.row_sanitizer import RowSanitizer
from meter.validators.row_validator import coerce_count

logger = logging.getLogger(__name__)


def normalize_month_selection(months: Iterable[int] | None) -> frozenset[int]:
    """
    Return the selected calendar months, ignoring values outside 1-12.
    """

    if not months:
        return frozenset()
    return frozenset(int(month) for month in months if 1 <= int(month) <= 12)


def tree_totals(tree: AggregateTree) -> tuple[int, int]:
    """
    Return (people, actions) summed over every leaf of ``tree``.
    """

    people = 0
    actions = 0
    for programs in tree.values():
        for program_actions in programs.values():
            for entry in program_actions.values():
                people += entry.people
                actions += entry.action_number
    return people, actions


def split_by_program_kind(
    tree: AggregateTree,
    *,
    non_program_keyword: str = "nieprogramowe",
) -> tuple[AggregateTree, AggregateTree]:
    """
    Split a tree into (programmed, non-programmed) subtrees by type key.
    """

    programmed: AggregateTree = {}
    non_programmed: AggregateTree = {}
    for program_type, programs in tree.items():
        target = non_programmed if non_program_keyword in program_type.lower() else programmed
        target[program_type] = programs
    return programmed, non_programmed


def _text(row: Row, column: str) -> str:
    value = row.get(column)
    return "" if value is None else str(value).strip()


class AggregationService:
    """
    Builds the hierarchical program/action rollup.
    """

    def __init__(
        self,
        *,
        settings: MeterSettings | None = None,
        sanitizer: RowSanitizer | None = None,
        catalog: IndicatorCatalog | None = None,
        taxonomy: Taxonomy | None = None,
    ) -> None:
        self._settings = settings or get_meter_settings()
        self._sanitizer = sanitizer or RowSanitizer(self._settings)
        self._catalog = catalog
        self._taxonomy = taxonomy

    def aggregate(self, rows: Sequence[Row], months: Iterable[int] | None) -> AggregatedResult:
        """
        Aggregate raw rows for the selected months.

        Raises NoMonthSelectedError on an empty selection and
        SheetValidationError when a surviving row carries an unusable count.
        """

        selected = normalize_month_selection(months)
        if not selected:
            raise NoMonthSelectedError()

        try:
            return self._aggregate(rows, selected)
        except MeterError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Aggregation failed rows=%d", len(rows))
            raise ProcessingError(
                "Unexpected error while aggregating rows",
                details=str(exc),
            ) from exc

    def _aggregate(self, rows: Sequence[Row], selected: frozenset[int]) -> AggregatedResult:
        kept, excluded = self._sanitizer.partition(rows)
        filtering = self._sanitizer.build_warnings(excluded)

        counted: list[tuple[Row, int, int]] = []
        for item in kept:
            people = coerce_count(
                item.row.get(RowField.PEOPLE_COUNT),
                row_number=item.row_number,
                column=RowField.PEOPLE_COUNT,
            )
            actions = coerce_count(
                item.row.get(RowField.ACTION_COUNT),
                row_number=item.row_number,
                column=RowField.ACTION_COUNT,
            )
            counted.append((item.row, people, actions))

        indicators = calculate_all_indicators(
            [row for row, _, _ in counted],
            catalog=self._catalog,
            taxonomy=self._taxonomy,
            non_program_keyword=self._settings.non_program_keyword,
        )

        tree: AggregateTree = {}
        all_people = 0
        all_actions = 0
        skipped_by_month = 0
        for row, people, actions in counted:
            if month_of(row.get(RowField.DATE)) not in selected:
                skipped_by_month += 1
                continue
            programs = tree.setdefault(_text(row, RowField.PROGRAM_TYPE), {})
            program_actions = programs.setdefault(_text(row, RowField.PROGRAM_NAME), {})
            entry = program_actions.setdefault(_text(row, RowField.ACTION), ProgramAction())
            entry.add(people, actions)
            all_people += people
            all_actions += actions

        log_event(
            logger,
            logging.INFO,
            "meter.aggregate.complete",
            rows=len(rows),
            kept=len(kept),
            excluded=len(excluded),
            skipped_by_month=skipped_by_month,
            months=sorted(selected),
            all_people=all_people,
            all_actions=all_actions,
        )
        return AggregatedResult(
            tree=tree,
            all_people=all_people,
            all_actions=all_actions,
            warnings=filtering.messages,
            advisories=self._sanitizer.advisories(kept),
            indicators=indicators,
        )


@lru_cache(maxsize=1)
def get_aggregation_service() -> AggregationService:
    """
    Return a cached aggregation service built from settings.
    """

    return AggregationService(settings=get_meter_settings())
