"""
indicators/regrouper.py

Re-projects activity rows onto health categories and indicator program groups.

Unlike the core aggregator, an empty or missing month selection means
"every month" here. The regrouper re-derives row exclusion on its own
from the shared predicates rather than consuming the sanitizer's output.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from indicators.definitions import IndicatorCatalog, get_indicator_catalog
from indicators.taxonomy import Taxonomy, get_taxonomy
from meter.config import MeterSettings, get_meter_settings
from meter.dates import month_of
from meter.domain.activity import AggregateTree, ProgramAction, Row, RowField, tree_to_dict
from meter.logging_utils import log_event
from meter.services.aggregation_service import normalize_month_selection
from meter.services.monthly_breakdown import MonthlyAccumulator, MonthlyBreakdown
from meter.validators.row_sanitizer import (
    HEADER_ROW_OFFSET,
    is_completely_empty_row,
    is_incomplete_row,
    is_non_program_site_visit,
)
from meter.validators.row_validator import coerce_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryTotals:
    people: int = 0
    actions: int = 0


@dataclass(frozen=True)
class IndicatorAggregatedResult:
    """
    Category -> program type -> display name -> action rollup.

    ``group_definitions`` echoes the active group name -> member programs
    so callers can explain merged rows.
    """

    by_category: dict[str, AggregateTree]
    total_people: int
    total_actions: int
    category_totals: dict[str, CategoryTotals]
    group_definitions: dict[str, tuple[str, ...]]
    monthly_breakdown: tuple[MonthlyBreakdown, ...] = ()
    category_monthly_breakdown: dict[str, tuple[MonthlyBreakdown, ...]] = field(default_factory=dict)
    program_monthly_breakdown: dict[str, dict[str, tuple[MonthlyBreakdown, ...]]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "by_category": {category: tree_to_dict(tree) for category, tree in self.by_category.items()},
            "total_people": self.total_people,
            "total_actions": self.total_actions,
            "category_totals": {
                category: {"people": totals.people, "actions": totals.actions}
                for category, totals in self.category_totals.items()
            },
            "group_definitions": {name: list(members) for name, members in self.group_definitions.items()},
            "monthly_breakdown": [entry.to_dict() for entry in self.monthly_breakdown],
            "category_monthly_breakdown": {
                category: [entry.to_dict() for entry in entries]
                for category, entries in self.category_monthly_breakdown.items()
            },
            "program_monthly_breakdown": {
                category: {name: [entry.to_dict() for entry in entries] for name, entries in programs.items()}
                for category, programs in self.program_monthly_breakdown.items()
            },
        }


class IndicatorRegrouper:
    """
    Aggregates rows by category using an indicator's program groups.
    """

    def __init__(
        self,
        *,
        settings: MeterSettings | None = None,
        catalog: IndicatorCatalog | None = None,
        taxonomy: Taxonomy | None = None,
    ) -> None:
        self._settings = settings or get_meter_settings()
        self._catalog = catalog or get_indicator_catalog()
        self._taxonomy = taxonomy or get_taxonomy()

    def _is_excluded(self, row: Row) -> bool:
        if is_completely_empty_row(row) or is_incomplete_row(row):
            return True
        return is_non_program_site_visit(
            row,
            non_program_keyword=self._settings.non_program_keyword,
            site_visit_keyword=self._settings.site_visit_keyword,
        )

    def aggregate_by_indicator(
        self,
        rows: Sequence[Row],
        months: Iterable[int] | None = None,
        *,
        indicator_id: str | None = None,
        use_all_groupings: bool = False,
    ) -> IndicatorAggregatedResult:
        """
        Regroup rows by category and display name.

        With ``indicator_id`` only that indicator's groups are active and,
        when it defines any, rows outside every group are skipped. With
        ``use_all_groupings`` the groups of all indicators are merged and no
        row is skipped for being ungrouped. Unknown ids raise ValueError.
        """

        selected = normalize_month_selection(months)
        group_definitions = self._catalog.active_groups(indicator_id, use_all=use_all_groupings)
        program_to_group = self._catalog.program_to_group(indicator_id, use_all=use_all_groupings)
        skip_ungrouped = not use_all_groupings and bool(group_definitions)

        by_category: dict[str, AggregateTree] = {}
        category_people: dict[str, int] = {}
        category_actions: dict[str, int] = {}
        grand_monthly = MonthlyAccumulator()
        category_monthly: dict[str, MonthlyAccumulator] = {}
        program_monthly: dict[str, dict[str, MonthlyAccumulator]] = {}
        total_people = 0
        total_actions = 0

        for index, row in enumerate(rows):
            if self._is_excluded(row):
                continue

            month = month_of(row.get(RowField.DATE))
            if selected and month not in selected:
                continue

            program_name = str(row.get(RowField.PROGRAM_NAME)).strip()
            if skip_ungrouped and program_name not in program_to_group:
                continue

            row_number = index + HEADER_ROW_OFFSET
            people = coerce_count(row.get(RowField.PEOPLE_COUNT), row_number=row_number, column=RowField.PEOPLE_COUNT)
            actions = coerce_count(row.get(RowField.ACTION_COUNT), row_number=row_number, column=RowField.ACTION_COUNT)

            category = self._taxonomy.category_of(program_name)
            program_type = str(row.get(RowField.PROGRAM_TYPE)).strip()
            action = str(row.get(RowField.ACTION)).strip()
            display_name = program_to_group.get(program_name, program_name)

            tree = by_category.setdefault(category, {})
            entry = tree.setdefault(program_type, {}).setdefault(display_name, {}).setdefault(action, ProgramAction())
            entry.add(people, actions)

            category_people[category] = category_people.get(category, 0) + people
            category_actions[category] = category_actions.get(category, 0) + actions
            total_people += people
            total_actions += actions

            grand_monthly.add(month, people, actions)
            category_monthly.setdefault(category, MonthlyAccumulator()).add(month, people, actions)
            program_monthly.setdefault(category, {}).setdefault(display_name, MonthlyAccumulator()).add(
                month, people, actions
            )

        log_event(
            logger,
            logging.INFO,
            "meter.indicators.complete",
            indicator_id=indicator_id,
            use_all_groupings=use_all_groupings,
            months=sorted(selected),
            total_people=total_people,
            total_actions=total_actions,
            categories=len(by_category),
        )
        return IndicatorAggregatedResult(
            by_category=by_category,
            total_people=total_people,
            total_actions=total_actions,
            category_totals={
                category: CategoryTotals(people=category_people[category], actions=category_actions[category])
                for category in by_category
            },
            group_definitions=group_definitions,
            monthly_breakdown=grand_monthly.entries(),
            category_monthly_breakdown={
                category: accumulator.entries() for category, accumulator in category_monthly.items()
            },
            program_monthly_breakdown={
                category: {name: accumulator.entries() for name, accumulator in programs.items()}
                for category, programs in program_monthly.items()
            },
        )


def aggregate_by_indicator(
    rows: Sequence[Row],
    months: Iterable[int] | None = None,
    *,
    indicator_id: str | None = None,
    use_all_groupings: bool = False,
    catalog: IndicatorCatalog | None = None,
) -> IndicatorAggregatedResult:
    """
    Module-level shortcut over ``IndicatorRegrouper``.
    """

    regrouper = IndicatorRegrouper(catalog=catalog)
    return regrouper.aggregate_by_indicator(
        rows,
        months,
        indicator_id=indicator_id,
        use_all_groupings=use_all_groupings,
    )
