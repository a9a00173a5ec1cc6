"""
meter/services/monthly_breakdown.py

Per-month participant/action subtotals and the main-category rollup.

Rows whose date cannot be read get month 0: they land in no monthly
bucket, are never removed by a month filter, and still count toward the
unconditional totals of the rollup.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field

from indicators.taxonomy import Taxonomy, get_taxonomy
from meter.dates import month_name, month_of
from meter.domain.activity import SUB_CATEGORY_COLUMNS, Row, RowField
from meter.validators.row_sanitizer import RowSanitizer
from meter.validators.row_validator import coerce_count

logger = logging.getLogger(__name__)

_EXAMPLE_PROGRAM_LIMIT = 3


@dataclass(frozen=True)
class MonthlyBreakdown:
    month: int
    month_name: str
    people: int
    actions: int

    def to_dict(self) -> dict[str, object]:
        return {
            "month": self.month,
            "month_name": self.month_name,
            "people": self.people,
            "actions": self.actions,
        }


class MonthlyAccumulator:
    """
    Running month -> (people, actions) sums; month 0 is ignored.
    """

    def __init__(self) -> None:
        self._buckets: dict[int, list[int]] = {}

    def add(self, month: int, people: int, actions: int) -> None:
        if not 1 <= month <= 12:
            return
        bucket = self._buckets.setdefault(month, [0, 0])
        bucket[0] += people
        bucket[1] += actions

    def entries(self) -> tuple[MonthlyBreakdown, ...]:
        return tuple(
            MonthlyBreakdown(month=month, month_name=month_name(month), people=people, actions=actions)
            for month, (people, actions) in sorted(self._buckets.items())
        )


def row_counts(row: Row) -> tuple[int, int]:
    return (
        coerce_count(row.get(RowField.PEOPLE_COUNT), column=RowField.PEOPLE_COUNT),
        coerce_count(row.get(RowField.ACTION_COUNT), column=RowField.ACTION_COUNT),
    )


def monthly_breakdown(
    rows: Iterable[Row],
    month_filter: Collection[int] | None = None,
) -> list[MonthlyBreakdown]:
    """
    Return ascending monthly subtotals for ``rows``.

    Months without data are omitted. An empty or missing filter keeps every
    month.
    """

    accumulator = MonthlyAccumulator()
    for row in rows:
        month = month_of(row.get(RowField.DATE))
        if month_filter and month not in month_filter:
            continue
        people, actions = row_counts(row)
        accumulator.add(month, people, actions)
    return list(accumulator.entries())


# ---------------------------------------------------------------------------
# Main-category rollup
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActionTotals:
    action_name: str
    people: int
    action_number: int


@dataclass(frozen=True)
class CategoryProgramData:
    """
    One program, or one sub-category group of programs, inside a category.

    For sub-category groups ``program_name`` holds the sub-category label,
    ``example_programs`` lists up to three member programs and
    ``total_program_count`` counts distinct members.
    """

    program_name: str
    program_type: str
    total_people: int
    total_actions: int
    is_sub_category_group: bool
    example_programs: tuple[str, ...]
    total_program_count: int
    actions: tuple[ActionTotals, ...]
    monthly_breakdown: tuple[MonthlyBreakdown, ...]


@dataclass(frozen=True)
class MainCategoryData:
    category: str
    total_people: int
    total_actions: int
    programs: tuple[CategoryProgramData, ...]
    monthly_breakdown: tuple[MonthlyBreakdown, ...]


@dataclass(frozen=True)
class MainCategoryAggregatedData:
    categories: tuple[MainCategoryData, ...]
    grand_total_people: int
    grand_total_actions: int
    monthly_breakdown: tuple[MonthlyBreakdown, ...]


@dataclass
class _ProgramBucket:
    program_name: str
    program_type: str
    is_sub_category_group: bool
    total_people: int = 0
    total_actions: int = 0
    members: list[str] = field(default_factory=list)
    actions: dict[str, list[int]] = field(default_factory=dict)
    monthly: MonthlyAccumulator = field(default_factory=MonthlyAccumulator)

    def add(self, *, program_name: str, action: str, month: int, people: int, actions: int) -> None:
        self.total_people += people
        self.total_actions += actions
        if self.is_sub_category_group and program_name not in self.members:
            self.members.append(program_name)
        totals = self.actions.setdefault(action, [0, 0])
        totals[0] += people
        totals[1] += actions
        self.monthly.add(month, people, actions)

    def freeze(self) -> CategoryProgramData:
        return CategoryProgramData(
            program_name=self.program_name,
            program_type=self.program_type,
            total_people=self.total_people,
            total_actions=self.total_actions,
            is_sub_category_group=self.is_sub_category_group,
            example_programs=tuple(self.members[:_EXAMPLE_PROGRAM_LIMIT]),
            total_program_count=len(self.members),
            actions=tuple(
                ActionTotals(action_name=name, people=people, action_number=number)
                for name, (people, number) in self.actions.items()
            ),
            monthly_breakdown=self.monthly.entries(),
        )


def sub_category_of(row: Row) -> str:
    """
    Return the row's sub-category label, or "" when absent or "0".
    """

    for column in SUB_CATEGORY_COLUMNS:
        value = row.get(column)
        text = "" if value is None else str(value).strip()
        if text and text != "0":
            return text
    return ""


def aggregate_by_main_categories(
    rows: Sequence[Row],
    months: Collection[int] | None = None,
    *,
    sanitizer: RowSanitizer | None = None,
    taxonomy: Taxonomy | None = None,
) -> MainCategoryAggregatedData:
    """
    Roll sanitised rows up by main category, program or sub-category.

    Every category of the taxonomy is present in the output, in taxonomy
    order, even when it received no rows.
    """

    sanitizer = sanitizer or RowSanitizer()
    taxonomy = taxonomy or get_taxonomy()
    kept, _ = sanitizer.partition(rows)

    buckets: dict[str, dict[str, _ProgramBucket]] = {category: {} for category in taxonomy.categories}
    category_monthly = {category: MonthlyAccumulator() for category in taxonomy.categories}
    grand_monthly = MonthlyAccumulator()
    grand_people = 0
    grand_actions = 0

    for item in kept:
        row = item.row
        month = month_of(row.get(RowField.DATE))
        if months and month > 0 and month not in months:
            continue

        category = taxonomy.category_of(row.get(RowField.PROGRAM_NAME))
        program_type = str(row.get(RowField.PROGRAM_TYPE) or "").strip()
        program_name = str(row.get(RowField.PROGRAM_NAME) or "").strip()
        action = str(row.get(RowField.ACTION) or "").strip()
        people = coerce_count(row.get(RowField.PEOPLE_COUNT), row_number=item.row_number, column=RowField.PEOPLE_COUNT)
        actions = coerce_count(row.get(RowField.ACTION_COUNT), row_number=item.row_number, column=RowField.ACTION_COUNT)

        sub_category = sub_category_of(row)
        key = sub_category or f"NO_SUB::{program_type}::{program_name}"
        bucket = buckets[category].get(key)
        if bucket is None:
            bucket = _ProgramBucket(
                program_name=sub_category or program_name,
                program_type=program_type,
                is_sub_category_group=bool(sub_category),
            )
            buckets[category][key] = bucket
            logger.debug("New %s item %r in category %r", "sub-category" if sub_category else "program", key, category)

        bucket.add(program_name=program_name, action=action, month=month, people=people, actions=actions)
        category_monthly[category].add(month, people, actions)
        grand_monthly.add(month, people, actions)
        grand_people += people
        grand_actions += actions

    categories = []
    for category in taxonomy.categories:
        programs = tuple(bucket.freeze() for bucket in buckets[category].values())
        categories.append(
            MainCategoryData(
                category=category,
                total_people=sum(program.total_people for program in programs),
                total_actions=sum(program.total_actions for program in programs),
                programs=programs,
                monthly_breakdown=category_monthly[category].entries(),
            )
        )

    return MainCategoryAggregatedData(
        categories=tuple(categories),
        grand_total_people=grand_people,
        grand_total_actions=grand_actions,
        monthly_breakdown=grand_monthly.entries(),
    )
