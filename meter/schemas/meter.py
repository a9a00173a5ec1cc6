"""
meter/schemas/meter.py

Response schemas for meter endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from indicators.regrouper import IndicatorAggregatedResult
from meter.domain.activity import AggregatedResult, AggregateTree, TaskEntry
from meter.services.meter_service import MeterReport
from meter.services.monthly_breakdown import MainCategoryAggregatedData, MonthlyBreakdown


class ProgramActionResponse(BaseModel):
    people: int = Field(..., ge=0)
    action_number: int = Field(..., ge=0)


TreeResponse = dict[str, dict[str, dict[str, ProgramActionResponse]]]


class MonthlyBreakdownResponse(BaseModel):
    month: int = Field(..., ge=1, le=12)
    month_name: str
    people: int = Field(..., ge=0)
    actions: int = Field(..., ge=0)


class IndicatorResultResponse(BaseModel):
    indicator_id: str
    indicator_name: str
    total_people: int = Field(..., ge=0)
    total_actions: int = Field(..., ge=0)
    rows_processed: int = Field(..., ge=0)


class AggregationResponse(BaseModel):
    """
    API response model for the core program/action rollup.
    """

    tree: TreeResponse
    all_people: int = Field(..., ge=0)
    all_actions: int = Field(..., ge=0)
    warnings: list[str] = Field(default_factory=list)
    advisories: list[str] = Field(default_factory=list)
    indicators: dict[str, IndicatorResultResponse] = Field(default_factory=dict)


class CategoryTotalsResponse(BaseModel):
    people: int = Field(..., ge=0)
    actions: int = Field(..., ge=0)


class IndicatorAggregationResponse(BaseModel):
    """
    API response model for the indicator regrouping.
    """

    by_category: dict[str, TreeResponse]
    total_people: int = Field(..., ge=0)
    total_actions: int = Field(..., ge=0)
    category_totals: dict[str, CategoryTotalsResponse]
    group_definitions: dict[str, list[str]]
    monthly_breakdown: list[MonthlyBreakdownResponse] = Field(default_factory=list)


class ActionTotalsResponse(BaseModel):
    action_name: str
    people: int
    action_number: int


class CategoryProgramResponse(BaseModel):
    program_name: str
    program_type: str
    total_people: int
    total_actions: int
    is_sub_category_group: bool
    example_programs: list[str]
    total_program_count: int
    actions: list[ActionTotalsResponse]
    monthly_breakdown: list[MonthlyBreakdownResponse]


class MainCategoryResponse(BaseModel):
    category: str
    total_people: int
    total_actions: int
    programs: list[CategoryProgramResponse]
    monthly_breakdown: list[MonthlyBreakdownResponse]


class MainCategoriesResponse(BaseModel):
    categories: list[MainCategoryResponse]
    grand_total_people: int
    grand_total_actions: int
    monthly_breakdown: list[MonthlyBreakdownResponse]


class MeterReportResponse(BaseModel):
    """
    API response model for a full upload report.
    """

    file_name: str
    rows_read: int = Field(..., ge=0)
    months: list[int]
    aggregated: AggregationResponse
    indicator_view: IndicatorAggregationResponse
    main_categories: MainCategoriesResponse


class TaskEntryResponse(BaseModel):
    row_number: int = Field(..., ge=2)
    program_type: str
    program_name: str
    action: str
    people: int = Field(..., ge=0)
    action_number: int = Field(..., ge=0)
    date: str
    display_date: str


# ---------------------------------------------------------------------------
# Domain -> response mapping
# ---------------------------------------------------------------------------


def _tree(tree: AggregateTree) -> TreeResponse:
    return {
        program_type: {
            program_name: {
                action: ProgramActionResponse(people=entry.people, action_number=entry.action_number)
                for action, entry in actions.items()
            }
            for program_name, actions in programs.items()
        }
        for program_type, programs in tree.items()
    }


def _months(entries: tuple[MonthlyBreakdown, ...]) -> list[MonthlyBreakdownResponse]:
    return [
        MonthlyBreakdownResponse(month=entry.month, month_name=entry.month_name, people=entry.people, actions=entry.actions)
        for entry in entries
    ]


def aggregation_response(result: AggregatedResult) -> AggregationResponse:
    return AggregationResponse(
        tree=_tree(result.tree),
        all_people=result.all_people,
        all_actions=result.all_actions,
        warnings=list(result.warnings),
        advisories=list(result.advisories),
        indicators={
            key: IndicatorResultResponse(**indicator.to_dict()) for key, indicator in result.indicators.items()
        },
    )


def indicator_response(result: IndicatorAggregatedResult) -> IndicatorAggregationResponse:
    return IndicatorAggregationResponse(
        by_category={category: _tree(tree) for category, tree in result.by_category.items()},
        total_people=result.total_people,
        total_actions=result.total_actions,
        category_totals={
            category: CategoryTotalsResponse(people=totals.people, actions=totals.actions)
            for category, totals in result.category_totals.items()
        },
        group_definitions={name: list(members) for name, members in result.group_definitions.items()},
        monthly_breakdown=_months(result.monthly_breakdown),
    )


def main_categories_response(data: MainCategoryAggregatedData) -> MainCategoriesResponse:
    return MainCategoriesResponse(
        categories=[
            MainCategoryResponse(
                category=category.category,
                total_people=category.total_people,
                total_actions=category.total_actions,
                programs=[
                    CategoryProgramResponse(
                        program_name=program.program_name,
                        program_type=program.program_type,
                        total_people=program.total_people,
                        total_actions=program.total_actions,
                        is_sub_category_group=program.is_sub_category_group,
                        example_programs=list(program.example_programs),
                        total_program_count=program.total_program_count,
                        actions=[
                            ActionTotalsResponse(
                                action_name=action.action_name,
                                people=action.people,
                                action_number=action.action_number,
                            )
                            for action in program.actions
                        ],
                        monthly_breakdown=_months(program.monthly_breakdown),
                    )
                    for program in category.programs
                ],
                monthly_breakdown=_months(category.monthly_breakdown),
            )
            for category in data.categories
        ],
        grand_total_people=data.grand_total_people,
        grand_total_actions=data.grand_total_actions,
        monthly_breakdown=_months(data.monthly_breakdown),
    )


def report_response(report: MeterReport) -> MeterReportResponse:
    return MeterReportResponse(
        file_name=report.file_name,
        rows_read=report.rows_read,
        months=list(report.months),
        aggregated=aggregation_response(report.aggregated),
        indicator_view=indicator_response(report.indicator_view),
        main_categories=main_categories_response(report.main_categories),
    )


def task_response(entry: TaskEntry) -> TaskEntryResponse:
    return TaskEntryResponse(
        row_number=entry.row_number,
        program_type=entry.program_type,
        program_name=entry.program_name,
        action=entry.action,
        people=entry.people,
        action_number=entry.action_number,
        date=entry.date,
        display_date=entry.display_date,
    )
