"""
tests/test_regrouper.py

Pytest unit tests for the indicator regrouping.

Coverage
--------
- Group merge under a single display name
- Empty or missing month selection means every month
- Totals agree with the core aggregator on the same rows
- Ungrouped rows are skipped only for a single grouped indicator
- Monthly breakdowns per category and display name
"""

from __future__ import annotations

from types import MappingProxyType

import pytest

from indicators.definitions import IndicatorCatalog, IndicatorDefinition
from indicators.regrouper import IndicatorRegrouper, aggregate_by_indicator
from meter.config import MeterSettings
from meter.services.aggregation_service import AggregationService

COMBO = IndicatorDefinition(
    id="combo",
    name="Vaccination Combo",
    program_groups=MappingProxyType({"Vaccination Combo": ("Program X", "Program Y")}),
)


@pytest.fixture()
def catalog() -> IndicatorCatalog:
    return IndicatorCatalog.of(COMBO)


@pytest.fixture()
def regrouper(settings: MeterSettings, catalog: IndicatorCatalog) -> IndicatorRegrouper:
    return IndicatorRegrouper(settings=settings, catalog=catalog)


class TestGrouping:
    def test_group_members_merge_under_display_name(self, regrouper: IndicatorRegrouper, row_factory) -> None:
        rows = [
            row_factory(program_name="Program X", people=60, actions=1),
            row_factory(program_name="Program Y", people=70, actions=2),
        ]

        result = regrouper.aggregate_by_indicator(rows, indicator_id="combo")

        programs = result.by_category["Inne"]["PROGRAMOWE"]
        assert list(programs) == ["Vaccination Combo"]
        entry = programs["Vaccination Combo"]["Wykład"]
        assert (entry.people, entry.action_number) == (130, 3)
        assert result.group_definitions == {"Vaccination Combo": ("Program X", "Program Y")}

    def test_ungrouped_rows_are_skipped_for_grouped_indicator(self, regrouper: IndicatorRegrouper, row_factory) -> None:
        rows = [row_factory(program_name="Program X"), row_factory(program_name="Trzymaj Formę")]

        result = regrouper.aggregate_by_indicator(rows, indicator_id="combo")

        assert result.total_people == 60
        assert "Zapobieganie otyłości" not in result.by_category

    def test_use_all_keeps_ungrouped_rows(self, regrouper: IndicatorRegrouper, row_factory) -> None:
        rows = [row_factory(program_name="Program X"), row_factory(program_name="Trzymaj Formę")]

        result = regrouper.aggregate_by_indicator(rows, use_all_groupings=True)

        assert result.total_people == 120
        assert list(result.by_category["Zapobieganie otyłości"]["PROGRAMOWE"]) == ["Trzymaj Formę"]

    def test_no_indicator_keeps_program_names(self, regrouper: IndicatorRegrouper, row_factory) -> None:
        result = regrouper.aggregate_by_indicator([row_factory(program_name="Program X")])

        assert list(result.by_category["Inne"]["PROGRAMOWE"]) == ["Program X"]
        assert result.group_definitions == {}

    def test_unknown_indicator_raises(self, regrouper: IndicatorRegrouper, row_factory) -> None:
        with pytest.raises(ValueError, match="Unknown indicator"):
            regrouper.aggregate_by_indicator([row_factory()], indicator_id="nope")

    def test_category_lookup_normalises_names(self, regrouper: IndicatorRegrouper, row_factory) -> None:
        result = regrouper.aggregate_by_indicator([row_factory(program_name="Trzymaj Formę")])
        assert "Zapobieganie otyłości" in result.by_category


class TestMonths:
    @pytest.mark.parametrize("months", [None, []])
    def test_empty_selection_means_every_month(self, regrouper: IndicatorRegrouper, row_factory, months) -> None:
        rows = [row_factory(date="2024-01-05"), row_factory(date="2024-09-05")]

        result = regrouper.aggregate_by_indicator(rows, months)

        assert result.total_people == 120

    def test_selection_filters_rows(self, regrouper: IndicatorRegrouper, row_factory) -> None:
        rows = [row_factory(date="2024-01-05"), row_factory(date="2024-09-05", people=5)]

        result = regrouper.aggregate_by_indicator(rows, [9])

        assert result.total_people == 5

    def test_monthly_breakdowns(self, regrouper: IndicatorRegrouper, row_factory) -> None:
        rows = [
            row_factory(date="2024-03-05", people=60, actions=1),
            row_factory(date="2024-01-05", people=70, actions=2),
            row_factory(date="2024-03-20", people=80, actions=1),
        ]

        result = regrouper.aggregate_by_indicator(rows)

        assert [(entry.month, entry.people, entry.actions) for entry in result.monthly_breakdown] == [
            (1, 70, 2),
            (3, 140, 2),
        ]
        assert result.monthly_breakdown[0].month_name == "Styczeń"
        category = "Zapobieganie otyłości"
        assert len(result.category_monthly_breakdown[category]) == 2
        assert result.program_monthly_breakdown[category]["Trzymaj Formę"][1].people == 140


class TestConsistency:
    def test_totals_match_core_aggregator(self, settings: MeterSettings, regrouper: IndicatorRegrouper, row_factory) -> None:
        rows = [
            row_factory(program_name="Program X", people=60, date="2024-02-01"),
            row_factory(program_name="Trzymaj Formę", people=70, date="2024-02-11"),
            row_factory(program_type="NIEPROGRAMOWE", action="Wizytacja", people=10, date="2024-02-12"),
            row_factory(program_type="NIEPROGRAMOWE", action="Narada", people=3, date="2024-04-12"),
            row_factory(program_name="Half filled", date=""),
        ]
        months = list(range(1, 13))

        core = AggregationService(settings=settings).aggregate(rows, months)
        regrouped = regrouper.aggregate_by_indicator(rows, months, use_all_groupings=True)

        assert (regrouped.total_people, regrouped.total_actions) == (core.all_people, core.all_actions)
        assert sum(totals.people for totals in regrouped.category_totals.values()) == core.all_people

    def test_module_shortcut(self, catalog: IndicatorCatalog, row_factory) -> None:
        result = aggregate_by_indicator([row_factory(program_name="Program Y")], indicator_id="combo", catalog=catalog)

        assert result.to_dict()["by_category"]["Inne"]["PROGRAMOWE"]["Vaccination Combo"]["Wykład"]["people"] == 60
