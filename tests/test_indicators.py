"""
tests/test_indicators.py

Indicator definitions, catalogue lookups and per-indicator totals.
"""

from __future__ import annotations

from types import MappingProxyType

import pytest

from indicators.calculation import calculate_all_indicators, calculate_indicator
from indicators.definitions import (
    IndicatorCatalog,
    IndicatorDefinition,
    IndicatorGroup,
    get_indicator_catalog,
    matches_indicator,
)


def _groups(**groups: list[str]) -> MappingProxyType:
    return MappingProxyType({name.replace("_", " "): tuple(members) for name, members in groups.items()})


# ---------------------------------------------------------------------------
# matches_indicator
# ---------------------------------------------------------------------------


class TestMatchesIndicator:
    def test_specific_programs_take_priority_over_categories(self) -> None:
        indicator = IndicatorDefinition(
            id="x",
            name="X",
            specific_programs=("Program X",),
            main_categories=("Szczepienia",),
        )

        assert matches_indicator("Inne", "PROGRAMOWE", "Program X", indicator)
        assert not matches_indicator("Szczepienia", "PROGRAMOWE", "Program Y", indicator)

    def test_program_groups(self) -> None:
        indicator = IndicatorDefinition(id="g", name="G", program_groups=_groups(Combo=["Program X"]))

        assert matches_indicator("Inne", "PROGRAMOWE", "Program X", indicator)
        assert not matches_indicator("Inne", "PROGRAMOWE", "Combo", indicator)

    def test_main_categories(self) -> None:
        indicator = IndicatorDefinition(id="c", name="C", main_categories=("HIV/AIDS",))
        assert matches_indicator("HIV/AIDS", "PROGRAMOWE", "anything", indicator)

    def test_type_filters_narrow_the_selection(self) -> None:
        include = IndicatorDefinition(
            id="i", name="I", main_categories=("Inne",), program_types_include=("PROGRAMOWE",)
        )
        exclude = IndicatorDefinition(
            id="e", name="E", main_categories=("Inne",), program_types_exclude=("PROGRAMOWE",)
        )

        assert matches_indicator("Inne", "PROGRAMOWE", "p", include)
        assert not matches_indicator("Inne", "NIEPROGRAMOWE", "p", include)
        assert not matches_indicator("Inne", "PROGRAMOWE", "p", exclude)

    def test_indicator_without_criteria_matches_nothing(self) -> None:
        assert not matches_indicator("Inne", "PROGRAMOWE", "p", IndicatorDefinition(id="n", name="N"))


# ---------------------------------------------------------------------------
# IndicatorCatalog
# ---------------------------------------------------------------------------


class TestCatalog:
    def test_shipped_catalogue_loads(self) -> None:
        catalog = get_indicator_catalog()

        ids = [indicator.id for indicator in catalog.all()]
        assert ids[0] == "szczepienia"
        assert {"palenie_tytoniu", "wszystkie_programy", "wszystkie_razem"} <= set(ids)
        assert [group.name for group in catalog.groups()] == ["Zdrowotne", "Grupy programów", "Ogólne"]

    def test_from_dict_reads_type_filters(self) -> None:
        indicator = IndicatorDefinition.from_dict(
            {
                "id": "t",
                "name": "T",
                "main_categories": ["Inne"],
                "program_types": {"include": ["PROGRAMOWE"]},
                "include_non_program": True,
            }
        )

        assert indicator.program_types_include == ("PROGRAMOWE",)
        assert indicator.program_types_exclude == ()
        assert indicator.include_non_program

    def test_duplicate_ids_are_rejected(self) -> None:
        indicator = IndicatorDefinition(id="dup", name="Dup")
        with pytest.raises(ValueError, match="Duplicate"):
            IndicatorCatalog([IndicatorGroup(name="a", indicators=(indicator, indicator))])

    def test_require_unknown_id(self) -> None:
        with pytest.raises(ValueError, match="Unknown indicator"):
            IndicatorCatalog.of().require("missing")

    def test_active_groups_for_one_indicator(self) -> None:
        catalog = IndicatorCatalog.of(
            IndicatorDefinition(id="a", name="A", program_groups=_groups(Combo=["X", "Y"])),
            IndicatorDefinition(id="b", name="B", program_groups=_groups(Other=["Z"])),
        )

        assert catalog.active_groups("a") == {"Combo": ("X", "Y")}
        assert catalog.program_to_group("a") == {"X": "Combo", "Y": "Combo"}
        assert catalog.active_groups() == {}

    def test_use_all_merges_and_later_definitions_win(self) -> None:
        catalog = IndicatorCatalog.of(
            IndicatorDefinition(id="a", name="A", program_groups=_groups(Combo=["X", "Y"])),
            IndicatorDefinition(id="b", name="B", program_groups=_groups(Combo=["Z"], Other=["X"])),
        )

        assert catalog.active_groups(use_all=True) == {"Combo": ("Z",), "Other": ("X",)}
        assert catalog.program_to_group(use_all=True) == {"X": "Other", "Y": "Combo", "Z": "Combo"}


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------


class TestCalculation:
    def test_sums_matching_rows(self, row_factory) -> None:
        indicator = get_indicator_catalog().require("otylosc")
        rows = [
            row_factory(program_name="Trzymaj Formę", people=60, actions=2),
            row_factory(program_name="Trzymaj Formę", action="Narada", people=5, actions=1),
            row_factory(program_name="Promocja szczepień ochronnych", people=99, actions=9),
        ]

        result = calculate_indicator(rows, indicator)

        assert (result.total_people, result.total_actions, result.rows_processed) == (65, 3, 2)
        assert result.indicator_name == "Zapobieganie otyłości"

    def test_non_program_rows_are_skipped_by_default(self, row_factory) -> None:
        indicator = IndicatorDefinition(id="p", name="P", specific_programs=("Trzymaj Formę",))
        rows = [row_factory(program_type="NIEPROGRAMOWE", action="Narada", people=5)]

        assert calculate_indicator(rows, indicator).rows_processed == 0

    def test_all_indicators_in_catalogue_order(self, row_factory) -> None:
        results = calculate_all_indicators([row_factory()])

        assert list(results) == [indicator.id for indicator in get_indicator_catalog().all()]
        assert results["zdrowy_tryb_zycia"].total_people == 60
        assert results["szczepienia"].total_people == 0
        assert results["szczepienia"].to_dict()["rows_processed"] == 0
