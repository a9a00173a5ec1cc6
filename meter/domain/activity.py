"""
meter/domain/activity.py

Domain models for activity rows and their aggregated views.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from indicators.calculation import IndicatorResult

Row = Mapping[str, Any]


class RowField:
    """
    Spreadsheet header labels of the activity report.
    """

    PROGRAM_TYPE = "Typ programu"
    PROGRAM_NAME = "Nazwa programu"
    ACTION = "Działanie"
    PEOPLE_COUNT = "Liczba ludzi"
    ACTION_COUNT = "Liczba działań"
    DATE = "Data"


REQUIRED_COLUMNS: tuple[str, ...] = (
    RowField.PROGRAM_TYPE,
    RowField.PROGRAM_NAME,
    RowField.ACTION,
    RowField.PEOPLE_COUNT,
    RowField.ACTION_COUNT,
    RowField.DATE,
)

SUB_CATEGORY_COLUMNS: tuple[str, ...] = ("Podkategoria", "Sub Category")


@dataclass
class ProgramAction:
    """
    Accumulated participants and action count for one tree leaf.

    Instances are owned by a single aggregation call and only mutated
    while that call builds its tree.
    """

    people: int = 0
    action_number: int = 0

    def add(self, people: int, action_number: int) -> None:
        self.people += people
        self.action_number += action_number

    def to_dict(self) -> dict[str, int]:
        return {"people": self.people, "action_number": self.action_number}


# type -> name -> action -> ProgramAction
AggregateTree = dict[str, dict[str, dict[str, ProgramAction]]]


@dataclass(frozen=True)
class NumberedRow:
    """
    A row paired with its spreadsheet row number (header is row 1).
    """

    row_number: int
    row: Row


@dataclass(frozen=True)
class FilteringWarnings:
    """
    Row numbers excluded with a warning and the rendered messages.
    """

    excluded_row_numbers: tuple[int, ...] = ()
    messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of strict whole-file validation.
    """

    is_valid: bool
    error: str | None = None
    detail: dict[str, Any] | None = None


@dataclass(frozen=True)
class AggregatedResult:
    """
    Output of the core aggregator.

    ``all_people`` / ``all_actions`` are running sums kept alongside the tree;
    ``indicators`` are computed over every sanitised row regardless of the
    month selection.
    """

    tree: AggregateTree
    all_people: int
    all_actions: int
    warnings: tuple[str, ...] = ()
    advisories: tuple[str, ...] = ()
    indicators: Mapping[str, IndicatorResult] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tree": tree_to_dict(self.tree),
            "all_people": self.all_people,
            "all_actions": self.all_actions,
            "warnings": list(self.warnings),
            "advisories": list(self.advisories),
            "indicators": {key: result.to_dict() for key, result in self.indicators.items()},
        }


@dataclass(frozen=True)
class TaskEntry:
    """
    One month-filtered activity prepared for form prefill.
    """

    row_number: int
    program_type: str
    program_name: str
    action: str
    people: int
    action_number: int
    date: str
    display_date: str


def tree_to_dict(tree: AggregateTree) -> dict[str, dict[str, dict[str, dict[str, int]]]]:
    return {
        program_type: {
            program_name: {action: entry.to_dict() for action, entry in actions.items()}
            for program_name, actions in programs.items()
        }
        for program_type, programs in tree.items()
    }
