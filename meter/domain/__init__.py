"""
meter/domain package marker.
"""

from meter.domain.activity import (
    REQUIRED_COLUMNS,
    AggregatedResult,
    AggregateTree,
    FilteringWarnings,
    NumberedRow,
    ProgramAction,
    Row,
    RowField,
    TaskEntry,
    ValidationOutcome,
)

__all__ = [
    "AggregatedResult",
    "AggregateTree",
    "FilteringWarnings",
    "NumberedRow",
    "ProgramAction",
    "REQUIRED_COLUMNS",
    "Row",
    "RowField",
    "TaskEntry",
    "ValidationOutcome",
]
