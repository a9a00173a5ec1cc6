"""
indicators package marker.
"""

from indicators.definitions import (
    IndicatorCatalog,
    IndicatorDefinition,
    IndicatorGroup,
    get_indicator_catalog,
    matches_indicator,
)
from indicators.taxonomy import MainCategory, ProgramType, Taxonomy, category_of, get_taxonomy, normalize_program_name

__all__ = [
    "IndicatorCatalog",
    "IndicatorDefinition",
    "IndicatorGroup",
    "MainCategory",
    "ProgramType",
    "Taxonomy",
    "category_of",
    "get_indicator_catalog",
    "get_taxonomy",
    "matches_indicator",
    "normalize_program_name",
]
