"""
indicators/taxonomy.py

Static health-category taxonomy and program name normalisation.

The taxonomy is plain data shipped in ``indicators/data/taxonomy.json``;
it is loaded once per process and exposed through read-only structures.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

TAXONOMY_PATH = Path(__file__).resolve().parent / "data" / "taxonomy.json"

_DASHES = {ord("–"): "-", ord("—"): "-"}
_SPACES = {
    code: " "
    for code in (0x00A0, *range(0x2000, 0x200B), 0x202F, 0x205F, 0x3000)
}
_WHITESPACE_RUN = re.compile(r"\s+")


class MainCategory:
    SZCZEPIENIA = "Szczepienia"
    ZAPOBIEGANIE_OTYLOSCI = "Zapobieganie otyłości"
    PROFILAKTYKA_UZALEZNIEN = "Profilaktyka uzależnień"
    HIV_AIDS = "HIV/AIDS"
    INNE = "Inne"


class ProgramType:
    PROGRAMOWE = "PROGRAMOWE"
    NIEPROGRAMOWE = "NIEPROGRAMOWE"


@dataclass(frozen=True)
class Taxonomy:
    """
    Closed category enumeration plus the program -> category lookup.

    ``program_categories`` is keyed by normalised program name.
    """

    categories: tuple[str, ...]
    default_category: str
    program_types: tuple[str, ...]
    action_types: tuple[str, ...]
    program_categories: Mapping[str, str]

    def category_of(self, program_name: Any) -> str:
        """
        Return the category of ``program_name``, or the catch-all on miss.
        """

        if program_name is None:
            return self.default_category
        normalized = normalize_program_name(str(program_name))
        return self.program_categories.get(normalized, self.default_category)


def normalize_program_name(name: str) -> str:
    """
    Canonicalise a program name before lookup.

    Unicode space variants become ASCII spaces, en/em dashes become hyphens,
    runs of whitespace collapse to one space and the ends are trimmed.
    """

    translated = name.translate(_DASHES).translate(_SPACES)
    return _WHITESPACE_RUN.sub(" ", translated).strip()


@lru_cache(maxsize=1)
def load_taxonomy_document() -> dict[str, Any]:
    """
    Read the raw taxonomy document once per process.
    """

    return json.loads(TAXONOMY_PATH.read_text(encoding="utf-8"))


def build_taxonomy(document: Mapping[str, Any]) -> Taxonomy:
    categories = tuple(document["categories"])
    default_category = document.get("default_category", categories[-1])
    if default_category not in categories:
        raise ValueError(f"Default category {default_category!r} is not a declared category.")

    mapping: dict[str, str] = {}
    for program_name, category in document.get("program_categories", {}).items():
        if category not in categories:
            raise ValueError(f"Program {program_name!r} maps to unknown category {category!r}.")
        mapping[normalize_program_name(program_name)] = category

    return Taxonomy(
        categories=categories,
        default_category=default_category,
        program_types=tuple(document.get("program_types", ())),
        action_types=tuple(document.get("action_types", ())),
        program_categories=MappingProxyType(mapping),
    )


@lru_cache(maxsize=1)
def get_taxonomy() -> Taxonomy:
    """
    Return the cached process-wide taxonomy.
    """

    return build_taxonomy(load_taxonomy_document())


def category_of(program_name: Any) -> str:
    return get_taxonomy().category_of(program_name)
