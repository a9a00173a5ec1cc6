"""
indicators/definitions.py

Indicator definitions and the catalogue that holds them.

An indicator selects rows by, in priority order, an explicit program list,
named program groups, or main categories; program-type include/exclude
filters then narrow the selection further.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Mapping

from indicators.taxonomy import load_taxonomy_document


def _frozen_groups(raw: Mapping[str, Iterable[str]] | None) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({name: tuple(members) for name, members in (raw or {}).items()})


@dataclass(frozen=True)
class IndicatorDefinition:
    """
    One named reporting metric.

    ``program_groups`` maps a display name to the program names merged
    under it; member names are matched exactly.
    """

    id: str
    name: str
    description: str = ""
    specific_programs: tuple[str, ...] = ()
    program_groups: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    main_categories: tuple[str, ...] = ()
    program_types_include: tuple[str, ...] = ()
    program_types_exclude: tuple[str, ...] = ()
    include_non_program: bool = False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> IndicatorDefinition:
        program_types = payload.get("program_types") or {}
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            description=str(payload.get("description", "")),
            specific_programs=tuple(payload.get("specific_programs") or ()),
            program_groups=_frozen_groups(payload.get("program_groups")),
            main_categories=tuple(payload.get("main_categories") or ()),
            program_types_include=tuple(program_types.get("include") or ()),
            program_types_exclude=tuple(program_types.get("exclude") or ()),
            include_non_program=bool(payload.get("include_non_program", False)),
        )


@dataclass(frozen=True)
class IndicatorGroup:
    name: str
    indicators: tuple[IndicatorDefinition, ...]


def matches_indicator(
    category: str,
    program_type: str,
    program_name: str,
    indicator: IndicatorDefinition,
) -> bool:
    """
    Return True when a row with these keys belongs to ``indicator``.

    An indicator without any selection criterion matches nothing.
    """

    if indicator.specific_programs:
        if program_name not in indicator.specific_programs:
            return False
    elif indicator.program_groups:
        if not any(program_name in members for members in indicator.program_groups.values()):
            return False
    elif indicator.main_categories:
        if category not in indicator.main_categories:
            return False
    else:
        return False

    if indicator.program_types_include and program_type not in indicator.program_types_include:
        return False
    if indicator.program_types_exclude and program_type in indicator.program_types_exclude:
        return False
    return True


class IndicatorCatalog:
    """
    Ordered, read-only collection of indicator groups.
    """

    def __init__(self, groups: Sequence[IndicatorGroup]) -> None:
        self._groups = tuple(groups)
        by_id: dict[str, IndicatorDefinition] = {}
        for indicator in self._iter_indicators():
            if indicator.id in by_id:
                raise ValueError(f"Duplicate indicator id {indicator.id!r}.")
            by_id[indicator.id] = indicator
        self._by_id = MappingProxyType(by_id)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> IndicatorCatalog:
        return cls(
            [
                IndicatorGroup(
                    name=str(group["name"]),
                    indicators=tuple(IndicatorDefinition.from_dict(item) for item in group.get("indicators", ())),
                )
                for group in document.get("indicator_groups", ())
            ]
        )

    @classmethod
    def of(cls, *indicators: IndicatorDefinition, group_name: str = "Custom") -> IndicatorCatalog:
        return cls([IndicatorGroup(name=group_name, indicators=tuple(indicators))])

    def _iter_indicators(self) -> Iterator[IndicatorDefinition]:
        for group in self._groups:
            yield from group.indicators

    def groups(self) -> tuple[IndicatorGroup, ...]:
        return self._groups

    def all(self) -> list[IndicatorDefinition]:
        return list(self._iter_indicators())

    def get(self, indicator_id: str) -> IndicatorDefinition | None:
        return self._by_id.get(indicator_id)

    def require(self, indicator_id: str) -> IndicatorDefinition:
        indicator = self.get(indicator_id)
        if indicator is None:
            raise ValueError(f"Unknown indicator {indicator_id!r}. Known: {sorted(self._by_id)}.")
        return indicator

    def active_groups(
        self,
        indicator_id: str | None = None,
        *,
        use_all: bool = False,
    ) -> dict[str, tuple[str, ...]]:
        """
        Return the active group name -> members mapping.

        With ``use_all`` every indicator's groups are merged in catalogue
        order; a later definition of the same group name replaces the earlier.
        """

        if use_all:
            merged: dict[str, tuple[str, ...]] = {}
            for indicator in self._iter_indicators():
                merged.update(indicator.program_groups)
            return merged
        if indicator_id is None:
            return {}
        return dict(self.require(indicator_id).program_groups)

    def program_to_group(
        self,
        indicator_id: str | None = None,
        *,
        use_all: bool = False,
    ) -> dict[str, str]:
        """
        Return program name -> display group for the active groupings.

        Built in definition order, so a program listed by several groups maps
        to the last one seen.
        """

        lookup: dict[str, str] = {}
        if use_all:
            for indicator in self._iter_indicators():
                for group_name, members in indicator.program_groups.items():
                    for member in members:
                        lookup[member] = group_name
            return lookup
        for group_name, members in self.active_groups(indicator_id).items():
            for member in members:
                lookup[member] = group_name
        return lookup


@lru_cache(maxsize=1)
def get_indicator_catalog() -> IndicatorCatalog:
    """
    Return the cached catalogue loaded from the taxonomy document.
    """

    return IndicatorCatalog.from_document(load_taxonomy_document())
