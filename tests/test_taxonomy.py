from __future__ import annotations

import pytest

from indicators.taxonomy import MainCategory, build_taxonomy, category_of, get_taxonomy, normalize_program_name

SAMPLES = [
    "Trzymaj Formę",
    "  Trzymaj   Formę ",
    "Porozmawiajmy o zdrowiu i nowych zagrożeniach",
    "Wpływ – czynników — środowiskowych",
    " tab\tand\nnewline ",
    "",
]


@pytest.mark.parametrize("name", SAMPLES)
def test_normalization_is_idempotent(name: str) -> None:
    once = normalize_program_name(name)

    assert normalize_program_name(once) == once
    assert category_of(once) == category_of(normalize_program_name(once))


def test_normalization_rewrites_spaces_and_dashes() -> None:
    assert normalize_program_name("A  – B — C ") == "A - B - C"


def test_known_program_maps_to_its_category() -> None:
    assert category_of("Promocja szczepień ochronnych") == MainCategory.SZCZEPIENIA
    assert category_of("Krajowy Program Zapobiegania Zakażeniom HIV i Zwalczania AIDS") == MainCategory.HIV_AIDS


def test_lookup_tolerates_whitespace_variants() -> None:
    assert category_of("Trzymaj Formę ") == MainCategory.ZAPOBIEGANIE_OTYLOSCI


def test_unknown_program_falls_back_to_catch_all() -> None:
    assert category_of("Zupełnie nowy program") == MainCategory.INNE
    assert category_of(None) == MainCategory.INNE


def test_taxonomy_is_read_only() -> None:
    taxonomy = get_taxonomy()

    assert taxonomy.categories[-1] == MainCategory.INNE
    with pytest.raises(TypeError):
        taxonomy.program_categories["x"] = "Inne"  # type: ignore[index]


def test_unknown_category_in_document_is_rejected() -> None:
    document = {"categories": ["A", "Inne"], "default_category": "Inne", "program_categories": {"P": "B"}}

    with pytest.raises(ValueError, match="unknown category"):
        build_taxonomy(document)


def test_default_category_must_be_declared() -> None:
    with pytest.raises(ValueError, match="Default category"):
        build_taxonomy({"categories": ["A"], "default_category": "Inne"})
