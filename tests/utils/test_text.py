from __future__ import annotations

import pytest

from revius_backend.utils.text import (
    clean_text,
    extract_episode_count,
    extract_first_int,
    extract_genres,
    extract_year_range,
    normalize_title_key,
    slugify,
    split_names,
    strip_accents,
    strip_year_suffix,
)


@pytest.mark.parametrize(
    "title",
    ["Avenida Brasil", "avenida  brasil!", "Avenída Brasil", "AVENIDA-BRASIL"],
)
def test_normalize_title_key_ignores_case_accents_and_punctuation(title: str) -> None:
    assert normalize_title_key(title) == "avenidabrasil"


def test_normalize_title_key_empty() -> None:
    assert normalize_title_key(None) == ""
    assert normalize_title_key("!!!") == "!!!"


@pytest.mark.parametrize(
    ("title", "expected"),
    [("七人の侍", "七人の侍"), ("Сталкер", "сталкер"), ("ゴジラ", "ゴジラ"), ("Héroes 2", "heroes2")],
)
def test_normalize_title_key_keeps_non_latin_letters(title: str, expected: str) -> None:
    assert normalize_title_key(title) == expected


def test_strip_accents_keeps_marks_outside_latin_script() -> None:
    assert strip_accents("Órfãos") == "Orfaos"
    assert normalize_title_key("ゴジラ") != normalize_title_key("コシラ")
    assert strip_accents("Чайка й") == "Чайка й"


def test_slugify_strips_accents_and_truncates() -> None:
    assert slugify("Órfãos da Terra") == "orfaos-da-terra"
    assert slugify("a" * 80, max_length=10) == "a" * 10


def test_strip_year_suffix() -> None:
    assert strip_year_suffix("Heat (1995)") == ("Heat", 1995)
    assert strip_year_suffix("  Fargo ") == ("Fargo", None)
    assert strip_year_suffix("1917 (2019)") == ("1917", 2019)


def test_clean_text_removes_reference_markers() -> None:
    assert clean_text("Amor  Sem Igual[1] [nota 2]") == "Amor Sem Igual"
    assert clean_text(None) == ""


def test_extract_year_range_prefers_explicit_range() -> None:
    assert extract_year_range(["2012", "exibida 2012–2013"]) == (2012, 2013)
    assert extract_year_range(["21h", "2020"]) == (2020, None)
    assert extract_year_range(["", "sem data"]) is None


def test_extract_episode_counts() -> None:
    assert extract_episode_count("180 capítulos") == 180
    assert extract_episode_count("16 ep.") == 16
    assert extract_episode_count("Rede Globo") is None
    assert extract_first_int("1.200 episódios") == 1200
    assert extract_first_int("") is None


def test_extract_genres_deduplicates_and_capitalizes() -> None:
    assert extract_genres(["Drama romântico", "romance, drama", "Musical"]) == ["Drama", "Romance", "Musical"]


def test_split_names() -> None:
    assert split_names("Day Mesquita\nRafael Cardoso, Bárbara França", limit=2) == ["Day Mesquita", "Rafael Cardoso"]
    assert split_names("") == []
