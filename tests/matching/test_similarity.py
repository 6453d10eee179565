from __future__ import annotations

import pytest

from revius_backend.matching.similarity import levenshtein_distance, passes_gate, rank_and_filter, similarity
from revius_backend.models.lists import CandidateMatch, MediaType, RawListEntry


def _candidate(title: str, year: int | None, source: str = "tmdb", rating: float | None = None) -> CandidateMatch:
    return CandidateMatch(
        title=title,
        year=year,
        external_id=f"{source}-{title}",
        media_type=MediaType.MOVIE,
        source_name=source,
        rating=rating,
    )


@pytest.mark.parametrize(
    "a,b",
    [("Heat", "heat"), ("The Matrix", "Matrix"), ("Amor Sem Igual", "Amor sem Igual 2"), ("", "x")],
)
def test_similarity_is_symmetric_and_bounded(a: str, b: str) -> None:
    assert similarity(a, b) == similarity(b, a)
    assert 0.0 <= similarity(a, b) <= 1.0


def test_similarity_identity_and_case() -> None:
    assert similarity("Fargo", "Fargo") == 1.0
    assert similarity("FARGO", "fargo") == 1.0
    assert similarity("", "") == 1.0


def test_levenshtein_distance() -> None:
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


def test_year_gate_depends_on_source() -> None:
    entry = RawListEntry(title="Akira", year=1988)

    assert passes_gate(entry, _candidate("Akira", 1989, "tmdb"))
    assert not passes_gate(entry, _candidate("Akira", 1991, "tmdb"))
    assert passes_gate(entry, _candidate("Akira", 1990, "jikan"))
    assert not passes_gate(entry, _candidate("Akira", 1991, "jikan"))


def test_year_gate_skipped_when_either_year_unknown() -> None:
    assert passes_gate(RawListEntry(title="Akira"), _candidate("Akira", 1950))
    assert passes_gate(RawListEntry(title="Akira", year=1988), _candidate("Akira", None))


def test_similarity_threshold_depends_on_source() -> None:
    entry = RawListEntry(title="abcdefghijklmnopqrst")
    candidate_title = "abcdefghijklmXXXXXXX"
    assert similarity(entry.title, candidate_title) == pytest.approx(0.65)
    assert not passes_gate(entry, _candidate(candidate_title, None, "tmdb"))
    assert passes_gate(entry, _candidate(candidate_title, None, "jikan"))


def test_rank_and_filter_orders_by_similarity_then_rating() -> None:
    entry = RawListEntry(title="The Matrix", year=1999)
    ranked = rank_and_filter(
        entry,
        [
            _candidate("The Matrix Reloaded", 2003),
            _candidate("The Matrix", 1999, rating=7.0),
            _candidate("The Matrix", 1999, "omdb", rating=8.7),
            _candidate("The Matrixx", 1999),
        ],
    )
    assert [(c.title, c.source_name) for c in ranked] == [
        ("The Matrix", "omdb"),
        ("The Matrix", "tmdb"),
        ("The Matrixx", "tmdb"),
    ]
