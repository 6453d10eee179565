from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from revius_backend.models.lists import CandidateMatch, RawListEntry


@dataclass(frozen=True)
class SourcePolicy:
    min_similarity: float
    year_tolerance: int


# Anime/manga and novela titles go through translation and localization, so those
# sources accept looser titles and a wider year window.
SOURCE_POLICIES: dict[str, SourcePolicy] = {
    "tmdb": SourcePolicy(min_similarity=0.7, year_tolerance=1),
    "omdb": SourcePolicy(min_similarity=0.7, year_tolerance=1),
    "jikan": SourcePolicy(min_similarity=0.6, year_tolerance=2),
    "novela": SourcePolicy(min_similarity=0.6, year_tolerance=2),
}
DEFAULT_POLICY = SourcePolicy(min_similarity=0.7, year_tolerance=1)


def policy_for(source_name: str) -> SourcePolicy:
    return SOURCE_POLICIES.get(source_name, DEFAULT_POLICY)


def levenshtein_distance(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """
    Normalized edit similarity in [0, 1]: `1 - distance / max(len(a), len(b))` on lower-cased input.
    """

    left = (a or "").lower()
    right = (b or "").lower()
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(left, right) / longest


def passes_gate(entry: RawListEntry, candidate: CandidateMatch) -> bool:
    policy = policy_for(candidate.source_name)
    if similarity(entry.title, candidate.title) <= policy.min_similarity:
        return False
    if entry.year is not None and candidate.year is not None:
        if abs(entry.year - candidate.year) > policy.year_tolerance:
            return False
    return True


def rank_and_filter(entry: RawListEntry, candidates: Iterable[CandidateMatch]) -> list[CandidateMatch]:
    eligible = [c for c in candidates if passes_gate(entry, c)]
    return sorted(
        eligible,
        key=lambda c: (similarity(entry.title, c.title), c.rating or 0.0),
        reverse=True,
    )
