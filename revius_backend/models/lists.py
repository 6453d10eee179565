from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from revius_backend.utils.text import slugify


class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"
    ANIME = "anime"
    MANGA = "manga"
    NOVELA = "novela"


MANUAL_SOURCE = "manual"


@dataclass(frozen=True)
class RawListEntry:
    title: str
    year: int | None = None


@dataclass(frozen=True)
class CandidateMatch:
    title: str
    external_id: str
    media_type: MediaType
    source_name: str
    year: int | None = None
    poster_url: str | None = None
    rating: float | None = None
    synopsis: str | None = None
    external_url: str | None = None


def manual_external_id(title: str, year: int | None) -> str:
    slug = slugify(title, max_length=80) or "untitled"
    return f"{MANUAL_SOURCE}-{slug}-{year if year is not None else 'unknown'}"


@dataclass(frozen=True)
class ResolvedListItem:
    """
    Persisted outcome of reconciling one scraped entry (maps to `user_list_items`).

    `source_name` records provenance; unmatched entries carry the synthetic "manual" source.
    """

    list_id: str
    position: int
    title: str
    external_id: str
    media_type: MediaType
    source_name: str
    year: int | None = None
    poster_url: str | None = None
    rating: float | None = None
    synopsis: str | None = None
    external_url: str | None = None

    @property
    def is_manual(self) -> bool:
        return self.source_name == MANUAL_SOURCE

    @classmethod
    def from_candidate(cls, candidate: CandidateMatch, *, list_id: str, position: int) -> "ResolvedListItem":
        return cls(
            list_id=list_id,
            position=position,
            title=candidate.title,
            year=candidate.year,
            external_id=candidate.external_id,
            media_type=candidate.media_type,
            source_name=candidate.source_name,
            poster_url=candidate.poster_url,
            rating=candidate.rating,
            synopsis=candidate.synopsis,
            external_url=candidate.external_url,
        )

    @classmethod
    def manual(cls, entry: RawListEntry, *, list_id: str, position: int) -> "ResolvedListItem":
        return cls(
            list_id=list_id,
            position=position,
            title=entry.title,
            year=entry.year,
            external_id=manual_external_id(entry.title, entry.year),
            media_type=MediaType.MOVIE,
            source_name=MANUAL_SOURCE,
        )

    def to_row(self, *, owner_user_id: str) -> dict[str, Any]:
        return {
            "list_id": self.list_id,
            "media_id": self.external_id,
            "media_title": self.title,
            "media_type": self.media_type.value,
            "media_year": self.year,
            "media_thumbnail": self.poster_url,
            "media_synopsis": self.synopsis,
            "user_id": owner_user_id,
            "position": self.position,
        }


@dataclass(frozen=True)
class ImportedList:
    id: str
    name: str
    description: str
    is_public: bool
    owner_user_id: str
    created_at: str | None = None


@dataclass(frozen=True)
class FailedItem:
    title: str
    year: int | None
    reason: str
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "year": self.year, "reason": self.reason, "position": self.position}


@dataclass(frozen=True)
class ImportResult:
    success: bool
    list_id: str | None
    list_name: str
    items_count: int
    matched_count: int
    failed_count: int
    match_percentage: int
    failed_items: list[FailedItem] = field(default_factory=list)
    list_description: str = ""
    service: str = "letterboxd"
    message: str = ""

    @property
    def fully_matched(self) -> bool:
        return self.success and self.failed_count == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "listId": self.list_id,
            "listName": self.list_name,
            "listDescription": self.list_description,
            "service": self.service,
            "itemsCount": self.items_count,
            "matchedCount": self.matched_count,
            "failedCount": self.failed_count,
            "matchPercentage": self.match_percentage,
            "fullyMatched": self.fully_matched,
            "failedItems": [item.to_dict() for item in self.failed_items],
            "message": self.message,
        }
