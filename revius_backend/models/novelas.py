from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from revius_backend.utils.text import normalize_title_key

_KNOWN_KEYS = {
    "id",
    "title",
    "country",
    "broadcaster",
    "year",
    "genre",
    "synopsis",
    "cast",
    "episodes",
    "director",
    "author",
    "language",
    "wikipediaUrl",
    "imageUrl",
    "scraped",
    "createdAt",
    "updatedAt",
}


@dataclass(frozen=True)
class YearRange:
    start: int
    end: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_value(cls, value: Any) -> "YearRange | None":
        if isinstance(value, Mapping):
            start = value.get("start")
            if isinstance(start, int):
                end = value.get("end")
                return cls(start=start, end=end if isinstance(end, int) else None)
            return None
        if isinstance(value, int):
            return cls(start=value)
        return None


@dataclass
class NovelaRecord:
    """
    One telenovela in the persisted catalog.

    `id` is a per-run slug with a sequence suffix and is not stable across runs;
    identity for dedup and merge is `key` (the normalized title).
    """

    id: str
    title: str
    country: str
    broadcaster: str
    year: YearRange | None = None
    genre: list[str] = field(default_factory=list)
    synopsis: str = ""
    cast: list[str] = field(default_factory=list)
    episodes: int | None = None
    director: str = ""
    author: str = ""
    language: str = ""
    wikipedia_url: str = ""
    image_url: str = ""
    scraped: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return normalize_title_key(self.title)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "id": self.id,
                "title": self.title,
                "country": self.country,
                "broadcaster": self.broadcaster,
                "year": self.year.to_dict() if self.year else None,
                "genre": list(self.genre),
                "synopsis": self.synopsis,
                "cast": list(self.cast),
                "episodes": self.episodes,
                "director": self.director,
                "author": self.author,
                "wikipediaUrl": self.wikipedia_url,
                "imageUrl": self.image_url,
                "scraped": self.scraped,
            }
        )
        if self.language:
            payload["language"] = self.language
        if self.created_at:
            payload["createdAt"] = self.created_at
        if self.updated_at:
            payload["updatedAt"] = self.updated_at
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NovelaRecord":
        episodes = data.get("episodes")
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            country=str(data.get("country") or ""),
            broadcaster=str(data.get("broadcaster") or ""),
            year=YearRange.from_value(data.get("year")),
            genre=[str(g) for g in data.get("genre") or [] if str(g).strip()],
            synopsis=str(data.get("synopsis") or ""),
            cast=[str(c) for c in data.get("cast") or [] if str(c).strip()],
            episodes=episodes if isinstance(episodes, int) else None,
            director=str(data.get("director") or ""),
            author=str(data.get("author") or ""),
            language=str(data.get("language") or ""),
            wikipedia_url=str(data.get("wikipediaUrl") or ""),
            image_url=str(data.get("imageUrl") or ""),
            scraped=data.get("scraped") if isinstance(data.get("scraped"), str) else None,
            created_at=data.get("createdAt") if isinstance(data.get("createdAt"), str) else None,
            updated_at=data.get("updatedAt") if isinstance(data.get("updatedAt"), str) else None,
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )


@dataclass
class NovelaCatalog:
    metadata: dict[str, Any] = field(default_factory=dict)
    novelas: list[NovelaRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"metadata": dict(self.metadata), "novelas": [n.to_dict() for n in self.novelas]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NovelaCatalog":
        metadata = data.get("metadata")
        novelas = data.get("novelas")
        return cls(
            metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
            novelas=[NovelaRecord.from_dict(n) for n in novelas or [] if isinstance(n, Mapping)],
        )
