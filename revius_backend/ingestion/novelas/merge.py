from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from revius_backend.ingestion.novelas.details import MAX_GENRES, union_genres
from revius_backend.models.novelas import NovelaCatalog, NovelaRecord
from revius_backend.repositories.novela_catalog import CatalogStore

logger = logging.getLogger(__name__)

# Copied from an incoming record only when empty on the existing one.
FILL_ONLY_FIELDS: tuple[str, ...] = (
    "synopsis",
    "cast",
    "director",
    "author",
    "episodes",
    "image_url",
    "wikipedia_url",
)


@dataclass(frozen=True)
class MergeOutcome:
    novelas: list[NovelaRecord] = field(default_factory=list)
    added: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return len(self.novelas)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    if isinstance(value, int):
        return value <= 0
    return False


def merge_updates(existing: NovelaRecord, incoming: NovelaRecord) -> dict[str, Any]:
    """Field updates that fill gaps on `existing`; never overwrites a non-empty value."""

    updates: dict[str, Any] = {}
    for name in FILL_ONLY_FIELDS:
        new_value = getattr(incoming, name)
        if _is_empty(getattr(existing, name)) and not _is_empty(new_value):
            updates[name] = list(new_value) if isinstance(new_value, list) else new_value

    if incoming.genre:
        genres = union_genres(existing.genre, incoming.genre, cap=MAX_GENRES)
        if len(genres) > len(existing.genre):
            updates["genre"] = genres
    return updates


def merge_records(
    existing: Sequence[NovelaRecord],
    incoming: Iterable[NovelaRecord],
    *,
    now: str | None = None,
) -> MergeOutcome:
    """
    Merge `incoming` into `existing` by normalized-title key.

    Existing order is preserved and new records are appended. Neither input list is mutated.
    """

    timestamp = now or _now_iso()
    merged = [dataclasses.replace(record) for record in existing]
    index_by_key: dict[str, int] = {}
    for idx, record in enumerate(merged):
        index_by_key.setdefault(record.key, idx)

    added = 0
    updated = 0
    for record in incoming:
        key = record.key
        if not key:
            continue
        idx = index_by_key.get(key)
        if idx is None:
            index_by_key[key] = len(merged)
            merged.append(dataclasses.replace(record, created_at=record.created_at or timestamp))
            added += 1
            continue

        updates = merge_updates(merged[idx], record)
        if updates:
            merged[idx] = dataclasses.replace(merged[idx], updated_at=timestamp, **updates)
            updated += 1

    logger.info("Merge results: %d added, %d updated, %d total", added, updated, len(merged))
    return MergeOutcome(novelas=merged, added=added, updated=updated)


def build_metadata(novelas: Sequence[NovelaRecord], *, now: str | None = None) -> dict[str, Any]:
    timestamp = now or _now_iso()
    countries: set[str] = set()
    broadcasters: set[str] = set()
    genres: set[str] = set()
    total_episodes = 0
    start_years: list[int] = []

    for novela in novelas:
        if novela.country:
            countries.add(novela.country)
        if novela.broadcaster:
            broadcasters.add(novela.broadcaster)
        genres.update(g for g in novela.genre if g)
        if novela.episodes:
            total_episodes += novela.episodes
        if novela.year and novela.year.start:
            start_years.append(novela.year.start)

    oldest = min(start_years) if start_years else None
    newest = max(start_years) if start_years else None
    average = int(total_episodes / len(novelas) + 0.5) if novelas else 0
    return {
        "lastUpdated": timestamp,
        "totalNovelas": len(novelas),
        "countries": sorted(countries),
        "broadcasters": sorted(broadcasters),
        "genres": sorted(genres),
        "statistics": {
            "totalEpisodes": total_episodes,
            "averageEpisodes": average,
            "yearRange": f"{oldest}-{newest}" if oldest is not None else "Unknown",
            "oldestYear": oldest,
            "newestYear": newest,
        },
        "scrapedAt": timestamp,
    }


def merge_into_store(
    store: CatalogStore,
    incoming: Sequence[NovelaRecord],
    *,
    merge_with_existing: bool = True,
    now: str | None = None,
) -> tuple[NovelaCatalog, MergeOutcome]:
    """
    Load, merge and save the catalog under the store lock, backing up the previous file first.

    With `merge_with_existing=False` the incoming records replace the catalog.
    """

    timestamp = now or _now_iso()
    with store.lock():
        if not store.backup():
            logger.warning("Continuing without a catalog backup")
        if merge_with_existing:
            outcome = merge_records(store.load().novelas, incoming, now=timestamp)
        else:
            outcome = MergeOutcome(novelas=list(incoming), added=len(incoming), updated=0)
        catalog = NovelaCatalog(metadata=build_metadata(outcome.novelas, now=timestamp), novelas=outcome.novelas)
        store.save(catalog)
    logger.info(
        "Catalog saved: %d novelas, %d countries, %d broadcasters",
        len(catalog.novelas),
        len(catalog.metadata["countries"]),
        len(catalog.metadata["broadcasters"]),
    )
    return catalog, outcome
