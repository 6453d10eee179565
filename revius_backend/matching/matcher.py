from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Sequence

from revius_backend.matching.similarity import rank_and_filter
from revius_backend.matching.sources import JikanSource, NovelaCatalogSource, OmdbSource, SourceAdapter, TmdbSource
from revius_backend.models.lists import CandidateMatch, RawListEntry
from revius_backend.repositories.novela_catalog import CatalogStore
from revius_backend.utils.pacing import CancellationToken, raise_if_cancelled
from revius_backend.utils.text import normalize_title_key

logger = logging.getLogger(__name__)

# Fan-in order; the first occurrence of a duplicate candidate wins.
SOURCE_PRIORITY: tuple[str, ...] = ("tmdb", "omdb", "jikan", "novela")

MAX_CANDIDATES = 5


def dedupe_candidates(candidates: Iterable[CandidateMatch]) -> list[CandidateMatch]:
    seen: set[tuple[str, int | None, str]] = set()
    out: list[CandidateMatch] = []
    for candidate in candidates:
        key = (normalize_title_key(candidate.title), candidate.year, candidate.media_type.value)
        if key in seen:
            continue
        seen.add(key)
        out.append(candidate)
    return out


class MultiSourceMatcher:
    """
    Fans a title search out to every source adapter concurrently and returns the ranked best matches.

    A source that raises is logged and contributes no candidates; `search` itself never raises
    for adapter failures.
    """

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        *,
        priority: Sequence[str] = SOURCE_PRIORITY,
        max_candidates: int = MAX_CANDIDATES,
    ) -> None:
        order = {name: idx for idx, name in enumerate(priority)}
        self.adapters = sorted(adapters, key=lambda a: order.get(a.name, len(order)))
        self.max_candidates = max_candidates
        self._pool = ThreadPoolExecutor(max_workers=max(1, len(self.adapters)), thread_name_prefix="matcher")

    def _search_one(self, adapter: SourceAdapter, title: str, year: int | None) -> list[CandidateMatch]:
        try:
            return list(adapter.search(title, year))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Source %s failed for %r: %s: %s", adapter.name, title, exc.__class__.__name__, exc)
            return []

    def search(
        self,
        title: str,
        year: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CandidateMatch]:
        raise_if_cancelled(cancel_token, "search")

        futures = [self._pool.submit(self._search_one, adapter, title, year) for adapter in self.adapters]
        # Joined in adapter (priority) order, not completion order.
        gathered: list[CandidateMatch] = []
        for adapter, future in zip(self.adapters, futures):
            results = future.result()
            logger.debug("Source %s returned %d candidates for %r", adapter.name, len(results), title)
            gathered.extend(results)

        ranked = rank_and_filter(RawListEntry(title=title, year=year), dedupe_candidates(gathered))
        return ranked[: self.max_candidates]

    def close(self) -> None:
        self._pool.shutdown(wait=True)

    def __enter__(self) -> "MultiSourceMatcher":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


def build_default_matcher(*, catalog_store: CatalogStore | None = None) -> MultiSourceMatcher:
    """TMDb, OMDb and Jikan adapters, plus the novela catalog when a store is given."""

    adapters: list[SourceAdapter] = [TmdbSource(), OmdbSource(), JikanSource()]
    if catalog_store is not None:
        adapters.append(NovelaCatalogSource(catalog_store))
    return MultiSourceMatcher(adapters)
