"""
Per-catalog search adapters used by the multi-source matcher.

Adapters raise on transport/API errors; isolating those failures is the matcher's job.
"""

from __future__ import annotations

import logging
import re
import time
from threading import Lock
from typing import Any, Callable, Mapping, Protocol

import requests

from revius_backend.integrations import jikan, omdb
from revius_backend.integrations.tmdb import client as tmdb
from revius_backend.matching.similarity import similarity
from revius_backend.models.lists import CandidateMatch, MediaType
from revius_backend.models.novelas import NovelaRecord
from revius_backend.repositories.novela_catalog import CatalogStore
from revius_backend.utils.pacing import RateLimiter
from revius_backend.utils.text import normalize_title_key

logger = logging.getLogger(__name__)

JIKAN_INTER_REQUEST_DELAY_SECONDS = 0.5

_LEADING_YEAR_RE = re.compile(r"^\s*(\d{4})")


class SourceAdapter(Protocol):
    name: str

    def search(self, title: str, year: int | None = None) -> list[CandidateMatch]: ...


def _year_from_text(value: Any) -> int | None:
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    match = _LEADING_YEAR_RE.match(value)
    return int(match.group(1)) if match else None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _as_nonempty_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _year_matches(candidate_year: int | None, year: int | None, tolerance: int) -> bool:
    # Results with no parseable year are kept.
    if year is None or candidate_year is None:
        return True
    return abs(candidate_year - year) <= tolerance


class TmdbSource:
    name = "tmdb"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        session: requests.Session | None = None,
        min_interval_seconds: float = 0.25,
        max_results_per_kind: int = 5,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()
        self.rate_limiter = RateLimiter(min_interval_seconds)
        self.max_results_per_kind = max_results_per_kind

    def _to_candidate(self, item: Mapping[str, Any], kind: str) -> CandidateMatch | None:
        tmdb_id = item.get("id")
        if not isinstance(tmdb_id, int):
            return None
        title = _as_nonempty_str(item.get("title") if kind == "movie" else item.get("name"))
        if not title:
            return None
        date_value = item.get("release_date") if kind == "movie" else item.get("first_air_date")
        return CandidateMatch(
            title=title,
            year=_year_from_text(date_value),
            external_id=f"tmdb-{kind}-{tmdb_id}",
            media_type=MediaType.MOVIE if kind == "movie" else MediaType.TV,
            source_name=self.name,
            poster_url=tmdb.poster_url(item.get("poster_path")),
            rating=_as_float(item.get("vote_average")),
            synopsis=_as_nonempty_str(item.get("overview")),
            external_url=tmdb.web_url(kind, tmdb_id),
        )

    def search(self, title: str, year: int | None = None) -> list[CandidateMatch]:
        if not tmdb.resolve_api_key(self.api_key):
            logger.debug("TMDB_API_KEY not set; skipping TMDb search")
            return []

        candidates: list[CandidateMatch] = []
        for kind, fetch in (("movie", tmdb.search_movie), ("tv", tmdb.search_tv)):
            self.rate_limiter.wait()
            results = fetch(title, api_key=self.api_key, session=self.session)
            kept = 0
            for item in results:
                candidate = self._to_candidate(item, kind)
                if candidate is None or not _year_matches(candidate.year, year, 1):
                    continue
                candidates.append(candidate)
                kept += 1
                if kept >= self.max_results_per_kind:
                    break
        return candidates


class OmdbSource:
    name = "omdb"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        session: requests.Session | None = None,
        min_interval_seconds: float = 0.1,
        max_results_per_kind: int = 5,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()
        self.rate_limiter = RateLimiter(min_interval_seconds)
        self.max_results_per_kind = max_results_per_kind

    def search(self, title: str, year: int | None = None) -> list[CandidateMatch]:
        if not omdb.resolve_api_key(self.api_key):
            logger.debug("OMDB_API_KEY not set; skipping OMDb search")
            return []

        candidates: list[CandidateMatch] = []
        for omdb_type, media_type in (("movie", MediaType.MOVIE), ("series", MediaType.TV)):
            self.rate_limiter.wait()
            results = omdb.search(title, media_type=omdb_type, api_key=self.api_key, session=self.session)
            kept = 0
            for item in results:
                imdb_id = _as_nonempty_str(item.get("imdbID"))
                item_title = _as_nonempty_str(item.get("Title"))
                if not imdb_id or not item_title:
                    continue
                item_year = _year_from_text(item.get("Year"))
                if not _year_matches(item_year, year, 1):
                    continue
                candidates.append(
                    CandidateMatch(
                        title=item_title,
                        year=item_year,
                        external_id=imdb_id,
                        media_type=media_type,
                        source_name=self.name,
                        poster_url=omdb.clean_poster(item.get("Poster")),
                        external_url=omdb.IMDB_TITLE_URL.format(imdb_id=imdb_id),
                    )
                )
                kept += 1
                if kept >= self.max_results_per_kind:
                    break
        return candidates


class JikanSource:
    """
    Anime + manga search on Jikan.

    The two calls are always separated by `inter_request_delay` seconds; Jikan rejects bursts.
    """

    name = "jikan"

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        inter_request_delay: float = JIKAN_INTER_REQUEST_DELAY_SECONDS,
        min_interval_seconds: float = JIKAN_INTER_REQUEST_DELAY_SECONDS,
        max_results_per_kind: int = 5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session or requests.Session()
        self.inter_request_delay = inter_request_delay
        self.rate_limiter = RateLimiter(min_interval_seconds)
        self.max_results_per_kind = max_results_per_kind
        self._sleep = sleep

    def _to_candidate(self, item: Mapping[str, Any], media_type: MediaType, query: str) -> CandidateMatch | None:
        mal_id = item.get("mal_id")
        if not isinstance(mal_id, int):
            return None
        titles = [t for t in (_as_nonempty_str(item.get("title")), _as_nonempty_str(item.get("title_english"))) if t]
        if not titles:
            return None
        best_title = max(titles, key=lambda t: similarity(query, t))
        return CandidateMatch(
            title=best_title,
            year=jikan.release_year(item),
            external_id=f"jikan-{media_type.value}-{mal_id}",
            media_type=media_type,
            source_name=self.name,
            poster_url=jikan.image_url(item),
            rating=_as_float(item.get("score")),
            synopsis=_as_nonempty_str(item.get("synopsis")),
            external_url=_as_nonempty_str(item.get("url")),
        )

    def _collect(
        self, results: list[dict[str, Any]], media_type: MediaType, title: str, year: int | None
    ) -> list[CandidateMatch]:
        out: list[CandidateMatch] = []
        for item in results:
            candidate = self._to_candidate(item, media_type, title)
            if candidate is None or not _year_matches(candidate.year, year, 2):
                continue
            out.append(candidate)
            if len(out) >= self.max_results_per_kind:
                break
        return out

    def search(self, title: str, year: int | None = None) -> list[CandidateMatch]:
        self.rate_limiter.wait()
        anime = jikan.search_anime(title, session=self.session)
        self._sleep(self.inter_request_delay)
        self.rate_limiter.wait()
        manga = jikan.search_manga(title, session=self.session)
        return self._collect(anime, MediaType.ANIME, title, year) + self._collect(manga, MediaType.MANGA, title, year)


class NovelaCatalogSource:
    """
    Search over the scraped novela catalog through any `CatalogStore` backend.

    Records are loaded once and cached; call `refresh()` after the catalog is rewritten.
    """

    name = "novela"

    def __init__(self, store: CatalogStore, *, min_similarity: float = 0.5, max_results: int = 5) -> None:
        self.store = store
        self.min_similarity = min_similarity
        self.max_results = max_results
        self._records: list[NovelaRecord] | None = None
        self._lock = Lock()

    def refresh(self) -> None:
        with self._lock:
            self._records = None

    def _load(self) -> list[NovelaRecord]:
        with self._lock:
            if self._records is None:
                self._records = list(self.store.load().novelas)
            return self._records

    def search(self, title: str, year: int | None = None) -> list[CandidateMatch]:
        query_key = normalize_title_key(title)
        if not query_key:
            return []

        scored: list[tuple[float, NovelaRecord]] = []
        for record in self._load():
            record_key = record.key
            if not record_key:
                continue
            score = similarity(query_key, record_key)
            if query_key in record_key or record_key in query_key:
                score = max(score, self.min_similarity)
            if score < self.min_similarity:
                continue
            start = record.year.start if record.year else None
            if not _year_matches(start, year, 2):
                continue
            scored.append((score, record))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            CandidateMatch(
                title=record.title,
                year=record.year.start if record.year else None,
                external_id=f"novela-{record.key}",
                media_type=MediaType.NOVELA,
                source_name=self.name,
                poster_url=record.image_url or None,
                synopsis=record.synopsis or None,
                external_url=record.wikipedia_url or None,
            )
            for _, record in scored[: self.max_results]
        ]
