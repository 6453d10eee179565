from __future__ import annotations

import os
from typing import Any

import requests

from revius_backend.integrations.http import HttpClientError, request_json

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
TMDB_WEB_BASE_URL = "https://www.themoviedb.org"


class TmdbClientError(HttpClientError):
    pass


def _require_api_key(api_key: str | None) -> str:
    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    if not resolved:
        raise RuntimeError("TMDB_API_KEY is not set.")
    return resolved


def resolve_api_key(api_key: str | None = None) -> str | None:
    """
    Best-effort API key resolution for callers that want to continue when the key is missing.
    """

    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    return resolved or None


def _search(
    kind: str,
    title: str,
    *,
    year: int | None,
    api_key: str | None,
    session: requests.Session | None,
    language: str,
) -> list[dict[str, Any]]:
    api_key = _require_api_key(api_key)
    session = session or requests.Session()
    params: dict[str, Any] = {
        "api_key": api_key,
        "query": title,
        "language": language,
        "include_adult": "false",
        "page": 1,
    }
    if year is not None:
        params["year" if kind == "movie" else "first_air_date_year"] = int(year)

    payload = request_json(
        session,
        f"{TMDB_API_BASE_URL}/search/{kind}",
        params=params,
        error_cls=TmdbClientError,
        label="TMDb",
    )
    results = payload.get("results")
    if not isinstance(results, list):
        return []
    return [r for r in results if isinstance(r, dict)]


def search_movie(
    title: str,
    *,
    year: int | None = None,
    api_key: str | None = None,
    session: requests.Session | None = None,
    language: str = "en-US",
) -> list[dict[str, Any]]:
    """
    Search `/3/search/movie`.

    Returns raw result objects (`id`, `title`, `release_date`, `poster_path`, `vote_average`, `overview`).
    """

    return _search("movie", title, year=year, api_key=api_key, session=session, language=language)


def search_tv(
    title: str,
    *,
    year: int | None = None,
    api_key: str | None = None,
    session: requests.Session | None = None,
    language: str = "en-US",
) -> list[dict[str, Any]]:
    """
    Search `/3/search/tv`.

    Results use `name` / `first_air_date` instead of `title` / `release_date`.
    """

    return _search("tv", title, year=year, api_key=api_key, session=session, language=language)


def poster_url(poster_path: Any) -> str | None:
    if not isinstance(poster_path, str) or not poster_path.strip():
        return None
    return f"{TMDB_IMAGE_BASE_URL}{poster_path.strip()}"


def web_url(kind: str, tmdb_id: int | str) -> str:
    return f"{TMDB_WEB_BASE_URL}/{kind}/{tmdb_id}"
