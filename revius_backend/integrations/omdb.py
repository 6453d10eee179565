from __future__ import annotations

import os
from typing import Any

import requests

from revius_backend.integrations.http import HttpClientError, request_json

OMDB_API_BASE_URL = "https://www.omdbapi.com/"
IMDB_TITLE_URL = "https://www.imdb.com/title/{imdb_id}/"

OMDB_TYPES = ("movie", "series")


class OmdbClientError(HttpClientError):
    pass


def resolve_api_key(api_key: str | None = None) -> str | None:
    resolved = (api_key or os.getenv("OMDB_API_KEY") or "").strip()
    return resolved or None


def search(
    title: str,
    *,
    year: int | None = None,
    media_type: str = "movie",
    api_key: str | None = None,
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    """
    Search OMDb (`?s=`) for one type (`movie` or `series`).

    Results carry only `Title`, `Year`, `imdbID`, `Type` and `Poster`; no rating or plot.
    A "not found" answer (`Response: "False"`) is an empty result, not an error.
    """

    if media_type not in OMDB_TYPES:
        raise ValueError(f"Unsupported OMDb type: {media_type!r}")
    resolved_key = resolve_api_key(api_key)
    if not resolved_key:
        raise RuntimeError("OMDB_API_KEY is not set.")

    params: dict[str, Any] = {"apikey": resolved_key, "s": title, "type": media_type}
    if year is not None:
        params["y"] = int(year)

    payload = request_json(
        session or requests.Session(),
        OMDB_API_BASE_URL,
        params=params,
        error_cls=OmdbClientError,
        label="OMDb",
    )
    if str(payload.get("Response")) != "True":
        return []
    results = payload.get("Search")
    if not isinstance(results, list):
        return []
    return [r for r in results if isinstance(r, dict)]


def clean_poster(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped or stripped.upper() == "N/A":
        return None
    return stripped
