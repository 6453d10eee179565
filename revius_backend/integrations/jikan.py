from __future__ import annotations

from typing import Any, Mapping

import requests

from revius_backend.integrations.http import HttpClientError, request_json

JIKAN_API_BASE_URL = "https://api.jikan.moe/v4"


class JikanClientError(HttpClientError):
    pass


def _search(kind: str, title: str, *, limit: int, session: requests.Session | None) -> list[dict[str, Any]]:
    payload = request_json(
        session or requests.Session(),
        f"{JIKAN_API_BASE_URL}/{kind}",
        params={"q": title, "limit": limit, "sfw": "true"},
        error_cls=JikanClientError,
        label="Jikan",
    )
    data = payload.get("data")
    if not isinstance(data, list):
        return []
    return [d for d in data if isinstance(d, dict)]


def search_anime(title: str, *, limit: int = 10, session: requests.Session | None = None) -> list[dict[str, Any]]:
    return _search("anime", title, limit=limit, session=session)


def search_manga(title: str, *, limit: int = 10, session: requests.Session | None = None) -> list[dict[str, Any]]:
    return _search("manga", title, limit=limit, session=session)


def image_url(item: Mapping[str, Any]) -> str | None:
    images = item.get("images")
    if not isinstance(images, Mapping):
        return None
    jpg = images.get("jpg")
    if not isinstance(jpg, Mapping):
        return None
    for key in ("large_image_url", "image_url"):
        value = jpg.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def release_year(item: Mapping[str, Any]) -> int | None:
    year = item.get("year")
    if isinstance(year, int):
        return year
    # Manga has no `year`; fall back to the aired/published start date.
    for key in ("aired", "published"):
        window = item.get(key)
        if not isinstance(window, Mapping):
            continue
        prop = window.get("prop")
        if not isinstance(prop, Mapping):
            continue
        start = prop.get("from")
        if isinstance(start, Mapping) and isinstance(start.get("year"), int):
            return start["year"]
    return None
