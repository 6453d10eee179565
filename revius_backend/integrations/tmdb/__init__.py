"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from revius_backend.integrations.tmdb.client import (
        TmdbClientError,
        resolve_api_key,
        search_movie,
        search_tv,
    )

__all__ = [
    "TmdbClientError",
    "resolve_api_key",
    "search_movie",
    "search_tv",
]


def __getattr__(name: str):
    if name in __all__:
        from revius_backend.integrations.tmdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
