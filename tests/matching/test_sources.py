from __future__ import annotations

from typing import Any

import pytest

from revius_backend.integrations import jikan as jikan_client
from revius_backend.integrations.tmdb import client as tmdb_client
from revius_backend.matching.sources import JikanSource, NovelaCatalogSource, OmdbSource, TmdbSource
from revius_backend.models.lists import MediaType
from revius_backend.models.novelas import NovelaCatalog, NovelaRecord, YearRange
from revius_backend.repositories.novela_catalog import InMemoryCatalogStore


def test_tmdb_source_without_api_key_returns_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)

    def _unexpected(*_args: Any, **_kwargs: Any) -> list[dict[str, Any]]:
        raise AssertionError("TMDb should not be called without a key")

    monkeypatch.setattr(tmdb_client, "search_movie", _unexpected)
    assert TmdbSource().search("Heat", 1995) == []


def test_omdb_source_without_api_key_returns_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OMDB_API_KEY", raising=False)
    assert OmdbSource().search("Heat", 1995) == []


def test_tmdb_source_maps_movies_and_tv_and_filters_years(monkeypatch: pytest.MonkeyPatch) -> None:
    def _movies(title: str, **_kwargs: Any) -> list[dict[str, Any]]:
        return [
            {
                "id": 949,
                "title": "Heat",
                "release_date": "1995-12-15",
                "poster_path": "/heat.jpg",
                "vote_average": 7.9,
                "overview": "A group of professional bank robbers...",
            },
            {"id": 1, "title": "Heat", "release_date": "1986-03-14"},
            {"id": "bad", "title": "Heat"},
        ]

    def _tv(title: str, **_kwargs: Any) -> list[dict[str, Any]]:
        return [{"id": 77, "name": "Heat", "first_air_date": "1996-01-01"}]

    monkeypatch.setattr(tmdb_client, "search_movie", _movies)
    monkeypatch.setattr(tmdb_client, "search_tv", _tv)

    results = TmdbSource(api_key="test-key", min_interval_seconds=0).search("Heat", 1995)

    assert [(c.external_id, c.media_type, c.year) for c in results] == [
        ("tmdb-movie-949", MediaType.MOVIE, 1995),
        ("tmdb-tv-77", MediaType.TV, 1996),
    ]
    movie = results[0]
    assert movie.poster_url == "https://image.tmdb.org/t/p/w500/heat.jpg"
    assert movie.rating == 7.9
    assert movie.external_url == "https://www.themoviedb.org/movie/949"


class _OmdbResponse:
    status_code = 200
    headers: dict[str, str] = {}
    text = ""

    def __init__(self, payload: dict[str, Any]) -> None:
        self.payload = payload

    def json(self) -> dict[str, Any]:
        return self.payload


class _OmdbSession:
    def __init__(self, by_type: dict[str, dict[str, Any]]) -> None:
        self.by_type = by_type
        self.params: list[dict[str, Any]] = []

    def get(self, url: str, *, params: dict[str, Any], **_kwargs: Any) -> _OmdbResponse:
        self.params.append(dict(params))
        return _OmdbResponse(self.by_type[params["type"]])


def test_omdb_source_maps_movies_and_series_and_filters_years() -> None:
    session = _OmdbSession(
        {
            "movie": {
                "Response": "True",
                "Search": [
                    {"Title": "Heat", "Year": "1995", "imdbID": "tt0113277", "Type": "movie", "Poster": "N/A"},
                    {"Title": "Heat", "Year": "1986", "imdbID": "tt0093164", "Type": "movie", "Poster": "N/A"},
                    {"Title": "Heat", "Year": "1996", "imdbID": "", "Type": "movie"},
                ],
            },
            "series": {
                "Response": "True",
                "Search": [
                    {
                        "Title": "Heat",
                        "Year": "1996\u20132001",
                        "imdbID": "tt0200001",
                        "Type": "series",
                        "Poster": "https://m.media-amazon.com/images/heat.jpg",
                    },
                ],
            },
        }
    )

    results = OmdbSource(api_key="test-key", session=session, min_interval_seconds=0).search("Heat", 1995)

    assert [p["type"] for p in session.params] == ["movie", "series"]
    assert [(c.external_id, c.media_type, c.year) for c in results] == [
        ("tt0113277", MediaType.MOVIE, 1995),
        ("tt0200001", MediaType.TV, 1996),
    ]
    movie, series = results
    assert movie.poster_url is None
    assert movie.rating is None
    assert movie.external_url == "https://www.imdb.com/title/tt0113277/"
    assert series.poster_url == "https://m.media-amazon.com/images/heat.jpg"
    assert series.source_name == "omdb"


def test_omdb_source_treats_not_found_as_empty() -> None:
    session = _OmdbSession(
        {
            "movie": {"Response": "False", "Error": "Movie not found!"},
            "series": {"Response": "False", "Error": "Series not found!"},
        }
    )
    assert OmdbSource(api_key="test-key", session=session, min_interval_seconds=0).search("Zzzz") == []


def test_jikan_source_waits_between_anime_and_manga(monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[str] = []

    def _anime(title: str, **_kwargs: Any) -> list[dict[str, Any]]:
        events.append("anime")
        return [{"mal_id": 47, "title": "Akira", "year": 1988, "score": 8.1}]

    def _manga(title: str, **_kwargs: Any) -> list[dict[str, Any]]:
        events.append("manga")
        return [
            {
                "mal_id": 664,
                "title": "Akira",
                "published": {"prop": {"from": {"year": 1982}}},
            }
        ]

    monkeypatch.setattr(jikan_client, "search_anime", _anime)
    monkeypatch.setattr(jikan_client, "search_manga", _manga)

    source = JikanSource(min_interval_seconds=0, sleep=lambda seconds: events.append(f"sleep:{seconds}"))
    results = source.search("Akira", 1988)

    assert events == ["anime", "sleep:0.5", "manga"]
    # The manga started in 1982, outside the two-year window.
    assert [(c.external_id, c.media_type) for c in results] == [("jikan-anime-47", MediaType.ANIME)]


def test_jikan_source_prefers_the_closest_title_variant(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        jikan_client,
        "search_anime",
        lambda title, **_kw: [{"mal_id": 1, "title": "Shingeki no Kyojin", "title_english": "Attack on Titan"}],
    )
    monkeypatch.setattr(jikan_client, "search_manga", lambda title, **_kw: [])

    results = JikanSource(min_interval_seconds=0, sleep=lambda _s: None).search("Attack on Titan")
    assert results[0].title == "Attack on Titan"


def _catalog_store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore(
        NovelaCatalog(
            novelas=[
                NovelaRecord(
                    id="avenida-brasil-1",
                    title="Avenida Brasil",
                    country="Brasil",
                    broadcaster="Globo",
                    year=YearRange(start=2012),
                    wikipedia_url="https://en.wikipedia.org/wiki/Avenida_Brasil",
                ),
                NovelaRecord(id="rei-davi-2", title="Rei Davi", country="Brasil", broadcaster="Record"),
            ]
        )
    )


def test_novela_catalog_source_matches_normalized_titles() -> None:
    source = NovelaCatalogSource(_catalog_store())

    results = source.search("avenida brasil!", 2013)
    assert len(results) == 1
    assert results[0].external_id == "novela-avenidabrasil"
    assert results[0].media_type == MediaType.NOVELA
    assert results[0].external_url == "https://en.wikipedia.org/wiki/Avenida_Brasil"

    assert source.search("Avenida Brasil", 2020) == []
    assert source.search("???") == []


def test_novela_catalog_source_caches_until_refresh() -> None:
    store = _catalog_store()
    source = NovelaCatalogSource(store)
    assert source.search("Rei Davi")

    store.save(NovelaCatalog())
    assert source.search("Rei Davi")

    source.refresh()
    assert source.search("Rei Davi") == []
