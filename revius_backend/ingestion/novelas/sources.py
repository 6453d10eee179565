from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence
from urllib.parse import urlparse

from revius_backend.utils.text import strip_accents


class SourceType(str, Enum):
    RECORD_PAGE = "record_page"
    GLOBO_PAGE = "globo_page"
    BAND_PAGE = "band_page"
    SBT_PAGE = "sbt_page"
    GENERIC = "generic"


@dataclass(frozen=True)
class WikipediaSource:
    url: str
    broadcaster: str
    country: str
    source_type: SourceType = SourceType.GENERIC
    language: str = "pt"

    @property
    def base_url(self) -> str:
        parsed = urlparse(self.url)
        return f"{parsed.scheme or 'https'}://{parsed.netloc or f'{self.language}.wikipedia.org'}"


WIKIPEDIA_SOURCES: dict[str, tuple[WikipediaSource, ...]] = {
    "brasil": (
        WikipediaSource(
            url="https://pt.wikipedia.org/wiki/Lista_de_telenovelas_da_Record",
            broadcaster="Record",
            country="Brasil",
            source_type=SourceType.RECORD_PAGE,
            language="pt",
        ),
        WikipediaSource(
            url="https://en.wikipedia.org/wiki/List_of_TV_Globo_telenovelas",
            broadcaster="Globo",
            country="Brasil",
            source_type=SourceType.GLOBO_PAGE,
            language="en",
        ),
        WikipediaSource(
            url="https://pt.wikipedia.org/wiki/Lista_de_telenovelas_da_Band",
            broadcaster="Band",
            country="Brasil",
            source_type=SourceType.BAND_PAGE,
            language="pt",
        ),
        WikipediaSource(
            url="https://pt.wikipedia.org/wiki/Lista_de_telenovelas_do_SBT",
            broadcaster="SBT",
            country="Brasil",
            source_type=SourceType.SBT_PAGE,
            language="pt",
        ),
    ),
}


def _country_key(country: str) -> str:
    return strip_accents(country.strip().lower()).replace(" ", "_")


def get_all_sources() -> list[WikipediaSource]:
    return [source for sources in WIKIPEDIA_SOURCES.values() for source in sources]


def get_sources_by_country(country: str) -> list[WikipediaSource]:
    return list(WIKIPEDIA_SOURCES.get(_country_key(country), ()))


def filter_sources(sources: Iterable[WikipediaSource], countries: Sequence[str] | None) -> list[WikipediaSource]:
    """Keep sources whose country contains any requested name (case-insensitive); no filter keeps all."""

    wanted = [c.strip().lower() for c in countries or () if c and c.strip()]
    if not wanted:
        return list(sources)
    return [s for s in sources if any(w in s.country.lower() for w in wanted)]
