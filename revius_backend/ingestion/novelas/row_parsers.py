"""
Per-broadcaster strategies for turning one Wikipedia table row into a `ParsedRow`.

The broadcaster list pages disagree about which column holds the title, so each page type gets a
`RowParser` subclass that only overrides how the title cell is chosen. Year, episode, genre and
credit extraction is shared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence
from urllib.parse import urljoin

from bs4.element import Tag

from revius_backend.ingestion.novelas.sources import SourceType
from revius_backend.models.novelas import YearRange
from revius_backend.utils.text import (
    clean_text,
    extract_episode_count,
    extract_first_int,
    extract_genres,
    extract_year_range,
    split_names,
    strip_accents,
)

_AUTHOR_HEADERS = ("autor", "autoria", "author", "written", "escrit", "roteiro", "creat")
_DIRECTOR_HEADERS = ("dire",)
_EPISODE_HEADERS = ("capitulos", "episodios", "episodes", "cap.", "eps")


@dataclass(frozen=True)
class ParsedRow:
    title: str
    year: YearRange | None = None
    episodes: int | None = None
    author: str = ""
    director: str = ""
    wikipedia_url: str = ""
    genres: list[str] = field(default_factory=list)


def _header_index(headers: Sequence[str], keywords: Sequence[str]) -> int | None:
    for idx, header in enumerate(headers):
        folded = strip_accents(header).casefold()
        if any(keyword in folded for keyword in keywords):
            return idx
    return None


def _wiki_link(cell: Tag) -> Tag | None:
    for link in cell.find_all("a", href=True):
        href = str(link.get("href") or "")
        if href.startswith("/wiki/") and clean_text(link.get_text(" ", strip=True)):
            return link
    return None


class RowParser:
    """Generic strategy: the first cell carrying a wiki link holds the title, else the first cell."""

    title_column: int | None = None
    min_cells: int = 1

    def __init__(self, base_url: str = "https://pt.wikipedia.org") -> None:
        self.base_url = base_url

    def title_cell(self, cells: Sequence[Tag]) -> Tag | None:
        if self.title_column is None:
            for cell in cells:
                if _wiki_link(cell) is not None:
                    return cell
            return cells[0] if cells else None
        if len(cells) < max(self.min_cells, self.title_column + 1):
            return None
        return cells[self.title_column]

    def _title_and_url(self, cell: Tag) -> tuple[str, str]:
        link = _wiki_link(cell)
        if link is not None:
            return clean_text(link.get_text(" ", strip=True)), urljoin(self.base_url, str(link["href"]))
        return clean_text(cell.get_text(" ", strip=True)), ""

    def parse(self, cells: Sequence[Tag], headers: Sequence[str] = ()) -> ParsedRow | None:
        if not cells:
            return None

        chosen = self.title_cell(cells)
        title, url = self._title_and_url(chosen) if chosen is not None else ("", "")
        if not title:
            # Column missing or blank on this row.
            for cell in cells:
                title, url = self._title_and_url(cell)
                if title:
                    chosen = cell
                    break
        if not title:
            return None

        texts = [cell.get_text(" ", strip=True) for cell in cells]
        other_texts = [clean_text(text) for cell, text in zip(cells, texts) if cell is not chosen]

        year = extract_year_range(texts)
        episodes = self._episodes(cells, headers, other_texts)

        author = ""
        author_idx = _header_index(headers, _AUTHOR_HEADERS)
        if author_idx is not None and author_idx < len(cells) and cells[author_idx] is not chosen:
            author = ", ".join(split_names(cells[author_idx].get_text("\n", strip=True)))

        director = ""
        director_idx = _header_index(headers, _DIRECTOR_HEADERS)
        if director_idx is not None and director_idx < len(cells) and cells[director_idx] is not chosen:
            director = ", ".join(split_names(cells[director_idx].get_text("\n", strip=True)))

        return ParsedRow(
            title=title,
            year=YearRange(start=year[0], end=year[1]) if year else None,
            episodes=episodes,
            author=author,
            director=director,
            wikipedia_url=url,
            genres=extract_genres(other_texts),
        )

    def _episodes(self, cells: Sequence[Tag], headers: Sequence[str], other_texts: Sequence[str]) -> int | None:
        idx = _header_index(headers, _EPISODE_HEADERS)
        if idx is not None and idx < len(cells):
            # A dedicated column may hold a bare number.
            count = extract_first_int(cells[idx].get_text(" ", strip=True))
            if count:
                return count
        episodes = None
        for text in other_texts:
            found = extract_episode_count(text)
            if found:
                episodes = found
        return episodes


class GenericRowParser(RowParser):
    pass


class RecordRowParser(RowParser):
    """Record's list puts the title in the third column."""

    title_column = 2
    min_cells = 3


class GloboRowParser(RowParser):
    """The English Globo list puts the title first; links resolve against en.wikipedia.org."""

    title_column = 0

    def __init__(self, base_url: str = "https://en.wikipedia.org") -> None:
        super().__init__(base_url)


class BandRowParser(RowParser):
    title_column = 1


class SbtRowParser(RowParser):
    title_column = 0


_PARSERS: dict[SourceType, type[RowParser]] = {
    SourceType.RECORD_PAGE: RecordRowParser,
    SourceType.GLOBO_PAGE: GloboRowParser,
    SourceType.BAND_PAGE: BandRowParser,
    SourceType.SBT_PAGE: SbtRowParser,
    SourceType.GENERIC: GenericRowParser,
}


def get_row_parser(source_type: SourceType | str, *, base_url: str | None = None) -> RowParser:
    try:
        parser_cls = _PARSERS[SourceType(source_type)]
    except ValueError:
        parser_cls = GenericRowParser
    return parser_cls(base_url) if base_url else parser_cls()
