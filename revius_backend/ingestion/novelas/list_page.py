from __future__ import annotations

import itertools
import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterator
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from revius_backend.ingestion.novelas.config import estimate_episodes, placeholder_synopsis
from revius_backend.ingestion.novelas.dedupe import deduplicate
from revius_backend.ingestion.novelas.row_parsers import ParsedRow, get_row_parser
from revius_backend.ingestion.novelas.sources import WikipediaSource
from revius_backend.models.novelas import NovelaRecord, YearRange
from revius_backend.utils.text import clean_text, slugify

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 3
MAX_TITLE_LENGTH = 100

INVALID_TITLE_TERMS: tuple[str, ...] = (
    "lista de",
    "anexo:",
    "categoria:",
    "página principal",
    "conteúdo destacado",
    "eventos atuais",
    "esplanada",
    "página aleatória",
    "portais",
    "páginas especiais",
    "boas-vindas",
    "ajuda",
    "páginas de testes",
    "portal comunitário",
    "mudanças recentes",
    "manutenção",
    "criar página",
    "páginas novas",
    "contato",
    "artigo",
    "ler",
    "páginas afluentes",
    "alterações relacionadas",
    "desambiguação",
    "sobre a wikipédia",
    "avisos gerais",
    "desambiguações de",
    "especial:",
    "wikipedia:",
    "wikimedia",
    "discussão:",
    "usuário:",
    "ficheiro:",
    "mídia:",
    "predefinição:",
    "módulo:",
    "editar",
    "histórico",
    "ver código",
    "imprimir",
    "exportar",
    "ferramentas",
    "navegar",
    "busca",
    "contribuir",
    "interação",
    "acessibilidade",
)

INVALID_URL_PATTERNS: tuple[str, ...] = (
    "/especial:",
    "/wikipedia:",
    "/portal:",
    "/categoria:",
    "/ajuda:",
    "/ficheiro:",
    "/mídia:",
    "/predefinição:",
    "/módulo:",
    "/discussão:",
    "/usuário:",
    "/wikimedia",
)

_CONTENT_LIST_SELECTOR = (
    "#mw-content-text ul li, #mw-content-text ol li, .mw-parser-output ul li, .mw-parser-output ol li"
)
_SKIP_CONTAINER_CLASSES = ("navbox", "infobox", "sidebar", "vector-menu", "reflist", "references")
_SKIP_CONTAINER_IDS = ("mw-navigation",)
_PAREN_YEAR_RE = re.compile(r"\((\d{4})\)")


def is_valid_novela(title: str | None, wikipedia_url: str | None = None) -> bool:
    """
    Reject wiki navigation/namespace labels and titles outside the 3-100 character band.

    The term list is matched as plain substrings of the lower-cased title, so short terms like
    "ler" also reject titles that merely contain them.
    """

    if not title:
        return False
    if not MIN_TITLE_LENGTH <= len(title) <= MAX_TITLE_LENGTH:
        return False

    lowered = title.lower()
    if any(term in lowered for term in INVALID_TITLE_TERMS):
        return False

    if wikipedia_url:
        url = wikipedia_url.lower()
        if any(pattern in url for pattern in INVALID_URL_PATTERNS):
            return False
    return True


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _in_skipped_container(item: Tag) -> bool:
    for parent in item.parents:
        if not isinstance(parent, Tag):
            continue
        classes = parent.get("class") or []
        if any(cls in _SKIP_CONTAINER_CLASSES for cls in classes):
            return True
        if parent.get("id") in _SKIP_CONTAINER_IDS:
            return True
    return False


def _header_labels(row: Tag) -> list[str]:
    return [clean_text(th.get_text(" ", strip=True)) for th in row.find_all("th", recursive=False)]


class ListPageParser:
    """
    Turns a broadcaster list page into `NovelaRecord`s.

    Ids are `<slug>-<n>` with `n` counting up across every page this parser instance handles, so
    they are unique within a run but not stable between runs.
    """

    def __init__(self, *, clock: Callable[[], str] = _now_iso) -> None:
        self._sequence = itertools.count(1)
        self._clock = clock

    def next_id(self, title: str) -> str:
        return f"{slugify(title, max_length=50)}-{next(self._sequence)}"

    def build_record(self, row: ParsedRow, source: WikipediaSource) -> NovelaRecord:
        return NovelaRecord(
            id=self.next_id(row.title),
            title=row.title,
            country=source.country,
            broadcaster=source.broadcaster,
            year=row.year,
            genre=list(row.genres) or ["Drama"],
            synopsis=placeholder_synopsis(row.title, source.country, source.broadcaster),
            cast=[],
            episodes=row.episodes or estimate_episodes(source.country),
            director=row.director,
            author=row.author,
            wikipedia_url=row.wikipedia_url,
            image_url="",
            scraped=self._clock(),
        )

    def _table_rows(self, soup: BeautifulSoup, source: WikipediaSource) -> Iterator[ParsedRow]:
        parser = get_row_parser(source.source_type, base_url=source.base_url)
        for table in soup.select("table.wikitable, table.sortable"):
            headers: list[str] = []
            for row in table.find_all("tr"):
                if row.find_parent("table") is not table:
                    continue
                cells = row.find_all(["td", "th"], recursive=False)
                if not row.find("td", recursive=False):
                    if not headers:
                        headers = _header_labels(row)
                    continue
                if len(cells) < 2:
                    continue
                parsed = parser.parse(cells, headers)
                if parsed is not None:
                    yield parsed

    def _content_list_items(self, soup: BeautifulSoup, source: WikipediaSource) -> Iterator[ParsedRow]:
        for item in soup.select(_CONTENT_LIST_SELECTOR):
            link = next(
                (a for a in item.find_all("a", href=True) if not str(a.get("href") or "").startswith("#")),
                None,
            )
            if link is None or _in_skipped_container(item):
                continue
            title = clean_text(link.get_text(" ", strip=True))
            if len(title) < MIN_TITLE_LENGTH:
                continue

            href = str(link.get("href") or "")
            url = urljoin(source.base_url, href) if href.startswith("/wiki/") else ""
            match = _PAREN_YEAR_RE.search(item.get_text(" ", strip=True))
            yield ParsedRow(
                title=title,
                year=YearRange(start=int(match.group(1))) if match else None,
                wikipedia_url=url,
            )

    def parse(self, html: str, source: WikipediaSource) -> list[NovelaRecord]:
        soup = BeautifulSoup(html or "", "html.parser")
        records: list[NovelaRecord] = []
        rejected = 0
        for parsed in itertools.chain(self._table_rows(soup, source), self._content_list_items(soup, source)):
            if not is_valid_novela(parsed.title, parsed.wikipedia_url):
                rejected += 1
                continue
            records.append(self.build_record(parsed, source))

        unique = deduplicate(records)
        logger.debug(
            "%s: %d rows kept, %d rejected, %d duplicates",
            source.broadcaster,
            len(unique),
            rejected,
            len(records) - len(unique),
        )
        return unique
