from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

import requests
from bs4 import BeautifulSoup

from revius_backend.integrations.http import fetch_html, resolve_redirects
from revius_backend.models.lists import RawListEntry
from revius_backend.utils.text import normalize_title_key, strip_year_suffix

logger = logging.getLogger(__name__)

SUPPORTED_SERVICES: tuple[str, ...] = ("letterboxd",)
MAX_LIST_ENTRIES = 100
DEFAULT_LIST_NAME = "Imported List"

_LETTERBOXD_URL_RE = re.compile(r"^https?://(www\.)?(letterboxd\.com/.*/list/.*|boxd\.it/.*)", re.IGNORECASE)
_SHORT_LINK_HOSTS = ("boxd.it",)
_FILM_SLUG_RE = re.compile(r"/film/([^/\"'?#]+)/")
_WS_RE = re.compile(r"\s+")
_NAME_PREFIX_RE = re.compile(r"^List\s*-\s*", re.IGNORECASE)
_NAME_SUFFIX_RE = re.compile(r"\s*-\s*Letterboxd$", re.IGNORECASE)


@dataclass(frozen=True)
class ScrapedList:
    list_name: str
    list_description: str
    entries: list[RawListEntry] = field(default_factory=list)
    source_url: str | None = None
    service: str = "letterboxd"


def is_supported_service(service: str) -> bool:
    return (service or "").strip().lower() in SUPPORTED_SERVICES


def validate_list_url(url: str, service: str = "letterboxd") -> bool:
    raw = (url or "").strip()
    if not raw:
        return False
    if service == "letterboxd":
        return bool(_LETTERBOXD_URL_RE.match(raw))
    return False


def is_short_link(url: str) -> bool:
    return any(host in (url or "") for host in _SHORT_LINK_HOSTS)


def resolve_short_link(url: str, *, session: requests.Session | None = None) -> str:
    if not is_short_link(url):
        return url
    resolved = resolve_redirects(url, session=session)
    logger.debug("Resolved short link %s -> %s", url, resolved)
    return resolved


def _collapse(text: str | None) -> str:
    return _WS_RE.sub(" ", (text or "").replace("‎", "")).strip()


def _text_of(node: Any) -> str:
    return _collapse(node.get_text(" ", strip=True)) if node is not None else ""


def _clean_list_name(raw: str) -> str:
    name = _NAME_PREFIX_RE.sub("", _collapse(raw))
    return _NAME_SUFFIX_RE.sub("", name).strip()


def extract_list_name(soup: BeautifulSoup) -> str:
    def title_tag_prefix() -> str:
        if soup.title is None:
            return ""
        text = _NAME_PREFIX_RE.sub("", _collapse(soup.title.get_text(" ", strip=True)))
        return re.split(r"\s+[-|•]\s+", text, maxsplit=1)[0]

    strategies: list[Callable[[], str]] = [
        lambda: _text_of(soup.select_one("h1.list-title")),
        lambda: _text_of(soup.select_one("h1.list-name")),
        lambda: _text_of(soup.find("h1")),
        title_tag_prefix,
    ]
    for strategy in strategies:
        name = _clean_list_name(strategy())
        if name and name.casefold() != "letterboxd":
            return name
    return DEFAULT_LIST_NAME


def extract_list_description(soup: BeautifulSoup) -> str:
    strategies: list[Callable[[], str]] = [
        lambda: _text_of(soup.select_one("div.list-description p")),
        lambda: _text_of(soup.select_one("div.list-description")),
        lambda: _text_of(soup.select_one("p.body-text")),
    ]
    for strategy in strategies:
        description = strategy()
        if description:
            return description
    return ""


def _entry_from_title(raw_title: str) -> RawListEntry | None:
    title, year = strip_year_suffix(_collapse(raw_title))
    if not title:
        return None
    return RawListEntry(title=title, year=year)


def _entries_from_poster_list(soup: BeautifulSoup) -> list[RawListEntry]:
    out: list[RawListEntry] = []
    for li in soup.select("li.poster-container"):
        img = li.find("img", alt=True)
        if img is None:
            continue
        entry = _entry_from_title(str(img.get("alt") or ""))
        if entry:
            out.append(entry)
    return out


def _entries_from_data_attributes(soup: BeautifulSoup) -> list[RawListEntry]:
    out: list[RawListEntry] = []
    for node in soup.find_all(attrs={"data-film-name": True}):
        entry = _entry_from_title(str(node.get("data-film-name") or ""))
        if entry:
            out.append(entry)
    return out


def _entries_from_list_headings(soup: BeautifulSoup) -> list[RawListEntry]:
    out: list[RawListEntry] = []
    for li in soup.select("li.listitem"):
        link = li.select_one("h3 a")
        if link is None:
            continue
        entry = _entry_from_title(link.get_text(" ", strip=True))
        if entry:
            out.append(entry)
    return out


def humanize_slug(slug: str) -> RawListEntry | None:
    """
    "the-godfather" -> "The Godfather"; a trailing 4-digit token ("heat-1995") becomes the year.
    """

    words = [w for w in slug.strip().split("-") if w]
    if not words:
        return None
    year: int | None = None
    if len(words) > 1 and re.fullmatch(r"\d{4}", words[-1]):
        year = int(words.pop())
    title = " ".join(w[:1].upper() + w[1:] for w in words)
    return RawListEntry(title=title, year=year)


def _entries_from_film_slugs(html: str) -> list[RawListEntry]:
    seen: set[str] = set()
    out: list[RawListEntry] = []
    for match in _FILM_SLUG_RE.finditer(html):
        slug = match.group(1)
        if slug in seen:
            continue
        seen.add(slug)
        entry = humanize_slug(slug)
        if entry:
            out.append(entry)
        if len(out) >= MAX_LIST_ENTRIES:
            break
    return out


def dedupe_entries(entries: list[RawListEntry]) -> list[RawListEntry]:
    """Same normalized title with years within one of each other (or unknown) counts as a duplicate."""

    kept: list[RawListEntry] = []
    by_key: dict[str, list[RawListEntry]] = {}
    for entry in entries:
        key = normalize_title_key(entry.title)
        duplicates = by_key.setdefault(key, [])
        if any(
            entry.year is None or other.year is None or abs(entry.year - other.year) <= 1 for other in duplicates
        ):
            continue
        duplicates.append(entry)
        kept.append(entry)
    return kept


def extract_entries(html: str, soup: BeautifulSoup | None = None) -> list[RawListEntry]:
    soup = soup or BeautifulSoup(html or "", "html.parser")

    # Weaker strategies only run when every stronger one found nothing.
    for name, strategy in (
        ("poster-list", _entries_from_poster_list),
        ("data-attribute", _entries_from_data_attributes),
        ("list-heading", _entries_from_list_headings),
    ):
        entries = dedupe_entries(strategy(soup))
        if entries:
            logger.debug("Letterboxd entries via %s strategy: %d", name, len(entries))
            return entries[:MAX_LIST_ENTRIES]

    entries = dedupe_entries(_entries_from_film_slugs(html or ""))
    if entries:
        logger.debug("Letterboxd entries via film-slug fallback: %d", len(entries))
    return entries[:MAX_LIST_ENTRIES]


def parse_list_page(html: str, *, source_url: str | None = None) -> ScrapedList:
    soup = BeautifulSoup(html or "", "html.parser")
    return ScrapedList(
        list_name=extract_list_name(soup),
        list_description=extract_list_description(soup),
        entries=extract_entries(html or "", soup),
        source_url=source_url,
    )


def scrape_list(
    url: str,
    *,
    session: requests.Session | None = None,
    timeout_seconds: float = 30.0,
) -> ScrapedList:
    """
    Fetch and parse a public Letterboxd list.

    Fetch failures raise `PageFetchError`; a page with no recognizable entries returns an empty list.
    """

    full_url = resolve_short_link(url.strip(), session=session)

    html, final_url = fetch_html(full_url, session=session, timeout_seconds=timeout_seconds)
    scraped = parse_list_page(html, source_url=final_url)
    logger.info("Scraped %d entries from %s (%r)", len(scraped.entries), final_url, scraped.list_name)
    return scraped
