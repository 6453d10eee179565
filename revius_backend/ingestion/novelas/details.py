"""
Detail-page enrichment for a single novela.

Infobox labels differ across the Portuguese, English and Spanish wikis, so each field is located by
a keyword list rather than an exact label.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from revius_backend.ingestion.novelas.config import (
    estimate_episodes,
    is_placeholder_image,
    is_placeholder_synopsis,
)
from revius_backend.models.novelas import NovelaRecord, YearRange
from revius_backend.utils.text import (
    capitalize_first,
    clean_text,
    extract_first_int,
    extract_year_range,
    split_names,
    strip_accents,
)

MAX_CAST = 10
MAX_GENRES = 5
MAX_SYNOPSIS_LENGTH = 500
MIN_THUMBNAIL_WIDTH = 300
MIN_ICON_SIZE = 50

CAST_LABELS = ("elenco", "protagonistas", "protagonizada", "starring", "cast", "reparto")
DIRECTOR_LABELS = ("direcao", "director", "dirigida", "directed", "direccion")
AUTHOR_LABELS = ("autor", "autoria", "criacao", "roteiro", "created by", "written by", "writer", "creador", "guion")
GENRE_LABELS = ("genero", "genre")
COUNTRY_LABELS = ("pais", "country")
LANGUAGE_LABELS = ("idioma", "lingua", "language", "lengua")
EPISODE_LABELS = ("episodios", "capitulos", "episodes", "no. of episodes")
YEAR_LABELS = (
    "exibicao",
    "transmissao",
    "estreia",
    "original release",
    "released",
    "first aired",
    "emision",
    "periodo",
)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")
_ICON_MARKERS = (
    "icon",
    "symbol",
    "flag_of",
    "edit-clear",
    "question_book",
    "ambox",
    "wiki_letter",
    "padlock",
    "commons-logo",
    "wikiquote",
    "disambig",
    "crystal_clear",
    "nuvola",
)
_POSTER_MARKERS = ("poster", "cartaz", "capa", "cover", "title", "titulo", "abertura")
_THUMB_WIDTH_RE = re.compile(r"/(\d+)px-")
# Root-relative paths that live on the upload host rather than the wiki itself.
_UPLOAD_PATH_PREFIXES = ("/wikipedia/", "/math/")


@dataclass(frozen=True)
class NovelaDetails:
    cast: list[str] = field(default_factory=list)
    director: str = ""
    author: str = ""
    genres: list[str] = field(default_factory=list)
    country: str = ""
    language: str = ""
    episodes: int | None = None
    year: YearRange | None = None
    synopsis: str = ""
    image_url: str = ""


@dataclass(frozen=True)
class EnrichmentOutcome:
    fields_updated: tuple[str, ...]
    image_found: bool
    synopsis_found: bool


def _fold(value: str) -> str:
    return strip_accents(value).casefold()


def _infobox_entries(infobox: Tag) -> list[tuple[str, str]]:
    entries: list[tuple[str, str]] = []
    for row in infobox.find_all("tr"):
        label_cell = row.find(["th", "td"])
        if label_cell is None:
            continue
        values = [cell for cell in row.find_all("td") if cell is not label_cell]
        if not values:
            continue
        for br in values[0].find_all("br"):
            br.replace_with("\n")
        label = _fold(clean_text(label_cell.get_text(" ", strip=True)))
        value = values[0].get_text("\n", strip=True)
        if label and value.strip():
            entries.append((label, value))
    return entries


def _lookup(entries: Sequence[tuple[str, str]], keywords: Iterable[str]) -> str:
    keywords = tuple(keywords)
    for label, value in entries:
        if any(keyword in label for keyword in keywords):
            return value
    return ""


def normalize_image_url(src: str | None, *, base_url: str = "https://pt.wikipedia.org") -> str:
    if not src:
        return ""
    src = src.strip()
    if src.startswith("//"):
        return "https:" + src
    if src.startswith(_UPLOAD_PATH_PREFIXES):
        return "https://upload.wikimedia.org" + src
    if src.startswith("http://") or src.startswith("https://"):
        return src
    return urljoin(base_url + "/", src)


def upscale_thumbnail(url: str, *, min_width: int = MIN_THUMBNAIL_WIDTH) -> str:
    """Rewrite `/thumb/.../120px-Name.jpg` to the `min_width` rendition when smaller."""

    if "/thumb/" not in url:
        return url
    match = _THUMB_WIDTH_RE.search(url)
    if not match or int(match.group(1)) >= min_width:
        return url
    return url[: match.start()] + f"/{min_width}px-" + url[match.end() :]


def _attr_int(img: Tag, name: str) -> int | None:
    raw = img.get(name)
    if raw is None:
        return None
    return extract_first_int(str(raw))


def is_valid_image(img: Tag, url: str) -> bool:
    parsed = urlparse(url)
    if not parsed.netloc.endswith("wikimedia.org"):
        return False
    path = parsed.path.lower()
    if not path.endswith(IMAGE_EXTENSIONS):
        return False
    if any(marker in path for marker in _ICON_MARKERS):
        return False
    width = _attr_int(img, "width")
    height = _attr_int(img, "height")
    if (width is not None and width < MIN_ICON_SIZE) or (height is not None and height < MIN_ICON_SIZE):
        return False
    return True


def _image_score(img: Tag, url: str) -> tuple[int, int]:
    filename = urlparse(url).path.rsplit("/", 1)[-1].lower()
    poster_like = 1 if any(marker in filename for marker in _POSTER_MARKERS) else 0
    width = _attr_int(img, "width") or 0
    height = _attr_int(img, "height") or 0
    return poster_like, width * height


def find_best_image(soup: BeautifulSoup, *, base_url: str = "https://pt.wikipedia.org") -> str:
    """
    Infobox images first, then thumbnails, then any content image.

    Within a tier the poster-like filename wins, then the larger rendered size.
    """

    tiers = (
        ".infobox img, .infobox_v2 img",
        ".thumbinner img, .thumb img, figure img",
        "#mw-content-text img, .mw-parser-output img",
    )
    for selector in tiers:
        candidates: list[tuple[tuple[int, int], int, str]] = []
        for order, img in enumerate(soup.select(selector)):
            url = normalize_image_url(str(img.get("src") or ""), base_url=base_url)
            if url and is_valid_image(img, url):
                candidates.append((_image_score(img, url), -order, url))
        if candidates:
            best = max(candidates)
            return upscale_thumbnail(best[2])
    return ""


def _first_paragraph(soup: BeautifulSoup) -> str:
    for paragraph in soup.select("#mw-content-text p, .mw-parser-output p"):
        classes = paragraph.get("class") or []
        if "mw-empty-elt" in classes:
            continue
        text = clean_text(paragraph.get_text(" ", strip=True))
        if text:
            return text[:MAX_SYNOPSIS_LENGTH]
    return ""


def parse_detail_page(html: str, *, base_url: str = "https://pt.wikipedia.org") -> NovelaDetails:
    soup = BeautifulSoup(html or "", "html.parser")
    infobox = soup.select_one(".infobox, .infobox_v2")
    entries = _infobox_entries(infobox) if infobox is not None else []

    year = extract_year_range([_lookup(entries, YEAR_LABELS)])
    return NovelaDetails(
        cast=split_names(_lookup(entries, CAST_LABELS), limit=MAX_CAST),
        director=", ".join(split_names(_lookup(entries, DIRECTOR_LABELS))),
        author=", ".join(split_names(_lookup(entries, AUTHOR_LABELS))),
        genres=[capitalize_first(g) for g in split_names(_lookup(entries, GENRE_LABELS), limit=MAX_GENRES)],
        country=clean_text(_lookup(entries, COUNTRY_LABELS).replace("\n", " ")),
        language=clean_text(_lookup(entries, LANGUAGE_LABELS).replace("\n", " ")),
        episodes=extract_first_int(_lookup(entries, EPISODE_LABELS)),
        year=YearRange(start=year[0], end=year[1]) if year else None,
        synopsis=_first_paragraph(soup),
        image_url=find_best_image(soup, base_url=base_url),
    )


def union_genres(existing: Sequence[str], incoming: Sequence[str], *, cap: int = MAX_GENRES) -> list[str]:
    combined = list(existing)
    for genre in incoming:
        if genre and genre not in combined:
            combined.append(genre)
    return combined[:cap]


def apply_details(record: NovelaRecord, details: NovelaDetails) -> EnrichmentOutcome:
    """
    Copy detail-page values onto `record` in place.

    Only empty or placeholder values are replaced, except that a longer synopsis replaces a shorter
    one and genres are unioned.
    """

    updated: list[str] = []

    if details.cast and not record.cast:
        record.cast = list(details.cast)
        updated.append("cast")
    for name in ("director", "author", "language"):
        value = getattr(details, name)
        if value and not getattr(record, name).strip():
            setattr(record, name, value)
            updated.append(name)
    if details.country and not record.country:
        record.country = details.country
        updated.append("country")
    if details.episodes and (record.episodes is None or record.episodes == estimate_episodes(record.country)):
        if record.episodes != details.episodes:
            record.episodes = details.episodes
            updated.append("episodes")
    if details.year and record.year is None:
        record.year = details.year
        updated.append("year")
    if details.genres:
        genres = union_genres(record.genre, details.genres)
        if genres != record.genre:
            record.genre = genres
            updated.append("genre")

    synopsis_found = False
    if details.synopsis and (
        is_placeholder_synopsis(record.synopsis) or len(details.synopsis) > len(record.synopsis)
    ):
        record.synopsis = details.synopsis
        updated.append("synopsis")
        synopsis_found = True

    image_found = False
    if details.image_url and not is_placeholder_image(details.image_url) and is_placeholder_image(record.image_url):
        record.image_url = details.image_url
        updated.append("image_url")
        image_found = True

    return EnrichmentOutcome(fields_updated=tuple(updated), image_found=image_found, synopsis_found=synopsis_found)
