"""
Shared text extraction helpers.

Every row parser, the list scraper and the catalog merge go through these helpers so that
title keys, year ranges and episode counts are parsed identically everywhere.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable

_WS_RE = re.compile(r"\s+")
_WIKI_REF_RE = re.compile(r"\[.*?\]")
_YEAR_RE = re.compile(r"(\d{4})")
_YEAR_RANGE_RE = re.compile(r"(\d{4})\s*[-–—]\s*(\d{4})")
_EPISODES_RE = re.compile(r"(\d+)\s*(cap|ep|episódios?|capítulos?)", re.IGNORECASE)
_TRAILING_YEAR_RE = re.compile(r"\s*\((\d{4})\)\s*$")
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s]")

GENRE_KEYWORDS: tuple[str, ...] = (
    "drama",
    "romance",
    "comédia",
    "ação",
    "suspense",
    "musical",
    "histórico",
    "infantil",
    "juvenil",
)


def strip_accents(value: str) -> str:
    """Drop diacritics from Latin letters; marks on other scripts (kana dakuten, Cyrillic breve) are kept."""

    kept: list[str] = []
    for ch in unicodedata.normalize("NFD", value):
        if unicodedata.combining(ch) and kept and kept[-1].isascii():
            continue
        kept.append(ch)
    return unicodedata.normalize("NFC", "".join(kept))


def clean_text(value: str | None) -> str:
    if not value:
        return ""
    text = _WIKI_REF_RE.sub("", value)
    return _WS_RE.sub(" ", text).strip()


def normalize_title_key(title: str | None) -> str:
    """
    Identity key for a title: accents stripped, case-folded, every non-alphanumeric removed.

    "Avenida Brasil", "avenida  brasil!" and "Avenída Brasil" all map to "avenidabrasil". Letters and
    digits of any script count, so "七人の侍" keys as itself. A title with no alphanumerics at all keys
    as its case-folded text.
    """

    if not title:
        return ""
    folded = strip_accents(title).casefold()
    key = "".join(ch for ch in folded if ch.isalnum())
    return key or _WS_RE.sub(" ", folded).strip()


def slugify(title: str, *, max_length: int = 50) -> str:
    text = _SLUG_STRIP_RE.sub("", strip_accents(title or "").lower())
    return _WS_RE.sub("-", text.strip())[:max_length]


def strip_year_suffix(title: str) -> tuple[str, int | None]:
    """Split "Heat (1995)" into ("Heat", 1995); titles without the suffix are returned unchanged."""

    raw = (title or "").strip()
    match = _TRAILING_YEAR_RE.search(raw)
    if not match:
        return raw, None
    return raw[: match.start()].strip(), int(match.group(1))


def extract_year_range(texts: Iterable[str]) -> tuple[int, int | None] | None:
    """
    First 4-digit year seen wins as the start; any explicit "start–end" range overrides it.
    """

    year: tuple[int, int | None] | None = None
    for text in texts:
        if not text:
            continue
        if year is None:
            match = _YEAR_RE.search(text)
            if match:
                year = (int(match.group(1)), None)
        range_match = _YEAR_RANGE_RE.search(text)
        if range_match:
            year = (int(range_match.group(1)), int(range_match.group(2)))
    return year


def extract_episode_count(text: str | None) -> int | None:
    if not text:
        return None
    match = _EPISODES_RE.search(text)
    if not match:
        return None
    return int(match.group(1))


def extract_first_int(text: str | None) -> int | None:
    if not text:
        return None
    match = re.search(r"(\d+)", text.replace(".", ""))
    return int(match.group(1)) if match else None


def capitalize_first(value: str) -> str:
    return value[:1].upper() + value[1:].lower()


def extract_genres(texts: Iterable[str]) -> list[str]:
    genres: list[str] = []
    for text in texts:
        lowered = (text or "").lower()
        for keyword in GENRE_KEYWORDS:
            genre = capitalize_first(keyword)
            if keyword in lowered and genre not in genres:
                genres.append(genre)
    return genres


def split_names(text: str | None, *, limit: int | None = None) -> list[str]:
    if not text:
        return []
    names = [clean_text(part) for part in re.split(r"[,\n]", text)]
    out = [name for name in names if name]
    return out[:limit] if limit is not None else out
