from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

OUTPUT_DIR = Path("./data")
OUTPUT_FILE = "novelas.json"
BACKUP_FILE = "novelas-backup.json"

DELAY_BETWEEN_REQUESTS = 3.0
MAX_RETRIES = 5
DETAIL_MAX_RETRIES = 3
PAGE_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_ENHANCE = 150
MIN_PAGE_LENGTH = 1000

DEFAULT_IMAGES: dict[str, str] = {
    "Record": "https://upload.wikimedia.org/wikipedia/commons/thumb/4/42/Rede_Record_logo.svg/240px-Rede_Record_logo.svg.png",
    "Globo": "https://upload.wikimedia.org/wikipedia/commons/thumb/8/86/Rede_Globo_logo.svg/240px-Rede_Globo_logo.svg.png",
    "Band": "https://upload.wikimedia.org/wikipedia/commons/thumb/8/89/Rede_Bandeirantes_logo.svg/240px-Rede_Bandeirantes_logo.svg.png",
    "SBT": "https://upload.wikimedia.org/wikipedia/commons/thumb/9/95/SBT_logo.svg/240px-SBT_logo.svg.png",
    "default": "https://via.placeholder.com/300x400/cccccc/666666?text=Novela",
}

ESTIMATED_EPISODES: dict[str, int] = {
    "Brasil": 180,
    "México": 120,
    "Coreia do Sul": 16,
    "Colômbia": 100,
    "Argentina": 150,
    "Venezuela": 120,
    "Chile": 80,
    "Peru": 100,
    "Espanha": 60,
    "Portugal": 100,
    "Turquia": 150,
    "Índia": 200,
}
DEFAULT_ESTIMATED_EPISODES = 120

TARGET_COUNTRIES: tuple[str, ...] = tuple(ESTIMATED_EPISODES)

_PLACEHOLDER_SYNOPSIS_RE = re.compile(r" é uma (telenovela|série) de [^.]*\.$")


@dataclass(frozen=True)
class ScraperConfig:
    output_dir: Path = OUTPUT_DIR
    output_file: str = OUTPUT_FILE
    backup_file: str = BACKUP_FILE
    delay_between_requests: float = DELAY_BETWEEN_REQUESTS
    max_retries: int = MAX_RETRIES
    detail_max_retries: int = DETAIL_MAX_RETRIES
    page_timeout_seconds: float = PAGE_TIMEOUT_SECONDS
    default_max_enhance: int = DEFAULT_MAX_ENHANCE
    min_page_length: int = MIN_PAGE_LENGTH


DEFAULT_CONFIG = ScraperConfig()


def default_image_for(broadcaster: str | None) -> str:
    return DEFAULT_IMAGES.get(broadcaster or "", DEFAULT_IMAGES["default"])


def is_placeholder_image(url: str | None) -> bool:
    """Empty, a placeholder service URL, or one of the broadcaster logos used as fallback."""

    if not url or not url.strip():
        return True
    return "placeholder" in url or url in DEFAULT_IMAGES.values()


def estimate_episodes(country: str | None) -> int:
    return ESTIMATED_EPISODES.get(country or "", DEFAULT_ESTIMATED_EPISODES)


def placeholder_synopsis(title: str, country: str, broadcaster: str) -> str:
    kind = "telenovela" if country == "Brasil" else "série"
    return f"{title} é uma {kind} de {broadcaster}."


def is_placeholder_synopsis(synopsis: str | None) -> bool:
    if not synopsis or not synopsis.strip():
        return True
    return bool(_PLACEHOLDER_SYNOPSIS_RE.search(synopsis.strip()))
