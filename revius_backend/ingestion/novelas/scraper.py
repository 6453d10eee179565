from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Sequence
from urllib.parse import urlparse

from revius_backend.ingestion.novelas.config import (
    DEFAULT_CONFIG,
    ScraperConfig,
    default_image_for,
    is_placeholder_image,
    is_placeholder_synopsis,
)
from revius_backend.ingestion.novelas.dedupe import deduplicate
from revius_backend.ingestion.novelas.details import apply_details, parse_detail_page
from revius_backend.ingestion.novelas.list_page import ListPageParser
from revius_backend.ingestion.novelas.merge import MergeOutcome, merge_into_store
from revius_backend.ingestion.novelas.sources import WikipediaSource, filter_sources, get_all_sources
from revius_backend.integrations.browser import (
    BrowserLaunchError,
    HttpPageFetcher,
    PageFetcher,
    SeleniumPageFetcher,
)
from revius_backend.integrations.http import PageFetchError
from revius_backend.models.novelas import NovelaCatalog, NovelaRecord
from revius_backend.repositories.novela_catalog import CatalogStore, CatalogStoreError, JsonFileCatalogStore
from revius_backend.utils.pacing import CancellationToken, OperationCancelled, raise_if_cancelled, sleep_with_jitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrapeOptions:
    countries: tuple[str, ...] = ()
    enhance_details: bool = True
    merge_with_existing: bool = True
    max_to_enhance: int = DEFAULT_CONFIG.default_max_enhance


@dataclass(frozen=True)
class FailedPage:
    url: str
    title: str
    error: str


@dataclass
class ScrapeStats:
    sources_processed: int = 0
    novelas_found: int = 0
    errors: int = 0
    duplicates_removed: int = 0
    enhanced: int = 0
    image_failures: int = 0
    synopsis_failures: int = 0
    failed_pages: list[FailedPage] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def duration_seconds(self) -> int:
        return int(time.monotonic() - self.started_at + 0.5)

    @property
    def success_rate(self) -> int:
        if self.sources_processed <= 0:
            return 0
        return int((self.sources_processed - self.errors) / self.sources_processed * 100 + 0.5)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourcesProcessed": self.sources_processed,
            "novelasFound": self.novelas_found,
            "errors": self.errors,
            "duplicatesRemoved": self.duplicates_removed,
            "enhanced": self.enhanced,
            "imageFailures": self.image_failures,
            "synopsisFailures": self.synopsis_failures,
            "failedPages": [{"url": p.url, "title": p.title, "error": p.error} for p in self.failed_pages],
            "duration": self.duration_seconds,
            "successRate": self.success_rate,
        }


@dataclass(frozen=True)
class ScrapeResult:
    success: bool
    stats: ScrapeStats
    data: NovelaCatalog | None = None
    error: str | None = None
    merge: MergeOutcome | None = None


def _percent(part: int, total: int) -> int:
    return int(part / total * 100 + 0.5) if total else 0


def quality_report(novelas: Sequence[NovelaRecord]) -> dict[str, Any]:
    total = len(novelas)
    counts = {
        "images": sum(1 for n in novelas if not is_placeholder_image(n.image_url)),
        "realSynopses": sum(1 for n in novelas if not is_placeholder_synopsis(n.synopsis)),
        "cast": sum(1 for n in novelas if n.cast),
        "authors": sum(1 for n in novelas if n.author),
        "directors": sum(1 for n in novelas if n.director),
    }
    return {
        "total": total,
        "metrics": {name: {"count": count, "percent": _percent(count, total)} for name, count in counts.items()},
        "topCountries": Counter(n.country for n in novelas).most_common(5),
    }


class NovelaScraper:
    """
    Serial scraper over the configured Wikipedia list pages.

    One fetcher is used for every page with `delay_between_requests` seconds between fetches. Page
    failures are retried with linear backoff and then counted as errors; only a failed save (or a
    browser that cannot start) fails the run.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        store: CatalogStore,
        *,
        config: ScraperConfig = DEFAULT_CONFIG,
        parser: ListPageParser | None = None,
        sleep: Callable[[float], None] = sleep_with_jitter,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.config = config
        self.parser = parser or ListPageParser()
        self.sleep = sleep
        self.cancel_token = cancel_token
        self.stats = ScrapeStats()

    def fetch_page(self, url: str, *, max_retries: int | None = None) -> str | None:
        attempts = max(1, max_retries or self.config.max_retries)
        for attempt in range(1, attempts + 1):
            raise_if_cancelled(self.cancel_token, "scrape")
            try:
                logger.info("Fetching %s (attempt %d/%d)", url, attempt, attempts)
                html = self.fetcher.fetch(url, timeout_seconds=self.config.page_timeout_seconds)
                if len(html or "") <= self.config.min_page_length:
                    raise PageFetchError("Page content too short or empty", url=url)
                return html
            except PageFetchError as exc:
                logger.warning("Attempt %d for %s failed: %s", attempt, url, exc)
                if attempt == attempts:
                    logger.error("Failed to fetch %s after %d attempts", url, attempts)
                    self.stats.errors += 1
                    return None
                self.sleep(self.config.delay_between_requests * attempt)
        return None

    def process_source(self, source: WikipediaSource) -> list[NovelaRecord]:
        logger.info("Processing %s (%s): %s", source.broadcaster, source.country, source.url)
        html = self.fetch_page(source.url)
        if html is None:
            return []

        try:
            novelas = self.parser.parse(html, source)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error parsing %s: %s", source.url, exc)
            self.stats.errors += 1
            return []

        if novelas:
            self.stats.novelas_found += len(novelas)
            sample = ", ".join(n.title for n in novelas[:5])
            more = "..." if len(novelas) > 5 else ""
            logger.info("Found %d novelas from %s: %s%s", len(novelas), source.broadcaster, sample, more)
        else:
            logger.warning("No novelas found on %s", source.url)
        return novelas

    def enhance_with_details(self, novelas: Sequence[NovelaRecord], max_to_enhance: int | None = None) -> None:
        """Enrich up to `max_to_enhance` records in place, newest first; records without a page are skipped."""

        limit = self.config.default_max_enhance if max_to_enhance is None else max_to_enhance
        to_enhance = sorted(
            (n for n in novelas if n.wikipedia_url),
            key=lambda n: n.year.start if n.year else 1900,
            reverse=True,
        )[: max(0, limit)]
        logger.info("Enhancing %d novelas with detail pages", len(to_enhance))

        images = 0
        synopses = 0
        for novela in to_enhance:
            raise_if_cancelled(self.cancel_token, "detail enhancement")
            html = self.fetch_page(novela.wikipedia_url, max_retries=self.config.detail_max_retries)
            success = html is not None
            if html is None:
                self.stats.failed_pages.append(
                    FailedPage(url=novela.wikipedia_url, title=novela.title, error="page fetch failed")
                )
                if not novela.image_url.strip():
                    novela.image_url = default_image_for(novela.broadcaster)
            else:
                outcome = apply_details(novela, parse_detail_page(html, base_url=_base_url(novela.wikipedia_url)))
                self.stats.enhanced += 1
                images += int(outcome.image_found)
                synopses += int(outcome.synopsis_found)
                logger.debug(
                    "Enhanced %s: %s (image=%s, synopsis=%s)",
                    novela.title,
                    ", ".join(outcome.fields_updated) or "no new fields",
                    outcome.image_found,
                    outcome.synopsis_found,
                )
            self.sleep(self.config.delay_between_requests * (1 if success else 2))

        self.stats.image_failures = len(to_enhance) - images
        self.stats.synopsis_failures = len(to_enhance) - synopses
        logger.info(
            "Enhancement results: %d/%d enhanced, %d images, %d synopses",
            self.stats.enhanced,
            len(to_enhance),
            images,
            synopses,
        )

    def run(self, options: ScrapeOptions | None = None) -> ScrapeResult:
        options = options or ScrapeOptions()
        self.stats = ScrapeStats()
        try:
            sources = filter_sources(get_all_sources(), options.countries)
            if options.countries:
                logger.info("Filtered to %d sources for: %s", len(sources), ", ".join(options.countries))

            collected: list[NovelaRecord] = []
            for idx, source in enumerate(sources, start=1):
                raise_if_cancelled(self.cancel_token, "scrape")
                collected.extend(self.process_source(source))
                self.stats.sources_processed += 1
                logger.info("Progress: %d/%d sources", idx, len(sources))
                if idx < len(sources):
                    self.sleep(self.config.delay_between_requests)

            novelas = deduplicate(collected)
            self.stats.duplicates_removed = len(collected) - len(novelas)
            logger.info(
                "Scraping completed: %d novelas (%d duplicates removed)", len(novelas), self.stats.duplicates_removed
            )

            if options.enhance_details and novelas:
                self.enhance_with_details(novelas, options.max_to_enhance)

            catalog, outcome = merge_into_store(
                self.store, novelas, merge_with_existing=options.merge_with_existing
            )
        except (BrowserLaunchError, CatalogStoreError, OperationCancelled) as exc:
            logger.error("Scraper failed: %s", exc)
            return ScrapeResult(success=False, stats=self.stats, error=str(exc))

        return ScrapeResult(success=True, stats=self.stats, data=catalog, merge=outcome)


def _base_url(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}" if parsed.netloc else "https://pt.wikipedia.org"


def run_scrape(
    options: ScrapeOptions | None = None,
    *,
    config: ScraperConfig = DEFAULT_CONFIG,
    fetcher: PageFetcher | None = None,
    store: CatalogStore | None = None,
    use_browser: bool = True,
    cancel_token: CancellationToken | None = None,
) -> ScrapeResult:
    """
    Scrape, enrich and merge into the catalog with default collaborators.

    A fetcher created here is closed on return; a caller-supplied one is left open.
    """

    owns_fetcher = fetcher is None
    if fetcher is None:
        fetcher = SeleniumPageFetcher() if use_browser else HttpPageFetcher()
    if store is None:
        store = JsonFileCatalogStore(config.output_dir, output_file=config.output_file, backup_file=config.backup_file)

    started = datetime.now(timezone.utc)
    logger.info("Starting novela scraper at %s", started.isoformat())
    try:
        return NovelaScraper(fetcher, store, config=config, cancel_token=cancel_token).run(options)
    finally:
        if owns_fetcher:
            fetcher.close()
