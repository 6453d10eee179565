#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from revius_backend.ingestion.novelas.config import DEFAULT_CONFIG, ScraperConfig  # noqa: E402
from revius_backend.ingestion.novelas.scraper import (  # noqa: E402
    ScrapeOptions,
    ScrapeResult,
    quality_report,
    run_scrape,
)
from revius_backend.utils.env import env_float, load_env  # noqa: E402


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="scrape_novelas.py",
        description="Scrape telenovela lists from Wikipedia and merge them into the local novela catalog.",
    )
    parser.add_argument(
        "--countries",
        type=str,
        default="",
        help='Comma-separated countries to scrape, e.g. "Brasil,México" (default: all sources).',
    )
    parser.add_argument("--no-enhance", action="store_true", help="Skip detail-page enhancement.")
    parser.add_argument("--no-merge", action="store_true", help="Replace the catalog instead of merging into it.")
    parser.add_argument(
        "--max-enhance",
        type=int,
        default=DEFAULT_CONFIG.default_max_enhance,
        help=f"Maximum number of novelas to enhance (default: {DEFAULT_CONFIG.default_max_enhance}).",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=str(DEFAULT_CONFIG.output_dir),
        help=f"Directory holding the catalog JSON (default: {DEFAULT_CONFIG.output_dir}).",
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="Fetch pages with plain HTTP requests instead of headless Chrome.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def _print_summary(result: ScrapeResult, output_path: Path) -> None:
    stats = result.stats
    print("=" * 50)
    if not result.success or result.data is None:
        print(f"Scraper failed: {result.error}")
        print(f"Sources processed: {stats.sources_processed}")
        print(f"Novelas found: {stats.novelas_found}")
        print(f"Errors: {stats.errors}")
        return

    novelas = result.data.novelas
    metadata = result.data.metadata
    report = quality_report(novelas)
    print("Scraping completed")
    print(f"Duration: {stats.duration_seconds}s")
    print(f"Total novelas: {len(novelas)}")
    print(f"Countries: {len(metadata.get('countries') or [])} ({', '.join(metadata.get('countries') or [])})")
    print(f"Broadcasters: {len(metadata.get('broadcasters') or [])}")
    print(f"Sources processed: {stats.sources_processed}")
    print(f"Total errors: {stats.errors}")
    if result.merge is not None:
        print(f"Merge: {result.merge.added} added, {result.merge.updated} updated")

    print("Data quality:")
    for name, metric in report["metrics"].items():
        print(f"  {name}: {metric['count']}/{report['total']} ({metric['percent']}%)")
    if stats.duplicates_removed:
        print(f"  duplicates removed: {stats.duplicates_removed}")

    print("Top countries:")
    for country, count in report["topCountries"]:
        print(f"  {country}: {count} novelas")

    if stats.failed_pages:
        print(f"Failed to process {len(stats.failed_pages)} pages:")
        for failed in stats.failed_pages[:5]:
            print(f"  - {failed.title}: {failed.error[:50]}")
        if len(stats.failed_pages) > 5:
            print(f"  ... and {len(stats.failed_pages) - 5} more")

    print(f"Data saved to: {output_path}")


def main(argv: list[str]) -> int:
    args = _parse_args(argv)
    load_env()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ScraperConfig(
        output_dir=Path(args.output_dir),
        delay_between_requests=env_float("NOVELA_SCRAPER_DELAY_SECONDS", DEFAULT_CONFIG.delay_between_requests),
    )
    options = ScrapeOptions(
        countries=tuple(c.strip() for c in args.countries.split(",") if c.strip()),
        enhance_details=not args.no_enhance,
        merge_with_existing=not args.no_merge,
        max_to_enhance=args.max_enhance,
    )
    result = run_scrape(options, config=config, use_browser=not args.http)
    _print_summary(result, config.output_dir / config.output_file)
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main(list(sys.argv[1:])))
