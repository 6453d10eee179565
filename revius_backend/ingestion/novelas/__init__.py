"""
Telenovela catalog pipeline: Wikipedia list pages -> parsed records -> detail enrichment -> merged catalog.
"""

from revius_backend.ingestion.novelas.scraper import NovelaScraper, ScrapeOptions, ScrapeResult, run_scrape

__all__ = ["NovelaScraper", "ScrapeOptions", "ScrapeResult", "run_scrape"]
