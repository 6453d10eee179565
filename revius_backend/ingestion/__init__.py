"""
Ingestion helpers for importing external data into Revius.
"""

from revius_backend.ingestion.letterboxd_lists import ScrapedList, parse_list_page, scrape_list, validate_list_url
from revius_backend.ingestion.list_importer import ImportValidationError, import_list

__all__ = [
    "ImportValidationError",
    "ScrapedList",
    "import_list",
    "parse_list_page",
    "scrape_list",
    "validate_list_url",
]
