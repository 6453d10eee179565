"""
Domain models shared across scripts and services.
"""

from revius_backend.models.lists import (
    CandidateMatch,
    FailedItem,
    ImportedList,
    ImportResult,
    MediaType,
    RawListEntry,
    ResolvedListItem,
)
from revius_backend.models.novelas import NovelaCatalog, NovelaRecord, YearRange

__all__ = [
    "CandidateMatch",
    "FailedItem",
    "ImportedList",
    "ImportResult",
    "MediaType",
    "NovelaCatalog",
    "NovelaRecord",
    "RawListEntry",
    "ResolvedListItem",
    "YearRange",
]
