"""
Entry resolution: similarity scoring, per-catalog search adapters and the multi-source matcher.
"""

from revius_backend.matching.matcher import SOURCE_PRIORITY, MultiSourceMatcher, dedupe_candidates
from revius_backend.matching.similarity import SOURCE_POLICIES, rank_and_filter, similarity

__all__ = [
    "MultiSourceMatcher",
    "SOURCE_POLICIES",
    "SOURCE_PRIORITY",
    "dedupe_candidates",
    "rank_and_filter",
    "similarity",
]
