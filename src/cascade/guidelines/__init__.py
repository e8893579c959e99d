"""Guideline store, default catalog and semantic matcher."""

from .catalog import DEFAULT_GUIDELINES, build_context_search_guideline
from .matcher import GuidelineMatcher, rank_matches
from .store import GuidelineStore, merge_by_id

__all__ = [
    "DEFAULT_GUIDELINES",
    "GuidelineMatcher",
    "GuidelineStore",
    "build_context_search_guideline",
    "merge_by_id",
    "rank_matches",
]
