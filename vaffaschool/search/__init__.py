"""Search and ranking functionality for school data."""

from .ranker import SchoolSearch, rank_matches, search_schools
from .scoring import ScoringEngine, SearchConfig, substring_score
from .tokenizer import clean_query, tokenize_query

__all__ = [
    "SchoolSearch",
    "ScoringEngine",
    "SearchConfig",
    "rank_matches",
    "search_schools",
    "substring_score",
    "clean_query",
    "tokenize_query",
]
