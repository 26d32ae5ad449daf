"""Relevance scoring of schools against a search query.

Two signals are summed:

1. Substring: how many search tokens appear in the school name and in the
   city name, weighted per field (city matches weigh more, city names are
   shorter and less noisy than school names).
2. Fuzzy: rapidfuzz token sort ratio (0-100) between the query and
   "name city", so word order and typos matter less.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from rapidfuzz import fuzz, utils

from ..config import Settings, get_settings
from ..exceptions import InvalidSearchAlgorithm
from ..services.models import SchoolEntity, ScoreBreakdown, ScoredMatch

SEARCH_ALGO_SIMPLE = "simple"
SEARCH_ALGO_FUZZY = "fuzzy"
SEARCH_ALGOS = (SEARCH_ALGO_SIMPLE, SEARCH_ALGO_FUZZY)


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for search behavior."""

    # Weight for a token found in each field
    school_name_multiplier: int = 50
    city_name_multiplier: int = 80

    # "fuzzy" adds the token sort ratio, "simple" is substring only
    algorithm: str = SEARCH_ALGO_FUZZY

    min_token_length: int = 5

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SearchConfig":
        """Create config from application settings."""
        settings = settings or get_settings()
        return cls(
            school_name_multiplier=settings.school_name_multiplier,
            city_name_multiplier=settings.city_name_multiplier,
            algorithm=settings.search_algo,
            min_token_length=settings.min_token_length,
        )


def substring_score(tokens: Sequence[str], text: Optional[str]) -> int:
    """Count the tokens found in ``text``, ignoring case."""
    if not text:
        return 0
    haystack = text.lower()
    return sum(1 for token in tokens if token and token.lower() in haystack)


def fuzzy_score(query: str, text: str) -> float:
    """Word-order insensitive similarity between two strings (0-100)."""
    return fuzz.token_sort_ratio(query, text, processor=utils.default_process)


class ScoringEngine:
    """Scores one school at a time against a tokenized query.

    Usage:
        engine = ScoringEngine(SearchConfig.from_settings())
        match = engine.score(["sieve"], "pnote sieve", school)
    """

    def __init__(self, config: Optional[SearchConfig] = None):
        self.config = config or SearchConfig()
        if self.config.algorithm not in SEARCH_ALGOS:
            raise InvalidSearchAlgorithm(self.config.algorithm)

    def score(
        self,
        tokens: Sequence[str],
        query: str,
        school: SchoolEntity,
    ) -> ScoredMatch:
        """Score a school.

        Args:
            tokens: Filtered search tokens
            query: The query string before token filtering
            school: Candidate school

        Returns:
            ScoredMatch with the total and each component
        """
        school_name_score = (
            substring_score(tokens, school.name) * self.config.school_name_multiplier
        )
        city_name_score = (
            substring_score(tokens, school.city_name) * self.config.city_name_multiplier
        )

        fuzzy_search_score = None
        total = school_name_score + city_name_score
        if self.config.algorithm == SEARCH_ALGO_FUZZY:
            fuzzy_search_score = fuzzy_score(query, f"{school.name} {school.city_name}")
            total += fuzzy_search_score

        return ScoredMatch(
            school=school,
            score=total,
            breakdown=ScoreBreakdown(
                school_name_score=school_name_score,
                city_name_score=city_name_score,
                fuzzy_search_score=fuzzy_search_score,
            ),
        )
