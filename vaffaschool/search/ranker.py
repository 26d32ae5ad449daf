"""Hybrid school search: retrieval, scoring and ranking.

Candidates are retrieved coarsely (any token in name or city), scored with
weighted substring matches plus fuzzy similarity, then sorted by score.
"""

import logging
from typing import Iterable, Optional, Sequence

from ..services.models import SchoolEntity, ScoredMatch
from ..services.storage import CandidateSource, InMemorySchoolSource
from .scoring import ScoringEngine, SearchConfig
from .tokenizer import clean_query, tokenize_query

logger = logging.getLogger(__name__)


def rank_matches(matches: Iterable[ScoredMatch]) -> list[ScoredMatch]:
    """Sort matches by descending score.

    Equal scores are not broken by any other key: they come out in the
    reverse of the order they were supplied in.
    """
    ordered = sorted(matches, key=lambda m: m.score)
    ordered.reverse()
    return ordered


class SchoolSearch:
    """Search schools by approximate name and/or city.

    Usage:
        with SchoolStore(settings.sqlite_path) as store:
            search = SchoolSearch(store, SearchConfig.from_settings())
            results = search.search("primaria pontassieve")
    """

    def __init__(
        self,
        source: CandidateSource,
        config: Optional[SearchConfig] = None,
    ):
        self.source = source
        self.config = config or SearchConfig()
        self.engine = ScoringEngine(self.config)

    def search(self, query: str, max_results: Optional[int] = None) -> list[ScoredMatch]:
        """Search for schools matching query.

        Args:
            query: Free text, e.g. "Scuola Primaria Ponte a Sieve"
            max_results: Maximum results to return (all by default)

        Returns:
            List of ScoredMatch sorted by relevance

        Raises:
            EmptySearchQuery: if the query is blank
        """
        cleaned = clean_query(query)
        tokens = tokenize_query(query, self.config.min_token_length)

        batch = self.source.find_by_tokens(tokens)
        if batch.failed:
            logger.warning(f"No candidates for '{query}': {batch.error}")

        matches = [
            self.engine.score(tokens, cleaned, school) for school in batch.schools
        ]
        ranked = rank_matches(matches)
        logger.debug(f"'{query}': {len(tokens)} tokens, {len(ranked)} matches")

        if max_results is not None:
            return ranked[:max_results]
        return ranked


def search_schools(
    schools: Sequence[SchoolEntity],
    query: str,
    max_results: Optional[int] = None,
    config: Optional[SearchConfig] = None,
) -> list[ScoredMatch]:
    """Search an in-memory list of schools.

    Args:
        schools: Schools to search
        query: Search query
        max_results: Maximum results to return
        config: Search configuration

    Returns:
        List of ScoredMatch
    """
    if not schools:
        return []
    search = SchoolSearch(InMemorySchoolSource(schools), config)
    return search.search(query, max_results=max_results)
