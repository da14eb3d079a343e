"""
Document comparison against one or many fingerprinted sources.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Mapping, Tuple

from .config import ExternalSource, FingerprintSet, MatchSource, PlagiarismMatch
from .fingerprint import find_matching_fingerprints
from .similarity import (
    cluster_matches, clusters_to_matches, containment_similarity,
    deduplicate_matches, jaccard_similarity, word_based_similarity
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing the query with a single source"""
    similarity: float
    containment: float
    matches: Tuple[PlagiarismMatch, ...]
    matched_word_count: int
    matched_offsets: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class SourceComparison:
    source: MatchSource
    similarity: float
    match_count: int
    matched_words: int


@dataclass(frozen=True)
class MultiSourceComparison:
    total_similarity: float
    matches: Tuple[PlagiarismMatch, ...]
    source_summaries: Tuple[SourceComparison, ...]
    matched_offsets: FrozenSet[int] = frozenset()


EMPTY_COMPARISON = ComparisonResult(
    similarity=0.0, containment=0.0, matches=(), matched_word_count=0
)


class SimilarityAnalyzer:
    """Compares a fingerprinted query with fingerprinted sources"""

    def __init__(self,
                 min_match_length: int = 5,
                 max_gap: int = 2,
                 min_similarity: float = 0.0):
        self.min_match_length = min_match_length
        self.max_gap = max_gap
        self.min_similarity = min_similarity

    def compare_documents(self,
                          query_fingerprints: FingerprintSet,
                          source_fingerprints: FingerprintSet,
                          query_text: str,
                          source: MatchSource) -> ComparisonResult:
        """Find, cluster and type the regions the query shares with one source"""
        if query_fingerprints.ngram_size != source_fingerprints.ngram_size:
            raise ValueError(
                f"Cannot compare fingerprints of n={query_fingerprints.ngram_size} "
                f"with n={source_fingerprints.ngram_size}"
            )

        pairs = find_matching_fingerprints(query_fingerprints, source_fingerprints)
        if not pairs:
            return EMPTY_COMPARISON

        clusters = cluster_matches(pairs, self.max_gap, query_fingerprints.ngram_size)
        matches = clusters_to_matches(clusters, query_text, source, self.min_match_length)

        logger.debug(
            f"{query_fingerprints.document_id} vs {source_fingerprints.document_id}: "
            f"{len(pairs)} shared fingerprints, {len(clusters)} clusters, "
            f"{len(matches)} matches"
        )

        return ComparisonResult(
            similarity=jaccard_similarity(query_fingerprints, source_fingerprints),
            containment=containment_similarity(query_fingerprints, source_fingerprints),
            matches=tuple(matches),
            matched_word_count=sum(m.word_count for m in matches),
            matched_offsets=frozenset(pair.query.word_offset for pair in pairs),
        )

    def compare_against_sources(self,
                                query_fingerprints: FingerprintSet,
                                query_text: str,
                                sources: Mapping[str, ExternalSource]) -> MultiSourceComparison:
        """Compare with every source, then resolve overlapping matches"""
        all_matches: List[PlagiarismMatch] = []
        summaries: List[SourceComparison] = []
        matched_offsets = set()

        for key, entry in sources.items():
            result = self.compare_documents(
                query_fingerprints, entry.fingerprints, query_text, entry.source
            )
            if result.similarity >= self.min_similarity or result.matches:
                all_matches.extend(result.matches)
                matched_offsets.update(result.matched_offsets)
                summaries.append(SourceComparison(
                    source=entry.source,
                    similarity=result.similarity,
                    match_count=len(result.matches),
                    matched_words=result.matched_word_count,
                ))
            else:
                logger.debug(f"Source {key} below similarity floor ({result.similarity:.1f})")

        deduplicated = deduplicate_matches(all_matches)
        total_matched_words = sum(m.word_count for m in deduplicated)

        return MultiSourceComparison(
            total_similarity=word_based_similarity(
                query_fingerprints.word_count, total_matched_words
            ),
            matches=tuple(deduplicated),
            source_summaries=tuple(summaries),
            matched_offsets=frozenset(matched_offsets),
        )


def compare_documents(query_fingerprints: FingerprintSet,
                      source_fingerprints: FingerprintSet,
                      query_text: str,
                      source: MatchSource,
                      min_match_length: int = 5,
                      max_gap: int = 2) -> ComparisonResult:
    analyzer = SimilarityAnalyzer(min_match_length, max_gap)
    return analyzer.compare_documents(
        query_fingerprints, source_fingerprints, query_text, source
    )


def compare_against_sources(query_fingerprints: FingerprintSet,
                            query_text: str,
                            sources: Mapping[str, ExternalSource],
                            min_match_length: int = 5,
                            max_gap: int = 2,
                            min_similarity: float = 0.0) -> MultiSourceComparison:
    analyzer = SimilarityAnalyzer(min_match_length, max_gap, min_similarity)
    return analyzer.compare_against_sources(query_fingerprints, query_text, sources)
