"""
Similarity metrics, match clustering and match-type classification.

Clustering is purely positional and classification purely lexical; the two
stages stay separate so each can be exercised on its own.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import nltk
from sklearn.feature_extraction.text import CountVectorizer, TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from .config import (
    DocumentFingerprint, FingerprintPair, FingerprintSet, MatchSource, MatchType,
    PlagiarismMatch
)

logger = logging.getLogger(__name__)

# Levenshtein similarity bands, checked in this order
NEAR_EXACT_THRESHOLD = 0.95
PARAPHRASE_THRESHOLD = 0.70
# Share of words in common for a mosaic match
MOSAIC_THRESHOLD = 0.5


# ============================================================
# Set-based metrics
# ============================================================

def _intersection_size(a: FingerprintSet, b: FingerprintSet) -> Tuple[int, frozenset, frozenset]:
    hashes_a = a.hashes
    hashes_b = b.hashes
    return len(hashes_a & hashes_b), hashes_a, hashes_b


def jaccard_similarity(a: FingerprintSet, b: FingerprintSet) -> float:
    """|A ∩ B| / |A ∪ B| * 100"""
    intersection, hashes_a, hashes_b = _intersection_size(a, b)
    union = len(hashes_a) + len(hashes_b) - intersection
    if union == 0:
        return 0.0
    return intersection / union * 100


def containment_similarity(query: FingerprintSet, source: FingerprintSet) -> float:
    """|Q ∩ S| / |Q| * 100: how much of the query the source covers"""
    intersection, query_hashes, _ = _intersection_size(query, source)
    if not query_hashes:
        return 0.0
    return intersection / len(query_hashes) * 100


def overlap_coefficient(a: FingerprintSet, b: FingerprintSet) -> float:
    """|A ∩ B| / min(|A|, |B|) * 100"""
    intersection, hashes_a, hashes_b = _intersection_size(a, b)
    smaller = min(len(hashes_a), len(hashes_b))
    if smaller == 0:
        return 0.0
    return intersection / smaller * 100


def word_based_similarity(total_words: int, matched_words: int) -> float:
    if total_words <= 0:
        return 0.0
    return min(matched_words / total_words * 100, 100.0)


# ============================================================
# Clustering
# ============================================================

@dataclass(frozen=True)
class MatchCluster:
    """Contiguous run of fingerprint pairs in the query document"""
    pairs: Tuple[FingerprintPair, ...]
    start_offset: int
    end_offset: int
    word_count: int
    ngram_size: int


def _end_of(fingerprint: DocumentFingerprint) -> int:
    if fingerprint.end_position is not None:
        return fingerprint.end_position
    return fingerprint.position + len(fingerprint.ngram)


def _build_cluster(pairs: List[FingerprintPair], ngram_size: int) -> MatchCluster:
    ordered = sorted(pairs, key=lambda pair: pair.query.position)
    first = ordered[0].query
    last = ordered[-1].query

    return MatchCluster(
        pairs=tuple(ordered),
        start_offset=first.position,
        end_offset=_end_of(last),
        word_count=last.word_offset - first.word_offset + ngram_size,
        ngram_size=ngram_size,
    )


def cluster_matches(pairs: Sequence[FingerprintPair],
                    max_gap: int = 2,
                    ngram_size: int = 5) -> List[MatchCluster]:
    """
    Group fingerprint pairs into contiguous regions of the query.

    Pairs are walked in query word order; a word-offset gap of more than
    ``max_gap + 1`` to the previous pair starts a new cluster.
    """
    if not pairs:
        return []

    ordered = sorted(pairs, key=lambda pair: pair.query.word_offset)
    clusters = []
    current = [ordered[0]]

    for previous, pair in zip(ordered, ordered[1:]):
        gap = pair.query.word_offset - previous.query.word_offset
        if gap <= max_gap + 1:
            current.append(pair)
        else:
            clusters.append(_build_cluster(current, ngram_size))
            current = [pair]

    clusters.append(_build_cluster(current, ngram_size))
    return clusters


# ============================================================
# Match type
# ============================================================

def levenshtein_ratio(a: str, b: str) -> float:
    """1 - distance / longest length; identical empty strings score 1"""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - nltk.edit_distance(a, b) / longest


def determine_match_type(query_text: str, source_text: str) -> MatchType:
    """Classify a match: exact, then edit-distance bands, then word overlap"""
    query = query_text.lower().strip()
    source = source_text.lower().strip()

    if query == source:
        return MatchType.EXACT

    ratio = levenshtein_ratio(query, source)
    if ratio >= NEAR_EXACT_THRESHOLD:
        return MatchType.NEAR_EXACT
    if ratio >= PARAPHRASE_THRESHOLD:
        return MatchType.PARAPHRASE

    query_words = query.split()
    source_words = source.split()
    longest = max(len(query_words), len(source_words))
    source_vocabulary = set(source_words)
    common = sum(1 for word in query_words if word in source_vocabulary)
    if longest and common / longest >= MOSAIC_THRESHOLD:
        return MatchType.MOSAIC

    return MatchType.STRUCTURAL


def clusters_to_matches(clusters: Sequence[MatchCluster],
                        original_text: str,
                        source: MatchSource,
                        min_word_count: int = 5) -> List[PlagiarismMatch]:
    """Turn clusters of the query into typed ``PlagiarismMatch`` records"""
    matches = []
    text_length = len(original_text)

    for index, cluster in enumerate(c for c in clusters if c.word_count >= min_word_count):
        end_offset = min(cluster.end_offset, text_length)
        if end_offset <= cluster.start_offset:
            logger.debug(f"Skipping cluster outside the text at {cluster.start_offset}")
            continue

        text = original_text[cluster.start_offset:end_offset]
        density = len(cluster.pairs) / max(cluster.word_count - (cluster.ngram_size - 1), 1)

        matches.append(PlagiarismMatch(
            id=f"match-{index}-{cluster.start_offset}",
            text=text,
            start_offset=cluster.start_offset,
            end_offset=end_offset,
            similarity=round(min(density * 100, 100)),
            word_count=cluster.word_count,
            type=determine_match_type(text, cluster.pairs[0].source.ngram),
            source=source,
        ))

    return matches


def deduplicate_matches(matches: Sequence[PlagiarismMatch]) -> List[PlagiarismMatch]:
    """Resolve overlapping matches, keeping the higher similarity of each overlap"""
    result: List[PlagiarismMatch] = []

    for match in sorted(matches, key=lambda m: m.start_offset):
        overlapping = next(
            (i for i, existing in enumerate(result) if existing.overlaps(match)),
            None
        )
        if overlapping is None:
            result.append(match)
        elif match.similarity > result[overlapping].similarity:
            result[overlapping] = match

    return result


# ============================================================
# Text similarity without fingerprints
# ============================================================

def quick_text_similarity(text1: str, text2: str) -> float:
    """Word-set Jaccard over words longer than two characters"""
    words1 = {w for w in text1.lower().split() if len(w) > 2}
    words2 = {w for w in text2.lower().split() if len(w) > 2}

    if not words1 or not words2:
        return 0.0

    intersection = len(words1 & words2)
    return intersection / len(words1 | words2) * 100


def ngram_text_similarity(text1: str, text2: str, n: int = 3) -> float:
    """Character n-gram Jaccard similarity"""
    texts = [' '.join(t.lower().split()) for t in (text1, text2)]
    if any(len(t) < n for t in texts):
        return 0.0

    vectorizer = CountVectorizer(analyzer='char', ngram_range=(n, n),
                                 lowercase=False, binary=True)
    matrix = vectorizer.fit_transform(texts).toarray().astype(bool)

    union = (matrix[0] | matrix[1]).sum()
    if union == 0:
        return 0.0
    return float((matrix[0] & matrix[1]).sum() / union * 100)


def cosine_text_similarity(text1: str, text2: str) -> float:
    """TF-IDF cosine similarity over word uni- to tri-grams"""
    if not text1.strip() or not text2.strip():
        return 0.0

    vectorizer = TfidfVectorizer(ngram_range=(1, 3), min_df=1, analyzer='word')
    try:
        tfidf_matrix = vectorizer.fit_transform([text1, text2])
    except ValueError:
        # Only stop words or punctuation: nothing to compare
        return 0.0

    return float(cosine_similarity(tfidf_matrix[0], tfidf_matrix[1])[0][0] * 100)
