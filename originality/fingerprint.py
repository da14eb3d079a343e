"""
N-gram fingerprinting for plagiarism detection.

Every window of ``ngram_size`` consecutive words is hashed into a
``DocumentFingerprint`` that remembers where the window starts, both as a
character offset and as a word index. Optional winnowing keeps only the
rightmost minimum hash of each window of consecutive hashes, which shrinks
large corpora while still guaranteeing detection of long shared passages.
"""

import hashlib
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from nltk.util import ngrams

from .config import DocumentFingerprint, FingerprintPair, FingerprintSet, utc_now_iso
from .text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)

DEFAULT_NGRAM_SIZE = 5
HASH_DIGEST_SIZE = 8


class Ngram(NamedTuple):
    ngram: str
    position: int
    word_offset: int
    end_position: int


def compute_hash(text: str) -> int:
    """64-bit BLAKE2b hash of an n-gram string"""
    digest = hashlib.blake2b(text.encode("utf8"), digest_size=HASH_DIGEST_SIZE).digest()
    return int.from_bytes(digest, "big")


class FingerprintGenerator:
    """Turns raw text into a ``FingerprintSet``"""

    def __init__(self,
                 ngram_size: int = DEFAULT_NGRAM_SIZE,
                 window_size: Optional[int] = None):
        if ngram_size < 1:
            raise ValueError(f"ngram_size must be at least 1, got {ngram_size}")
        if window_size is not None and window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {window_size}")

        self.ngram_size = ngram_size
        self.window_size = window_size
        self.normalizer = TextNormalizer()

    def generate_ngrams(self, text: str) -> List[Ngram]:
        """All word n-grams of the text in document order"""
        spans = self.normalizer.word_spans(text)
        if len(spans) < self.ngram_size:
            return []

        return [
            Ngram(
                ngram=' '.join(span.word for span in window),
                position=window[0].start,
                word_offset=offset,
                end_position=window[-1].end,
            )
            for offset, window in enumerate(ngrams(spans, self.ngram_size))
        ]

    def generate(self, document_id: str, text: str) -> FingerprintSet:
        """Fingerprint a document"""
        hashed = [
            DocumentFingerprint(
                hash=compute_hash(gram.ngram),
                position=gram.position,
                ngram=gram.ngram,
                word_offset=gram.word_offset,
                end_position=gram.end_position,
            )
            for gram in self.generate_ngrams(text)
        ]

        if self.window_size is not None:
            hashed = winnow(hashed, self.window_size)

        fingerprint_set = FingerprintSet(
            document_id=document_id,
            fingerprints=tuple(hashed),
            ngram_size=self.ngram_size,
            word_count=self.normalizer.count_words(text),
            generated_at=utc_now_iso(),
        )
        logger.debug(
            f"Generated {len(hashed)} fingerprints for {document_id} "
            f"({fingerprint_set.word_count} words, n={self.ngram_size})"
        )
        return fingerprint_set


def generate_ngrams(text: str, n: int = DEFAULT_NGRAM_SIZE) -> List[Ngram]:
    return FingerprintGenerator(n).generate_ngrams(text)


def winnow(fingerprints: List[DocumentFingerprint],
           window_size: int = 4) -> List[DocumentFingerprint]:
    """
    Select the rightmost minimum hash of every window of ``window_size``
    consecutive fingerprints, skipping a selection equal to the previous one.
    """
    if len(fingerprints) <= window_size:
        return list(fingerprints)

    selected = []
    previous_index = -1

    for start in range(len(fingerprints) - window_size + 1):
        min_index = start
        for index in range(start + 1, start + window_size):
            if fingerprints[index].hash <= fingerprints[min_index].hash:
                min_index = index

        if min_index != previous_index:
            selected.append(fingerprints[min_index])
            previous_index = min_index

    return selected


def generate_fingerprints(text: str,
                          document_id: str,
                          ngram_size: int = DEFAULT_NGRAM_SIZE,
                          window_size: Optional[int] = None) -> FingerprintSet:
    """Generate the fingerprint set for a document"""
    return FingerprintGenerator(ngram_size, window_size).generate(document_id, text)


def generate_fingerprints_for_documents(documents: Iterable[Tuple[str, str]],
                                        ngram_size: int = DEFAULT_NGRAM_SIZE) -> Dict[str, FingerprintSet]:
    """Fingerprint ``(document_id, text)`` pairs with one shared generator"""
    generator = FingerprintGenerator(ngram_size)
    return {doc_id: generator.generate(doc_id, text) for doc_id, text in documents}


# ============================================================
# Fingerprint comparison
# ============================================================

def find_matching_fingerprints(query: FingerprintSet,
                               source: FingerprintSet) -> List[FingerprintPair]:
    """Pairs of query/source fingerprints with the same hash and n-gram text"""
    by_hash = defaultdict(list)
    for fp in source.fingerprints:
        by_hash[fp.hash].append(fp)

    pairs = []
    for query_fp in query.fingerprints:
        for source_fp in by_hash.get(query_fp.hash, ()):
            # Guard against hash collisions
            if query_fp.ngram == source_fp.ngram:
                pairs.append(FingerprintPair(query_fp, source_fp))

    return pairs


FingerprintIndex = Dict[int, List[Tuple[str, DocumentFingerprint]]]


def build_fingerprint_index(documents: Mapping[str, FingerprintSet]) -> FingerprintIndex:
    """Inverted index from hash to ``(document_id, fingerprint)`` entries"""
    index = defaultdict(list)
    for doc_id, fingerprint_set in documents.items():
        for fp in fingerprint_set.fingerprints:
            index[fp.hash].append((doc_id, fp))
    return dict(index)


def search_with_index(query: FingerprintSet,
                      index: FingerprintIndex) -> Dict[str, List[FingerprintPair]]:
    """Matching fingerprint pairs per indexed document, excluding the query itself"""
    results = defaultdict(list)
    for query_fp in query.fingerprints:
        for doc_id, indexed_fp in index.get(query_fp.hash, ()):
            if doc_id == query.document_id:
                continue
            if query_fp.ngram == indexed_fp.ngram:
                results[doc_id].append(FingerprintPair(query_fp, indexed_fp))
    return dict(results)
