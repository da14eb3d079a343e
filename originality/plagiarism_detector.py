"""
Main detector class coordinating the plagiarism detection pipeline.
"""

import asyncio
import logging
import textwrap
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .config import (
    CONFIDENCE_THRESHOLDS, SNIPPET_LENGTH, Confidence, ExclusionReason,
    ExternalSource, FingerprintSet, MatchSource, PlagiarismConfig,
    PlagiarismMatch, PlagiarismResult, PlagiarismStats, QuickCheckResult,
    SelfPlagiarismMatch, SourceDocumentInfo, SourceSummary, SourceType,
    UserDocument, UserDocumentLike, default_config, get_classification,
    utc_now_iso
)
from .citation_detector import detect_quotes, find_uncited_quotes, merge_spans
from .exclusion import ExclusionEngine
from .fingerprint import FingerprintGenerator
from .pattern_detector import detect_suspicious_patterns
from .similarity import deduplicate_matches, word_based_similarity
from .similarity_analyzer import SimilarityAnalyzer
from .sources import SourceProvider
from .text_normalizer import count_words

logger = logging.getLogger(__name__)


def determine_confidence(total_words: int, fingerprint_count: int) -> Confidence:
    """Longer documents give statistically more reliable fingerprint coverage"""
    if total_words < CONFIDENCE_THRESHOLDS['low_words']:
        return Confidence.LOW
    if (total_words >= CONFIDENCE_THRESHOLDS['high_words'] and
            fingerprint_count >= CONFIDENCE_THRESHOLDS['high_fingerprints']):
        return Confidence.HIGH
    return Confidence.MEDIUM


def summarize_sources(matches: Sequence[PlagiarismMatch],
                      total_words: int) -> List[SourceSummary]:
    """Per-source totals of the matches that count towards the score"""
    grouped: Dict[MatchSource, List[PlagiarismMatch]] = {}
    for match in matches:
        if not match.excluded:
            grouped.setdefault(match.source, []).append(match)

    summaries = []
    for source, source_matches in grouped.items():
        words = sum(m.word_count for m in source_matches)
        summaries.append(SourceSummary(
            source=source,
            match_count=len(source_matches),
            words_matched=words,
            contribution_percent=round(word_based_similarity(total_words, words), 1),
        ))

    return sorted(summaries, key=lambda s: s.words_matched, reverse=True)


def _coerce_user_documents(user_documents: Iterable[UserDocumentLike]) -> List[UserDocument]:
    return [
        doc if isinstance(doc, UserDocument) else UserDocument.from_dict(doc)
        for doc in user_documents
    ]


class PlagiarismDetector:
    """Main detector class coordinating all components"""

    def __init__(self,
                 config: Optional[PlagiarismConfig] = None,
                 source_providers: Sequence[SourceProvider] = ()):
        self.config = config or default_config()
        self.source_providers = list(source_providers)

        # Initialize components
        self.fingerprinter = FingerprintGenerator(self.config.ngram_size)
        self.analyzer = SimilarityAnalyzer(min_match_length=self.config.min_match_length)

    # ------------------------------------------------------------
    # Self-plagiarism
    # ------------------------------------------------------------

    def _check_self_plagiarism(self,
                               query_fp: FingerprintSet,
                               text: str,
                               document_id: str,
                               user_documents: Sequence[UserDocument]
                               ) -> Tuple[List[SelfPlagiarismMatch], List[PlagiarismMatch], Set[int]]:
        self_matches: List[SelfPlagiarismMatch] = []
        raw_matches: List[PlagiarismMatch] = []
        matched_offsets: Set[int] = set()

        for doc in user_documents:
            if doc.id == document_id:
                continue

            snippet = textwrap.shorten(doc.content, width=SNIPPET_LENGTH, placeholder='...')
            source = MatchSource(
                type=SourceType.USER_DOCUMENT,
                title=doc.title,
                source_snippet=snippet,
            )
            comparison = self.analyzer.compare_documents(
                query_fp, self.fingerprinter.generate(doc.id, doc.content), text, source
            )

            qualifying = [
                m for m in comparison.matches
                if m.similarity >= self.config.similarity_threshold
            ]
            if not qualifying:
                continue

            logger.info(f"  {len(qualifying)} overlaps with own document '{doc.title}'")
            matched_offsets.update(comparison.matched_offsets)
            raw_matches.extend(qualifying)
            for match in qualifying:
                self_matches.append(SelfPlagiarismMatch(
                    id=f"self-{doc.id}-{match.start_offset}",
                    text=match.text,
                    start_offset=match.start_offset,
                    end_offset=match.end_offset,
                    similarity=match.similarity,
                    word_count=match.word_count,
                    source_document=SourceDocumentInfo(
                        id=doc.id,
                        title=doc.title,
                        created_at=doc.created_at,
                        snippet=snippet,
                    ),
                ))

        return self_matches, raw_matches, matched_offsets

    # ------------------------------------------------------------
    # External sources
    # ------------------------------------------------------------

    def _provider_enabled(self, provider: SourceProvider) -> bool:
        sources = self.config.sources
        checks = self.config.checks

        if provider.source_type == SourceType.WEB:
            return sources.web and checks.external_api
        if provider.source_type == SourceType.ACADEMIC:
            return sources.academic
        return checks.external_api

    async def _fetch_external_sources(self, text: str) -> Dict[str, ExternalSource]:
        """Await every enabled provider concurrently; failures contribute nothing"""
        providers = [p for p in self.source_providers if self._provider_enabled(p)]
        if not providers:
            return {}

        results = await asyncio.gather(
            *(p.fetch_sources(text, self.config.ngram_size) for p in providers),
            return_exceptions=True
        )

        sources: Dict[str, ExternalSource] = {}
        for index, (provider, result) in enumerate(zip(providers, results)):
            if isinstance(result, BaseException):
                logger.warning(f"Source provider {provider.name} failed: {result}")
                continue
            for key, entry in result.items():
                entry = self._align_ngram_size(key, entry)
                if entry is not None:
                    sources[f"{index}:{provider.name}:{key}"] = entry

        return sources

    def _align_ngram_size(self, key: str, entry: ExternalSource) -> Optional[ExternalSource]:
        if entry.fingerprints.ngram_size == self.config.ngram_size:
            return entry
        if entry.text is None:
            logger.warning(
                f"Skipping source {key}: fingerprinted at n={entry.fingerprints.ngram_size}, "
                f"expected n={self.config.ngram_size}"
            )
            return None
        return ExternalSource(
            fingerprints=self.fingerprinter.generate(key, entry.text),
            source=entry.source,
            text=entry.text,
        )

    # ------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------

    def _score(self, text: str, raw_matches: Sequence[PlagiarismMatch],
               total_words: int) -> Tuple[List[PlagiarismMatch], float]:
        """Deduplicate, apply exclusions and compute the unrounded similarity"""
        matches = ExclusionEngine(text, self.config).apply(deduplicate_matches(raw_matches))
        matched_words = sum(m.word_count for m in matches if not m.excluded)
        return matches, word_based_similarity(total_words, matched_words)

    async def detect(self,
                     text: str,
                     document_id: str,
                     user_documents: Iterable[UserDocumentLike] = ()) -> PlagiarismResult:
        """Main detection pipeline"""
        start_time = datetime.now()
        user_documents = _coerce_user_documents(user_documents)
        config = self.config

        logger.info(f"Starting plagiarism check of {document_id}")

        # 1. Fingerprint the query
        logger.info("Step 1: Generating fingerprints...")
        query_fp = self.fingerprinter.generate(document_id, text)
        total_words = query_fp.word_count

        raw_matches: List[PlagiarismMatch] = []
        matched_offsets: Set[int] = set()
        self_matches: List[SelfPlagiarismMatch] = []

        # 2. Compare with the user's own documents
        if config.checks.self_plagiarism and config.sources.user_documents and user_documents:
            logger.info(f"Step 2: Checking {len(user_documents)} user documents...")
            self_matches, own_matches, offsets = self._check_self_plagiarism(
                query_fp, text, document_id, user_documents
            )
            raw_matches.extend(own_matches)
            matched_offsets.update(offsets)

        # 3. Compare with external sources
        external = await self._fetch_external_sources(text)
        if external:
            logger.info(f"Step 3: Comparing against {len(external)} external sources...")
            comparison = self.analyzer.compare_against_sources(query_fp, text, external)
            raw_matches.extend(comparison.matches)
            matched_offsets.update(comparison.matched_offsets)

        # 4. Deduplicate, exclude and score
        logger.info("Step 4: Applying exclusions...")
        matches, similarity = self._score(text, raw_matches, total_words)

        # 5. Textual checks
        uncited_quotes = find_uncited_quotes(text) if config.checks.uncited_quotes else []
        suspicious_patterns = (
            detect_suspicious_patterns(text) if config.checks.suspicious_patterns else []
        )

        sources = summarize_sources(matches, total_words)
        quoted_words = sum(
            count_words(text[span.start:span.end]) for span in merge_spans(detect_quotes(text))
        )
        processing_time = (datetime.now() - start_time).total_seconds() * 1000

        stats = PlagiarismStats(
            total_words=total_words,
            matched_words=sum(m.word_count for m in matches if not m.excluded),
            quoted_words=quoted_words,
            cited_words=sum(
                m.word_count for m in matches
                if m.excluded and m.exclusion_reason == ExclusionReason.CITED
            ),
            excluded_words=sum(m.word_count for m in matches if m.excluded),
            unique_sources=len(sources),
            fingerprints_generated=len(query_fp.fingerprints),
            fingerprints_matched=len(matched_offsets),
            processing_time=processing_time,
        )

        similarity_score = round(similarity, 1)
        result = PlagiarismResult(
            id=f"check-{document_id}-{int(start_time.timestamp() * 1000)}",
            document_id=document_id,
            checked_at=utc_now_iso(),
            similarity_score=similarity_score,
            originality_score=round(100 - similarity_score, 1),
            classification=get_classification(similarity),
            confidence=determine_confidence(total_words, len(query_fp.fingerprints)),
            matches=tuple(matches),
            self_plagiarism=tuple(self_matches),
            uncited_quotes=tuple(uncited_quotes),
            suspicious_patterns=tuple(suspicious_patterns),
            stats=stats,
            sources=tuple(sources),
            config=config,
        )

        logger.info(f"Check completed in {processing_time:.0f} ms")
        logger.info(f"Similarity: {similarity_score:.1f}% ({result.classification.value})")
        return result

    def quick_check(self,
                    text: str,
                    document_id: str,
                    user_documents: Iterable[UserDocumentLike] = ()) -> QuickCheckResult:
        """Local-only check: own documents and quotes, no providers, no pattern scan"""
        user_documents = _coerce_user_documents(user_documents)
        query_fp = self.fingerprinter.generate(document_id, text)

        self_matches: List[SelfPlagiarismMatch] = []
        raw_matches: List[PlagiarismMatch] = []
        if self.config.checks.self_plagiarism and self.config.sources.user_documents:
            self_matches, raw_matches, _ = self._check_self_plagiarism(
                query_fp, text, document_id, user_documents
            )

        _, similarity = self._score(text, raw_matches, query_fp.word_count)
        uncited = find_uncited_quotes(text) if self.config.checks.uncited_quotes else []

        similarity_score = round(similarity, 1)
        return QuickCheckResult(
            similarity_score=similarity_score,
            originality_score=round(100 - similarity_score, 1),
            self_plagiarism_count=len(self_matches),
            uncited_quote_count=len(uncited),
        )


async def detect_plagiarism(text: str,
                            document_id: str,
                            user_documents: Iterable[UserDocumentLike] = (),
                            config: Optional[PlagiarismConfig] = None,
                            source_providers: Sequence[SourceProvider] = ()) -> PlagiarismResult:
    """Run the full detection pipeline on one document"""
    detector = PlagiarismDetector(config, source_providers)
    return await detector.detect(text, document_id, user_documents)


def quick_plagiarism_check(text: str,
                           document_id: str,
                           user_documents: Iterable[UserDocumentLike] = (),
                           config: Optional[PlagiarismConfig] = None) -> QuickCheckResult:
    """Synchronous, local-only variant of ``detect_plagiarism``"""
    return PlagiarismDetector(config).quick_check(text, document_id, user_documents)
