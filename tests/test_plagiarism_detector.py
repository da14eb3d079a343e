"""Tests for the detection pipeline."""

import json
import logging
from dataclasses import replace

import pytest

from originality import PlagiarismDetector, detect_plagiarism, quick_plagiarism_check
from originality.config import (
    CheckSettings, Confidence, ExclusionReason, ExternalSource, MatchSource,
    PlagiarismClassification, SourceSettings, SourceType, SuspiciousPatternType,
    UserDocument, default_config
)
from originality.fingerprint import generate_fingerprints
from originality.plagiarism_detector import determine_confidence
from originality.sources import InMemorySourceProvider, SourceProvider


# ============================================================================
# Fixtures
# ============================================================================

class StaticProvider(SourceProvider):
    """Returns a fixed mapping of sources."""

    def __init__(self, sources, source_type=SourceType.ACADEMIC):
        self.sources = sources
        self.source_type = source_type

    async def fetch_sources(self, text, ngram_size):
        return self.sources


class FailingProvider(SourceProvider):
    source_type = SourceType.ACADEMIC

    async def fetch_sources(self, text, ngram_size):
        raise RuntimeError("search backend unavailable")


@pytest.fixture
def academic_provider(source_text):
    return InMemorySourceProvider(
        [("paper-1", source_text, MatchSource(type=SourceType.ACADEMIC, title="Cell biology review"))],
        SourceType.ACADEMIC,
    )


# ============================================================================
# Tests: End-to-end scenarios
# ============================================================================

class TestScenarios:

    @pytest.mark.asyncio
    async def test_empty_text(self):
        result = await detect_plagiarism("", "doc1")

        assert result.similarity_score == 0
        assert result.originality_score == 100
        assert result.matches == ()
        assert result.stats.fingerprints_generated == 0
        assert result.classification == PlagiarismClassification.ORIGINAL
        assert result.confidence == Confidence.LOW

    @pytest.mark.asyncio
    async def test_uncited_quote(self):
        result = await detect_plagiarism('"This is an uncited quote that is quite long."', "doc1")

        assert len(result.uncited_quotes) == 1

    @pytest.mark.asyncio
    async def test_cited_quote(self):
        text = 'According to (Smith, 2023), "this is properly cited and long enough."'

        result = await detect_plagiarism(text, "doc1")

        assert len(result.uncited_quotes) == 0

    @pytest.mark.asyncio
    async def test_self_plagiarism(self, query_text, shared_phrase, user_documents):
        result = await detect_plagiarism(query_text, "doc1", user_documents)

        assert len(result.self_plagiarism) >= 1
        match = result.self_plagiarism[0]
        assert match.source_document.id == "doc2"
        assert match.source_document.title == "Biology notes"
        assert match.source_document.created_at == "2024-01-15T10:00:00+00:00"
        assert match.text == shared_phrase
        assert len(match.source_document.snippet) <= 100

    @pytest.mark.asyncio
    async def test_quick_check_agrees_with_full_check(self, query_text, user_documents):
        full = await detect_plagiarism(query_text, "doc1", user_documents)
        quick = quick_plagiarism_check(query_text, "doc1", user_documents)

        assert full.similarity_score > 0
        assert quick.similarity_score > 0
        assert quick.similarity_score == full.similarity_score
        assert quick.self_plagiarism_count == len(full.self_plagiarism)


# ============================================================================
# Tests: Scoring and statistics
# ============================================================================

class TestScoring:

    @pytest.mark.asyncio
    async def test_score_and_stats(self, query_text, user_documents):
        result = await detect_plagiarism(query_text, "doc1", user_documents)

        assert result.similarity_score == 57.9
        assert result.originality_score == 42.1
        assert result.classification == PlagiarismClassification.CONCERNING
        assert result.stats.total_words == 19
        assert result.stats.matched_words == 11
        assert result.stats.excluded_words == 0
        assert result.stats.fingerprints_generated == 15
        assert result.stats.fingerprints_matched == 7
        assert result.stats.unique_sources == 1
        assert result.stats.processing_time >= 0

    @pytest.mark.asyncio
    async def test_matches_carry_user_document_source(self, query_text, user_documents):
        result = await detect_plagiarism(query_text, "doc1", user_documents)

        assert len(result.matches) == 1
        assert result.matches[0].source.type == SourceType.USER_DOCUMENT
        assert result.sources[0].source.title == "Biology notes"
        assert result.sources[0].contribution_percent == 57.9

    @pytest.mark.asyncio
    async def test_excluded_matches_do_not_count(self, shared_phrase, user_documents):
        text = f'Intro words go first. "{shared_phrase}" Closing remarks end it.'

        result = await detect_plagiarism(text, "doc1", user_documents)

        assert len(result.matches) == 1
        assert result.matches[0].excluded
        assert result.matches[0].exclusion_reason == ExclusionReason.QUOTED
        assert result.similarity_score == 0
        assert result.stats.excluded_words == 11
        assert result.stats.quoted_words == 11
        assert result.stats.matched_words == 0
        assert result.sources == ()

    @pytest.mark.asyncio
    async def test_unattributed_repeat_still_counts(self, shared_phrase, user_documents):
        text = (
            f'Early on we read "{shared_phrase}" (Smith, 2023). ' + "filler " * 40 +
            f"Later in my own words: {shared_phrase} and so on."
        )

        result = await detect_plagiarism(text, "doc1", user_documents)

        first, later = sorted(result.matches, key=lambda m: m.start_offset)
        assert first.excluded and first.exclusion_reason == ExclusionReason.QUOTED
        assert not later.excluded
        assert later.start_offset == text.rindex(shared_phrase)
        assert result.stats.matched_words == later.word_count >= 11
        assert result.similarity_score > 0

    @pytest.mark.asyncio
    async def test_mapping_user_documents(self, query_text, source_text):
        documents = [{"id": "doc2", "title": "Notes", "content": source_text, "createdAt": 1700000000000}]

        result = await detect_plagiarism(query_text, "doc1", documents)

        assert result.self_plagiarism[0].source_document.created_at == 1700000000000

    @pytest.mark.asyncio
    async def test_current_document_skipped(self, query_text):
        documents = [UserDocument(id="doc1", title="Itself", content=query_text)]

        result = await detect_plagiarism(query_text, "doc1", documents)

        assert result.self_plagiarism == ()
        assert result.similarity_score == 0

    @pytest.mark.asyncio
    async def test_self_plagiarism_disabled(self, query_text, user_documents):
        config = replace(default_config(), checks=CheckSettings(self_plagiarism=False))

        result = await detect_plagiarism(query_text, "doc1", user_documents, config)

        assert result.self_plagiarism == ()
        assert result.similarity_score == 0

    @pytest.mark.asyncio
    async def test_user_document_source_disabled(self, query_text, user_documents):
        config = replace(default_config(), sources=SourceSettings(user_documents=False))

        result = await detect_plagiarism(query_text, "doc1", user_documents, config)

        assert result.self_plagiarism == ()

    @pytest.mark.asyncio
    async def test_config_echoed(self, query_text):
        config = replace(default_config(), ngram_size=4)

        result = await detect_plagiarism(query_text, "doc1", config=config)

        assert result.config == config
        assert result.id.startswith("check-doc1-")


class TestConfidence:

    def test_thresholds(self):
        assert determine_confidence(16, 12) == Confidence.LOW
        assert determine_confidence(300, 296) == Confidence.MEDIUM
        assert determine_confidence(600, 596) == Confidence.HIGH
        assert determine_confidence(600, 10) == Confidence.MEDIUM

    @pytest.mark.asyncio
    async def test_long_document_is_high_confidence(self, long_text):
        result = await detect_plagiarism(long_text, "long")

        assert result.confidence == Confidence.HIGH
        assert result.classification == PlagiarismClassification.ORIGINAL


# ============================================================================
# Tests: Optional checks
# ============================================================================

class TestOptionalChecks:

    @pytest.mark.asyncio
    async def test_uncited_quotes_disabled(self):
        config = replace(default_config(), checks=CheckSettings(uncited_quotes=False))

        result = await detect_plagiarism('"This is an uncited quote that is quite long."', "doc1", config=config)

        assert result.uncited_quotes == ()

    @pytest.mark.asyncio
    async def test_suspicious_patterns(self):
        result = await detect_plagiarism(f"hidden{chr(0x200B)}space in this text", "doc1")

        assert [p.type for p in result.suspicious_patterns] == [SuspiciousPatternType.INVISIBLE_CHARACTERS]

    @pytest.mark.asyncio
    async def test_suspicious_patterns_disabled(self):
        config = replace(default_config(), checks=CheckSettings(suspicious_patterns=False))

        result = await detect_plagiarism(f"hidden{chr(0x200B)}space", "doc1", config=config)

        assert result.suspicious_patterns == ()


# ============================================================================
# Tests: External sources
# ============================================================================

class TestSourceProviders:

    @pytest.mark.asyncio
    async def test_academic_provider(self, query_text, academic_provider):
        detector = PlagiarismDetector(source_providers=[academic_provider])

        result = await detector.detect(query_text, "doc1")

        assert len(result.matches) == 1
        assert result.matches[0].source.title == "Cell biology review"
        assert result.similarity_score == 57.9
        assert result.self_plagiarism == ()

    @pytest.mark.asyncio
    async def test_web_provider_needs_external_api(self, query_text, source_text):
        web = InMemorySourceProvider(
            [("page", source_text, MatchSource(type=SourceType.WEB, url="https://example.org"))],
            SourceType.WEB,
        )

        disabled = await PlagiarismDetector(source_providers=[web]).detect(query_text, "doc1")

        config = replace(
            default_config(),
            checks=CheckSettings(external_api=True),
            sources=SourceSettings(web=True),
        )
        enabled = await PlagiarismDetector(config, [web]).detect(query_text, "doc1")

        assert disabled.matches == ()
        assert len(enabled.matches) == 1

    @pytest.mark.asyncio
    async def test_failing_provider_is_skipped(self, query_text, academic_provider, caplog):
        detector = PlagiarismDetector(source_providers=[FailingProvider(), academic_provider])

        with caplog.at_level(logging.WARNING):
            result = await detector.detect(query_text, "doc1")

        assert len(result.matches) == 1
        assert "search backend unavailable" in caplog.text

    @pytest.mark.asyncio
    async def test_mismatched_ngram_size(self, query_text, source_text):
        source = MatchSource(type=SourceType.ACADEMIC, title="Other n")
        without_text = StaticProvider({
            "s": ExternalSource(generate_fingerprints(source_text, "s", ngram_size=4), source),
        })
        with_text = StaticProvider({
            "s": ExternalSource(generate_fingerprints(source_text, "s", ngram_size=4), source, source_text),
        })

        skipped = await PlagiarismDetector(source_providers=[without_text]).detect(query_text, "doc1")
        refingerprinted = await PlagiarismDetector(source_providers=[with_text]).detect(query_text, "doc1")

        assert skipped.matches == ()
        assert len(refingerprinted.matches) == 1

    @pytest.mark.asyncio
    async def test_self_and_external_overlap_deduplicated(self, query_text, user_documents, academic_provider):
        detector = PlagiarismDetector(source_providers=[academic_provider])

        result = await detector.detect(query_text, "doc1", user_documents)

        assert len(result.matches) == 1
        assert len(result.self_plagiarism) == 1
        assert result.similarity_score == 57.9


# ============================================================================
# Tests: Quick check and serialization
# ============================================================================

def test_quick_check_without_event_loop(query_text, user_documents):
    result = quick_plagiarism_check(query_text, "doc1", user_documents)

    assert result.similarity_score == 57.9
    assert result.originality_score == 42.1
    assert result.self_plagiarism_count == 1
    assert result.uncited_quote_count == 0


def test_quick_check_empty_text():
    result = quick_plagiarism_check("", "doc1")

    assert result.similarity_score == 0
    assert result.originality_score == 100


@pytest.mark.asyncio
async def test_result_serializes_to_json(query_text, user_documents, tmp_path):
    result = await detect_plagiarism(query_text, "doc1", user_documents)

    data = json.loads(result.to_json())

    assert data["classification"] == "concerning"
    assert data["matches"][0]["source"]["type"] == "user-document"
    assert data["self_plagiarism"][0]["source_document"]["id"] == "doc2"
    assert data["config"]["ngram_size"] == 5

    path = tmp_path / "result.json"
    result.save_json(str(path))
    assert json.loads(path.read_text(encoding="utf-8"))["document_id"] == "doc1"
