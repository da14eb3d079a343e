"""
Exclusion rules deciding which matches do not count towards the score.

Rules are checked in a fixed priority order and the first one that applies
names the reason: quoted, cited, common phrase, user phrase, then reference
section. Excluding a match flags it; it is never dropped.
"""

import re
import logging
from dataclasses import replace
from typing import List, NamedTuple, Optional, Sequence

from .config import (
    COMMON_ACADEMIC_PHRASES, EXCLUSION_CITATION_PROXIMITY, REFERENCE_HEADINGS,
    ExclusionReason, PlagiarismConfig, PlagiarismMatch, default_config
)
from .citation_detector import detect_citations, detect_quotes, has_nearby_citation
from .text_normalizer import normalize_text

logger = logging.getLogger(__name__)

_REFERENCE_HEADING_RE = re.compile(
    r'^[ \t]*(?:' + '|'.join(re.escape(h) for h in REFERENCE_HEADINGS) + r')[ \t]*:?[ \t]*$',
    re.IGNORECASE | re.MULTILINE
)

_NORMALIZED_COMMON_PHRASES = [normalize_text(p) for p in COMMON_ACADEMIC_PHRASES]


class ExclusionDecision(NamedTuple):
    excluded: bool
    reason: Optional[ExclusionReason] = None


NOT_EXCLUDED = ExclusionDecision(False)


def find_reference_section(text: str) -> Optional[int]:
    """Offset just past the last References/Bibliography heading, if any"""
    headings = list(_REFERENCE_HEADING_RE.finditer(text))
    if not headings:
        return None
    return headings[-1].end()


class ExclusionEngine:
    """
    Applies the exclusion rules of one configuration to the matches of one
    text. Quotes, citations and the reference section are detected once, on
    construction.
    """

    def __init__(self, text: str, config: Optional[PlagiarismConfig] = None):
        self.text = text
        self.config = config or default_config()
        settings = self.config.exclusions

        self.quotes = detect_quotes(text) if settings.quotes else []
        self.citations = detect_citations(text) if settings.citations else []
        self.reference_start = find_reference_section(text) if settings.references else None
        self.custom_phrases = [p.lower() for p in settings.custom_phrases if p.strip()]

    # Quote and citation rules look at the match's own span only; the same
    # passage repeated elsewhere without attribution still counts.
    def _is_quoted(self, match: PlagiarismMatch) -> bool:
        return any(
            quote.start_offset <= match.start_offset and match.end_offset <= quote.end_offset
            for quote in self.quotes
        )

    def _is_cited(self, match: PlagiarismMatch) -> bool:
        return has_nearby_citation(match, self.citations, EXCLUSION_CITATION_PROXIMITY)

    def _is_common_phrase(self, match: PlagiarismMatch) -> bool:
        normalized = normalize_text(match.text)
        if not normalized:
            return False
        return any(
            normalized == phrase or normalized in phrase or phrase in normalized
            for phrase in _NORMALIZED_COMMON_PHRASES
        )

    def _is_user_excluded(self, match: PlagiarismMatch) -> bool:
        lowered = match.text.lower()
        return any(phrase in lowered for phrase in self.custom_phrases)

    def _in_references(self, match: PlagiarismMatch) -> bool:
        return self.reference_start is not None and match.start_offset >= self.reference_start

    def decide(self, match: PlagiarismMatch) -> ExclusionDecision:
        """First applicable exclusion reason for a match"""
        settings = self.config.exclusions

        if settings.quotes and self._is_quoted(match):
            return ExclusionDecision(True, ExclusionReason.QUOTED)
        if settings.citations and self._is_cited(match):
            return ExclusionDecision(True, ExclusionReason.CITED)
        if settings.common_phrases and self._is_common_phrase(match):
            return ExclusionDecision(True, ExclusionReason.COMMON_PHRASE)
        if self._is_user_excluded(match):
            return ExclusionDecision(True, ExclusionReason.USER_EXCLUDED)
        if settings.references and self._in_references(match):
            return ExclusionDecision(True, ExclusionReason.REFERENCE)

        return NOT_EXCLUDED

    def apply(self, matches: Sequence[PlagiarismMatch]) -> List[PlagiarismMatch]:
        """New match records with the exclusion flag and reason set"""
        processed = []
        for match in matches:
            decision = self.decide(match)
            processed.append(replace(
                match, excluded=decision.excluded, exclusion_reason=decision.reason
            ))

        excluded = sum(1 for m in processed if m.excluded)
        if excluded:
            logger.debug(f"Excluded {excluded} of {len(processed)} matches")
        return processed


def should_exclude_match(match: PlagiarismMatch,
                         full_text: str,
                         config: Optional[PlagiarismConfig] = None) -> ExclusionDecision:
    return ExclusionEngine(full_text, config).decide(match)


def apply_exclusions(matches: Sequence[PlagiarismMatch],
                     text: str,
                     config: Optional[PlagiarismConfig] = None) -> List[PlagiarismMatch]:
    return ExclusionEngine(text, config).apply(matches)
