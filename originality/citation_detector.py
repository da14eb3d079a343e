"""
Quote and citation detection.

Both detectors are driven by pattern tables: supporting a new quote style or
citation format means adding a row, not a branch.
"""

import re
import logging
from typing import List, Pattern, Sequence, Tuple, Union

from .config import (
    CITATION_PROXIMITY, MIN_QUOTE_WORDS, CitationFormat, DetectedCitation,
    DetectedQuote, PlagiarismMatch, QuoteType, TextSpan, UncitedQuote
)
from .text_normalizer import count_words

logger = logging.getLogger(__name__)

# Group 1 holds the quoted content
QUOTE_PATTERNS: List[Tuple[Pattern, QuoteType]] = [
    (re.compile(r'"([^"]+)"'), QuoteType.DOUBLE),
    # Apostrophes inside words ("don't", "students' work") are not delimiters
    (re.compile(r"(?<!\w)'([^']+)'(?!\w)"), QuoteType.SINGLE),
    (re.compile(r'“([^”]+)”'), QuoteType.SMART),
    (re.compile(r'«([^»]+)»'), QuoteType.GUILLEMET),
    (re.compile(r'「([^」]+)」'), QuoteType.GUILLEMET),
]

_AUTHOR = r"[A-Z][A-Za-z'\-]+(?:\s+(?:et\s+al\.|(?:&|and)\s+[A-Z][A-Za-z'\-]+))?"
_YEAR = r"\d{4}[a-z]?"
_AUTHOR_YEAR = rf"{_AUTHOR},\s*{_YEAR}"

# (pattern, format, group holding the citation text)
CITATION_PATTERNS: List[Tuple[Pattern, CitationFormat, int]] = [
    # (Smith, 2023), (Jones et al., 2022), (Brown & White, 2021), (Lee, 2020; Kim, 2019)
    (re.compile(rf"\({_AUTHOR_YEAR}(?:;\s*{_AUTHOR_YEAR})*\)"), CitationFormat.AUTHOR_YEAR, 0),
    # Smith (2023), Jones et al. (2022)
    (re.compile(rf"\b{_AUTHOR}\s+\({_YEAR}\)"), CitationFormat.AUTHOR_YEAR, 0),
    # [42], [1,2,3], [1-5]
    (re.compile(r"\[\d+(?:\s*[,\-–]\s*\d+)*\]"), CitationFormat.NUMERIC, 0),
    # Footnote marker after sentence punctuation: "found. 12 Next"
    (re.compile(r"(?<!\d)[.!?]\s*(\d{1,3})(?=\s|$)"), CitationFormat.NUMERIC, 1),
    # Superscript digits: "found.¹²"
    (re.compile(r"[¹²³⁴⁵⁶⁷⁸⁹⁰]+"), CitationFormat.NUMERIC, 0),
]

UNCITED_QUOTE_SUGGESTION = 'Add a citation for this quoted text'

Span = Union[DetectedQuote, DetectedCitation, PlagiarismMatch, UncitedQuote, TextSpan]


def _bounds(span: Span) -> Tuple[int, int]:
    if isinstance(span, TextSpan):
        return span.start, span.end
    return span.start_offset, span.end_offset


def detect_quotes(text: str) -> List[DetectedQuote]:
    """
    Find quoted spans of every supported style.

    Each style is scanned independently so a single-quoted span nested in a
    double-quoted one is reported as well. Offsets exclude the delimiters.
    """
    if not text:
        return []

    quotes = []
    for pattern, quote_type in QUOTE_PATTERNS:
        for match in pattern.finditer(text):
            quotes.append(DetectedQuote(
                text=match.group(1),
                start_offset=match.start(1),
                end_offset=match.end(1),
                quote_type=quote_type,
            ))

    return sorted(quotes, key=lambda q: (q.start_offset, q.end_offset))


def detect_citations(text: str) -> List[DetectedCitation]:
    """Find author-year, numeric and footnote citations"""
    if not text:
        return []

    citations = []
    seen = set()
    for pattern, citation_format, group in CITATION_PATTERNS:
        for match in pattern.finditer(text):
            bounds = (match.start(group), match.end(group))
            if bounds in seen:
                continue
            seen.add(bounds)
            citations.append(DetectedCitation(
                citation=match.group(group),
                start_offset=bounds[0],
                end_offset=bounds[1],
                format=citation_format,
            ))

    return sorted(citations, key=lambda c: c.start_offset)


def has_nearby_citation(span: Span,
                        citations: Sequence[Span],
                        max_distance: int = CITATION_PROXIMITY) -> bool:
    """True when a citation sits within ``max_distance`` characters of the span"""
    start, end = _bounds(span)

    for citation in citations:
        cite_start, cite_end = _bounds(citation)
        # Citation before the span
        if cite_end <= start and start - cite_end <= max_distance:
            return True
        # Citation after the span
        if cite_start >= end and cite_start - end <= max_distance:
            return True
        # Citation inside the span
        if cite_start < end and cite_end > start:
            return True

    return False


def find_uncited_quotes(text: str, min_words: int = MIN_QUOTE_WORDS) -> List[UncitedQuote]:
    """Substantive quotes with no citation close by"""
    quotes = [q for q in detect_quotes(text) if count_words(q.text) >= min_words]
    if not quotes:
        return []

    citations = detect_citations(text)
    uncited = [
        UncitedQuote(
            id=f"uncited-{quote.start_offset}",
            text=quote.text,
            start_offset=quote.start_offset,
            end_offset=quote.end_offset,
            quote_type=quote.quote_type,
            suggestion=UNCITED_QUOTE_SUGGESTION,
        )
        for quote in quotes
        if not has_nearby_citation(quote, citations)
    ]

    if uncited:
        logger.debug(f"{len(uncited)} of {len(quotes)} quotes lack a citation")
    return uncited


def merge_spans(spans: Sequence[Span]) -> List[TextSpan]:
    """Union of possibly overlapping spans, sorted by start"""
    merged: List[TextSpan] = []
    for start, end in sorted(_bounds(span) for span in spans):
        if merged and start <= merged[-1].end:
            if end > merged[-1].end:
                merged[-1] = TextSpan(merged[-1].start, end)
        else:
            merged.append(TextSpan(start, end))
    return merged
