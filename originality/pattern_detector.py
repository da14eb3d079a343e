"""
Suspicious-pattern detection: homoglyph substitution, invisible characters
and inconsistent writing style.
"""

import re
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from nltk.tokenize import RegexpTokenizer

from .config import SuspiciousPattern, SuspiciousPatternType, TextSpan

logger = logging.getLogger(__name__)

# Confusable letter -> the Latin letter it imitates
CONFUSABLE_CHARACTERS: Dict[str, str] = {
    # Cyrillic lowercase
    chr(0x0430): 'a', chr(0x0435): 'e', chr(0x043E): 'o', chr(0x0440): 'p',
    chr(0x0441): 'c', chr(0x0445): 'x', chr(0x0443): 'y', chr(0x0456): 'i',
    chr(0x0458): 'j', chr(0x0455): 's', chr(0x04BB): 'h', chr(0x0501): 'd',
    # Cyrillic uppercase
    chr(0x0410): 'A', chr(0x0412): 'B', chr(0x0415): 'E', chr(0x041A): 'K',
    chr(0x041C): 'M', chr(0x041D): 'H', chr(0x041E): 'O', chr(0x0420): 'P',
    chr(0x0421): 'C', chr(0x0422): 'T', chr(0x0425): 'X', chr(0x0406): 'I',
    # Greek
    chr(0x03BF): 'o', chr(0x03B1): 'a', chr(0x03BD): 'v', chr(0x03C1): 'p',
    chr(0x0391): 'A', chr(0x0392): 'B', chr(0x0395): 'E', chr(0x0397): 'H',
    chr(0x0399): 'I', chr(0x039A): 'K', chr(0x039C): 'M', chr(0x039D): 'N',
    chr(0x039F): 'O', chr(0x03A1): 'P', chr(0x03A4): 'T', chr(0x03A7): 'X',
}

INVISIBLE_CHARACTERS: Dict[str, str] = {
    chr(0x200B): 'zero-width space',
    chr(0x200C): 'zero-width non-joiner',
    chr(0x200D): 'zero-width joiner',
    chr(0x200E): 'left-to-right mark',
    chr(0x200F): 'right-to-left mark',
    chr(0x202A): 'left-to-right embedding',
    chr(0x202B): 'right-to-left embedding',
    chr(0x202C): 'pop directional formatting',
    chr(0x202D): 'left-to-right override',
    chr(0x202E): 'right-to-left override',
    chr(0x2060): 'word joiner',
    chr(0x2061): 'function application',
    chr(0x2062): 'invisible times',
    chr(0x2063): 'invisible separator',
    chr(0x2064): 'invisible plus',
    chr(0x2066): 'left-to-right isolate',
    chr(0x2067): 'right-to-left isolate',
    chr(0x2068): 'first strong isolate',
    chr(0x2069): 'pop directional isolate',
    chr(0x180E): 'mongolian vowel separator',
    chr(0xFEFF): 'byte order mark',
}

# (minimum count, severity), highest band first
SUBSTITUTION_SEVERITY: List[Tuple[int, int]] = [(8, 5), (4, 4), (2, 3), (1, 2)]
INVISIBLE_SEVERITY: List[Tuple[int, int]] = [(10, 5), (5, 4), (2, 3), (1, 2)]

# Style inconsistency thresholds, in words per sentence
STYLE_SPREAD_THRESHOLD = 8.0
STYLE_VARIATION_THRESHOLD = 0.5
MIN_PARAGRAPH_WORDS = 5

_WORD_RE = re.compile(r'\w+')
_INVISIBLE_RE = re.compile('[' + ''.join(INVISIBLE_CHARACTERS) + ']')
_PARAGRAPH_BREAK_RE = re.compile(r'\n[ \t]*\n\s*')
_sentence_tokenizer = RegexpTokenizer(r'[^.!?]+')


def _severity(count: int, bands: Sequence[Tuple[int, int]]) -> int:
    for minimum, severity in bands:
        if count >= minimum:
            return severity
    return 1


def detect_character_substitution(text: str) -> Optional[SuspiciousPattern]:
    """Confusable letters hidden inside otherwise-Latin words"""
    positions = []

    for word in _WORD_RE.finditer(text):
        token = word.group(0)
        if not any('a' <= ch.lower() <= 'z' for ch in token):
            continue
        for index, ch in enumerate(token):
            if ch in CONFUSABLE_CHARACTERS:
                start = word.start() + index
                positions.append(TextSpan(start, start + 1))

    if not positions:
        return None

    return SuspiciousPattern(
        type=SuspiciousPatternType.CHARACTER_SUBSTITUTION,
        description=(
            f"Found {len(positions)} suspicious character(s) that may be "
            f"Unicode lookalikes of Latin letters"
        ),
        severity=_severity(len(positions), SUBSTITUTION_SEVERITY),
        positions=tuple(positions),
    )


def detect_invisible_characters(text: str) -> Optional[SuspiciousPattern]:
    """Zero-width, bidi-control and BOM code points"""
    found = [(m.start(), m.group(0)) for m in _INVISIBLE_RE.finditer(text)]
    if not found:
        return None

    names = sorted({INVISIBLE_CHARACTERS[ch] for _, ch in found})
    return SuspiciousPattern(
        type=SuspiciousPatternType.INVISIBLE_CHARACTERS,
        description=(
            f"Found {len(found)} invisible character(s) that may be used to "
            f"evade detection: {', '.join(names)}"
        ),
        severity=_severity(len(found), INVISIBLE_SEVERITY),
        positions=tuple(TextSpan(start, start + 1) for start, _ in found),
    )


def paragraph_spans(text: str) -> List[TextSpan]:
    """Blocks of text separated by at least one blank line"""
    spans = []
    start = 0
    for brk in _PARAGRAPH_BREAK_RE.finditer(text):
        spans.append(TextSpan(start, brk.start()))
        start = brk.end()
    spans.append(TextSpan(start, len(text)))

    return [span for span in spans if text[span.start:span.end].strip()]


def average_sentence_length(paragraph: str) -> float:
    lengths = [
        len(sentence.split())
        for sentence in _sentence_tokenizer.tokenize(paragraph)
        if sentence.strip()
    ]
    return float(np.mean(lengths)) if lengths else 0.0


def detect_style_inconsistency(text: str) -> Optional[SuspiciousPattern]:
    """Large spread of average sentence length between paragraphs"""
    paragraphs = [
        span for span in paragraph_spans(text)
        if len(text[span.start:span.end].split()) >= MIN_PARAGRAPH_WORDS
    ]
    if len(paragraphs) < 2:
        return None

    lengths = np.array([
        average_sentence_length(text[span.start:span.end]) for span in paragraphs
    ])
    mean = float(lengths.mean())
    spread = float(lengths.std())

    if mean == 0 or spread <= STYLE_SPREAD_THRESHOLD:
        return None

    variation = spread / mean
    if variation <= STYLE_VARIATION_THRESHOLD:
        return None

    shortest = paragraphs[int(lengths.argmin())]
    longest = paragraphs[int(lengths.argmax())]
    logger.debug(
        f"Sentence length varies from {lengths.min():.1f} to {lengths.max():.1f} "
        f"words across {len(paragraphs)} paragraphs"
    )

    return SuspiciousPattern(
        type=SuspiciousPatternType.INCONSISTENT_STYLE,
        description=(
            f"Writing style varies significantly between paragraphs "
            f"(average sentence length {lengths.min():.0f} to {lengths.max():.0f} words)"
        ),
        severity=min(5, 1 + int(spread // STYLE_SPREAD_THRESHOLD)),
        positions=tuple(sorted({shortest, longest}, key=lambda s: s.start)),
    )


DETECTORS = [
    detect_character_substitution,
    detect_invisible_characters,
    detect_style_inconsistency,
]


def detect_suspicious_patterns(text: str) -> List[SuspiciousPattern]:
    """Run every detector; an empty list means the text looks clean"""
    patterns = []
    for detector in DETECTORS:
        pattern = detector(text)
        if pattern is not None:
            patterns.append(pattern)
    return patterns
