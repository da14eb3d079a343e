"""
Text normalization and word tokenization module.
"""

import re
from typing import List, NamedTuple

from nltk.tokenize import RegexpTokenizer


class WordSpan(NamedTuple):
    """Normalized word with its character span in the original text"""
    word: str
    start: int
    end: int


class TextNormalizer:
    """Tokenizes text into case-normalized words that map back to offsets"""

    # Words with inner apostrophes ("don't") stay single tokens
    WORD_PATTERN = r"\w+(?:['’]\w+)*"

    def __init__(self):
        self.tokenizer = RegexpTokenizer(self.WORD_PATTERN)

        # Regex patterns for normalization
        self.patterns = [
            (r"[^\w\s']", ' '),  # Remove punctuation
            (r"(?<!\w)'|'(?!\w)", ' '),  # Remove standalone apostrophes
            (r'\s+', ' '),  # Normalize whitespace
        ]

    def normalize(self, text: str) -> str:
        """Lowercase, strip punctuation and collapse whitespace"""
        if not text:
            return ""

        text = text.lower().replace('’', "'")
        for pattern, replacement in self.patterns:
            text = re.sub(pattern, replacement, text)

        return text.strip()

    def word_spans(self, text: str) -> List[WordSpan]:
        """Words in document order with their character offsets"""
        if not text:
            return []

        return [
            WordSpan(text[start:end].lower().replace('’', "'"), start, end)
            for start, end in self.tokenizer.span_tokenize(text)
        ]

    def split_into_words(self, text: str) -> List[str]:
        return [span.word for span in self.word_spans(text)]

    def count_words(self, text: str) -> int:
        return len(self.word_spans(text))


_default_normalizer = TextNormalizer()


def normalize_text(text: str) -> str:
    return _default_normalizer.normalize(text)


def split_into_words(text: str) -> List[str]:
    return _default_normalizer.split_into_words(text)


def get_word_positions(text: str) -> List[WordSpan]:
    return _default_normalizer.word_spans(text)


def count_words(text: str) -> int:
    return _default_normalizer.count_words(text)
