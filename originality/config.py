"""
Configuration, enums, and data classes for the originality engine.
"""

from enum import Enum
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import json

from utils.validators import validate_config


class MatchType(str, Enum):
    """Match classification, ordered by decreasing lexical identity"""
    EXACT = "exact"
    NEAR_EXACT = "near-exact"
    PARAPHRASE = "paraphrase"
    MOSAIC = "mosaic"
    STRUCTURAL = "structural"


class SourceType(str, Enum):
    """Provenance of a matched source"""
    WEB = "web"
    ACADEMIC = "academic"
    BOOK = "book"
    NEWS = "news"
    USER_DOCUMENT = "user-document"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


class ExclusionReason(str, Enum):
    """Why a match does not count towards the score"""
    QUOTED = "quoted"
    CITED = "cited"
    COMMON_PHRASE = "common-phrase"
    REFERENCE = "reference"
    USER_EXCLUDED = "user-excluded"


class QuoteType(str, Enum):
    DOUBLE = "double"
    SINGLE = "single"
    SMART = "smart"
    GUILLEMET = "guillemet"


class CitationFormat(str, Enum):
    AUTHOR_YEAR = "author-year"
    NUMERIC = "numeric"


class SuspiciousPatternType(str, Enum):
    """Evasion techniques the pattern detectors can report"""
    CHARACTER_SUBSTITUTION = "character-substitution"
    INVISIBLE_CHARACTERS = "invisible-characters"
    WHITE_TEXT = "white-text"
    FONT_MANIPULATION = "font-manipulation"
    EXCESSIVE_SYNONYMS = "excessive-synonyms"
    INCONSISTENT_STYLE = "inconsistent-style"


class PlagiarismClassification(str, Enum):
    """Classification bucket of a similarity score"""
    ORIGINAL = "original"
    ACCEPTABLE = "acceptable"
    NEEDS_REVIEW = "needs-review"
    CONCERNING = "concerning"
    HIGH_RISK = "high-risk"
    CRITICAL = "critical"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ============================================================
# Fingerprints
# ============================================================

@dataclass(frozen=True)
class DocumentFingerprint:
    """One hashed n-gram occurrence"""
    hash: int
    position: int
    ngram: str
    word_offset: int
    # Character offset just past the last word in the original text
    end_position: Optional[int] = None


@dataclass(frozen=True)
class FingerprintSet:
    """All fingerprints of a document at one n-gram size"""
    document_id: str
    fingerprints: Tuple[DocumentFingerprint, ...]
    ngram_size: int
    word_count: int
    generated_at: str

    @property
    def hashes(self) -> frozenset:
        return frozenset(fp.hash for fp in self.fingerprints)


@dataclass(frozen=True)
class FingerprintPair:
    """Query and source fingerprints sharing the same n-gram"""
    query: DocumentFingerprint
    source: DocumentFingerprint


# ============================================================
# Matches
# ============================================================

@dataclass(frozen=True)
class MatchSource:
    """Where a match came from"""
    type: SourceType = SourceType.UNKNOWN
    title: Optional[str] = None
    url: Optional[str] = None
    author: Optional[str] = None
    doi: Optional[str] = None
    publication_date: Optional[str] = None
    source_snippet: Optional[str] = None
    database: Optional[str] = None


@dataclass(frozen=True)
class ExternalSource:
    """Fingerprinted source supplied by a source provider"""
    fingerprints: FingerprintSet
    source: MatchSource
    text: Optional[str] = None


@dataclass(frozen=True)
class PlagiarismMatch:
    """A positioned span of the query document suspected of originating elsewhere"""
    id: str
    text: str
    start_offset: int
    end_offset: int
    similarity: float
    word_count: int
    type: MatchType
    source: MatchSource
    excluded: bool = False
    exclusion_reason: Optional[ExclusionReason] = None

    def __post_init__(self):
        if self.start_offset >= self.end_offset:
            raise ValueError(
                f"Match {self.id} has an empty span "
                f"({self.start_offset}, {self.end_offset})"
            )

    def overlaps(self, other: "PlagiarismMatch") -> bool:
        return (self.start_offset < other.end_offset and
                other.start_offset < self.end_offset)


@dataclass(frozen=True)
class SourceDocumentInfo:
    id: str
    title: str
    created_at: Any
    snippet: str


@dataclass(frozen=True)
class SelfPlagiarismMatch:
    """Overlap with another document of the same user"""
    id: str
    text: str
    start_offset: int
    end_offset: int
    similarity: float
    word_count: int
    source_document: SourceDocumentInfo


# ============================================================
# Quotes, citations and suspicious patterns
# ============================================================

@dataclass(frozen=True)
class TextSpan:
    start: int
    end: int


@dataclass(frozen=True)
class DetectedQuote:
    """Quoted span; offsets cover the content without the delimiters"""
    text: str
    start_offset: int
    end_offset: int
    quote_type: QuoteType


@dataclass(frozen=True)
class DetectedCitation:
    citation: str
    start_offset: int
    end_offset: int
    format: CitationFormat


@dataclass(frozen=True)
class UncitedQuote:
    id: str
    text: str
    start_offset: int
    end_offset: int
    quote_type: QuoteType
    suggestion: str


@dataclass(frozen=True)
class SuspiciousPattern:
    type: SuspiciousPatternType
    description: str
    severity: int
    positions: Tuple[TextSpan, ...] = ()


# ============================================================
# Configuration
# ============================================================

@dataclass(frozen=True)
class ExclusionSettings:
    quotes: bool = True
    citations: bool = True
    references: bool = True
    common_phrases: bool = True
    custom_phrases: Tuple[str, ...] = ()

    def __post_init__(self):
        # Lists passed by callers are frozen so the settings stay hashable
        if not isinstance(self.custom_phrases, tuple):
            object.__setattr__(self, 'custom_phrases', tuple(self.custom_phrases))


@dataclass(frozen=True)
class CheckSettings:
    self_plagiarism: bool = True
    uncited_quotes: bool = True
    suspicious_patterns: bool = True
    external_api: bool = False


@dataclass(frozen=True)
class SourceSettings:
    web: bool = False
    academic: bool = True
    user_documents: bool = True


def _check_keys(settings_cls, data: Mapping[str, Any]):
    unknown = set(data) - {f.name for f in fields(settings_cls)}
    if unknown:
        raise ValueError(
            f"Invalid plagiarism configuration: unknown {settings_cls.__name__} "
            f"keys {sorted(unknown)}"
        )


@dataclass(frozen=True)
class PlagiarismConfig:
    """Per-check configuration; validated on construction"""
    ngram_size: int = 5
    min_match_length: int = 5
    similarity_threshold: float = 20.0
    exclusions: ExclusionSettings = field(default_factory=ExclusionSettings)
    checks: CheckSettings = field(default_factory=CheckSettings)
    sources: SourceSettings = field(default_factory=SourceSettings)

    def __post_init__(self):
        is_valid, error = validate_config(
            self.ngram_size, self.min_match_length, self.similarity_threshold
        )
        if not is_valid:
            raise ValueError(f"Invalid plagiarism configuration: {error}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlagiarismConfig":
        """Build a config from a (possibly partial) mapping of overrides"""
        data = dict(data)
        sections = {
            'exclusions': ExclusionSettings,
            'checks': CheckSettings,
            'sources': SourceSettings,
        }
        _check_keys(cls, data)
        for key, section_cls in sections.items():
            if key in data and isinstance(data[key], Mapping):
                _check_keys(section_cls, data[key])
                data[key] = section_cls(**data[key])
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def default_config() -> PlagiarismConfig:
    """Return a fresh default configuration"""
    return PlagiarismConfig()


# ============================================================
# Results
# ============================================================

@dataclass(frozen=True)
class PlagiarismStats:
    total_words: int = 0
    matched_words: int = 0
    quoted_words: int = 0
    cited_words: int = 0
    excluded_words: int = 0
    unique_sources: int = 0
    fingerprints_generated: int = 0
    fingerprints_matched: int = 0
    processing_time: float = 0.0


@dataclass(frozen=True)
class SourceSummary:
    source: MatchSource
    match_count: int
    words_matched: int
    contribution_percent: float


@dataclass(frozen=True)
class PlagiarismResult:
    """Complete, serializable outcome of one detection run"""
    id: str
    document_id: str
    checked_at: str
    similarity_score: float
    originality_score: float
    classification: PlagiarismClassification
    confidence: Confidence
    matches: Tuple[PlagiarismMatch, ...]
    self_plagiarism: Tuple[SelfPlagiarismMatch, ...]
    uncited_quotes: Tuple[UncitedQuote, ...]
    suspicious_patterns: Tuple[SuspiciousPattern, ...]
    stats: PlagiarismStats
    sources: Tuple[SourceSummary, ...]
    config: PlagiarismConfig

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        """Convert result to JSON string"""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def save_json(self, filepath: str):
        """Save result to JSON file"""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)


@dataclass(frozen=True)
class QuickCheckResult:
    similarity_score: float
    originality_score: float
    self_plagiarism_count: int
    uncited_quote_count: int


@dataclass(frozen=True)
class UserDocument:
    """Another document owned by the same user"""
    id: str
    title: str
    content: str
    created_at: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserDocument":
        return cls(
            id=str(data['id']),
            title=data.get('title', ''),
            content=data.get('content', ''),
            created_at=data.get('created_at', data.get('createdAt')),
        )


UserDocumentLike = Union[UserDocument, Mapping[str, Any]]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# Classification
# ============================================================

# Upper bound (inclusive) of each bucket; anything above the last is critical
CLASSIFICATION_THRESHOLDS: List[Tuple[float, PlagiarismClassification]] = [
    (10, PlagiarismClassification.ORIGINAL),
    (20, PlagiarismClassification.ACCEPTABLE),
    (40, PlagiarismClassification.NEEDS_REVIEW),
    (60, PlagiarismClassification.CONCERNING),
    (80, PlagiarismClassification.HIGH_RISK),
]

CLASSIFICATION_INFO = {
    PlagiarismClassification.ORIGINAL: {
        'label': 'Original',
        'description': 'Content appears to be highly original with minimal matches.',
    },
    PlagiarismClassification.ACCEPTABLE: {
        'label': 'Acceptable',
        'description': 'Some similarity detected, likely from properly cited sources or common phrases.',
    },
    PlagiarismClassification.NEEDS_REVIEW: {
        'label': 'Needs Review',
        'description': 'Moderate similarity detected. Review matches to ensure proper attribution.',
    },
    PlagiarismClassification.CONCERNING: {
        'label': 'Concerning',
        'description': 'Significant similarity detected. Careful review of sources recommended.',
    },
    PlagiarismClassification.HIGH_RISK: {
        'label': 'High Risk',
        'description': 'High levels of similarity. Major revision or proper citation needed.',
    },
    PlagiarismClassification.CRITICAL: {
        'label': 'Critical',
        'description': 'Very high similarity indicates potential plagiarism. Immediate attention required.',
    },
}


def get_classification(score: float) -> PlagiarismClassification:
    """Bucket a 0-100 similarity score"""
    for upper_bound, classification in CLASSIFICATION_THRESHOLDS:
        if score <= upper_bound:
            return classification
    return PlagiarismClassification.CRITICAL


def get_classification_info(classification: PlagiarismClassification) -> Dict[str, str]:
    return CLASSIFICATION_INFO[classification]


# Word counts below LOW are unreliable; HIGH also needs enough fingerprints
CONFIDENCE_THRESHOLDS = {
    'low_words': 50,
    'high_words': 500,
    'high_fingerprints': 50,
}

# Constants
MIN_QUOTE_WORDS = 4
CITATION_PROXIMITY = 100
EXCLUSION_CITATION_PROXIMITY = 150
SNIPPET_LENGTH = 100

COMMON_ACADEMIC_PHRASES = [
    'in this study',
    'the results show',
    'it has been shown',
    'previous research',
    'the purpose of this study',
    'in conclusion',
    'the findings suggest',
    'according to',
    'in addition',
    'on the other hand',
    'for example',
    'in other words',
    'as a result',
    'in particular',
    'with respect to',
    'in the context of',
    'in terms of',
    'based on the findings',
    'the data suggests',
    'further research is needed',
    'limitations of this study',
    'implications for practice',
    'significant difference',
    'statistical analysis',
    'the present study',
    'literature review',
    'research methodology',
    'data collection',
    'qualitative analysis',
    'quantitative analysis',
]

REFERENCE_HEADINGS = [
    'references', 'bibliography', 'works cited', 'literature cited',
]
