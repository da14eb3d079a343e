"""
Originality - Plagiarism Detection Engine
"""

from .plagiarism_detector import (
    PlagiarismDetector, detect_plagiarism, quick_plagiarism_check
)
from .config import (
    MatchType, SourceType, ExclusionReason, QuoteType, CitationFormat,
    SuspiciousPatternType, PlagiarismClassification, Confidence,
    DocumentFingerprint, FingerprintSet, MatchSource, ExternalSource,
    PlagiarismMatch, SelfPlagiarismMatch, DetectedQuote, DetectedCitation,
    UncitedQuote, SuspiciousPattern, PlagiarismConfig, PlagiarismStats,
    PlagiarismResult, QuickCheckResult, UserDocument,
    default_config, get_classification
)
from .fingerprint import FingerprintGenerator, generate_fingerprints
from .similarity_analyzer import SimilarityAnalyzer, compare_documents, compare_against_sources
from .citation_detector import detect_quotes, detect_citations, find_uncited_quotes
from .pattern_detector import detect_suspicious_patterns
from .exclusion import ExclusionEngine, apply_exclusions, should_exclude_match
from .sources import SourceProvider, InMemorySourceProvider
from .text_normalizer import TextNormalizer
from .document_loader import DocumentLoader
from .report_generator import ReportGenerator

__version__ = "1.0.0"
__author__ = "Academic Integrity Systems"
__license__ = "MIT"

__all__ = [
    'PlagiarismDetector', 'detect_plagiarism', 'quick_plagiarism_check',
    'MatchType', 'SourceType', 'ExclusionReason', 'QuoteType', 'CitationFormat',
    'SuspiciousPatternType', 'PlagiarismClassification', 'Confidence',
    'DocumentFingerprint', 'FingerprintSet', 'MatchSource', 'ExternalSource',
    'PlagiarismMatch', 'SelfPlagiarismMatch', 'DetectedQuote', 'DetectedCitation',
    'UncitedQuote', 'SuspiciousPattern', 'PlagiarismConfig', 'PlagiarismStats',
    'PlagiarismResult', 'QuickCheckResult', 'UserDocument',
    'default_config', 'get_classification',
    'FingerprintGenerator', 'generate_fingerprints',
    'SimilarityAnalyzer', 'compare_documents', 'compare_against_sources',
    'detect_quotes', 'detect_citations', 'find_uncited_quotes',
    'detect_suspicious_patterns',
    'ExclusionEngine', 'apply_exclusions', 'should_exclude_match',
    'SourceProvider', 'InMemorySourceProvider',
    'TextNormalizer', 'DocumentLoader', 'ReportGenerator',
]
