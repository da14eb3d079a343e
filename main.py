#!/usr/bin/env python3
"""
Main entry point for the Originality checker.
Can be used as a module or directly from command line.
"""

if __name__ == "__main__":
    # If called directly, use the CLI
    from cli import main
    main()
else:
    # If imported as a module, expose the main classes
    from originality import (
        PlagiarismDetector,
        DocumentLoader,
        SimilarityAnalyzer,
        ReportGenerator,
        detect_plagiarism,
        quick_plagiarism_check
    )

    __all__ = [
        'PlagiarismDetector',
        'DocumentLoader',
        'SimilarityAnalyzer',
        'ReportGenerator',
        'detect_plagiarism',
        'quick_plagiarism_check'
    ]
