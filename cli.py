"""
Command-line interface for the originality checker.
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

from originality import (
    DocumentLoader, InMemorySourceProvider, MatchSource, PlagiarismConfig,
    PlagiarismDetector, ReportGenerator, SourceType, default_config, generate_fingerprints
)
from originality.config import PlagiarismResult, get_classification_info
from originality.similarity import (
    containment_similarity, cosine_text_similarity, jaccard_similarity,
    ngram_text_similarity, overlap_coefficient
)
from utils.helpers import format_percentage, format_time, load_json, setup_logging
from utils.validators import SUPPORTED_EXTENSIONS, validate_directory, validate_file


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description='Originality - fingerprint-based plagiarism detection',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s check essay.docx --corpus ./my_documents
  %(prog)s check essay.txt --sources ./library --threshold 30 --output ./reports
  %(prog)s batch ./submissions --output ./batch_reports
  %(prog)s compare draft.txt final.txt
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # Check command
    check_parser = subparsers.add_parser('check', help='Check a single document')
    check_parser.add_argument('document', help='Path to a .txt, .md or .docx document')
    check_parser.add_argument('--corpus', help="Directory with the author's own documents")
    check_parser.add_argument('--sources', help='Directory with reference sources')
    check_parser.add_argument('--config', help='JSON file with configuration overrides')
    check_parser.add_argument('--ngram', type=int, help='N-gram size')
    check_parser.add_argument('--min-match', type=int,
                              help='Minimum match length in words')
    check_parser.add_argument('--threshold', type=float,
                              help='Similarity threshold for self-plagiarism matches')
    check_parser.add_argument('--exclude-phrase', action='append', default=[],
                              help='Phrase to exclude from scoring (repeatable)')
    check_parser.add_argument('--no-quote-exclusion', action='store_true',
                              help='Count quoted text towards the score')
    check_parser.add_argument('--no-citation-exclusion', action='store_true',
                              help='Count cited text towards the score')
    check_parser.add_argument('--no-common-phrases', action='store_true',
                              help='Count common academic phrases towards the score')
    check_parser.add_argument('--quick', action='store_true',
                              help='Run the quick local check only')
    check_parser.add_argument('--output', '-o', help='Output directory for reports')
    check_parser.add_argument('--prefix', '-p', default='',
                              help='Prefix for output filenames')

    # Batch command
    batch_parser = subparsers.add_parser('batch',
                                         help='Check every document of a directory against the others')
    batch_parser.add_argument('directory', help='Directory containing documents')
    batch_parser.add_argument('--output', '-o', default='./batch_reports',
                              help='Output directory')

    # Compare command
    compare_parser = subparsers.add_parser('compare', help='Compare two documents')
    compare_parser.add_argument('first', help='First document')
    compare_parser.add_argument('second', help='Second document')
    compare_parser.add_argument('--ngram', type=int, default=5, help='N-gram size')

    # Version command
    subparsers.add_parser('version', help='Show version information')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == 'version':
        show_version()
        return

    # Setup logging
    logger = setup_logging()

    if args.command == 'check':
        run_check(args, logger)
    elif args.command == 'batch':
        run_batch(args, logger)
    elif args.command == 'compare':
        run_compare(args, logger)


def build_config(args) -> PlagiarismConfig:
    """Map command-line flags onto a configuration, optionally based on a JSON file"""
    config_file = getattr(args, 'config', None)
    config = PlagiarismConfig.from_dict(load_json(config_file)) if config_file else default_config()

    # Explicit flags take precedence over the file
    overrides = {
        name: value
        for name, value in (
            ('ngram_size', args.ngram),
            ('min_match_length', args.min_match),
            ('similarity_threshold', args.threshold),
        )
        if value is not None
    }
    exclusions = replace(
        config.exclusions,
        quotes=config.exclusions.quotes and not args.no_quote_exclusion,
        citations=config.exclusions.citations and not args.no_citation_exclusion,
        common_phrases=config.exclusions.common_phrases and not args.no_common_phrases,
        custom_phrases=config.exclusions.custom_phrases + tuple(args.exclude_phrase),
    )
    return replace(config, exclusions=exclusions, **overrides)


def load_source_provider(directory: str, loader: DocumentLoader) -> InMemorySourceProvider:
    documents = [
        (doc.id, doc.content, MatchSource(type=SourceType.ACADEMIC, title=doc.title))
        for doc in loader.load_directory(directory)
    ]
    return InMemorySourceProvider(documents, SourceType.ACADEMIC)


def _check_path(path: str, is_dir: bool = False):
    if is_dir:
        is_valid, error = validate_directory(path)
    else:
        is_valid, error = validate_file(path, SUPPORTED_EXTENSIONS)
    if not is_valid:
        print(f"Error: {error}")
        sys.exit(1)


def run_check(args, logger):
    """Run single document check"""
    _check_path(args.document)
    for directory in (args.corpus, args.sources):
        if directory:
            _check_path(directory, is_dir=True)
    if args.config:
        is_valid, error = validate_file(args.config, ['.json'])
        if not is_valid:
            print(f"Error: {error}")
            sys.exit(1)

    print(f"\n📄 Checking document: {Path(args.document).name}")
    print("=" * 50)

    try:
        config = build_config(args)
        loader = DocumentLoader()
        document = loader.load(args.document)
        user_documents = loader.load_directory(args.corpus) if args.corpus else []

        if args.quick:
            detector = PlagiarismDetector(config)
            quick = detector.quick_check(document.content, document.id, user_documents)
            print(f"Similarity: {format_percentage(quick.similarity_score)}")
            print(f"Originality: {format_percentage(quick.originality_score)}")
            print(f"Self-plagiarism matches: {quick.self_plagiarism_count}")
            print(f"Uncited quotes: {quick.uncited_quote_count}")
            return

        providers = [load_source_provider(args.sources, loader)] if args.sources else []

        detector = PlagiarismDetector(config, providers)
        result = asyncio.run(detector.detect(document.content, document.id, user_documents))
        print_summary(result)

        if args.output:
            files = ReportGenerator(args.output).generate_all_reports(result, args.prefix)
            print("\nReports saved to:")
            for kind, path in files.items():
                print(f"  {kind:12} {path}")

        print("\n✅ Check completed successfully!")

    except ValueError as e:
        logger.error(f"Check failed: {e}")
        print(f"\n❌ Check failed: {e}")
        sys.exit(1)


def run_batch(args, logger):
    """Check every document of a directory against the others"""
    _check_path(args.directory, is_dir=True)

    loader = DocumentLoader()
    documents = loader.load_directory(args.directory)
    if not documents:
        print(f"Error: No supported documents found in {args.directory}")
        sys.exit(1)

    print(f"\n📁 Batch checking {len(documents)} documents from {args.directory}")
    print("=" * 50)

    detector = PlagiarismDetector()
    generator = ReportGenerator(args.output)
    results = {}

    for document in documents:
        try:
            logger.info(f"Processing: {document.id}")
            result = asyncio.run(detector.detect(document.content, document.id, documents))
            results[document.id] = result
            generator.generate_all_reports(result, f"batch_{Path(document.id).stem}")
            print(f"  {document.id[:40]:40} {format_percentage(result.similarity_score):>7}  "
                  f"{get_classification_info(result.classification)['label']}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to check {document.id}: {e}")
            print(f"✗ Error checking {document.id}: {e}")

    generator.generate_batch_summary(results)

    print("\n✅ Batch check completed!")
    print(f"   Processed: {len(results)} documents")
    print(f"   Reports saved to: {args.output}")


def run_compare(args, logger):
    """Print every similarity metric for a pair of documents"""
    _check_path(args.first)
    _check_path(args.second)

    loader = DocumentLoader()
    first = loader.read_text(args.first)
    second = loader.read_text(args.second)

    try:
        first_fp = generate_fingerprints(first, Path(args.first).name, args.ngram)
        second_fp = generate_fingerprints(second, Path(args.second).name, args.ngram)
    except ValueError as e:
        logger.error(f"Comparison failed: {e}")
        print(f"\n❌ Comparison failed: {e}")
        sys.exit(1)

    metrics = [
        ('Jaccard', jaccard_similarity(first_fp, second_fp)),
        ('Containment (first in second)', containment_similarity(first_fp, second_fp)),
        ('Containment (second in first)', containment_similarity(second_fp, first_fp)),
        ('Overlap coefficient', overlap_coefficient(first_fp, second_fp)),
        ('TF-IDF cosine', cosine_text_similarity(first, second)),
        ('Character 3-grams', ngram_text_similarity(first, second)),
    ]

    print(f"\n🔍 {Path(args.first).name} vs {Path(args.second).name} (n={args.ngram})")
    print("=" * 50)
    for name, value in metrics:
        print(f"  {name:32} {format_percentage(value):>7}")


def print_summary(result: PlagiarismResult):
    """Print check summary to console"""
    info = get_classification_info(result.classification)
    stats = result.stats

    print("\n" + "=" * 60)
    print("ORIGINALITY CHECK - SUMMARY")
    print("=" * 60)
    print(f"Document: {result.document_id}")
    print(f"Checked At: {result.checked_at}")
    print(f"Total Words: {stats.total_words:,}")
    print(f"Fingerprints: {stats.fingerprints_generated:,} "
          f"({stats.fingerprints_matched:,} matched)")
    print(f"Processing Time: {format_time(stats.processing_time)}")
    print("\n" + "-" * 60)
    print(f"SIMILARITY: {format_percentage(result.similarity_score)}")
    print(f"ORIGINALITY: {format_percentage(result.originality_score)}")
    print(f"CLASSIFICATION: {info['label']} ({result.confidence.value} confidence)")
    print(f"  {info['description']}")
    print("-" * 60)

    if result.sources:
        print("\nSOURCES:")
        for summary in result.sources:
            title = summary.source.title or summary.source.type.value
            print(f"  {title[:36]:36} {summary.match_count:3d} matches "
                  f"{format_percentage(summary.contribution_percent):>7}")

    excluded = [m for m in result.matches if m.excluded]
    if excluded:
        print(f"\nEXCLUDED MATCHES: {len(excluded)} ({stats.excluded_words:,} words)")

    if result.self_plagiarism:
        print(f"\nSELF-PLAGIARISM: {len(result.self_plagiarism)} passages")
        for match in result.self_plagiarism[:5]:
            print(f"  • '{match.source_document.title}': {match.text[:60]}...")

    if result.uncited_quotes:
        print(f"\nUNCITED QUOTES: {len(result.uncited_quotes)}")
        for quote in result.uncited_quotes[:5]:
            print(f"  • \"{quote.text[:60]}\"")

    if result.suspicious_patterns:
        print("\nSUSPICIOUS PATTERNS:")
        for pattern in result.suspicious_patterns:
            print(f"  • [{pattern.severity}/5] {pattern.description}")

    print("\n" + "=" * 60)


def show_version():
    """Show version information"""
    from originality import __version__, __author__, __license__

    print("\n📊 Originality")
    print("=" * 30)
    print(f"Version: {__version__}")
    print(f"Author: {__author__}")
    print(f"License: {__license__}")
    print("\nFingerprint-based plagiarism detection with quote,")
    print("citation and self-plagiarism awareness.")


if __name__ == "__main__":
    main()
