"""
Report generation module for JSON and CSV outputs.
"""

import logging
from pathlib import Path
from typing import Dict, Mapping

import pandas as pd

from utils.helpers import save_json
from .config import PlagiarismResult, get_classification_info

logger = logging.getLogger(__name__)

MATCH_COLUMNS = [
    'match_id', 'start_offset', 'end_offset', 'word_count', 'similarity',
    'match_type', 'source_type', 'source_title', 'source_url', 'excluded',
    'exclusion_reason', 'text',
]

SOURCE_COLUMNS = [
    'source_type', 'title', 'url', 'author', 'match_count', 'words_matched',
    'contribution_percent',
]


class ReportGenerator:
    """Writes plagiarism results to disk"""

    def __init__(self, output_dir: str = "./reports"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate_all_reports(self, result: PlagiarismResult, prefix: str = "") -> Dict[str, str]:
        """Generate all report formats"""
        if not prefix:
            prefix = f"report_{result.document_id}"

        json_path = self.output_dir / f"{prefix}_result.json"
        result.save_json(str(json_path))

        matches_path = self.output_dir / f"{prefix}_matches.csv"
        self.generate_matches_csv(result, str(matches_path))

        sources_path = self.output_dir / f"{prefix}_sources.csv"
        self.generate_sources_csv(result, str(sources_path))

        logger.info(f"Reports generated at: {self.output_dir}")
        return {
            'json': str(json_path),
            'matches_csv': str(matches_path),
            'sources_csv': str(sources_path),
        }

    def matches_dataframe(self, result: PlagiarismResult) -> pd.DataFrame:
        rows = [
            {
                'match_id': m.id,
                'start_offset': m.start_offset,
                'end_offset': m.end_offset,
                'word_count': m.word_count,
                'similarity': m.similarity,
                'match_type': m.type.value,
                'source_type': m.source.type.value,
                'source_title': m.source.title,
                'source_url': m.source.url,
                'excluded': m.excluded,
                'exclusion_reason': m.exclusion_reason.value if m.exclusion_reason else None,
                'text': m.text[:500],
            }
            for m in result.matches
        ]
        return pd.DataFrame(rows, columns=MATCH_COLUMNS)

    def sources_dataframe(self, result: PlagiarismResult) -> pd.DataFrame:
        rows = [
            {
                'source_type': s.source.type.value,
                'title': s.source.title,
                'url': s.source.url,
                'author': s.source.author,
                'match_count': s.match_count,
                'words_matched': s.words_matched,
                'contribution_percent': s.contribution_percent,
            }
            for s in result.sources
        ]
        return pd.DataFrame(rows, columns=SOURCE_COLUMNS)

    def generate_matches_csv(self, result: PlagiarismResult, output_path: str):
        """One row per match, excluded matches included"""
        df = self.matches_dataframe(result)
        df.to_csv(output_path, index=False, encoding='utf-8')
        if df.empty:
            logger.info("No matches found for CSV report")
        else:
            logger.info(f"CSV report generated: {output_path}")

    def generate_sources_csv(self, result: PlagiarismResult, output_path: str):
        self.sources_dataframe(result).to_csv(output_path, index=False, encoding='utf-8')

    def generate_batch_summary(self, results: Mapping[str, PlagiarismResult]) -> Dict[str, str]:
        """Generate summary report for batch checks"""
        summary_data = []

        for filename, result in results.items():
            summary_data.append({
                'filename': filename,
                'document_id': result.document_id,
                'total_words': result.stats.total_words,
                'similarity_score': result.similarity_score,
                'originality_score': result.originality_score,
                'classification': get_classification_info(result.classification)['label'],
                'confidence': result.confidence.value,
                'matches': sum(1 for m in result.matches if not m.excluded),
                'self_plagiarism': len(result.self_plagiarism),
                'uncited_quotes': len(result.uncited_quotes),
                'processing_time_ms': round(result.stats.processing_time, 1),
            })

        if not summary_data:
            logger.info("Nothing to summarize")
            return {}

        df = pd.DataFrame(summary_data).sort_values('similarity_score', ascending=False)
        summary_file = self.output_dir / "batch_summary.csv"
        df.to_csv(summary_file, index=False)

        # Also save as JSON
        json_file = self.output_dir / "batch_summary.json"
        save_json(summary_data, str(json_file))

        logger.info(f"Batch summary saved: {summary_file}")
        return {'csv': str(summary_file), 'json': str(json_file)}
