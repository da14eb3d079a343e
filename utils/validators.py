"""
Validation functions for the originality engine.
"""

from pathlib import Path
from typing import Optional, Tuple

SUPPORTED_EXTENSIONS = ['.txt', '.md', '.docx']


def validate_config(ngram_size: int,
                    min_match_length: int,
                    similarity_threshold: float) -> Tuple[bool, Optional[str]]:
    """
    Validate the numeric settings of a plagiarism check.
    Returns (is_valid, error_message)
    """
    if isinstance(ngram_size, bool) or not isinstance(ngram_size, int):
        return False, f"ngram_size must be an integer, got {ngram_size!r}"

    if ngram_size < 1:
        return False, f"ngram_size must be at least 1, got {ngram_size}"

    if isinstance(min_match_length, bool) or not isinstance(min_match_length, int):
        return False, f"min_match_length must be an integer, got {min_match_length!r}"

    if min_match_length < 0:
        return False, f"min_match_length cannot be negative, got {min_match_length}"

    if not 0 <= similarity_threshold <= 100:
        return False, f"similarity_threshold must be within 0-100, got {similarity_threshold}"

    return True, None


def validate_file(filepath: str, allowed_extensions: list = None) -> Tuple[bool, Optional[str]]:
    """
    Validate file exists and has correct extension.
    Returns (is_valid, error_message)
    """
    if not filepath:
        return False, "File path is empty"

    path = Path(filepath)

    if not path.exists():
        return False, f"File does not exist: {filepath}"

    if not path.is_file():
        return False, f"Path is not a file: {filepath}"

    if allowed_extensions:
        if path.suffix.lower() not in [ext.lower() for ext in allowed_extensions]:
            return False, f"File must have one of these extensions: {allowed_extensions}"

    # Check file size (max 50MB)
    max_size = 50 * 1024 * 1024  # 50MB
    if path.stat().st_size > max_size:
        return False, f"File is too large (max {max_size/1024/1024:.0f}MB)"

    return True, None


def validate_directory(dirpath: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a corpus directory.
    Returns (is_valid, error_message)
    """
    path = Path(dirpath)

    if not path.exists():
        return False, f"Directory not found: {dirpath}"

    if not path.is_dir():
        return False, f"Path is not a directory: {dirpath}"

    return True, None
