"""
Document loading for .txt, .md and .docx files.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple, Union
from zipfile import BadZipFile

import docx
from docx.opc.exceptions import PackageNotFoundError

from utils.validators import SUPPORTED_EXTENSIONS, validate_directory, validate_file
from .config import UserDocument

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class DocumentLoader:
    """Reads documents into plain text and ``UserDocument`` records"""

    def __init__(self, encoding: str = 'utf-8'):
        self.encoding = encoding

    def read_text(self, file_path: PathLike) -> str:
        """Plain text of a document; DOCX paragraphs are separated by blank lines"""
        return self._read(Path(file_path))[0]

    def _read(self, path: Path) -> Tuple[str, str]:
        """Text and title of a validated document"""
        is_valid, error = validate_file(str(path), SUPPORTED_EXTENSIONS)
        if not is_valid:
            raise ValueError(error)

        if path.suffix.lower() == '.docx':
            return self._read_docx(path)
        return path.read_text(encoding=self.encoding), path.stem

    def _read_docx(self, path: Path) -> Tuple[str, str]:
        try:
            document = docx.Document(str(path))
        except (PackageNotFoundError, BadZipFile, KeyError) as e:
            logger.error(f"Error parsing document {path}: {e}")
            raise ValueError(f"Not a readable .docx document: {path.name}") from e

        paragraphs = [p.text.strip() for p in document.paragraphs]
        text = '\n\n'.join(p for p in paragraphs if p)
        return text, document.core_properties.title or path.stem

    def load(self, file_path: PathLike) -> UserDocument:
        """Load a file as a ``UserDocument`` keyed by its file name"""
        path = Path(file_path)
        content, title = self._read(path)
        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

        return UserDocument(
            id=path.name,
            title=title,
            content=content,
            created_at=modified.isoformat(),
        )

    def load_directory(self, dir_path: PathLike) -> List[UserDocument]:
        """Every supported document directly inside a directory, by file name"""
        is_valid, error = validate_directory(str(dir_path))
        if not is_valid:
            raise ValueError(error)

        documents = []
        for path in sorted(Path(dir_path).iterdir()):
            if not path.is_file() or path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                continue
            try:
                documents.append(self.load(path))
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping {path.name}: {e}")

        logger.info(f"Loaded {len(documents)} documents from {dir_path}")
        return documents
