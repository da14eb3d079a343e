"""
External source providers.

A provider supplies fingerprinted sources for a query; how it finds them
(a search API, an academic index, a local corpus) is its own business.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Tuple

from .config import ExternalSource, MatchSource, SourceType
from .fingerprint import FingerprintGenerator

logger = logging.getLogger(__name__)


class SourceProvider(ABC):
    """Supplies ``ExternalSource`` entries keyed by a provider-unique id"""

    source_type: SourceType = SourceType.UNKNOWN

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def fetch_sources(self, text: str, ngram_size: int) -> Mapping[str, ExternalSource]:
        """Sources relevant to ``text``, fingerprinted at ``ngram_size``"""


class InMemorySourceProvider(SourceProvider):
    """Static corpus of ``(key, text, MatchSource)`` entries"""

    def __init__(self,
                 documents: Iterable[Tuple[str, str, MatchSource]],
                 source_type: SourceType = SourceType.INTERNAL):
        self.documents: List[Tuple[str, str, MatchSource]] = list(documents)
        self.source_type = source_type

    def __len__(self):
        return len(self.documents)

    def _fingerprint_all(self, ngram_size: int) -> Dict[str, ExternalSource]:
        generator = FingerprintGenerator(ngram_size)
        return {
            key: ExternalSource(
                fingerprints=generator.generate(key, text),
                source=source,
                text=text,
            )
            for key, text, source in self.documents
        }

    async def fetch_sources(self, text: str, ngram_size: int) -> Mapping[str, ExternalSource]:
        # Fingerprinting runs in a worker thread, off the event loop
        sources = await asyncio.to_thread(self._fingerprint_all, ngram_size)
        logger.debug(f"{self.name}: {len(sources)} sources at n={ngram_size}")
        return sources
