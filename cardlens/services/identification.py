"""
Identification facade.

Orchestrates the two independent identification paths:

- Text path: recognized text -> ParsedFields -> ranked candidates
- Visual path: cropped image -> closest fingerprint

Merging the two paths is left to the caller. The caller is also expected
to keep at most one identification attempt in flight.
"""

import asyncio
import logging
from collections.abc import Sequence

from cardlens.analysis.ranker import score_candidates
from cardlens.config import TOP_K, settings
from cardlens.imaging.fingerprint import ImageSource
from cardlens.imaging.matcher import FingerprintIndex, ProgressCallback
from cardlens.models.candidate import IdentificationResult
from cardlens.models.card import CardRecord
from cardlens.models.fields import TextZones
from cardlens.models.fingerprint import FingerprintMatch
from cardlens.models.locale import EMPTY_TABLES, LocaleTables, load_locale_tables
from cardlens.parsers.text_fields import TextFieldExtractor
from cardlens.services.catalog_index import CatalogIndex
from cardlens.services.catalog_loader import get_catalog_index

logger = logging.getLogger(__name__)


class CardIdentifier:
    """
    Card identification engine over one immutable catalog.

    Safe to share: the catalog, locale tables, and extractor hold no
    per-call state. Only the fingerprint index performs I/O, once.
    """

    def __init__(
        self,
        index: CatalogIndex,
        tables: LocaleTables = EMPTY_TABLES,
        fingerprints: FingerprintIndex | None = None,
    ) -> None:
        self.index = index
        self.tables = tables
        self.fingerprints = fingerprints or FingerprintIndex()
        self._extractor = TextFieldExtractor(index, tables)

    @classmethod
    def from_settings(cls) -> "CardIdentifier":
        """
        Build an identifier from configuration.

        Raises:
            CatalogLoadError: If the catalog cannot be loaded
            FileNotFoundError: If the locale tables file is missing
        """
        return cls(
            index=get_catalog_index(),
            tables=load_locale_tables(settings.locale_tables_path),
        )

    def get_card(self, card_id: str) -> CardRecord | None:
        return self.index.get(card_id)

    def identify_text(
        self,
        full_text: str,
        words: Sequence[str] | None = None,
        zones: TextZones | None = None,
        top_k: int = TOP_K,
    ) -> IdentificationResult:
        """
        Identify a card from recognized text.

        Args:
            full_text: Recognized text
            words: Lower-cased words; derived from full_text if None
            zones: Optional top/middle/bottom partition

        Returns:
            IdentificationResult; empty candidates when nothing matched
        """
        fields = self._extractor.extract(full_text, words, zones)
        candidates = score_candidates(fields, full_text, self.index, top_k)

        for candidate in candidates:
            logger.info("Candidate: %s", candidate.describe())

        return IdentificationResult(fields=fields, candidates=tuple(candidates))

    async def prepare_visual_index(
        self, on_progress: ProgressCallback | None = None
    ) -> int:
        """Load or build the fingerprint index. Returns the number of entries."""
        entries = await self.fingerprints.ensure_loaded(self.index.records, on_progress)
        return len(entries)

    async def identify_image(self, image: ImageSource) -> FingerprintMatch | None:
        """
        Identify a card from a cropped image.

        Builds the fingerprint index on first use.

        Raises:
            InvalidImageError: If the image cannot be decoded
        """
        await self.prepare_visual_index()
        match = await asyncio.to_thread(self.fingerprints.identify, image)
        if match is not None:
            logger.info("Visual match: %s (distance %d)", match.card_id, match.distance)
        return match
