"""
Perceptual hash matcher.

Holds the visual index (catalog id -> difference hash) and finds the
closest entry for a query image.

INVARIANTS:
- The index is built lazily, at most once, and persisted
- A persisted index from a different grid size or format is rebuilt
- One unreadable reference image never aborts the build
- An unwritable cache is logged; the built index is still served from memory
- Decoding, hashing and file I/O run in worker threads, off the event loop
- A match is reported only when its distance is strictly below threshold
"""

import asyncio
import json
import logging
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any

import httpx

from cardlens.config import settings
from cardlens.imaging.fingerprint import (
    ImageSource,
    compute_fingerprint,
    hamming_distance,
    hash_bit_length,
)
from cardlens.models.card import CardRecord
from cardlens.models.failure import FingerprintFetchError, InvalidImageError
from cardlens.models.fingerprint import FingerprintEntry, FingerprintMatch

logger = logging.getLogger(__name__)

# Bumped whenever the persisted layout or hash algorithm changes
CACHE_VERSION = 1

ProgressCallback = Callable[[int, int], None]


def default_cache_path(width: int, height: int) -> Path:
    """Cache file for a grid size, e.g. .cache/cardlens/dhashes_8x11.json."""
    return settings.fingerprint_cache_dir / f"dhashes_{width}x{height}.json"


def find_best_match(
    target_hash: str,
    entries: Iterable[FingerprintEntry],
    threshold: int,
) -> FingerprintMatch | None:
    """
    Linear scan for the minimum Hamming distance.

    Ties keep the earliest entry.

    Returns:
        The closest entry if its distance < threshold, else None
    """
    best: FingerprintMatch | None = None
    for entry in entries:
        distance = hamming_distance(target_hash, entry.hash)
        if best is None or distance < best.distance:
            best = FingerprintMatch(card_id=entry.card_id, distance=distance)

    if best is None:
        return None

    logger.info("Best diff: %d / %d", best.distance, len(target_hash) * 4)
    return best if best.distance < threshold else None


class FingerprintIndex:
    """
    Lazily built, persisted visual index.

    Usage:
        index = FingerprintIndex()
        await index.ensure_loaded(catalog.records)
        match = index.identify(image_bytes)
    """

    def __init__(
        self,
        cache_path: Path | None = None,
        width: int | None = None,
        height: int | None = None,
        threshold: int | None = None,
        sample_limit: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.width = width or settings.hash_width
        self.height = height or settings.hash_height
        self.threshold = threshold if threshold is not None else settings.match_threshold
        self.sample_limit = (
            sample_limit if sample_limit is not None else settings.fingerprint_sample_limit
        )
        self.timeout = timeout or settings.image_fetch_timeout
        self.cache_path = cache_path or default_cache_path(self.width, self.height)

        self._entries: tuple[FingerprintEntry, ...] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._entries is not None

    @property
    def entries(self) -> tuple[FingerprintEntry, ...]:
        """Loaded entries; empty until ensure_loaded() has run."""
        return self._entries or ()

    @property
    def bit_length(self) -> int:
        return hash_bit_length(self.width, self.height)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _payload(self, entries: Sequence[FingerprintEntry]) -> dict[str, Any]:
        return {
            "version": CACHE_VERSION,
            "grid": {"width": self.width, "height": self.height},
            "entries": [e.to_dict() for e in entries],
        }

    def load_cache(self) -> tuple[FingerprintEntry, ...] | None:
        """
        Read the persisted index.

        Returns:
            Entries, or None if the cache is absent, unreadable, or stale
        """
        if not self.cache_path.exists():
            return None

        try:
            with open(self.cache_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable fingerprint cache %s: %s", self.cache_path, e)
            return None

        if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
            logger.info("Fingerprint cache %s has an old format, rebuilding", self.cache_path)
            return None

        grid = data.get("grid") or {}
        if grid.get("width") != self.width or grid.get("height") != self.height:
            logger.info(
                "Fingerprint cache grid %sx%s does not match %dx%d, rebuilding",
                grid.get("width"),
                grid.get("height"),
                self.width,
                self.height,
            )
            return None

        return tuple(
            FingerprintEntry(card_id=str(item["id"]), hash=str(item["hash"]))
            for item in data.get("entries", [])
            if isinstance(item, dict) and "id" in item and "hash" in item
        )

    def save_cache(self, entries: Sequence[FingerprintEntry]) -> None:
        """Persist entries atomically."""
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.cache_path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._payload(entries), f, indent=2)
        tmp_path.replace(self.cache_path)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    async def ensure_loaded(
        self,
        records: Sequence[CardRecord],
        on_progress: ProgressCallback | None = None,
    ) -> tuple[FingerprintEntry, ...]:
        """
        Load the persisted index, building and persisting it if needed.

        Idempotent: once loaded, further calls return immediately without
        touching the network or the file system. A failed cache write is
        logged and the entries stay loaded, so the next process rebuilds.
        """
        async with self._lock:
            if self._entries is not None:
                return self._entries

            cached = await asyncio.to_thread(self.load_cache)
            if cached is not None:
                logger.info("Loaded %d fingerprints from %s", len(cached), self.cache_path)
                self._entries = cached
                return cached

            entries = await self.build(records, on_progress)
            try:
                await asyncio.to_thread(self.save_cache, entries)
            except OSError as e:
                logger.warning(
                    "Could not persist %d fingerprints to %s, keeping them in memory: %s",
                    len(entries),
                    self.cache_path,
                    e,
                )
            else:
                logger.info(
                    "Generated and saved %d fingerprints to %s", len(entries), self.cache_path
                )
            self._entries = entries
            return entries

    async def build(
        self,
        records: Sequence[CardRecord],
        on_progress: ProgressCallback | None = None,
    ) -> tuple[FingerprintEntry, ...]:
        """
        Fingerprint a bounded prefix of the catalog.

        Records without an image reference are skipped. Records whose image
        cannot be fetched or decoded are logged and skipped.
        """
        sample = list(records[: self.sample_limit])
        entries: list[FingerprintEntry] = []

        logger.info("Generating fingerprints for %d cards...", len(sample))

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            for position, record in enumerate(sample, start=1):
                if record.image_url:
                    try:
                        entries.append(await self._fingerprint_record(client, record))
                    except FingerprintFetchError as e:
                        logger.warning("%s", e)
                if on_progress is not None:
                    on_progress(position, len(sample))

        return tuple(entries)

    async def _fingerprint_record(
        self, client: httpx.AsyncClient, record: CardRecord
    ) -> FingerprintEntry:
        data = await self._read_image(client, record)
        try:
            fingerprint = await asyncio.to_thread(
                compute_fingerprint, data, self.width, self.height
            )
        except InvalidImageError as e:
            raise FingerprintFetchError(record.id, f"undecodable image ({e.detail})") from e
        return FingerprintEntry(card_id=record.id, hash=fingerprint)

    async def _read_image(self, client: httpx.AsyncClient, record: CardRecord) -> bytes:
        reference = record.image_url or ""

        if reference.startswith(("http://", "https://")):
            try:
                response = await client.get(reference)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise FingerprintFetchError(
                    record.id, f"HTTP {e.response.status_code} for {reference}"
                ) from e
            except httpx.RequestError as e:
                raise FingerprintFetchError(record.id, f"{type(e).__name__}: {e}") from e
            return response.content

        path = Path(reference.removeprefix("file://"))
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise FingerprintFetchError(record.id, f"cannot read {path}: {e}") from e

    # -------------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------------

    def fingerprint(self, image: ImageSource) -> str:
        """Fingerprint a query image with this index's grid."""
        return compute_fingerprint(image, self.width, self.height)

    def match_hash(self, target_hash: str) -> FingerprintMatch | None:
        return find_best_match(target_hash, self.entries, self.threshold)

    def identify(self, image: ImageSource) -> FingerprintMatch | None:
        """
        Find the closest indexed card for a query image.

        Returns None when nothing is within threshold or the index is empty.

        Raises:
            InvalidImageError: If the query image cannot be decoded
        """
        return self.match_hash(self.fingerprint(image))
