"""
Build the fingerprint index.

Run this job ahead of deployment so the first visual identification does
not pay for downloading and hashing the sampled reference images.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from cardlens.imaging.matcher import FingerprintIndex
from cardlens.services.catalog_loader import load_catalog

logger = logging.getLogger(__name__)


def _report_progress(current: int, total: int) -> None:
    if current == total or current % 10 == 0:
        logger.info("Fingerprinted %d/%d cards", current, total)


async def run_build(
    catalog_path: Path | None = None,
    cache_path: Path | None = None,
    limit: int | None = None,
    force: bool = False,
) -> int:
    """
    Load or build the fingerprint index.

    Args:
        catalog_path: Catalog file. Defaults to settings.catalog_path
        cache_path: Output cache. Defaults to the grid-specific cache path
        limit: Number of catalog records to sample
        force: Delete an existing cache first

    Returns:
        Number of fingerprints in the index.
    """
    records = load_catalog(catalog_path)
    index = FingerprintIndex(cache_path=cache_path, sample_limit=limit)

    if force and index.cache_path.exists():
        logger.info("Removing existing cache %s", index.cache_path)
        index.cache_path.unlink()

    try:
        entries = await index.ensure_loaded(records, _report_progress)
    except Exception as e:
        logger.error("Failed to build fingerprint index: %s", e)
        raise

    logger.info("Fingerprint index ready: %d entries at %s", len(entries), index.cache_path)
    return len(entries)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Build the card fingerprint index.")
    parser.add_argument("--catalog", type=Path, default=None, help="Catalog JSON or SQLite file")
    parser.add_argument("--output", type=Path, default=None, help="Fingerprint cache file")
    parser.add_argument("--limit", type=int, default=None, help="Cards to sample")
    parser.add_argument("--force", action="store_true", help="Rebuild even if a cache exists")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_build(args.catalog, args.output, args.limit, args.force))


if __name__ == "__main__":
    main()
