"""
Reference catalog loading.

Loads the bundled card dataset once at startup. The dataset is either a
JSON array of rows or an SQLite database with a `pokemon_cards` table.

INVARIANTS:
- Load failures are fatal (CatalogLoadError); no partial catalog is returned
- Row order is preserved; it defines tie-breaking order downstream
"""

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from cardlens.config import settings
from cardlens.models.card import CardRecord
from cardlens.models.failure import CatalogLoadError
from cardlens.services.catalog_index import CatalogIndex, build_catalog_index

logger = logging.getLogger(__name__)

CATALOG_TABLE = "pokemon_cards"

SQLITE_SUFFIXES = frozenset({".db", ".sqlite", ".sqlite3"})

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_hp(value: Any) -> int | None:
    """
    Coerce a raw HP cell to int, None if absent or unparseable.

    Reads the leading integer, so "70", 70.0, "70.0" and "70 HP" all give 70.
    """
    if value is None or isinstance(value, bool):
        return None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def _optional_str(value: Any) -> str:
    return "" if value is None else str(value)


def row_to_record(row: dict[str, Any]) -> CardRecord:
    """
    Convert a raw catalog row to a CardRecord.

    Raises:
        ValueError: If the row has no identifier or no name
    """
    card_id = _optional_str(row.get("id")).strip()
    name = _optional_str(row.get("name")).strip()
    if not card_id:
        raise ValueError("row has no id")
    if not name:
        raise ValueError(f"row {card_id!r} has no name")

    image_url = row.get("image_url")
    return CardRecord(
        id=card_id,
        name=name,
        hp=_parse_hp(row.get("hp")),
        set_name=_optional_str(row.get("set_name")),
        caption=_optional_str(row.get("caption")),
        image_url=str(image_url) if image_url else None,
    )


def _read_json_rows(path: Path) -> list[dict[str, Any]]:
    try:
        with open(path, encoding="utf-8") as f:
            rows = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CatalogLoadError(path, f"catalog file is corrupted: {e}") from e
    except OSError as e:
        raise CatalogLoadError(path, f"catalog file is unreadable: {e}") from e

    if not isinstance(rows, list):
        raise CatalogLoadError(path, "catalog JSON must be an array of rows")
    return rows


def _read_sqlite_rows(path: Path) -> list[dict[str, Any]]:
    engine = create_engine(f"sqlite:///{path}")
    try:
        with engine.connect() as conn:
            result = conn.execute(text(f"SELECT * FROM {CATALOG_TABLE}"))
            return [dict(row) for row in result.mappings()]
    except SQLAlchemyError as e:
        raise CatalogLoadError(path, f"cannot read table {CATALOG_TABLE}: {e}") from e
    finally:
        engine.dispose()


def load_catalog(path: Path | None = None) -> tuple[CardRecord, ...]:
    """
    Load catalog records from file.

    Args:
        path: JSON or SQLite file. Defaults to settings.catalog_path

    Returns:
        Records in dataset order.

    Raises:
        CatalogLoadError: If the file is missing, corrupt, or has invalid rows
    """
    if path is None:
        path = settings.catalog_path

    if not path.exists():
        raise CatalogLoadError(path, "catalog file not found")

    if path.suffix.lower() in SQLITE_SUFFIXES:
        rows = _read_sqlite_rows(path)
    else:
        rows = _read_json_rows(path)

    records: list[CardRecord] = []
    for position, row in enumerate(rows):
        if not isinstance(row, dict):
            raise CatalogLoadError(path, f"row {position} is not an object")
        try:
            records.append(row_to_record(row))
        except ValueError as e:
            raise CatalogLoadError(path, f"row {position}: {e}") from e

    logger.info("Loaded %d catalog records from %s", len(records), path)
    return tuple(records)


def load_catalog_index(path: Path | None = None) -> CatalogIndex:
    """Load the catalog and build its index."""
    return build_catalog_index(load_catalog(path))


@lru_cache(maxsize=1)
def get_catalog_index() -> CatalogIndex:
    """
    Get the cached catalog index for the configured dataset.

    Raises:
        CatalogLoadError: If the configured catalog cannot be loaded
    """
    return load_catalog_index()
