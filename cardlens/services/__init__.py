"""
CardLens services.

Catalog loading and indexing. The identification facade lives in
cardlens.services.identification and is imported from there directly.
"""

from cardlens.services.catalog_index import (
    CatalogIndex,
    build_catalog_index,
    extract_caption_attacks,
    normalize_name,
)
from cardlens.services.catalog_loader import (
    get_catalog_index,
    load_catalog,
    load_catalog_index,
    row_to_record,
)

__all__ = [
    "CatalogIndex",
    "build_catalog_index",
    "extract_caption_attacks",
    "get_catalog_index",
    "load_catalog",
    "load_catalog_index",
    "normalize_name",
    "row_to_record",
]
