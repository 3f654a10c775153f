from cardlens.models.candidate import (
    NO_SCORE,
    IdentificationResult,
    ScoreContribution,
    ScoredCandidate,
)
from cardlens.models.card import CardRecord
from cardlens.models.failure import (
    CatalogLoadError,
    FailureDetail,
    FailureKind,
    FingerprintFetchError,
    InvalidImageError,
    KnownError,
)
from cardlens.models.fields import ParsedFields, TextZones
from cardlens.models.fingerprint import FingerprintEntry, FingerprintMatch
from cardlens.models.locale import EMPTY_TABLES, LocaleTables, load_locale_tables

__all__ = [
    "CardRecord",
    "CatalogLoadError",
    "EMPTY_TABLES",
    "FailureDetail",
    "FailureKind",
    "FingerprintEntry",
    "FingerprintFetchError",
    "FingerprintMatch",
    "IdentificationResult",
    "InvalidImageError",
    "KnownError",
    "LocaleTables",
    "NO_SCORE",
    "ParsedFields",
    "ScoreContribution",
    "ScoredCandidate",
    "TextZones",
    "load_locale_tables",
]
