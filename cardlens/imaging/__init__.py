from cardlens.imaging.fingerprint import (
    compute_fingerprint,
    hamming_distance,
    hash_bit_length,
)
from cardlens.imaging.matcher import FingerprintIndex, find_best_match

__all__ = [
    "FingerprintIndex",
    "compute_fingerprint",
    "find_best_match",
    "hamming_distance",
    "hash_bit_length",
]
