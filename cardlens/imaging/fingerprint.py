"""
Difference-hash fingerprints.

An image is shrunk to (width + 1) x height, converted to luminance, and
every horizontally adjacent pixel pair emits one bit: 1 if the left pixel
is brighter. Bits are read row-major, zero-padded to a multiple of 4 and
hex-encoded. The hash ignores absolute brightness and survives mild
scaling and compression noise.

The grid size must be identical at index-build time and query time.
"""

import io
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from cardlens.models.failure import InvalidImageError

DEFAULT_HASH_WIDTH = 8
DEFAULT_HASH_HEIGHT = 11

# ITU-R BT.601 luma coefficients
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)

ImageSource = str | Path | bytes | Image.Image


def open_image(source: ImageSource) -> Image.Image:
    """
    Decode an image source to RGB.

    Raises:
        InvalidImageError: If the source cannot be read or decoded
    """
    if isinstance(source, Image.Image):
        return source.convert("RGB")

    try:
        if isinstance(source, bytes):
            with Image.open(io.BytesIO(source)) as img:
                return img.convert("RGB")
        with Image.open(source) as img:
            return img.convert("RGB")
    except (OSError, UnidentifiedImageError, ValueError) as e:
        raise InvalidImageError(detail=str(e)) from e


def hash_bit_length(width: int, height: int) -> int:
    """Bits in a hash for the grid, rounded up to whole hex digits."""
    bits = width * height
    return bits + (-bits % 4)


def bits_to_hex(bits: str) -> str:
    """Zero-pad a binary string to a multiple of 4 and hex-encode it."""
    padded = bits + "0" * (-len(bits) % 4)
    return "".join(f"{int(padded[i : i + 4], 2):x}" for i in range(0, len(padded), 4))


def compute_fingerprint(
    source: ImageSource,
    width: int = DEFAULT_HASH_WIDTH,
    height: int = DEFAULT_HASH_HEIGHT,
) -> str:
    """
    Compute the difference hash of an image.

    Args:
        source: File path, encoded image bytes, or a PIL image
        width: Comparisons per row
        height: Rows

    Returns:
        Hex string of hash_bit_length(width, height) / 4 digits

    Raises:
        InvalidImageError: If the image cannot be decoded
    """
    image = open_image(source).resize((width + 1, height), Image.Resampling.BILINEAR)
    pixels = np.asarray(image, dtype=np.float64)
    luma = pixels @ LUMA_WEIGHTS

    brighter = luma[:, :-1] > luma[:, 1:]
    bits = "".join("1" if bit else "0" for bit in brighter.ravel())
    return bits_to_hex(bits)


def hamming_distance(first: str, second: str) -> int:
    """
    Number of differing bits between two hex hashes.

    Compared over the common prefix length.
    """
    return sum(
        bin(int(a, 16) ^ int(b, 16)).count("1") for a, b in zip(first, second, strict=False)
    )
