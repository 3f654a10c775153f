import io

import numpy as np
import pytest
from PIL import Image

from cardlens.models.card import CardRecord
from cardlens.models.locale import LocaleTables
from cardlens.services.catalog_index import CatalogIndex, build_catalog_index


@pytest.fixture
def sample_records() -> list[CardRecord]:
    """Small catalog with reprints, variants, and a trainer without HP."""
    return [
        CardRecord(
            id="base1-58",
            name="Pikachu",
            hp=40,
            set_name="Base",
            caption="Pikachu can use the attack Gnaw and the attack Thunder Jolt.",
            image_url="https://img.test/base1-58.png",
        ),
        CardRecord(
            id="xy1-4",
            name="Pikachu",
            hp=60,
            set_name="XY",
            caption="A Lightning Pokemon that can use the attack Thunder Shock.",
            image_url="https://img.test/xy1-4.png",
        ),
        CardRecord(
            id="xy1-55",
            name="Pikachu",
            hp=60,
            set_name="XY",
            caption="A Lightning Pokemon that can use the attack Quick Attack.",
            image_url="https://img.test/xy1-55.png",
        ),
        CardRecord(
            id="swsh4-44",
            name="Pikachu VMAX",
            hp=310,
            set_name="Vivid Voltage",
            caption="Pikachu VMAX can use the attack G-Max Volt Crash.",
            image_url="https://img.test/swsh4-44.png",
        ),
        CardRecord(
            id="base1-14",
            name="Raichu",
            hp=80,
            set_name="Base",
            caption="Raichu can use the attack Agility and the attack Thunder.",
        ),
        CardRecord(
            id="base1-4",
            name="Charizard",
            hp=120,
            set_name="Base",
            caption="Charizard can use the attack Fire Spin.",
        ),
        CardRecord(
            id="pgo-11",
            name="Radiant Charizard",
            hp=160,
            set_name="Pokemon GO",
            caption="Radiant Charizard can use the attack Combustion Blast.",
        ),
        CardRecord(
            id="base1-46",
            name="Charmander",
            hp=50,
            set_name="Base",
            caption="Charmander can use the attack Scratch and the attack Ember.",
        ),
        CardRecord(
            id="base1-91",
            name="Bill",
            hp=None,
            set_name="Base",
            caption="Draw 2 cards.",
        ),
    ]


@pytest.fixture
def catalog_index(sample_records: list[CardRecord]) -> CatalogIndex:
    return build_catalog_index(sample_records)


@pytest.fixture
def locale_tables() -> LocaleTables:
    """Synthetic German vocabulary."""
    return LocaleTables.from_dict(
        {
            "hp_labels": ["KP"],
            "names": {"Glumanda": "Charmander", "Glurak": "Charizard"},
            "attacks": {"donnerschock": "thunder shock", "glut": "ember"},
        }
    )


def _make_image(values: np.ndarray) -> Image.Image:
    """RGB image from a 2-D array of grey levels."""
    grey = np.clip(values, 0, 255).astype(np.uint8)
    return Image.fromarray(np.stack([grey, grey, grey], axis=-1))


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def encode_png():
    """Encode a PIL image as PNG bytes."""
    return _png_bytes


@pytest.fixture
def gradient_image() -> Image.Image:
    """9x11 image, brightness falling left to right (every dHash bit is 1)."""
    row = np.linspace(240, 20, 9)
    return _make_image(np.tile(row, (11, 1)))


@pytest.fixture
def rising_image() -> Image.Image:
    """9x11 image, brightness rising left to right (every dHash bit is 0)."""
    row = np.linspace(20, 240, 9)
    return _make_image(np.tile(row, (11, 1)))


@pytest.fixture
def checker_image() -> Image.Image:
    """9x11 vertical stripes, alternating dark and light columns."""
    row = np.array([30 if x % 2 == 0 else 220 for x in range(9)], dtype=np.float64)
    return _make_image(np.tile(row, (11, 1)))
