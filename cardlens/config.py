from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardLens"
    debug: bool = False

    catalog_path: Path = DATA_DIR / "pokemon-cards.json"
    locale_tables_path: Path = DATA_DIR / "locale_tables.json"

    fingerprint_cache_dir: Path = Path(".cache/cardlens")

    # Grid must match between index build and query time
    hash_width: int = 8
    hash_height: int = 11

    # Accept a visual match only below this many differing bits
    match_threshold: int = 25

    # Number of catalog records sampled when building the visual index
    fingerprint_sample_limit: int = 100

    image_fetch_timeout: float = 30.0


settings = Settings()


# =============================================================================
# IDENTIFICATION LIMITS
# =============================================================================

# Number of ranked candidates returned to the caller
TOP_K = 3

# Plausible printed hit-point range
HP_MIN = 30
HP_MAX = 340
