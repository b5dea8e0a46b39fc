"""Runtime settings, read from ``IMS_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# When installed in editable mode the project root is the repo root.
_PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="IMS_", env_file=".env", extra="ignore"
    )

    # Where the JSON stores live
    data_dir: Path = _PROJECT_ROOT / "data"

    # Stock ledger
    allow_negative_stock: bool = True
    max_write_retries: int = 3

    # Logging
    log_level: str = "WARNING"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
