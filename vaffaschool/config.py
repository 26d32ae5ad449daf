"""Configuration management for Vaffaschool."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with VS_ prefix.
    Example: VS_SEARCH_ALGO=simple
    """

    model_config = SettingsConfigDict(
        env_prefix="VS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Data paths
    data_dir: Path = Path("data")
    raw_data_dir: Path = Path("data/raw/MIUR/2018")
    raw_file_types: str = "json"  # comma separated
    raw_records_key: str = "@graph"
    sqlite_filename: str = "schools.sqlite"

    # Search
    search_use_db: bool = True
    search_algo: str = "fuzzy"  # "simple" or "fuzzy"
    school_name_multiplier: int = 50
    city_name_multiplier: int = 80
    min_token_length: int = 5

    # Normalization
    institutional_email_domain: str = "istruzione.it"
    debug: bool = False

    # Geographic reference data
    geo_api_url: Optional[str] = None
    geo_catalog_path: Optional[Path] = None
    http_timeout: float = 30.0

    @property
    def sqlite_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self.data_dir / self.sqlite_filename

    @property
    def raw_file_extensions(self) -> tuple[str, ...]:
        """Raw file extensions, lowercased and without dots."""
        return tuple(
            ext.strip().lstrip(".").lower()
            for ext in self.raw_file_types.split(",")
            if ext.strip()
        )


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
