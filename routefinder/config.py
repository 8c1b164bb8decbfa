import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

CATALOG_DIR = Path(__file__).parent / "catalog"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    environment: str = Field(default="development", alias="NODE_ENV")

    # Catalog data locations (default to the packaged YAML files)
    routes_dir: Path = Field(default=CATALOG_DIR / "routes", alias="ROUTES_DIR")
    synthesis_dir: Path = Field(default=CATALOG_DIR / "synthesis", alias="SYNTHESIS_DIR")
    synonyms_file: Path = Field(default=CATALOG_DIR / "synonyms.yaml", alias="SYNONYMS_FILE")

    # Remote replacement dataset; unset means update checks report "no updates"
    routes_update_url: str | None = Field(default=None, alias="ROUTES_UPDATE_URL")
    update_timeout: float = Field(default=10.0, alias="UPDATE_TIMEOUT")

    # Usage analytics are for internal use only
    show_analytics: bool = Field(
        default=False,
        alias="SHOW_ANALYTICS",
        description="Expose the usage analytics endpoint"
    )
    analytics_file: Path | None = Field(default=None, alias="ANALYTICS_FILE")

    # Comma-separated in the environment, so skip the JSON decoding of list fields
    allowed_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [],
        alias="ALLOWED_ORIGINS"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,  # Treat empty strings as not set
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Parse ALLOWED_ORIGINS from comma-separated string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v or []

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def dev_mode(self) -> bool:
        """Check if running in development/test mode."""
        in_test = "pytest" in sys.modules or os.getenv("TEST") == "true"
        in_dev = self.environment == "development"
        return in_test or in_dev

    @property
    def updates_enabled(self) -> bool:
        return bool(self.routes_update_url)


@lru_cache
def get_settings() -> Settings:
    return Settings()
