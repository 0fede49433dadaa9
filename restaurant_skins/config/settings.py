"""Application configuration settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "restaurant-skins"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    # Filesystem stores
    skins_dir: Path = Path("skins")
    data_dir: Path = Path("data/restaurants")
    overrides_dir: Path = Path("data/overrides")

    # Skins
    default_skin_id: str = "cafert-modern"
    skin_cache_enabled: bool = True
    default_currency: str = "USD"

    # CSS scoping
    css_scope_keyframes: bool = True
    css_scope_variables: bool = False
    css_add_containment: bool = True
    css_minify: bool = False
    css_enforce_naming: bool = False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def is_production(self) -> bool:
        """Whether the app runs with production semantics."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
