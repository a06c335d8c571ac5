"""
Load settings from .env. Never log or expose secret values.
All values come from environment variables (populated via .env file).
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Weather
    openweathermap_api_key: str = Field(default="", description="OpenWeatherMap API key")
    openweathermap_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="Current weather API base URL",
    )
    openweathermap_geo_url: str = Field(
        default="https://api.openweathermap.org/geo/1.0",
        description="Geocoding API base URL",
    )
    openweathermap_units: str = Field(default="metric", description="Response units")
    openweathermap_lang: str = Field(default="tr", description="Response language for descriptions")
    http_timeout_sec: float = Field(default=10.0, description="Per-request timeout in seconds")

    # City search
    search_debounce_ms: int = Field(default=500, ge=0, description="Quiet interval before a suggestion search")
    search_min_query_length: int = Field(default=3, ge=1, description="Shorter queries clear suggestions")
    search_suggestion_limit: int = Field(default=5, ge=1, description="Max suggestions requested")

    # Location
    default_latitude: Optional[float] = Field(default=None, description="Fixed device latitude (optional)")
    default_longitude: Optional[float] = Field(default=None, description="Fixed device longitude (optional)")

    # App
    log_level: str = Field(default="INFO", description="Log level")
    api_host: str = Field(default="0.0.0.0", description="FastAPI bind host")
    api_port: int = Field(default=8000, description="FastAPI port")

    @property
    def search_debounce_sec(self) -> float:
        return self.search_debounce_ms / 1000.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
