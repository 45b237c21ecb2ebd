"""
Runtime settings for the pickup portals
"""

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Ensure .env is read from repo root (if present)
load_dotenv()


class Settings(BaseSettings):
    # Read .env by default (repo root). You can also export envs directly.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    DATABASE_URL: Optional[str] = None

    # Collections (tables on the hosted store)
    PICKUPS_TABLE: str = "pickups"
    USERS_TABLE: str = "users"
    AGENCIES_TABLE: str = "agencies"

    # Reverse geocoding (partner hub registration only)
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/reverse"
    GEOCODER_TIMEOUT_SEC: float = 10.0
    GEOCODER_USER_AGENT: str = "eco-pickup/1.0"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    return Settings()
