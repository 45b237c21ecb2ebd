"""
Hosted store configuration
Both portals talk to the same Supabase project; credentials come from the environment.
"""

import logging
import os
from typing import Dict, Optional

from ..core.exceptions import ConfigurationError
from .settings import get_settings

logger = logging.getLogger(__name__)


def _api_url_from_database_url(database_url: Optional[str]) -> Optional[str]:
    """Convert a Supabase database URL into the API URL"""
    if not database_url or "supabase.co" not in database_url:
        return None
    # db.<ref>.supabase.co -> <ref>.supabase.co
    if database_url.startswith("https://db."):
        project_ref = database_url.replace("https://db.", "").replace(".supabase.co", "")
        return f"https://{project_ref}.supabase.co"
    return database_url


def get_store_config() -> Dict[str, str]:
    """Get store configuration with environment variable overrides"""
    settings = get_settings()
    url = os.getenv("SUPABASE_URL") or settings.SUPABASE_URL
    anon_key = os.getenv("SUPABASE_ANON_KEY") or settings.SUPABASE_ANON_KEY

    if not url:
        url = _api_url_from_database_url(os.getenv("DATABASE_URL") or settings.DATABASE_URL)
        if url:
            logger.info(f"🔄 Using DATABASE_URL as SUPABASE_URL: {url}")

    if not url:
        raise ConfigurationError("SUPABASE_URL environment variable is required")
    if not anon_key:
        raise ConfigurationError("SUPABASE_ANON_KEY environment variable is required")

    return {"url": url, "anon_key": anon_key}

