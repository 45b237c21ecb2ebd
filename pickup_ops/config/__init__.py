"""
Configuration and environment setup.

This module contains:
- Settings loaded from the environment / .env file
- Hosted store credentials with environment overrides
"""

from .settings import Settings, get_settings
from .store_config import get_store_config

__all__ = [
    'Settings',
    'get_settings',
    'get_store_config',
]
