"""
Adapter modules for external services.

This module contains adapters for:
- Auth provider error code translation
- Reverse geocoding of map pins
"""

from . import auth_messages
from . import geocoding

__all__ = [
    'auth_messages',
    'geocoding',
]
