"""
Service layer modules for the hosted store and auth provider.

This module contains service implementations for:
- Document store access (in-memory and Supabase)
- Live pickup subscriptions
- Booking and status mutation commands
- Registration, login and profile loading
"""

from . import document_store
from . import supabase_store
from . import live_query
from . import pickup_commands
from . import auth_service
from . import profile_service

__all__ = [
    'document_store',
    'supabase_store',
    'live_query',
    'pickup_commands',
    'auth_service',
    'profile_service',
]
