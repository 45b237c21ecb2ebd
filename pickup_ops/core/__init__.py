"""
Core domain logic for waste pickups.

This module contains:
- Pickup, customer and agency data models
- The waste category catalog
- The pickup status lifecycle
- View filtering for the customer and partner portals
"""

from . import exceptions
from . import catalog
from . import models
from . import status_machine
from . import view_filters

__all__ = [
    'exceptions',
    'catalog',
    'models',
    'status_machine',
    'view_filters',
]
