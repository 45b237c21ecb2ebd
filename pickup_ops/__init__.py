"""
Pickup Ops Package

Shared logic behind the customer and partner-agency waste pickup portals:
- Pickup records, status lifecycle and the waste category catalog
- Live pickup subscriptions over the hosted document store
- Per-portal view filtering (fleet, portfolio, status, sub-category)
- Booking and status mutation commands
"""

__version__ = "1.0.0"
__author__ = "Eco Pickup Team"
