"""
Portal shells for customers and partner agencies.
"""

from .session import SessionContext
from .customer import BookingDraft, CustomerPortal
from .partner import DashboardStats, PartnerPortal

__all__ = [
    'SessionContext',
    'BookingDraft',
    'CustomerPortal',
    'DashboardStats',
    'PartnerPortal',
]
