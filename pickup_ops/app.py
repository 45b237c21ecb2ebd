"""
Wiring for the two portals against the hosted store
"""

import logging
from typing import Optional

from .adapters.geocoding import ReverseGeocoder
from .config import Settings, get_settings
from .logging_conf import configure_logging
from .portals.customer import CustomerPortal
from .portals.partner import PartnerPortal
from .services.auth_service import AuthService, SupabaseAuthProvider
from .services.document_store import DocumentStore
from .services.live_query import LivePickupFeed
from .services.pickup_commands import PickupCommands
from .services.profile_service import ProfileService
from .services.supabase_store import SupabaseDocumentStore

logger = logging.getLogger(__name__)


class PortalComponents:
    """Services shared by both portals for one store / auth provider pair"""

    def __init__(self, store: DocumentStore, auth: AuthService, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.settings = settings
        self.store = store
        self.auth = auth
        self.profiles = ProfileService(store, settings.USERS_TABLE, settings.AGENCIES_TABLE)
        self.feed = LivePickupFeed(store, settings.PICKUPS_TABLE)
        self.commands = PickupCommands(store, settings.PICKUPS_TABLE)

    def customer_portal(self) -> CustomerPortal:
        return CustomerPortal(self.auth, self.profiles, self.feed, self.commands)

    def partner_portal(self, geocoder: Optional[ReverseGeocoder] = None) -> PartnerPortal:
        return PartnerPortal(self.auth, self.profiles, self.feed, self.commands, geocoder=geocoder)


async def connect_supabase() -> PortalComponents:
    """Connect to the configured Supabase project and build the shared services"""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    store = await SupabaseDocumentStore.connect()
    auth = AuthService(
        SupabaseAuthProvider(store.supabase),
        store,
        users_collection=settings.USERS_TABLE,
        agencies_collection=settings.AGENCIES_TABLE,
    )
    logger.info("✅ Portal services ready")
    return PortalComponents(store, auth, settings)
