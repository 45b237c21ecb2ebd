"""
Profile loading for authenticated sessions

Profiles are read once per session. A missing or unreadable profile never
blocks the portal: the session falls back to a profile built from the identity.
"""

import logging

from ..core.exceptions import ProfileLoadError
from ..core.models import AgencyProfile, Identity, UserProfile
from .document_store import DocumentStore

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, store: DocumentStore, users_collection: str = "users", agencies_collection: str = "agencies"):
        self.store = store
        self.users_collection = users_collection
        self.agencies_collection = agencies_collection

    async def _fetch(self, collection: str, identity: Identity):
        try:
            return await self.store.get(collection, identity.uid)
        except Exception as e:
            raise ProfileLoadError(f"Error loading {collection} profile for {identity.uid}: {e}") from e

    async def load_user_profile(self, identity: Identity) -> UserProfile:
        try:
            doc = await self._fetch(self.users_collection, identity)
            if doc:
                return UserProfile.model_validate({"uid": identity.uid, **doc})
        except ProfileLoadError as e:
            logger.error(f"❌ {e.message}")
        except ValueError as e:
            logger.error(f"❌ Malformed user profile for {identity.uid}: {e}")
        logger.info(f"🔄 Using minimal profile for {identity.uid}")
        return UserProfile.minimal(identity)

    async def load_agency_profile(self, identity: Identity) -> AgencyProfile:
        try:
            doc = await self._fetch(self.agencies_collection, identity)
            if doc:
                return AgencyProfile.model_validate({"uid": identity.uid, **doc})
        except ProfileLoadError as e:
            logger.error(f"❌ {e.message}")
        except ValueError as e:
            logger.error(f"❌ Malformed agency profile for {identity.uid}: {e}")
        logger.info(f"🔄 Using minimal agency profile for {identity.uid}")
        return AgencyProfile.minimal(identity)
