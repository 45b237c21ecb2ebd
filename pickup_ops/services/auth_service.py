"""
Authentication and registration for both portals

The hosted auth provider owns credentials and sessions; this module maps its
failures to user-facing messages and writes the profile documents on signup.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Tuple

import httpx

from ..adapters.auth_messages import friendly_auth_error
from ..core.catalog import WasteCatalog, default_catalog
from ..core.exceptions import AuthError, StoreWriteError, ValidationError
from ..core.models import AgencyDraft, AgencyProfile, Identity, UserProfile, derive_full_address
from .document_store import DocumentStore

logger = logging.getLogger(__name__)

IdentityCallback = Callable[[Optional[Identity]], None]


class AuthProvider(ABC):
    """Abstract hosted auth provider"""

    @abstractmethod
    async def register(self, email: str, password: str, display_name: Optional[str] = None) -> Identity:
        pass

    @abstractmethod
    async def login(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    async def logout(self) -> None:
        pass

    @abstractmethod
    def on_identity_change(self, callback: IdentityCallback) -> Callable[[], None]:
        """Register a listener; returns a function that removes it"""
        pass


def _identity_from_user(user: Any) -> Optional[Identity]:
    if user is None:
        return None
    metadata = getattr(user, "user_metadata", None) or {}
    return Identity(
        uid=str(user.id),
        email=getattr(user, "email", None),
        display_name=metadata.get("display_name") or metadata.get("name"),
    )


class SupabaseAuthProvider(AuthProvider):
    """Auth provider over supabase `client.auth`"""

    def __init__(self, client):
        self.auth = client.auth

    async def register(self, email: str, password: str, display_name: Optional[str] = None) -> Identity:
        response = await self.auth.sign_up(
            {"email": email, "password": password, "options": {"data": {"display_name": display_name}}}
        )
        identity = _identity_from_user(response.user)
        if identity is None:
            raise AuthError(None, friendly_auth_error(None))
        return identity

    async def login(self, email: str, password: str) -> Identity:
        response = await self.auth.sign_in_with_password({"email": email, "password": password})
        identity = _identity_from_user(response.user)
        if identity is None:
            raise AuthError("invalid-credential", friendly_auth_error("invalid-credential"))
        return identity

    async def logout(self) -> None:
        await self.auth.sign_out()

    def on_identity_change(self, callback: IdentityCallback) -> Callable[[], None]:
        def listener(event, session) -> None:
            callback(_identity_from_user(session.user) if session else None)

        subscription = self.auth.on_auth_state_change(listener)
        return subscription.unsubscribe


def _error_code(error: Exception) -> Optional[str]:
    if isinstance(error, httpx.TransportError):
        return "network-request-failed"
    return getattr(error, "code", None)


class AuthService:
    def __init__(
        self,
        provider: AuthProvider,
        store: DocumentStore,
        users_collection: str = "users",
        agencies_collection: str = "agencies",
        catalog: WasteCatalog = default_catalog,
    ):
        self.provider = provider
        self.store = store
        self.users_collection = users_collection
        self.agencies_collection = agencies_collection
        self.catalog = catalog

    async def _provider_call(self, action: str, call):
        try:
            return await call
        except AuthError:
            raise
        except Exception as e:
            code = _error_code(e)
            logger.error(f"❌ Auth {action} failed ({code}): {e}")
            raise AuthError(code, friendly_auth_error(code)) from e

    async def _write_profile(self, collection: str, uid: str, doc: dict, merge: bool = False) -> None:
        try:
            await self.store.set(collection, uid, doc, merge=merge)
        except Exception as e:
            logger.error(f"❌ Error saving {collection} profile for {uid}: {e}")
            raise StoreWriteError("Your account was created but the profile could not be saved.") from e

    async def register_customer(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        area: Optional[str] = None,
        flat_no: Optional[str] = None,
        street: Optional[str] = None,
    ) -> Tuple[Identity, UserProfile]:
        """Create the identity and its users profile document"""
        display_name = name or email.split("@")[0]
        identity = await self._provider_call("register", self.provider.register(email, password, display_name))

        profile = UserProfile(
            uid=identity.uid,
            name=display_name,
            email=email,
            phone=phone or "",
            area=area or "",
            flatNo=flat_no or "",
            street=street or "",
            fullAddress=derive_full_address(flat_no, street, area),
        )
        await self._write_profile(self.users_collection, identity.uid, profile.model_dump(by_alias=True))
        logger.info(f"✅ Registered customer {identity.uid}")
        return identity, profile

    def validate_agency_draft(self, draft: AgencyDraft) -> None:
        if not draft.agency_name or not draft.coords or not draft.handled_wastes:
            raise ValidationError(
                "Please complete all fields, pin your hub on the map, and select at least one waste type.",
                field="agency",
            )
        unknown = [w for w in draft.handled_wastes if not self.catalog.is_known(w)]
        if unknown:
            raise ValidationError(f"Unknown waste type: {', '.join(unknown)}", field="handled_wastes")

    async def register_agency(self, email: str, password: str, draft: AgencyDraft) -> Tuple[Identity, AgencyProfile]:
        """Validate the agency draft, then create identity, users and agencies documents"""
        self.validate_agency_draft(draft)
        identity = await self._provider_call("register", self.provider.register(email, password, draft.agency_name))

        user_profile = UserProfile(
            uid=identity.uid,
            name=draft.agency_name,
            email=email,
            phone=draft.mobile,
            area=draft.city,
            street=draft.street,
            fullAddress=derive_full_address(None, draft.street, draft.city),
        )
        await self._write_profile(self.users_collection, identity.uid, user_profile.model_dump(by_alias=True))

        agency = AgencyProfile(uid=identity.uid, **{**draft.model_dump(by_alias=True), "email": email})
        doc = {
            **agency.model_dump(by_alias=True),
            "registeredAt": datetime.now(timezone.utc).isoformat(),
        }
        await self._write_profile(self.agencies_collection, identity.uid, doc, merge=True)
        logger.info(f"✅ Registered agency {identity.uid} handling {', '.join(draft.handled_wastes)}")
        return identity, agency

    async def login(self, email: str, password: str) -> Identity:
        identity = await self._provider_call("login", self.provider.login(email, password))
        logger.info(f"🔑 Signed in {identity.uid}")
        return identity

    async def logout(self) -> None:
        await self._provider_call("logout", self.provider.logout())
        logger.info("👋 Signed out")

    def on_identity_change(self, callback: IdentityCallback) -> Callable[[], None]:
        return self.provider.on_identity_change(callback)
