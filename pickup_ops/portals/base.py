"""
Shared portal shell: identity changes, session lifecycle, error banner
"""

import asyncio
import logging
from typing import Callable, List, Optional

from ..core.exceptions import AuthError, PickupOpsError
from ..core.models import Identity, PickupRecord
from ..services.auth_service import AuthService
from ..services.live_query import LivePickupFeed, PickupScope
from ..services.profile_service import ProfileService
from .session import SessionContext

logger = logging.getLogger(__name__)

SUBSCRIBE_FAILED_MESSAGE = "Could not load your pickups. Please sign in again."


class PortalShell:
    """Base class for the customer and partner portals"""

    portal_name = "portal"

    def __init__(self, auth: AuthService, profiles: ProfileService, feed: LivePickupFeed):
        self.auth = auth
        self.profiles = profiles
        self.feed = feed

        self.session: Optional[SessionContext] = None
        self.pickups: List[PickupRecord] = []
        self.pickups_loading = False

        self.auth_busy = False
        self.auth_error = ""
        self.error = ""

        self._generation = 0
        self._listener_tasks = set()

    # ===== SESSION LIFECYCLE =====

    async def load_profile(self, identity: Identity):
        raise NotImplementedError

    def scope_for(self, identity: Identity) -> PickupScope:
        raise NotImplementedError

    def reset_view_state(self) -> None:
        """Clear per-user presentation state on logout / identity change"""
        pass

    async def handle_identity_change(self, identity: Optional[Identity]) -> None:
        """Tear down the current session and, for a new identity, open a fresh one"""
        self._generation += 1
        generation = self._generation

        previous, self.session = self.session, None
        if previous is not None:
            await previous.close()
        self.pickups = []
        self.pickups_loading = False

        if identity is None:
            self.reset_view_state()
            return

        profile = await self.load_profile(identity)
        session = SessionContext(identity, profile)
        if generation != self._generation:
            # Another identity change overtook this one while the profile loaded
            await session.close()
            return
        self.session = session
        self.pickups_loading = True

        def on_snapshot(records: List[PickupRecord]) -> None:
            if self.session is not session:
                return
            self.pickups = records
            self.pickups_loading = False

        try:
            subscription = await self.feed.subscribe(self.scope_for(identity), on_snapshot)
        except Exception as e:
            logger.error(f"❌ Could not open pickup feed for {identity.uid}: {e}")
            if self.session is session:
                self.session = None
                self.pickups_loading = False
                self.error = SUBSCRIBE_FAILED_MESSAGE
            await session.close()
            return
        await session.replace_subscription(subscription)
        logger.info(f"✅ {self.portal_name} session ready for {identity.uid}")

    def attach(self) -> Callable[[], None]:
        """Follow the auth provider's identity changes; returns a detach function"""
        def listener(identity: Optional[Identity]) -> None:
            task = asyncio.get_running_loop().create_task(self.handle_identity_change(identity))
            self._listener_tasks.add(task)
            task.add_done_callback(self._listener_tasks.discard)

        return self.auth.on_identity_change(listener)

    @property
    def signed_in(self) -> bool:
        return self.session is not None

    # ===== AUTH =====

    async def _run_auth(self, call) -> bool:
        self.auth_error = ""
        self.auth_busy = True
        try:
            identity = await call
            await self.handle_identity_change(identity)
            if not self.signed_in:
                self.auth_error = self.error or SUBSCRIBE_FAILED_MESSAGE
                return False
            return True
        except AuthError as e:
            self.auth_error = e.user_message
            return False
        except PickupOpsError as e:
            self.auth_error = e.message
            return False
        finally:
            self.auth_busy = False

    async def login(self, email: str, password: str) -> bool:
        if self.auth_busy:
            return False
        return await self._run_auth(self.auth.login(email, password))

    async def logout(self) -> None:
        try:
            await self.auth.logout()
        except AuthError as e:
            logger.warning(f"⚠️ Logout error: {e.message}")
        finally:
            await self.handle_identity_change(None)
            self.auth_error = ""

    # ===== ERROR BANNER =====

    def dismiss_error(self) -> None:
        self.error = ""
