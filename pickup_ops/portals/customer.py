"""
Customer portal: schedule, list and cancel pickups
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from ..core.catalog import TIME_SLOTS, WasteCatalog, default_catalog
from ..core.exceptions import Forbidden, PickupOpsError, ValidationError
from ..core.models import Identity, PickupRecord, UserProfile
from ..core.view_filters import customer_view
from ..services.auth_service import AuthService
from ..services.live_query import LivePickupFeed, PickupScope
from ..services.pickup_commands import PickupCommands
from ..services.profile_service import ProfileService
from .base import PortalShell

logger = logging.getLogger(__name__)


@dataclass
class BookingDraft:
    """Local booking form state; cleared only after a successful booking"""
    selected_types: List[str] = field(default_factory=list)
    editing_address: bool = False
    custom_address: str = ""
    time_slot: str = TIME_SLOTS[0]

    def reset(self) -> None:
        self.selected_types = []
        self.editing_address = False
        self.custom_address = ""


class CustomerPortal(PortalShell):
    portal_name = "customer"

    def __init__(
        self,
        auth: AuthService,
        profiles: ProfileService,
        feed: LivePickupFeed,
        commands: PickupCommands,
        catalog: WasteCatalog = default_catalog,
    ):
        super().__init__(auth, profiles, feed)
        self.commands = commands
        self.catalog = catalog
        self.draft = BookingDraft(time_slot=commands.time_slots[0])
        self.booking_busy = False
        self.form_error = ""
        self.deleting: Set[str] = set()

    async def load_profile(self, identity: Identity) -> UserProfile:
        return await self.profiles.load_user_profile(identity)

    def scope_for(self, identity: Identity) -> PickupScope:
        return PickupScope.owned_by(identity.uid)

    def reset_view_state(self) -> None:
        self.draft.reset()
        self.form_error = ""
        self.error = ""

    @property
    def profile(self) -> Optional[UserProfile]:
        return self.session.profile if self.session else None

    @property
    def my_pickups(self) -> List[PickupRecord]:
        if not self.session:
            return []
        return customer_view(self.pickups, self.session.uid)

    # ===== BOOKING FORM =====

    def toggle_waste_type(self, waste_type: str) -> None:
        if waste_type in self.draft.selected_types:
            self.draft.selected_types = [t for t in self.draft.selected_types if t != waste_type]
        elif self.catalog.is_known(waste_type):
            self.draft.selected_types = [*self.draft.selected_types, waste_type]

    def remove_waste_type(self, waste_type: str) -> None:
        self.draft.selected_types = [t for t in self.draft.selected_types if t != waste_type]

    def toggle_address_edit(self) -> None:
        self.draft.editing_address = not self.draft.editing_address
        self.draft.custom_address = ""

    def set_custom_address(self, address: str) -> None:
        self.draft.custom_address = address

    def select_time_slot(self, slot: str) -> None:
        if slot not in self.commands.time_slots:
            raise ValidationError(f"Unknown time slot: {slot}", field="time")
        self.draft.time_slot = slot

    def resolve_address(self) -> str:
        """Override address while editing (falling back to the profile), else the profile address"""
        profile_address = self.profile.full_address if self.profile else ""
        if self.draft.editing_address:
            return self.draft.custom_address or profile_address
        return profile_address

    @property
    def can_submit(self) -> bool:
        return self.signed_in and bool(self.draft.selected_types) and not self.booking_busy

    async def book(self, date: Optional[str]) -> Optional[str]:
        """Submit the booking draft; returns the new pickup id on success"""
        if self.booking_busy or not self.session:
            return None

        self.form_error = ""
        self.error = ""
        self.booking_busy = True
        try:
            pickup_id = await self.commands.create_pickup(
                self.session.uid,
                self.draft.selected_types,
                self.resolve_address(),
                date,
                self.draft.time_slot,
                customer_name=self.profile.name if self.profile else None,
            )
        except ValidationError as e:
            self.form_error = e.message
            return None
        except PickupOpsError as e:
            self.error = e.message
            return None
        finally:
            self.booking_busy = False

        self.draft.reset()
        return pickup_id

    async def delete(self, pickup_id: str) -> bool:
        if not self.session or pickup_id in self.deleting:
            return False

        self.deleting.add(pickup_id)
        try:
            await self.commands.delete_pickup(pickup_id, self.session.uid)
            return True
        except Forbidden as e:
            logger.warning(f"⚠️ Delete refused for {pickup_id}: {e.message}")
            return False
        except PickupOpsError as e:
            self.error = e.message
            return False
        finally:
            self.deleting.discard(pickup_id)

    # ===== REGISTRATION =====

    async def register(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        area: Optional[str] = None,
        flat_no: Optional[str] = None,
        street: Optional[str] = None,
    ) -> bool:
        if self.auth_busy:
            return False

        async def register_and_identify():
            identity, _ = await self.auth.register_customer(email, password, name, phone, area, flat_no, street)
            return identity

        return await self._run_auth(register_and_identify())
