"""
Partner (agency) portal: cross-customer task queue, fleet views, status updates
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..adapters.geocoding import ReverseGeocoder
from ..core.catalog import WasteCatalog, WasteCategory, default_catalog
from ..core.exceptions import PickupOpsError, ValidationError
from ..core.models import AgencyDraft, AgencyProfile, Identity, PickupRecord, PickupStatus
from ..core.view_filters import active_by_fleet, completion_rate, count_by_status, partner_view
from ..services.auth_service import AuthService
from ..services.live_query import LivePickupFeed, PickupScope
from ..services.pickup_commands import PickupCommands
from ..services.profile_service import ProfileService
from .base import PortalShell

logger = logging.getLogger(__name__)

DASHBOARD_VIEW = "dashboard"
TASKS_VIEW = "tasks"


@dataclass
class DashboardStats:
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    completion_rate: Optional[int] = None
    active_by_fleet: Dict[str, int] = field(default_factory=dict)


class PartnerPortal(PortalShell):
    portal_name = "partner"

    def __init__(
        self,
        auth: AuthService,
        profiles: ProfileService,
        feed: LivePickupFeed,
        commands: PickupCommands,
        geocoder: Optional[ReverseGeocoder] = None,
        catalog: WasteCatalog = default_catalog,
    ):
        super().__init__(auth, profiles, feed)
        self.commands = commands
        self.geocoder = geocoder or ReverseGeocoder()
        self.catalog = catalog

        self.view = DASHBOARD_VIEW
        self.selected_fleet: Optional[str] = None
        self.selected_status: Optional[PickupStatus] = None
        self.selected_sub_type: Optional[str] = None
        self.updating: Set[str] = set()

        self.draft = AgencyDraft()
        self.is_locating = False

    async def load_profile(self, identity: Identity) -> AgencyProfile:
        return await self.profiles.load_agency_profile(identity)

    def scope_for(self, identity: Identity) -> PickupScope:
        return PickupScope.everything()

    def reset_view_state(self) -> None:
        self.view = DASHBOARD_VIEW
        self.clear_filters()
        self.error = ""

    @property
    def profile(self) -> Optional[AgencyProfile]:
        return self.session.profile if self.session else None

    @property
    def portfolio(self) -> List[str]:
        return list(self.profile.handled_wastes) if self.profile else []

    @property
    def tasks(self) -> List[PickupRecord]:
        return self.pickups

    # ===== FILTERS =====

    def select_fleet(self, fleet: Optional[str]) -> None:
        if fleet is not None and not self.catalog.is_known(fleet):
            raise ValidationError(f"Unknown fleet: {fleet}", field="fleet")
        self.selected_fleet = fleet
        self.selected_sub_type = None
        self.view = TASKS_VIEW

    def select_status(self, status: Optional[str]) -> None:
        if status is None:
            self.selected_status = None
            return
        try:
            self.selected_status = PickupStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown status: {status}", field="status") from e

    def select_sub_type(self, sub_type: Optional[str]) -> None:
        if sub_type is not None and not self.catalog.is_valid_sub_type(self.selected_fleet, sub_type):
            raise ValidationError(f"'{sub_type}' is not a sub-category of the selected fleet", field="sub_type")
        self.selected_sub_type = sub_type

    def clear_filters(self) -> None:
        self.selected_fleet = None
        self.selected_status = None
        self.selected_sub_type = None

    def show_dashboard(self) -> None:
        self.view = DASHBOARD_VIEW

    @property
    def visible_tasks(self) -> List[PickupRecord]:
        return partner_view(
            self.tasks,
            portfolio=self.portfolio,
            fleet=self.selected_fleet,
            status=self.selected_status,
            sub_type=self.selected_sub_type,
            catalog=self.catalog,
        )

    def visible_waste_types(self) -> List[WasteCategory]:
        """Fleet cards for the agency's portfolio; everything when none is declared"""
        portfolio = self.portfolio
        return [c for c in self.catalog.categories() if not portfolio or c.id in portfolio]

    def dashboard(self) -> DashboardStats:
        """Status counts follow the fleet and portfolio, not the status or sub-type selection"""
        fleet_tasks = partner_view(self.tasks, portfolio=self.portfolio, fleet=self.selected_fleet, catalog=self.catalog)
        counts = count_by_status(fleet_tasks)
        return DashboardStats(
            pending=counts[PickupStatus.PENDING],
            in_progress=counts[PickupStatus.IN_PROGRESS],
            completed=counts[PickupStatus.COMPLETED],
            completion_rate=completion_rate(self.tasks),
            active_by_fleet=active_by_fleet(self.tasks, self.catalog),
        )

    # ===== STATUS UPDATES =====

    async def advance(self, task_id: str, next_status: str) -> bool:
        if not self.session or task_id in self.updating:
            return False

        self.error = ""
        self.updating.add(task_id)
        try:
            await self.commands.advance_status(task_id, next_status, self.session.uid, self.portfolio)
            return True
        except PickupOpsError as e:
            logger.error(f"❌ Failed to update pickup status: {e.message}")
            self.error = e.message
            return False
        finally:
            self.updating.discard(task_id)

    async def accept(self, task_id: str) -> bool:
        return await self.advance(task_id, PickupStatus.IN_PROGRESS.value)

    async def complete(self, task_id: str) -> bool:
        return await self.advance(task_id, PickupStatus.COMPLETED.value)

    # ===== REGISTRATION =====

    def toggle_handled_waste(self, waste_type: str) -> None:
        self.draft.toggle_waste_type(waste_type)

    async def pin_hub(self, lat: float, lng: float) -> None:
        """Drop (or move) the hub pin and try to fill the address from it"""
        self.is_locating = True
        try:
            geocoded = await self.geocoder.reverse(lat, lng)
            self.draft.apply_pin(lat, lng, geocoded)
        finally:
            self.is_locating = False

    async def register(self, email: str, password: str) -> bool:
        if self.auth_busy:
            return False

        async def register_and_identify():
            identity, _ = await self.auth.register_agency(email, password, self.draft)
            return identity

        registered = await self._run_auth(register_and_identify())
        if registered:
            self.draft = AgencyDraft()
        return registered
