"""
Booking and status mutation commands for pickups

Every command validates locally before touching the store. The resulting state
is observed through the live subscription, not through return values.
"""

import logging
from typing import List, Optional, Sequence

from ..core.catalog import TIME_SLOTS, WasteCatalog, default_catalog
from ..core.exceptions import Forbidden, PickupOpsError, RecordNotFound, StoreWriteError, ValidationError
from ..core.models import PickupRecord, PickupStatus
from ..core.status_machine import validate_transition
from .document_store import DocumentStore

logger = logging.getLogger(__name__)


def _dedupe(values: Sequence[str]) -> List[str]:
    seen = set()
    ordered = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


class PickupCommands:
    def __init__(
        self,
        store: DocumentStore,
        collection: str = "pickups",
        catalog: WasteCatalog = default_catalog,
        time_slots: Sequence[str] = TIME_SLOTS,
    ):
        self.store = store
        self.collection = collection
        self.catalog = catalog
        self.time_slots = list(time_slots)

    def build_pickup(
        self,
        customer_id: str,
        waste_types: Sequence[str],
        address: Optional[str],
        date: Optional[str],
        time: Optional[str] = None,
        customer_name: Optional[str] = None,
        sub_type: Optional[str] = None,
    ) -> PickupRecord:
        """Validate booking input and build the record to insert"""
        if not customer_id:
            raise ValidationError("You must be signed in to schedule a pickup.", field="customer_id")

        types = _dedupe(waste_types or [])
        if not types:
            raise ValidationError("Select at least one waste type.", field="waste_types")
        unknown = [t for t in types if not self.catalog.is_known(t)]
        if unknown:
            raise ValidationError(f"Unknown waste type: {', '.join(unknown)}", field="waste_types")

        if not date:
            raise ValidationError("Pick a date for the pickup.", field="date")

        resolved_address = (address or "").strip()
        if not resolved_address:
            raise ValidationError("A pickup address is required.", field="address")

        slot = time or self.time_slots[0]
        if slot not in self.time_slots:
            raise ValidationError(f"Unknown time slot: {slot}", field="time")

        if sub_type is not None and not self.catalog.is_valid_sub_type(types[0], sub_type):
            raise ValidationError(
                f"'{sub_type}' is not a sub-category of {self.catalog.label(types[0])}",
                field="sub_type",
            )

        return PickupRecord(
            uid=customer_id,
            customerName=customer_name or "Customer",
            wasteTypes=types,
            subType=sub_type,
            address=resolved_address,
            date=date,
            time=slot,
            status=PickupStatus.PENDING,
        )

    async def create_pickup(
        self,
        customer_id: str,
        waste_types: Sequence[str],
        address: Optional[str],
        date: Optional[str],
        time: Optional[str] = None,
        customer_name: Optional[str] = None,
        sub_type: Optional[str] = None,
    ) -> str:
        """Create a pending pickup; returns the store-assigned id"""
        record = self.build_pickup(customer_id, waste_types, address, date, time, customer_name, sub_type)
        try:
            pickup_id = await self.store.create(self.collection, record.to_document())
        except Exception as e:
            logger.error(f"❌ Booking error for {customer_id}: {e}")
            raise StoreWriteError("Could not schedule pickup. Please try again.") from e

        logger.info(f"✅ Created pending pickup {pickup_id} for {customer_id} ({', '.join(record.waste_types)})")
        return pickup_id

    async def _load(self, pickup_id: str) -> Optional[PickupRecord]:
        try:
            doc = await self.store.get(self.collection, pickup_id)
        except Exception as e:
            logger.error(f"❌ Error loading pickup {pickup_id}: {e}")
            raise StoreWriteError("Could not reach the pickup store. Please try again.") from e
        if doc is None:
            return None
        try:
            return PickupRecord.from_document({**doc, "id": doc.get("id", pickup_id)})
        except ValueError as e:
            logger.error(f"❌ Malformed pickup {pickup_id}: {e}")
            raise StoreWriteError("This pickup could not be read. Please refresh and try again.") from e

    async def delete_pickup(self, pickup_id: str, requester_id: str) -> None:
        """Delete a pickup; only its owner may, and only while it is pending"""
        record = await self._load(pickup_id)
        if record is None:
            raise Forbidden("This pickup no longer exists.")
        if record.owner_id != requester_id:
            logger.warning(f"⚠️ {requester_id} tried to delete pickup {pickup_id} owned by {record.owner_id}")
            raise Forbidden("Only the customer who booked this pickup can cancel it.")
        if record.status != PickupStatus.PENDING:
            raise Forbidden("Pickups can only be cancelled while pending.")

        try:
            await self.store.delete(self.collection, pickup_id)
        except Exception as e:
            logger.error(f"❌ Delete error for pickup {pickup_id}: {e}")
            raise StoreWriteError("Could not cancel pickup. Please try again.") from e

        logger.info(f"🗑️ Pickup {pickup_id} cancelled by {requester_id}")

    async def advance_status(
        self,
        pickup_id: str,
        next_status: str,
        requester_id: str,
        portfolio: Sequence[str] = (),
    ) -> PickupStatus:
        """Move a pickup one step forward; only the status field is written"""
        record = await self._load(pickup_id)
        if record is None:
            raise RecordNotFound(self.collection, pickup_id)

        target = validate_transition(record.status, next_status)

        if portfolio and not set(portfolio) & set(record.waste_types):
            raise Forbidden("This pickup is outside your agency's portfolio.")

        try:
            await self.store.update(self.collection, pickup_id, {"status": target.value})
        except PickupOpsError:
            raise
        except Exception as e:
            logger.error(f"❌ Failed to update pickup status for {pickup_id}: {e}")
            raise StoreWriteError("Could not update pickup status. Please try again.") from e

        logger.info(f"✅ Pickup {pickup_id}: {record.status.value} -> {target.value} by {requester_id}")
        return target
