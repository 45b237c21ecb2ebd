import pytest
from unittest.mock import AsyncMock
from pickup_ops.core.exceptions import Forbidden, InvalidTransition, RecordNotFound, StoreWriteError, ValidationError
from pickup_ops.core.models import PickupStatus
from pickup_ops.services.document_store import DocumentStore, InMemoryDocumentStore
from pickup_ops.services.live_query import LivePickupFeed, PickupScope
from pickup_ops.services.pickup_commands import PickupCommands

SLOT = "9:00 AM - 11:00 AM"


class TestCreatePickup:
    """Unit tests for booking validation and creation"""

    @pytest.fixture
    def store(self):
        return InMemoryDocumentStore()

    @pytest.fixture
    def commands(self, store):
        return PickupCommands(store)

    @pytest.fixture
    def mock_store(self):
        return AsyncMock(spec=DocumentStore)

    @pytest.mark.asyncio
    async def test_create_sets_pending(self, store, commands):
        pickup_id = await commands.create_pickup("cust-1", ["plastic"], "12 Elm St", "2024-05-01", SLOT)
        doc = await store.get("pickups", pickup_id)
        assert doc["status"] == "pending"
        assert doc["uid"] == "cust-1"
        assert doc["wasteTypes"] == ["plastic"]
        assert doc["customerName"] == "Customer"
        assert "subType" not in doc

    @pytest.mark.asyncio
    async def test_scenario_a_subscription_delivers_pending_record(self, store, commands):
        """Creating a booking is observed through the customer's live subscription"""
        snapshots = []
        await LivePickupFeed(store).subscribe(PickupScope.owned_by("cust-1"), snapshots.append)
        await commands.create_pickup("cust-1", ["plastic"], "12 Elm St", "2024-05-01", SLOT)

        latest = snapshots[-1]
        assert len(latest) == 1
        assert latest[0].status == PickupStatus.PENDING
        assert latest[0].address == "12 Elm St"
        assert latest[0].time == SLOT

    @pytest.mark.asyncio
    async def test_new_record_ordered_before_earlier_ones(self, store, commands):
        snapshots = []
        await LivePickupFeed(store).subscribe(PickupScope.owned_by("cust-1"), snapshots.append)
        first = await commands.create_pickup("cust-1", ["paper"], "12 Elm St", "2024-05-01", SLOT)
        second = await commands.create_pickup("cust-1", ["metal"], "12 Elm St", "2024-05-02", SLOT)
        assert [r.id for r in snapshots[-1]] == [second, first]

    @pytest.mark.asyncio
    async def test_scenario_d_empty_waste_types_never_reaches_store(self, mock_store):
        commands = PickupCommands(mock_store)
        with pytest.raises(ValidationError) as exc_info:
            await commands.create_pickup("cust-1", [], "12 Elm St", "2024-05-01", SLOT)
        assert exc_info.value.field == "waste_types"
        assert mock_store.mock_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "waste_types,address,date,time,field",
        [
            (["plastic"], "12 Elm St", None, SLOT, "date"),
            (["plastic"], "12 Elm St", "", SLOT, "date"),
            (["plastic"], "   ", "2024-05-01", SLOT, "address"),
            (["plastic"], None, "2024-05-01", SLOT, "address"),
            (["glass"], "12 Elm St", "2024-05-01", SLOT, "waste_types"),
            (["plastic"], "12 Elm St", "2024-05-01", "midnight", "time"),
        ],
    )
    async def test_invalid_input_rejected_before_store(self, mock_store, waste_types, address, date, time, field):
        commands = PickupCommands(mock_store)
        with pytest.raises(ValidationError) as exc_info:
            await commands.create_pickup("cust-1", waste_types, address, date, time)
        assert exc_info.value.field == field
        mock_store.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_defaults_time_slot_and_dedupes_types(self, store, commands):
        pickup_id = await commands.create_pickup("cust-1", ["metal", "plastic", "metal"], " 4 Oak Rd ", "2024-05-01")
        doc = await store.get("pickups", pickup_id)
        assert doc["time"] == SLOT
        assert doc["wasteTypes"] == ["metal", "plastic"]
        assert doc["address"] == "4 Oak Rd"

    @pytest.mark.asyncio
    async def test_sub_type_must_belong_to_primary_type(self, store, commands):
        pickup_id = await commands.create_pickup(
            "cust-1", ["metal"], "12 Elm St", "2024-05-01", SLOT, sub_type="scraps_mixed"
        )
        assert (await store.get("pickups", pickup_id))["subType"] == "scraps_mixed"

        with pytest.raises(ValidationError):
            await commands.create_pickup("cust-1", ["paper"], "12 Elm St", "2024-05-01", SLOT, sub_type="scraps_mixed")

    @pytest.mark.asyncio
    async def test_store_failure_becomes_store_write_error(self, mock_store):
        mock_store.create.side_effect = ConnectionError("offline")
        commands = PickupCommands(mock_store)
        with pytest.raises(StoreWriteError):
            await commands.create_pickup("cust-1", ["plastic"], "12 Elm St", "2024-05-01", SLOT)


class TestStatusAndDelete:
    """Unit tests for status advancement and guarded deletion"""

    @pytest.fixture
    def store(self):
        return InMemoryDocumentStore()

    @pytest.fixture
    def commands(self, store):
        return PickupCommands(store)

    async def book(self, commands, owner="cust-1", waste_types=("plastic",)):
        return await commands.create_pickup(owner, list(waste_types), "12 Elm St", "2024-05-01", SLOT)

    @pytest.mark.asyncio
    async def test_scenario_c_lifecycle(self, store, commands):
        pickup_id = await self.book(commands)

        assert await commands.advance_status(pickup_id, "in-progress", "agency-1") == PickupStatus.IN_PROGRESS
        assert await commands.advance_status(pickup_id, "completed", "agency-1") == PickupStatus.COMPLETED
        with pytest.raises(Forbidden):
            await commands.delete_pickup(pickup_id, "cust-1")
        assert (await store.get("pickups", pickup_id))["status"] == "completed"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "steps,requested",
        [
            ([], "completed"),
            ([], "pending"),
            (["in-progress"], "in-progress"),
            (["in-progress"], "pending"),
            (["in-progress", "completed"], "pending"),
            (["in-progress", "completed"], "in-progress"),
            (["in-progress", "completed"], "completed"),
        ],
    )
    async def test_invalid_transitions_leave_status_unchanged(self, store, commands, steps, requested):
        pickup_id = await self.book(commands)
        for step in steps:
            await commands.advance_status(pickup_id, step, "agency-1")
        before = (await store.get("pickups", pickup_id))["status"]

        with pytest.raises(InvalidTransition):
            await commands.advance_status(pickup_id, requested, "agency-1")
        assert (await store.get("pickups", pickup_id))["status"] == before

    @pytest.mark.asyncio
    async def test_advance_writes_only_status(self):
        mock_store = AsyncMock(spec=DocumentStore)
        mock_store.get.return_value = {"id": "p1", "uid": "cust-1", "wasteTypes": ["paper"], "status": "pending"}
        commands = PickupCommands(mock_store)

        await commands.advance_status("p1", "in-progress", "agency-1")
        mock_store.update.assert_awaited_once_with("pickups", "p1", {"status": "in-progress"})

    @pytest.mark.asyncio
    async def test_advance_outside_portfolio_is_forbidden(self, store, commands):
        pickup_id = await self.book(commands, waste_types=("organic",))
        with pytest.raises(Forbidden):
            await commands.advance_status(pickup_id, "in-progress", "agency-1", portfolio=["metal"])
        assert (await store.get("pickups", pickup_id))["status"] == "pending"

    @pytest.mark.asyncio
    async def test_advance_missing_record(self, commands):
        with pytest.raises(RecordNotFound):
            await commands.advance_status("missing", "in-progress", "agency-1")

    @pytest.mark.asyncio
    async def test_owner_deletes_pending(self, store, commands):
        pickup_id = await self.book(commands)
        await commands.delete_pickup(pickup_id, "cust-1")
        assert await store.get("pickups", pickup_id) is None

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, store, commands):
        pickup_id = await self.book(commands)
        with pytest.raises(Forbidden):
            await commands.delete_pickup(pickup_id, "cust-2")
        assert await store.get("pickups", pickup_id) is not None

    @pytest.mark.asyncio
    async def test_cannot_delete_once_accepted(self, store, commands):
        pickup_id = await self.book(commands)
        await commands.advance_status(pickup_id, "in-progress", "agency-1")
        with pytest.raises(Forbidden):
            await commands.delete_pickup(pickup_id, "cust-1")
        assert (await store.get("pickups", pickup_id))["status"] == "in-progress"

    @pytest.mark.asyncio
    async def test_delete_missing_record_is_forbidden(self, commands):
        with pytest.raises(Forbidden):
            await commands.delete_pickup("missing", "cust-1")

    @pytest.mark.asyncio
    async def test_delete_store_failure(self):
        mock_store = AsyncMock(spec=DocumentStore)
        mock_store.get.return_value = {"id": "p1", "uid": "cust-1", "wasteTypes": ["paper"], "status": "pending"}
        mock_store.delete.side_effect = TimeoutError("store timeout")
        commands = PickupCommands(mock_store)
        with pytest.raises(StoreWriteError):
            await commands.delete_pickup("p1", "cust-1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["advance", "delete"])
    async def test_unreadable_stored_record(self, action):
        mock_store = AsyncMock(spec=DocumentStore)
        mock_store.get.return_value = {"id": "p1", "uid": "cust-1", "wasteTypes": ["paper"], "status": "archived"}
        commands = PickupCommands(mock_store)

        with pytest.raises(StoreWriteError):
            if action == "advance":
                await commands.advance_status("p1", "in-progress", "agency-1")
            else:
                await commands.delete_pickup("p1", "cust-1")
        mock_store.update.assert_not_called()
        mock_store.delete.assert_not_called()
