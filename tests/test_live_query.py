import asyncio
import pytest
from unittest.mock import AsyncMock
from pickup_ops.core.models import PickupStatus
from pickup_ops.services.document_store import InMemoryDocumentStore
from pickup_ops.services.live_query import LivePickupFeed, PickupScope, records_from_documents


def pickup_doc(uid, waste_types=("plastic",), status="pending"):
    return {
        "uid": uid,
        "customerName": "Customer",
        "wasteTypes": list(waste_types),
        "address": "12 Elm St",
        "date": "2024-05-01",
        "time": "9:00 AM - 11:00 AM",
        "status": status,
    }


class TestLivePickupFeed:
    """Unit tests for live pickup subscriptions"""

    @pytest.fixture
    def store(self):
        return InMemoryDocumentStore()

    @pytest.fixture
    def feed(self, store):
        return LivePickupFeed(store)

    def test_scope_filters(self):
        assert PickupScope.owned_by("u1").filters == {"uid": "u1"}
        assert PickupScope.everything().filters is None

    @pytest.mark.asyncio
    async def test_owner_scope_receives_only_own_records_newest_first(self, store, feed):
        snapshots = []
        await feed.subscribe(PickupScope.owned_by("u1"), snapshots.append)
        first = await store.create("pickups", pickup_doc("u1"))
        await store.create("pickups", pickup_doc("u2"))
        second = await store.create("pickups", pickup_doc("u1", ["metal"]))

        latest = snapshots[-1]
        assert [r.id for r in latest] == [second, first]
        assert all(r.owner_id == "u1" for r in latest)

    @pytest.mark.asyncio
    async def test_all_scope_sees_every_customer(self, store, feed):
        snapshots = []
        await feed.subscribe(PickupScope.everything(), snapshots.append)
        await store.create("pickups", pickup_doc("u1"))
        await store.create("pickups", pickup_doc("u2"))
        assert {r.owner_id for r in snapshots[-1]} == {"u1", "u2"}

    @pytest.mark.asyncio
    async def test_each_callback_replaces_state(self, store, feed):
        snapshots = []
        await feed.subscribe(PickupScope.everything(), snapshots.append)
        doc_id = await store.create("pickups", pickup_doc("u1"))
        await store.update("pickups", doc_id, {"status": "in-progress"})
        assert len(snapshots[-1]) == 1
        assert snapshots[-1][0].status == PickupStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_no_callback_after_unsubscribe(self, store, feed):
        snapshots = []
        subscription = await feed.subscribe(PickupScope.owned_by("u1"), snapshots.append)
        await subscription.unsubscribe()
        await store.create("pickups", pickup_doc("u1"))

        assert len(snapshots) == 1
        assert not subscription.active
        assert store.subscription_count == 0

    @pytest.mark.asyncio
    async def test_late_delivery_after_unsubscribe_is_dropped(self):
        """A store that still fires the callback after release must not reach the consumer"""
        captured = {}

        async def fake_subscribe(collection, filters, order_by, descending, callback):
            captured["callback"] = callback
            return AsyncMock()

        store = AsyncMock()
        store.subscribe.side_effect = fake_subscribe
        feed = LivePickupFeed(store)
        snapshots = []
        subscription = await feed.subscribe(PickupScope.everything(), snapshots.append)

        captured["callback"]([pickup_doc("u1")])
        await subscription.unsubscribe()
        captured["callback"]([pickup_doc("u1"), pickup_doc("u2")])

        assert len(snapshots) == 1
        assert subscription.deliveries == 1

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent(self, store, feed):
        subscription = await feed.subscribe(PickupScope.everything(), lambda records: None)
        await subscription.unsubscribe()
        await subscription.unsubscribe()
        assert store.subscription_count == 0

    @pytest.mark.asyncio
    async def test_independent_subscriptions(self, store, feed):
        customer, partner = [], []
        customer_sub = await feed.subscribe(PickupScope.owned_by("u1"), customer.append)
        await feed.subscribe(PickupScope.everything(), partner.append)
        await customer_sub.unsubscribe()
        await store.create("pickups", pickup_doc("u1"))
        assert len(customer) == 1
        assert len(partner) == 2

    @pytest.mark.asyncio
    async def test_fetch_one_time_read(self, store, feed):
        await store.create("pickups", pickup_doc("u1"))
        await store.create("pickups", pickup_doc("u2"))
        records = await feed.fetch(PickupScope.owned_by("u2"))
        assert [r.owner_id for r in records] == ["u2"]

    @pytest.mark.asyncio
    async def test_stream_yields_snapshots(self, store, feed):
        async with feed.stream(PickupScope.everything()) as updates:
            await store.create("pickups", pickup_doc("u1"))
            initial = await asyncio.wait_for(updates.__anext__(), timeout=1)
            after_create = await asyncio.wait_for(updates.__anext__(), timeout=1)
        assert initial == []
        assert len(after_create) == 1
        assert store.subscription_count == 0


class TestRecordNormalization:
    """Unit tests for raw document normalization"""

    def test_defaults_filled(self):
        records = records_from_documents([{"id": "p1", "uid": "u1", "wasteTypes": ["paper"]}])
        record = records[0]
        assert record.customer_name == "Customer"
        assert record.status == PickupStatus.PENDING
        assert record.address == ""
        assert record.primary_type == "paper"

    def test_malformed_documents_are_skipped(self):
        records = records_from_documents([
            {"id": "bad", "uid": "u1", "wasteTypes": ["paper"], "status": "archived"},
            {"id": "good", "uid": "u1", "wasteTypes": ["paper"]},
        ])
        assert [r.id for r in records] == ["good"]

    def test_single_string_waste_type_is_one_entry(self):
        records = records_from_documents([{"id": "p1", "uid": "u1", "wasteTypes": "plastic"}])

        assert records[0].waste_types == ["plastic"]
        assert records[0].primary_type == "plastic"
