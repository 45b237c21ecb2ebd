"""
Live pickup subscriptions

Wraps the store's push-based change feed. Every delivery is the full current
set of pickups in scope, newest first; consumers replace their state wholesale.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..core.models import PickupRecord
from ..core.view_filters import order_newest_first
from .document_store import Document, DocumentStore, Unsubscribe

logger = logging.getLogger(__name__)

PickupsCallback = Callable[[List[PickupRecord]], None]


@dataclass(frozen=True)
class PickupScope:
    """Either one customer's pickups or the whole collection"""
    owner_id: Optional[str] = None

    @classmethod
    def owned_by(cls, owner_id: str) -> "PickupScope":
        return cls(owner_id=owner_id)

    @classmethod
    def everything(cls) -> "PickupScope":
        return cls()

    @property
    def filters(self):
        return {"uid": self.owner_id} if self.owner_id is not None else None

    def describe(self) -> str:
        return f"owner={self.owner_id}" if self.owner_id is not None else "all"


def records_from_documents(docs: List[Document]) -> List[PickupRecord]:
    """Normalize raw documents, skipping any that cannot be parsed"""
    records = []
    for doc in docs:
        try:
            records.append(PickupRecord.from_document(doc))
        except Exception as e:
            logger.warning(f"⚠️ Skipping malformed pickup {doc.get('id')}: {e}")
    return order_newest_first(records)


class LiveSubscription:
    """Handle for one standing query; no callback is delivered after unsubscribe"""

    def __init__(self, scope: PickupScope, on_change: PickupsCallback):
        self.scope = scope
        self._on_change = on_change
        self._release: Optional[Unsubscribe] = None
        self.active = True
        self.deliveries = 0

    def _deliver(self, docs: List[Document]) -> None:
        if not self.active:
            return
        self.deliveries += 1
        self._on_change(records_from_documents(docs))

    async def unsubscribe(self) -> None:
        if not self.active:
            return
        # Flip first so nothing slips through while the store releases the channel
        self.active = False
        if self._release is not None:
            await self._release()
            self._release = None
        logger.info(f"🔌 Pickup subscription closed ({self.scope.describe()})")


class LivePickupFeed:
    """Opens live pickup subscriptions against a document store"""

    def __init__(self, store: DocumentStore, collection: str = "pickups"):
        self.store = store
        self.collection = collection

    async def subscribe(self, scope: PickupScope, on_change: PickupsCallback) -> LiveSubscription:
        subscription = LiveSubscription(scope, on_change)
        release = await self.store.subscribe(
            self.collection,
            scope.filters,
            "createdAt",
            True,
            subscription._deliver,
        )
        subscription._release = release
        logger.info(f"📡 Pickup subscription opened ({scope.describe()})")
        return subscription

    async def fetch(self, scope: PickupScope) -> List[PickupRecord]:
        """One-time read of the pickups in scope"""
        docs = await self.store.query(self.collection, scope.filters, "createdAt", True)
        return records_from_documents(docs)

    def stream(self, scope: PickupScope) -> "SnapshotStream":
        return SnapshotStream(self, scope)


class SnapshotStream:
    """Async iterator over full-snapshot updates

    Usage:
        async with feed.stream(PickupScope.everything()) as updates:
            async for records in updates:
                ...
    """

    def __init__(self, feed: LivePickupFeed, scope: PickupScope):
        self.feed = feed
        self.scope = scope
        self._queue: "asyncio.Queue[List[PickupRecord]]" = asyncio.Queue()
        self._subscription: Optional[LiveSubscription] = None

    async def __aenter__(self) -> "SnapshotStream":
        self._subscription = await self.feed.subscribe(self.scope, self._queue.put_nowait)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._subscription is not None:
            await self._subscription.unsubscribe()

    def __aiter__(self) -> "SnapshotStream":
        return self

    async def __anext__(self) -> List[PickupRecord]:
        if self._subscription is None or (not self._subscription.active and self._queue.empty()):
            raise StopAsyncIteration
        return await self._queue.get()
