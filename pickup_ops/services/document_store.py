"""
Document store interface for the hosted database

Collections hold plain dict documents keyed by id. Live subscriptions push the
full ordered set of matching documents on every change (snapshot model).
"""

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..core.exceptions import RecordNotFound

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
SnapshotCallback = Callable[[List[Document]], None]
Unsubscribe = Callable[[], Awaitable[None]]


class DocumentStore(ABC):
    """Abstract base class for document store backends"""

    @abstractmethod
    async def create(self, collection: str, doc: Document) -> str:
        """Insert a document; the store assigns id and createdAt"""
        pass

    @abstractmethod
    async def set(self, collection: str, doc_id: str, doc: Document, merge: bool = False) -> None:
        """Write a document under a caller-chosen key (profiles)"""
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Point lookup; None if absent"""
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        """Partial update of an existing document"""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document by id"""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        """One-time read of the documents matching every equality filter"""
        pass

    @abstractmethod
    async def subscribe(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]],
        order_by: Optional[str],
        descending: bool,
        callback: SnapshotCallback,
    ) -> Unsubscribe:
        """Standing query; callback receives the full matching set on every change"""
        pass


def matches_filters(doc: Document, filters: Optional[Dict[str, Any]]) -> bool:
    return all(doc.get(key) == value for key, value in (filters or {}).items())


def sort_documents(docs: List[Document], order_by: Optional[str], descending: bool) -> List[Document]:
    if not order_by:
        return docs
    present = [d for d in docs if d.get(order_by) is not None]
    missing = [d for d in docs if d.get(order_by) is None]
    present.sort(key=lambda d: d[order_by], reverse=descending)
    return missing + present if descending else present + missing


@dataclass
class _Subscription:
    collection: str
    filters: Optional[Dict[str, Any]]
    order_by: Optional[str]
    descending: bool
    callback: SnapshotCallback
    active: bool = True


class InMemoryDocumentStore(DocumentStore):
    """Process-local store with the same snapshot semantics as the hosted one"""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Document]] = {}
        self._subscriptions: List[_Subscription] = []
        self._last_created: Optional[datetime] = None

    def _collection(self, name: str) -> Dict[str, Document]:
        return self.collections.setdefault(name, {})

    def _next_timestamp(self) -> datetime:
        now = datetime.now(timezone.utc)
        # createdAt must be strictly increasing so newest-first order is total
        if self._last_created is not None and now <= self._last_created:
            now = self._last_created + timedelta(microseconds=1)
        self._last_created = now
        return now

    async def create(self, collection: str, doc: Document) -> str:
        doc_id = uuid.uuid4().hex
        stored = {**copy.deepcopy(doc), "id": doc_id, "createdAt": self._next_timestamp()}
        self._collection(collection)[doc_id] = stored
        logger.debug(f"Created {collection}/{doc_id}")
        self._notify(collection, None, stored)
        return doc_id

    async def set(self, collection: str, doc_id: str, doc: Document, merge: bool = False) -> None:
        docs = self._collection(collection)
        before = docs.get(doc_id)
        base = copy.deepcopy(before) if (merge and before) else {}
        base.update(copy.deepcopy(doc))
        base["id"] = doc_id
        docs[doc_id] = base
        self._notify(collection, before, base)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        doc = self._collection(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        docs = self._collection(collection)
        before = docs.get(doc_id)
        if before is None:
            raise RecordNotFound(collection, doc_id)
        after = {**before, **copy.deepcopy(fields)}
        docs[doc_id] = after
        self._notify(collection, before, after)

    async def delete(self, collection: str, doc_id: str) -> None:
        before = self._collection(collection).pop(doc_id, None)
        if before is not None:
            self._notify(collection, before, None)

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        docs = [copy.deepcopy(d) for d in self._collection(collection).values() if matches_filters(d, filters)]
        return sort_documents(docs, order_by, descending)

    async def subscribe(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]],
        order_by: Optional[str],
        descending: bool,
        callback: SnapshotCallback,
    ) -> Unsubscribe:
        subscription = _Subscription(collection, filters, order_by, descending, callback)
        self._subscriptions.append(subscription)
        self._push(subscription)

        async def unsubscribe() -> None:
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def _snapshot(self, subscription: _Subscription) -> List[Document]:
        docs = [
            copy.deepcopy(d)
            for d in self._collection(subscription.collection).values()
            if matches_filters(d, subscription.filters)
        ]
        return sort_documents(docs, subscription.order_by, subscription.descending)

    def _push(self, subscription: _Subscription) -> None:
        if not subscription.active:
            return
        try:
            subscription.callback(self._snapshot(subscription))
        except Exception as e:
            logger.error(f"❌ Snapshot callback failed for {subscription.collection}: {e}")

    def _notify(self, collection: str, before: Optional[Document], after: Optional[Document]) -> None:
        for subscription in list(self._subscriptions):
            if subscription.collection != collection:
                continue
            touched = (before is not None and matches_filters(before, subscription.filters)) or (
                after is not None and matches_filters(after, subscription.filters)
            )
            if touched:
                self._push(subscription)
