"""
Supabase-backed document store
Tables play the role of collections; realtime change events trigger a re-query
so subscribers still receive full snapshots. Change events are not filtered on
the channel (delete events carry no row data to filter on); the re-query
applies the scope.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from supabase import AsyncClient, acreate_client

from ..config import get_store_config
from .document_store import Document, DocumentStore, SnapshotCallback, Unsubscribe

logger = logging.getLogger(__name__)


class SupabaseDocumentStore(DocumentStore):
    """Document store over the Supabase REST + realtime APIs"""

    def __init__(self, client: AsyncClient, schema: str = "public"):
        self.supabase = client
        self.schema = schema
        self._pending: Set[asyncio.Task] = set()
        self._channel_seq = 0

    @classmethod
    async def connect(cls) -> "SupabaseDocumentStore":
        """Create a store from environment configuration"""
        config = get_store_config()
        client = await acreate_client(config["url"], config["anon_key"])
        logger.info(f"✅ Supabase store initialized: {config['url']}")
        return cls(client)

    async def create(self, collection: str, doc: Document) -> str:
        result = await self.supabase.table(collection).insert(doc).execute()
        if not result.data:
            raise RuntimeError(f"Insert into {collection} returned no row")
        doc_id = str(result.data[0]["id"])
        logger.info(f"✅ Created {collection}/{doc_id}")
        return doc_id

    async def set(self, collection: str, doc_id: str, doc: Document, merge: bool = False) -> None:
        row = {**doc, "id": doc_id}
        if merge:
            await self.supabase.table(collection).upsert(row).execute()
        else:
            # Full overwrite: drop the old row so absent columns reset to defaults
            await self.supabase.table(collection).delete().eq("id", doc_id).execute()
            await self.supabase.table(collection).insert(row).execute()
        logger.info(f"✅ Stored {collection}/{doc_id}")

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        result = await self.supabase.table(collection).select("*").eq("id", doc_id).limit(1).execute()
        if result.data:
            return result.data[0]
        return None

    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        await self.supabase.table(collection).update(fields).eq("id", doc_id).execute()
        logger.info(f"✅ Updated {collection}/{doc_id}: {sorted(fields)}")

    async def delete(self, collection: str, doc_id: str) -> None:
        await self.supabase.table(collection).delete().eq("id", doc_id).execute()
        logger.info(f"🗑️ Deleted {collection}/{doc_id}")

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        request = self.supabase.table(collection).select("*")
        for key, value in (filters or {}).items():
            request = request.eq(key, value)
        if order_by:
            request = request.order(order_by, desc=descending)
        result = await request.execute()
        return list(result.data or [])

    async def subscribe(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]],
        order_by: Optional[str],
        descending: bool,
        callback: SnapshotCallback,
    ) -> Unsubscribe:
        state = {"active": True, "issued": 0, "delivered": 0}

        async def push_snapshot() -> None:
            state["issued"] += 1
            seq = state["issued"]
            try:
                docs = await self.query(collection, filters, order_by, descending)
            except Exception as e:
                logger.error(f"❌ Error refreshing {collection} snapshot: {e}")
                return
            # Drop results of a teardown during the query, or of a query overtaken by a newer one
            if state["active"] and seq > state["delivered"]:
                state["delivered"] = seq
                callback(docs)

        def on_change(payload: Dict[str, Any]) -> None:
            if not state["active"]:
                return
            task = asyncio.get_running_loop().create_task(push_snapshot())
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        self._channel_seq += 1
        channel = self.supabase.channel(f"{collection}-live-{self._channel_seq}")
        channel.on_postgres_changes(
            "*",
            schema=self.schema,
            table=collection,
            callback=on_change,
        )
        await channel.subscribe()
        await push_snapshot()

        async def unsubscribe() -> None:
            state["active"] = False
            try:
                await self.supabase.remove_channel(channel)
            except Exception as e:
                logger.warning(f"⚠️ Error removing realtime channel for {collection}: {e}")

        return unsubscribe

