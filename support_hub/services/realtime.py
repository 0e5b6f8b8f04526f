"""
Supabase Realtime bridge

Listens to postgres changes on the tickets table so that writes made by
other clients (other server instances, the Supabase dashboard, scripts)
also refresh live subscriptions.
"""
import asyncio
from typing import Any, Optional, Set

from supabase import acreate_client

from support_hub.config import get_settings
from support_hub.services.ticket_store import TicketStore
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)


class RealtimeBridge:
    """Forwards realtime change events to TicketStore.publish_change()"""

    def __init__(self, store: TicketStore, table_name: Optional[str] = None):
        settings = get_settings()
        self.store = store
        self.table_name = table_name or settings.tickets_table
        self.client = None
        self.channel = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set[asyncio.Task] = set()

    async def start(self) -> None:
        """Open the async client and subscribe to the tickets channel"""
        settings = get_settings()
        self._loop = asyncio.get_running_loop()
        self.client = await acreate_client(settings.supabase_url, settings.supabase_key)
        self.channel = self.client.channel(f"{self.table_name}-changes")
        self.channel.on_postgres_changes(
            "*",
            schema="public",
            table=self.table_name,
            callback=self._on_change
        )
        await self.channel.subscribe()
        logger.info(f"Realtime bridge listening on table: {self.table_name}")

    def _on_change(self, payload: Any) -> None:
        """Realtime callback; schedules a publish on the server loop"""
        logger.debug(f"Realtime change received: {payload}")
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._schedule_publish)

    def _schedule_publish(self) -> None:
        task = self._loop.create_task(self.store.publish_change())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def stop(self) -> None:
        """Leave the channel"""
        if self.client is not None and self.channel is not None:
            try:
                await self.client.remove_channel(self.channel)
            except Exception as e:
                logger.warning(f"Failed to remove realtime channel: {e}")
        self.channel = None
        self.client = None
