"""
Ticket Store

Async facade over TicketRepository plus live subscriptions.

A subscription is bound to an optional status filter. It receives the
complete, ordered result set right after subscribing and again after every
change to the collection, until it is unsubscribed. Changes are published by
writes made through this store and, when enabled, by the realtime bridge
(see services/realtime.py) for writes made by other clients.
"""
import asyncio
import itertools
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from support_hub.models.schemas import Ticket, TicketStatus
from support_hub.repositories.ticket_repository import TicketRepository
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

ChangeHandler = Callable[[List[Ticket]], Union[None, Awaitable[None]]]
ErrorHandler = Callable[[Exception], Union[None, Awaitable[None]]]


async def invoke_callback(handler: Optional[Callable], *args) -> None:
    """Invoke a sync or async callback"""
    if handler is None:
        return
    result = handler(*args)
    if asyncio.iscoroutine(result):
        await result


class TicketSubscription:
    """Handle for one live query; call `unsubscribe()` to stop deliveries."""

    _ids = itertools.count(1)

    def __init__(
        self,
        store: "TicketStore",
        status: Optional[TicketStatus],
        on_change: ChangeHandler,
        on_error: Optional[ErrorHandler] = None
    ):
        self.id = next(self._ids)
        self.store = store
        self.status = TicketStatus(status) if status else None
        self.on_change = on_change
        self.on_error = on_error
        self.active = True
        self._lock = asyncio.Lock()

    async def refresh(self) -> None:
        """Re-run the query and deliver the full result set"""
        # Deliveries for one subscription never interleave
        async with self._lock:
            if not self.active:
                return
            try:
                tickets = await self.store.query_ordered(self.status)
            except Exception as e:
                logger.error(f"Subscription {self.id} query failed: {e}")
                await self._deliver(self.on_error, e)
                return
            if self.active:
                await self._deliver(self.on_change, tickets)

    async def _deliver(self, handler: Optional[Callable], *args) -> None:
        """Run a subscriber callback; a subscriber whose callback raises is dropped"""
        try:
            await invoke_callback(handler, *args)
        except Exception as e:
            logger.error(f"Subscription {self.id} callback failed, closing it: {e}")
            self.unsubscribe()

    def unsubscribe(self) -> None:
        """Stop deliveries; safe to call more than once"""
        if self.active:
            self.active = False
            self.store._subscriptions.pop(self.id, None)
            logger.debug(f"Subscription {self.id} closed")


class TicketStore:
    """
    Create/read/update/query operations on tickets plus subscriptions.

    Repository calls are blocking and run in worker threads.
    """

    def __init__(self, repository: Optional[TicketRepository] = None):
        self.repository = repository or TicketRepository()
        self._subscriptions: Dict[int, TicketSubscription] = {}

    # ------------------------------------------------------------------
    # Reads and writes
    # ------------------------------------------------------------------

    async def create(self, ticket_data: Dict[str, Any]) -> str:
        """Insert a ticket and notify subscribers; returns the new id"""
        ticket_id = await asyncio.to_thread(self.repository.create, ticket_data)
        await self.publish_change()
        return ticket_id

    async def update_fields(self, ticket_id: str, fields: Dict[str, Any]) -> None:
        """Merge fields into a ticket and notify subscribers"""
        await asyncio.to_thread(self.repository.update_fields, ticket_id, fields)
        await self.publish_change()

    async def get(self, ticket_id: str) -> Optional[Ticket]:
        return await asyncio.to_thread(self.repository.get_by_id, ticket_id)

    async def query_ordered(self, status: Optional[TicketStatus] = None) -> List[Ticket]:
        """Tickets matching the optional status filter, newest first"""
        return await asyncio.to_thread(self.repository.query_ordered, status)

    async def fetch_all(self) -> List[Ticket]:
        """Whole collection in store order, ignoring any filter"""
        return await asyncio.to_thread(self.repository.fetch_all)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def subscribe(
        self,
        status: Optional[TicketStatus],
        on_change: ChangeHandler,
        on_error: Optional[ErrorHandler] = None
    ) -> TicketSubscription:
        """
        Start a live query

        Args:
            status: Optional status filter (None = all tickets)
            on_change: Called with the full result set on every change
            on_error: Called with the exception when a query fails

        Returns:
            TicketSubscription (already delivered its first result set)
        """
        subscription = TicketSubscription(self, status, on_change, on_error)
        self._subscriptions[subscription.id] = subscription
        logger.debug(
            f"Subscription {subscription.id} opened "
            f"(status={subscription.status.value if subscription.status else 'all'})"
        )
        await subscription.refresh()
        return subscription

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    async def publish_change(self) -> None:
        """Push fresh result sets to every active subscription"""
        subscriptions = list(self._subscriptions.values())
        if not subscriptions:
            return
        # A failing subscriber never fails the write that triggered the publish
        results = await asyncio.gather(
            *(s.refresh() for s in subscriptions),
            return_exceptions=True
        )
        for subscription, result in zip(subscriptions, results):
            if isinstance(result, Exception):
                logger.error(f"Subscription {subscription.id} refresh failed: {result}")
                subscription.unsubscribe()

    def close(self) -> None:
        """Drop every subscription"""
        for subscription in list(self._subscriptions.values()):
            subscription.unsubscribe()
