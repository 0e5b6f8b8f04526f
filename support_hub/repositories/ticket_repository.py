"""
Ticket Repository for CRUD operations on the tickets table

Features:
- Insert with store-assigned id and created_at
- Partial updates stamped with updated_at
- Status-filtered queries ordered by creation time (newest first)
- Full-collection reads for search and analytics

Tickets are never deleted.
"""
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from support_hub.config import get_settings
from support_hub.exceptions import TicketNotFoundError, TicketStoreError
from support_hub.models.schemas import Ticket, TicketStatus
from support_hub.repositories.base_repository import BaseRepository
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)


class TicketRepository(BaseRepository):
    """Repository for tickets table operations"""

    def __init__(self, supabase_client=None, table_name: Optional[str] = None):
        """
        Initialize repository with Supabase client

        Args:
            supabase_client: Supabase client instance (uses default if None)
            table_name: Override for the table name (defaults to settings)
        """
        super().__init__(supabase_client)
        self.table_name = table_name or get_settings().tickets_table
        logger.info(f"TicketRepository initialized for table: {self.table_name}")

    def create(self, ticket_data: Dict[str, Any]) -> str:
        """
        Insert a new ticket

        Args:
            ticket_data: Column values; `id` and `created_at` are left to the database

        Returns:
            Generated ticket id
        """
        try:
            data = {
                k: v for k, v in ticket_data.items()
                if k not in ("id", "created_at")
            }
            response = self._table().insert(data).execute()

            if not response.data:
                raise TicketStoreError("Insert returned no rows")

            ticket_id = str(response.data[0]["id"])
            logger.info(f"Created ticket: {ticket_id}")
            return ticket_id

        except Exception as e:
            self._handle_error("create ticket", e)

    def update_fields(self, ticket_id: str, fields: Dict[str, Any]) -> None:
        """
        Merge the given fields into a ticket and stamp updated_at

        Args:
            ticket_id: Ticket id
            fields: Columns to overwrite
        """
        try:
            updates = dict(fields)
            updates["updated_at"] = datetime.now(timezone.utc).isoformat()

            response = self._table()\
                .update(updates)\
                .eq("id", ticket_id)\
                .execute()

            if not response.data:
                raise TicketNotFoundError(ticket_id)

            logger.info(f"Updated ticket {ticket_id}: {sorted(fields)}")

        except Exception as e:
            self._handle_error(f"update ticket {ticket_id}", e)

    def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """
        Get ticket by id

        Returns:
            Ticket if found, None otherwise
        """
        try:
            response = self._table()\
                .select("*")\
                .eq("id", ticket_id)\
                .execute()

            if not response.data:
                return None

            return Ticket(**response.data[0])

        except Exception as e:
            self._handle_error(f"get ticket {ticket_id}", e)

    def query_ordered(self, status: Optional[TicketStatus] = None) -> List[Ticket]:
        """
        Tickets ordered by creation time, newest first

        Args:
            status: Optional equality filter on status

        Returns:
            List of Tickets
        """
        try:
            query = self._table().select("*")

            if status:
                query = query.eq("status", TicketStatus(status).value)

            response = query.order("created_at", desc=True).execute()

            return [Ticket(**item) for item in response.data]

        except Exception as e:
            self._handle_error("query tickets", e)

    def fetch_all(self) -> List[Ticket]:
        """
        One-shot read of the whole collection in store order

        Returns:
            List of Tickets
        """
        try:
            response = self._table().select("*").execute()
            return [Ticket(**item) for item in response.data]

        except Exception as e:
            self._handle_error("fetch all tickets", e)
