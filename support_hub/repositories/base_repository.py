"""
Base Repository

Provides the shared Supabase client and error handling for
table-scoped repositories.
"""

from supabase import create_client, Client
from support_hub.config import get_settings
from support_hub.exceptions import TicketStoreError
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)


class BaseRepository:
    """
    Base repository class.

    Subclasses set `table_name` and use `self.client` for queries.
    """

    table_name: str = ""

    def __init__(self, supabase_client=None):
        """
        Initialize repository with Supabase client

        Args:
            supabase_client: Supabase client instance (uses default if None)
        """
        if supabase_client is None:
            settings = get_settings()
            self.client: Client = create_client(
                settings.supabase_url,
                settings.supabase_key
            )
        else:
            self.client = supabase_client

    def _table(self):
        """Query builder for this repository's table"""
        return self.client.table(self.table_name)

    def _handle_error(self, operation: str, error: Exception):
        """
        Centralized error handling for repository operations.

        Args:
            operation: Description of failed operation
            error: Exception that occurred

        Raises:
            TicketStoreError wrapping the original error; store errors
            raised by the repository itself pass through unchanged
        """
        logger.error(f"Repository error during {operation}: {error}")
        if isinstance(error, TicketStoreError):
            raise error
        raise TicketStoreError(f"{operation} failed: {error}") from error
