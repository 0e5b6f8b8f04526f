"""
Ticket search

Client-side substring search over the whole collection. Every call
re-reads the collection; the dashboard's status filter is not applied.
"""
from typing import Iterable, List, Optional

from support_hub.models.schemas import Ticket
from support_hub.services.ticket_store import TicketStore
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

MIN_SEARCH_LENGTH = 2
SEARCH_FIELDS = ("customer", "subject", "message", "category")


def ticket_matches(ticket: Ticket, needle: str) -> bool:
    """
    Case-insensitive substring match on customer/subject/message/category

    Only stored values are matched; display defaults filled in for null
    columns ("Unknown Customer", "No Subject") never match.
    """
    for field in SEARCH_FIELDS:
        if field in ticket.defaulted_fields:
            continue
        value = getattr(ticket, field, None)
        if value and needle in value.lower():
            return True
    return False


def search_tickets(tickets: Iterable[Ticket], term: str) -> List[Ticket]:
    """
    Filter tickets by search term

    Terms shorter than two characters return no results. Result order
    follows the input order.
    """
    if term is None or len(term) < MIN_SEARCH_LENGTH:
        return []
    needle = term.lower()
    return [t for t in tickets if ticket_matches(t, needle)]


class TicketSearch:
    """On-demand search backed by a full collection read"""

    def __init__(self, store: TicketStore):
        self.store = store

    async def search(self, term: str) -> Optional[List[Ticket]]:
        """
        Search the whole collection

        Returns:
            Matching tickets, or None when the collection read failed
        """
        if term is None or len(term) < MIN_SEARCH_LENGTH:
            return []

        try:
            tickets = await self.store.fetch_all()
        except Exception as e:
            logger.error(f"Search error: {e}")
            return None

        results = search_tickets(tickets, term)
        logger.debug(f"Search {term!r}: {len(results)} of {len(tickets)} tickets")
        return results
