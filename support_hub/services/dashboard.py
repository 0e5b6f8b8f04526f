"""
Dashboard Session

Owns the state of one dashboard viewer: status filter, live ticket list,
selection, search override, response draft, theme and the new-ticket form.
The live list comes from a TicketStore subscription that is replaced on
every filter change and dropped when the session closes.
"""
from collections import Counter
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from dateutil import parser as date_parser

from support_hub.exceptions import TicketNotFoundError, TicketValidationError
from support_hub.models.schemas import (
    ResponseEntry,
    StatusFilter,
    Theme,
    Ticket,
    TicketStatus,
)
from support_hub.services.analysis_proxy import AnalysisProxy
from support_hub.services.demo import DemoSeeder
from support_hub.services.export import export_tickets
from support_hub.services.search import MIN_SEARCH_LENGTH, TicketSearch
from support_hub.services.ticket_form import TicketForm
from support_hub.services.ticket_store import TicketStore, TicketSubscription, invoke_callback
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

RESPONSE_SENDER = "AI Assistant"


def format_relative_time(timestamp: str, now: Optional[datetime] = None) -> str:
    """
    "N minutes ago" under an hour, "N hours ago" under a day, else "N days ago"

    Unparseable timestamps are returned unchanged.
    """
    try:
        moment = date_parser.isoparse(timestamp)
    except (TypeError, ValueError):
        return timestamp
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    hours = (now - moment).total_seconds() / 3600
    if hours < 1:
        return f"{int(hours * 60)} minutes ago"
    if hours < 24:
        return f"{int(hours)} hours ago"
    return f"{int(hours / 24)} days ago"


async def update_ticket_status(store: TicketStore, ticket_id: str, status: str) -> TicketStatus:
    """Write a new status (any transition is allowed)"""
    new_status = TicketStatus(status)
    try:
        await store.update_fields(ticket_id, {"status": new_status.value})
    except Exception as e:
        logger.error(f"Error updating ticket: {e}")
        raise
    return new_status


async def send_ticket_response(store: TicketStore, ticket_id: str, text: str) -> ResponseEntry:
    """
    Record a sent response and move the ticket to in-progress

    `responses_sent` is replaced by a single entry holding this response.
    """
    if not (text or "").strip():
        raise TicketValidationError(["response"])

    entry = ResponseEntry(response=text, sent_by=RESPONSE_SENDER)
    try:
        await store.update_fields(ticket_id, {
            "responses_sent": [entry.model_dump()],
            "status": TicketStatus.IN_PROGRESS.value,
        })
    except Exception as e:
        logger.error(f"Error sending response: {e}")
        raise
    return entry


class DashboardSession:
    """
    Dashboard state for one viewer.

    `on_update()` is called after every change worth re-rendering;
    `on_notice(kind, message)` carries the blocking alerts ("notice" or
    "error").
    """

    def __init__(
        self,
        store: TicketStore,
        analyzer: Optional[AnalysisProxy] = None,
        on_update: Optional[Callable[[], Awaitable[None]]] = None,
        on_notice: Optional[Callable[[str, str], Awaitable[None]]] = None,
        theme: Theme = "dark",
        form_reset_delay: Optional[float] = None,
        demo_delay: Optional[float] = None
    ):
        self.store = store
        self.analyzer = analyzer or AnalysisProxy()
        self.on_update = on_update
        self.on_notice = on_notice

        self.active_filter = StatusFilter.ALL
        self.tickets: List[Ticket] = []
        self.selected_ticket: Optional[Ticket] = None
        self.search_term = ""
        self.search_results: Optional[List[Ticket]] = None
        self.custom_response = ""
        self.theme: Theme = theme
        self.loading = True
        self.sending_response = False
        self.creating_demo = False
        self.show_new_ticket = False

        self.searcher = TicketSearch(store)
        self.seeder = DemoSeeder(store, self.analyzer, delay=demo_delay)
        self.form = TicketForm(
            store,
            self.analyzer,
            on_success=self._on_form_success,
            reset_delay=form_reset_delay
        )
        self._subscription: Optional[TicketSubscription] = None

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe with the current filter"""
        await self._resubscribe()

    async def set_filter(self, status_filter: str) -> None:
        """Switch the status filter and replace the subscription"""
        self.active_filter = StatusFilter(status_filter)
        await self._resubscribe()

    async def _resubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.loading = True
        self._subscription = await self.store.subscribe(
            self.active_filter.to_status(),
            self._on_tickets,
            self._on_subscription_error
        )

    async def _on_tickets(self, tickets: List[Ticket]) -> None:
        self.tickets = tickets
        # Select the newest ticket when nothing is selected yet
        if self.selected_ticket is None and tickets:
            self.selected_ticket = tickets[0]
        self.loading = False
        await invoke_callback(self.on_update)

    async def _on_subscription_error(self, error: Exception) -> None:
        logger.error(f"Error fetching tickets: {error}")
        self.loading = False
        await invoke_callback(self.on_update)

    def close(self) -> None:
        """Drop the subscription and any pending form reset"""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.form.cancel()

    # ------------------------------------------------------------------
    # Selection and display
    # ------------------------------------------------------------------

    @property
    def display_tickets(self) -> List[Ticket]:
        """Search results while a search is active, else the live list"""
        if self.search_results is not None:
            return self.search_results
        return self.tickets

    def find_ticket(self, ticket_id: str) -> Ticket:
        for ticket in self.display_tickets + self.tickets:
            if ticket.id == ticket_id:
                return ticket
        # The selected ticket stays referenced after it leaves the list
        if self.selected_ticket is not None and self.selected_ticket.id == ticket_id:
            return self.selected_ticket
        raise TicketNotFoundError(ticket_id)

    def select(self, ticket_id: str) -> Ticket:
        self.selected_ticket = self.find_ticket(ticket_id)
        return self.selected_ticket

    def status_counts(self) -> Dict[str, int]:
        """Per-status counts of the live list (sidebar badges)"""
        counts = Counter(t.status for t in self.tickets)
        return {status.value: counts.get(status, 0) for status in TicketStatus}

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, term: str) -> Optional[List[Ticket]]:
        """
        Search the whole collection

        Short terms clear the search; a failed read keeps the previous
        results.
        """
        self.search_term = term
        if len(term or "") < MIN_SEARCH_LENGTH:
            self.clear_search()
            return None

        results = await self.searcher.search(term)
        if results is not None:
            self.search_results = results
        return self.search_results

    def clear_search(self) -> None:
        self.search_term = ""
        self.search_results = None

    # ------------------------------------------------------------------
    # Ticket actions
    # ------------------------------------------------------------------

    async def change_status(self, ticket_id: str, status: str) -> None:
        """Write the new status; the subscription delivers the change"""
        await update_ticket_status(self.store, ticket_id, status)

    def set_draft(self, text: str) -> None:
        self.custom_response = text

    async def send_response(self, ticket_id: str, response: Optional[str] = None) -> ResponseEntry:
        """
        Send a response and move the ticket to in-progress

        `responses_sent` is replaced by a single entry holding this response.
        Uses the draft when no text is given; the draft is cleared on success.
        """
        text = response if response is not None else self.custom_response
        self.sending_response = True
        try:
            entry = await send_ticket_response(self.store, ticket_id, text)
        finally:
            self.sending_response = False

        self.custom_response = ""
        await invoke_callback(self.on_notice, "notice", "Response sent successfully!")
        return entry

    async def send_suggested_response(self, ticket_id: str) -> ResponseEntry:
        """Send the ticket's AI-suggested response"""
        ticket = self.find_ticket(ticket_id)
        return await self.send_response(ticket_id, ticket.suggested_response or "")

    # ------------------------------------------------------------------
    # New ticket form and demo data
    # ------------------------------------------------------------------

    def open_new_ticket(self) -> None:
        self.show_new_ticket = True

    async def submit_ticket(self, customer: str, subject: str, message: str) -> str:
        """Submit the new-ticket form; the dialog closes after the form resets"""
        try:
            return await self.form.submit(customer, subject, message)
        except TicketValidationError:
            raise
        except Exception:
            await invoke_callback(self.on_notice, "error", "Error submitting ticket")
            raise

    async def _on_form_success(self) -> None:
        self.show_new_ticket = False
        await invoke_callback(self.on_update)

    async def create_demo_tickets(self) -> List[str]:
        """Seed the demo tickets one by one"""
        self.creating_demo = True
        await invoke_callback(self.on_update)
        try:
            created = await self.seeder.seed()
        finally:
            self.creating_demo = False
        await invoke_callback(
            self.on_notice,
            "notice",
            "Demo tickets created successfully! Watch them appear in real-time."
        )
        return created

    # ------------------------------------------------------------------
    # Export and theme
    # ------------------------------------------------------------------

    def export_csv(self, today: Optional[date] = None) -> Tuple[str, str]:
        """(filename, csv text) of the displayed tickets"""
        return export_tickets(self.display_tickets, today)

    def toggle_theme(self) -> Theme:
        self.theme = "light" if self.theme == "dark" else "dark"
        return self.theme

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def snapshot(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Serializable view state"""
        def render(ticket: Ticket) -> Dict[str, Any]:
            data = ticket.model_dump(mode="json")
            data["relative_time"] = format_relative_time(ticket.timestamp, now)
            return data

        return {
            "type": "state",
            "active_filter": self.active_filter.value,
            "tickets": [render(t) for t in self.display_tickets],
            "is_searching": self.search_results is not None,
            "search_term": self.search_term,
            "selected_ticket": render(self.selected_ticket) if self.selected_ticket else None,
            "status_counts": self.status_counts(),
            "total": len(self.tickets),
            "custom_response": self.custom_response,
            "theme": self.theme,
            "loading": self.loading,
            "sending_response": self.sending_response,
            "creating_demo": self.creating_demo,
            "show_new_ticket": self.show_new_ticket,
            "form": self.form.view(),
        }
