"""
CSV export of the displayed ticket list
"""
import csv
import io
from datetime import date
from typing import Iterable, Optional, Tuple

from support_hub.models.schemas import Ticket, utc_today

CSV_HEADERS = [
    "ID",
    "Customer",
    "Subject",
    "Status",
    "Priority",
    "Sentiment",
    "Category",
    "Created At",
]


def export_filename(today: Optional[date] = None) -> str:
    return f"support-tickets-{(today or utc_today()).isoformat()}.csv"


def ticket_row(ticket: Ticket) -> list[str]:
    return [
        ticket.id[-6:],
        ticket.customer,
        ticket.subject,
        ticket.status.value,
        ticket.priority.value,
        ticket.sentiment.value,
        ticket.category or "N/A",
        ticket.timestamp,
    ]


def tickets_to_csv(tickets: Iterable[Ticket]) -> str:
    """Header row unquoted, every data cell double-quoted"""
    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADERS) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(ticket_row(ticket) for ticket in tickets)
    # No trailing newline after the last row
    return buffer.getvalue().rstrip("\n")


def export_tickets(tickets: Iterable[Ticket], today: Optional[date] = None) -> Tuple[str, str]:
    """(filename, csv text)"""
    return export_filename(today), tickets_to_csv(tickets)
