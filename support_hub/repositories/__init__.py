"""
Repositories package for database operations

Provides repository classes for CRUD operations on:
- tickets table (TicketRepository)
"""
from support_hub.repositories.ticket_repository import TicketRepository

__all__ = [
    "TicketRepository",
]
