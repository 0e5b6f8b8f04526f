"""
pytest configuration and shared fixtures
"""
import itertools
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from support_hub.exceptions import TicketNotFoundError, TicketStoreError
from support_hub.models.schemas import Ticket, TicketStatus
from support_hub.services.ticket_store import TicketStore


class InMemoryTicketRepository:
    """
    TicketRepository stand-in backed by a dict.

    Mirrors the database: ids and created_at are assigned on insert,
    query_ordered sorts by created_at descending, fetch_all returns
    insertion order.
    """

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.fail_next: Optional[Exception] = None
        self.calls: List[str] = []

    def _maybe_fail(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    def create(self, ticket_data: Dict[str, Any]) -> str:
        self._maybe_fail("create")
        ticket_id = f"ticket-{next(self._ids):06d}"
        self._clock += timedelta(seconds=1)
        self.rows[ticket_id] = {
            **ticket_data,
            "id": ticket_id,
            "created_at": self._clock.isoformat(),
        }
        return ticket_id

    def update_fields(self, ticket_id: str, fields: Dict[str, Any]) -> None:
        self._maybe_fail("update_fields")
        if ticket_id not in self.rows:
            raise TicketNotFoundError(ticket_id)
        self.rows[ticket_id].update(fields)
        self.rows[ticket_id]["updated_at"] = datetime.now(timezone.utc).isoformat()

    def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        self._maybe_fail("get_by_id")
        row = self.rows.get(ticket_id)
        return Ticket(**row) if row else None

    def query_ordered(self, status: Optional[TicketStatus] = None) -> List[Ticket]:
        self._maybe_fail("query_ordered")
        rows = [
            r for r in self.rows.values()
            if status is None or r.get("status") == TicketStatus(status).value
        ]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [Ticket(**r) for r in rows]

    def fetch_all(self) -> List[Ticket]:
        self._maybe_fail("fetch_all")
        return [Ticket(**r) for r in self.rows.values()]


@pytest.fixture
def mock_supabase():
    """Fixture for mock Supabase client"""
    client = MagicMock()
    client.table.return_value = client
    client.select.return_value = client
    client.insert.return_value = client
    client.update.return_value = client
    client.eq.return_value = client
    client.order.return_value = client
    client.limit.return_value = client
    client.execute.return_value = MagicMock(data=[], count=0)
    return client


@pytest.fixture
def memory_repo() -> InMemoryTicketRepository:
    return InMemoryTicketRepository()


@pytest.fixture
def store(memory_repo) -> TicketStore:
    """TicketStore over the in-memory repository"""
    return TicketStore(repository=memory_repo)


@pytest.fixture
def analyzer():
    """AnalysisProxy stand-in; set `analyzer.analyze.return_value` per test"""
    proxy = MagicMock()
    proxy.analyze = AsyncMock(return_value=(200, {
        "sentiment": "Negative",
        "category": "billing",
        "suggestedResponse": "We are refunding the duplicate charge.",
    }))
    return proxy


@pytest.fixture
def sample_rows() -> List[Dict[str, Any]]:
    """Three stored tickets, oldest first"""
    return [
        {
            "customer": "Sarah Johnson",
            "subject": "Payment charged twice",
            "message": "I was charged twice for my subscription",
            "status": "new",
            "priority": "high",
            "sentiment": "negative",
            "category": "billing",
            "suggested_response": "Refund issued",
            "timestamp": "2024-05-10T09:00:00.000Z",
        },
        {
            "customer": "Mike Chen",
            "subject": "Feature request - Slack integration",
            "message": "Would love Slack notifications",
            "status": "resolved",
            "priority": "low",
            "sentiment": "positive",
            "category": "feature request",
            "suggested_response": "",
            "timestamp": "2024-05-11T10:30:00.000Z",
        },
        {
            "customer": "Lisa Anderson",
            "subject": "API rate limit questions",
            "message": "We're getting blocked at around 5,000 requests",
            "status": "in-progress",
            "priority": "medium",
            "sentiment": "neutral",
            "category": "technical",
            "suggested_response": "Checking your plan limits",
            "timestamp": "2024-05-12T11:45:00.000Z",
        },
    ]


@pytest.fixture
def seeded_repo(memory_repo, sample_rows) -> InMemoryTicketRepository:
    for row in sample_rows:
        memory_repo.create(row)
    return memory_repo


@pytest.fixture
def store_error() -> TicketStoreError:
    return TicketStoreError("connection reset")


@pytest.fixture
def off_utc_host_clock(monkeypatch):
    """Host timezone whose calendar day currently differs from UTC"""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    # UTC-10 before 10:00 UTC, UTC+14 after
    zone = "HST10" if datetime.now(timezone.utc).hour < 10 else "LINT-14"
    monkeypatch.setenv("TZ", zone)
    time.tzset()
    yield zone
    monkeypatch.undo()
    time.tzset()
